from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderEndpoint:
    """A NEAR JSON-RPC endpoint. Stateless; position in the list sets priority."""

    url: str
