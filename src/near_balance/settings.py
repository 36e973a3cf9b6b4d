"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import tomllib

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_FRACTION_DIGITS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_RPC_CALL_TIMEOUT_SECONDS,
    MAINNET,
    TESTNET,
    YOCTO_DECIMALS,
    NetworkEndpoints,
)
from .clients.endpoints import ProviderEndpoint

load_dotenv()


class Network(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


NETWORK_DEFAULTS: dict[Network, NetworkEndpoints] = {
    Network.MAINNET: MAINNET,
    Network.TESTNET: TESTNET,
}


class BalanceSettings(BaseSettings):
    """Immutable configuration for one balance checker instance. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with NEAR_BALANCE_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    network: Network = Network.MAINNET
    rpc_urls: list[str] | None = None

    # --- timeouts ---
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline for one whole balance request, failover included.",
    )
    rpc_call_timeout: float = Field(
        default=DEFAULT_RPC_CALL_TIMEOUT_SECONDS,
        gt=0,
        description="HTTP timeout for a single RPC call against one endpoint.",
    )

    # --- RPC settings ---
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)

    # --- display ---
    fraction_digits: int = Field(
        default=DEFAULT_FRACTION_DIGITS, ge=0, le=YOCTO_DECIMALS
    )

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="NEAR_BALANCE_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
        frozen=True,
    )

    @field_validator("rpc_urls")
    @classmethod
    def validate_rpc_urls(cls, v: list[str] | None) -> list[str] | None:
        """Reject an explicitly empty endpoint list and blank URLs."""
        if v is None:
            return v
        urls = [url.strip() for url in v]
        if not urls:
            raise ValueError("rpc_urls must contain at least one endpoint")
        blank = [i for i, url in enumerate(urls) if not url]
        if blank:
            raise ValueError(f"rpc_urls contains blank entries at positions {blank}")
        return urls

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("NEAR_BALANCE_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("near-balance.toml")
                    user_config = (
                        Path.home() / ".config" / "near-balance" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [near_balance]
                body = data.get("near_balance", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the effective config, including resolved endpoints."""
        data = self.model_dump(mode="json")
        data["endpoints"] = [endpoint.url for endpoint in self.endpoints]
        return data

    @property
    def effective_rpc_urls(self) -> list[str]:
        """Configured RPC URLs, or the network defaults when none are set."""
        if self.rpc_urls:
            return list(self.rpc_urls)
        return list(NETWORK_DEFAULTS[self.network]["rpc_urls"])

    @property
    def endpoints(self) -> tuple[ProviderEndpoint, ...]:
        """Ordered failover list of RPC endpoints."""
        return tuple(ProviderEndpoint(url=url) for url in self.effective_rpc_urls)

    @property
    def explorer_url(self) -> str:
        return NETWORK_DEFAULTS[self.network]["explorer_url"]
