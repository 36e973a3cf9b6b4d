from __future__ import annotations

import base64
import json
from unittest.mock import Mock

import pytest
import requests

from near_balance.clients.endpoints import ProviderEndpoint
from near_balance.clients.near_rpc import JsonRpcProvider
from near_balance.errors import AccountNotFoundError, RpcNetworkError, RpcServerError

URL = "https://rpc.test"


def _response(body=None, status_code=200, json_error=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def provider():
    return JsonRpcProvider(ProviderEndpoint(url=URL), timeout=3.0)


@pytest.fixture
def post(monkeypatch):
    mock = Mock()
    monkeypatch.setattr("near_balance.clients.near_rpc.requests.post", mock)
    return mock


@pytest.mark.asyncio
async def test_view_account_sends_json_rpc_query(provider, post):
    post.return_value = _response(
        {"jsonrpc": "2.0", "id": 1, "result": {"amount": "5", "locked": "0"}}
    )

    result = await provider.view_account("alice.near")

    assert result == {"amount": "5", "locked": "0"}
    args, kwargs = post.call_args
    assert args == (URL,)
    assert kwargs["timeout"] == 3.0
    payload = kwargs["json"]
    assert payload["jsonrpc"] == "2.0"
    assert payload["method"] == "query"
    assert payload["params"] == {
        "request_type": "view_account",
        "account_id": "alice.near",
        "finality": "final",
    }


@pytest.mark.asyncio
async def test_call_function_encodes_args_and_decodes_result(provider, post):
    post.return_value = _response(
        {"jsonrpc": "2.0", "id": 1, "result": {"result": list(b'"1000"'), "logs": []}}
    )

    result = await provider.call_function(
        "pool.poolv1.near", "get_account_total_balance", {"account_id": "alice.near"}
    )

    assert result == "1000"
    params = post.call_args.kwargs["json"]["params"]
    assert params["request_type"] == "call_function"
    assert params["account_id"] == "pool.poolv1.near"
    assert json.loads(base64.b64decode(params["args_base64"])) == {
        "account_id": "alice.near"
    }


@pytest.mark.asyncio
async def test_unknown_account_is_terminal(provider, post):
    post.return_value = _response(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {
                "name": "HANDLER_ERROR",
                "cause": {
                    "name": "UNKNOWN_ACCOUNT",
                    "info": {"requested_account_id": "ghost.near"},
                },
                "code": -32000,
                "message": "Server error",
                "data": "account ghost.near does not exist while viewing",
            },
        }
    )

    with pytest.raises(AccountNotFoundError) as excinfo:
        await provider.view_account("ghost.near")
    assert excinfo.value.account_id == "ghost.near"


@pytest.mark.asyncio
async def test_legacy_query_error_in_result(provider, post):
    post.return_value = _response(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "error": "account ghost.near does not exist while viewing",
                "logs": [],
            },
        }
    )

    with pytest.raises(AccountNotFoundError):
        await provider.view_account("ghost.near")


@pytest.mark.asyncio
async def test_transport_error_is_transient(provider, post):
    post.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(RpcNetworkError, match="connection refused") as excinfo:
        await provider.validators()
    assert excinfo.value.url == URL


@pytest.mark.asyncio
async def test_http_error_is_transient(provider, post):
    post.return_value = _response({"error": "rate limited"}, status_code=429)

    with pytest.raises(RpcNetworkError, match="HTTP 429"):
        await provider.protocol_config()


@pytest.mark.asyncio
async def test_malformed_json_is_transient(provider, post):
    post.return_value = _response(json_error=ValueError("Expecting value"))

    with pytest.raises(RpcNetworkError, match="Malformed JSON"):
        await provider.protocol_config()


@pytest.mark.asyncio
async def test_internal_error_is_transient(provider, post):
    post.return_value = _response(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {
                "name": "INTERNAL_ERROR",
                "cause": {"name": "INTERNAL_ERROR", "info": {}},
                "data": "node overloaded",
            },
        }
    )

    with pytest.raises(RpcNetworkError, match="node overloaded"):
        await provider.validators()


@pytest.mark.asyncio
async def test_handler_error_is_terminal(provider, post):
    post.return_value = _response(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {
                "name": "HANDLER_ERROR",
                "cause": {"name": "INVALID_ACCOUNT", "info": {}},
                "data": "invalid account id",
            },
        }
    )

    with pytest.raises(RpcServerError) as excinfo:
        await provider.view_account("BAD")
    assert excinfo.value.cause == "INVALID_ACCOUNT"
    assert not isinstance(excinfo.value, AccountNotFoundError)
