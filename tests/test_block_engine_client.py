import pytest

from backend.core.jito_core.clients.block_engine_client import BlockEngineClient, normalize_block_engine_url
from backend.core.jito_core.errors import BundleRejectedError, UpstreamAPIError
from conftest import TIP_ACCOUNTS, FakeResponse, FakeSession


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("mainnet.block-engine.jito.wtf", "https://mainnet.block-engine.jito.wtf"),
        ("https://ny.mainnet.block-engine.jito.wtf/", "https://ny.mainnet.block-engine.jito.wtf"),
        ("http://localhost:1234", "http://localhost:1234"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_block_engine_url(raw) == expected


def test_get_tip_accounts_posts_json_rpc():
    session = FakeSession(FakeResponse(200, {"jsonrpc": "2.0", "id": 1, "result": TIP_ACCOUNTS}))
    client = BlockEngineClient("mainnet.block-engine.jito.wtf", session=session)

    assert client.get_tip_accounts() == TIP_ACCOUNTS
    call = session.calls[0]
    assert call["url"] == "https://mainnet.block-engine.jito.wtf/api/v1/bundles"
    assert call["json"]["method"] == "getTipAccounts"


def test_send_bundle_returns_id_and_sends_base64_encoding():
    session = FakeSession(FakeResponse(200, {"jsonrpc": "2.0", "id": 1, "result": "abc-uuid"}))
    client = BlockEngineClient("https://be.test", session=session)

    assert client.send_bundle(["tx1", "tx2"]) == "abc-uuid"
    assert session.calls[0]["json"]["params"] == [["tx1", "tx2"], {"encoding": "base64"}]


def test_send_bundle_rejection_keeps_relay_message():
    body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "bundle contains an expired blockhash"}}
    client = BlockEngineClient("https://be.test", session=FakeSession(FakeResponse(400, body)))

    with pytest.raises(BundleRejectedError) as exc:
        client.send_bundle(["tx"])
    assert exc.value.relay_message == "bundle contains an expired blockhash"
    assert str(exc.value) == "Bundle submission failed: bundle contains an expired blockhash"


def test_http_error_without_json_is_upstream_error():
    client = BlockEngineClient("https://be.test", session=FakeSession(FakeResponse(503, None, text="unavailable")))
    with pytest.raises(UpstreamAPIError) as exc:
        client.get_tip_accounts()
    assert "503" in str(exc.value)


def test_get_bundle_statuses_unwraps_value():
    result = {"context": {"slot": 1}, "value": [{"bundle_id": "b1", "confirmation_status": "finalized"}]}
    client = BlockEngineClient("https://be.test", session=FakeSession(FakeResponse(200, {"result": result})))
    assert client.get_bundle_statuses(["b1"]) == result["value"]
