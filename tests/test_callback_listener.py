from __future__ import annotations

import socket

import httpx
import pytest

from gtm_mcp.api import CallbackListener, FlowOutcome, create_callback_app
from gtm_mcp.core.errors import CallbackListenerError
from gtm_mcp.models.oauth import CredentialRecord


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def _exchange(code: str) -> CredentialRecord:
    return CredentialRecord(access_token=f"access-{code}", refresh_token="refresh")


@pytest.mark.asyncio
async def test_listener_serves_callback_and_closes_idempotently(tmp_path) -> None:
    outcome = FlowOutcome()
    app = create_callback_app(
        outcome=outcome, exchange=_exchange, token_path=tmp_path / "tokens.json"
    )
    port = _free_port()
    listener = CallbackListener(app, port=port, host="127.0.0.1")

    await listener.start()
    try:
        async with httpx.AsyncClient(
            base_url=f"http://127.0.0.1:{port}", trust_env=False
        ) as client:
            stray = await client.get("/somewhere-else")
            response = await client.get("/oauth2callback", params={"code": "XYZ"})
    finally:
        await listener.close()
    await listener.close()

    assert stray.status_code == 404
    assert response.status_code == 200
    assert listener.closed
    assert (await outcome.wait(1)).access_token == "access-XYZ"


@pytest.mark.asyncio
async def test_busy_port_is_reported(tmp_path) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]

        outcome = FlowOutcome()
        app = create_callback_app(
            outcome=outcome, exchange=_exchange, token_path=tmp_path / "tokens.json"
        )
        listener = CallbackListener(app, port=port, host="127.0.0.1")

        with pytest.raises(CallbackListenerError) as excinfo:
            await listener.start()

    assert str(port) in str(excinfo.value)
    await listener.close()
