"""
Tests del dispatcher HTTP de comandos usando httpx.MockTransport.
"""
import json

import httpx
import pytest

from fleetgroups.services import comms
from fleetgroups.services.comms import HttpCommandDispatcher


def _transport(status_code, captured):
    def handler(request):
        captured.append(request)
        return httpx.Response(status_code, json={"ok": status_code < 400})

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_send_command_posts_payload():
    captured = []
    dispatcher = HttpCommandDispatcher("http://broker.local/", token="secret", transport=_transport(200, captured))

    ok = await dispatcher.send_command("team1", "dev1", "update", {"mode": "autonomous"})

    assert ok is True
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == "http://broker.local/api/v1/teams/team1/devices/dev1/command"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"command": "update", "payload": {"mode": "autonomous"}}


@pytest.mark.asyncio
async def test_send_command_error_status_returns_false():
    dispatcher = HttpCommandDispatcher("http://broker.local", transport=_transport(503, []))
    assert await dispatcher.send_command("team1", "dev1", "update", {}) is False


@pytest.mark.asyncio
async def test_send_command_connection_error_returns_false():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    dispatcher = HttpCommandDispatcher("http://broker.local", transport=httpx.MockTransport(handler))
    assert await dispatcher.send_command("team1", "dev1", "update", {}) is False


def test_dispatcher_disabled_by_default(monkeypatch):
    monkeypatch.setattr(comms.settings, "COMMS_ENABLED", False)
    assert comms.get_command_dispatcher() is None


def test_dispatcher_from_settings(monkeypatch):
    monkeypatch.setattr(comms.settings, "COMMS_ENABLED", True)
    monkeypatch.setattr(comms.settings, "COMMS_API_URL", "http://broker.local")
    dispatcher = comms.get_command_dispatcher()
    assert isinstance(dispatcher, HttpCommandDispatcher)
    assert dispatcher.base_url == "http://broker.local"
