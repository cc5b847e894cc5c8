# fleetgroups/services/comms.py
"""
Canal de salida de comandos hacia los dispositivos.
El transporte real es externo; aquí solo se encola el comando vía HTTP.
"""
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from fleetgroups.core.config import settings

logger = logging.getLogger(__name__)


class CommandDispatcher(Protocol):
    async def send_command(self, team_id: str, device_id: str, command: str, payload: Dict[str, Any]) -> bool:
        ...


class HttpCommandDispatcher:
    """
    Envía comandos a la API del broker de dispositivos:
    POST {base_url}/api/v1/teams/{team}/devices/{device}/command
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    async def send_command(self, team_id: str, device_id: str, command: str, payload: Dict[str, Any]) -> bool:
        api_url = f"{self.base_url}/api/v1/teams/{team_id}/devices/{device_id}/command"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        json_body = {"command": command, "payload": payload}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(api_url, json=json_body, headers=headers)
                response.raise_for_status()
                logger.info(f"✅ Comando '{command}' encolado para el dispositivo {device_id}")
                return True
            except httpx.HTTPStatusError as e:
                logger.error(f"❌ Error al encolar '{command}' para {device_id}: {e.response.status_code} - {e.response.text}")
                return False
            except httpx.HTTPError as e:
                logger.error(f"❌ Error de conexión enviando '{command}' a {device_id}: {e}")
                return False


def get_command_dispatcher() -> Optional[CommandDispatcher]:
    """Devuelve el canal configurado o None si la mensajería está deshabilitada."""
    if not settings.COMMS_ENABLED or not settings.COMMS_API_URL:
        return None
    return HttpCommandDispatcher(settings.COMMS_API_URL, settings.COMMS_API_TOKEN, settings.COMMS_TIMEOUT)
