from __future__ import annotations
"""server/reminder_engine/infrastructure/realtime/transport.py
~~~~~~~~~~~~~~~~~~~~~~~~
Adaptateur Starlette WebSocket → Transport du registre.
"""
from typing import Any

from starlette.websockets import WebSocket, WebSocketState


class WebSocketTransport:
    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, message: dict[str, Any]) -> None:
        if not self.is_open:
            raise ConnectionError("websocket is not open")
        await self.websocket.send_json(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        await self.websocket.close(code=code, reason=reason)
