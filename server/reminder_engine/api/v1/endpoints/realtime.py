from __future__ import annotations
"""
server/reminder_engine/api/v1/endpoints/realtime.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
WebSocket /ws : canal de livraison temps réel.

Séquence :
1) accept ; le premier message DOIT être `auth {userId}` (sinon error + close 4401) ;
2) `connection_confirmed`, puis enregistrement (remplace l'ancienne connexion
   de l'utilisateur et rejoue ses non lues en `pending_notifications`) ;
3) boucle : tout message client marque la connexion vivante ;
   ping → pong ; mark_read → lecture in-app (scopée à l'utilisateur authentifié).
"""
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as SchemaError
from starlette.concurrency import run_in_threadpool

from reminder_engine.application.services.realtime_hub import get_realtime_hub
from reminder_engine.application.services.replay_service import mark_read
from reminder_engine.core.errors import ValidationError
from reminder_engine.core.security import parse_user_id
from reminder_engine.infrastructure.realtime import protocol
from reminder_engine.infrastructure.realtime.transport import WebSocketTransport

logger = logging.getLogger(__name__)

CLOSE_UNAUTHORIZED = 4401

router = APIRouter()


def _parse(raw: str) -> protocol.ClientMessage | None:
    try:
        return protocol.ClientMessage.model_validate_json(raw)
    except SchemaError:
        return None


async def _authenticate(websocket: WebSocket) -> uuid.UUID | None:
    msg = _parse(await websocket.receive_text())
    if msg is None or msg.type != "auth":
        await websocket.send_json(protocol.error("authentication_required"))
        return None
    try:
        return parse_user_id(msg.user_id)
    except ValidationError:
        await websocket.send_json(protocol.error("invalid_user"))
        return None


async def _handle_mark_read(transport: WebSocketTransport, user_id: uuid.UUID, msg: protocol.ClientMessage) -> None:
    if msg.user_id and msg.user_id != str(user_id):
        await transport.send_json(protocol.error("user_mismatch"))
        return
    try:
        notification_id = uuid.UUID(str(msg.notification_id))
    except ValueError:
        await transport.send_json(protocol.error("invalid_notification_id"))
        return
    if not await run_in_threadpool(mark_read, user_id, notification_id):
        await transport.send_json(protocol.error("notification_not_found"))


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket) -> None:
    hub = get_realtime_hub(websocket.app)
    await websocket.accept()
    transport = WebSocketTransport(websocket)

    try:
        user_id = await _authenticate(websocket)
    except WebSocketDisconnect:
        return
    if user_id is None:
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return

    await transport.send_json(protocol.connection_confirmed())
    await hub.registry.register(user_id, transport)

    try:
        while True:
            raw = await websocket.receive_text()
            hub.registry.mark_alive(user_id, transport)
            msg = _parse(raw)
            if msg is None:
                await transport.send_json(protocol.error("invalid_message"))
            elif msg.type == "ping":
                await transport.send_json(protocol.pong())
            elif msg.type == "mark_read":
                await _handle_mark_read(transport, user_id, msg)
            elif msg.type == "auth":
                await transport.send_json(protocol.connection_confirmed())
    except WebSocketDisconnect:
        pass
    finally:
        hub.registry.unregister(user_id, transport)
