# =============================================================================
# app/realtime/routes.py - Presence WebSocket Route
# =============================================================================
# Connect: ws://host/ws/presence?token={jwt}[&listener=true]
#
# Client messages:
#   - {"event": "track", "payload": {"current_page": "/dashboard", ...}}
#   - {"event": "untrack"}
#   - ping  (answered with pong)
#
# Server messages:
#   - {"event": "sync", "state": {...}}
# =============================================================================

import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.auth.dependencies import is_admin, verify_token
from app.exceptions import UnauthorizedError
from app.realtime.presence import LISTENER_PAGE, listener_key, presence_manager
from lib.utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/presence")
async def presence_websocket(
    websocket: WebSocket,
    token: str = Query(..., description="JWT token for authentication"),
    listener: bool = Query(False, description="Admin listener (not shown as online)"),
):
    """
    Live-users presence channel.

    Regular users appear online once they send a track event. Admins
    connecting with listener=true are tracked under admin-listener-<id> and
    never counted as online.
    """
    try:
        user = verify_token(token)
    except UnauthorizedError:
        logger.warning("Presence auth failed: invalid token")
        await websocket.close(code=4001, reason="Invalid token")
        return

    user_id = str(user.id)
    as_listener = listener and is_admin(user)
    key = listener_key(user_id) if as_listener else user_id

    await presence_manager.connect(key, websocket)

    try:
        if as_listener:
            await presence_manager.track(websocket, {
                "id": key,
                "full_name": None,
                "avatar_url": None,
                "online_at": utc_now().isoformat(),
                "current_page": LISTENER_PAGE,
            })

        while True:
            data = await websocket.receive_text()

            if data == "ping":
                await websocket.send_text("pong")
                continue

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.debug(f"Presence received non-JSON message: {data[:100]}")
                continue
            if not isinstance(message, dict):
                continue

            event = message.get("event")
            if event == "track":
                payload = message.get("payload") or {}
                if not isinstance(payload, dict):
                    logger.debug(f"Presence track from {key} ignored: payload is not an object")
                    continue
                payload = dict(payload)
                if not as_listener:
                    payload["id"] = user_id
                    payload.setdefault("full_name", user.display_name)
                    payload.setdefault("avatar_url", user.avatar_url)
                try:
                    await presence_manager.track(websocket, payload)
                except ValidationError as e:
                    logger.warning(f"Presence track from {key} rejected: {e.error_count()} invalid field(s)")
            elif event == "untrack":
                await presence_manager.untrack(websocket)
            else:
                logger.debug(f"Presence ignored event: {event}")

    except WebSocketDisconnect:
        logger.info(f"Presence client disconnected: {key}")
    finally:
        await presence_manager.disconnect(websocket)
