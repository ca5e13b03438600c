# =============================================================================
# app/realtime/presence.py - Live Users Presence Manager
# =============================================================================
# Tracks who is online across the dashboard. Every WebSocket connection owns
# one presence record under a key (the user id, or admin-listener-<id> for an
# admin watching the channel). After every change the full state is pushed to
# every connection as a "sync" event:
#
#   {"event": "sync", "state": {"<key>": [{"id": ..., "online_at": ...,
#                                          "presence_ref": ...}, ...]}}
#
# Usage:
#   from app.realtime import presence_manager
#
#   await presence_manager.connect(user.id, websocket)
#   await presence_manager.track(websocket, {"current_page": "/dashboard"})
#   users = presence_manager.live_users()
# =============================================================================

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import WebSocket

from core.models.presence import LiveUser, PresenceEntry
from lib.utils import parse_timestamp, utc_now

logger = logging.getLogger(__name__)

LISTENER_KEY_PREFIX = "admin-listener-"
LISTENER_PAGE = "__admin_listener__"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def listener_key(user_id: str) -> str:
    return f"{LISTENER_KEY_PREFIX}{user_id}"


def _online_at(entry: dict[str, Any]) -> datetime:
    return parse_timestamp(entry.get("online_at")) or _EPOCH


def collapse_presence_state(state: Dict[str, list]) -> list[LiveUser]:
    """
    Turn a raw presence state into the list of distinct online users.

    - Keys starting with admin-listener- are skipped
    - Each key contributes its last presence, if that presence has an id
    - A user seen under several keys is kept once, with the most recent
      online_at (ties keep the first seen)
    - Result is sorted by online_at, most recent first

    Example:
        collapse_presence_state({
            "u1": [{"id": "u1", "online_at": "2026-01-01T10:00:00Z"}],
            "admin-listener-a": [{"id": "admin-listener-a"}],
        })
        # [LiveUser(id="u1", ...)]
    """
    latest: Dict[str, dict] = {}

    for key, presences in state.items():
        if key.startswith(LISTENER_KEY_PREFIX):
            continue
        if not presences:
            continue
        presence = presences[-1]
        user_id = presence.get("id")
        if not user_id:
            continue

        existing = latest.get(user_id)
        if existing is None or _online_at(presence) > _online_at(existing):
            # Re-inserting moves the user to the end, like a filter-and-append
            latest.pop(user_id, None)
            latest[user_id] = presence

    users = sorted(latest.values(), key=_online_at, reverse=True)
    return [
        LiveUser(
            id=str(p["id"]),
            full_name=p.get("full_name"),
            avatar_url=p.get("avatar_url"),
            online_at=p.get("online_at") or "",
            current_page=p.get("current_page"),
        )
        for p in users
    ]


class PresenceManager:
    """
    In-process presence state for the live-users channel.

    Each connection maps to a key and at most one presence record. Several
    connections may share a key (e.g. two tabs of the same user); the state
    lists one record per tracking connection under that key.
    """

    def __init__(self):
        # websocket -> presence key
        self.connections: Dict[WebSocket, str] = {}
        # websocket -> tracked presence record
        self.presences: Dict[WebSocket, dict] = {}

    async def connect(self, key: str, websocket: WebSocket) -> None:
        """Accept the connection and send it the current state."""
        await websocket.accept()
        self.connections[websocket] = key
        logger.info(f"Presence connected: {key}. Total connections: {len(self.connections)}")
        await self.broadcast_sync()

    async def disconnect(self, websocket: WebSocket) -> None:
        """Forget the connection and its presence, then sync everyone else."""
        key = self.connections.pop(websocket, None)
        self.presences.pop(websocket, None)
        logger.info(f"Presence disconnected: {key}. Total connections: {len(self.connections)}")
        await self.broadcast_sync()

    async def track(self, websocket: WebSocket, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Store (or replace) the presence record of a connection.

        online_at defaults to now; a fresh presence_ref is assigned on every
        track.

        Returns:
            The stored record

        Raises:
            ValidationError: A known field has the wrong type; nothing is stored
        """
        entry = PresenceEntry.model_validate(payload or {}).model_dump()
        if not entry.get("online_at"):
            entry["online_at"] = utc_now().isoformat()
        entry["presence_ref"] = uuid.uuid4().hex

        self.presences[websocket] = entry
        logger.debug(f"Presence tracked: {self.connections.get(websocket)} on {entry.get('current_page')}")
        await self.broadcast_sync()
        return entry

    async def untrack(self, websocket: WebSocket) -> None:
        """Drop the presence record but keep the connection subscribed."""
        if self.presences.pop(websocket, None) is not None:
            await self.broadcast_sync()

    def state(self) -> Dict[str, list]:
        """Raw state: key -> presence records, in join order."""
        state: Dict[str, list] = {}
        for websocket, key in self.connections.items():
            entry = self.presences.get(websocket)
            if entry is not None:
                state.setdefault(key, []).append(entry)
        return state

    def live_users(self) -> list[LiveUser]:
        return collapse_presence_state(self.state())

    async def broadcast_sync(self) -> int:
        """
        Push the current state to every connection.

        Returns:
            int: Number of clients the sync was sent to
        """
        message = {"event": "sync", "state": self.state()}
        dead: list[WebSocket] = []
        sent = 0

        for websocket in list(self.connections):
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"Failed to send presence sync: {e}")
                dead.append(websocket)

        for websocket in dead:
            self.connections.pop(websocket, None)
            self.presences.pop(websocket, None)

        if dead:
            logger.info(f"Cleaned up {len(dead)} dead presence connections")

        return sent

    def get_connection_count(self) -> int:
        return len(self.connections)


# Global singleton instance
presence_manager = PresenceManager()
