from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from soloquiz.api.models import GameView

logger = logging.getLogger(__name__)


def snapshot_message(session_id: str, view: GameView) -> dict[str, object]:
    return {"type": "session_snapshot", "session_id": session_id, "view": view.model_dump(mode="json")}


def update_message(session_id: str, *, action: str, view: GameView) -> dict[str, object]:
    return {
        "type": "session_updated",
        "session_id": session_id,
        "action": action,
        "view": view.model_dump(mode="json"),
    }


class SessionViewHub:
    """Keeps every renderer of a session drawing the same GameView.

    A renderer receives a `session_snapshot` as soon as it subscribes, then one
    `session_updated` per applied action. Both carry the full view, so renderers
    never re-fetch `/session/{id}`. Watchers live in this process only.
    """

    def __init__(self) -> None:
        self._watchers: dict[str, list[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, session_id: str, websocket: WebSocket, *, current: GameView) -> None:
        await websocket.accept()
        await websocket.send_json(snapshot_message(session_id, current))
        async with self._lock:
            self._watchers.setdefault(session_id, []).append(websocket)

    async def unsubscribe(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._drop(session_id, [websocket])

    def watcher_count(self, session_id: str) -> int:
        return len(self._watchers.get(session_id, ()))

    async def publish(self, session_id: str, *, action: str, view: GameView) -> int:
        """Send the new view to every watcher; returns how many received it."""

        async with self._lock:
            watchers = list(self._watchers.get(session_id, ()))
        if not watchers:
            return 0

        message = update_message(session_id, action=action, view=view)
        gone: list[WebSocket] = []
        for ws in watchers:
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.debug("Dropping renderer of session %s: %s", session_id, e)
                gone.append(ws)

        if gone:
            async with self._lock:
                self._drop(session_id, gone)
        return len(watchers) - len(gone)

    def _drop(self, session_id: str, sockets: list[WebSocket]) -> None:
        remaining = [ws for ws in self._watchers.get(session_id, ()) if ws not in sockets]
        if remaining:
            self._watchers[session_id] = remaining
        else:
            self._watchers.pop(session_id, None)


hub = SessionViewHub()
