"""
WebSocket connection manager for live job chat.

Connections are grouped into one room per job. Delivery is best effort:
a socket that fails to receive is dropped and the client is expected to
reconcile with a full read when it reconnects. Rooms live in process memory,
so every subscriber of a job must be connected to the same API process.
"""

import asyncio
import json
import logging
from typing import Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)

MESSAGE_CREATED = "message.created"
MESSAGE_UPDATED = "message.updated"
MESSAGE_DELETED = "message.deleted"
MESSAGE_READ = "message.read"
TYPING = "typing"


class JobChannelManager:
    """Manages WebSocket connections per job."""

    def __init__(self):
        # job_id -> {websocket: user_id}
        self._rooms: dict[str, dict[WebSocket, str]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, job_id: str, user_id: str):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._rooms.setdefault(job_id, {})[websocket] = user_id
        logger.info(
            f"🔌 User {user_id} subscribed to job {job_id} ({self.get_connected_count(job_id)} connected)"
        )

    async def disconnect(self, websocket: WebSocket, job_id: str):
        """Remove a WebSocket connection."""
        async with self._lock:
            room = self._rooms.get(job_id)
            if room is None:
                return
            user_id = room.pop(websocket, None)
            if not room:
                del self._rooms[job_id]
        if user_id:
            logger.info(f"🔌 User {user_id} unsubscribed from job {job_id}")

    async def broadcast(
        self,
        job_id: str,
        event_type: str,
        payload: dict,
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """Send an event to every socket subscribed to a job; returns the delivery count"""
        async with self._lock:
            targets = [ws for ws in self._rooms.get(job_id, {}) if ws is not exclude]

        if not targets:
            return 0

        data = json.dumps({"type": event_type, "payload": payload}, default=str)
        closed = []
        delivered = 0

        for ws in targets:
            try:
                await ws.send_text(data)
                delivered += 1
            except Exception as e:
                # Connection closed or errored
                logger.debug(f"Dropping dead socket on job {job_id}: {e}")
                closed.append(ws)

        if closed:
            async with self._lock:
                room = self._rooms.get(job_id)
                if room is not None:
                    for ws in closed:
                        room.pop(ws, None)
                    if not room:
                        del self._rooms[job_id]

        logger.debug(f"📡 {event_type} on job {job_id} delivered to {delivered} socket(s)")
        return delivered

    async def relay_typing(self, job_id: str, sender: WebSocket, user_id: str, is_typing: bool):
        """Forward a typing indicator to the other subscribers; never persisted"""
        await self.broadcast(
            job_id,
            TYPING,
            {"jobId": job_id, "userId": user_id, "isTyping": is_typing},
            exclude=sender,
        )

    async def close_room(self, job_id: str, code: int, reason: str = "") -> int:
        """Close and forget every socket subscribed to a job; returns how many were closed"""
        async with self._lock:
            room = self._rooms.pop(job_id, {})

        for ws in room:
            try:
                await ws.close(code=code, reason=reason)
            except Exception as e:
                logger.debug(f"Socket on job {job_id} already gone: {e}")

        if room:
            logger.info(f"🔒 Closed live channel for job {job_id} ({sorted(set(room.values()))}, code {code})")
        return len(room)

    def get_connected_count(self, job_id: str) -> int:
        return len(self._rooms.get(job_id, {}))


# Singleton instance
manager = JobChannelManager()


def get_channel_manager() -> JobChannelManager:
    return manager
