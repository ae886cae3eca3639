"""
WebSocket router for live job chat.

Provides a per-job endpoint that:
1. Authenticates the user via the access token query parameter
2. Applies the messaging gate before accepting the connection
3. Relays typing indicators between participants

Message events are pushed by the messaging endpoints after their
transaction commits.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState
from sqlalchemy.orm import Session

from ..auth import resolve_user_from_token
from ..database import get_db
from ..domain.messaging.service import get_messaging_participants
from ..errors import WEBSOCKET_CLOSE_CODES, DomainError
from ..realtime import TYPING, manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])


@router.websocket("/jobs/{job_id}")
async def job_channel(
    websocket: WebSocket,
    job_id: str,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Live channel for one job's conversation.

    Server pushes: message.created, message.updated, message.deleted,
    message.read and typing. Clients may send {"type": "typing", "isTyping": bool}
    or the text "ping".
    """
    try:
        user = resolve_user_from_token(db, token)
        get_messaging_participants(db, job_id, user)
        user_id = user.id
    except DomainError as e:
        close_code = WEBSOCKET_CLOSE_CODES.get(e.code, 4400)
        logger.warning(f"🚫 Live channel refused for job {job_id}: {e.code} ({close_code})")
        await websocket.close(code=close_code, reason=str(e.detail))
        return
    finally:
        # The connection can stay open for hours; do not pin a pooled connection to it
        db.close()

    await manager.connect(websocket, job_id, user_id)

    try:
        while True:
            try:
                data = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            if websocket.application_state != WebSocketState.CONNECTED:
                # Closed from the server side, e.g. the job was completed
                break

            if data == "ping":
                await websocket.send_text("pong")
                continue

            try:
                event = json.loads(data)
            except json.JSONDecodeError:
                logger.debug(f"Ignoring non-JSON frame on job {job_id}")
                continue

            if isinstance(event, dict) and event.get("type") == TYPING:
                # The job may have left IN_PROGRESS since the subscription was accepted
                try:
                    get_messaging_participants(db, job_id, user)
                except DomainError as e:
                    close_code = WEBSOCKET_CLOSE_CODES.get(e.code, 4400)
                    logger.info(f"🔒 Closing live channel for {user_id} on job {job_id}: {e.code}")
                    await websocket.close(code=close_code, reason=str(e.detail))
                    break
                finally:
                    db.close()
                await manager.relay_typing(job_id, websocket, user_id, bool(event.get("isTyping")))
    finally:
        await manager.disconnect(websocket, job_id)
