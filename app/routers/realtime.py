"""WebSocket push channel for notification feed updates."""
from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
import logging

from app.middleware.auth import decode_token
from app.realtime.connection_manager import connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query(...)):
    """Push `notifications_created` / `notifications_read` messages to the token's user."""
    try:
        current_user = decode_token(token)
    except HTTPException as e:
        logger.warning(f"Rejected websocket connection: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = current_user.user_id
    await connection_manager.connect(websocket, user_id)
    try:
        while True:
            # Client messages are only keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Connection with user {user_id} closed")
    finally:
        connection_manager.disconnect(websocket, user_id)
