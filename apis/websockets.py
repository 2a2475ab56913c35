from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlmodel import Session
from database import get_session, get_store
from helpers.auth import user_for_access_token
from helpers.errors import CommandError, StoreError
from models.helper import utcnow
from store.document_store import DocumentStore
from sync.commands import BoardCommands
from ws_service.manager import manager
from settings import logger
import json

router = APIRouter(tags=["websockets"])


async def send_json(websocket: WebSocket, payload: dict):
    await manager.send_to_connection(websocket, json.dumps(payload, default=str))


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = None,
    db_session: Session = Depends(get_session),
    document_store: DocumentStore = Depends(get_store)
):
    """
    WebSocket endpoint for live board views.

    Query parameter:
    - token: bearer token of the connecting user
    """
    user = user_for_access_token(token, db_session) if token else None
    if user is None:
        logger.warning("WebSocket authentication failed", extra={
            "token": token[:20] + "..." if token and len(token) > 20 else token
        })
        await websocket.close(code=1008, reason="Authentication failed")
        return

    await manager.connect(websocket, user)
    commands = BoardCommands(document_store, user)

    try:
        # Send welcome message
        await send_json(websocket, {
            "type": "connection_established",
            "message": "WebSocket connection established successfully",
            "userId": user.id,
            "activeConnections": manager.get_connection_count()
        })

        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON received from WebSocket client", extra={
                    "data": data[:100] + "..." if len(data) > 100 else data
                })
                await send_json(websocket, {"type": "error", "message": "Invalid JSON"})
                continue

            if not isinstance(message, dict):
                logger.warning("Non-object message received from WebSocket client", extra={
                    "message_kind": type(message).__name__
                })
                await send_json(websocket, {"type": "error", "message": "Invalid message"})
                continue

            message_type = message.get("type")
            try:
                if message_type == "ping":
                    await send_json(websocket, {
                        "type": "pong",
                        "timestamp": message.get("timestamp"),
                        "serverTime": utcnow().isoformat()
                    })

                elif message_type == "subscribe":
                    await manager.subscribe(websocket, message.get("boardId"), document_store)

                elif message_type == "unsubscribe":
                    board_id = await manager.unsubscribe(websocket)
                    await send_json(websocket, {"type": "unsubscribed", "boardId": board_id})

                elif message_type == "move_task":
                    # The resulting snapshot reaches every viewer through its subscription
                    await commands.move_task(message.get("taskId"), message.get("column"))

                else:
                    logger.debug("Unknown WebSocket message type", extra={
                        "message_type": message_type
                    })
                    await send_json(websocket, {"type": "error", "message": f"Unknown message type: {message_type}"})

            except (CommandError, StoreError) as e:
                logger.info("WebSocket command rejected", extra={
                    "user_id": user.id,
                    "message_type": message_type,
                    "error": str(e)
                })
                await send_json(websocket, {
                    "type": "error",
                    "requestType": message_type,
                    "message": getattr(e, "message", "Document store unavailable")
                })

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket connection error", extra={
            "error": str(e)
        })
    finally:
        board_id = manager.disconnect(websocket)
        if board_id:
            await manager.send_presence(board_id)


@router.get("/ws/stats")
async def get_websocket_stats():
    """Get WebSocket connection statistics."""
    return {
        "active_connections": manager.get_connection_count(),
        "watched_boards": len(manager.board_viewers),
        "status": "running"
    }
