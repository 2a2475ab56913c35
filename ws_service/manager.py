from fastapi import WebSocket
from typing import Dict, List, Optional, Set
import json
from apis.schemas.tasks import TaskResponse
from helpers.errors import StoreError
from helpers.policy import ensure_board_visible
from models.auth import User
from models.boards import Task
from settings import logger
from store.document_store import DocumentStore
from sync.subscriptions import LiveSubscriptionManager


class ConnectionManager:
    """WebSocket connection manager for live board views and presence."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []
        self.users: Dict[WebSocket, User] = {}
        self.subscriptions: Dict[WebSocket, LiveSubscriptionManager] = {}
        self.board_viewers: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user: User):
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.active_connections.append(websocket)
        self.users[websocket] = user
        logger.info("WebSocket connection established", extra={
            "user_id": user.id,
            "total_connections": len(self.active_connections)
        })

    def disconnect(self, websocket: WebSocket) -> Optional[str]:
        """Remove a connection; returns the board it was viewing, if any."""
        board_id = self._leave_board(websocket)
        self.users.pop(websocket, None)
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info("WebSocket connection closed", extra={
                "total_connections": len(self.active_connections)
            })
        return board_id

    def _leave_board(self, websocket: WebSocket) -> Optional[str]:
        live = self.subscriptions.pop(websocket, None)
        board_id = live.board_id if live else None
        if live is not None:
            live.unsubscribe()
        if board_id and board_id in self.board_viewers:
            self.board_viewers[board_id].discard(websocket)
            if not self.board_viewers[board_id]:
                del self.board_viewers[board_id]
        return board_id

    async def broadcast_to_board(self, board_id: str, message: str):
        await self._send_many(list(self.board_viewers.get(board_id, ())), message)

    async def _send_many(self, connections: List[WebSocket], message: str):
        if not connections:
            logger.debug("No active WebSocket connections to broadcast to")
            return

        disconnected_connections = []
        for connection in connections:
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.warning("Failed to send message to WebSocket client", extra={
                    "error": str(e)
                })
                disconnected_connections.append(connection)

        for connection in disconnected_connections:
            self.disconnect(connection)

    async def send_to_connection(self, websocket: WebSocket, message: str):
        """Send message to a specific connection."""
        try:
            await websocket.send_text(message)
        except Exception as e:
            logger.warning("Failed to send message to specific WebSocket client", extra={
                "error": str(e)
            })
            self.disconnect(websocket)

    async def subscribe(self, websocket: WebSocket, board_id: str, document_store: DocumentStore):
        """Stream `tasks_snapshot` messages for one board to this connection."""
        user = self.users.get(websocket)
        ensure_board_visible(user, await document_store.get("boards", board_id))

        previous_board = self._leave_board(websocket)
        if previous_board and previous_board != board_id:
            await self.send_presence(previous_board)

        async def push_tasks(tasks: List[Task]):
            await self.send_to_connection(websocket, json.dumps({
                "type": "tasks_snapshot",
                "boardId": board_id,
                "tasks": [TaskResponse.model_validate(task).model_dump(mode="json", by_alias=True) for task in tasks]
            }))

        async def push_error(error: StoreError):
            await self.send_to_connection(websocket, json.dumps({
                "type": "subscription_error",
                "boardId": board_id,
                "message": "Live updates for this board stopped. Subscribe again to retry."
            }))

        live = LiveSubscriptionManager(document_store, on_tasks=push_tasks, on_error=push_error)
        self.subscriptions[websocket] = live
        self.board_viewers.setdefault(board_id, set()).add(websocket)
        await live.subscribe(board_id)
        await self.send_presence(board_id)

    async def unsubscribe(self, websocket: WebSocket):
        board_id = self._leave_board(websocket)
        if board_id:
            await self.send_presence(board_id)
        return board_id

    def viewers(self, board_id: str) -> List[Dict[str, Optional[str]]]:
        seen = {}
        for connection in self.board_viewers.get(board_id, ()):
            user = self.users.get(connection)
            if user is not None:
                seen[user.id] = {"id": user.id, "username": user.username, "avatarUrl": user.avatar_url}
        return sorted(seen.values(), key=lambda viewer: viewer["username"] or "")

    async def send_presence(self, board_id: str):
        await self.broadcast_to_board(board_id, json.dumps({
            "type": "presence",
            "boardId": board_id,
            "viewers": self.viewers(board_id)
        }))

    def get_connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self.active_connections)


# Global manager instance
manager = ConnectionManager()
