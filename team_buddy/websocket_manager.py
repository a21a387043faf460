"""
WebSocket handling for the room channel.

Clients open a WebSocket, send ``join_room`` messages and eventually
disconnect. The only thing tracked is room membership; no payload is relayed
between members and the realtime voice session does not use this channel.
"""

import json
import logging
import uuid

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from team_buddy.config.constants import LOGGER_NAME, MESSAGE_TYPE_JOIN_ROOM
from team_buddy.errors import RoomCapacityExceeded
from team_buddy.models.events import JoinRoomMessage, RoomErrorResponse, RoomJoinedResponse
from team_buddy.models.rooms import RoomRegistry

logger = logging.getLogger(LOGGER_NAME)


class WebSocketManager:
    """Accepts room channel connections and keeps the room registry current."""

    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    async def handle_join_room(self, message: dict, websocket: WebSocket, client_id: str) -> None:
        """Validate a join_room message and record the membership."""
        try:
            join = JoinRoomMessage(**message)
        except ValidationError as e:
            logger.error(f"Invalid join_room message: {e}")
            await websocket.send_text(RoomErrorResponse(reason="Invalid message format").model_dump_json())
            return

        try:
            self.registry.join(join.roomId, client_id)
        except RoomCapacityExceeded as e:
            logger.warning(str(e))
            await websocket.send_text(RoomErrorResponse(reason=str(e)).model_dump_json())
            return

        logger.info(f"Socket {client_id} joining room {join.roomId}")
        response = RoomJoinedResponse(roomId=join.roomId, clientId=client_id)
        await websocket.send_text(response.model_dump_json())

    async def handle_websocket(self, websocket: WebSocket) -> None:
        """Handle one room channel connection until the client disconnects."""
        await websocket.accept()
        client_id = str(uuid.uuid4())
        logger.info(f"New client connected: {client_id}")

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring non-JSON message from {client_id}")
                    continue
                if not isinstance(message, dict):
                    logger.warning(f"Ignoring non-object message from {client_id}")
                    continue

                message_type = message.get("type")
                if message_type == MESSAGE_TYPE_JOIN_ROOM:
                    await self.handle_join_room(message, websocket, client_id)
                else:
                    logger.warning(f"Unhandled message type received: {message_type}")
        except WebSocketDisconnect:
            logger.info(f"Client disconnected: {client_id}")
        finally:
            room_id = self.registry.leave(client_id)
            if room_id:
                logger.info(f"Socket {client_id} left room {room_id}")
