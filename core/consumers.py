import json
import logging
import re

from channels.generic.websocket import AsyncWebsocketConsumer

logger = logging.getLogger(__name__)

ROOM_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,80}$")


def chat_room_id(first_user_id, second_user_id) -> str:
    """Room shared by two users, independent of who opened the chat."""
    return "_".join(sorted([str(first_user_id), str(second_user_id)]))


def room_group_name(room_id) -> str:
    return f"chat_{room_id}"


class ChatConsumer(AsyncWebsocketConsumer):
    """Relay for live chat messages.

    Clients send ``{"type": "join_chat", "room_id": ...}`` to enter a room and
    ``{"type": "send_message", "room_id": ..., ...}`` to broadcast to everyone
    else in it as ``receive_message``. Nothing is stored here; messages are
    persisted through the REST endpoint.
    """

    async def connect(self):
        self.rooms = set()
        await self.accept()

    async def disconnect(self, close_code):
        for room_id in self.rooms:
            await self.channel_layer.group_discard(room_group_name(room_id), self.channel_name)
        logger.debug("Chat socket %s closed with code %s", self.channel_name, close_code)

    async def receive(self, text_data=None, bytes_data=None):
        try:
            payload = json.loads(text_data or "")
        except ValueError:
            await self._send_error("Messages must be JSON objects.")
            return
        if not isinstance(payload, dict):
            await self._send_error("Messages must be JSON objects.")
            return

        room_id = str(payload.get("room_id") or "")
        if not ROOM_ID_PATTERN.match(room_id):
            await self._send_error("A valid room_id is required.")
            return

        event_type = payload.get("type")
        if event_type == "join_chat":
            await self.channel_layer.group_add(room_group_name(room_id), self.channel_name)
            self.rooms.add(room_id)
            await self.send(text_data=json.dumps({"type": "joined", "room_id": room_id}))
        elif event_type == "send_message":
            message = {key: value for key, value in payload.items() if key != "type"}
            await self.channel_layer.group_send(
                room_group_name(room_id),
                {
                    "type": "chat.message",
                    "message": message,
                    "origin": self.channel_name,
                },
            )
        else:
            await self._send_error(f"Unsupported event type '{event_type}'.")

    async def chat_message(self, event):
        if event.get("origin") == self.channel_name:
            return
        await self.send(text_data=json.dumps({"type": "receive_message", **event["message"]}))

    async def _send_error(self, detail):
        await self.send(text_data=json.dumps({"type": "error", "detail": detail}))
