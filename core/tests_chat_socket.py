from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import SimpleTestCase

from core.consumers import chat_room_id
from core.routing import websocket_urlpatterns


application = URLRouter(websocket_urlpatterns)


class ChatRoomIdTests(SimpleTestCase):
    def test_room_id_does_not_depend_on_who_opened_the_chat(self):
        self.assertEqual(chat_room_id(7, 12), chat_room_id(12, 7))
        self.assertEqual(chat_room_id(7, 12), "12_7")


class ChatConsumerTests(SimpleTestCase):
    async def _connect(self):
        communicator = WebsocketCommunicator(application, "/ws/chat/")
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        return communicator

    async def _join(self, communicator, room_id):
        await communicator.send_json_to({"type": "join_chat", "room_id": room_id})
        reply = await communicator.receive_json_from()
        self.assertEqual(reply, {"type": "joined", "room_id": room_id})

    async def test_message_is_relayed_to_other_members_only(self):
        candidate = await self._connect()
        mentor = await self._connect()
        outsider = await self._connect()
        try:
            await self._join(candidate, "3_9")
            await self._join(mentor, "3_9")
            await self._join(outsider, "4_9")

            await candidate.send_json_to(
                {"type": "send_message", "room_id": "3_9", "sender": 3, "content": "Hello"}
            )

            received = await mentor.receive_json_from()
            self.assertEqual(
                received,
                {"type": "receive_message", "room_id": "3_9", "sender": 3, "content": "Hello"},
            )
            self.assertTrue(await candidate.receive_nothing())
            self.assertTrue(await outsider.receive_nothing())
        finally:
            await candidate.disconnect()
            await mentor.disconnect()
            await outsider.disconnect()

    async def test_invalid_frames_get_an_error_reply(self):
        communicator = await self._connect()
        try:
            await communicator.send_to(text_data="not json")
            reply = await communicator.receive_json_from()
            self.assertEqual(reply["type"], "error")

            await communicator.send_json_to({"type": "join_chat"})
            reply = await communicator.receive_json_from()
            self.assertEqual(reply, {"type": "error", "detail": "A valid room_id is required."})

            await communicator.send_json_to({"type": "typing", "room_id": "3_9"})
            reply = await communicator.receive_json_from()
            self.assertEqual(reply["type"], "error")
        finally:
            await communicator.disconnect()

    async def test_disconnect_leaves_joined_rooms(self):
        candidate = await self._connect()
        mentor = await self._connect()
        await self._join(candidate, "3_9")
        await self._join(mentor, "3_9")
        await mentor.disconnect()

        await candidate.send_json_to({"type": "send_message", "room_id": "3_9", "content": "Anyone?"})
        self.assertTrue(await candidate.receive_nothing())
        await candidate.disconnect()
