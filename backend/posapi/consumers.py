import json

from channels.generic.websocket import AsyncWebsocketConsumer

from .signals import change_group
from .store import TABLES


class ChangeFeedConsumer(AsyncWebsocketConsumer):
    """Pushes a frame for every insert, update or delete on one backend table."""

    async def connect(self):
        table = self.scope['url_route']['kwargs']['table']
        if table not in TABLES:
            await self.close(code=4004)
            return

        self.table = table
        self.room_group_name = change_group(table)

        await self.channel_layer.group_add(
            self.room_group_name,
            self.channel_name
        )

        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, 'room_group_name'):
            await self.channel_layer.group_discard(
                self.room_group_name,
                self.channel_name
            )

    async def receive(self, text_data):
        # Read-only feed
        pass

    async def row_change(self, event):
        await self.send(text_data=json.dumps({
            'type': 'change',
            'table': event['table'],
            'event': event['event'],
            'id': event['id'],
        }))
