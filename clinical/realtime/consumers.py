import json
from channels.generic.websocket import AsyncWebsocketConsumer

from clinical.permissions import CLINICAL_ROLES


class AlertFeedConsumer(AsyncWebsocketConsumer):
    """Pushes alert lifecycle changes to connected clinical staff."""
    GROUP = "alerts"

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated and getattr(user, "role", None) in CLINICAL_ROLES):
            await self.close()
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def alert_changed(self, event):
        # event: {"type": "alert.changed", "event": "created|superseded|acknowledged|dismissed", "alert": {...}}
        await self.send(json.dumps(event))
