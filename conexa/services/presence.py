"""Presence broadcaster: announce the online set when an identity flips online/offline."""
from conexa.services import events
from conexa.services.directory import ConnectionDirectory
from conexa.services.event_router import EventRouter


class PresenceBroadcaster:
    def __init__(self, directory: ConnectionDirectory, router: EventRouter) -> None:
        self.directory = directory
        self.router = router

    async def announce(self) -> list[str]:
        online = self.directory.online_identities()
        await self.router.broadcast_all(events.PRESENCE_UPDATE, online)
        return online
