from abc import ABC, abstractmethod

from ticketing_client.service.ticketing.app.interface.i_ledger_channel import ILedgerChannel
from ticketing_client.service.ticketing.domain.value_object.identity import Identity


class ILedgerChannelFactory(ABC):
    @abstractmethod
    async def create(self, *, identity: Identity) -> ILedgerChannel:
        """Build a fresh channel for the identity. Raises ChannelConstructionError."""
        pass
