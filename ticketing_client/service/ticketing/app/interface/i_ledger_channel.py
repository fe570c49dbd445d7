from abc import ABC, abstractmethod
from typing import List

from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.entity.purchase_entity import Purchase
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket
from ticketing_client.service.ticketing.domain.entity.user_profile_entity import UserProfile
from ticketing_client.service.ticketing.domain.value_object.result import Result


class ILedgerChannel(ABC):
    """
    Authenticated conduit to the ledger service, bound to one identity.

    Backend rejections come back as ``Err`` values. Transport problems raise
    ``TransportError`` subclasses.
    """

    @property
    @abstractmethod
    def principal(self) -> str:
        pass

    @abstractmethod
    async def list_active_events(self) -> List[Event]:
        pass

    @abstractmethod
    async def list_all_events(self) -> List[Event]:
        pass

    @abstractmethod
    async def get_event(self, *, event_id: int) -> Result[Event]:
        pass

    @abstractmethod
    async def create_event(
        self,
        *,
        name: str,
        description: str,
        venue: str,
        date: int,
        total_tickets: int,
        price: int,
        max_tickets_per_user: int,
        sale_start_time: int,
        sale_end_time: int,
    ) -> Result[int]:
        pass

    @abstractmethod
    async def purchase_tickets(self, *, event_id: int, quantity: int) -> Result[Purchase]:
        pass

    @abstractmethod
    async def list_user_tickets(self, *, principal: str) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_user_purchases(self, *, principal: str) -> List[Purchase]:
        pass

    @abstractmethod
    async def get_user_profile(self, *, principal: str) -> UserProfile:
        pass

    @abstractmethod
    async def verify_ticket(self, *, ticket_id: int, verification_code: str) -> Result[Ticket]:
        pass

    @abstractmethod
    async def use_ticket(self, *, ticket_id: int, verification_code: str) -> Result[None]:
        pass

    @abstractmethod
    async def get_event_statistics(self, *, event_id: int) -> Result[EventStats]:
        pass

    @abstractmethod
    async def deactivate_event(self, *, event_id: int) -> Result[None]:
        pass

    @abstractmethod
    async def aclose(self) -> None:
        pass
