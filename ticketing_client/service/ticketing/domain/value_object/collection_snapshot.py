from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import attrs

from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.entity.purchase_entity import Purchase
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket
from ticketing_client.service.ticketing.domain.entity.user_profile_entity import UserProfile


def _frozen_mapping(value: Mapping[int, EventStats]) -> Mapping[int, EventStats]:
    return MappingProxyType(dict(value))


@attrs.define(frozen=True)
class CollectionSnapshot:
    """
    Every cached collection of one session.

    Never mutated in place: each refresh produces a new snapshot via ``attrs.evolve``.
    """

    active_events: Tuple[Event, ...] = attrs.field(default=(), converter=tuple)
    all_events: Tuple[Event, ...] = attrs.field(default=(), converter=tuple)
    tickets: Tuple[Ticket, ...] = attrs.field(default=(), converter=tuple)
    purchases: Tuple[Purchase, ...] = attrs.field(default=(), converter=tuple)
    profile: Optional[UserProfile] = None
    event_stats: Mapping[int, EventStats] = attrs.field(
        factory=dict, converter=_frozen_mapping
    )

    def with_event_stats(self, event_id: int, stats: EventStats) -> 'CollectionSnapshot':
        return attrs.evolve(self, event_stats={**self.event_stats, event_id: stats})

    @property
    def is_empty(self) -> bool:
        return not (
            self.active_events
            or self.all_events
            or self.tickets
            or self.purchases
            or self.event_stats
            or self.profile is not None
        )


EMPTY_SNAPSHOT = CollectionSnapshot()
