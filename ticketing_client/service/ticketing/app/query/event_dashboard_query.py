"""Read-only views derived from the cached collections."""

from typing import Optional, Tuple

import attrs

from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket
from ticketing_client.service.ticketing.domain.value_object.collection_snapshot import (
    CollectionSnapshot,
)


@attrs.define(frozen=True)
class DashboardTotals:
    total_events: int
    tickets_sold: int
    revenue: int


def organized_by(snapshot: CollectionSnapshot, principal: Optional[str]) -> Tuple[Event, ...]:
    if not principal:
        return ()
    return tuple(event for event in snapshot.all_events if event.organizer == principal)


def totals(snapshot: CollectionSnapshot) -> DashboardTotals:
    events = snapshot.all_events
    return DashboardTotals(
        total_events=len(events),
        tickets_sold=sum(event.sold_tickets for event in events),
        revenue=sum(event.sold_tickets * event.price for event in events),
    )


def find_event(snapshot: CollectionSnapshot, event_id: int) -> Optional[Event]:
    for event in (*snapshot.all_events, *snapshot.active_events):
        if event.id == event_id:
            return event
    return None


def tickets_for_event(snapshot: CollectionSnapshot, event_id: int) -> Tuple[Ticket, ...]:
    return tuple(ticket for ticket in snapshot.tickets if ticket.event_id == event_id)
