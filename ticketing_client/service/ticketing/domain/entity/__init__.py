"""Ticketing Domain Entities"""

from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.entity.purchase_entity import Purchase
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket
from ticketing_client.service.ticketing.domain.entity.user_profile_entity import UserProfile

__all__ = ['Event', 'EventStats', 'Purchase', 'Ticket', 'UserProfile']
