"""
Create Event Use Case

Range validity of capacity, price and sale window is decided by the ledger; locally we
only check that every required field is present and every number is well-formed.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ticketing_client.platform.config.core_setting import settings
from ticketing_client.platform.exception.exceptions import LocalValidationError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.base_ledger_command import BaseLedgerCommand
from ticketing_client.service.ticketing.app.command.input_parsing import (
    NAT32_MAX,
    parse_timestamp,
    parse_unsigned,
    require_session,
    require_text,
)
from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome
from ticketing_client.service.ticketing.app.service.collection_synchronizer import LedgerCommand


class CreateEventUseCase(BaseLedgerCommand):
    action = 'create event'

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.clock = clock

    @Logger.io
    async def execute(
        self,
        *,
        name: Optional[str],
        description: Optional[str],
        venue: Optional[str],
        date: Any,
        total_tickets: Any = None,
        price: Any = None,
        max_tickets_per_user: Any = None,
        sale_start: Any = None,
        sale_end: Any = None,
    ) -> CommandOutcome:
        try:
            context = require_session(self.state_store)
            now = self.clock()
            args = {
                'name': require_text(name, 'Event name'),
                'description': require_text(description, 'Description'),
                'venue': require_text(venue, 'Venue'),
                'date': parse_timestamp(date, 'Event date'),
                'total_tickets': parse_unsigned(
                    _or_default(total_tickets, settings.DEFAULT_TOTAL_TICKETS),
                    'Total tickets',
                    maximum=NAT32_MAX,
                ),
                'price': parse_unsigned(_or_default(price, settings.DEFAULT_PRICE), 'Price'),
                'max_tickets_per_user': parse_unsigned(
                    _or_default(max_tickets_per_user, settings.DEFAULT_MAX_TICKETS_PER_USER),
                    'Max tickets per user',
                    maximum=NAT32_MAX,
                ),
                'sale_start_time': parse_timestamp(_or_default(sale_start, now), 'Sale start'),
                'sale_end_time': parse_timestamp(
                    _or_default(
                        sale_end, now + timedelta(days=settings.DEFAULT_SALE_WINDOW_DAYS)
                    ),
                    'Sale end',
                ),
            }
            with self.guard.hold():
                return await self._invoke(
                    context,
                    lambda channel: channel.create_event(**args),
                    success_message=lambda event_id: (
                        f'Created event successfully! Event ID: {event_id}'
                    ),
                    refresh=LedgerCommand.CREATE_EVENT,
                )
        except LocalValidationError as e:
            return self._reject_locally(e)


def _or_default(value: Any, default: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return value
