from typing import Any

from ticketing_client.platform.exception.exceptions import LocalValidationError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.base_ledger_command import BaseLedgerCommand
from ticketing_client.service.ticketing.app.command.input_parsing import (
    NAT32_MAX,
    parse_unsigned,
    require_session,
)
from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome
from ticketing_client.service.ticketing.app.service.collection_synchronizer import LedgerCommand
from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.purchase_entity import Purchase


class PurchaseTicketsUseCase(BaseLedgerCommand):
    action = 'purchase'

    def can_purchase(self, event: Event, quantity: int = 1) -> bool:
        """Whether the buy control for ``event`` should be enabled."""
        return (
            not self.busy
            and self.state_store.session.is_authenticated
            and event.is_active
            and quantity >= 1
            and event.available_tickets >= quantity
        )

    @Logger.io
    async def execute(self, *, event_id: Any, quantity: Any = 1) -> CommandOutcome:
        # Availability is not re-checked here: the ledger is the authority and a bypassed
        # control must surface its InsufficientTickets answer.
        try:
            context = require_session(self.state_store)
            wire_event_id = parse_unsigned(event_id, 'Event ID')
            wire_quantity = parse_unsigned(quantity, 'Quantity', minimum=1, maximum=NAT32_MAX)
            with self.guard.hold():
                return await self._invoke(
                    context,
                    lambda channel: channel.purchase_tickets(
                        event_id=wire_event_id, quantity=wire_quantity
                    ),
                    success_message=_describe_purchase,
                    refresh=LedgerCommand.PURCHASE_TICKETS,
                    event_id=wire_event_id,
                )
        except LocalValidationError as e:
            return self._reject_locally(e)


def _describe_purchase(purchase: Purchase) -> str:
    return (
        f'Successfully purchased {purchase.quantity} ticket(s) for event {purchase.event_id}!'
    )
