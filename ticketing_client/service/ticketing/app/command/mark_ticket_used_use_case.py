from typing import Any, Optional

from ticketing_client.platform.exception.exceptions import LocalValidationError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.base_ledger_command import BaseLedgerCommand
from ticketing_client.service.ticketing.app.command.input_parsing import (
    parse_unsigned,
    require_session,
    require_text,
)
from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome
from ticketing_client.service.ticketing.app.service.collection_synchronizer import LedgerCommand


class MarkTicketUsedUseCase(BaseLedgerCommand):
    """Consume a ticket at the gate. Only the event organizer may do this."""

    action = 'use ticket'

    @Logger.io
    async def execute(self, *, ticket_id: Any, verification_code: Optional[str]) -> CommandOutcome:
        try:
            context = require_session(self.state_store)
            wire_ticket_id = parse_unsigned(ticket_id, 'Ticket ID')
            code = require_text(verification_code, 'Verification code')
            with self.guard.hold():
                return await self._invoke(
                    context,
                    lambda channel: channel.use_ticket(
                        ticket_id=wire_ticket_id, verification_code=code
                    ),
                    success_message='Ticket marked as used successfully!',
                    refresh=LedgerCommand.USE_TICKET,
                )
        except LocalValidationError as e:
            return self._reject_locally(e)
