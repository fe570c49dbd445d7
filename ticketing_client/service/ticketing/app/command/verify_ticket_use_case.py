"""
Verify Ticket Use Case

Read-only check of a ticket's verification code. No busy guard: verifications of different
tickets may run side by side, and nothing is refreshed afterwards.
"""

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
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket


class VerifyTicketUseCase(BaseLedgerCommand):
    action = 'verification'

    @property
    def busy(self) -> bool:
        return False

    @Logger.io
    async def execute(self, *, ticket_id: Any, verification_code: Optional[str]) -> CommandOutcome:
        try:
            context = require_session(self.state_store)
            wire_ticket_id = parse_unsigned(ticket_id, 'Ticket ID')
            code = require_text(verification_code, 'Verification code')
        except LocalValidationError as e:
            return self._reject_locally(e)

        return await self._invoke(
            context,
            lambda channel: channel.verify_ticket(
                ticket_id=wire_ticket_id, verification_code=code
            ),
            success_message=_describe_ticket,
        )


def _describe_ticket(ticket: Ticket) -> str:
    return (
        f'Ticket verified! Seat: {ticket.seat_number}, '
        f'Status: {"Used" if ticket.is_used else "Valid"}'
    )
