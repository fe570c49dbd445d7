from typing import Any

from ticketing_client.platform.exception.exceptions import LocalValidationError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.base_ledger_command import BaseLedgerCommand
from ticketing_client.service.ticketing.app.command.input_parsing import (
    parse_unsigned,
    require_session,
)
from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome
from ticketing_client.service.ticketing.app.service.collection_synchronizer import LedgerCommand


class DeactivateEventUseCase(BaseLedgerCommand):
    action = 'deactivate event'

    @Logger.io
    async def execute(self, *, event_id: Any) -> CommandOutcome:
        try:
            context = require_session(self.state_store)
            wire_event_id = parse_unsigned(event_id, 'Event ID')
            with self.guard.hold():
                return await self._invoke(
                    context,
                    lambda channel: channel.deactivate_event(event_id=wire_event_id),
                    success_message='Event deactivated successfully!',
                    refresh=LedgerCommand.DEACTIVATE_EVENT,
                    event_id=wire_event_id,
                )
        except LocalValidationError as e:
            return self._reject_locally(e)
