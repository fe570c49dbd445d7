"""
Result Translator

Turns ledger answers into ``CommandOutcome``s while keeping the three failure categories
apart:

- ``Err(kind)``: the backend rejected the request deterministically (REJECTED)
- ``TransportError``: the call may or may not have been applied (TRANSPORT_FAILED)
- ``LocalValidationError``: nothing was sent (INVALID_INPUT)
"""

from typing import Callable, TypeVar, Union

from ticketing_client.platform.exception.exceptions import LocalValidationError, TransportError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.dto.command_outcome import (
    CommandOutcome,
    OutcomeStatus,
)
from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind
from ticketing_client.service.ticketing.domain.value_object.result import Err, Ok, Result


T = TypeVar('T')

SuccessMessage = Union[str, Callable[[T], str]]


class ResultTranslator:
    @staticmethod
    def describe(kind: TicketingErrorKind) -> str:
        return kind.display_name

    def to_outcome(
        self, result: Result[T], *, action: str, success_message: SuccessMessage
    ) -> CommandOutcome:
        if isinstance(result, Ok):
            message = (
                success_message(result.value) if callable(success_message) else success_message
            )
            return CommandOutcome.success(message, value=result.value)

        if isinstance(result, Err):
            return CommandOutcome(
                status=OutcomeStatus.REJECTED,
                message=f'{action.capitalize()} failed: {self.describe(result.kind)}',
                error_kind=result.kind,
            )

        raise TypeError(f'Expected Ok or Err, got {type(result).__name__}')

    def from_transport_error(self, error: TransportError, *, action: str) -> CommandOutcome:
        Logger.base.error(f'❌ [{action.upper()}] {type(error).__name__}: {error.detail}')
        return CommandOutcome(
            status=OutcomeStatus.TRANSPORT_FAILED,
            message=f'Could not complete {action}',
            detail=f'{type(error).__name__}: {error.detail}',
        )

    def from_validation_error(self, error: LocalValidationError) -> CommandOutcome:
        return CommandOutcome.invalid_input(error.message)
