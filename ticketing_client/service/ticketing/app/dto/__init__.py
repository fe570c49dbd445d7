"""Application layer DTOs"""

from ticketing_client.service.ticketing.app.dto.command_outcome import (
    CommandOutcome,
    OutcomeStatus,
)

__all__ = ['CommandOutcome', 'OutcomeStatus']
