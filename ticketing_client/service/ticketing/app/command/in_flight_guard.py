from contextlib import contextmanager
from typing import Iterator

from ticketing_client.platform.exception.exceptions import LocalValidationError


class InFlightGuard:
    """
    Per-orchestrator busy flag.

    The UI reads ``busy`` to disable the triggering control; ``hold`` refuses a second
    submission that bypassed the control. Owned by the event loop, so a plain bool suffices.
    """

    def __init__(self, action: str) -> None:
        self.action = action
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def hold(self) -> Iterator[None]:
        if self._busy:
            raise LocalValidationError(f'{self.action.capitalize()} is already in progress')
        self._busy = True
        try:
            yield
        finally:
            self._busy = False
