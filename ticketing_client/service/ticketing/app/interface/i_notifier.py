from abc import ABC, abstractmethod

from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome


class INotifier(ABC):
    @abstractmethod
    def notify(self, outcome: CommandOutcome) -> None:
        pass
