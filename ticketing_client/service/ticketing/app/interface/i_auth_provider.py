from abc import ABC, abstractmethod
from typing import Optional

from ticketing_client.service.ticketing.domain.value_object.identity import Identity


class IAuthProvider(ABC):
    """External authentication provider issuing the caller's identity"""

    @abstractmethod
    async def create(self) -> None:
        """Prepare the session handle (load any stored credential)."""
        pass

    @abstractmethod
    async def is_authenticated(self) -> bool:
        pass

    @abstractmethod
    async def login(self, *, identity_provider_url: str) -> bool:
        """Run the interactive flow. False when the user cancelled."""
        pass

    @abstractmethod
    async def logout(self) -> None:
        pass

    @abstractmethod
    def get_identity(self) -> Optional[Identity]:
        pass
