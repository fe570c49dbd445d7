from typing import Optional


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class LocalValidationError(CustomBaseError):
    """Input rejected before any remote call was issued."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)


class AuthProviderError(CustomBaseError):
    pass


class TransportError(CustomBaseError):
    """The remote call may or may not have been applied."""

    def __init__(self, message: str, *, detail: str = '') -> None:
        self.detail = detail or message
        super().__init__(message)


class NetworkError(TransportError):
    pass


class SerializationError(TransportError):
    pass


class ProviderRejectionError(TransportError):
    def __init__(self, message: str, *, reject_code: Optional[int] = None, detail: str = '') -> None:
        self.reject_code = reject_code
        super().__init__(message, detail=detail)


class ChannelConstructionError(TransportError):
    pass
