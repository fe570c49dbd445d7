from enum import Enum


class SessionStatus(Enum):
    """Local session lifecycle: ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED -> ANONYMOUS"""

    ANONYMOUS = 'anonymous'
    AUTHENTICATING = 'authenticating'
    AUTHENTICATED = 'authenticated'
