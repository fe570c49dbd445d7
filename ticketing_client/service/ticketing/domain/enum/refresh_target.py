from enum import StrEnum


class RefreshTarget(StrEnum):
    """Independently refreshable cached collections of a session"""

    ACTIVE_EVENTS = 'active_events'
    ALL_EVENTS = 'all_events'
    TICKETS = 'tickets'
    PURCHASES = 'purchases'
    PROFILE = 'profile'


ALL_REFRESH_TARGETS = frozenset(RefreshTarget)
