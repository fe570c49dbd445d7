import attrs


@attrs.define(frozen=True)
class EventStats:
    """Backend-computed sales figures for one event"""

    sold: int
    available: int
    revenue: int
