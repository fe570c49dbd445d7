import attrs


@attrs.define(frozen=True)
class Ticket:
    id: int
    event_id: int
    owner: str
    seat_number: str
    purchase_time: int
    is_used: bool
    verification_code: str = attrs.field(repr=False)
