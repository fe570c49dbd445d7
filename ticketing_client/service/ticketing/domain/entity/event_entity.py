import attrs


@attrs.define(frozen=True)
class Event:
    id: int
    name: str
    description: str
    venue: str
    date: int  # ns since epoch
    total_tickets: int
    available_tickets: int
    price: int  # minor units per ticket
    organizer: str
    max_tickets_per_user: int
    sale_start_time: int
    sale_end_time: int
    is_active: bool

    @property
    def sold_tickets(self) -> int:
        return self.total_tickets - self.available_tickets

    @property
    def is_sold_out(self) -> bool:
        return self.available_tickets == 0

    def is_sale_open(self, now_ns: int) -> bool:
        return self.is_active and self.sale_start_time <= now_ns <= self.sale_end_time
