from typing import Tuple

import attrs


@attrs.define(frozen=True)
class Purchase:
    id: int
    event_id: int
    buyer: str
    quantity: int
    total_amount: int
    purchase_time: int
    ticket_ids: Tuple[int, ...] = attrs.field(converter=tuple)
