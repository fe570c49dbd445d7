from typing import Tuple

import attrs


@attrs.define(frozen=True)
class UserProfile:
    user_principal: str
    purchases: Tuple[int, ...] = attrs.field(converter=tuple)
    tickets: Tuple[int, ...] = attrs.field(converter=tuple)
    reputation_score: int = 0
    is_verified: bool = False
