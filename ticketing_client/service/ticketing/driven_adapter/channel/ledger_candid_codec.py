"""
Ledger canister interface

Candid types of the ledger's records plus the signature of every method the client calls,
and strict decoding of the named values ``candid.decode_as`` yields into domain types.

Named values: records are dicts keyed by field name, principals are their textual form,
variants are single-key dicts (``{"Ok": ...}``, ``{"Err": {"SaleEnded": null}}``) and
tuples are lists.

Anything that does not match is a ``SerializationError``: the call's effect is unknown.
"""

from typing import Any, Callable, Dict, List, Mapping, Sequence, TypeVar

import attrs

from ticketing_client.platform.exception.exceptions import SerializationError
from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.entity.purchase_entity import Purchase
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket
from ticketing_client.service.ticketing.domain.entity.user_profile_entity import UserProfile
from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind
from ticketing_client.service.ticketing.domain.value_object.result import Err, Ok, Result
from ticketing_client.service.ticketing.driven_adapter.channel import candid


T = TypeVar('T')


# ---- interface ----

EVENT = candid.Record(
    {
        'id': candid.Nat64,
        'name': candid.Text,
        'description': candid.Text,
        'venue': candid.Text,
        'date': candid.Nat64,
        'total_tickets': candid.Nat32,
        'available_tickets': candid.Nat32,
        'price_icp': candid.Nat64,
        'organizer': candid.Principal,
        'max_tickets_per_user': candid.Nat32,
        'sale_start_time': candid.Nat64,
        'sale_end_time': candid.Nat64,
        'is_active': candid.Bool,
    }
)

TICKET = candid.Record(
    {
        'id': candid.Nat64,
        'event_id': candid.Nat64,
        'owner': candid.Principal,
        'seat_number': candid.Text,
        'purchase_time': candid.Nat64,
        'is_used': candid.Bool,
        'verification_code': candid.Text,
    }
)

PURCHASE = candid.Record(
    {
        'id': candid.Nat64,
        'event_id': candid.Nat64,
        'buyer': candid.Principal,
        'quantity': candid.Nat32,
        'total_amount': candid.Nat64,
        'purchase_time': candid.Nat64,
        'ticket_ids': candid.Vec(candid.Nat64),
    }
)

USER_PROFILE = candid.Record(
    {
        'user_principal': candid.Principal,
        'purchases': candid.Vec(candid.Nat64),
        'tickets': candid.Vec(candid.Nat64),
        'reputation_score': candid.Nat32,
        'is_verified': candid.Bool,
    }
)

TICKETING_ERROR = candid.Variant({kind.value: candid.Null for kind in TicketingErrorKind})

EVENT_STATS = candid.TupleOf([candid.Nat32, candid.Nat32, candid.Nat64])


def result_of(ok: candid.CandidType) -> candid.Variant:
    return candid.Variant({'Ok': ok, 'Err': TICKETING_ERROR})


@attrs.define(frozen=True)
class MethodSignature:
    arg_types: Sequence[candid.CandidType] = attrs.field(converter=tuple)
    return_type: candid.CandidType
    is_update: bool = False


LEDGER_METHODS: Dict[str, MethodSignature] = {
    'get_all_events': MethodSignature([], candid.Vec(EVENT)),
    'get_active_events': MethodSignature([], candid.Vec(EVENT)),
    'get_event': MethodSignature([candid.Nat64], result_of(EVENT)),
    'create_event': MethodSignature(
        [
            candid.Text,
            candid.Text,
            candid.Text,
            candid.Nat64,
            candid.Nat32,
            candid.Nat64,
            candid.Nat32,
            candid.Nat64,
            candid.Nat64,
        ],
        result_of(candid.Nat64),
        is_update=True,
    ),
    'purchase_tickets': MethodSignature(
        [candid.Nat64, candid.Nat32], result_of(PURCHASE), is_update=True
    ),
    'get_user_tickets': MethodSignature([candid.Principal], candid.Vec(TICKET)),
    'get_user_purchases': MethodSignature([candid.Principal], candid.Vec(PURCHASE)),
    'get_user_profile': MethodSignature([candid.Principal], USER_PROFILE),
    'verify_ticket': MethodSignature([candid.Nat64, candid.Text], result_of(TICKET)),
    'use_ticket': MethodSignature(
        [candid.Nat64, candid.Text], result_of(candid.Null), is_update=True
    ),
    'get_event_statistics': MethodSignature([candid.Nat64], result_of(EVENT_STATS)),
    'deactivate_event': MethodSignature([candid.Nat64], result_of(candid.Null), is_update=True),
}


def encode_args(method: str, args: List[Any]) -> bytes:
    return candid.encode(LEDGER_METHODS[method].arg_types, args)


def decode_reply(method: str, reply: bytes) -> Any:
    (value,) = candid.decode_as([LEDGER_METHODS[method].return_type], reply)
    return value


# ---- domain decoding ----

def _record(raw: Any, type_name: str) -> Mapping[str, Any]:
    if not isinstance(raw, dict):
        raise SerializationError(f'Malformed {type_name}', detail=f'expected object, got {raw!r}')
    return raw


def _nat(record: Mapping[str, Any], name: str) -> int:
    value = record.get(name)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SerializationError(f'Malformed field {name}', detail=f'expected nat, got {value!r}')
    return value


def _text(record: Mapping[str, Any], name: str) -> str:
    value = record.get(name)
    if not isinstance(value, str):
        raise SerializationError(f'Malformed field {name}', detail=f'expected text, got {value!r}')
    return value


def _bool(record: Mapping[str, Any], name: str) -> bool:
    value = record.get(name)
    if not isinstance(value, bool):
        raise SerializationError(f'Malformed field {name}', detail=f'expected bool, got {value!r}')
    return value


def _nat_vec(record: Mapping[str, Any], name: str) -> List[int]:
    values = record.get(name)
    if not isinstance(values, list):
        raise SerializationError(f'Malformed field {name}', detail=f'expected vec, got {values!r}')
    return [_nat({name: value}, name) for value in values]


def decode_event(raw: Any) -> Event:
    record = _record(raw, 'Event')
    return Event(
        id=_nat(record, 'id'),
        name=_text(record, 'name'),
        description=_text(record, 'description'),
        venue=_text(record, 'venue'),
        date=_nat(record, 'date'),
        total_tickets=_nat(record, 'total_tickets'),
        available_tickets=_nat(record, 'available_tickets'),
        price=_nat(record, 'price_icp'),
        organizer=_text(record, 'organizer'),
        max_tickets_per_user=_nat(record, 'max_tickets_per_user'),
        sale_start_time=_nat(record, 'sale_start_time'),
        sale_end_time=_nat(record, 'sale_end_time'),
        is_active=_bool(record, 'is_active'),
    )


def decode_ticket(raw: Any) -> Ticket:
    record = _record(raw, 'Ticket')
    return Ticket(
        id=_nat(record, 'id'),
        event_id=_nat(record, 'event_id'),
        owner=_text(record, 'owner'),
        seat_number=_text(record, 'seat_number'),
        purchase_time=_nat(record, 'purchase_time'),
        is_used=_bool(record, 'is_used'),
        verification_code=_text(record, 'verification_code'),
    )


def decode_purchase(raw: Any) -> Purchase:
    record = _record(raw, 'Purchase')
    return Purchase(
        id=_nat(record, 'id'),
        event_id=_nat(record, 'event_id'),
        buyer=_text(record, 'buyer'),
        quantity=_nat(record, 'quantity'),
        total_amount=_nat(record, 'total_amount'),
        purchase_time=_nat(record, 'purchase_time'),
        ticket_ids=_nat_vec(record, 'ticket_ids'),
    )


def decode_user_profile(raw: Any) -> UserProfile:
    record = _record(raw, 'UserProfile')
    return UserProfile(
        user_principal=_text(record, 'user_principal'),
        purchases=_nat_vec(record, 'purchases'),
        tickets=_nat_vec(record, 'tickets'),
        reputation_score=_nat(record, 'reputation_score'),
        is_verified=_bool(record, 'is_verified'),
    )


def decode_event_stats(raw: Any) -> EventStats:
    if not isinstance(raw, list) or len(raw) != 3:
        raise SerializationError('Malformed statistics', detail=f'expected 3-tuple, got {raw!r}')
    sold, available, revenue = (_nat({'value': value}, 'value') for value in raw)
    return EventStats(sold=sold, available=available, revenue=revenue)


def decode_event_id(raw: Any) -> int:
    return _nat({'event_id': raw}, 'event_id')


def decode_unit(raw: Any) -> None:
    if raw is not None:
        raise SerializationError('Malformed unit reply', detail=f'expected null, got {raw!r}')
    return None


def decode_vec(raw: Any, decode_item: Callable[[Any], T]) -> List[T]:
    if not isinstance(raw, list):
        raise SerializationError('Malformed vec reply', detail=f'expected array, got {raw!r}')
    return [decode_item(item) for item in raw]


def decode_error_kind(raw: Any) -> TicketingErrorKind:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise SerializationError('Malformed error variant', detail=repr(raw))
    (tag,) = raw
    try:
        return TicketingErrorKind.from_tag(tag)
    except ValueError:
        raise SerializationError('Unknown error kind', detail=tag) from None


def decode_result(raw: Any, decode_ok: Callable[[Any], T]) -> Result[T]:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise SerializationError('Malformed result variant', detail=repr(raw))
    if 'Ok' in raw:
        return Ok(decode_ok(raw['Ok']))
    if 'Err' in raw:
        return Err(decode_error_kind(raw['Err']))
    raise SerializationError('Malformed result variant', detail=repr(raw))
