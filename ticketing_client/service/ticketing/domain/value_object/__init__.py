"""Ticketing Domain Value Objects"""

from ticketing_client.service.ticketing.domain.value_object.collection_snapshot import (
    EMPTY_SNAPSHOT,
    CollectionSnapshot,
)
from ticketing_client.service.ticketing.domain.value_object.identity import Identity
from ticketing_client.service.ticketing.domain.value_object.result import Err, Ok, Result

__all__ = ['EMPTY_SNAPSHOT', 'CollectionSnapshot', 'Err', 'Identity', 'Ok', 'Result']
