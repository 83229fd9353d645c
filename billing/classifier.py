# billing/classifier.py
from typing import Iterable, List, NamedTuple

from .models import Disposition, TransactionEvent


class ClassifiedBatch(NamedTuple):
    purchased: List[TransactionEvent]
    restored: List[TransactionEvent]
    failed: List[TransactionEvent]


def classify_transactions(events: Iterable[TransactionEvent]) -> ClassifiedBatch:
    """
    Split one store callback's transactions by terminal disposition.
    Anything still purchasing/deferred is dropped here; the store sends it again
    once it settles, so it must not be acknowledged.
    """
    batch = ClassifiedBatch([], [], [])
    buckets = {
        Disposition.PURCHASED: batch.purchased,
        Disposition.RESTORED: batch.restored,
        Disposition.FAILED: batch.failed,
    }
    for event in events:
        bucket = buckets.get(event.disposition)
        if bucket is not None:
            bucket.append(event)
    return batch
