from django.db import DatabaseError

from .chain import ChainEntry
from .exceptions import RecordStoreError
from .models import TraceabilityRecord


def entry_from_record(record):
    actor = record.actor
    return ChainEntry(
        id=record.pk,
        batch_id=record.batch_id,
        stage=record.stage,
        actor_id=actor.pk,
        actor_name=actor.full_name,
        actor_role=actor.role,
        timestamp=record.timestamp,
        action=record.action,
        hash=record.hash,
        previous_hash=record.previous_hash or None,
        location=record.location,
        metadata=record.metadata or {},
    )


class RecordStore:
    """Read side of the traceability table."""

    def fetch_chain(self, batch_id):
        """
        All records of ``batch_id`` joined with the actor's profile, ordered by
        timestamp ascending (ties by insertion order). Raises RecordStoreError.
        """
        raise NotImplementedError


class DjangoRecordStore(RecordStore):

    def fetch_chain(self, batch_id):
        try:
            records = list(
                TraceabilityRecord.objects.filter(batch_id=batch_id)
                .select_related('actor')
                .order_by('timestamp', 'id')
            )
        except DatabaseError as e:
            raise RecordStoreError(f"Could not read records for batch {batch_id}: {e}") from e
        return [entry_from_record(record) for record in records]
