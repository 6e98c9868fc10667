import logging
from dataclasses import dataclass, field
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import F, PositiveIntegerField, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from dashboard.roles import can_record_stage

from .chain import broken_links, compute_hash, make_location
from .exceptions import ChainForkError, ChainOrderError, RecordStoreError, StageNotPermitted
from .models import STAGE_CHOICES, LookupSlot, TraceabilityRecord
from .stores import DjangoRecordStore

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# 1. LOOKUP RESULTS
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidInput:
    batch_id: str
    reason: str = 'Batch ID is required'
    status = 'invalid'


@dataclass(frozen=True)
class NotFound:
    batch_id: str
    status = 'not_found'


@dataclass(frozen=True)
class Failed:
    batch_id: str
    reason: str
    cause: Optional[BaseException] = field(default=None, compare=False)
    status = 'failed'


@dataclass(frozen=True)
class Found:
    batch_id: str
    records: tuple
    verified: bool
    broken_links: tuple = ()
    status = 'found'

    @property
    def integrity_violation(self):
        return not self.verified


# ----------------------------------------------------------------------
# 2. SERVICE
# ----------------------------------------------------------------------

class TraceabilityService:
    """
    Reads and appends batch chains. Lookups never raise for their outcome:
    every path returns one of InvalidInput, NotFound, Failed or Found.
    """

    def __init__(self, store=None):
        self.store = store or DjangoRecordStore()

    def lookup(self, batch_id):
        key = (batch_id or '').strip()
        if not key:
            return InvalidInput(batch_id=batch_id or '')

        try:
            entries = self.store.fetch_chain(key)
        except RecordStoreError as e:
            logger.exception("Lookup of batch %s failed", key)
            return Failed(batch_id=key, reason=str(e), cause=e)

        if not entries:
            return NotFound(batch_id=key)

        # Stable: equal timestamps keep retrieval order.
        ordered = tuple(sorted(entries, key=lambda entry: entry.timestamp))
        broken = tuple(broken_links(ordered))
        if broken:
            logger.warning("Batch %s has %d broken link(s) at %s", key, len(broken), list(broken))
        return Found(batch_id=key, records=ordered, verified=not broken, broken_links=broken)

    def record_stage(self, actor, batch_id, stage, action, location=None, metadata=None,
                     timestamp=None, crop=None, inventory=None):
        """
        Append the next record of ``batch_id``, linked to the batch's last record.
        ``actor`` is the caller's profile.
        """
        batch_id = (batch_id or '').strip()
        if not batch_id:
            raise ValueError("Batch ID is required")
        if stage not in dict(STAGE_CHOICES):
            raise ValueError(f"Unknown stage '{stage}'")
        if not can_record_stage(actor.role, stage):
            raise StageNotPermitted(f"Role '{actor.role}' cannot record stage '{stage}'")

        timestamp = timestamp or timezone.now()
        location = make_location(*location) if location else None
        metadata = metadata or {}

        with transaction.atomic():
            # 1. Last block of the batch
            last = self.last_record(batch_id)
            if last and timestamp <= last.timestamp:
                raise ChainOrderError(
                    f"Record at {timestamp.isoformat()} is not after the last record of {batch_id} "
                    f"({last.timestamp.isoformat()})"
                )
            previous_hash = last.hash if last else None

            # 2. Hash over the immutable fields
            record_hash = compute_hash(
                batch_id, stage, actor.pk, timestamp, action,
                location=location, metadata=metadata, previous_hash=previous_hash,
            )

            # 3. Persist; the unique constraints reject a second successor of ``last``
            try:
                with transaction.atomic():
                    record = TraceabilityRecord.objects.create(
                        batch_id=batch_id,
                        crop=crop,
                        inventory=inventory,
                        stage=stage,
                        actor=actor,
                        timestamp=timestamp,
                        action=action,
                        district=location.district if location else '',
                        state=location.state if location else '',
                        hash=record_hash,
                        previous_hash=previous_hash,
                        metadata=metadata,
                    )
            except IntegrityError as e:
                logger.warning("Concurrent append to batch %s after %s rejected", batch_id, previous_hash)
                raise ChainForkError(
                    f"Batch {batch_id} was extended by another record in the meantime; retry the append"
                ) from e

        logger.info("Recorded %s stage for batch %s: %s", stage, batch_id, record_hash)
        return record

    def last_record(self, batch_id):
        """Most recent record of ``batch_id`` (locked until commit), or None."""
        return (
            TraceabilityRecord.objects.select_for_update()
            .filter(batch_id=batch_id)
            .order_by('-timestamp', '-id')
            .first()
        )

    def batches_for(self, actor):
        """Distinct batch ids the actor has recorded, most recent first."""
        rows = (
            TraceabilityRecord.objects.filter(actor=actor)
            .order_by('-timestamp')
            .values_list('batch_id', flat=True)
        )
        return list(dict.fromkeys(rows))


# ----------------------------------------------------------------------
# 3. LAST-ISSUED-WINS SLOT
# ----------------------------------------------------------------------

class LatestLookup:
    """
    Keeps the outcome of the most recently *issued* lookup of one profile.

    Tickets are issued before the lookup runs. A result is applied only if its
    ticket is newer than the applied one; the comparison and the write happen
    in a single conditional UPDATE on the profile's LookupSlot row, so results
    of overlapping requests arriving late are discarded. A Failed result
    advances the ticket but keeps the previously applied outcome.
    """

    def __init__(self, profile):
        self.profile = profile

    def _slot(self):
        slot, _ = LookupSlot.objects.get_or_create(profile=self.profile)
        return slot

    def issue(self):
        self._slot()
        with transaction.atomic():
            slot = LookupSlot.objects.select_for_update().get(profile=self.profile)
            slot.issued = max(slot.issued, slot.applied) + 1
            slot.save(update_fields=['issued', 'updated_at'])
        return slot.issued

    def offer(self, ticket, result):
        self._slot()
        if isinstance(result, Failed):
            changes = {'last_error': {'batch_id': result.batch_id, 'reason': result.reason}}
        else:
            changes = {
                'last_error': None,
                'current': {
                    'batch_id': result.batch_id,
                    'status': result.status,
                    'verified': getattr(result, 'verified', None),
                },
            }

        updated = LookupSlot.objects.filter(profile=self.profile, applied__lt=ticket).update(
            applied=ticket,
            issued=Greatest(F('issued'), Value(ticket), output_field=PositiveIntegerField()),
            updated_at=timezone.now(),
            **changes
        )
        if not updated:
            logger.debug("Discarding stale lookup %s for %s", ticket, result.batch_id)
            return False
        return True

    def snapshot(self):
        slot = self._slot()
        return {'seq': slot.applied, 'current': slot.current, 'last_error': slot.last_error}

    @property
    def current(self):
        return self._slot().current

    @property
    def last_error(self):
        return self._slot().last_error


# Singleton instance
traceability_service = TraceabilityService()
