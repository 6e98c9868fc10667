"""
Hash-chain primitives for traceability records.

A record's hash is SHA-256 over a canonical JSON document of its immutable
fields plus the hash of its predecessor in the same batch. Verification only
looks at the links (``previous_hash`` against the predecessor's ``hash``);
``content_mismatches`` recomputes hashes for deeper audits.
"""
import datetime
import hashlib
import json
from dataclasses import dataclass, field
from typing import Optional

from django.utils import timezone

from dashboard.models import Location


@dataclass(frozen=True)
class ChainEntry:
    """Immutable view of one stored record, with the actor's profile joined in."""
    id: int
    batch_id: str
    stage: str
    actor_id: int
    actor_name: str
    actor_role: str
    timestamp: datetime.datetime
    action: str
    hash: str
    previous_hash: Optional[str] = None
    location: Optional[Location] = None
    metadata: dict = field(default_factory=dict, compare=False)


def make_location(district='', state=''):
    if not district and not state:
        return None
    return Location(district or '', state or '')


def canonical_timestamp(value):
    if timezone.is_naive(value):
        value = timezone.make_aware(value, datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc).isoformat()


def compute_hash(batch_id, stage, actor_id, timestamp, action, location=None, metadata=None, previous_hash=None):
    """Deterministic SHA-256 hex digest of a record's immutable fields."""
    document = {
        'batch_id': batch_id,
        'stage': stage,
        'actor_id': str(actor_id),
        'timestamp': canonical_timestamp(timestamp),
        'action': action,
        'location': location._asdict() if location else None,
        'metadata': metadata or {},
        'previous_hash': previous_hash or None,
    }
    encoded = json.dumps(document, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.sha256(encoded.encode('utf-8')).hexdigest()


def entry_hash(entry):
    return compute_hash(
        entry.batch_id, entry.stage, entry.actor_id, entry.timestamp, entry.action,
        location=entry.location, metadata=entry.metadata, previous_hash=entry.previous_hash,
    )


def broken_links(entries):
    """
    Positions whose ``previous_hash`` does not point at the predecessor.
    The first entry must have no ``previous_hash``.
    """
    broken = []
    expected = None
    for index, entry in enumerate(entries):
        if (entry.previous_hash or None) != expected:
            broken.append(index)
        expected = entry.hash
    return broken


def verify_chain(entries):
    # Empty chains are vacuously valid.
    return not broken_links(entries)


def content_mismatches(entries):
    """Ids of entries whose stored hash differs from the recomputed one."""
    return [entry.id for entry in entries if entry_hash(entry) != entry.hash]
