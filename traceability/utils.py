from collections import namedtuple

from django.conf import settings

DisplayRow = namedtuple(
    'DisplayRow',
    ['stage', 'action', 'actor_name', 'actor_role', 'timestamp', 'location', 'truncated_hash'],
)


def truncate_hash(value, length=None):
    """Fixed-length prefix for display only; stored hashes are never shortened."""
    length = length or settings.TRACEABILITY_HASH_DISPLAY_LENGTH
    return (value or '')[:length]


def display_row(entry, length=None):
    return DisplayRow(
        stage=entry.stage,
        action=entry.action,
        actor_name=entry.actor_name,
        actor_role=entry.actor_role,
        timestamp=entry.timestamp,
        location=entry.location,
        truncated_hash=truncate_hash(entry.hash, length),
    )


def result_payload(result):
    """JSON-ready dictionary for any lookup outcome."""
    payload = {'status': result.status, 'batch_id': result.batch_id}

    if result.status in ('invalid', 'failed'):
        payload['error'] = result.reason
    elif result.status == 'found':
        payload['verified'] = result.verified
        payload['broken_links'] = list(result.broken_links)
        payload['count'] = len(result.records)
        payload['records'] = []
        for index, entry in enumerate(result.records):
            row = display_row(entry)._asdict()
            row['location'] = entry.location._asdict() if entry.location else None
            row['id'] = entry.id
            row['hash'] = entry.hash
            row['previous_hash'] = entry.previous_hash
            row['link_ok'] = index not in result.broken_links
            payload['records'].append(row)

    return payload
