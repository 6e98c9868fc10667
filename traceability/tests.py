"""
Tests for the traceability app.
Covers: hash chain primitives, lookup outcomes, appends, the last-issued-wins
slot, the JSON views and the verify_chain command.
"""
import datetime
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings

from dashboard.factories import TestDataFactory
from dashboard.models import Location

from .chain import ChainEntry, broken_links, compute_hash, content_mismatches, verify_chain
from .exceptions import (
    ChainForkError, ChainOrderError, ImmutableRecordError, RecordStoreError, StageNotPermitted,
)
from .models import LookupSlot, TraceabilityRecord
from .services import (
    Failed, Found, InvalidInput, LatestLookup, NotFound, TraceabilityService, traceability_service,
)
from .stores import DjangoRecordStore, RecordStore
from .utils import display_row, result_payload, truncate_hash

BATCH = 'BATCH-SOY-2024-001'
T0 = datetime.datetime(2024, 3, 1, 8, 0, tzinfo=datetime.timezone.utc)


def make_entry(pk, hash, previous_hash=None, minutes=0, stage='farm', batch_id=BATCH, **extra):
    return ChainEntry(
        id=pk,
        batch_id=batch_id,
        stage=stage,
        actor_id=extra.pop('actor_id', 1),
        actor_name=extra.pop('actor_name', 'Ramesh Patel'),
        actor_role=extra.pop('actor_role', 'farmer'),
        timestamp=T0 + datetime.timedelta(minutes=minutes),
        action=extra.pop('action', f'{stage} event'),
        hash=hash,
        previous_hash=previous_hash,
        **extra
    )


def soybean_chain(storage_previous='h2'):
    return [
        make_entry(1, 'h1', None, 0, 'farm', actor_role='farmer'),
        make_entry(2, 'h2', 'h1', 60, 'procurement', actor_role='fpo'),
        make_entry(3, 'h3', storage_previous, 120, 'storage', actor_role='fpo'),
    ]


class FakeStore(RecordStore):
    """In-memory store that records every call and can be told to fail."""

    def __init__(self, entries=(), error=None):
        self.entries = list(entries)
        self.error = error
        self.calls = []

    def fetch_chain(self, batch_id):
        self.calls.append(batch_id)
        if self.error:
            raise self.error
        return [entry for entry in self.entries if entry.batch_id == batch_id]


class ChainTests(SimpleTestCase):
    """Hashing and link verification"""

    def test_intact_chain_verifies(self):
        self.assertTrue(verify_chain(soybean_chain()))
        self.assertEqual(broken_links(soybean_chain()), [])

    def test_corrupted_link_is_reported(self):
        entries = soybean_chain(storage_previous='deadbeef')
        self.assertFalse(verify_chain(entries))
        self.assertEqual(broken_links(entries), [2])

    def test_first_entry_must_not_have_previous_hash(self):
        entries = [make_entry(1, 'h1', 'h0')]
        self.assertEqual(broken_links(entries), [0])

    def test_empty_chain_is_valid(self):
        self.assertTrue(verify_chain([]))

    def test_compute_hash_is_deterministic(self):
        args = (BATCH, 'farm', 7, T0, 'Harvested 2t')
        first = compute_hash(*args, location=Location('Indore', 'MP'), metadata={'grade': 'A'})
        second = compute_hash(*args, location=Location('Indore', 'MP'), metadata={'grade': 'A'})
        self.assertEqual(first, second)
        self.assertEqual(len(first), 64)

    def test_compute_hash_uses_the_instant_not_the_zone(self):
        ist = datetime.timezone(datetime.timedelta(hours=5, minutes=30))
        naive_utc = datetime.datetime(2024, 3, 1, 8, 0)
        self.assertEqual(
            compute_hash(BATCH, 'farm', 7, T0, 'a'),
            compute_hash(BATCH, 'farm', 7, T0.astimezone(ist), 'a'),
        )
        self.assertEqual(
            compute_hash(BATCH, 'farm', 7, T0, 'a'),
            compute_hash(BATCH, 'farm', 7, naive_utc, 'a'),
        )

    def test_compute_hash_changes_with_any_field(self):
        base = compute_hash(BATCH, 'farm', 7, T0, 'a', previous_hash='h1')
        self.assertNotEqual(base, compute_hash(BATCH, 'farm', 7, T0, 'a', previous_hash='h2'))
        self.assertNotEqual(base, compute_hash(BATCH, 'farm', 8, T0, 'a', previous_hash='h1'))
        self.assertNotEqual(base, compute_hash(BATCH, 'retail', 7, T0, 'a', previous_hash='h1'))
        self.assertNotEqual(base, compute_hash(BATCH, 'farm', 7, T0, 'b', previous_hash='h1'))

    def test_content_mismatches(self):
        good_hash = compute_hash(BATCH, 'farm', 1, T0, 'farm event')
        entries = [make_entry(1, good_hash), make_entry(2, 'tampered', good_hash, 5)]
        self.assertEqual(content_mismatches(entries), [2])


class LookupTests(SimpleTestCase):
    """TraceabilityService.lookup outcomes against a fake store"""

    def test_blank_batch_id_is_rejected_without_reading(self):
        store = FakeStore(soybean_chain())
        service = TraceabilityService(store=store)

        for value in ('', '   ', None):
            result = service.lookup(value)
            self.assertIsInstance(result, InvalidInput)
            self.assertEqual(result.status, 'invalid')
        self.assertEqual(store.calls, [])

    def test_found_and_verified(self):
        store = FakeStore(soybean_chain())
        result = TraceabilityService(store=store).lookup(BATCH)

        self.assertIsInstance(result, Found)
        self.assertTrue(result.verified)
        self.assertFalse(result.integrity_violation)
        self.assertEqual([e.hash for e in result.records], ['h1', 'h2', 'h3'])
        self.assertEqual(store.calls, [BATCH])

    def test_surrounding_whitespace_is_ignored(self):
        store = FakeStore(soybean_chain())
        result = TraceabilityService(store=store).lookup(f'  {BATCH}\n')
        self.assertEqual(result.status, 'found')
        self.assertEqual(store.calls, [BATCH])

    def test_corrupted_chain_still_returns_every_record(self):
        result = TraceabilityService(store=FakeStore(soybean_chain('deadbeef'))).lookup(BATCH)

        self.assertIsInstance(result, Found)
        self.assertFalse(result.verified)
        self.assertTrue(result.integrity_violation)
        self.assertEqual(len(result.records), 3)
        self.assertEqual(result.broken_links, (2,))

    def test_unknown_batch(self):
        result = TraceabilityService(store=FakeStore(soybean_chain())).lookup('BATCH-UNKNOWN-999')
        self.assertEqual(result, NotFound(batch_id='BATCH-UNKNOWN-999'))

    def test_store_failure(self):
        store = FakeStore(error=RecordStoreError('connection refused'))
        result = TraceabilityService(store=store).lookup(BATCH)

        self.assertIsInstance(result, Failed)
        self.assertEqual(result.status, 'failed')
        self.assertIn('connection refused', result.reason)

    def test_records_are_ordered_by_timestamp(self):
        shuffled = list(reversed(soybean_chain()))
        result = TraceabilityService(store=FakeStore(shuffled)).lookup(BATCH)
        self.assertEqual([e.stage for e in result.records], ['farm', 'procurement', 'storage'])
        self.assertTrue(result.verified)

    def test_equal_timestamps_keep_retrieval_order(self):
        entries = [
            make_entry(1, 'h1', None, 0),
            make_entry(2, 'h2', 'h1', 30, 'storage'),
            make_entry(3, 'h3', 'h2', 30, 'processing'),
        ]
        result = TraceabilityService(store=FakeStore(entries)).lookup(BATCH)
        self.assertEqual([e.id for e in result.records], [1, 2, 3])
        self.assertTrue(result.verified)

        # Retrieval order decides the tie, and the link check follows it
        swapped = [entries[0], entries[2], entries[1]]
        result = TraceabilityService(store=FakeStore(swapped)).lookup(BATCH)
        self.assertEqual([e.id for e in result.records], [1, 3, 2])
        self.assertFalse(result.verified)

    def test_lookup_is_idempotent(self):
        service = TraceabilityService(store=FakeStore(soybean_chain()))
        self.assertEqual(service.lookup(BATCH), service.lookup(BATCH))


class LatestLookupTests(TestCase):
    """Last-issued-wins slot"""

    def setUp(self):
        self.profile = TestDataFactory.create_profile(role='fpo')

    def found(self, batch_id, verified=True):
        return Found(batch_id=batch_id, records=(), verified=verified)

    def test_late_older_result_is_discarded(self):
        slot = LatestLookup(self.profile)
        first = slot.issue()
        second = slot.issue()

        self.assertTrue(slot.offer(second, self.found('B2')))
        self.assertFalse(slot.offer(first, NotFound(batch_id='B1')))
        self.assertEqual(slot.current, {'batch_id': 'B2', 'status': 'found', 'verified': True})

    def test_overlapping_requests_of_one_profile(self):
        # Each request builds its own slot object, as two concurrent views would
        older_request = LatestLookup(self.profile)
        newer_request = LatestLookup(self.profile)
        older_ticket = older_request.issue()
        newer_ticket = newer_request.issue()
        self.assertLess(older_ticket, newer_ticket)

        self.assertTrue(newer_request.offer(newer_ticket, self.found('NEW')))
        self.assertFalse(older_request.offer(older_ticket, NotFound(batch_id='OLD')))

        slot = LookupSlot.objects.get(profile=self.profile)
        self.assertEqual(slot.applied, newer_ticket)
        self.assertEqual(slot.current['batch_id'], 'NEW')

    def test_slots_are_per_profile(self):
        other = LatestLookup(TestDataFactory.create_profile(role='retailer'))
        LatestLookup(self.profile).offer(5, self.found('B1'))
        self.assertEqual(other.issue(), 1)
        self.assertTrue(other.offer(1, self.found('B2')))

    def test_in_order_results_replace_each_other(self):
        slot = LatestLookup(self.profile)
        self.assertTrue(slot.offer(slot.issue(), self.found('B1')))
        self.assertTrue(slot.offer(slot.issue(), NotFound(batch_id='B2')))
        self.assertEqual(slot.current['status'], 'not_found')
        self.assertIsNone(slot.current['verified'])

    def test_failure_keeps_previous_result(self):
        slot = LatestLookup(self.profile)
        slot.offer(slot.issue(), self.found('B1'))

        self.assertTrue(slot.offer(slot.issue(), Failed(batch_id='B2', reason='timeout')))
        self.assertEqual(slot.current['batch_id'], 'B1')
        self.assertEqual(slot.last_error, {'batch_id': 'B2', 'reason': 'timeout'})

        slot.offer(slot.issue(), self.found('B3', verified=False))
        self.assertIsNone(slot.last_error)
        self.assertEqual(slot.current['batch_id'], 'B3')

    def test_issue_continues_after_client_supplied_tickets(self):
        slot = LatestLookup(self.profile)
        slot.offer(10, self.found('B1'))
        self.assertEqual(slot.issue(), 11)
        self.assertEqual(slot.snapshot()['seq'], 10)


class DisplayTests(SimpleTestCase):
    """Display helpers"""

    def test_truncate_hash(self):
        full = 'a' * 64
        self.assertEqual(truncate_hash(full), 'a' * 16)
        self.assertEqual(truncate_hash(full, 8), 'a' * 8)
        self.assertEqual(truncate_hash(None), '')

    @override_settings(TRACEABILITY_HASH_DISPLAY_LENGTH=10)
    def test_display_row_uses_configured_length(self):
        entry = make_entry(1, 'f' * 64, location=Location('Indore', 'Madhya Pradesh'))
        row = display_row(entry)
        self.assertEqual(row.truncated_hash, 'f' * 10)
        self.assertEqual(row.location.district, 'Indore')
        self.assertEqual(row.actor_name, 'Ramesh Patel')

    def test_payload_marks_broken_links(self):
        result = TraceabilityService(store=FakeStore(soybean_chain('deadbeef'))).lookup(BATCH)
        payload = result_payload(result)
        self.assertFalse(payload['verified'])
        self.assertEqual(payload['count'], 3)
        self.assertEqual([r['link_ok'] for r in payload['records']], [True, True, False])

    def test_payload_for_errors(self):
        self.assertEqual(
            result_payload(InvalidInput(batch_id='')),
            {'status': 'invalid', 'batch_id': '', 'error': 'Batch ID is required'},
        )
        self.assertEqual(result_payload(NotFound(batch_id='X')), {'status': 'not_found', 'batch_id': 'X'})


class RecordStageTests(TestCase):
    """Appending records through the service and the Django store"""

    def setUp(self):
        self.farmer = TestDataFactory.create_profile(role='farmer', full_name='Ramesh Patel')
        self.fpo = TestDataFactory.create_profile(role='fpo', full_name='Malwa FPO')
        self.processor = TestDataFactory.create_profile(role='processor', full_name='Indore Oil Mills')
        self.service = TraceabilityService()

    def record_soybean_chain(self):
        return [
            self.service.record_stage(self.farmer, BATCH, 'farm', 'Harvested 2 tonnes',
                                      location=('Ujjain', 'Madhya Pradesh'), timestamp=T0),
            self.service.record_stage(self.fpo, BATCH, 'procurement', 'Procured at Ujjain mandi',
                                      metadata={'moisture': '9%'},
                                      timestamp=T0 + datetime.timedelta(hours=1)),
            self.service.record_stage(self.processor, BATCH, 'processing', 'Solvent extraction',
                                      timestamp=T0 + datetime.timedelta(hours=2)),
        ]

    def test_records_are_linked(self):
        first, second, third = self.record_soybean_chain()
        self.assertIsNone(first.previous_hash)
        self.assertEqual(second.previous_hash, first.hash)
        self.assertEqual(third.previous_hash, second.hash)
        self.assertEqual(first.location, Location('Ujjain', 'Madhya Pradesh'))

    def test_recorded_chain_verifies_and_hashes_match_contents(self):
        self.record_soybean_chain()
        result = self.service.lookup(BATCH)

        self.assertTrue(result.verified)
        self.assertEqual([e.actor_name for e in result.records],
                         ['Ramesh Patel', 'Malwa FPO', 'Indore Oil Mills'])
        self.assertEqual(content_mismatches(result.records), [])

    def test_batch_id_is_stripped(self):
        record = self.service.record_stage(self.farmer, f'  {BATCH} ', 'farm', 'Sown', timestamp=T0)
        self.assertEqual(record.batch_id, BATCH)

    def test_stage_authority_is_enforced(self):
        with self.assertRaises(StageNotPermitted):
            self.service.record_stage(self.farmer, BATCH, 'retail', 'Sold', timestamp=T0)
        self.assertFalse(TraceabilityRecord.objects.exists())

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            self.service.record_stage(self.farmer, '  ', 'farm', 'Sown')
        with self.assertRaises(ValueError):
            self.service.record_stage(self.farmer, BATCH, 'shipping', 'Sown')

    def test_records_must_move_forward_in_time(self):
        self.service.record_stage(self.farmer, BATCH, 'farm', 'Harvested', timestamp=T0)
        with self.assertRaises(ChainOrderError):
            self.service.record_stage(self.fpo, BATCH, 'procurement', 'Procured', timestamp=T0)
        with self.assertRaises(ChainOrderError):
            self.service.record_stage(self.fpo, BATCH, 'procurement', 'Procured',
                                      timestamp=T0 - datetime.timedelta(minutes=1))
        self.assertEqual(TraceabilityRecord.objects.filter(batch_id=BATCH).count(), 1)

    def test_second_successor_is_rejected(self):
        first, second, _ = self.record_soybean_chain()

        # A writer that read ``first`` as the last record before ``second`` was committed
        with mock.patch.object(self.service, 'last_record', return_value=first):
            with self.assertRaises(ChainForkError):
                self.service.record_stage(self.fpo, BATCH, 'storage', 'Moved to cold store',
                                          timestamp=T0 + datetime.timedelta(hours=3))

        self.assertEqual(TraceabilityRecord.objects.filter(batch_id=BATCH, previous_hash=first.hash).count(), 1)
        self.assertTrue(self.service.lookup(BATCH).verified)

    def test_second_genesis_is_rejected(self):
        self.service.record_stage(self.farmer, BATCH, 'farm', 'Harvested', timestamp=T0)

        with mock.patch.object(self.service, 'last_record', return_value=None):
            with self.assertRaises(ChainForkError):
                self.service.record_stage(self.farmer, BATCH, 'farm', 'Harvested again',
                                          timestamp=T0 + datetime.timedelta(minutes=5))

        self.assertEqual(TraceabilityRecord.objects.filter(batch_id=BATCH).count(), 1)

    def test_batches_are_independent(self):
        self.service.record_stage(self.farmer, 'BATCH-A', 'farm', 'Harvested', timestamp=T0)
        other = self.service.record_stage(self.farmer, 'BATCH-B', 'farm', 'Harvested', timestamp=T0)
        self.assertIsNone(other.previous_hash)

    def test_records_cannot_be_changed_or_deleted(self):
        record = self.service.record_stage(self.farmer, BATCH, 'farm', 'Harvested', timestamp=T0)

        record.action = 'Harvested 20 tonnes'
        with self.assertRaises(ImmutableRecordError):
            record.save()
        with self.assertRaises(ImmutableRecordError):
            record.delete()
        self.assertEqual(TraceabilityRecord.objects.get(pk=record.pk).action, 'Harvested')

    def test_batches_for_actor(self):
        self.service.record_stage(self.farmer, 'BATCH-A', 'farm', 'Harvested', timestamp=T0)
        self.service.record_stage(self.farmer, 'BATCH-B', 'farm', 'Harvested',
                                  timestamp=T0 + datetime.timedelta(hours=1))
        self.service.record_stage(self.farmer, 'BATCH-C', 'farm', 'Harvested',
                                  timestamp=T0 + datetime.timedelta(hours=2))
        self.service.record_stage(self.fpo, 'BATCH-A', 'procurement', 'Procured',
                                  timestamp=T0 + datetime.timedelta(hours=3))

        self.assertEqual(self.service.batches_for(self.farmer), ['BATCH-C', 'BATCH-B', 'BATCH-A'])
        self.assertEqual(self.service.batches_for(self.fpo), ['BATCH-A'])

    def test_django_store_orders_by_timestamp(self):
        self.record_soybean_chain()
        entries = DjangoRecordStore().fetch_chain(BATCH)
        self.assertEqual([e.stage for e in entries], ['farm', 'procurement', 'processing'])
        self.assertEqual(entries[1].metadata, {'moisture': '9%'})
        self.assertEqual(entries[0].actor_role, 'farmer')

    def test_django_store_wraps_database_errors(self):
        with mock.patch.object(TraceabilityRecord.objects, 'filter', side_effect=DatabaseError('boom')):
            with self.assertRaises(RecordStoreError):
                DjangoRecordStore().fetch_chain(BATCH)


class TraceabilityViewTests(TestCase):
    """JSON endpoints"""

    def setUp(self):
        self.farmer = TestDataFactory.create_profile(role='farmer')
        self.fpo = TestDataFactory.create_profile(role='fpo')
        self.policymaker = TestDataFactory.create_profile(role='policymaker')
        traceability_service.record_stage(self.farmer, BATCH, 'farm', 'Harvested', timestamp=T0)
        traceability_service.record_stage(self.fpo, BATCH, 'procurement', 'Procured',
                                          timestamp=T0 + datetime.timedelta(hours=1))

    def test_lookup_requires_login(self):
        response = self.client.get('/traceability/lookup/', {'batch_id': BATCH})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.client.post('/traceability/records/', {}).status_code, 401)

    def test_any_role_can_look_up_any_batch(self):
        self.client.force_login(self.policymaker.user)
        response = self.client.get('/traceability/lookup/', {'batch_id': BATCH})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['verified'])
        self.assertEqual(data['count'], 2)
        self.assertEqual(len(data['records'][0]['hash']), 64)
        self.assertEqual(len(data['records'][0]['truncated_hash']), 16)
        self.assertEqual(data['records'][1]['previous_hash'], data['records'][0]['hash'])
        self.assertFalse(data['stale'])

    def test_lookup_status_codes(self):
        self.client.force_login(self.farmer.user)

        response = self.client.get('/traceability/lookup/', {'batch_id': '   '})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(LookupSlot.objects.filter(profile=self.farmer).exists())

        response = self.client.get('/traceability/lookup/', {'batch_id': 'BATCH-UNKNOWN-999'})
        self.assertEqual(response.status_code, 404)

        with mock.patch.object(traceability_service, 'store', FakeStore(error=RecordStoreError('db down'))):
            response = self.client.get('/traceability/lookup/', {'batch_id': BATCH})
        self.assertEqual(response.status_code, 502)
        self.assertIn('db down', response.json()['error'])

    def test_stale_sequence_is_flagged(self):
        self.client.force_login(self.farmer.user)

        newer = self.client.get('/traceability/lookup/', {'batch_id': BATCH, 'seq': '2'}).json()
        self.assertFalse(newer['stale'])

        older = self.client.get('/traceability/lookup/', {'batch_id': 'BATCH-UNKNOWN-999', 'seq': '1'}).json()
        self.assertTrue(older['stale'])

        current = self.client.get('/traceability/lookup/current/').json()
        self.assertEqual(current['seq'], 2)
        self.assertEqual(current['current'], {'batch_id': BATCH, 'status': 'found', 'verified': True})
        self.assertIsNone(current['last_error'])

    def test_ticket_is_issued_before_the_read(self):
        self.client.force_login(self.farmer.user)
        real_lookup = traceability_service.lookup

        def newer_request_finishes_first(batch_id):
            # A second search by the same user is issued and applied while this one is in flight
            slot = LatestLookup(self.farmer)
            slot.offer(slot.issue(), real_lookup('BATCH-UNKNOWN-999'))
            return real_lookup(batch_id)

        with mock.patch.object(traceability_service, 'lookup', side_effect=newer_request_finishes_first):
            data = self.client.get('/traceability/lookup/', {'batch_id': BATCH}).json()

        self.assertEqual(data['seq'], 1)
        self.assertTrue(data['stale'])
        slot = LookupSlot.objects.get(profile=self.farmer)
        self.assertEqual(slot.current['batch_id'], 'BATCH-UNKNOWN-999')

    def test_current_reports_last_error(self):
        self.client.force_login(self.farmer.user)
        self.client.get('/traceability/lookup/', {'batch_id': BATCH})
        with mock.patch.object(traceability_service, 'store', FakeStore(error=RecordStoreError('db down'))):
            self.client.get('/traceability/lookup/', {'batch_id': 'BATCH-OTHER'})

        current = self.client.get('/traceability/lookup/current/').json()
        self.assertEqual(current['seq'], 2)
        self.assertEqual(current['current']['batch_id'], BATCH)
        self.assertEqual(current['last_error']['batch_id'], 'BATCH-OTHER')
        self.assertIn('db down', current['last_error']['reason'])

    def test_current_before_any_lookup(self):
        self.client.force_login(self.farmer.user)
        self.assertEqual(
            self.client.get('/traceability/lookup/current/').json(),
            {'seq': 0, 'current': None, 'last_error': None},
        )

    def test_invalid_sequence(self):
        self.client.force_login(self.farmer.user)
        for seq in ('abc', '²', '0', '-3', ''):
            response = self.client.get('/traceability/lookup/', {'batch_id': BATCH, 'seq': seq})
            self.assertEqual(response.status_code, 400, seq)
            self.assertEqual(response.json(), {'error': 'seq must be a positive integer'})

    def test_record_stage_view(self):
        self.client.force_login(self.farmer.user)
        crop = TestDataFactory.create_crop(self.farmer)
        response = self.client.post('/traceability/records/', {
            'batch_id': ' BATCH-GN-2024-007 ',
            'stage': 'farm',
            'action': 'Harvested groundnut',
            'district': 'Junagadh',
            'state': 'Gujarat',
            'crop': crop.pk,
        })

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['batch_id'], 'BATCH-GN-2024-007')
        self.assertIsNone(data['previous_hash'])
        self.assertEqual(data['short_hash'], data['hash'][:16])
        record = TraceabilityRecord.objects.get(batch_id='BATCH-GN-2024-007')
        self.assertEqual(record.crop, crop)
        self.assertEqual(record.location.state, 'Gujarat')

    def test_record_stage_view_links_to_existing_chain(self):
        processor = TestDataFactory.create_profile(role='processor')
        self.client.force_login(processor.user)
        response = self.client.post('/traceability/records/', {
            'batch_id': BATCH, 'stage': 'processing', 'action': 'Expeller pressed',
        })

        self.assertEqual(response.status_code, 201)
        last = TraceabilityRecord.objects.filter(batch_id=BATCH, stage='procurement').get()
        self.assertEqual(response.json()['previous_hash'], last.hash)

    def test_record_stage_view_rejects_foreign_crop(self):
        other_crop = TestDataFactory.create_crop(TestDataFactory.create_profile(role='farmer'))
        self.client.force_login(self.farmer.user)
        response = self.client.post('/traceability/records/', {
            'batch_id': 'BATCH-X', 'stage': 'farm', 'action': 'Harvested', 'crop': other_crop.pk,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('crop', response.json()['errors'])

    def test_record_stage_view_forbidden_stage(self):
        self.client.force_login(self.policymaker.user)
        response = self.client.post('/traceability/records/', {
            'batch_id': BATCH, 'stage': 'retail', 'action': 'Sold',
        })
        self.assertEqual(response.status_code, 403)

    def test_record_stage_view_out_of_order(self):
        retailer = TestDataFactory.create_profile(role='retailer')
        future = T0 + datetime.timedelta(days=365 * 50)
        traceability_service.record_stage(retailer, 'BATCH-FUTURE', 'retail', 'Shelved', timestamp=future)

        self.client.force_login(retailer.user)
        response = self.client.post('/traceability/records/', {
            'batch_id': 'BATCH-FUTURE', 'stage': 'retail', 'action': 'Sold',
        })
        self.assertEqual(response.status_code, 409)

    def test_record_stage_view_concurrent_append(self):
        processor = TestDataFactory.create_profile(role='processor')
        first = TraceabilityRecord.objects.get(batch_id=BATCH, stage='farm')

        self.client.force_login(processor.user)
        with mock.patch.object(traceability_service, 'last_record', return_value=first):
            response = self.client.post('/traceability/records/', {
                'batch_id': BATCH, 'stage': 'storage', 'action': 'Stored',
            })

        self.assertEqual(response.status_code, 409)
        self.assertIn('retry', response.json()['error'])
        self.assertEqual(TraceabilityRecord.objects.filter(batch_id=BATCH).count(), 2)

    def test_my_batches(self):
        self.client.force_login(self.fpo.user)
        self.assertEqual(self.client.get('/traceability/batches/').json(), {'batches': [BATCH]})


class VerifyChainCommandTests(TestCase):
    """manage.py verify_chain"""

    def setUp(self):
        self.farmer = TestDataFactory.create_profile(role='farmer', full_name='Ramesh Patel')

    def test_intact_chain(self):
        traceability_service.record_stage(self.farmer, BATCH, 'farm', 'Harvested', timestamp=T0)
        out = StringIO()
        call_command('verify_chain', BATCH, '--recompute', stdout=out)

        output = out.getvalue()
        self.assertIn('1 records, chain verified', output)
        self.assertIn('All record hashes match their contents', output)

    def test_unknown_batch_only_warns(self):
        out = StringIO()
        call_command('verify_chain', 'BATCH-UNKNOWN-999', stdout=out)
        self.assertIn('No records found', out.getvalue())

    def test_broken_chain_fails(self):
        TraceabilityRecord.objects.create(
            batch_id=BATCH, stage='farm', actor=self.farmer, timestamp=T0,
            action='Harvested', hash='h1', previous_hash='deadbeef',
        )
        out = StringIO()
        with self.assertRaises(CommandError):
            call_command('verify_chain', BATCH, stdout=out)
        self.assertIn('broken links at positions [1]', out.getvalue())

    def test_recompute_detects_tampered_content(self):
        TraceabilityRecord.objects.create(
            batch_id=BATCH, stage='farm', actor=self.farmer, timestamp=T0,
            action='Harvested', hash='not-the-real-hash',
        )
        out = StringIO()
        call_command('verify_chain', BATCH, stdout=out)
        self.assertIn('chain verified', out.getvalue())

        with self.assertRaises(CommandError):
            call_command('verify_chain', BATCH, '--recompute', stdout=StringIO())
