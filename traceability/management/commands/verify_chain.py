from django.core.management.base import BaseCommand, CommandError

from traceability.chain import content_mismatches
from traceability.services import traceability_service
from traceability.utils import display_row


class Command(BaseCommand):
    help = 'Look up one or more batch chains and report whether their hash links verify'

    def add_arguments(self, parser):
        parser.add_argument('batch_ids', nargs='+', help='Batch IDs to verify')
        parser.add_argument(
            '--recompute',
            action='store_true',
            help='Also recompute every record hash from its stored fields',
        )

    def handle(self, *args, **options):
        failures = 0

        for batch_id in options['batch_ids']:
            result = traceability_service.lookup(batch_id)
            self.stdout.write(f"\n--- Batch: {batch_id} ---")

            if result.status == 'invalid':
                self.stdout.write(self.style.ERROR(f"Invalid batch id: {result.reason}"))
                failures += 1
                continue
            if result.status == 'not_found':
                self.stdout.write(self.style.WARNING("No records found"))
                continue
            if result.status == 'failed':
                self.stdout.write(self.style.ERROR(f"Lookup failed: {result.reason}"))
                failures += 1
                continue

            for index, entry in enumerate(result.records, start=1):
                row = display_row(entry)
                where = f" @ {row.location.district}, {row.location.state}" if row.location else ""
                marker = "!!" if index - 1 in result.broken_links else "  "
                self.stdout.write(
                    f"{marker} {index}. [{row.stage}] {row.action} - {row.actor_name} ({row.actor_role}) "
                    f"{row.timestamp.isoformat()}{where} {row.truncated_hash}..."
                )

            if result.verified:
                self.stdout.write(self.style.SUCCESS(f"{len(result.records)} records, chain verified"))
            else:
                self.stdout.write(self.style.ERROR(
                    f"{len(result.records)} records, broken links at positions "
                    f"{[i + 1 for i in result.broken_links]}"
                ))
                failures += 1

            if options['recompute']:
                mismatched = content_mismatches(result.records)
                if mismatched:
                    self.stdout.write(self.style.ERROR(f"Hash mismatch for record ids {mismatched}"))
                    failures += 1
                else:
                    self.stdout.write(self.style.SUCCESS("All record hashes match their contents"))

        if failures:
            raise CommandError(f"{failures} batch check(s) failed")
