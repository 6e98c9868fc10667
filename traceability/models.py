from django.db import models

from dashboard.models import Crop, InventoryItem, LocatedModel, Profile

from .exceptions import ImmutableRecordError

STAGE_CHOICES = [
    ('farm', 'Farm'),
    ('procurement', 'Procurement'),
    ('storage', 'Storage'),
    ('processing', 'Processing'),
    ('retail', 'Retail'),
]


class TraceabilityRecord(LocatedModel):
    """One custody/processing event of a batch. Append-only."""

    # Business identifiers
    batch_id = models.CharField(max_length=100, db_index=True, verbose_name="Batch ID")
    crop = models.ForeignKey(Crop, on_delete=models.SET_NULL, null=True, blank=True, related_name='trace_records')
    inventory = models.ForeignKey(InventoryItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='trace_records')

    stage = models.CharField(max_length=20, choices=STAGE_CHOICES, verbose_name="Stage")
    actor = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name='trace_records', verbose_name="Actor")
    timestamp = models.DateTimeField(verbose_name="Timestamp")
    action = models.TextField(verbose_name="Action")

    # Chain
    hash = models.CharField(max_length=64, verbose_name="Hash (SHA-256)")
    previous_hash = models.CharField(max_length=64, null=True, blank=True, verbose_name="Previous Hash")

    metadata = models.JSONField(default=dict, blank=True, verbose_name="Metadata")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'traceability'
        ordering = ['batch_id', 'timestamp', 'id']
        constraints = [
            # A batch has one genesis record and every record at most one successor
            models.UniqueConstraint(
                fields=['batch_id'],
                condition=models.Q(previous_hash__isnull=True),
                name='traceability_single_genesis',
            ),
            models.UniqueConstraint(fields=['batch_id', 'previous_hash'], name='traceability_single_successor'),
        ]
        verbose_name = 'Traceability Record'
        verbose_name_plural = 'Traceability Records'

    def __str__(self):
        return f"{self.batch_id} [{self.hash[:8]}] - {self.stage}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ImmutableRecordError(f"Traceability record {self.pk} cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(f"Traceability record {self.pk} cannot be deleted")


class LookupSlot(models.Model):
    """
    Per-profile state of the last-issued-wins lookup display.

    ``issued`` is the highest ticket handed out, ``applied`` the ticket of the
    outcome currently shown. Both only move forward and are updated with
    row-level conditions so overlapping requests cannot roll them back.
    """
    profile = models.OneToOneField(Profile, on_delete=models.CASCADE, related_name='lookup_slot')
    issued = models.PositiveIntegerField(default=0)
    applied = models.PositiveIntegerField(default=0)
    current = models.JSONField(null=True, blank=True)
    last_error = models.JSONField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'traceability_lookup_slots'

    def __str__(self):
        return f"{self.profile} (applied {self.applied}/{self.issued})"
