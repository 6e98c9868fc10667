from django.contrib import admin

from .models import TraceabilityRecord


@admin.register(TraceabilityRecord)
class TraceabilityRecordAdmin(admin.ModelAdmin):
    list_display = ('batch_id', 'stage', 'actor', 'timestamp', 'short_hash')
    list_filter = ('stage',)
    search_fields = ('batch_id', 'action')
    ordering = ('batch_id', 'timestamp', 'id')

    def short_hash(self, obj):
        return obj.hash[:16]

    # Append-only: records are written through TraceabilityService.record_stage
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
