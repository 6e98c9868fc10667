from django.contrib import admin

from .models import Advisory, Crop, CreditFacility, InventoryItem, MarketPrice, Profile, Shipment, Warehouse


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'role', 'organization', 'district', 'state')
    list_filter = ('role',)
    search_fields = ('full_name', 'organization', 'user__username')


@admin.register(Advisory)
class AdvisoryAdmin(admin.ModelAdmin):
    list_display = ('title', 'advisory_type', 'priority', 'valid_until', 'created_at')
    list_filter = ('advisory_type', 'priority')


@admin.register(Crop)
class CropAdmin(admin.ModelAdmin):
    list_display = ('crop_type', 'farmer', 'area_hectares', 'status', 'planting_date')
    list_filter = ('crop_type', 'status')


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ('name', 'operator', 'capacity_tonnes', 'current_utilization_tonnes', 'status')


admin.site.register(InventoryItem)
admin.site.register(Shipment)
admin.site.register(MarketPrice)
admin.site.register(CreditFacility)
