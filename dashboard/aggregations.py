"""
Single-pass reductions behind the dashboard and analytics views.

The reducers take plain row dictionaries (as returned by ``.values()``) so
they can be fed from any query; ``dashboard_stats`` does the fetching for a
given profile.
"""
from decimal import Decimal

from django.conf import settings

from .models import Advisory, Crop, CreditFacility, InventoryItem, Shipment
from .roles import FARMER, TRADE_ROLES, OVERSIGHT_ROLES

ZERO = Decimal('0')
APPROVED_STATUSES = ('approved', 'disbursed')


def _num(value):
    return ZERO if value is None else Decimal(str(value))


def inventory_totals(rows):
    """Total quantity and value (quantity x price, missing price counts as 0)."""
    total_quantity = ZERO
    total_value = ZERO
    for row in rows:
        quantity = _num(row.get('quantity_kg'))
        total_quantity += quantity
        total_value += quantity * _num(row.get('price_per_kg'))
    return {'total_quantity_kg': total_quantity, 'total_value': total_value}


def credit_summary(rows):
    """
    Rows are expected newest first; the performance score shown is the one of
    the most recent facility.
    """
    total_approved = ZERO
    pending = 0
    performance_score = None
    for index, row in enumerate(rows):
        if index == 0:
            performance_score = row.get('performance_score')
        if row.get('status') in APPROVED_STATUSES:
            total_approved += _num(row.get('amount'))
        elif row.get('status') == 'applied':
            pending += 1
    return {
        'total_approved': total_approved,
        'pending_applications': pending,
        'performance_score': performance_score,
    }


def warehouse_utilization(row):
    capacity = _num(row.get('capacity_tonnes'))
    if capacity <= 0:
        return ZERO
    return _num(row.get('current_utilization_tonnes')) / capacity * 100


def analytics_metrics(crops, inventory, warehouses, prices):
    total_area = sum((_num(c.get('area_hectares')) for c in crops), ZERO)
    total_procurement = sum((_num(i.get('quantity_kg')) for i in inventory), ZERO)

    total_capacity = ZERO
    total_utilization = ZERO
    for w in warehouses:
        total_capacity += _num(w.get('capacity_tonnes'))
        total_utilization += _num(w.get('current_utilization_tonnes'))

    price_count = 0
    price_sum = ZERO
    for p in prices:
        price_count += 1
        price_sum += _num(p.get('price_per_kg'))

    return {
        'total_production_area': total_area,
        'total_procurement_kg': total_procurement,
        'average_price': price_sum / price_count if price_count else ZERO,
        'utilization_rate': total_utilization / total_capacity * 100 if total_capacity > 0 else ZERO,
    }


def recent_advisories(limit=None):
    limit = limit or settings.DASHBOARD_RECENT_ADVISORIES
    return list(
        Advisory.objects.order_by('-created_at', '-id').values(
            'id', 'advisory_type', 'title', 'content', 'priority', 'valid_until', 'created_at'
        )[:limit]
    )


def dashboard_stats(profile):
    """Role-family figures for the landing dashboard of ``profile``."""
    advisories = recent_advisories()
    stats = {'active_advisories': len(advisories)}

    if profile.role == FARMER:
        stats['total_crops'] = Crop.objects.filter(farmer=profile).count()
        stats['pending_credit'] = CreditFacility.objects.filter(farmer=profile, status='applied').count()
    elif profile.role in TRADE_ROLES:
        rows = InventoryItem.objects.filter(owner=profile).values('quantity_kg', 'price_per_kg')
        stats['inventory_value'] = inventory_totals(rows)['total_value']
        stats['active_shipments'] = Shipment.objects.filter(status='in_transit').count()
    elif profile.role in OVERSIGHT_ROLES:
        stats['total_crops'] = Crop.objects.count()
        stats['inventory_records'] = InventoryItem.objects.count()

    return stats, advisories
