# api_views.py
from django.http import JsonResponse

from .decorators import json_login_required
from .models import (
    ADVISORY_TYPE_CHOICES, CROP_STATUS_CHOICES, CROP_TYPE_CHOICES, FACILITY_TYPE_CHOICES,
    INVENTORY_STATUS_CHOICES, LOGISTICS_STATUS_CHOICES, PRIORITY_CHOICES,
)
from .roles import ROLE_CHOICES

VOCABULARIES = {
    'roles': ROLE_CHOICES,
    'crop_types': CROP_TYPE_CHOICES,
    'crop_statuses': CROP_STATUS_CHOICES,
    'advisory_types': ADVISORY_TYPE_CHOICES,
    'priorities': PRIORITY_CHOICES,
    'inventory_statuses': INVENTORY_STATUS_CHOICES,
    'logistics_statuses': LOGISTICS_STATUS_CHOICES,
    'facility_types': FACILITY_TYPE_CHOICES,
}


@json_login_required
def get_choices(request):
    """Dropdown vocabularies for the front-end forms, as [{id, name}] lists."""
    data = {
        key: [{'id': value, 'name': label} for value, label in choices]
        for key, choices in VOCABULARIES.items()
    }
    return JsonResponse(data)
