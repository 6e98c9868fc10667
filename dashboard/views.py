import logging

from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.db import IntegrityError, transaction
from django.db.models import Count
from django.http import JsonResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.http import require_GET, require_POST

from .aggregations import (
    analytics_metrics, credit_summary, dashboard_stats, inventory_totals, warehouse_utilization,
)
from .decorators import get_profile, json_login_required, view_required
from .forms import CreditApplicationForm, CropForm, LoginForm, UserRegisterForm
from .models import (
    ADVISORY_TYPE_CHOICES, LOGISTICS_STATUS_CHOICES, Advisory, Crop, CreditFacility, InventoryItem,
    MarketPrice, Profile, Shipment, Warehouse,
)
from .roles import navigation_for

logger = logging.getLogger(__name__)


def profile_payload(profile):
    location = profile.location
    return {
        'id': profile.pk,
        'full_name': profile.full_name,
        'role': profile.role,
        'organization': profile.organization,
        'phone': profile.phone,
        'location': location._asdict() if location else None,
        'views': navigation_for(profile.role),
    }


# ----------------------------------------------------------------------
# 1. SESSION AND REGISTRATION
# ----------------------------------------------------------------------

class RegisterView(View):
    http_method_names = ['post']

    def post(self, request):
        form = UserRegisterForm(request.POST)
        if not form.is_valid():
            return JsonResponse({'errors': form.errors}, status=400)

        try:
            with transaction.atomic():
                # 1. User
                user = form.save(commit=False)
                user.set_password(form.cleaned_data['password'])
                user.save()

                # 2. Profile (role, organization, location)
                profile = Profile.objects.create(
                    user=user,
                    full_name=form.cleaned_data['full_name'],
                    role=form.cleaned_data['role'],
                    organization=form.cleaned_data['organization'] or None,
                    phone=form.cleaned_data['phone'] or None,
                    district=form.cleaned_data['district'],
                    state=form.cleaned_data['state'],
                )
        except IntegrityError as e:
            logger.warning("Registration failed for %s: %s", form.cleaned_data.get('username'), e)
            return JsonResponse({'error': f"Could not create account: {e}"}, status=400)

        logger.info("Registered %s as %s", user.username, profile.role)
        return JsonResponse({'profile': profile_payload(profile)}, status=201)


@require_POST
def login_view(request):
    form = LoginForm(request.POST)
    if not form.is_valid():
        return JsonResponse({'errors': form.errors}, status=400)

    user = authenticate(
        request,
        username=form.cleaned_data['username'],
        password=form.cleaned_data['password'],
    )
    if user is None:
        return JsonResponse({'error': 'Invalid credentials'}, status=401)

    profile = get_profile(user)
    if profile is None:
        return JsonResponse({'error': 'No profile for this account'}, status=403)

    login(request, user)
    return JsonResponse({'profile': profile_payload(profile)})


@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({'status': 'signed_out'})


@json_login_required
@require_GET
def me_view(request):
    profile = get_profile(request.user)
    if profile is None:
        return JsonResponse({'error': 'No profile for this account'}, status=403)
    return JsonResponse({'profile': profile_payload(profile)})


# ----------------------------------------------------------------------
# 2. DASHBOARD
# ----------------------------------------------------------------------

@method_decorator(json_login_required, name='dispatch')
@method_decorator(view_required('dashboard'), name='dispatch')
class DashboardView(View):
    http_method_names = ['get']

    def get(self, request, profile):
        stats, advisories = dashboard_stats(profile)
        return JsonResponse({
            'profile': profile_payload(profile),
            'stats': stats,
            'recent_advisories': advisories,
        })


# ----------------------------------------------------------------------
# 3. FARMER VIEWS
# ----------------------------------------------------------------------

CROP_FIELDS = (
    'id', 'crop_type', 'area_hectares', 'planting_date', 'expected_harvest_date',
    'actual_harvest_date', 'status', 'district', 'state',
)


@method_decorator(json_login_required, name='dispatch')
@method_decorator(view_required('crops'), name='dispatch')
class CropsView(View):
    http_method_names = ['get', 'post']

    def get(self, request, profile):
        crops = Crop.objects.filter(farmer=profile).order_by('-created_at', '-id').values(*CROP_FIELDS)
        return JsonResponse({'crops': list(crops)})

    def post(self, request, profile):
        form = CropForm(request.POST)
        if not form.is_valid():
            return JsonResponse({'errors': form.errors}, status=400)

        try:
            crop = form.save(commit=False)
            crop.farmer = profile
            crop.save()
        except IntegrityError as e:
            logger.exception("Error saving crop for profile %s", profile.pk)
            return JsonResponse({'error': f"Error saving crop: {e}"}, status=400)

        return JsonResponse({'crop': Crop.objects.values(*CROP_FIELDS).get(pk=crop.pk)}, status=201)


FACILITY_FIELDS = (
    'id', 'facility_type', 'provider', 'amount', 'status', 'application_date',
    'approval_date', 'performance_score',
)


@method_decorator(json_login_required, name='dispatch')
@method_decorator(view_required('credit'), name='dispatch')
class CreditView(View):
    http_method_names = ['get', 'post']

    def get(self, request, profile):
        facilities = list(
            CreditFacility.objects.filter(farmer=profile).order_by('-created_at', '-id').values(*FACILITY_FIELDS)
        )
        return JsonResponse({'facilities': facilities, 'summary': credit_summary(facilities)})

    def post(self, request, profile):
        form = CreditApplicationForm(request.POST)
        if not form.is_valid():
            return JsonResponse({'errors': form.errors}, status=400)

        try:
            facility = form.save(commit=False)
            facility.farmer = profile
            facility.status = 'applied'
            facility.application_date = timezone.localdate()
            facility.save()
        except IntegrityError as e:
            logger.exception("Error saving credit application for profile %s", profile.pk)
            return JsonResponse({'error': f"Error saving application: {e}"}, status=400)

        return JsonResponse(
            {'facility': CreditFacility.objects.values(*FACILITY_FIELDS).get(pk=facility.pk)}, status=201
        )


# ----------------------------------------------------------------------
# 4. COMMON VIEWS
# ----------------------------------------------------------------------

@json_login_required
@view_required('advisories')
@require_GET
def advisories_view(request, profile):
    advisory_type = request.GET.get('type', 'all')
    advisories = Advisory.objects.order_by('-created_at', '-id')

    if advisory_type != 'all':
        if advisory_type not in dict(ADVISORY_TYPE_CHOICES):
            return JsonResponse({'error': f"Unknown advisory type '{advisory_type}'"}, status=400)
        advisories = advisories.filter(advisory_type=advisory_type)

    rows = advisories.values('id', 'advisory_type', 'title', 'content', 'priority', 'valid_until', 'created_at')
    return JsonResponse({'type': advisory_type, 'advisories': list(rows)})


@json_login_required
@view_required('inventory')
@require_GET
def inventory_view(request, profile):
    rows = list(
        InventoryItem.objects.filter(owner=profile).order_by('-created_at', '-id').values(
            'id', 'crop_type', 'quantity_kg', 'quality_grade', 'procurement_date', 'status', 'price_per_kg',
            'warehouse__name', 'warehouse__district', 'warehouse__state',
        )
    )
    return JsonResponse({'inventory': rows, 'totals': inventory_totals(rows)})


@json_login_required
@view_required('warehouses')
@require_GET
def warehouses_view(request, profile):
    rows = list(
        Warehouse.objects.order_by('name').values(
            'id', 'name', 'district', 'state', 'capacity_tonnes', 'current_utilization_tonnes', 'status',
        )
    )
    for row in rows:
        row['utilization_percent'] = warehouse_utilization(row)
    return JsonResponse({'warehouses': rows})


@json_login_required
@view_required('logistics')
@require_GET
def logistics_view(request, profile):
    shipments = Shipment.objects.order_by('-dispatch_date', '-id')

    status = request.GET.get('status')
    if status:
        if status not in dict(LOGISTICS_STATUS_CHOICES):
            return JsonResponse({'error': f"Unknown shipment status '{status}'"}, status=400)
        shipments = shipments.filter(status=status)

    rows = shipments.values(
        'id', 'inventory_id', 'inventory__crop_type', 'from_location', 'to_location', 'vehicle_number',
        'dispatch_date', 'expected_arrival', 'actual_arrival', 'status',
    )
    return JsonResponse({'shipments': list(rows)})


# ----------------------------------------------------------------------
# 5. OVERSIGHT VIEWS (POLICYMAKER / ADMIN)
# ----------------------------------------------------------------------

@json_login_required
@view_required('analytics')
@require_GET
def analytics_view(request, profile):
    metrics = analytics_metrics(
        crops=Crop.objects.values('area_hectares'),
        inventory=InventoryItem.objects.values('quantity_kg'),
        warehouses=Warehouse.objects.values('capacity_tonnes', 'current_utilization_tonnes'),
        prices=MarketPrice.objects.filter(is_prediction=False).order_by('-date', '-id').values(
            'price_per_kg'
        )[:settings.ANALYTICS_PRICE_SAMPLE],
    )
    return JsonResponse({'metrics': metrics})


@json_login_required
@view_required('stakeholders')
@require_GET
def stakeholders_view(request, profile):
    counts = Profile.objects.values('role').annotate(total=Count('id')).order_by('role')
    return JsonResponse({'stakeholders': {row['role']: row['total'] for row in counts}})
