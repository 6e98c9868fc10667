from collections import namedtuple

from django.db import models
from django.contrib.auth.models import User

from .roles import ROLE_CHOICES

# ----------------------------------------------------------------------
# 1. CONSTANTS AND CHOICES
# ----------------------------------------------------------------------

CROP_TYPE_CHOICES = [
    ('soybean', 'Soybean'),
    ('groundnut', 'Groundnut'),
    ('mustard', 'Mustard'),
    ('sunflower', 'Sunflower'),
    ('safflower', 'Safflower'),
    ('sesame', 'Sesame'),
    ('niger', 'Niger'),
    ('linseed', 'Linseed'),
]
CROP_STATUS_CHOICES = [('planned', 'Planned'), ('planted', 'Planted'), ('growing', 'Growing'), ('harvested', 'Harvested')]

ADVISORY_TYPE_CHOICES = [
    ('crop_planning', 'Crop Planning'),
    ('weather', 'Weather'),
    ('pest_management', 'Pest Management'),
    ('market_price', 'Market Price'),
]
PRIORITY_CHOICES = [('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')]

INVENTORY_STATUS_CHOICES = [
    ('procured', 'Procured'),
    ('stored', 'Stored'),
    ('in_transit', 'In Transit'),
    ('processed', 'Processed'),
    ('sold', 'Sold'),
]
WAREHOUSE_STATUS_CHOICES = [('active', 'Active'), ('inactive', 'Inactive'), ('maintenance', 'Maintenance')]
LOGISTICS_STATUS_CHOICES = [
    ('scheduled', 'Scheduled'),
    ('in_transit', 'In Transit'),
    ('delivered', 'Delivered'),
    ('delayed', 'Delayed'),
]

FACILITY_TYPE_CHOICES = [('credit', 'Credit/Loan'), ('insurance', 'Insurance'), ('subsidy', 'Subsidy')]
FACILITY_STATUS_CHOICES = [
    ('applied', 'Applied'),
    ('approved', 'Approved'),
    ('disbursed', 'Disbursed'),
    ('rejected', 'Rejected'),
    ('completed', 'Completed'),
]

Location = namedtuple('Location', ['district', 'state'])


class LocatedModel(models.Model):
    """Optional {district, state} pair; ``location`` is None when both are blank."""
    district = models.CharField(max_length=100, blank=True, default='', verbose_name="District")
    state = models.CharField(max_length=100, blank=True, default='', verbose_name="State")

    class Meta:
        abstract = True

    @property
    def location(self):
        if not self.district and not self.state:
            return None
        return Location(self.district, self.state)


# ----------------------------------------------------------------------
# 2. IDENTITY
# ----------------------------------------------------------------------

class Profile(LocatedModel):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    full_name = models.CharField(max_length=150, verbose_name="Full Name")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, verbose_name="Role")
    organization = models.CharField(max_length=150, blank=True, null=True, verbose_name="Organization")
    phone = models.CharField(max_length=20, blank=True, null=True, verbose_name="Phone")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta: db_table = 'profiles'
    def __str__(self): return f"{self.full_name} ({self.role})"


# ----------------------------------------------------------------------
# 3. PRODUCTION AND ADVISORIES
# ----------------------------------------------------------------------

class Crop(LocatedModel):
    farmer = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='crops')
    crop_type = models.CharField(max_length=30, choices=CROP_TYPE_CHOICES, verbose_name="Crop Type")
    area_hectares = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Area (ha)")
    planting_date = models.DateField(verbose_name="Planting Date")
    expected_harvest_date = models.DateField(verbose_name="Expected Harvest Date")
    actual_harvest_date = models.DateField(blank=True, null=True, verbose_name="Actual Harvest Date")
    status = models.CharField(max_length=20, choices=CROP_STATUS_CHOICES, default='planned')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta: db_table = 'crops'
    def __str__(self): return f"{self.get_crop_type_display()} - {self.area_hectares} ha ({self.status})"


class Advisory(models.Model):
    advisory_type = models.CharField(max_length=30, choices=ADVISORY_TYPE_CHOICES)
    target_audience = models.CharField(max_length=100, blank=True, null=True)
    title = models.CharField(max_length=200)
    content = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    valid_until = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'advisories'
        verbose_name_plural = 'Advisories'

    def __str__(self): return f"[{self.priority}] {self.title}"


# ----------------------------------------------------------------------
# 4. STORAGE, INVENTORY AND LOGISTICS
# ----------------------------------------------------------------------

class Warehouse(LocatedModel):
    name = models.CharField(max_length=150)
    operator = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='warehouses')
    capacity_tonnes = models.DecimalField(max_digits=12, decimal_places=2, verbose_name="Capacity (t)")
    current_utilization_tonnes = models.DecimalField(max_digits=12, decimal_places=2, default=0, verbose_name="Utilization (t)")
    status = models.CharField(max_length=20, choices=WAREHOUSE_STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta: db_table = 'warehouses'
    def __str__(self): return f"Warehouse {self.name}"


class InventoryItem(models.Model):
    crop = models.ForeignKey(Crop, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_items')
    owner = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='inventory_items')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_items')
    crop_type = models.CharField(max_length=30, choices=CROP_TYPE_CHOICES)
    quantity_kg = models.DecimalField(max_digits=12, decimal_places=2, verbose_name="Quantity (kg)")
    quality_grade = models.CharField(max_length=10, blank=True, null=True)
    procurement_date = models.DateField()
    status = models.CharField(max_length=20, choices=INVENTORY_STATUS_CHOICES, default='procured')
    price_per_kg = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, verbose_name="Price (₹/kg)")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta: db_table = 'inventory'
    def __str__(self): return f"{self.crop_type} {self.quantity_kg} kg ({self.status})"


class Shipment(models.Model):
    inventory = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='shipments')
    from_location = models.CharField(max_length=150)
    to_location = models.CharField(max_length=150)
    transporter = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='shipments')
    vehicle_number = models.CharField(max_length=20, blank=True, null=True)
    dispatch_date = models.DateTimeField()
    expected_arrival = models.DateTimeField()
    actual_arrival = models.DateTimeField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=LOGISTICS_STATUS_CHOICES, default='scheduled')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta: db_table = 'logistics'
    def __str__(self): return f"{self.from_location} -> {self.to_location} ({self.status})"


# ----------------------------------------------------------------------
# 5. MARKET AND FINANCE
# ----------------------------------------------------------------------

class MarketPrice(models.Model):
    crop_type = models.CharField(max_length=30, choices=CROP_TYPE_CHOICES)
    market_location = models.CharField(max_length=150)
    price_per_kg = models.DecimalField(max_digits=10, decimal_places=2)
    date = models.DateField()
    is_prediction = models.BooleanField(default=False)
    confidence_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    source = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta: db_table = 'market_prices'
    def __str__(self): return f"{self.crop_type} @ {self.market_location}: {self.price_per_kg}"


class CreditFacility(models.Model):
    farmer = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='credit_facilities')
    facility_type = models.CharField(max_length=20, choices=FACILITY_TYPE_CHOICES)
    provider = models.CharField(max_length=150)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=FACILITY_STATUS_CHOICES, default='applied')
    application_date = models.DateField()
    approval_date = models.DateField(blank=True, null=True)
    performance_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'credit_facilities'
        verbose_name_plural = 'Credit Facilities'

    def __str__(self): return f"{self.get_facility_type_display()} - {self.provider} ({self.status})"
