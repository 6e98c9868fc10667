"""
Test data factories shared by the app test suites.
"""
import datetime
import random
import string
from decimal import Decimal

from django.contrib.auth.models import User
from django.utils import timezone

from .models import Advisory, Crop, CreditFacility, InventoryItem, MarketPrice, Profile, Shipment, Warehouse

DEFAULT_PASSWORD = 'testpass123'


class TestDataFactory:
    """Factory class for creating test data"""
    __test__ = False

    @staticmethod
    def random_string(length=10):
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_profile(role='farmer', username=None, full_name=None, password=DEFAULT_PASSWORD, **extra):
        if not username:
            username = f'{role}_{TestDataFactory.random_string(6)}'
        user = User.objects.create_user(username=username, email=f'{username}@test.com', password=password)
        return Profile.objects.create(
            user=user,
            full_name=full_name or f'Test {role.title()} {username}',
            role=role,
            **extra
        )

    @staticmethod
    def create_crop(farmer, crop_type='soybean', area='2.50', status='planned', **extra):
        today = timezone.localdate()
        return Crop.objects.create(
            farmer=farmer,
            crop_type=crop_type,
            area_hectares=Decimal(area),
            planting_date=extra.pop('planting_date', today),
            expected_harvest_date=extra.pop('expected_harvest_date', today + datetime.timedelta(days=100)),
            status=status,
            **extra
        )

    @staticmethod
    def create_advisory(advisory_type='weather', priority='medium', title=None, **extra):
        return Advisory.objects.create(
            advisory_type=advisory_type,
            priority=priority,
            title=title or f'Advisory {TestDataFactory.random_string(6)}',
            content=extra.pop('content', 'Test advisory content'),
            **extra
        )

    @staticmethod
    def create_warehouse(name=None, capacity='100.00', utilization='25.00', **extra):
        return Warehouse.objects.create(
            name=name or f'WH_{TestDataFactory.random_string(6)}',
            capacity_tonnes=Decimal(capacity),
            current_utilization_tonnes=Decimal(utilization),
            **extra
        )

    @staticmethod
    def create_inventory(owner, quantity='1000.00', price='55.00', crop_type='soybean', **extra):
        return InventoryItem.objects.create(
            owner=owner,
            crop_type=crop_type,
            quantity_kg=Decimal(quantity),
            price_per_kg=Decimal(price) if price is not None else None,
            procurement_date=extra.pop('procurement_date', timezone.localdate()),
            **extra
        )

    @staticmethod
    def create_shipment(inventory, status='scheduled', **extra):
        now = timezone.now()
        return Shipment.objects.create(
            inventory=inventory,
            from_location=extra.pop('from_location', 'Indore'),
            to_location=extra.pop('to_location', 'Bhopal'),
            dispatch_date=extra.pop('dispatch_date', now),
            expected_arrival=extra.pop('expected_arrival', now + datetime.timedelta(days=2)),
            status=status,
            **extra
        )

    @staticmethod
    def create_market_price(price='60.00', is_prediction=False, crop_type='soybean', **extra):
        return MarketPrice.objects.create(
            crop_type=crop_type,
            market_location=extra.pop('market_location', 'Indore Mandi'),
            price_per_kg=Decimal(price),
            date=extra.pop('date', timezone.localdate()),
            is_prediction=is_prediction,
            source=extra.pop('source', 'agmarknet'),
            **extra
        )

    @staticmethod
    def create_facility(farmer, amount='50000.00', status='applied', facility_type='credit', **extra):
        return CreditFacility.objects.create(
            farmer=farmer,
            facility_type=facility_type,
            provider=extra.pop('provider', 'State Bank'),
            amount=Decimal(amount),
            status=status,
            application_date=extra.pop('application_date', timezone.localdate()),
            **extra
        )
