"""
Tests for the dashboard app.
Covers: capability table, aggregations, session endpoints and the role views.
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from .aggregations import analytics_metrics, credit_summary, inventory_totals, warehouse_utilization
from .factories import DEFAULT_PASSWORD, TestDataFactory
from .models import Crop, CreditFacility, Profile
from .roles import can_access, can_record_stage, navigation_for, views_for


class RolesTests(SimpleTestCase):
    """Static role -> views table"""

    def test_farmer_views(self):
        self.assertEqual(
            views_for('farmer'),
            {'dashboard', 'crops', 'advisories', 'inventory', 'traceability', 'credit'},
        )

    def test_trade_roles_share_views(self):
        for role in ('fpo', 'processor', 'retailer'):
            self.assertEqual(
                views_for(role),
                {'dashboard', 'advisories', 'inventory', 'warehouses', 'logistics', 'traceability'},
            )

    def test_oversight_views(self):
        self.assertTrue(can_access('policymaker', 'analytics'))
        self.assertTrue(can_access('admin', 'stakeholders'))
        self.assertFalse(can_access('admin', 'crops'))
        self.assertFalse(can_access('admin', 'inventory'))

    def test_every_role_can_trace(self):
        for role in ('farmer', 'fpo', 'processor', 'retailer', 'policymaker', 'admin'):
            self.assertTrue(can_access(role, 'traceability'))

    def test_unknown_role_has_no_views(self):
        self.assertEqual(views_for('guest'), frozenset())
        self.assertEqual(navigation_for('guest'), [])

    def test_navigation_keeps_menu_order(self):
        self.assertEqual(
            navigation_for('policymaker'),
            ['dashboard', 'advisories', 'warehouses', 'traceability', 'analytics', 'stakeholders'],
        )

    def test_stage_authority(self):
        self.assertTrue(can_record_stage('farmer', 'farm'))
        self.assertFalse(can_record_stage('farmer', 'retail'))
        self.assertTrue(can_record_stage('processor', 'storage'))
        self.assertTrue(can_record_stage('admin', 'processing'))
        self.assertFalse(can_record_stage('admin', 'shipping'))
        self.assertFalse(can_record_stage('policymaker', 'farm'))


class AggregationTests(SimpleTestCase):
    """Pure reductions over row dictionaries"""

    def test_inventory_totals_treats_missing_price_as_zero(self):
        rows = [
            {'quantity_kg': Decimal('1000'), 'price_per_kg': Decimal('55.50')},
            {'quantity_kg': Decimal('200'), 'price_per_kg': None},
        ]
        totals = inventory_totals(rows)
        self.assertEqual(totals['total_quantity_kg'], Decimal('1200'))
        self.assertEqual(totals['total_value'], Decimal('55500'))

    def test_inventory_totals_empty(self):
        self.assertEqual(inventory_totals([]), {'total_quantity_kg': 0, 'total_value': 0})

    def test_credit_summary(self):
        rows = [
            {'status': 'applied', 'amount': Decimal('10000'), 'performance_score': Decimal('7.5')},
            {'status': 'approved', 'amount': Decimal('50000'), 'performance_score': None},
            {'status': 'disbursed', 'amount': Decimal('25000'), 'performance_score': Decimal('9')},
            {'status': 'rejected', 'amount': Decimal('99999'), 'performance_score': None},
        ]
        summary = credit_summary(rows)
        self.assertEqual(summary['total_approved'], Decimal('75000'))
        self.assertEqual(summary['pending_applications'], 1)
        self.assertEqual(summary['performance_score'], Decimal('7.5'))

    def test_credit_summary_without_facilities(self):
        summary = credit_summary([])
        self.assertEqual(summary['pending_applications'], 0)
        self.assertIsNone(summary['performance_score'])

    def test_analytics_metrics(self):
        metrics = analytics_metrics(
            crops=[{'area_hectares': Decimal('2.5')}, {'area_hectares': Decimal('1.5')}],
            inventory=[{'quantity_kg': Decimal('500')}, {'quantity_kg': Decimal('1500')}],
            warehouses=[
                {'capacity_tonnes': Decimal('100'), 'current_utilization_tonnes': Decimal('30')},
                {'capacity_tonnes': Decimal('100'), 'current_utilization_tonnes': Decimal('50')},
            ],
            prices=[{'price_per_kg': Decimal('50')}, {'price_per_kg': Decimal('70')}],
        )
        self.assertEqual(metrics['total_production_area'], Decimal('4.0'))
        self.assertEqual(metrics['total_procurement_kg'], Decimal('2000'))
        self.assertEqual(metrics['average_price'], Decimal('60'))
        self.assertEqual(metrics['utilization_rate'], Decimal('40'))

    def test_analytics_metrics_without_data(self):
        metrics = analytics_metrics([], [], [], [])
        self.assertEqual(metrics['average_price'], 0)
        self.assertEqual(metrics['utilization_rate'], 0)

    def test_warehouse_utilization_zero_capacity(self):
        self.assertEqual(warehouse_utilization({'capacity_tonnes': 0, 'current_utilization_tonnes': 5}), 0)
        self.assertEqual(
            warehouse_utilization({'capacity_tonnes': Decimal('200'), 'current_utilization_tonnes': Decimal('50')}),
            Decimal('25'),
        )


class SessionTests(TestCase):
    """Registration, sign-in and sign-out"""

    def test_register_creates_user_and_profile(self):
        response = self.client.post('/accounts/register/', {
            'username': 'ramesh',
            'email': 'ramesh@example.com',
            'password': 'soybean-2024',
            'password2': 'soybean-2024',
            'role': 'farmer',
            'full_name': 'Ramesh Patel',
            'district': 'Indore',
            'state': 'Madhya Pradesh',
        })
        self.assertEqual(response.status_code, 201)
        profile = Profile.objects.get(user__username='ramesh')
        self.assertEqual(profile.role, 'farmer')
        self.assertEqual(profile.location.district, 'Indore')
        self.assertIn('crops', response.json()['profile']['views'])

    def test_register_rejects_password_mismatch(self):
        response = self.client.post('/accounts/register/', {
            'username': 'ramesh',
            'email': 'ramesh@example.com',
            'password': 'one',
            'password2': 'two',
            'role': 'farmer',
            'full_name': 'Ramesh Patel',
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Profile.objects.exists())

    def test_login_returns_profile_and_navigation(self):
        profile = TestDataFactory.create_profile(role='retailer', username='shop1')
        response = self.client.post('/accounts/login/', {'username': 'shop1', 'password': DEFAULT_PASSWORD})
        self.assertEqual(response.status_code, 200)
        data = response.json()['profile']
        self.assertEqual(data['id'], profile.pk)
        self.assertEqual(data['role'], 'retailer')
        self.assertIsNone(data['location'])
        self.assertNotIn('credit', data['views'])

    def test_login_with_bad_password(self):
        TestDataFactory.create_profile(username='shop1')
        response = self.client.post('/accounts/login/', {'username': 'shop1', 'password': 'wrong'})
        self.assertEqual(response.status_code, 401)

    def test_me_requires_login(self):
        response = self.client.get('/accounts/me/')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Authentication required'})

    def test_logout_clears_session(self):
        profile = TestDataFactory.create_profile()
        self.client.force_login(profile.user)
        self.assertEqual(self.client.get('/accounts/me/').status_code, 200)

        self.client.post('/accounts/logout/')
        self.assertEqual(self.client.get('/accounts/me/').status_code, 401)


class DashboardViewTests(TestCase):
    """Role-specific landing dashboard"""

    def setUp(self):
        for _ in range(7):
            TestDataFactory.create_advisory()

    def test_anonymous_gets_json_401(self):
        for url in ('/', '/crops/', '/analytics/', '/api/choices/'):
            response = self.client.get(url)
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response['Content-Type'], 'application/json')

    def test_farmer_stats(self):
        farmer = TestDataFactory.create_profile(role='farmer')
        TestDataFactory.create_crop(farmer)
        TestDataFactory.create_crop(farmer, crop_type='mustard')
        TestDataFactory.create_facility(farmer, status='applied')
        TestDataFactory.create_facility(farmer, status='approved')
        TestDataFactory.create_crop(TestDataFactory.create_profile(role='farmer'))

        self.client.force_login(farmer.user)
        data = self.client.get('/').json()
        self.assertEqual(data['stats']['total_crops'], 2)
        self.assertEqual(data['stats']['pending_credit'], 1)
        self.assertEqual(data['stats']['active_advisories'], 5)
        self.assertEqual(len(data['recent_advisories']), 5)

    def test_trader_stats(self):
        fpo = TestDataFactory.create_profile(role='fpo')
        item = TestDataFactory.create_inventory(fpo, quantity='1000', price='50')
        TestDataFactory.create_inventory(fpo, quantity='100', price=None)
        TestDataFactory.create_shipment(item, status='in_transit')
        TestDataFactory.create_shipment(item, status='delivered')

        self.client.force_login(fpo.user)
        stats = self.client.get('/').json()['stats']
        self.assertEqual(Decimal(stats['inventory_value']), Decimal('50000'))
        self.assertEqual(stats['active_shipments'], 1)

    def test_oversight_stats(self):
        farmer = TestDataFactory.create_profile(role='farmer')
        TestDataFactory.create_crop(farmer)
        TestDataFactory.create_inventory(farmer)
        TestDataFactory.create_inventory(farmer)

        policymaker = TestDataFactory.create_profile(role='policymaker')
        self.client.force_login(policymaker.user)
        stats = self.client.get('/').json()['stats']
        self.assertEqual(stats['total_crops'], 1)
        self.assertEqual(stats['inventory_records'], 2)

    @override_settings(DASHBOARD_RECENT_ADVISORIES=3)
    def test_recent_advisories_limit_is_configurable(self):
        farmer = TestDataFactory.create_profile()
        self.client.force_login(farmer.user)
        self.assertEqual(len(self.client.get('/').json()['recent_advisories']), 3)

    def test_user_without_profile_is_forbidden(self):
        from django.contrib.auth.models import User
        user = User.objects.create_user(username='bare', password=DEFAULT_PASSWORD)
        self.client.force_login(user)
        self.assertEqual(self.client.get('/').status_code, 403)


class FarmerViewTests(TestCase):
    """Crops and credit views"""

    def setUp(self):
        self.farmer = TestDataFactory.create_profile(role='farmer')
        self.client.force_login(self.farmer.user)

    def test_crops_lists_only_own_crops(self):
        TestDataFactory.create_crop(self.farmer, crop_type='groundnut')
        TestDataFactory.create_crop(TestDataFactory.create_profile(role='farmer'))

        crops = self.client.get('/crops/').json()['crops']
        self.assertEqual(len(crops), 1)
        self.assertEqual(crops[0]['crop_type'], 'groundnut')

    def test_add_crop(self):
        response = self.client.post('/crops/', {
            'crop_type': 'soybean',
            'area_hectares': '3.5',
            'planting_date': '2024-06-15',
            'expected_harvest_date': '2024-10-15',
            'status': 'planted',
            'district': 'Ujjain',
            'state': 'Madhya Pradesh',
        })
        self.assertEqual(response.status_code, 201)
        crop = Crop.objects.get(farmer=self.farmer)
        self.assertEqual(crop.area_hectares, Decimal('3.5'))
        self.assertEqual(crop.location.state, 'Madhya Pradesh')

    def test_add_crop_rejects_bad_dates_and_area(self):
        response = self.client.post('/crops/', {
            'crop_type': 'soybean',
            'area_hectares': '0',
            'planting_date': '2024-06-15',
            'expected_harvest_date': '2024-01-01',
            'status': 'planned',
        })
        self.assertEqual(response.status_code, 400)
        errors = response.json()['errors']
        self.assertIn('area_hectares', errors)
        self.assertIn('expected_harvest_date', errors)
        self.assertFalse(Crop.objects.exists())

    def test_crops_forbidden_for_retailer(self):
        retailer = TestDataFactory.create_profile(role='retailer')
        self.client.force_login(retailer.user)
        self.assertEqual(self.client.get('/crops/').status_code, 403)

    def test_apply_for_credit(self):
        response = self.client.post('/credit/', {
            'facility_type': 'insurance',
            'provider': 'PMFBY',
            'amount': '20000',
            'status': 'approved',
        })
        self.assertEqual(response.status_code, 201)
        facility = CreditFacility.objects.get(farmer=self.farmer)
        self.assertEqual(facility.status, 'applied')
        self.assertEqual(facility.application_date, timezone.localdate())

    def test_credit_summary_view(self):
        TestDataFactory.create_facility(self.farmer, amount='30000', status='approved')
        TestDataFactory.create_facility(self.farmer, amount='10000', status='applied')

        data = self.client.get('/credit/').json()
        self.assertEqual(len(data['facilities']), 2)
        self.assertEqual(Decimal(data['summary']['total_approved']), Decimal('30000'))
        self.assertEqual(data['summary']['pending_applications'], 1)


class CommonViewTests(TestCase):
    """Advisories, inventory, warehouses and logistics"""

    def setUp(self):
        self.processor = TestDataFactory.create_profile(role='processor')
        self.client.force_login(self.processor.user)

    def test_advisories_filter(self):
        TestDataFactory.create_advisory(advisory_type='weather')
        TestDataFactory.create_advisory(advisory_type='pest_management')

        self.assertEqual(len(self.client.get('/advisories/').json()['advisories']), 2)
        data = self.client.get('/advisories/?type=pest_management').json()
        self.assertEqual([a['advisory_type'] for a in data['advisories']], ['pest_management'])

    def test_advisories_unknown_type(self):
        self.assertEqual(self.client.get('/advisories/?type=astrology').status_code, 400)

    def test_inventory_with_warehouse_and_totals(self):
        warehouse = TestDataFactory.create_warehouse(name='Dewas Cold Store', district='Dewas', state='MP')
        TestDataFactory.create_inventory(self.processor, quantity='400', price='60', warehouse=warehouse)
        TestDataFactory.create_inventory(TestDataFactory.create_profile(role='fpo'))

        data = self.client.get('/inventory/').json()
        self.assertEqual(len(data['inventory']), 1)
        self.assertEqual(data['inventory'][0]['warehouse__name'], 'Dewas Cold Store')
        self.assertEqual(Decimal(data['totals']['total_value']), Decimal('24000'))

    def test_warehouses_utilization(self):
        TestDataFactory.create_warehouse(capacity='200', utilization='50')
        rows = self.client.get('/warehouses/').json()['warehouses']
        self.assertEqual(Decimal(rows[0]['utilization_percent']), Decimal('25'))

    def test_logistics_status_filter(self):
        item = TestDataFactory.create_inventory(self.processor)
        TestDataFactory.create_shipment(item, status='in_transit')
        TestDataFactory.create_shipment(item, status='delayed')

        data = self.client.get('/logistics/?status=delayed').json()
        self.assertEqual([s['status'] for s in data['shipments']], ['delayed'])
        self.assertEqual(self.client.get('/logistics/?status=lost').status_code, 400)

    def test_choices_endpoint(self):
        data = self.client.get('/api/choices/').json()
        self.assertIn({'id': 'soybean', 'name': 'Soybean'}, data['crop_types'])
        self.assertEqual(len(data['roles']), 6)


class OversightViewTests(TestCase):
    """Analytics and stakeholders"""

    def setUp(self):
        self.admin = TestDataFactory.create_profile(role='admin')
        self.client.force_login(self.admin.user)

    def test_analytics_ignores_predicted_prices(self):
        farmer = TestDataFactory.create_profile(role='farmer')
        TestDataFactory.create_crop(farmer, area='4')
        TestDataFactory.create_inventory(farmer, quantity='2500')
        TestDataFactory.create_warehouse(capacity='100', utilization='80')
        TestDataFactory.create_market_price(price='50')
        TestDataFactory.create_market_price(price='70')
        TestDataFactory.create_market_price(price='500', is_prediction=True)

        metrics = self.client.get('/analytics/').json()['metrics']
        self.assertEqual(Decimal(metrics['total_production_area']), Decimal('4'))
        self.assertEqual(Decimal(metrics['total_procurement_kg']), Decimal('2500'))
        self.assertEqual(Decimal(metrics['average_price']), Decimal('60'))
        self.assertEqual(Decimal(metrics['utilization_rate']), Decimal('80'))

    def test_stakeholders_counts(self):
        TestDataFactory.create_profile(role='farmer')
        TestDataFactory.create_profile(role='farmer')
        TestDataFactory.create_profile(role='fpo')

        data = self.client.get('/stakeholders/').json()['stakeholders']
        self.assertEqual(data, {'admin': 1, 'farmer': 2, 'fpo': 1})

    def test_analytics_forbidden_for_farmer(self):
        farmer = TestDataFactory.create_profile(role='farmer')
        self.client.force_login(farmer.user)
        self.assertEqual(self.client.get('/analytics/').status_code, 403)
