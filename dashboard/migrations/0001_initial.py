import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


CROP_TYPES = [
    ('soybean', 'Soybean'), ('groundnut', 'Groundnut'), ('mustard', 'Mustard'), ('sunflower', 'Sunflower'),
    ('safflower', 'Safflower'), ('sesame', 'Sesame'), ('niger', 'Niger'), ('linseed', 'Linseed'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Advisory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('advisory_type', models.CharField(choices=[('crop_planning', 'Crop Planning'), ('weather', 'Weather'), ('pest_management', 'Pest Management'), ('market_price', 'Market Price')], max_length=30)),
                ('target_audience', models.CharField(blank=True, max_length=100, null=True)),
                ('title', models.CharField(max_length=200)),
                ('content', models.TextField()),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=10)),
                ('valid_until', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'advisories',
                'verbose_name_plural': 'Advisories',
            },
        ),
        migrations.CreateModel(
            name='MarketPrice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('crop_type', models.CharField(choices=CROP_TYPES, max_length=30)),
                ('market_location', models.CharField(max_length=150)),
                ('price_per_kg', models.DecimalField(decimal_places=2, max_digits=10)),
                ('date', models.DateField()),
                ('is_prediction', models.BooleanField(default=False)),
                ('confidence_score', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('source', models.CharField(max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'market_prices',
            },
        ),
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('district', models.CharField(blank=True, default='', max_length=100, verbose_name='District')),
                ('state', models.CharField(blank=True, default='', max_length=100, verbose_name='State')),
                ('full_name', models.CharField(max_length=150, verbose_name='Full Name')),
                ('role', models.CharField(choices=[('farmer', 'Farmer'), ('fpo', 'Farmer Producer Organisation'), ('processor', 'Processor'), ('retailer', 'Retailer'), ('policymaker', 'Policymaker'), ('admin', 'Administrator')], max_length=20, verbose_name='Role')),
                ('organization', models.CharField(blank=True, max_length=150, null=True, verbose_name='Organization')),
                ('phone', models.CharField(blank=True, max_length=20, null=True, verbose_name='Phone')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'profiles',
            },
        ),
        migrations.CreateModel(
            name='Crop',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('district', models.CharField(blank=True, default='', max_length=100, verbose_name='District')),
                ('state', models.CharField(blank=True, default='', max_length=100, verbose_name='State')),
                ('crop_type', models.CharField(choices=CROP_TYPES, max_length=30, verbose_name='Crop Type')),
                ('area_hectares', models.DecimalField(decimal_places=2, max_digits=10, verbose_name='Area (ha)')),
                ('planting_date', models.DateField(verbose_name='Planting Date')),
                ('expected_harvest_date', models.DateField(verbose_name='Expected Harvest Date')),
                ('actual_harvest_date', models.DateField(blank=True, null=True, verbose_name='Actual Harvest Date')),
                ('status', models.CharField(choices=[('planned', 'Planned'), ('planted', 'Planted'), ('growing', 'Growing'), ('harvested', 'Harvested')], default='planned', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('farmer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='crops', to='dashboard.profile')),
            ],
            options={
                'db_table': 'crops',
            },
        ),
        migrations.CreateModel(
            name='CreditFacility',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('facility_type', models.CharField(choices=[('credit', 'Credit/Loan'), ('insurance', 'Insurance'), ('subsidy', 'Subsidy')], max_length=20)),
                ('provider', models.CharField(max_length=150)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('status', models.CharField(choices=[('applied', 'Applied'), ('approved', 'Approved'), ('disbursed', 'Disbursed'), ('rejected', 'Rejected'), ('completed', 'Completed')], default='applied', max_length=20)),
                ('application_date', models.DateField()),
                ('approval_date', models.DateField(blank=True, null=True)),
                ('performance_score', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('farmer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='credit_facilities', to='dashboard.profile')),
            ],
            options={
                'db_table': 'credit_facilities',
                'verbose_name_plural': 'Credit Facilities',
            },
        ),
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('district', models.CharField(blank=True, default='', max_length=100, verbose_name='District')),
                ('state', models.CharField(blank=True, default='', max_length=100, verbose_name='State')),
                ('name', models.CharField(max_length=150)),
                ('capacity_tonnes', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Capacity (t)')),
                ('current_utilization_tonnes', models.DecimalField(decimal_places=2, default=0, max_digits=12, verbose_name='Utilization (t)')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('maintenance', 'Maintenance')], default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('operator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='warehouses', to='dashboard.profile')),
            ],
            options={
                'db_table': 'warehouses',
            },
        ),
        migrations.CreateModel(
            name='InventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('crop_type', models.CharField(choices=CROP_TYPES, max_length=30)),
                ('quantity_kg', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Quantity (kg)')),
                ('quality_grade', models.CharField(blank=True, max_length=10, null=True)),
                ('procurement_date', models.DateField()),
                ('status', models.CharField(choices=[('procured', 'Procured'), ('stored', 'Stored'), ('in_transit', 'In Transit'), ('processed', 'Processed'), ('sold', 'Sold')], default='procured', max_length=20)),
                ('price_per_kg', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Price (₹/kg)')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('crop', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_items', to='dashboard.crop')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to='dashboard.profile')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_items', to='dashboard.warehouse')),
            ],
            options={
                'db_table': 'inventory',
            },
        ),
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_location', models.CharField(max_length=150)),
                ('to_location', models.CharField(max_length=150)),
                ('vehicle_number', models.CharField(blank=True, max_length=20, null=True)),
                ('dispatch_date', models.DateTimeField()),
                ('expected_arrival', models.DateTimeField()),
                ('actual_arrival', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('delayed', 'Delayed')], default='scheduled', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('inventory', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shipments', to='dashboard.inventoryitem')),
                ('transporter', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='shipments', to='dashboard.profile')),
            ],
            options={
                'db_table': 'logistics',
            },
        ),
    ]
