import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('dashboard', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TraceabilityRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('district', models.CharField(blank=True, default='', max_length=100, verbose_name='District')),
                ('state', models.CharField(blank=True, default='', max_length=100, verbose_name='State')),
                ('batch_id', models.CharField(db_index=True, max_length=100, verbose_name='Batch ID')),
                ('stage', models.CharField(choices=[('farm', 'Farm'), ('procurement', 'Procurement'), ('storage', 'Storage'), ('processing', 'Processing'), ('retail', 'Retail')], max_length=20, verbose_name='Stage')),
                ('timestamp', models.DateTimeField(verbose_name='Timestamp')),
                ('action', models.TextField(verbose_name='Action')),
                ('hash', models.CharField(max_length=64, verbose_name='Hash (SHA-256)')),
                ('previous_hash', models.CharField(blank=True, max_length=64, null=True, verbose_name='Previous Hash')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='trace_records', to='dashboard.profile', verbose_name='Actor')),
                ('crop', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trace_records', to='dashboard.crop')),
                ('inventory', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trace_records', to='dashboard.inventoryitem')),
            ],
            options={
                'verbose_name': 'Traceability Record',
                'verbose_name_plural': 'Traceability Records',
                'db_table': 'traceability',
                'ordering': ['batch_id', 'timestamp', 'id'],
            },
        ),
    ]
