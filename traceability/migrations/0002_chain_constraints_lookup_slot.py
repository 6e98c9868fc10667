import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('dashboard', '0001_initial'),
        ('traceability', '0001_initial'),
    ]

    operations = [
        migrations.AddConstraint(
            model_name='traceabilityrecord',
            constraint=models.UniqueConstraint(
                condition=models.Q(previous_hash__isnull=True),
                fields=('batch_id',),
                name='traceability_single_genesis',
            ),
        ),
        migrations.AddConstraint(
            model_name='traceabilityrecord',
            constraint=models.UniqueConstraint(
                fields=('batch_id', 'previous_hash'),
                name='traceability_single_successor',
            ),
        ),
        migrations.CreateModel(
            name='LookupSlot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('issued', models.PositiveIntegerField(default=0)),
                ('applied', models.PositiveIntegerField(default=0)),
                ('current', models.JSONField(blank=True, null=True)),
                ('last_error', models.JSONField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('profile', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='lookup_slot', to='dashboard.profile')),
            ],
            options={
                'db_table': 'traceability_lookup_slots',
            },
        ),
    ]
