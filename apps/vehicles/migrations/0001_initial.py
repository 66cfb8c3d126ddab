from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('image_url', models.URLField(max_length=500)),
                ('location', models.CharField(max_length=255)),
                ('available_from', models.DateField(help_text='First day of the availability window (inclusive).')),
                ('available_to', models.DateField(help_text='Last day of the availability window (inclusive).')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vehicles', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Vehicle',
                'verbose_name_plural': 'Vehicles',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['available_from', 'available_to'], name='vehicle_window_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('available_to__gte', models.F('available_from'))), name='vehicle_valid_availability')],
            },
        ),
    ]
