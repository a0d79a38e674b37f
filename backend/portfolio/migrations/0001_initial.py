from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Image',
            fields=[
                ('id', models.CharField(max_length=255, primary_key=True, serialize=False)),
                ('cloudflare_id', models.CharField(max_length=255)),
                ('account_hash', models.CharField(max_length=255)),
                ('focal_point_x', models.DecimalField(decimal_places=4, default=Decimal('0.5'), max_digits=5)),
                ('focal_point_y', models.DecimalField(decimal_places=4, default=Decimal('0.5'), max_digits=5)),
                ('alt', models.TextField(blank=True, default='')),
                ('filename', models.CharField(blank=True, default='', max_length=255)),
                ('width', models.IntegerField(blank=True, null=True)),
                ('height', models.IntegerField(blank=True, null=True)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'images',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.CharField(max_length=255, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('residential', 'Residential'), ('commercial', 'Commercial')], db_index=True, max_length=20)),
                ('short_description', models.TextField(blank=True, default='')),
                ('full_description', models.TextField(blank=True, default='')),
                ('year', models.CharField(blank=True, default='', max_length=50)),
                ('location', models.CharField(blank=True, default='', max_length=255)),
                ('type', models.CharField(blank=True, default='', max_length=255)),
                ('images', models.JSONField(blank=True, default=list)),
                ('rank', models.IntegerField(db_index=True, default=0)),
                ('thumbnail', models.ForeignKey(blank=True, db_column='thumbnail', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='thumbnail_for', to='portfolio.image')),
            ],
            options={
                'db_table': 'projects',
                'ordering': ['rank', 'id'],
            },
        ),
    ]
