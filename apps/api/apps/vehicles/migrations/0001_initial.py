# Initial schema for vehicles, movements and attachments

import uuid
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('vin', models.CharField(max_length=64, verbose_name='VIN')),
                ('stock_no', models.CharField(blank=True, default='', max_length=64, verbose_name='Stock #')),
                ('make', models.CharField(blank=True, default='', max_length=100, verbose_name='Make')),
                ('model', models.CharField(blank=True, default='', max_length=100, verbose_name='Model')),
                ('year', models.PositiveIntegerField(blank=True, null=True, verbose_name='Year')),
                ('color', models.CharField(blank=True, default='', max_length=50, verbose_name='Color')),
                ('location', models.CharField(blank=True, default='', help_text='Yard/Slot', max_length=100, verbose_name='Location')),
                ('status', models.CharField(
                    choices=[('In Bond', 'In Bond'), ('Released', 'Released'), ('Sold', 'Sold'), ('Hold', 'Hold')],
                    default='In Bond',
                    max_length=20,
                    verbose_name='Status'
                )),
                ('supplier', models.CharField(blank=True, default='', max_length=255, verbose_name='Supplier')),
                ('buyer', models.CharField(blank=True, default='', max_length=255, verbose_name='Buyer')),
                ('in_date', models.DateTimeField(blank=True, null=True, verbose_name='In Date')),
                ('out_date', models.DateTimeField(blank=True, null=True, verbose_name='Out Date')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
            ],
            options={
                'verbose_name': 'Vehicle',
                'verbose_name_plural': 'Vehicles',
                'db_table': 'vehicles',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('INWARD', 'Inward'), ('OUTWARD', 'Outward')], max_length=10, verbose_name='Type')),
                ('date', models.DateTimeField(verbose_name='Date')),
                ('qty', models.CharField(default='1', max_length=32, verbose_name='Quantity')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('vehicle', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='movements',
                    to='vehicles.vehicle',
                    verbose_name='Vehicle'
                )),
            ],
            options={
                'verbose_name': 'Movement',
                'verbose_name_plural': 'Movements',
                'db_table': 'movements',
                'ordering': ['date', 'created_at'],
            },
        ),
        migrations.CreateModel(
            name='Attachment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255, verbose_name='Filename')),
                ('mime', models.CharField(blank=True, default='', max_length=128, verbose_name='MIME Type')),
                ('size', models.BigIntegerField(default=0, verbose_name='Size (bytes)')),
                ('url', models.CharField(max_length=1024, verbose_name='URL')),
                ('storage_backend', models.CharField(max_length=16, verbose_name='Storage Backend')),
                ('object_key', models.CharField(help_text='Path under MEDIA_ROOT or key within the bucket', max_length=512, verbose_name='Object Key')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('vehicle', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='attachments',
                    to='vehicles.vehicle',
                    verbose_name='Vehicle'
                )),
            ],
            options={
                'verbose_name': 'Attachment',
                'verbose_name_plural': 'Attachments',
                'db_table': 'attachments',
                'ordering': ['created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='vehicle',
            index=models.Index(fields=['vin'], name='idx_vehicle_vin'),
        ),
        migrations.AddIndex(
            model_name='vehicle',
            index=models.Index(fields=['stock_no'], name='idx_vehicle_stock_no'),
        ),
        migrations.AddIndex(
            model_name='vehicle',
            index=models.Index(fields=['status'], name='idx_vehicle_status'),
        ),
        migrations.AddIndex(
            model_name='vehicle',
            index=models.Index(fields=['-created_at'], name='idx_vehicle_created'),
        ),
        migrations.AddIndex(
            model_name='movement',
            index=models.Index(fields=['vehicle', 'date'], name='idx_movement_vehicle_date'),
        ),
        migrations.AddIndex(
            model_name='attachment',
            index=models.Index(fields=['vehicle', 'created_at'], name='idx_attachment_vehicle'),
        ),
    ]
