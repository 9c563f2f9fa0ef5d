"""
Vehicle inventory models: vehicles, movements, attachments.

On-hand quantity is never stored; it is folded from the movement
ledger on read (see services.on_hand).
"""
import uuid
from django.db import models
from django.utils.translation import gettext_lazy as _


class VehicleStatusChoices(models.TextChoices):
    """Customs status of a vehicle in the yard."""
    IN_BOND = 'In Bond', _('In Bond')
    RELEASED = 'Released', _('Released')
    SOLD = 'Sold', _('Sold')
    HOLD = 'Hold', _('Hold')


class MovementTypeChoices(models.TextChoices):
    """Ledger entry direction."""
    INWARD = 'INWARD', _('Inward')
    OUTWARD = 'OUTWARD', _('Outward')


class Vehicle(models.Model):
    """
    A vehicle held in the bond yard.

    Owns its movements and attachments; deleting a vehicle cascades.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Identification
    vin = models.CharField(_('VIN'), max_length=64)
    stock_no = models.CharField(_('Stock #'), max_length=64, blank=True, default='')

    # Description
    make = models.CharField(_('Make'), max_length=100, blank=True, default='')
    model = models.CharField(_('Model'), max_length=100, blank=True, default='')
    year = models.PositiveIntegerField(_('Year'), null=True, blank=True)
    color = models.CharField(_('Color'), max_length=50, blank=True, default='')
    location = models.CharField(
        _('Location'),
        max_length=100,
        blank=True,
        default='',
        help_text=_('Yard/Slot')
    )

    status = models.CharField(
        _('Status'),
        max_length=20,
        choices=VehicleStatusChoices.choices,
        default=VehicleStatusChoices.IN_BOND
    )

    # Parties
    supplier = models.CharField(_('Supplier'), max_length=255, blank=True, default='')
    buyer = models.CharField(_('Buyer'), max_length=255, blank=True, default='')

    in_date = models.DateTimeField(_('In Date'), null=True, blank=True)
    out_date = models.DateTimeField(_('Out Date'), null=True, blank=True)
    notes = models.TextField(_('Notes'), blank=True, default='')

    created_at = models.DateTimeField(_('Created At'), auto_now_add=True)
    updated_at = models.DateTimeField(_('Updated At'), auto_now=True)

    class Meta:
        db_table = 'vehicles'
        ordering = ['-created_at']
        verbose_name = _('Vehicle')
        verbose_name_plural = _('Vehicles')
        indexes = [
            models.Index(fields=['vin'], name='idx_vehicle_vin'),
            models.Index(fields=['stock_no'], name='idx_vehicle_stock_no'),
            models.Index(fields=['status'], name='idx_vehicle_status'),
            models.Index(fields=['-created_at'], name='idx_vehicle_created'),
        ]

    def __str__(self):
        label = ' '.join(str(part) for part in (self.year, self.make, self.model) if part)
        return f"{label or 'Vehicle'} ({self.vin})"


class Movement(models.Model):
    """
    A single inward or outward stock transaction on a vehicle's ledger.

    qty is kept as entered (text); it is parsed as a number only when
    the ledger is aggregated.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vehicle = models.ForeignKey(
        Vehicle,
        on_delete=models.CASCADE,
        related_name='movements',
        verbose_name=_('Vehicle')
    )
    type = models.CharField(
        _('Type'),
        max_length=10,
        choices=MovementTypeChoices.choices
    )
    date = models.DateTimeField(_('Date'))
    qty = models.CharField(_('Quantity'), max_length=32, default='1')
    notes = models.TextField(_('Notes'), blank=True, default='')

    created_at = models.DateTimeField(_('Created At'), auto_now_add=True)

    class Meta:
        db_table = 'movements'
        ordering = ['date', 'created_at']
        verbose_name = _('Movement')
        verbose_name_plural = _('Movements')
        indexes = [
            models.Index(fields=['vehicle', 'date'], name='idx_movement_vehicle_date'),
        ]

    def __str__(self):
        return f"{self.type} {self.qty} - {self.vehicle.vin}"

    @property
    def is_inward(self):
        return self.type == MovementTypeChoices.INWARD


class Attachment(models.Model):
    """
    A document or photo attached to a vehicle.

    storage_backend/object_key locate the stored file so it can be
    removed; url is what clients open.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vehicle = models.ForeignKey(
        Vehicle,
        on_delete=models.CASCADE,
        related_name='attachments',
        verbose_name=_('Vehicle')
    )
    name = models.CharField(_('Filename'), max_length=255)
    mime = models.CharField(_('MIME Type'), max_length=128, blank=True, default='')
    size = models.BigIntegerField(_('Size (bytes)'), default=0)
    url = models.CharField(_('URL'), max_length=1024)

    storage_backend = models.CharField(_('Storage Backend'), max_length=16)
    object_key = models.CharField(
        _('Object Key'),
        max_length=512,
        help_text=_('Path under MEDIA_ROOT or key within the bucket')
    )

    created_at = models.DateTimeField(_('Created At'), auto_now_add=True)

    class Meta:
        db_table = 'attachments'
        ordering = ['created_at']
        verbose_name = _('Attachment')
        verbose_name_plural = _('Attachments')
        indexes = [
            models.Index(fields=['vehicle', 'created_at'], name='idx_attachment_vehicle'),
        ]

    def __str__(self):
        return self.name
