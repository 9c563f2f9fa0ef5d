"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- API client (the inventory API is open)
- Vehicles with a movement ledger
- Storage settings pointed at a temporary directory / a mocked bucket
"""
import pytest
from datetime import datetime, timezone as dt_timezone
from rest_framework.test import APIClient

from apps.vehicles.models import Movement, MovementTypeChoices, Vehicle, VehicleStatusChoices


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """DRF API client."""
    return APIClient()


# ============================================================================
# Storage
# ============================================================================

@pytest.fixture
def local_storage(settings, tmp_path):
    """Attachments written to a temporary MEDIA_ROOT."""
    settings.ATTACHMENT_STORAGE = 'local'
    settings.MEDIA_ROOT = tmp_path / 'media'
    return settings.MEDIA_ROOT


@pytest.fixture
def minio_storage(settings):
    """Attachments pushed to a bucket (tests patch the minio client calls)."""
    settings.ATTACHMENT_STORAGE = 'minio'
    settings.MINIO_PUBLIC_URL = 'http://files.yard.test'
    settings.MINIO_ATTACHMENTS_BUCKET = 'yard-attachments'
    return settings


# ============================================================================
# Model Instances
# ============================================================================

def aware(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=dt_timezone.utc)


@pytest.fixture
def vehicle(db):
    """Toyota Corolla in bond with IN 3 / OUT 1 (on hand 2)."""
    vehicle = Vehicle.objects.create(
        vin='JTDBR32E720123456',
        stock_no='STK-001',
        make='Toyota',
        model='Corolla',
        year=2020,
        color='White',
        location='A-12',
        status=VehicleStatusChoices.IN_BOND,
        supplier='Pacific Motors',
        buyer='',
        in_date=aware(2024, 5, 1),
        notes='Arrived by vessel',
    )
    Movement.objects.create(
        vehicle=vehicle,
        type=MovementTypeChoices.INWARD,
        date=aware(2024, 5, 1),
        qty='3',
        notes='Initial stock',
    )
    Movement.objects.create(
        vehicle=vehicle,
        type=MovementTypeChoices.OUTWARD,
        date=aware(2024, 5, 3),
        qty='1',
        notes='Released to buyer',
    )
    return vehicle


@pytest.fixture
def other_vehicle(db):
    """Honda Civic on hold, no year, no movements."""
    return Vehicle.objects.create(
        vin='2HGFC2F59LH000001',
        stock_no='STK-002',
        make='Honda',
        model='Civic',
        color='Red',
        location='B-04',
        status=VehicleStatusChoices.HOLD,
        supplier='Osaka Auto Export',
        buyer='Lee Traders',
    )
