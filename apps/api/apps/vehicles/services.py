"""
Vehicle inventory services - business logic for the yard ledger.

- On-hand quantity folded from movements (never persisted)
- Full-replace movement sync on vehicle update
- Case-insensitive search across identifying fields
- Attachment store/remove through the configured storage backend
- CSV export
"""
import csv
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Case, CharField, Q, Value, When
from django.db.models.functions import Cast, Concat
from django.utils import timezone

from apps.core.observability import log_domain_event, metrics
from .models import Attachment, Movement, MovementTypeChoices, Vehicle
from .storage import (
    AttachmentStorageError,
    generate_object_key,
    get_attachment_storage,
)


ZERO = Decimal('0')

# Order matters: adjacent fields are joined with a space, so a query
# such as "toyota corolla" matches make + model.
SEARCH_FIELDS = ['vin', 'stock_no', 'make', 'model', 'year', 'color', 'location', 'supplier', 'buyer']

ALL_STATUSES = 'ALL'

# Quantities with more digits than this either side of the point are
# rejected on input and count as 0 when read back.
MAX_QTY_EXPONENT = 15

INITIAL_STOCK_QTY = '1'
INITIAL_STOCK_NOTES = 'Initial stock'

CSV_HEADERS = [
    'VIN', 'StockNo', 'Make', 'Model', 'Year', 'Color', 'Location', 'Status',
    'Supplier', 'Buyer', 'InDate', 'OutDate', 'Notes', 'OnHand',
]


# ============================================================================
# Ledger math
# ============================================================================

def quantity_in_range(value: Decimal) -> bool:
    return value.is_finite() and (not value or abs(value.adjusted()) <= MAX_QTY_EXPONENT)


def parse_quantity(raw) -> Decimal:
    """
    Parse a stored movement quantity.

    Blank, missing, non-numeric or out-of-range text counts as 0.
    """
    if raw is None:
        return ZERO
    text = str(raw).strip()
    if not text:
        return ZERO
    try:
        value = Decimal(text)
    except InvalidOperation:
        return ZERO
    if not quantity_in_range(value):
        return ZERO
    return value


def ledger_totals(movements: Iterable[Movement]) -> Tuple[Decimal, Decimal]:
    """Return (total_in, total_out) for a list of movements."""
    total_in = ZERO
    total_out = ZERO
    for movement in movements:
        qty = parse_quantity(movement.qty)
        if movement.type == MovementTypeChoices.INWARD:
            total_in += qty
        elif movement.type == MovementTypeChoices.OUTWARD:
            total_out += qty
    return total_in, total_out


def on_hand(movements: Iterable[Movement]) -> Decimal:
    """On hand = sum(INWARD.qty) - sum(OUTWARD.qty). Zero movements gives 0."""
    total_in, total_out = ledger_totals(movements)
    return total_in - total_out


def as_number(value: Decimal):
    """Render a Decimal as int when integral, float otherwise (for JSON/CSV)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ============================================================================
# Vehicles & movements
# ============================================================================

def _build_movements(vehicle: Vehicle, movements_data: Iterable[dict]) -> List[Movement]:
    now = timezone.now()
    return [
        Movement(
            vehicle=vehicle,
            type=data['type'],
            date=data.get('date') or now,
            qty=data.get('qty', INITIAL_STOCK_QTY),
            notes=data.get('notes') or '',
        )
        for data in movements_data
    ]


def _record_movement_metrics(movements: Iterable[Movement]):
    for movement in movements:
        metrics.movements_recorded_total.labels(movement_type=movement.type).inc()


@metrics.track_duration(metrics.movements_sync_duration_seconds)
@transaction.atomic
def sync_movements(vehicle: Vehicle, movements_data: Iterable[dict]) -> List[Movement]:
    """
    Replace a vehicle's whole ledger with `movements_data`.

    Every existing row is deleted and the replacement set is inserted as
    given. No diffing; client-side movement ids are not reused.
    """
    removed_count, _ = Movement.objects.filter(vehicle=vehicle).delete()
    created = Movement.objects.bulk_create(_build_movements(vehicle, movements_data))

    _record_movement_metrics(created)
    log_domain_event(
        'movements_synced',
        entity_type='Vehicle',
        entity_id=str(vehicle.id),
        removed_count=removed_count,
        inserted_count=len(created),
    )
    return created


@transaction.atomic
def create_vehicle(data: dict, movements: Optional[List[dict]] = None) -> Vehicle:
    """
    Create a vehicle and its initial ledger.

    With no movements and BONDYARD_SEED_INITIAL_MOVEMENT on, one INWARD
    "Initial stock" movement of qty 1 is recorded at the vehicle's in_date.
    """
    vehicle = Vehicle.objects.create(**data)

    if movements:
        created = Movement.objects.bulk_create(_build_movements(vehicle, movements))
    elif settings.BONDYARD_SEED_INITIAL_MOVEMENT:
        created = [
            Movement.objects.create(
                vehicle=vehicle,
                type=MovementTypeChoices.INWARD,
                date=vehicle.in_date or timezone.now(),
                qty=INITIAL_STOCK_QTY,
                notes=INITIAL_STOCK_NOTES,
            )
        ]
    else:
        created = []

    _record_movement_metrics(created)
    metrics.vehicles_mutations_total.labels(action='create').inc()
    log_domain_event(
        'vehicle_created',
        entity_type='Vehicle',
        entity_id=str(vehicle.id),
        status=vehicle.status,
        movements_count=len(created),
    )
    return vehicle


@transaction.atomic
def update_vehicle(vehicle: Vehicle, data: dict, movements: Optional[List[dict]] = None) -> Vehicle:
    """
    Overwrite vehicle fields (last write wins).

    A `movements` list, even an empty one, replaces the ledger; None
    leaves existing movements untouched.
    """
    for field, value in data.items():
        setattr(vehicle, field, value)
    vehicle.save()

    if movements is not None:
        sync_movements(vehicle, movements)

    metrics.vehicles_mutations_total.labels(action='update').inc()
    log_domain_event(
        'vehicle_updated',
        entity_type='Vehicle',
        entity_id=str(vehicle.id),
        fields=sorted(data),
        movements_replaced=movements is not None,
    )
    return vehicle


def _touch(vehicle: Vehicle):
    vehicle.save(update_fields=['updated_at'])


@transaction.atomic
def add_movement(vehicle: Vehicle, data: dict) -> Movement:
    """Append one movement to the vehicle's ledger."""
    movement = _build_movements(vehicle, [data])[0]
    movement.save()
    _touch(vehicle)

    _record_movement_metrics([movement])
    log_domain_event(
        'movement_added',
        entity_type='Movement',
        entity_id=str(movement.id),
        entity_ids={'vehicle_id': str(vehicle.id)},
        movement_type=movement.type,
        qty=movement.qty,
    )
    return movement


@transaction.atomic
def remove_movement(vehicle: Vehicle, movement: Movement) -> None:
    movement_id = str(movement.id)
    movement.delete()
    _touch(vehicle)

    log_domain_event(
        'movement_removed',
        entity_type='Movement',
        entity_id=movement_id,
        entity_ids={'vehicle_id': str(vehicle.id)},
    )


def delete_vehicle(vehicle: Vehicle) -> None:
    """
    Delete a vehicle; movements and attachments cascade in the database.

    Stored attachment files are removed afterwards. A file that cannot be
    removed is logged and left behind.
    """
    vehicle_id = str(vehicle.id)
    stored = list(vehicle.attachments.values_list('storage_backend', 'object_key'))

    with transaction.atomic():
        vehicle.delete()

    for backend, key in stored:
        _discard_stored_file(backend, key, vehicle_id)

    metrics.vehicles_mutations_total.labels(action='delete').inc()
    log_domain_event(
        'vehicle_deleted',
        entity_type='Vehicle',
        entity_id=vehicle_id,
        attachments_count=len(stored),
    )


# ============================================================================
# Search
# ============================================================================

def _search_part(field: str):
    """' <value>' for a filled field, '' for a blank one."""
    if field == 'year':
        return Case(
            When(year__isnull=True, then=Value('')),
            default=Concat(Value(' '), Cast('year', CharField())),
            output_field=CharField(),
        )
    return Case(
        When(Q(**{f'{field}__isnull': True}) | Q(**{field: ''}), then=Value('')),
        default=Concat(Value(' '), field),
        output_field=CharField(),
    )


def search_vehicles(queryset, query: str = '', status: str = ''):
    """
    Filter vehicles by free text and status.

    The query is trimmed and matched case-insensitively as a substring of
    the space-joined non-blank identifying fields. An empty query matches
    everything. Status 'ALL' or blank means no status filter.
    """
    if status and status != ALL_STATUSES:
        queryset = queryset.filter(status=status)

    text = (query or '').strip()
    if not text:
        return queryset

    haystack = Concat(*[_search_part(field) for field in SEARCH_FIELDS], output_field=CharField())
    return queryset.annotate(search_text=haystack).filter(search_text__icontains=text)


# ============================================================================
# Attachments
# ============================================================================

def _discard_stored_file(backend: str, key: str, vehicle_id: str) -> None:
    try:
        get_attachment_storage(backend).delete(key)
    except AttachmentStorageError as e:
        log_domain_event(
            'attachment_file_orphaned',
            entity_type='Attachment',
            entity_ids={'vehicle_id': vehicle_id},
            result='warning',
            storage_backend=backend,
            object_key=key,
            error=str(e),
        )


def store_attachments(vehicle: Vehicle, files) -> List[Attachment]:
    """
    Store uploaded files with the configured backend and record them.

    All or nothing: if any file or row fails, rows from this call are rolled
    back, files already stored are removed, and the error propagates
    (AttachmentStorageError when the backend is at fault).
    """
    storage = get_attachment_storage()
    stored = []

    try:
        with transaction.atomic():
            attachments = []
            for upload in files:
                key = generate_object_key(f'attachments/{vehicle.id}', upload.name)
                stored_file = storage.save(key, upload, upload.content_type or '')
                stored.append(stored_file)

                attachments.append(Attachment.objects.create(
                    vehicle=vehicle,
                    name=upload.name,
                    mime=upload.content_type or '',
                    size=upload.size,
                    url=stored_file.url,
                    storage_backend=stored_file.backend,
                    object_key=stored_file.key,
                ))
            _touch(vehicle)
    except Exception as e:
        for stored_file in stored:
            _discard_stored_file(stored_file.backend, stored_file.key, str(vehicle.id))
        metrics.attachments_stored_total.labels(backend=storage.backend, result='failure').inc()
        log_domain_event(
            'attachment_store_failed',
            entity_type='Vehicle',
            entity_id=str(vehicle.id),
            result='failure',
            storage_backend=storage.backend,
            error=str(e),
        )
        raise

    for attachment in attachments:
        metrics.attachments_stored_total.labels(backend=storage.backend, result='success').inc()
        log_domain_event(
            'attachment_stored',
            entity_type='Attachment',
            entity_id=str(attachment.id),
            entity_ids={'vehicle_id': str(vehicle.id)},
            storage_backend=attachment.storage_backend,
            size=attachment.size,
        )
    return attachments


def remove_attachment(vehicle: Vehicle, attachment: Attachment) -> None:
    """Delete the attachment row, then its stored file."""
    attachment_id = str(attachment.id)
    backend, key = attachment.storage_backend, attachment.object_key

    with transaction.atomic():
        attachment.delete()
        _touch(vehicle)

    _discard_stored_file(backend, key, str(vehicle.id))
    log_domain_event(
        'attachment_removed',
        entity_type='Attachment',
        entity_id=attachment_id,
        entity_ids={'vehicle_id': str(vehicle.id)},
    )


# ============================================================================
# CSV export
# ============================================================================

def _csv_value(value):
    if value is None:
        return ''
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


def export_csv(vehicles: Iterable[Vehicle], stream) -> int:
    """
    Write the inventory as CSV to `stream`; every cell is quoted.

    Returns the number of vehicle rows written.
    """
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(CSV_HEADERS)

    count = 0
    for vehicle in vehicles:
        notes = (vehicle.notes or '').replace('\r\n', ' ').replace('\n', ' ')
        writer.writerow([
            _csv_value(value) for value in (
                vehicle.vin, vehicle.stock_no, vehicle.make, vehicle.model,
                vehicle.year, vehicle.color, vehicle.location, vehicle.status,
                vehicle.supplier, vehicle.buyer, vehicle.in_date, vehicle.out_date,
                notes, as_number(on_hand(vehicle.movements.all())),
            )
        ])
        count += 1
    return count
