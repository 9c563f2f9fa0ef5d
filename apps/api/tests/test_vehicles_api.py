"""
Tests for the Vehicles API.

Endpoints tested:
- GET/POST /api/vehicles
- GET/PUT/PATCH/DELETE /api/vehicles/{id}
- POST /api/vehicles/{id}/movements
- DELETE /api/vehicles/{id}/movements/{mid}
- GET /api/vehicles/export

Business Rules:
- camelCase JSON; totals (totalIn/totalOut/onHand) derived on every read
- Lists are plain arrays, newest first
- A movements list on update replaces the ledger; omitting it keeps it
- Unknown ids are 404 {"error": ...}
"""
import uuid
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.vehicles.models import Movement, Vehicle


@pytest.mark.django_db
class TestVehicleList:
    """Test GET /api/vehicles"""

    def test_list_returns_plain_array(self, api_client, vehicle):
        response = api_client.get('/api/vehicles')

        assert response.status_code == 200
        assert isinstance(response.data, list)
        assert len(response.data) == 1

        item = response.data[0]
        assert item['vin'] == vehicle.vin
        assert item['stockNo'] == 'STK-001'
        assert item['year'] == 2020
        assert item['totalIn'] == 3
        assert item['totalOut'] == 1
        assert item['onHand'] == 2
        assert len(item['movements']) == 2
        assert item['attachments'] == []

    def test_list_newest_first(self, api_client, vehicle, other_vehicle):
        Vehicle.objects.filter(id=vehicle.id).update(created_at=timezone.now() - timedelta(days=1))

        response = api_client.get('/api/vehicles')

        assert [v['vin'] for v in response.data] == [other_vehicle.vin, vehicle.vin]

    def test_list_search_and_status(self, api_client, vehicle, other_vehicle):
        response = api_client.get('/api/vehicles', {'q': 'Toyota Corolla'})
        assert [v['vin'] for v in response.data] == [vehicle.vin]

        response = api_client.get('/api/vehicles', {'status': 'Hold'})
        assert [v['vin'] for v in response.data] == [other_vehicle.vin]

        response = api_client.get('/api/vehicles', {'q': '', 'status': 'ALL'})
        assert len(response.data) == 2


@pytest.mark.django_db
class TestVehicleCreate:
    """Test POST /api/vehicles"""

    def test_create_seeds_initial_stock(self, api_client):
        payload = {
            'vin': 'WVWZZZ1JZXW000001',
            'stockNo': 'STK-100',
            'make': 'Volkswagen',
            'model': 'Golf',
            'year': '2019',
            'status': 'In Bond',
            'inDate': '2024-05-01T00:00:00.000Z',
            'movements': [],
        }

        response = api_client.post('/api/vehicles', payload, format='json')

        assert response.status_code == 201
        assert response.data['id']
        assert response.data['year'] == 2019
        assert response.data['onHand'] == 1
        assert len(response.data['movements']) == 1
        movement = response.data['movements'][0]
        assert movement['type'] == 'INWARD'
        assert movement['qty'] == '1'
        assert movement['notes'] == 'Initial stock'
        assert movement['date'].startswith('2024-05-01T00:00:00')

    def test_create_with_movements(self, api_client):
        payload = {
            'vin': 'VIN-2',
            'movements': [
                {'id': 'client-side-id', 'type': 'INWARD', 'date': '2024-05-01T00:00:00Z', 'qty': 4, 'notes': ''},
                {'type': 'OUTWARD', 'date': '2024-05-02T00:00:00Z', 'qty': '1.5', 'notes': 'Partial'},
            ],
        }

        response = api_client.post('/api/vehicles', payload, format='json')

        assert response.status_code == 201
        assert response.data['totalIn'] == 4
        assert response.data['totalOut'] == 1.5
        assert response.data['onHand'] == 2.5
        ids = [m['id'] for m in response.data['movements']]
        assert 'client-side-id' not in ids

    def test_blank_year_and_dates_become_null(self, api_client):
        payload = {'vin': 'VIN-3', 'year': '', 'inDate': '', 'outDate': None}

        response = api_client.post('/api/vehicles', payload, format='json')

        assert response.status_code == 201
        assert response.data['year'] is None
        assert response.data['inDate'] is None
        assert response.data['outDate'] is None

    def test_missing_vin_rejected(self, api_client):
        response = api_client.post('/api/vehicles', {'make': 'Ford'}, format='json')

        assert response.status_code == 400
        assert 'vin' in response.data

    def test_unknown_status_rejected(self, api_client):
        response = api_client.post('/api/vehicles', {'vin': 'X', 'status': 'Lost'}, format='json')

        assert response.status_code == 400
        assert 'status' in response.data

    def test_non_numeric_qty_rejected(self, api_client):
        payload = {'vin': 'X', 'movements': [{'type': 'INWARD', 'qty': 'lots'}]}

        response = api_client.post('/api/vehicles', payload, format='json')

        assert response.status_code == 400
        assert 'movements' in response.data
        assert not Vehicle.objects.exists()

    def test_unknown_movement_type_rejected(self, api_client):
        payload = {'vin': 'X', 'movements': [{'type': 'SIDEWAYS', 'qty': '1'}]}

        response = api_client.post('/api/vehicles', payload, format='json')

        assert response.status_code == 400


@pytest.mark.django_db
class TestVehicleDetail:
    """Test GET/PUT/PATCH/DELETE /api/vehicles/{id}"""

    def test_retrieve(self, api_client, vehicle):
        response = api_client.get(f'/api/vehicles/{vehicle.id}')

        assert response.status_code == 200
        assert response.data['id'] == str(vehicle.id)
        assert response.data['onHand'] == 2
        assert 'createdAt' in response.data
        assert 'updatedAt' in response.data

    def test_unknown_id_is_404(self, api_client, db):
        response = api_client.get(f'/api/vehicles/{uuid.uuid4()}')

        assert response.status_code == 404
        assert 'error' in response.data

    def test_malformed_id_is_404(self, api_client, db):
        response = api_client.get('/api/vehicles/not-a-uuid')

        assert response.status_code == 404
        assert 'error' in response.data

    def test_put_replaces_ledger(self, api_client, vehicle):
        old_ids = set(str(i) for i in vehicle.movements.values_list('id', flat=True))
        payload = {
            'vin': vehicle.vin,
            'status': 'Released',
            'movements': [
                {'type': 'INWARD', 'date': '2024-05-01T00:00:00Z', 'qty': '1', 'notes': ''},
            ],
            'attachments': [{'name': 'ignored.pdf'}],
        }

        response = api_client.put(f'/api/vehicles/{vehicle.id}', payload, format='json')

        assert response.status_code == 200
        assert response.data['status'] == 'Released'
        assert response.data['onHand'] == 1
        assert len(response.data['movements']) == 1
        assert not old_ids & {m['id'] for m in response.data['movements']}
        assert Movement.objects.filter(vehicle=vehicle).count() == 1
        assert vehicle.attachments.count() == 0

    def test_put_empty_movements_clears_ledger(self, api_client, vehicle):
        payload = {'vin': vehicle.vin, 'movements': []}

        response = api_client.put(f'/api/vehicles/{vehicle.id}', payload, format='json')

        assert response.status_code == 200
        assert response.data['movements'] == []
        assert response.data['onHand'] == 0

    def test_patch_without_movements_keeps_ledger(self, api_client, vehicle):
        response = api_client.patch(
            f'/api/vehicles/{vehicle.id}', {'location': 'C-09'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['location'] == 'C-09'
        assert response.data['onHand'] == 2
        assert len(response.data['movements']) == 2

    def test_delete_cascades(self, api_client, vehicle, local_storage):
        vehicle_id = vehicle.id

        response = api_client.delete(f'/api/vehicles/{vehicle_id}')

        assert response.status_code == 204
        assert not Vehicle.objects.filter(id=vehicle_id).exists()
        assert not Movement.objects.filter(vehicle_id=vehicle_id).exists()


@pytest.mark.django_db
class TestMovementRoutes:
    """Test /api/vehicles/{id}/movements"""

    def test_add_movement_returns_vehicle(self, api_client, vehicle):
        payload = {'type': 'OUTWARD', 'date': '2024-05-05T10:00:00Z', 'qty': '2', 'notes': 'Sold'}

        response = api_client.post(f'/api/vehicles/{vehicle.id}/movements', payload, format='json')

        assert response.status_code == 201
        assert response.data['id'] == str(vehicle.id)
        assert response.data['totalOut'] == 3
        assert response.data['onHand'] == 0
        assert len(response.data['movements']) == 3

    def test_add_movement_validates(self, api_client, vehicle):
        response = api_client.post(
            f'/api/vehicles/{vehicle.id}/movements', {'type': 'INWARD', 'qty': 'x'}, format='json'
        )

        assert response.status_code == 400
        assert 'qty' in response.data

    def test_add_movement_rejects_huge_qty(self, api_client, vehicle):
        response = api_client.post(
            f'/api/vehicles/{vehicle.id}/movements', {'type': 'INWARD', 'qty': '1e5000'}, format='json'
        )

        assert response.status_code == 400
        assert 'qty' in response.data
        assert vehicle.movements.count() == 2

    def test_stored_huge_qty_stays_readable(self, api_client, vehicle):
        Movement.objects.create(
            vehicle=vehicle, type='INWARD', date=timezone.now(), qty='1e5000', notes='Legacy'
        )

        response = api_client.get('/api/vehicles')

        assert response.status_code == 200
        assert response.data[0]['onHand'] == 2
        assert api_client.get('/api/vehicles/export').status_code == 200

    def test_remove_movement_returns_vehicle(self, api_client, vehicle):
        outward = vehicle.movements.get(type='OUTWARD')

        response = api_client.delete(f'/api/vehicles/{vehicle.id}/movements/{outward.id}')

        assert response.status_code == 200
        assert response.data['onHand'] == 3
        assert not Movement.objects.filter(id=outward.id).exists()

    def test_remove_unknown_movement_is_404(self, api_client, vehicle):
        response = api_client.delete(f'/api/vehicles/{vehicle.id}/movements/{uuid.uuid4()}')

        assert response.status_code == 404
        assert response.data == {'error': 'Movement not found'}

    def test_cannot_remove_other_vehicles_movement(self, api_client, vehicle, other_vehicle):
        outward = vehicle.movements.get(type='OUTWARD')

        response = api_client.delete(f'/api/vehicles/{other_vehicle.id}/movements/{outward.id}')

        assert response.status_code == 404
        assert Movement.objects.filter(id=outward.id).exists()


@pytest.mark.django_db
class TestExport:
    """Test GET /api/vehicles/export"""

    def test_export_csv(self, api_client, vehicle):
        Vehicle.objects.filter(id=vehicle.id).update(notes='Line one\nSaid "hello"')

        response = api_client.get('/api/vehicles/export')

        assert response.status_code == 200
        assert response['Content-Type'].startswith('text/csv')
        assert 'attachment; filename="bondyard_inventory_' in response['Content-Disposition']

        lines = response.content.decode('utf-8').splitlines()
        assert lines[0] == (
            '"VIN","StockNo","Make","Model","Year","Color","Location","Status",'
            '"Supplier","Buyer","InDate","OutDate","Notes","OnHand"'
        )
        assert len(lines) == 2
        assert lines[1].startswith('"JTDBR32E720123456","STK-001","Toyota","Corolla","2020"')
        assert '"Line one Said ""hello"""' in lines[1]
        assert lines[1].endswith('"2"')

    def test_export_ignores_json_accept_header(self, api_client, vehicle):
        response = api_client.get('/api/vehicles/export', HTTP_ACCEPT='application/json')

        assert response.status_code == 200
        assert response['Content-Type'].startswith('text/csv')
        assert response.content.decode('utf-8').startswith('"VIN",')

    def test_export_accepts_csv_header(self, api_client, vehicle):
        response = api_client.get('/api/vehicles/export', HTTP_ACCEPT='text/csv')

        assert response.status_code == 200

    def test_export_honors_filters(self, api_client, vehicle, other_vehicle):
        response = api_client.get('/api/vehicles/export', {'status': 'Hold'})

        lines = response.content.decode('utf-8').splitlines()
        assert len(lines) == 2
        assert lines[1].startswith(f'"{other_vehicle.vin}"')


@pytest.mark.django_db
class TestExportCommand:
    """Test manage.py export_vehicles_csv"""

    def test_writes_csv_to_stdout(self, vehicle, other_vehicle):
        out = StringIO()

        call_command('export_vehicles_csv', '--q', 'corolla', stdout=out, stderr=StringIO())

        lines = out.getvalue().splitlines()
        assert lines[0].startswith('"VIN","StockNo"')
        assert len(lines) == 2
        assert lines[1].startswith(f'"{vehicle.vin}"')

    def test_writes_csv_to_file(self, vehicle, tmp_path):
        target = tmp_path / 'inventory.csv'

        call_command('export_vehicles_csv', '--output', str(target), stdout=StringIO(), stderr=StringIO())

        assert target.read_text(encoding='utf-8').count('\n') == 2
