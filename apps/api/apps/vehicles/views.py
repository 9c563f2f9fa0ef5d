"""
Vehicle inventory REST API.

Endpoints (no trailing slashes):
- GET/POST /api/vehicles                         - List (?q=&status=) / create
- GET/PUT/PATCH/DELETE /api/vehicles/{id}        - Retrieve / update / delete
- POST /api/vehicles/{id}/movements              - Append a movement
- DELETE /api/vehicles/{id}/movements/{mid}      - Remove a movement
- POST /api/vehicles/{id}/attachments            - Upload files (multipart "files")
- DELETE /api/vehicles/{id}/attachments/{aid}    - Remove an attachment
- GET /api/vehicles/export                       - CSV export (?q=&status=)
"""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.renderers import BaseRenderer, JSONRenderer
from rest_framework.response import Response

from . import services
from .models import Attachment, Movement, Vehicle
from .serializers import AttachmentSerializer, MovementSerializer, VehicleSerializer
from .storage import AttachmentStorageError


class CSVRenderer(BaseRenderer):
    """Lets clients ask for text/csv; the export view builds its own response."""
    media_type = 'text/csv'
    format = 'csv'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        return data


class VehicleViewSet(viewsets.ModelViewSet):
    """
    Vehicles with their movement ledger and attachments.

    Lists are plain arrays (no pagination), newest first.
    """
    serializer_class = VehicleSerializer
    pagination_class = None

    def get_queryset(self):
        queryset = Vehicle.objects.all().prefetch_related('movements', 'attachments')
        if self.action in ('list', 'export'):
            params = self.request.query_params
            queryset = services.search_vehicles(
                queryset,
                query=params.get('q', ''),
                status=params.get('status', ''),
            )
        return queryset

    def perform_destroy(self, instance):
        services.delete_vehicle(instance)

    def _vehicle_response(self, vehicle_id, status_code=status.HTTP_200_OK):
        vehicle = self.get_queryset().get(pk=vehicle_id)
        return Response(self.get_serializer(vehicle).data, status=status_code)

    @action(detail=True, methods=['post'], url_path='movements')
    def add_movement(self, request, pk=None):
        """
        Append one movement to the ledger.

        POST /api/vehicles/{id}/movements
        {"type": "OUTWARD", "date": "2024-05-02T09:00:00Z", "qty": "1", "notes": "Released"}

        Returns the whole vehicle with recomputed totals (201).
        """
        vehicle = self.get_object()
        serializer = MovementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.add_movement(vehicle, serializer.validated_data)
        return self._vehicle_response(vehicle.pk, status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'movements/(?P<movement_id>[^/.]+)')
    def remove_movement(self, request, pk=None, movement_id=None):
        """Remove one movement; returns the whole vehicle."""
        vehicle = self.get_object()
        try:
            movement = vehicle.movements.get(id=movement_id)
        except (Movement.DoesNotExist, ValidationError):
            return Response(
                {'error': 'Movement not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        services.remove_movement(vehicle, movement)
        return self._vehicle_response(vehicle.pk)

    @action(
        detail=True,
        methods=['post'],
        url_path='attachments',
        parser_classes=[MultiPartParser, FormParser],
    )
    def upload_attachments(self, request, pk=None):
        """
        Upload one or more files.

        Request body (multipart/form-data):
        - files: one or more files (required)

        Returns:
        - 201: list of created attachments
        - 400: no file, or a file over ATTACHMENT_MAX_SIZE_BYTES
        - 502: storage backend failed (nothing is recorded)
        """
        vehicle = self.get_object()
        files = request.FILES.getlist('files') or request.FILES.getlist('file')
        if not files:
            return Response(
                {'error': 'No files provided'},
                status=status.HTTP_400_BAD_REQUEST
            )

        max_size = settings.ATTACHMENT_MAX_SIZE_BYTES
        for upload in files:
            if upload.size > max_size:
                return Response(
                    {'error': f'File {upload.name} exceeds maximum size of {max_size} bytes'},
                    status=status.HTTP_400_BAD_REQUEST
                )

        try:
            attachments = services.store_attachments(vehicle, files)
        except AttachmentStorageError as e:
            return Response(
                {'error': f'Failed to store attachment: {e}'},
                status=status.HTTP_502_BAD_GATEWAY
            )

        return Response(
            AttachmentSerializer(attachments, many=True).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['delete'], url_path=r'attachments/(?P<attachment_id>[^/.]+)')
    def remove_attachment(self, request, pk=None, attachment_id=None):
        vehicle = self.get_object()
        try:
            attachment = vehicle.attachments.get(id=attachment_id)
        except (Attachment.DoesNotExist, ValidationError):
            return Response(
                {'error': 'Attachment not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        services.remove_attachment(vehicle, attachment)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='export', renderer_classes=[JSONRenderer, CSVRenderer])
    def export(self, request):
        """
        Download the (filtered) inventory as CSV.

        The body is CSV whatever the Accept header asks for; errors render as JSON.
        """
        filename = f"bondyard_inventory_{timezone.localdate().isoformat()}.csv"
        response = HttpResponse(content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        services.export_csv(self.get_queryset(), response)
        return response
