"""Vehicle serializers - camelCase JSON over the snake_case models."""
from decimal import Decimal, InvalidOperation

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers
from rest_framework.fields import empty

from . import services
from .models import Attachment, Movement, Vehicle


class BlankAsNullMixin:
    """Treat '' (what HTML forms send for an unset value) as null."""

    def run_validation(self, data=empty):
        if isinstance(data, str) and not data.strip():
            data = None
        return super().run_validation(data)


class BlankableIntegerField(BlankAsNullMixin, serializers.IntegerField):
    pass


class BlankableDateTimeField(BlankAsNullMixin, serializers.DateTimeField):
    pass


class MovementSerializer(serializers.ModelSerializer):
    """
    One ledger entry.

    qty accepts a number or numeric text and is stored as text. `id` is
    assigned by the server; ids sent by the client are ignored.
    """

    date = serializers.DateTimeField(required=False)
    qty = serializers.CharField(max_length=32, required=False, allow_blank=True)

    class Meta:
        model = Movement
        fields = ['id', 'type', 'date', 'qty', 'notes']
        read_only_fields = ['id']

    def validate_qty(self, value):
        value = value.strip()
        if not value:
            return value
        try:
            number = Decimal(value)
        except InvalidOperation:
            raise serializers.ValidationError(f'"{value}" is not a valid quantity')
        if not number.is_finite():
            raise serializers.ValidationError(f'"{value}" is not a valid quantity')
        if not services.quantity_in_range(number):
            raise serializers.ValidationError(f'"{value}" is out of range')
        return value


class AttachmentSerializer(serializers.ModelSerializer):
    """Serializer for Attachment (read-only; files go through the upload route)."""

    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Attachment
        fields = ['id', 'name', 'mime', 'size', 'url', 'createdAt']
        read_only_fields = fields


class VehicleSerializer(serializers.ModelSerializer):
    """
    Full vehicle document with its ledger, attachments and derived totals.

    Writes:
    - `movements` present (even []) replaces the ledger; absent leaves it alone
    - `attachments` and the derived totals are ignored on input
    """

    stockNo = serializers.CharField(
        source='stock_no', max_length=64, required=False, allow_blank=True
    )
    year = BlankableIntegerField(required=False, allow_null=True, min_value=0)
    inDate = BlankableDateTimeField(source='in_date', required=False, allow_null=True)
    outDate = BlankableDateTimeField(source='out_date', required=False, allow_null=True)

    movements = MovementSerializer(many=True, required=False)
    attachments = AttachmentSerializer(many=True, read_only=True)

    totalIn = serializers.SerializerMethodField()
    totalOut = serializers.SerializerMethodField()
    onHand = serializers.SerializerMethodField()

    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            'id', 'vin', 'stockNo', 'make', 'model', 'year', 'color', 'location',
            'status', 'supplier', 'buyer', 'inDate', 'outDate', 'notes',
            'movements', 'attachments',
            'totalIn', 'totalOut', 'onHand',
            'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id']

    @extend_schema_field(OpenApiTypes.NUMBER)
    def get_totalIn(self, obj):
        total_in, _ = services.ledger_totals(obj.movements.all())
        return services.as_number(total_in)

    @extend_schema_field(OpenApiTypes.NUMBER)
    def get_totalOut(self, obj):
        _, total_out = services.ledger_totals(obj.movements.all())
        return services.as_number(total_out)

    @extend_schema_field(OpenApiTypes.NUMBER)
    def get_onHand(self, obj):
        return services.as_number(services.on_hand(obj.movements.all()))

    def create(self, validated_data):
        movements = validated_data.pop('movements', None)
        return services.create_vehicle(validated_data, movements)

    def update(self, instance, validated_data):
        movements = validated_data.pop('movements', None)
        return services.update_vehicle(instance, validated_data, movements)
