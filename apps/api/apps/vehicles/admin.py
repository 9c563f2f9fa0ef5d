"""Vehicle inventory admin with inline ledger and attachments."""
from django.contrib import admin

from . import services
from .models import Attachment, Movement, Vehicle


class MovementInline(admin.TabularInline):
    model = Movement
    extra = 0
    fields = ['type', 'date', 'qty', 'notes']
    ordering = ['date', 'created_at']


class AttachmentInline(admin.TabularInline):
    model = Attachment
    extra = 0
    fields = ['name', 'mime', 'size', 'url', 'storage_backend', 'created_at']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = [
        'vin', 'stock_no', 'make', 'model', 'year', 'status',
        'location', 'on_hand', 'created_at'
    ]
    list_filter = ['status', 'created_at']
    search_fields = ['vin', 'stock_no', 'make', 'model', 'supplier', 'buyer']
    readonly_fields = ['id', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
    inlines = [MovementInline, AttachmentInline]

    fieldsets = (
        ('Identification', {
            'fields': ('id', 'vin', 'stock_no', 'status')
        }),
        ('Vehicle', {
            'fields': ('make', 'model', 'year', 'color', 'location')
        }),
        ('Parties & Dates', {
            'fields': ('supplier', 'buyer', 'in_date', 'out_date', 'notes')
        }),
        ('Audit', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('movements')

    def on_hand(self, obj):
        return services.as_number(services.on_hand(obj.movements.all()))
    on_hand.short_description = 'On hand'


@admin.register(Movement)
class MovementAdmin(admin.ModelAdmin):
    list_display = ['vehicle', 'type', 'qty', 'date', 'created_at']
    list_filter = ['type', 'date']
    search_fields = ['vehicle__vin', 'vehicle__stock_no', 'notes']
    readonly_fields = ['created_at']
    date_hierarchy = 'date'
    ordering = ['-date']
