"""
Management command to export the inventory as CSV.

Usage:
    python manage.py export_vehicles_csv
    python manage.py export_vehicles_csv --q toyota --status "In Bond" --output inventory.csv
"""
from django.core.management.base import BaseCommand

from apps.vehicles import services
from apps.vehicles.models import Vehicle


class Command(BaseCommand):
    help = 'Export vehicles (with on-hand quantity) as CSV'

    def add_arguments(self, parser):
        parser.add_argument('--q', default='', help='Free-text search')
        parser.add_argument('--status', default='', help='Exact status, or ALL')
        parser.add_argument('--output', help='Write to this file instead of stdout')

    def handle(self, *args, **options):
        vehicles = services.search_vehicles(
            Vehicle.objects.all().prefetch_related('movements'),
            query=options['q'],
            status=options['status'],
        )

        if options['output']:
            with open(options['output'], 'w', newline='', encoding='utf-8') as fh:
                count = services.export_csv(vehicles, fh)
            self.stderr.write(self.style.SUCCESS(f"Exported {count} vehicles to {options['output']}"))
        else:
            count = services.export_csv(vehicles, self.stdout)
            self.stderr.write(self.style.SUCCESS(f'Exported {count} vehicles'))
