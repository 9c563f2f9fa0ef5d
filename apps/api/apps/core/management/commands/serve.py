"""
Management command to run the API on the configured PORT.

Usage:
    PORT=8080 python manage.py serve
"""
from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = 'Run the development server on 0.0.0.0:$PORT'

    def add_arguments(self, parser):
        parser.add_argument('--host', default='0.0.0.0')
        parser.add_argument('--noreload', action='store_true')

    def handle(self, *args, **options):
        addrport = f"{options['host']}:{settings.PORT}"
        self.stdout.write(
            self.style.SUCCESS(
                f'Serving on {addrport} (attachments: {settings.ATTACHMENT_STORAGE})'
            )
        )
        call_command('runserver', addrport, use_reloader=not options['noreload'])
