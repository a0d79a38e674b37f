"""
Django management command to start the admin server on the configured host and port.
"""

import os
from django.core.management.base import BaseCommand
from django.core.management import call_command

DEFAULT_PORT = 3001
DEFAULT_HOST = 'localhost'


def resolve_address(port=None, host=None):
    """Command line beats environment beats default. Returns (host, port, port_source)."""
    if port:
        source = 'command line'
    elif os.environ.get('PORT'):
        port, source = os.environ['PORT'], 'environment'
    else:
        port, source = DEFAULT_PORT, 'default'

    host = host or os.environ.get('DJANGO_HOST', DEFAULT_HOST)
    return host, int(port), source


class Command(BaseCommand):
    help = 'Start the admin server with an environment-configured port'

    def add_arguments(self, parser):
        parser.add_argument(
            '--port',
            type=int,
            help='Port to run the server on (overrides the PORT environment variable)',
        )
        parser.add_argument(
            '--host',
            type=str,
            help='Host to run the server on (overrides DJANGO_HOST)',
        )

    def handle(self, *args, **options):
        try:
            host, port, source = resolve_address(options.get('port'), options.get('host'))
        except ValueError:
            self.stdout.write(self.style.ERROR(f'Invalid port number: {os.environ.get("PORT")}'))
            return

        address = f"{host}:{port}"
        self.stdout.write(self.style.SUCCESS(f'Admin server running at http://{address}'))
        self.stdout.write(f'Port source: {source}')
        self.stdout.write('')

        try:
            call_command('runserver', address, verbosity=1)
        except Exception as e:
            self.stdout.write(self.style.ERROR(f'Failed to start server: {e}'))
            self.stdout.write(
                self.style.ERROR(f'Make sure port {port} is available and you have the necessary permissions')
            )
