"""
Management command to install the default stage time limits.
"""
from django.core.management.base import BaseCommand

from apps.deadlines.services import seed_default_time_limits


class Command(BaseCommand):
    help = 'Seed default workflow stage time limits'

    def add_arguments(self, parser):
        parser.add_argument(
            '--overwrite',
            action='store_true',
            help='Replace time limits that already exist',
        )

    def handle(self, *args, **options):
        created, updated, skipped = seed_default_time_limits(overwrite=options['overwrite'])

        self.stdout.write(
            self.style.SUCCESS(
                f'Time limits: {created} created, {updated} updated, {skipped} skipped'
            )
        )
