"""
Management command to fire due stage reminders and escalations.
Celery Beat runs the same scan hourly; this is for cron or manual runs.
"""
from django.core.management.base import BaseCommand

from apps.deadlines.scheduler import DeadlineScheduler


class Command(BaseCommand):
    help = 'Fire due stage deadline reminders and escalations'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the notifications that are due without sending them',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        if dry_run:
            self.stdout.write(self.style.WARNING('Running in DRY RUN mode - no notifications will be sent'))

        report = DeadlineScheduler().scan(dry_run=dry_run)
        self.stdout.write(f'Checked {report.submissions_checked} submissions')

        for event in report.planned:
            self.stdout.write(
                f"  - would send {event['offset_type']} ({event['offset_value']}d) "
                f"for {event['submission_id']} in {event['stage']}"
            )

        for error in report.errors:
            self.stdout.write(
                self.style.ERROR(f"  - {error['submission_id']} ({error['stage']}): {error['error']}")
            )

        if report.failures:
            self.stdout.write(
                self.style.WARNING(f'{report.failures} notifications failed and will be retried')
            )

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f'DRY RUN: {len(report.planned)} notifications due'))
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Sent {report.reminders_sent} reminders and {report.escalations_sent} escalations'
                )
            )
