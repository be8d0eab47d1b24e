"""
Management command to create the workflow email templates.
Run with: python manage.py create_email_templates
"""
from django.core.management.base import BaseCommand
from apps.notifications.models import EmailTemplate


TEMPLATES = [
    {
        'template_type': 'STAGE_REMINDER',
        'name': 'Stage Deadline Reminder',
        'description': 'Sent to the stage owner before a stage deadline',
        'subject': 'Reminder: {{ article_title }} is due in {{ offset_days }} day(s)',
        'html_body': (
            '<p>The submission <strong>{{ article_title }}</strong> has been in '
            '<em>{{ stage }}</em> since {{ stage_entered_at }}.</p>'
            '<p>It is due on {{ due_date }}.</p>'
        ),
        'available_variables': ['article_title', 'stage', 'stage_entered_at', 'due_date', 'offset_days', 'submission_id'],
    },
    {
        'template_type': 'STAGE_ESCALATION',
        'name': 'Stage Deadline Escalation',
        'description': 'Sent to the escalation roles once a stage deadline has passed',
        'subject': 'Overdue: {{ article_title }} is {{ offset_days }} day(s) past its {{ stage }} deadline',
        'html_body': (
            '<p>The submission <strong>{{ article_title }}</strong> was due on {{ due_date }} '
            'in stage <em>{{ stage }}</em>.</p>'
            '<p>It is now {{ offset_days }} day(s) overdue.</p>'
        ),
        'available_variables': ['article_title', 'stage', 'stage_entered_at', 'due_date', 'offset_days', 'submission_id'],
    },
    {
        'template_type': 'REVIEW_INVITATION',
        'name': 'Review Invitation',
        'description': 'Sent to a reviewer when an assignment is created',
        'subject': 'Invitation to review: {{ article_title }}',
        'html_body': (
            '<p>Dear {{ reviewer_name }},</p>'
            '<p>You have been invited to review <strong>{{ article_title }}</strong>.</p>'
            '<p>The review is due on {{ due_date }}.</p>'
        ),
        'available_variables': ['reviewer_name', 'article_title', 'due_date', 'assignment_id'],
    },
]


class Command(BaseCommand):
    help = 'Create or update the workflow email templates'

    def handle(self, *args, **options):
        created_count = 0
        updated_count = 0

        for template_data in TEMPLATES:
            data = dict(template_data)
            template_type = data.pop('template_type')
            template, created = EmailTemplate.objects.update_or_create(
                template_type=template_type,
                defaults={**data, 'is_active': True},
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"✓ Created template: {template.name}"))
            else:
                updated_count += 1
                self.stdout.write(self.style.SUCCESS(f"✓ Updated template: {template.name}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"\nSummary: {created_count} created, {updated_count} updated"
            )
        )
