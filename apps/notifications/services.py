"""
Notification delivery.

``Notifier.notify(recipient, template_id, data)`` renders a template, sends
it through Django's mail backend and records the attempt in EmailLog.
``send`` raises NotificationFailure; ``notify`` reports it by returning False.
"""
import json
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.core.serializers.json import DjangoJSONEncoder
from django.template import Context, Template
from django.utils import timezone
from django.utils.html import strip_tags

from apps.common.exceptions import NotificationFailure
from apps.notifications.models import EmailLog, EmailTemplate

logger = logging.getLogger(__name__)


# Used when no active EmailTemplate row exists for a type.
DEFAULT_TEMPLATES = {
    'STAGE_REMINDER': (
        "Reminder: {{ article_title }} is due in {{ offset_days }} day(s)",
        "The submission \"{{ article_title }}\" has been in {{ stage }} since "
        "{{ stage_entered_at }}. It is due on {{ due_date }}.",
    ),
    'STAGE_ESCALATION': (
        "Overdue: {{ article_title }} is {{ offset_days }} day(s) past its {{ stage }} deadline",
        "The submission \"{{ article_title }}\" was due on {{ due_date }} in stage "
        "{{ stage }} and is now {{ offset_days }} day(s) overdue.",
    ),
    'REVIEW_INVITATION': (
        "Invitation to review: {{ article_title }}",
        "Dear {{ reviewer_name }},\n\nYou have been invited to review "
        "\"{{ article_title }}\". The review is due on {{ due_date }}.",
    ),
}


class Notifier:
    """
    Email notifier used by the deadline scheduler and review invitations.
    """

    def resolve_recipient(self, recipient):
        """Return (email, user) for a Profile, a user or a bare address."""
        if recipient is None:
            return None, None
        if isinstance(recipient, str):
            return recipient, None
        user = getattr(recipient, 'user', None) or recipient
        return getattr(user, 'email', None), user if hasattr(user, 'pk') else None

    def render(self, template_id, data):
        """Render (subject, html_body, text_body) for a template type."""
        context = Context(data or {})
        template = EmailTemplate.objects.filter(template_type=template_id, is_active=True).first()
        if template is not None:
            subject = Template(template.subject).render(context)
            html_body = Template(template.html_body).render(context) if template.html_body else ''
            if template.text_body:
                text_body = Template(template.text_body).render(context)
            else:
                text_body = strip_tags(html_body)
            return subject.strip(), html_body, text_body

        if template_id not in DEFAULT_TEMPLATES:
            raise KeyError(f"Unknown email template '{template_id}'")
        subject_source, body_source = DEFAULT_TEMPLATES[template_id]
        return Template(subject_source).render(context).strip(), '', Template(body_source).render(context)

    def send(self, recipient, template_id, data):
        """
        Send one notification.

        Raises:
            NotificationFailure: no address, unknown template or a mail backend error
        """
        email, user = self.resolve_recipient(recipient)
        if not email:
            raise NotificationFailure(f"No email address for {template_id} recipient", recipient=str(recipient))

        try:
            subject, html_body, text_body = self.render(template_id, data)
        except Exception as exc:
            raise NotificationFailure(f"Failed to render {template_id}: {exc}", recipient=email) from exc

        email_log = EmailLog.objects.create(
            recipient=email,
            user=user,
            template_type=template_id,
            subject=subject[:255],
            body_html=html_body,
            body_text=text_body,
            context_data=json.loads(json.dumps(data or {}, cls=DjangoJSONEncoder)),
            status='PENDING',
        )

        try:
            message = EmailMultiAlternatives(
                subject=subject,
                body=text_body,
                from_email=settings.DEFAULT_FROM_EMAIL,
                to=[email],
            )
            if html_body:
                message.attach_alternative(html_body, "text/html")
            message.send(fail_silently=False)
        except Exception as exc:
            email_log.status = 'FAILED'
            email_log.error_message = str(exc)
            email_log.save(update_fields=['status', 'error_message', 'updated_at'])
            raise NotificationFailure(f"Failed to send {template_id} to {email}: {exc}", recipient=email) from exc

        email_log.status = 'SENT'
        email_log.sent_at = timezone.now()
        email_log.save(update_fields=['status', 'sent_at', 'updated_at'])
        logger.info(f"Email sent successfully to {email} (template: {template_id})")
        return email_log

    def notify(self, recipient, template_id, data) -> bool:
        """
        Send one notification, reporting failure instead of raising it.

        Returns:
            bool: True when the mail backend accepted the message
        """
        try:
            self.send(recipient, template_id, data)
        except NotificationFailure as exc:
            logger.error(exc.message)
            return False
        return True
