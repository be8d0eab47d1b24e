"""
Stage deadline scanner.

For every submission sitting in a stage with an active time limit the
scanner fires each reminder (``now >= due - offset``) and escalation
(``now >= due + offset``) that has not fired yet. Each notification has a
FiredNotificationMarker that is claimed and committed before any send and
records who has received it, so a recipient whose send failed is retried
on the next scan and a delivered notification never repeats.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from celery.exceptions import SoftTimeLimitExceeded
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.common.utils import workflow_setting
from apps.common.utils.activity_logger import log_system_action
from apps.notifications.services import Notifier
from apps.submissions.models import Submission
from apps.users.models import Profile

from .models import FiredNotificationMarker, WorkflowTimeLimit

logger = logging.getLogger(__name__)


REMINDER = 'reminder'
ESCALATION = 'escalation'

TEMPLATES = {
    REMINDER: 'STAGE_REMINDER',
    ESCALATION: 'STAGE_ESCALATION',
}


@dataclass
class ScanReport:
    reminders_sent: int = 0
    escalations_sent: int = 0
    failures: int = 0
    submissions_checked: int = 0
    dry_run: bool = False
    planned: list = field(default_factory=list)
    errors: list = field(default_factory=list)

    def as_dict(self):
        return {
            'reminders_sent': self.reminders_sent,
            'escalations_sent': self.escalations_sent,
            'failures': self.failures,
            'submissions_checked': self.submissions_checked,
            'dry_run': self.dry_run,
            'planned': self.planned,
            'errors': self.errors,
        }


class DeadlineScheduler:
    """
    Fires stage reminders and escalations.

    ``notifier`` needs a ``notify(recipient, template_id, data) -> bool``
    method; ``clock`` returns the current aware datetime.
    """

    def __init__(self, notifier=None, clock=None):
        self.notifier = notifier or Notifier()
        self.clock = clock or timezone.now

    def scan(self, dry_run=False):
        now = self.clock()
        report = ScanReport(dry_run=dry_run)

        for time_limit in WorkflowTimeLimit.objects.filter(is_active=True):
            submissions = Submission.objects.filter(status=time_limit.stage).select_related(
                'article', 'author__user', 'handling_editor__user'
            ).order_by('stage_entered_at')

            for submission in submissions:
                report.submissions_checked += 1
                try:
                    self.process_submission(submission, time_limit, now, report, dry_run=dry_run)
                except SoftTimeLimitExceeded:
                    raise
                except Exception as exc:
                    logger.exception(f"Deadline scan failed for submission {submission.id}: {exc}")
                    report.errors.append({
                        'submission_id': str(submission.id),
                        'stage': time_limit.stage,
                        'error': str(exc),
                    })

        logger.info(
            f"Deadline scan finished: {report.submissions_checked} checked, "
            f"{report.reminders_sent} reminders, {report.escalations_sent} escalations, "
            f"{report.failures} failures, {len(report.errors)} errors"
        )
        return report

    def due_date(self, submission, time_limit):
        return submission.stage_entered_at + timedelta(days=time_limit.time_limit_days)

    def due_events(self, submission, time_limit, now):
        """Return the (offset_type, offset) pairs that are due and not yet fired."""
        due = self.due_date(submission, time_limit)
        fired = set(
            FiredNotificationMarker.objects.filter(
                submission=submission, stage=time_limit.stage, status='sent'
            ).values_list('offset_type', 'offset_value')
        )

        events = []
        for offset in sorted(set(time_limit.reminder_days), reverse=True):
            if now >= due - timedelta(days=offset) and (REMINDER, offset) not in fired:
                events.append((REMINDER, offset))
        for offset in sorted(set(time_limit.escalation_days)):
            if now >= due + timedelta(days=offset) and (ESCALATION, offset) not in fired:
                events.append((ESCALATION, offset))
        return events

    def is_past_escalation(self, submission, time_limit, now):
        if not time_limit.escalation_days:
            return False
        first = min(time_limit.escalation_days)
        return now >= self.due_date(submission, time_limit) + timedelta(days=first)

    def escalation_recipients(self, time_limit):
        return list(
            Profile.objects.filter(
                role__in=time_limit.escalation_recipient_roles,
                user__is_active=True,
            ).select_related('user')
        )

    def reminder_recipients(self, submission, time_limit):
        """The party expected to act in the stage."""
        if submission.status == 'revision_requested':
            return [submission.author]
        if submission.handling_editor_id:
            return [submission.handling_editor]
        return self.escalation_recipients(time_limit)

    def process_submission(self, submission, time_limit, now, report, dry_run=False):
        for offset_type, offset in self.due_events(submission, time_limit, now):
            if dry_run:
                report.planned.append({
                    'submission_id': str(submission.id),
                    'stage': time_limit.stage,
                    'offset_type': offset_type,
                    'offset_value': offset,
                })
                continue

            delivered = self.fire(submission, time_limit, offset_type, offset, now)
            if delivered is None:
                continue
            if delivered:
                if offset_type == REMINDER:
                    report.reminders_sent += 1
                else:
                    report.escalations_sent += 1
            else:
                report.failures += 1

        if not dry_run and not submission.is_overdue and self.is_past_escalation(submission, time_limit, now):
            Submission.objects.filter(pk=submission.pk, status=time_limit.stage).update(is_overdue=True)
            submission.is_overdue = True
            logger.info(f"Submission {submission.id} marked overdue in {time_limit.stage}")

    def fire(self, submission, time_limit, offset_type, offset, now):
        """
        Deliver one notification to every recipient still missing it.

        The marker is claimed and committed before any send, and no
        transaction is open while sending. A recipient whose send fails is
        retried on the next scan; recipients already served are not.

        Returns:
            bool: True when every recipient has now received it, None when
            another scan already holds or finished it
        """
        marker = self.claim(submission, time_limit, offset_type, offset, now)
        if marker is None:
            logger.info(f"{offset_type} {offset}d for {submission.id} already fired or in progress")
            return None

        if offset_type == REMINDER:
            recipients = self.reminder_recipients(submission, time_limit)
        else:
            recipients = self.escalation_recipients(time_limit)

        due = self.due_date(submission, time_limit)
        data = {
            'submission_id': str(submission.id),
            'article_title': submission.article.title,
            'stage': time_limit.stage,
            'stage_entered_at': submission.stage_entered_at.isoformat(),
            'due_date': due.isoformat(),
            'offset_type': offset_type,
            'offset_days': offset,
        }

        served = list(marker.recipients)
        pending = [recipient for recipient in recipients if recipient.email not in served]
        delivered = [recipient.email for recipient in pending if self.deliver(recipient, offset_type, data)]
        missing = len(pending) - len(delivered)
        served += delivered

        if not served:
            logger.warning(
                f"No {offset_type} for submission {submission.id} ({offset}d) was delivered; "
                f"retrying on the next scan"
            )
            FiredNotificationMarker.objects.filter(pk=marker.pk, status='pending').delete()
            return False

        complete = missing == 0
        FiredNotificationMarker.objects.filter(pk=marker.pk).update(
            status='sent' if complete else 'pending',
            recipients=served,
            claimed_at=None,
            fired_at=now,
        )
        if not complete:
            logger.warning(
                f"{missing} recipient(s) missed the {offset_type} for submission {submission.id} "
                f"({offset}d); retrying them on the next scan"
            )

        if delivered:
            log_system_action(
                'REMIND' if offset_type == REMINDER else 'ESCALATE',
                'SUBMISSION',
                submission.id,
                metadata={
                    'stage': time_limit.stage,
                    'offset_days': offset,
                    'recipients': delivered,
                },
            )
        return complete

    def claim(self, submission, time_limit, offset_type, offset, now):
        """
        Insert or take over the marker for one notification.

        Returns the claimed marker, or None when it is already sent or
        another scan holds a live claim on it.
        """
        key = {
            'submission': submission,
            'stage': time_limit.stage,
            'offset_type': offset_type,
            'offset_value': offset,
        }
        try:
            with transaction.atomic():
                return FiredNotificationMarker.objects.create(claimed_at=now, fired_at=now, **key)
        except IntegrityError:
            pass

        stale = now - timedelta(minutes=workflow_setting('MARKER_CLAIM_TIMEOUT_MINUTES', 30))
        claimed = FiredNotificationMarker.objects.filter(status='pending', **key).filter(
            Q(claimed_at__isnull=True) | Q(claimed_at__lt=stale)
        ).update(claimed_at=now)
        if not claimed:
            return None
        return FiredNotificationMarker.objects.get(**key)

    def deliver(self, recipient, offset_type, data):
        try:
            return bool(self.notifier.notify(recipient, TEMPLATES[offset_type], data))
        except Exception as exc:
            logger.error(f"Notifier raised for {offset_type} to {recipient}: {exc}")
            return False
