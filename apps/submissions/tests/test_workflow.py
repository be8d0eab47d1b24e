import uuid
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase

from apps.common.exceptions import ConflictError, NotFoundError, PermissionError, ValidationError
from apps.common.models import ActivityLog
from apps.common.permissions import actor_role, profile_role
from apps.submissions.models import AppendOnlyError, Article, StatusHistoryEntry, Submission
from apps.submissions.workflow import (
    AUTHOR_TARGETS,
    EDITOR_TARGETS,
    STATUSES,
    allowed_targets,
    request_transition,
)

User = get_user_model()


def make_profile(email, role):
    user = User.objects.create_user(email=email, password='testpass123')
    user.profile.role = role
    user.profile.save()
    return user.profile


def make_submission(author, status='submitted', title='Graph neural networks for proteins'):
    article = Article.objects.create(title=title, author=author, keywords=['proteins'])
    return Submission.objects.create(article=article, author=author, status=status)


class AllowedTargetsTest(TestCase):

    def test_terminal_statuses_allow_nothing(self):
        for terminal in ('published', 'rejected', 'withdrawn'):
            for role in ('admin', 'editor', 'author', 'reviewer'):
                self.assertEqual(allowed_targets(role, terminal, is_owner=True), frozenset())

    def test_admin_can_reach_any_status(self):
        self.assertEqual(allowed_targets('admin', 'submitted'), frozenset(STATUSES))

    def test_author_only_on_own_submission(self):
        self.assertEqual(allowed_targets('author', 'under_review', is_owner=True), AUTHOR_TARGETS)
        self.assertEqual(allowed_targets('author', 'under_review', is_owner=False), frozenset())

    def test_editor_family_shares_targets(self):
        for role in ('editor', 'section-editor', 'managing-editor', 'editor-in-chief'):
            self.assertEqual(allowed_targets(role, 'submitted'), EDITOR_TARGETS)

    def test_unknown_role_gets_nothing(self):
        self.assertEqual(allowed_targets('reviewer', 'under_review'), frozenset())
        self.assertEqual(allowed_targets(None, 'under_review'), frozenset())


class RequestTransitionTest(TestCase):

    def setUp(self):
        self.author = make_profile('author@example.com', 'author')
        self.editor = make_profile('editor@example.com', 'editor')
        self.admin = make_profile('admin@example.com', 'admin')
        self.submission = make_submission(self.author)

    def test_editor_moves_submission_and_records_history(self):
        result = request_transition(self.submission.id, 'under_review', self.editor, notes='Sent out')

        self.submission.refresh_from_db()
        self.assertTrue(result.changed)
        self.assertEqual(self.submission.status, 'under_review')
        self.assertEqual(self.submission.version, 2)

        entry = result.history_entry
        self.assertEqual(entry.from_status, 'submitted')
        self.assertEqual(entry.status, 'under_review')
        self.assertEqual(entry.actor, self.editor)
        self.assertEqual(entry.actor_role, 'editor')
        self.assertEqual(entry.notes, 'Sent out')
        self.assertEqual(entry.sequence, 2)

    def test_author_cannot_accept_own_submission(self):
        request_transition(self.submission.id, 'under_review', self.editor)

        with self.assertRaises(PermissionError):
            request_transition(self.submission.id, 'accepted', self.author)

        self.submission.refresh_from_db()
        self.assertEqual(self.submission.status, 'under_review')
        self.assertEqual(StatusHistoryEntry.objects.filter(submission=self.submission).count(), 1)

    def test_author_can_withdraw(self):
        result = request_transition(self.submission.id, 'withdrawn', self.author)
        self.assertEqual(result.status, 'withdrawn')

    def test_other_author_cannot_withdraw(self):
        stranger = make_profile('stranger@example.com', 'author')
        with self.assertRaises(PermissionError):
            request_transition(self.submission.id, 'withdrawn', stranger)

    def test_terminal_status_is_final_even_for_admin(self):
        request_transition(self.submission.id, 'rejected', self.editor)
        with self.assertRaises(PermissionError):
            request_transition(self.submission.id, 'under_review', self.admin)

    def test_superuser_with_edited_role_still_acts_as_admin(self):
        user = User.objects.create_superuser(email='root@example.com', password='testpass123')
        user.profile.role = 'author'
        user.profile.save()

        result = request_transition(self.submission.id, 'accepted', user.profile)

        self.assertTrue(result.changed)
        self.assertEqual(profile_role(user.profile), 'admin')
        self.assertEqual(actor_role(user), profile_role(user.profile))

    def test_same_status_is_a_no_op(self):
        request_transition(self.submission.id, 'under_review', self.editor)

        result = request_transition(self.submission.id, 'under_review', self.editor)

        self.submission.refresh_from_db()
        self.assertFalse(result.changed)
        self.assertIsNone(result.history_entry)
        self.assertEqual(self.submission.version, 2)
        self.assertEqual(StatusHistoryEntry.objects.filter(submission=self.submission).count(), 1)

    def test_same_status_is_still_permission_checked(self):
        with self.assertRaises(PermissionError):
            request_transition(self.submission.id, 'submitted', self.author)

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(ValidationError):
            request_transition(self.submission.id, 'in_limbo', self.admin)

    def test_missing_submission(self):
        with self.assertRaises(NotFoundError):
            request_transition(uuid.uuid4(), 'under_review', self.editor)
        with self.assertRaises(NotFoundError):
            request_transition('not-a-uuid', 'under_review', self.editor)

    def test_stale_expected_version_conflicts(self):
        request_transition(self.submission.id, 'technical_check', self.editor)
        with self.assertRaises(ConflictError):
            request_transition(self.submission.id, 'under_review', self.editor, expected_version=1)

    def test_concurrent_writer_conflicts(self):
        stale = Submission.objects.get(pk=self.submission.pk)
        request_transition(self.submission.id, 'technical_check', self.editor)

        with patch('apps.submissions.workflow._load_submission', return_value=stale):
            with self.assertRaises(ConflictError):
                request_transition(self.submission.id, 'rejected', self.editor)

        self.submission.refresh_from_db()
        self.assertEqual(self.submission.status, 'technical_check')
        self.assertEqual(StatusHistoryEntry.objects.filter(submission=self.submission).count(), 1)

    def test_transition_resets_stage_clock_and_overdue_flag(self):
        Submission.objects.filter(pk=self.submission.pk).update(is_overdue=True)
        before = self.submission.stage_entered_at

        request_transition(self.submission.id, 'technical_check', self.editor)

        self.submission.refresh_from_db()
        self.assertFalse(self.submission.is_overdue)
        self.assertGreaterEqual(self.submission.stage_entered_at, before)

    def test_history_is_ordered(self):
        request_transition(self.submission.id, 'technical_check', self.editor)
        request_transition(self.submission.id, 'under_review', self.editor)
        request_transition(self.submission.id, 'revision_requested', self.editor)
        request_transition(self.submission.id, 'revision_submitted', self.author)

        history = self.submission.status_history
        self.assertEqual(
            [entry.status for entry in history],
            ['technical_check', 'under_review', 'revision_requested', 'revision_submitted'],
        )
        self.assertEqual([entry.sequence for entry in history], [2, 3, 4, 5])

    def test_transition_is_logged_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            request_transition(self.submission.id, 'rejected', self.editor)

        log = ActivityLog.objects.get(resource_id=str(self.submission.id))
        self.assertEqual(log.action_type, 'REJECT')
        self.assertEqual(log.user, self.editor.user)


class StatusHistoryAppendOnlyTest(TestCase):

    def setUp(self):
        author = make_profile('author@example.com', 'author')
        editor = make_profile('editor@example.com', 'editor')
        self.submission = make_submission(author)
        self.entry = request_transition(self.submission.id, 'technical_check', editor).history_entry

    def test_entry_cannot_be_updated(self):
        self.entry.notes = 'rewritten'
        with self.assertRaises(AppendOnlyError):
            self.entry.save()
        with self.assertRaises(AppendOnlyError):
            StatusHistoryEntry.objects.filter(pk=self.entry.pk).update(notes='rewritten')

    def test_entry_cannot_be_deleted(self):
        with self.assertRaises(AppendOnlyError):
            self.entry.delete()
        with self.assertRaises(AppendOnlyError):
            StatusHistoryEntry.objects.all().delete()

    def test_status_history_is_a_snapshot(self):
        history = self.submission.status_history
        self.assertIsInstance(history, tuple)
        self.assertEqual(len(history), 1)
