import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import patch

from django.test import TestCase

from apps.common.exceptions import ConflictError, NotFoundError, PermissionError
from apps.common.models import ActivityLog
from apps.reviews.matching import ReviewerMatchingEngine
from apps.reviews.models import ReviewAssignment, ReviewerProfile
from apps.reviews.services import assign_reviewers, complete_assignment, respond_to_assignment

from .helpers import make_article, make_profile, make_reviewer

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


class AssignReviewersTest(TestCase):

    def setUp(self):
        self.editor = make_profile('editor@example.com', role='editor')
        self.author = make_profile('author@example.com')
        self.article = make_article(self.author, keywords=['proteins'])
        self.reviewers = [
            make_reviewer(f'reviewer{index}@example.com', expertise=['proteins'])
            for index in range(3)
        ]
        self.engine = ReviewerMatchingEngine(clock=lambda: NOW)

    def test_assigns_whole_selection(self):
        selection = self.engine.select_reviewers(self.article.id, 2)

        assignments = assign_reviewers(self.article.id, selection, self.editor, 2, now=NOW)

        self.assertEqual(len(assignments), 2)
        for assignment in assignments:
            self.assertEqual(assignment.status, 'pending')
            self.assertEqual(assignment.origin, 'system')
            self.assertEqual(assignment.due_date, NOW + timedelta(days=21))
            self.assertEqual(ReviewerProfile.objects.get(pk=assignment.reviewer_id).current_load, 1)
        self.assertEqual(ActivityLog.objects.filter(action_type='ASSIGN').count(), 2)

    def test_invitations_are_queued_after_commit(self):
        selection = self.engine.select_reviewers(self.article.id, 1)

        with patch('apps.notifications.tasks.send_review_invitation.delay') as delay:
            with self.captureOnCommitCallbacks(execute=True):
                assignments = assign_reviewers(self.article.id, selection, self.editor, 1, now=NOW)

        delay.assert_called_once_with(str(assignments[0].id))

    def test_exceeding_target_assigns_nobody(self):
        first = self.engine.select_reviewers(self.article.id, 2)
        assign_reviewers(self.article.id, first, self.editor, 2, now=NOW)

        second = self.engine.select_reviewers(self.article.id, 1)
        with self.assertRaises(ConflictError):
            assign_reviewers(self.article.id, second, self.editor, 2, now=NOW)

        self.assertEqual(ReviewAssignment.objects.filter(article=self.article).count(), 2)
        leftover = second.selected[0].reviewer
        self.assertEqual(ReviewerProfile.objects.get(pk=leftover.pk).current_load, 0)

    def test_stale_selection_with_active_reviewer_assigns_nobody(self):
        selection = self.engine.select_reviewers(self.article.id, 2)
        assign_reviewers(self.article.id, selection.selected[:1], self.editor, 3, now=NOW)

        with self.assertRaises(ConflictError):
            assign_reviewers(self.article.id, selection, self.editor, 3, now=NOW)

        self.assertEqual(ReviewAssignment.objects.filter(article=self.article).count(), 1)

    def test_missing_submission(self):
        selection = self.engine.select_reviewers(self.article.id, 1)
        with self.assertRaises(NotFoundError):
            assign_reviewers(uuid.uuid4(), selection, self.editor, 1, now=NOW)

    def test_empty_selection_is_a_no_op(self):
        self.assertEqual(assign_reviewers(self.article.id, [], self.editor, 1, now=NOW), [])


class AssignmentLifecycleTest(TestCase):

    def setUp(self):
        self.editor = make_profile('editor@example.com', role='editor')
        self.author = make_profile('author@example.com')
        self.article = make_article(self.author, keywords=['proteins'])
        self.reviewer = make_reviewer('reviewer@example.com', expertise=['proteins'])
        engine = ReviewerMatchingEngine(clock=lambda: NOW)
        selection = engine.select_reviewers(self.article.id, 1)
        self.assignment = assign_reviewers(self.article.id, selection, self.editor, 1, now=NOW)[0]

    def load(self):
        return ReviewerProfile.objects.get(pk=self.reviewer.pk).current_load

    def test_accept_keeps_load(self):
        assignment = respond_to_assignment(self.assignment.id, self.reviewer.profile, accept=True, now=NOW)
        self.assertEqual(assignment.status, 'accepted')
        self.assertEqual(assignment.accepted_at, NOW)
        self.assertEqual(self.load(), 1)

    def test_decline_releases_load(self):
        assignment = respond_to_assignment(
            self.assignment.id, self.reviewer.profile, accept=False, reason='On leave', now=NOW
        )
        self.assertEqual(assignment.status, 'declined')
        self.assertEqual(assignment.decline_reason, 'On leave')
        self.assertEqual(self.load(), 0)

    def test_cannot_respond_twice(self):
        respond_to_assignment(self.assignment.id, self.reviewer.profile, accept=False, now=NOW)
        with self.assertRaises(ConflictError):
            respond_to_assignment(self.assignment.id, self.reviewer.profile, accept=True, now=NOW)
        self.assertEqual(self.load(), 0)

    def test_other_reviewer_cannot_respond(self):
        other = make_reviewer('other@example.com')
        with self.assertRaises(PermissionError):
            respond_to_assignment(self.assignment.id, other.profile, accept=True, now=NOW)

    def test_complete_on_time(self):
        respond_to_assignment(self.assignment.id, self.reviewer.profile, accept=True, now=NOW)
        done_at = NOW + timedelta(days=10)

        complete_assignment(self.assignment.id, self.reviewer.profile, now=done_at)

        self.reviewer.refresh_from_db()
        self.assertEqual(self.reviewer.current_load, 0)
        self.assertEqual(self.reviewer.completed_reviews, 1)
        self.assertEqual(self.reviewer.late_reviews, 0)
        self.assertEqual(self.reviewer.last_review_date, done_at)

    def test_late_completion_is_counted(self):
        respond_to_assignment(self.assignment.id, self.reviewer.profile, accept=True, now=NOW)

        complete_assignment(self.assignment.id, self.reviewer.profile, now=NOW + timedelta(days=30))

        self.reviewer.refresh_from_db()
        self.assertEqual(self.reviewer.late_reviews, 1)
        self.assertEqual(self.reviewer.reliability_score, 0)

    def test_pending_assignment_cannot_be_completed(self):
        with self.assertRaises(ConflictError):
            complete_assignment(self.assignment.id, self.reviewer.profile, now=NOW)

    def test_load_never_goes_negative(self):
        ReviewerProfile.objects.filter(pk=self.reviewer.pk).update(current_load=0)
        respond_to_assignment(self.assignment.id, self.reviewer.profile, accept=False, now=NOW)
        self.assertEqual(self.load(), 0)
