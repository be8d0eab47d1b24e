import uuid
from datetime import datetime, timezone as dt_timezone

from django.test import TestCase

from apps.common.exceptions import NotFoundError, ValidationError
from apps.reviews.matching import ReviewerMatchingEngine, terms_match
from apps.reviews.models import AuthorRecommendedReviewer, ReviewAssignment

from .helpers import make_article, make_profile, make_reviewer

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


class ReviewerMatchingEngineTest(TestCase):

    def setUp(self):
        self.engine = ReviewerMatchingEngine(clock=lambda: NOW)
        self.author = make_profile('author@example.com')
        self.article = make_article(self.author, keywords=['Machine Learning', 'proteins'])

    def selected_emails(self, result):
        return [candidate.reviewer.profile.user.email for candidate in result.selected]

    def test_terms_match_is_substring_both_ways(self):
        self.assertTrue(terms_match('learning', 'machine learning'))
        self.assertTrue(terms_match('machine learning', 'learning'))
        self.assertFalse(terms_match('proteins', 'chemistry'))

    def test_keyword_score_uses_weights(self):
        reviewer = make_reviewer('ml@example.com', expertise=['machine learning'], specializations=['proteins'])
        self.assertEqual(self.engine.keyword_score(['machine learning', 'proteins'], reviewer), 5)

    def test_best_match_ranks_first(self):
        make_reviewer('weak@example.com', expertise=['history'])
        make_reviewer('strong@example.com', expertise=['machine learning', 'proteins'])

        result = self.engine.select_reviewers(self.article.id, 1)

        self.assertEqual(self.selected_emails(result), ['strong@example.com'])

    def test_never_selects_author_coauthor_or_active_reviewer(self):
        coauthor_reviewer = make_reviewer('coauthor@example.com', expertise=['proteins'])
        self.article.coauthors.add(coauthor_reviewer.profile)
        busy = make_reviewer('busy@example.com', expertise=['proteins'])
        ReviewAssignment.objects.create(
            article=self.article, reviewer=busy, assigned_date=NOW, due_date=NOW
        )
        skipped = make_reviewer('skipped@example.com', expertise=['proteins'])
        free = make_reviewer('free@example.com', expertise=['history'])

        result = self.engine.select_reviewers(self.article.id, 3, exclude_ids=[str(skipped.profile_id)])

        self.assertEqual(self.selected_emails(result), ['free@example.com'])
        self.assertEqual(result.shortfall, 2)
        self.assertEqual(result.selected[0].reviewer, free)

    def test_previously_declined_reviewer_is_eligible_again(self):
        reviewer = make_reviewer('again@example.com', expertise=['proteins'])
        ReviewAssignment.objects.create(
            article=self.article, reviewer=reviewer, status='declined', assigned_date=NOW, due_date=NOW
        )

        result = self.engine.select_reviewers(self.article.id, 1)

        self.assertEqual(self.selected_emails(result), ['again@example.com'])

    def test_returns_exactly_target_count(self):
        for index in range(5):
            make_reviewer(f'reviewer{index}@example.com', expertise=['proteins'])

        result = self.engine.select_reviewers(self.article.id, 3)

        self.assertEqual(len(result.selected), 3)
        self.assertEqual(result.shortfall, 0)
        self.assertEqual(result.steps['system_candidates'], 5)
        self.assertEqual(result.steps['final_selected'], 3)

    def test_recommendations_fill_at_most_half(self):
        for index in range(4):
            make_reviewer(f'rec{index}@example.com', expertise=['proteins'])
            AuthorRecommendedReviewer.objects.create(
                article=self.article, name=f'Rec {index}', email=f'REC{index}@example.com'
            )

        result = self.engine.select_reviewers(self.article.id, 4)

        self.assertEqual(len(result.selected), 4)
        self.assertEqual(result.recommended_used, 2)
        self.assertEqual(result.system_found, 2)
        self.assertEqual(result.steps['recommended_validated'], 4)
        self.assertEqual(
            AuthorRecommendedReviewer.objects.filter(article=self.article, validation_status='suggested').count(),
            4,
        )

    def test_single_slot_can_go_to_a_recommendation(self):
        make_reviewer('system@example.com', expertise=['machine learning', 'proteins'])
        make_reviewer('rec@example.com', expertise=['history'])
        AuthorRecommendedReviewer.objects.create(article=self.article, name='Rec', email='rec@example.com')

        result = self.engine.select_reviewers(self.article.id, 1)

        self.assertEqual(self.selected_emails(result), ['rec@example.com'])
        self.assertEqual(result.recommended_used, 1)

    def test_invalid_recommendations_are_marked(self):
        AuthorRecommendedReviewer.objects.create(article=self.article, name='Nobody', email='nobody@example.com')
        AuthorRecommendedReviewer.objects.create(article=self.article, name='Self', email='author@example.com')
        make_reviewer('pool@example.com', expertise=['proteins'])

        result = self.engine.select_reviewers(self.article.id, 2)

        self.assertEqual(result.recommended_used, 0)
        self.assertEqual(result.steps['recommended_retrieved'], 2)
        self.assertEqual(result.steps['recommended_validated'], 0)
        self.assertEqual(
            set(AuthorRecommendedReviewer.objects.values_list('validation_status', flat=True)),
            {'invalid'},
        )
        self.assertEqual(result.shortfall, 1)

    def test_inactive_reviewers_are_not_candidates(self):
        make_reviewer('retired@example.com', expertise=['proteins'], is_active=False)

        result = self.engine.select_reviewers(self.article.id, 1)

        self.assertEqual(result.selected, [])
        self.assertEqual(result.shortfall, 1)

    def test_bad_input(self):
        with self.assertRaises(ValidationError):
            self.engine.select_reviewers(self.article.id, 0)
        with self.assertRaises(ValidationError):
            self.engine.select_reviewers(self.article.id, 2, exclude_ids=['not-a-uuid'])
        with self.assertRaises(NotFoundError):
            self.engine.select_reviewers(uuid.uuid4(), 2)

    def test_preview_saves_nothing(self):
        AuthorRecommendedReviewer.objects.create(article=self.article, name='Nobody', email='nobody@example.com')
        make_reviewer('pool@example.com', expertise=['proteins'])

        preview = self.engine.preview(self.article.id)

        self.assertEqual(preview['recommendations'][0]['would_be'], 'invalid')
        self.assertEqual(preview['recommendations'][0]['current_status'], 'pending')
        self.assertEqual(AuthorRecommendedReviewer.objects.get().validation_status, 'pending')
        self.assertEqual(len(preview['system_candidates']), 1)

    def test_available_reviewers_sorted_by_availability(self):
        make_reviewer('busy@example.com', expertise=['proteins'], availability_status='limited')
        make_reviewer('free@example.com', expertise=['proteins'])
        make_reviewer('historian@example.com', expertise=['history'])

        reviewers = self.engine.available_reviewers(category='proteins')

        self.assertEqual([r['email'] for r in reviewers], ['free@example.com', 'busy@example.com'])
