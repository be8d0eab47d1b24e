from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

from apps.reviews.models import ReviewAssignment

from .helpers import make_article, make_profile, make_reviewer


class ReviewerSelectionAPITest(APITestCase):

    def authenticate(self, profile):
        client = APIClient()
        refresh = RefreshToken.for_user(profile.user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client

    def setUp(self):
        self.editor = make_profile('editor@example.com', role='editor')
        self.author = make_profile('author@example.com')
        self.article = make_article(self.author, keywords=['proteins'])
        self.reviewer = make_reviewer('reviewer@example.com', expertise=['proteins'])
        make_reviewer('second@example.com', expertise=['proteins'])

    def test_editor_selects_without_assigning(self):
        client = self.authenticate(self.editor)

        response = client.post(
            reverse('reviews:selection-list'),
            {'article': str(self.article.id), 'target_count': 3},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['selected']), 2)
        self.assertEqual(response.data['shortfall'], 1)
        self.assertFalse(ReviewAssignment.objects.exists())

    def assign_existing(self, reviewer):
        now = timezone.now()
        return ReviewAssignment.objects.create(
            article=self.article,
            reviewer=reviewer,
            assigned_by=self.editor,
            assigned_date=now,
            due_date=now + timedelta(days=21),
        )

    def test_assign_tops_up_article_with_active_reviewer(self):
        self.assign_existing(self.reviewer)
        make_reviewer('third@example.com', expertise=['proteins'])
        make_reviewer('fourth@example.com', expertise=['proteins'])
        client = self.authenticate(self.editor)

        response = client.post(
            reverse('reviews:selection-list'),
            {'article': str(self.article.id), 'target_count': 3, 'assign': True},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['active_assignments'], 1)
        self.assertEqual(len(response.data['assignments']), 2)
        self.assertEqual(
            ReviewAssignment.objects.filter(article=self.article, status='pending').count(), 3
        )

    def test_full_article_returns_empty_selection(self):
        self.assign_existing(self.reviewer)
        client = self.authenticate(self.editor)

        response = client.post(
            reverse('reviews:selection-list'),
            {'article': str(self.article.id), 'target_count': 1, 'assign': True},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['selected'], [])
        self.assertEqual(response.data['assignments'], [])
        self.assertEqual(ReviewAssignment.objects.filter(article=self.article).count(), 1)

    def test_editor_selects_and_assigns(self):
        client = self.authenticate(self.editor)

        response = client.post(
            reverse('reviews:selection-list'),
            {'article': str(self.article.id), 'target_count': 2, 'assign': True},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['assignments']), 2)
        self.assertEqual(ReviewAssignment.objects.filter(article=self.article).count(), 2)

    def test_author_cannot_select(self):
        client = self.authenticate(self.author)

        response = client.post(
            reverse('reviews:selection-list'),
            {'article': str(self.article.id)},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_preview_requires_article(self):
        client = self.authenticate(self.editor)
        response = client.get(reverse('reviews:selection-preview'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_available_reviewers(self):
        client = self.authenticate(self.editor)

        response = client.get(reverse('reviews:reviewers-available'), {'category': 'proteins'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)

    def test_reviewer_accepts_own_assignment(self):
        editor_client = self.authenticate(self.editor)
        editor_client.post(
            reverse('reviews:selection-list'),
            {'article': str(self.article.id), 'target_count': 2, 'assign': True},
            format='json',
        )
        assignment = ReviewAssignment.objects.get(reviewer=self.reviewer)

        client = self.authenticate(self.reviewer.profile)
        response = client.post(reverse('reviews:assignment-accept', args=[assignment.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'accepted')

        response = client.get(reverse('reviews:assignment-list'))
        self.assertEqual(response.data['count'], 1)
