from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

from apps.submissions.models import Article, Submission

User = get_user_model()


class SubmissionWorkflowAPITest(APITestCase):

    def authenticate(self, user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client

    def make_user(self, email, role):
        user = User.objects.create_user(email=email, password='testpass123')
        user.profile.role = role
        user.profile.save()
        return user

    def setUp(self):
        self.author = self.make_user('author@example.com', 'author')
        self.editor = self.make_user('editor@example.com', 'editor')
        article = Article.objects.create(title='Coral reef acoustics', author=self.author.profile)
        self.submission = Submission.objects.create(
            article=article, author=self.author.profile, status='under_review'
        )

    def test_editor_transition(self):
        client = self.authenticate(self.editor)
        url = reverse('submissions:submission-transition', args=[self.submission.id])

        response = client.post(url, {'status': 'revision_requested', 'notes': 'Minor fixes'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['changed'])
        self.assertEqual(response.data['status'], 'revision_requested')
        self.assertEqual(response.data['history_entry']['from_status'], 'under_review')
        self.assertEqual(response.data['next_steps'], ["Author revision", "Resubmission"])

    def test_author_transition_denied(self):
        client = self.authenticate(self.author)
        url = reverse('submissions:submission-transition', args=[self.submission.id])

        response = client.post(url, {'status': 'accepted'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'permission_denied')
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.status, 'under_review')

    def test_stale_version_returns_conflict(self):
        client = self.authenticate(self.editor)
        url = reverse('submissions:submission-transition', args=[self.submission.id])

        response = client.post(url, {'status': 'accepted', 'expected_version': 7}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_status_is_bad_request(self):
        client = self.authenticate(self.editor)
        url = reverse('submissions:submission-transition', args=[self.submission.id])

        response = client.post(url, {'status': 'limbo'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_workflow_status_for_author(self):
        client = self.authenticate(self.author)
        url = reverse('submissions:submission-workflow', args=[self.submission.id])

        response = client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['allowed_targets'], ['revision_submitted', 'withdrawn'])
        self.assertEqual(response.data['estimated_completion'], "4-6 weeks")
        self.assertEqual(response.data['history'], [])

    def test_author_does_not_see_other_submissions(self):
        other = self.make_user('other@example.com', 'author')
        client = self.authenticate(other)
        url = reverse('submissions:submission-workflow', args=[self.submission.id])

        response = client.get(url)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_authentication(self):
        url = reverse('submissions:submission-list')
        response = APIClient().get(url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_superuser_with_edited_role_gets_consistent_answers(self):
        root = User.objects.create_superuser(email='root@example.com', password='testpass123')
        root.profile.role = 'reviewer'
        root.profile.save()
        client = self.authenticate(root)

        response = client.get(reverse('submissions:submission-workflow', args=[self.submission.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('accepted', response.data['allowed_targets'])

        url = reverse('submissions:submission-transition', args=[self.submission.id])
        response = client.post(url, {'status': 'accepted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'accepted')
