from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.common.permissions import actor_role

User = get_user_model()


class ProfileSignalTest(TestCase):

    def test_new_user_gets_author_profile(self):
        user = User.objects.create_user(email='author@example.com', password='testpass123',
                                        first_name='Ada', last_name='Lovelace')
        self.assertEqual(user.profile.role, 'author')
        self.assertEqual(user.profile.get_full_name(), 'Ada Lovelace')
        self.assertEqual(actor_role(user), 'author')

    def test_superuser_gets_admin_profile(self):
        user = User.objects.create_superuser(email='root@example.com', password='testpass123')
        self.assertEqual(user.profile.role, 'admin')
        self.assertEqual(actor_role(user), 'admin')

    def test_username_defaults_to_email(self):
        user = User.objects.create_user(email='plain@example.com', password='testpass123')
        self.assertEqual(user.username, 'plain@example.com')


class LoginTest(APITestCase):

    def test_login_returns_role(self):
        user = User.objects.create_user(email='editor@example.com', password='testpass123')
        user.profile.role = 'editor'
        user.profile.save()

        response = self.client.post(
            reverse('token_obtain_pair'),
            {'email': 'editor@example.com', 'password': 'testpass123'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['role'], 'editor')
