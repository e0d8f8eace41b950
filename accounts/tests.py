"""Accounts app tests."""

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class AccountsApiTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.user = User.objects.create_user(
			username='staff',
			email='staff@example.com',
			password='12345678',
			first_name='سعيد',
			role=User.Role.STAFF,
		)

	def setUp(self):
		self.client = APIClient()

	def test_login_returns_token_pair(self):
		res = self.client.post('/api/accounts/login/', {'username': 'staff', 'password': '12345678'}, format='json')

		self.assertEqual(res.status_code, 200)
		self.assertIn('access', res.data)
		self.assertIn('refresh', res.data)

	def test_login_with_wrong_password_fails(self):
		res = self.client.post('/api/accounts/login/', {'username': 'staff', 'password': 'nope'}, format='json')

		self.assertEqual(res.status_code, 401)

	def test_bearer_token_reaches_me(self):
		login = self.client.post('/api/accounts/login/', {'username': 'staff', 'password': '12345678'}, format='json')
		self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

		res = self.client.get('/api/accounts/me/')

		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['username'], 'staff')
		self.assertEqual(res.data['role'], 'STAFF')

	def test_role_cannot_be_self_assigned(self):
		self.client.force_authenticate(user=self.user)

		res = self.client.patch('/api/accounts/me/', {'role': 'ADMIN', 'last_name': 'العلي'}, format='json')

		self.assertEqual(res.status_code, 200)
		self.user.refresh_from_db()
		self.assertEqual(self.user.role, 'STAFF')
		self.assertEqual(self.user.last_name, 'العلي')

	def test_role_flags(self):
		User = get_user_model()
		viewer = User(username='v', role=User.Role.VIEWER)
		admin = User(username='a', role=User.Role.ADMIN)

		self.assertFalse(viewer.can_edit_tickets)
		self.assertTrue(admin.is_shop_admin)
		self.assertTrue(admin.can_edit_tickets)
