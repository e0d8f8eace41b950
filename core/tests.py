"""Core tests: operational endpoints, request ids and the error handler."""

from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from core.exceptions import api_exception_handler
from core.middleware import REQUEST_ID_HEADER
from shop.models import ShopSettings


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class OpsEndpointTests(TestCase):
	def setUp(self):
		self.client = APIClient()

	def test_health_without_settings(self):
		res = self.client.get('/api/health/')

		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data, {'ok': True, 'db': 'empty', 'session': 'none'})

	def test_health_with_settings(self):
		ShopSettings.objects.create(shop_name='محل', shop_phone='+966500000000')

		res = self.client.get('/api/health/')

		self.assertEqual(res.data['db'], 'ok')

	@override_settings(APP_VERSION='1.2.3', BUILD_ID='abc123')
	def test_version(self):
		res = self.client.get('/api/version/')

		self.assertEqual(res.data['version'], '1.2.3')
		self.assertEqual(res.data['build_id'], 'abc123')
		self.assertIn('served_at', res.data)

	def test_request_id_is_echoed(self):
		res = self.client.get('/api/health/', HTTP_X_REQUEST_ID='req-1')

		self.assertEqual(res[REQUEST_ID_HEADER], 'req-1')

	def test_request_id_is_generated(self):
		res = self.client.get('/api/health/')

		self.assertTrue(res[REQUEST_ID_HEADER])


class ExceptionHandlerTests(SimpleTestCase):
	def test_unexpected_error_becomes_json_500(self):
		context = {'request': SimpleNamespace(request_id='req-9'), 'view': None}
		try:
			raise RuntimeError('boom')
		except RuntimeError as exc:
			response = api_exception_handler(exc, context)

		self.assertEqual(response.status_code, 500)
		self.assertEqual(response.data['request_id'], 'req-9')
		self.assertNotIn('boom', response.data['detail'])
