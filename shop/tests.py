"""Shop app tests."""

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from invoices.models import InvoiceCounter
from invoices.numbering import GLOBAL_COUNTER_KEY, INVOICE_COUNTER_FLOOR
from messaging.models import MessageTemplate
from shop.models import ShopSettings


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class ShopSettingsApiTests(TestCase):
	"""Settings API smoke tests covering the admin-only write."""

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.admin = User.objects.create_user(username='admin', password='12345678', role=User.Role.ADMIN)
		cls.staff = User.objects.create_user(username='staff', password='12345678', role=User.Role.STAFF)

	def setUp(self):
		self.client = APIClient()

	def test_get_before_setup_returns_null(self):
		self.client.force_authenticate(user=self.staff)

		res = self.client.get('/api/settings/')

		self.assertEqual(res.status_code, 200)
		self.assertIsNone(res.data['settings'])

	def test_staff_cannot_save(self):
		self.client.force_authenticate(user=self.staff)

		res = self.client.put('/api/settings/', {'shop_name': 'محل', 'shop_phone': '+966500000000'}, format='json')

		self.assertEqual(res.status_code, 403)
		self.assertFalse(ShopSettings.objects.exists())

	def test_admin_creates_then_replaces_singleton(self):
		self.client.force_authenticate(user=self.admin)

		first = self.client.put(
			'/api/settings/',
			{'shop_name': 'محل النور', 'shop_phone': '+966500000000', 'whatsapp_api_key': 'secret'},
			format='json',
		)
		second = self.client.put(
			'/api/settings/',
			{'shop_name': 'محل الأمل', 'shop_phone': '+966511111111', 'vat_rate': '0.05'},
			format='json',
		)

		self.assertEqual(first.status_code, 200, first.content)
		self.assertEqual(second.status_code, 200, second.content)
		self.assertEqual(ShopSettings.objects.count(), 1)
		saved = ShopSettings.load()
		self.assertEqual(saved.pk, 1)
		self.assertEqual(saved.shop_name, 'محل الأمل')
		self.assertEqual(saved.whatsapp_api_key, 'secret')
		self.assertNotIn('whatsapp_api_key', second.data['settings'])
		self.assertTrue(second.data['settings']['has_whatsapp_api_key'])

	def test_blank_api_key_is_stored_as_null(self):
		self.client.force_authenticate(user=self.admin)

		self.client.put(
			'/api/settings/',
			{'shop_name': 'محل', 'shop_phone': '+966500000000', 'sms_api_key': '  '},
			format='json',
		)

		self.assertIsNone(ShopSettings.load().sms_api_key)

	def test_vat_rate_out_of_range_is_rejected(self):
		self.client.force_authenticate(user=self.admin)

		res = self.client.put(
			'/api/settings/',
			{'shop_name': 'محل', 'shop_phone': '+966500000000', 'vat_rate': '1.5'},
			format='json',
		)

		self.assertEqual(res.status_code, 400)


class SeedShopCommandTests(TestCase):
	def test_seed_is_idempotent(self):
		call_command('seed_shop', stdout=StringIO())
		call_command('seed_shop', stdout=StringIO())

		self.assertEqual(ShopSettings.objects.count(), 1)
		self.assertEqual(
			sorted(MessageTemplate.objects.values_list('code', flat=True)),
			['DELIVERED', 'READY', 'RECEIVED', 'RECEIVED_SMS', 'WAITING_PART'],
		)
		self.assertEqual(InvoiceCounter.objects.get(date_key=GLOBAL_COUNTER_KEY).counter, INVOICE_COUNTER_FLOOR)
		admin = get_user_model().objects.get(username='admin@local.test')
		self.assertTrue(admin.is_shop_admin)
		self.assertTrue(admin.check_password('Admin12345'))

	def test_existing_settings_are_kept(self):
		ShopSettings.objects.create(shop_name='محل قائم', shop_phone='+966522222222')

		call_command('seed_shop', '--skip-admin', stdout=StringIO())

		self.assertEqual(ShopSettings.load().shop_name, 'محل قائم')
		self.assertFalse(get_user_model().objects.exists())
