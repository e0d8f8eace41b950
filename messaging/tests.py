"""Messaging app tests."""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from core.exceptions import InvalidStateError, NotFoundError, SettingsMissing
from invoices import services as invoice_services
from invoices.lifecycle import DeviceStatus
from messaging import services
from messaging.models import MessageChannel, MessageLog, MessageStatus, MessageTemplate
from messaging.phone import format_mobile_display, is_valid_ksa_mobile, normalize_mobile
from messaging.templating import PLACEHOLDERS, format_amount, render_template
from shop.models import ShopSettings


class MobileNumberTests(SimpleTestCase):
	def test_common_inputs_normalize_to_international_form(self):
		for raw in ('0512345678', '512345678', '00966512345678', '966512345678', '+966 51 234 5678', '051-234-5678'):
			with self.subTest(raw=raw):
				self.assertEqual(normalize_mobile(raw), '+966512345678')

	def test_normalizing_is_idempotent(self):
		once = normalize_mobile('0512345678')
		self.assertEqual(normalize_mobile(once), once)

	def test_unrecognised_input_keeps_digits_only(self):
		self.assertEqual(normalize_mobile('abc 123'), '123')
		self.assertEqual(normalize_mobile(''), '')
		self.assertEqual(normalize_mobile(None), '')

	def test_validity(self):
		self.assertTrue(is_valid_ksa_mobile('0512345678'))
		self.assertTrue(is_valid_ksa_mobile('+966512345678'))
		self.assertFalse(is_valid_ksa_mobile('0412345678'))
		self.assertFalse(is_valid_ksa_mobile('05123'))
		self.assertFalse(is_valid_ksa_mobile('+201012345678'))

	def test_display_format(self):
		self.assertEqual(format_mobile_display('+966512345678'), '051 234 5678')
		self.assertEqual(format_mobile_display(''), '')
		self.assertEqual(format_mobile_display('abc'), 'abc')


class TemplateRenderingTests(SimpleTestCase):
	def setUp(self):
		self.invoice = SimpleNamespace(
			customer_name='أحمد',
			mobile='+966512345678',
			invoice_no='10499',
			device_type='iPhone 12',
			problem='شاشة مكسورة',
			device_status=DeviceStatus.READY,
			agreed_price=Decimal('150.00'),
			created_at=datetime(2024, 1, 1, 9, 30, tzinfo=dt_timezone.utc),
		)
		self.settings = SimpleNamespace(shop_name='محل النور', shop_phone='+966500000000')

	def test_known_placeholders_are_replaced(self):
		body = '{customer_name} {invoice_no} {device_name} {shop_name} {shop_phone} {repair_status}'

		rendered = render_template(body, self.invoice, self.settings)

		self.assertEqual(rendered, 'أحمد 10499 iPhone 12 محل النور +966500000000 READY')

	def test_every_occurrence_is_replaced(self):
		rendered = render_template('{invoice_no}/{invoice_no}', self.invoice, self.settings)

		self.assertEqual(rendered, '10499/10499')

	def test_unknown_tokens_are_left_alone(self):
		rendered = render_template('{unknown} {invoice_no}', self.invoice, self.settings)

		self.assertEqual(rendered, '{unknown} 10499')

	def test_fields_without_values_render_empty(self):
		self.invoice.customer_name = None
		rendered = render_template('[{customer_name}][{model}][{color}][{part_status}]', self.invoice, self.settings)

		self.assertEqual(rendered, '[][][][]')

	def test_cost_and_date_formats(self):
		rendered = render_template('{final_cost} {created_at}', self.invoice, self.settings)

		# Riyadh is UTC+3
		self.assertEqual(rendered, '150 2024-01-01 12:30')

	def test_amount_format(self):
		self.assertEqual(format_amount(Decimal('12.50')), '12.5')
		self.assertEqual(format_amount(None), '')

	def test_every_advertised_placeholder_is_handled(self):
		body = ' '.join(PLACEHOLDERS)

		rendered = render_template(body, self.invoice, self.settings)

		self.assertNotIn('{', rendered)


class DeepLinkTests(SimpleTestCase):
	def test_whatsapp_link_drops_plus_sign(self):
		url = services.build_deep_link(MessageChannel.WHATSAPP, '+966512345678', 'Hi there (ok)!')

		self.assertEqual(url, "https://wa.me/966512345678?text=Hi%20there%20(ok)!")

	def test_sms_link_keeps_plus_sign(self):
		url = services.build_deep_link(MessageChannel.SMS, '+966512345678', 'a&b')

		self.assertEqual(url, 'sms:+966512345678?body=a%26b')

	def test_arabic_is_utf8_percent_encoded(self):
		self.assertEqual(services.encode_uri_component('جاهز'), '%D8%AC%D8%A7%D9%87%D8%B2')


class ComposeMessageTests(TestCase):
	"""Message composition through the service layer."""

	def setUp(self):
		ShopSettings.objects.create(shop_name='محل النور', shop_phone='+966500000000')
		self.user = get_user_model().objects.create_user(username='staff', password='x')
		self.invoice = invoice_services.create_invoice({
			'customer_name': 'أحمد',
			'mobile': '0512345678',
			'device_type': 'iPhone',
			'agreed_price': '150',
		})
		self.template = MessageTemplate.objects.create(
			code='READY',
			channel=MessageChannel.WHATSAPP,
			title_ar='جاهز',
			body_ar='{customer_name}: جهازك {device_name} جاهز. المبلغ {final_cost}',
		)

	def test_template_message_is_rendered_logged_and_marks_contacted(self):
		composed = services.compose_message(
			self.invoice.pk, MessageChannel.WHATSAPP, template_id=self.template.pk, user=self.user
		)

		expected = 'أحمد: جهازك iPhone جاهز. المبلغ 150'
		self.assertEqual(composed.url, 'https://wa.me/966512345678?text=' + services.encode_uri_component(expected))
		self.assertEqual(composed.log.message_body, expected)
		self.assertEqual(composed.log.template_code, 'READY')
		self.assertEqual(composed.log.status, MessageStatus.SENT)
		self.assertEqual(composed.log.sent_by, self.user)
		self.assertEqual(composed.log.to_mobile, '+966512345678')
		self.invoice.refresh_from_db()
		self.assertTrue(self.invoice.contacted_customer)

	def test_custom_body_is_used_without_template(self):
		composed = services.compose_message(self.invoice.pk, MessageChannel.SMS, custom_body='رقم {invoice_no}')

		self.assertEqual(composed.log.message_body, 'رقم 10499')
		self.assertIsNone(composed.log.template_code)
		self.assertTrue(composed.url.startswith('sms:+966512345678?body='))

	def test_status_message_is_the_fallback(self):
		composed = services.compose_message(self.invoice.pk, MessageChannel.SMS, custom_body='   ')

		self.assertIn('10499', composed.log.message_body)

	def test_no_parts_status_is_blocked(self):
		invoice_services.update_invoice(self.invoice.pk, {'device_status': DeviceStatus.NO_PARTS})

		with self.assertRaises(InvalidStateError):
			services.compose_message(self.invoice.pk, MessageChannel.WHATSAPP, custom_body='مرحبا')

		self.assertFalse(MessageLog.objects.exists())
		self.invoice.refresh_from_db()
		self.assertFalse(self.invoice.contacted_customer)

	def test_no_parts_is_blocked_even_without_mobile(self):
		invoice_services.update_invoice(self.invoice.pk, {'device_status': DeviceStatus.NO_PARTS, 'mobile': ''})

		with self.assertRaises(InvalidStateError) as ctx:
			services.compose_message(self.invoice.pk, MessageChannel.WHATSAPP, custom_body='مرحبا')

		self.assertEqual(ctx.exception.get_codes(), 'status_not_messageable')
		self.assertFalse(MessageLog.objects.exists())

	def test_missing_settings_is_reported(self):
		ShopSettings.objects.all().delete()

		with self.assertRaises(SettingsMissing):
			services.compose_message(self.invoice.pk, MessageChannel.WHATSAPP, custom_body='مرحبا')

	def test_settings_are_checked_before_status(self):
		ShopSettings.objects.all().delete()
		invoice_services.update_invoice(self.invoice.pk, {'device_status': DeviceStatus.NO_PARTS})

		with self.assertRaises(SettingsMissing):
			services.compose_message(self.invoice.pk, MessageChannel.WHATSAPP, custom_body='مرحبا')

	def test_missing_mobile_is_rejected(self):
		invoice_services.update_invoice(self.invoice.pk, {'mobile': '', 'problem': 'شاشة'})

		with self.assertRaises(InvalidStateError):
			services.compose_message(self.invoice.pk, MessageChannel.WHATSAPP, custom_body='مرحبا')

	def test_unknown_template_is_not_found(self):
		with self.assertRaises(NotFoundError):
			services.compose_message(self.invoice.pk, MessageChannel.WHATSAPP, template_id=999)

	def test_unknown_invoice_is_not_found(self):
		with self.assertRaises(NotFoundError):
			services.compose_message('00000000-0000-0000-0000-000000000000', MessageChannel.WHATSAPP)

	def test_preview_does_not_log(self):
		body = services.preview_message(self.invoice.pk, template_id=self.template.pk)

		self.assertEqual(body, 'أحمد: جهازك iPhone جاهز. المبلغ 150')
		self.assertFalse(MessageLog.objects.exists())

	def test_log_rows_cannot_be_edited(self):
		composed = services.compose_message(self.invoice.pk, MessageChannel.SMS, custom_body='مرحبا')
		composed.log.message_body = 'تعديل'

		with self.assertRaises(ValueError):
			composed.log.save()


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class MessagingApiTests(TestCase):
	"""Messaging API smoke tests."""

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.admin = User.objects.create_user(username='admin', password='12345678', role=User.Role.ADMIN)
		cls.staff = User.objects.create_user(username='staff', password='12345678', role=User.Role.STAFF)
		cls.viewer = User.objects.create_user(username='viewer', password='12345678', role=User.Role.VIEWER)
		ShopSettings.objects.create(shop_name='محل النور', shop_phone='+966500000000')
		cls.invoice = invoice_services.create_invoice({'customer_name': 'أحمد', 'mobile': '0512345678'})

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.staff)

	def test_send_returns_url_and_log(self):
		res = self.client.post(
			'/api/messages/send/',
			{'invoice_id': str(self.invoice.pk), 'channel': MessageChannel.WHATSAPP, 'custom_body': 'مرحبا'},
			format='json',
		)

		self.assertEqual(res.status_code, 200, res.content)
		self.assertTrue(res.data['url'].startswith('https://wa.me/966512345678?text='))
		self.assertEqual(res.data['log']['sent_by'], 'staff')
		self.assertEqual(MessageLog.objects.filter(invoice=self.invoice).count(), 1)

	def test_send_rejects_unknown_channel(self):
		res = self.client.post(
			'/api/messages/send/',
			{'invoice_id': str(self.invoice.pk), 'channel': 'EMAIL'},
			format='json',
		)

		self.assertEqual(res.status_code, 400)

	def test_send_for_blocked_status_returns_400(self):
		invoice_services.update_invoice(self.invoice.pk, {'device_status': DeviceStatus.NO_PARTS})

		res = self.client.post(
			'/api/messages/send/',
			{'invoice_id': str(self.invoice.pk), 'channel': MessageChannel.SMS},
			format='json',
		)

		self.assertEqual(res.status_code, 400)
		self.assertFalse(MessageLog.objects.exists())

	def test_viewer_cannot_send(self):
		self.client.force_authenticate(user=self.viewer)

		res = self.client.post(
			'/api/messages/send/',
			{'invoice_id': str(self.invoice.pk), 'channel': MessageChannel.SMS},
			format='json',
		)

		self.assertEqual(res.status_code, 403)

	def test_preview_returns_rendered_body(self):
		self.client.force_authenticate(user=self.viewer)

		res = self.client.post(
			'/api/messages/preview/',
			{'invoice_id': str(self.invoice.pk), 'custom_body': 'فاتورة {invoice_no}'},
			format='json',
		)

		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['body'], 'فاتورة 10499')

	def test_templates_are_admin_editable_only(self):
		payload = {'code': 'READY', 'channel': MessageChannel.WHATSAPP, 'title_ar': 'جاهز', 'body_ar': 'جاهز {invoice_no}'}

		staff_res = self.client.post('/api/templates/', payload, format='json')
		self.client.force_authenticate(user=self.admin)
		admin_res = self.client.post('/api/templates/', payload, format='json')

		self.assertEqual(staff_res.status_code, 403)
		self.assertEqual(admin_res.status_code, 201, admin_res.content)

	def test_template_codes_are_unique(self):
		MessageTemplate.objects.create(code='READY', channel=MessageChannel.WHATSAPP, title_ar='جاهز', body_ar='x')
		self.client.force_authenticate(user=self.admin)

		res = self.client.post(
			'/api/templates/',
			{'code': 'READY', 'channel': MessageChannel.SMS, 'title_ar': 'جاهز', 'body_ar': 'y'},
			format='json',
		)

		self.assertEqual(res.status_code, 400)

	def test_templates_list_and_placeholders(self):
		MessageTemplate.objects.create(code='READY', channel=MessageChannel.WHATSAPP, title_ar='جاهز', body_ar='x')

		listing = self.client.get('/api/templates/')
		placeholders = self.client.get('/api/templates/placeholders/')

		self.assertEqual([row['code'] for row in listing.data], ['READY'])
		self.assertIn('{invoice_no}', placeholders.data)
