"""Invoices app tests."""

import threading
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import OperationalError, connection
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings
from rest_framework.test import APIClient

from core.exceptions import AllocationExhausted, NotFoundError, PayloadValidationError
from invoices import services
from invoices.lifecycle import DeviceStatus, apply_delivery_flag, can_message, default_message_for
from invoices.models import Invoice, InvoiceCounter
from invoices.numbering import (
	FIRST_INVOICE_NUMBER,
	GLOBAL_COUNTER_KEY,
	INVOICE_COUNTER_FLOOR,
	format_invoice_no,
	is_lock_conflict,
	next_counter_value,
)
from messaging.models import MessageChannel, MessageLog


class LifecycleRulesTests(SimpleTestCase):
	"""Status rules that do not need the database."""

	def test_only_no_parts_blocks_messaging(self):
		for status in DeviceStatus.values:
			self.assertEqual(can_message(status), status != DeviceStatus.NO_PARTS)

	def test_default_message_mentions_invoice_number_token(self):
		self.assertIn('{invoice_no}', default_message_for(DeviceStatus.READY))

	def test_default_message_falls_back_to_received_text(self):
		self.assertEqual(default_message_for(DeviceStatus.NEW), default_message_for(DeviceStatus.RECEIVED))

	def test_delivery_flag_forces_delivered_and_stamps_time(self):
		now = datetime(2024, 5, 1, 10, 0, tzinfo=dt_timezone.utc)
		invoice = SimpleNamespace(is_delivered=False, delivered_at=None, device_status=DeviceStatus.READY)

		changed = apply_delivery_flag(invoice, True, now=now)

		self.assertTrue(invoice.is_delivered)
		self.assertEqual(invoice.device_status, DeviceStatus.DELIVERED)
		self.assertEqual(invoice.delivered_at, now)
		self.assertIn('device_status', changed)

	def test_delivery_flag_keeps_existing_stamp_when_already_delivered(self):
		stamped = datetime(2024, 5, 1, 10, 0, tzinfo=dt_timezone.utc)
		later = datetime(2024, 5, 2, 10, 0, tzinfo=dt_timezone.utc)
		invoice = SimpleNamespace(is_delivered=True, delivered_at=stamped, device_status=DeviceStatus.DELIVERED)

		apply_delivery_flag(invoice, True, now=later)

		self.assertEqual(invoice.delivered_at, stamped)

	def test_delivery_flag_uses_supplied_timestamp(self):
		supplied = datetime(2024, 4, 30, 18, 0, tzinfo=dt_timezone.utc)
		invoice = SimpleNamespace(is_delivered=True, delivered_at=None, device_status=DeviceStatus.DELIVERED)

		apply_delivery_flag(invoice, True, delivered_at=supplied)

		self.assertEqual(invoice.delivered_at, supplied)

	def test_clearing_delivery_flag_clears_time_but_not_status(self):
		invoice = SimpleNamespace(
			is_delivered=True,
			delivered_at=datetime(2024, 5, 1, tzinfo=dt_timezone.utc),
			device_status=DeviceStatus.DELIVERED,
		)

		changed = apply_delivery_flag(invoice, False)

		self.assertFalse(invoice.is_delivered)
		self.assertIsNone(invoice.delivered_at)
		self.assertEqual(invoice.device_status, DeviceStatus.DELIVERED)
		self.assertNotIn('device_status', changed)


class NumberFormatTests(SimpleTestCase):
	def test_large_numbers_are_plain(self):
		self.assertEqual(format_invoice_no(10499), '10499')

	def test_small_numbers_are_zero_padded(self):
		self.assertEqual(format_invoice_no(42), '000042')

	def test_next_value_never_below_first_number(self):
		self.assertEqual(next_counter_value(0), FIRST_INVOICE_NUMBER)
		self.assertEqual(next_counter_value(INVOICE_COUNTER_FLOOR), FIRST_INVOICE_NUMBER)
		self.assertEqual(next_counter_value(20000), 20001)


class InvoiceCreationTests(TestCase):
	"""Invoice creation through the service layer."""

	def test_first_invoice_gets_first_number(self):
		invoice = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone 12'})

		self.assertEqual(invoice.invoice_no, '10499')
		self.assertEqual(invoice.device_status, DeviceStatus.NEW)
		self.assertEqual(InvoiceCounter.objects.get(date_key=GLOBAL_COUNTER_KEY).counter, 10499)

	def test_numbers_are_unique_and_increasing(self):
		numbers = [
			int(services.create_invoice({'mobile': '0512345678', 'problem': 'شاشة'}).invoice_no)
			for _ in range(5)
		]

		self.assertEqual(numbers, sorted(set(numbers)))
		self.assertEqual(numbers, list(range(10499, 10504)))

	def test_counter_above_floor_continues_from_stored_value(self):
		InvoiceCounter.objects.create(date_key=GLOBAL_COUNTER_KEY, counter=20000)

		invoice = services.create_invoice({'customer_name': 'سارة', 'problem': 'بطارية'})

		self.assertEqual(invoice.invoice_no, '20001')

	def test_counter_below_floor_is_lifted(self):
		InvoiceCounter.objects.create(date_key=GLOBAL_COUNTER_KEY, counter=5)

		invoice = services.create_invoice({'customer_name': 'سارة', 'problem': 'بطارية'})

		self.assertEqual(invoice.invoice_no, '10499')

	def test_rejects_single_field(self):
		with self.assertRaises(PayloadValidationError):
			services.create_invoice({'customer_name': 'أحمد'})
		self.assertFalse(Invoice.objects.exists())

	def test_blank_values_do_not_count_toward_minimum(self):
		with self.assertRaises(PayloadValidationError):
			services.create_invoice({'customer_name': 'أحمد', 'device_type': '   '})

	def test_text_is_trimmed_and_mobile_normalized(self):
		invoice = services.create_invoice({
			'customer_name': '  أحمد  ',
			'mobile': '05 1234 5678',
			'notes': '',
		})

		self.assertEqual(invoice.customer_name, 'أحمد')
		self.assertEqual(invoice.mobile, '+966512345678')
		self.assertIsNone(invoice.notes)

	def test_negative_price_is_rejected(self):
		with self.assertRaises(PayloadValidationError):
			services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPad', 'agreed_price': '-1'})

	def test_lost_counter_race_is_retried(self):
		real_try_advance = InvoiceCounter.objects.try_advance
		calls = []

		def flaky(expected_prior):
			calls.append(expected_prior)
			if len(calls) == 1:
				return None
			return real_try_advance(expected_prior)

		with patch.object(InvoiceCounter.objects, 'try_advance', side_effect=flaky):
			invoice = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPad'})

		self.assertEqual(len(calls), 2)
		self.assertEqual(invoice.invoice_no, '10499')

	def test_taken_number_exhausts_attempts(self):
		Invoice.objects.create(invoice_no='10499', customer_name='قديم')

		with self.assertRaises(AllocationExhausted):
			services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPad'})

		self.assertEqual(Invoice.objects.count(), 1)

	def test_lock_abort_is_retried(self):
		real_read = InvoiceCounter.objects.read_global_for_update
		calls = []

		def locked_once():
			calls.append(1)
			if len(calls) == 1:
				raise OperationalError('database is locked')
			return real_read()

		with patch.object(InvoiceCounter.objects, 'read_global_for_update', side_effect=locked_once):
			invoice = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPad'})

		self.assertEqual(len(calls), 2)
		self.assertEqual(invoice.invoice_no, '10499')

	def test_other_operational_errors_propagate(self):
		with patch.object(
			InvoiceCounter.objects,
			'read_global_for_update',
			side_effect=OperationalError('no such table: invoices_invoicecounter'),
		):
			with self.assertRaises(OperationalError):
				services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPad'})


class LockConflictDetectionTests(SimpleTestCase):
	def _wrapped(self, message, cause=None):
		try:
			raise OperationalError(message) from cause
		except OperationalError as exc:
			return exc

	def test_sqlite_busy_is_a_conflict(self):
		self.assertTrue(is_lock_conflict(self._wrapped('database is locked')))

	def test_postgres_serialization_failure_is_a_conflict(self):
		cause = Exception('could not serialize access')
		cause.sqlstate = '40001'
		self.assertTrue(is_lock_conflict(self._wrapped('could not serialize access', cause)))

	def test_postgres_deadlock_is_a_conflict(self):
		cause = Exception('deadlock detected')
		cause.pgcode = '40P01'
		self.assertTrue(is_lock_conflict(self._wrapped('deadlock detected', cause)))

	def test_other_errors_are_not_conflicts(self):
		self.assertFalse(is_lock_conflict(self._wrapped('disk I/O error')))


class ConcurrentCreationTests(TransactionTestCase):
	"""Parallel intake on the real database: every request gets its own number."""

	WORKERS = 8

	def test_parallel_creates_get_distinct_numbers(self):
		barrier = threading.Barrier(self.WORKERS)
		numbers = []
		errors = []
		lock = threading.Lock()

		def worker(index):
			try:
				barrier.wait(timeout=10)
				invoice = services.create_invoice({'customer_name': f'عميل {index}', 'device_type': 'iPhone'})
				with lock:
					numbers.append(invoice.invoice_no)
			except Exception as exc:
				with lock:
					errors.append(f'{type(exc).__name__}: {exc}')
			finally:
				connection.close()

		threads = [threading.Thread(target=worker, args=(i,)) for i in range(self.WORKERS)]
		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join(timeout=60)

		self.assertEqual(errors, [])
		self.assertEqual(len(numbers), self.WORKERS)
		self.assertEqual(len(set(numbers)), self.WORKERS)
		self.assertTrue(all(int(number) >= FIRST_INVOICE_NUMBER for number in numbers))
		self.assertEqual(Invoice.objects.count(), self.WORKERS)


class InvoiceUpdateTests(TestCase):
	"""Partial updates through the service layer."""

	def setUp(self):
		self.invoice = services.create_invoice({
			'customer_name': 'أحمد',
			'mobile': '0512345678',
			'device_type': 'iPhone',
			'notes': 'خدش بسيط',
			'agreed_price': '150',
		})

	def test_missing_keys_are_untouched(self):
		updated = services.update_invoice(self.invoice.pk, {'problem': 'لا يشحن'})

		self.assertEqual(updated.problem, 'لا يشحن')
		self.assertEqual(updated.notes, 'خدش بسيط')
		self.assertEqual(updated.agreed_price, Decimal('150'))

	def test_empty_values_clear_fields(self):
		updated = services.update_invoice(self.invoice.pk, {'notes': '', 'agreed_price': None})

		self.assertIsNone(updated.notes)
		self.assertIsNone(updated.agreed_price)

	def test_invoice_number_is_never_changed(self):
		updated = services.update_invoice(self.invoice.pk, {'invoice_no': '99999', 'customer_name': 'خالد'})

		self.assertEqual(updated.invoice_no, self.invoice.invoice_no)

	def test_delivery_flag_sets_status_and_time(self):
		updated = services.update_invoice(self.invoice.pk, {'is_delivered': True, 'receiver_name': 'أحمد'})

		self.assertEqual(updated.device_status, DeviceStatus.DELIVERED)
		self.assertIsNotNone(updated.delivered_at)
		self.assertEqual(updated.receiver_name, 'أحمد')

	def test_status_alone_does_not_touch_delivery_flag(self):
		updated = services.update_invoice(self.invoice.pk, {'device_status': DeviceStatus.DELIVERED})

		self.assertEqual(updated.device_status, DeviceStatus.DELIVERED)
		self.assertFalse(updated.is_delivered)
		self.assertIsNone(updated.delivered_at)

	def test_status_can_move_backwards(self):
		services.update_invoice(self.invoice.pk, {'is_delivered': True})
		updated = services.update_invoice(self.invoice.pk, {'device_status': DeviceStatus.NEW})

		self.assertEqual(updated.device_status, DeviceStatus.NEW)

	def test_updated_by_is_recorded(self):
		user = get_user_model().objects.create_user(username='staff', password='x')

		updated = services.update_invoice(self.invoice.pk, {'customer_name': 'خالد'}, user=user)

		self.assertEqual(updated.updated_by, user)

	def test_unknown_invoice_raises_not_found(self):
		with self.assertRaises(NotFoundError):
			services.update_invoice('not-a-uuid', {'customer_name': 'خالد'})


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class InvoiceApiTests(TestCase):
	"""Invoices API smoke tests covering roles and payload handling."""

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.staff = User.objects.create_user(username='staff', password='12345678', role=User.Role.STAFF)
		cls.viewer = User.objects.create_user(username='viewer', password='12345678', role=User.Role.VIEWER)

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.staff)

	def test_anonymous_is_rejected(self):
		self.client.force_authenticate(user=None)

		res = self.client.get('/api/invoices/')

		self.assertEqual(res.status_code, 401)

	def test_create_returns_201_with_number(self):
		res = self.client.post(
			'/api/invoices/',
			{'customer_name': 'أحمد', 'mobile': '0512345678', 'device_type': 'iPhone', 'agreed_price': ''},
			format='json',
		)

		self.assertEqual(res.status_code, 201, res.content)
		self.assertEqual(res.data['invoice_no'], '10499')
		self.assertEqual(res.data['mobile'], '+966512345678')
		self.assertIsNone(res.data['agreed_price'])
		self.assertEqual(res.data['created_by'], 'staff')
		self.assertTrue(res.data['can_message'])

	def test_create_without_minimum_returns_400(self):
		res = self.client.post('/api/invoices/', {'notes': 'بدون بيانات'}, format='json')

		self.assertEqual(res.status_code, 400)
		self.assertIn('detail', res.data)

	def test_viewer_cannot_create(self):
		self.client.force_authenticate(user=self.viewer)

		res = self.client.post('/api/invoices/', {'customer_name': 'أحمد', 'device_type': 'iPhone'}, format='json')

		self.assertEqual(res.status_code, 403)

	def test_viewer_can_list(self):
		services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone'})
		self.client.force_authenticate(user=self.viewer)

		res = self.client.get('/api/invoices/')

		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['count'], 1)

	def test_patch_updates_only_given_fields(self):
		invoice = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone', 'notes': 'ملاحظة'})

		res = self.client.patch(
			f'/api/invoices/{invoice.pk}/',
			{'device_status': DeviceStatus.READY, 'total_amount': '200.50'},
			format='json',
		)

		self.assertEqual(res.status_code, 200, res.content)
		self.assertEqual(res.data['device_status'], DeviceStatus.READY)
		self.assertEqual(res.data['notes'], 'ملاحظة')
		self.assertEqual(res.data['updated_by'], 'staff')

	def test_patch_rejects_unknown_status(self):
		invoice = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone'})

		res = self.client.patch(f'/api/invoices/{invoice.pk}/', {'device_status': 'LOST'}, format='json')

		self.assertEqual(res.status_code, 400)

	def test_put_and_delete_are_not_allowed(self):
		invoice = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone'})

		self.assertEqual(self.client.put(f'/api/invoices/{invoice.pk}/', {}, format='json').status_code, 405)
		self.assertEqual(self.client.delete(f'/api/invoices/{invoice.pk}/').status_code, 405)

	def test_detail_includes_message_history(self):
		invoice = services.create_invoice({'customer_name': 'أحمد', 'mobile': '0512345678'})
		MessageLog.objects.create(
			invoice=invoice,
			channel=MessageChannel.SMS,
			to_mobile=invoice.mobile,
			message_body='مرحبا',
			sent_by=self.staff,
		)

		res = self.client.get(f'/api/invoices/{invoice.pk}/')

		self.assertEqual(res.status_code, 200)
		self.assertEqual(len(res.data['messages']), 1)
		self.assertEqual(res.data['messages'][0]['sent_by'], 'staff')

	def test_unknown_invoice_returns_404(self):
		res = self.client.get('/api/invoices/00000000-0000-0000-0000-000000000000/')

		self.assertEqual(res.status_code, 404)

	def test_filter_by_status_and_mobile(self):
		ready = services.create_invoice({'customer_name': 'أحمد', 'mobile': '0512345678'})
		services.update_invoice(ready.pk, {'device_status': DeviceStatus.READY})
		services.create_invoice({'customer_name': 'سارة', 'mobile': '0598765432'})

		by_status = self.client.get('/api/invoices/', {'device_status': DeviceStatus.READY})
		by_mobile = self.client.get('/api/invoices/', {'mobile': '0512345678'})

		self.assertEqual([row['id'] for row in by_status.data['results']], [str(ready.pk)])
		self.assertEqual([row['id'] for row in by_mobile.data['results']], [str(ready.pk)])

	def test_received_today_filter(self):
		services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone'})

		res = self.client.get('/api/invoices/', {'received': 'today'})

		self.assertEqual(res.data['count'], 1)

	def test_stats_counts(self):
		first = services.create_invoice({'customer_name': 'أحمد', 'device_type': 'iPhone'})
		second = services.create_invoice({'customer_name': 'سارة', 'device_type': 'iPad'})
		services.create_invoice({'customer_name': 'خالد', 'device_type': 'Galaxy'})
		services.update_invoice(first.pk, {'is_delivered': True})
		services.update_invoice(second.pk, {'device_status': DeviceStatus.WAITING_PARTS})

		res = self.client.get('/api/invoices/stats/')

		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['total_received'], 3)
		self.assertEqual(res.data['total_delivered'], 1)
		self.assertEqual(res.data['waiting_parts'], 1)
		self.assertEqual(res.data['ready'], 0)
		self.assertEqual(res.data['received_today'], 3)
		self.assertEqual(res.data['delivered_today'], 1)

	def test_statuses_lists_messaging_flag(self):
		res = self.client.get('/api/invoices/statuses/')

		flags = {row['value']: row['can_message'] for row in res.data}
		self.assertFalse(flags[DeviceStatus.NO_PARTS])
		self.assertTrue(flags[DeviceStatus.READY])
