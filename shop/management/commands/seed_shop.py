"""Seed the baseline data a fresh repair desk needs.

Creates (or refreshes):
- The shop settings row (only if missing; existing values are kept)
- The admin account (password/role refreshed on every run)
- The default message templates
- The global invoice counter at its floor

Safe to run repeatedly.

Usage:
  python manage.py seed_shop
  SHOP_NAME="..." ADMIN_EMAIL=owner@example.com ADMIN_PASSWORD=... python manage.py seed_shop
"""

import os
from decimal import Decimal

import structlog
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from invoices.models import InvoiceCounter
from messaging.models import MessageChannel, MessageTemplate
from shop.models import SETTINGS_ID, ShopSettings

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES = [
    {
        'code': 'RECEIVED',
        'channel': MessageChannel.WHATSAPP,
        'title_ar': 'استلام الجهاز',
        'body_ar': 'تم استلام جهازك ({device_name} {model}) تحت رقم فاتورة {invoice_no}. سنوافيك بالتحديثات. للاستفسار: {shop_phone}',
    },
    {
        'code': 'RECEIVED_SMS',
        'channel': MessageChannel.SMS,
        'title_ar': 'استلام الجهاز - SMS',
        'body_ar': 'تم استلام جهازك ({device_name} {model}) تحت رقم فاتورة {invoice_no}. للاستفسار: {shop_phone}',
    },
    {
        'code': 'WAITING_PART',
        'channel': MessageChannel.WHATSAPP,
        'title_ar': 'انتظار القطعة',
        'body_ar': 'جهازك تحت رقم {invoice_no} بانتظار وصول القطعة. موعد الوصول المتوقع: {expected_part_arrival_date}. سنبلغك فور وصولها.',
    },
    {
        'code': 'READY',
        'channel': MessageChannel.WHATSAPP,
        'title_ar': 'جاهز للاستلام',
        'body_ar': 'تم الانتهاء من صيانة جهازك ({device_name} {model}) ورقم الفاتورة {invoice_no}. المبلغ: {final_cost} ريال. يمكنك الاستلام خلال أوقات الدوام.',
    },
    {
        'code': 'DELIVERED',
        'channel': MessageChannel.WHATSAPP,
        'title_ar': 'تم التسليم',
        'body_ar': 'تم تسليم جهازك بنجاح. رقم الفاتورة {invoice_no}. نشكرك على زيارتك.',
    },
]


class Command(BaseCommand):
    help = 'Seed shop settings, the admin account, default message templates and the invoice counter.'

    def add_arguments(self, parser):
        parser.add_argument('--admin-email', default=os.environ.get('ADMIN_EMAIL', 'admin@local.test'))
        parser.add_argument('--admin-password', default=os.environ.get('ADMIN_PASSWORD', 'Admin12345'))
        parser.add_argument('--admin-name', default=os.environ.get('ADMIN_NAME', 'Admin'))
        parser.add_argument('--skip-admin', action='store_true', help='Do not create or update the admin account.')

    @transaction.atomic
    def handle(self, *args, **options):
        _, created = ShopSettings.objects.get_or_create(
            pk=SETTINGS_ID,
            defaults={
                'shop_name': os.environ.get('SHOP_NAME', 'محل الصيانة'),
                'shop_phone': os.environ.get('SHOP_PHONE', '+966500000000'),
                'vat_rate': Decimal('0.15'),
            },
        )
        self.stdout.write(f"Settings: {'created' if created else 'kept'}")

        if not options['skip_admin']:
            self._seed_admin(options['admin_email'], options['admin_password'], options['admin_name'])

        for template in DEFAULT_TEMPLATES:
            defaults = {key: value for key, value in template.items() if key != 'code'}
            MessageTemplate.objects.update_or_create(code=template['code'], defaults=defaults)
        self.stdout.write(f"Templates: {len(DEFAULT_TEMPLATES)} upserted")

        counter = InvoiceCounter.objects.ensure_global()
        self.stdout.write(f"Invoice counter: {counter.counter}")

        logger.info('shop_seeded', settings_created=created, templates=len(DEFAULT_TEMPLATES))
        self.stdout.write(self.style.SUCCESS('Seed complete.'))

    def _seed_admin(self, email, password, name):
        User = get_user_model()
        user, created = User.objects.get_or_create(username=email, defaults={'email': email})
        user.email = email
        user.first_name = name
        user.role = User.Role.ADMIN
        user.is_staff = True
        user.set_password(password)
        user.save()
        self.stdout.write(f"Admin {email}: {'created' if created else 'updated'}")
