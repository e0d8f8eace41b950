import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='InvoiceCounter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date_key', models.CharField(max_length=20, unique=True)),
                ('counter', models.PositiveIntegerField(default=10498)),
            ],
            options={
                'verbose_name': 'Invoice Counter',
                'verbose_name_plural': 'Invoice Counters',
            },
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('invoice_no', models.CharField(editable=False, max_length=20, unique=True)),
                ('customer_name', models.CharField(blank=True, max_length=150, null=True)),
                ('mobile', models.CharField(blank=True, max_length=20, null=True)),
                ('device_type', models.CharField(blank=True, max_length=150, null=True)),
                ('problem', models.TextField(blank=True, null=True)),
                ('staff_receiver', models.CharField(blank=True, max_length=100, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('agreed_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ('total_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ('device_status', models.CharField(choices=[('NEW', 'جديد'), ('RECEIVED', 'تم استلام الجهاز'), ('IN_PROGRESS', 'جاري تجهيزه'), ('WAITING_PARTS', 'في احتياج إلى قطع'), ('NO_PARTS', 'داخلي – لا يُرسل للعميل (لا توجد قطعة)'), ('READY', 'جاهز'), ('DELIVERED', 'تم التسليم'), ('REFUSED', 'تم التواصل والعميل رفض'), ('CANCELED', 'ملغاة')], default='NEW', max_length=20)),
                ('contacted_customer', models.BooleanField(default=False)),
                ('is_delivered', models.BooleanField(default=False)),
                ('receiver_name', models.CharField(blank=True, max_length=150, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('received_at', models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_invoices', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_invoices', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Invoice',
                'verbose_name_plural': 'Invoices',
                'ordering': ['-updated_at'],
                'indexes': [models.Index(fields=['device_status', 'updated_at'], name='invoice_status_updated_idx'), models.Index(fields=['received_at'], name='invoice_received_idx')],
            },
        ),
    ]
