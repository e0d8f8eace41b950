"""Database model for the shop-wide settings row."""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

SETTINGS_ID = 1


class ShopSettings(models.Model):
    """Singleton (``id = 1``) holding the shop identity used in notifications."""

    id = models.PositiveSmallIntegerField(primary_key=True, default=SETTINGS_ID, editable=False)
    shop_name = models.CharField(max_length=150)
    shop_phone = models.CharField(max_length=20)
    vat_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal('0.15'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))],
    )
    whatsapp_api_key = models.CharField(max_length=255, null=True, blank=True)
    sms_api_key = models.CharField(max_length=255, null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shop Settings"
        verbose_name_plural = "Shop Settings"

    @classmethod
    def load(cls):
        """Return the settings row, or ``None`` before the shop is configured."""
        return cls.objects.filter(pk=SETTINGS_ID).first()

    def save(self, *args, **kwargs):
        self.pk = SETTINGS_ID
        super().save(*args, **kwargs)

    def __str__(self):
        return self.shop_name
