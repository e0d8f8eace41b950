"""Django admin configuration for the shop settings row."""

from django.contrib import admin

from .models import ShopSettings


@admin.register(ShopSettings)
class ShopSettingsAdmin(admin.ModelAdmin):
    list_display = ('shop_name', 'shop_phone', 'vat_rate', 'updated_at')

    # صف واحد فقط للإعدادات
    def has_add_permission(self, request):
        return not ShopSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
