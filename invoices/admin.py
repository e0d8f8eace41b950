"""Django admin configuration for invoices."""

from django.contrib import admin

from messaging.models import MessageLog
from .models import Invoice, InvoiceCounter


# سجل الرسائل يظهر للقراءة فقط داخل صفحة الفاتورة
class MessageLogInline(admin.TabularInline):
    """Read-only message history of an invoice."""

    model = MessageLog
    extra = 0
    can_delete = False
    max_num = 0
    fields = ('created_at', 'channel', 'template_code', 'to_mobile', 'status', 'sent_by')
    readonly_fields = fields


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Admin configuration for repair invoices."""

    list_display = ('invoice_no', 'customer_name', 'mobile', 'device_type', 'device_status', 'is_delivered', 'received_at')
    list_filter = ('device_status', 'is_delivered', 'contacted_customer', 'received_at')
    search_fields = ('invoice_no', 'customer_name', 'mobile', 'device_type')
    readonly_fields = ('invoice_no', 'received_at', 'created_at', 'updated_at', 'created_by', 'updated_by')
    inlines = [MessageLogInline]

    def has_delete_permission(self, request, obj=None):
        # الفواتير لا تُحذف
        return False


@admin.register(InvoiceCounter)
class InvoiceCounterAdmin(admin.ModelAdmin):
    list_display = ('date_key', 'counter')
    readonly_fields = ('date_key', 'counter')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
