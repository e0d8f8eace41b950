"""Django admin configuration for messaging."""

from django.contrib import admin

from .models import MessageLog, MessageTemplate


@admin.register(MessageTemplate)
class MessageTemplateAdmin(admin.ModelAdmin):
    list_display = ('code', 'channel', 'title_ar', 'enabled', 'updated_at')
    list_filter = ('channel', 'enabled')
    search_fields = ('code', 'title_ar')


@admin.register(MessageLog)
class MessageLogAdmin(admin.ModelAdmin):
    """The log is append-only: no add, edit or delete from the admin."""

    list_display = ('created_at', 'invoice', 'channel', 'template_code', 'to_mobile', 'status', 'sent_by')
    list_filter = ('channel', 'status', 'created_at')
    search_fields = ('invoice__invoice_no', 'to_mobile')

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
