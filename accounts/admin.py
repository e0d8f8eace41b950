from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

# منع تكرار التسجيل
if admin.site.is_registered(User):
    admin.site.unregister(User)


class ShopUserAdmin(UserAdmin):
    model = User
    list_display = ['username', 'email', 'role', 'is_staff', 'is_active']
    list_filter = UserAdmin.list_filter + ('role',)

    fieldsets = UserAdmin.fieldsets + (
        ('Role', {'fields': ('role',)}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Role', {'fields': ('role',)}),
    )


admin.site.register(User, ShopUserAdmin)
