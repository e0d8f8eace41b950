"""Database models for staff accounts."""

from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Shop user.

    Extends Django's :class:`~django.contrib.auth.models.AbstractUser` with a
    ``role`` that decides what the user may change:

    - ``ADMIN``: everything, including shop settings and message templates
    - ``STAFF``: create/update tickets and message customers
    - ``VIEWER``: read-only
    """

    class Role(models.TextChoices):
        ADMIN = 'ADMIN', 'مدير'
        STAFF = 'STAFF', 'موظف'
        VIEWER = 'VIEWER', 'مشاهد'

    role = models.CharField(max_length=10, choices=Role.choices, default=Role.STAFF)

    @property
    def is_shop_admin(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN

    @property
    def can_edit_tickets(self) -> bool:
        return self.is_shop_admin or self.role == self.Role.STAFF

    def __str__(self):
        return self.get_full_name() or self.username
