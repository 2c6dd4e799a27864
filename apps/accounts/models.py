from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from .managers import UserManager


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    GENERAL = "General", "General"
    ARCHITECT = "Architect", "Architect"
    DEALER = "Dealer", "Dealer"
    ADMIN = "Admin", "Admin"
    MANAGER = "Manager", "Manager"
    SALES = "Sales", "Sales"
    SUPPORT = "Support", "Support"
    SUPER_ADMIN = "SuperAdmin", "Super Admin"


# Roles that see and manage every order, not only their own
ORDER_STAFF_ROLES = {Role.ADMIN, Role.MANAGER, Role.SALES, Role.SUPER_ADMIN}
ADMIN_ROLES = {Role.ADMIN, Role.SUPER_ADMIN}

PROFILE_ADDRESS_FIELDS = ("address", "city", "state", "country", "pincode")


class User(AbstractBaseUser, PermissionsMixin):
    """
    Core Identity Model.
    Email is the login identifier; `role` drives tier pricing and staff access.
    The profile address doubles as the 'default' delivery address for orders.
    """
    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        APPROVED = "Approved", "Approved"
        REJECTED = "Rejected", "Rejected"

    email = models.EmailField(unique=True, db_index=True)
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.GENERAL)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    mobile = models.CharField(max_length=20, blank=True, null=True)
    company = models.CharField(max_length=255, blank=True, null=True)

    # Profile address
    address = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    state = models.CharField(max_length=100, blank=True, null=True)
    country = models.CharField(max_length=100, blank=True, null=True)
    pincode = models.CharField(max_length=20, blank=True, null=True)

    is_staff = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.email

    @property
    def is_order_staff(self):
        return self.is_superuser or self.role in ORDER_STAFF_ROLES

    @property
    def is_admin_role(self):
        return self.is_superuser or self.role in ADMIN_ROLES

    @property
    def has_complete_address(self):
        return all(getattr(self, field) for field in PROFILE_ADDRESS_FIELDS)
