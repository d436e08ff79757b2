import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required")

        if "role" not in extra_fields:
            raise ValueError("User role is required")

        vendor_roles = (User.Role.VENDOR_ADMIN, User.Role.VENDOR_USER)
        if extra_fields["role"] in vendor_roles and not (extra_fields.get("vendor") or extra_fields.get("vendor_id")):
            raise ValueError("Vendor users must belong to a vendor")

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.Role.ADMIN)
        extra_fields.setdefault("is_active", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")

        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        REVIEWER = "REVIEWER", "Compliance Reviewer"
        VENDOR_ADMIN = "VENDOR_ADMIN", "Vendor Admin"
        VENDOR_USER = "VENDOR_USER", "Vendor User"
        BUYER = "BUYER", "Buyer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(
        "vendors.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
    )
    email = models.EmailField(unique=True, db_index=True)
    full_name = models.CharField(max_length=255, blank=True)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        db_index=True,
    )

    is_active = models.BooleanField(default=True, db_index=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    @property
    def is_reviewer(self):
        return self.role in (self.Role.ADMIN, self.Role.REVIEWER)

    @property
    def is_vendor_member(self):
        return self.role in (self.Role.VENDOR_ADMIN, self.Role.VENDOR_USER)

    def __str__(self):
        return self.email
