from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils import timezone
import uuid


def generate_staff_code(first_name, last_name, when=None):
    """
    Build a staff code from the creation date and the user's initials.
    Format: DDMM + first initial + last initial, e.g. John Doe created on
    Sept 19 -> 1909JD
    """
    when = when or timezone.localdate()
    first_initial = (first_name or '')[:1].upper()
    last_initial = (last_name or '')[:1].upper()
    return f"{when.day:02d}{when.month:02d}{first_initial}{last_initial}"


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', CustomUser.ROLE_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


# =============== USER MANAGEMENT ===============

class CustomUser(AbstractUser):
    """Staff account: administrators manage the menu and staff, waiters take orders"""
    ROLE_ADMIN = 'admin'
    ROLE_WAITER = 'waiter'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_WAITER, 'Waiter'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_WAITER)
    staff_code = models.CharField(max_length=10, blank=True, db_index=True)

    # Remove username requirement
    username = None
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']
    objects = CustomUserManager()

    class Meta:
        db_table = 'users'
        ordering = ['first_name', 'last_name']

    def __str__(self):
        return f"{self.get_full_name() or self.email} ({self.role})"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_waiter(self):
        return self.role == self.ROLE_WAITER

    def save(self, *args, **kwargs):
        if not self.staff_code:
            self.staff_code = generate_staff_code(self.first_name, self.last_name)
        super().save(*args, **kwargs)
