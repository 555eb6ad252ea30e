from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class AccountManager(UserManager):
    """Accounts sign in with e-mail; the username mirrors it"""

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('username', email)
        return super().create_user(email=email, password=password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('username', email)
        return super().create_superuser(email=email, password=password, **extra_fields)


class User(AbstractUser):
    """Authentication identity - signs in with e-mail and password"""
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    objects = AccountManager()

    def __str__(self):
        return self.email

    class Meta:
        db_table = 'users'


class Profile(models.Model):
    """Application-level identity record: display name and role"""
    ROLE_ADMIN = 'admin'
    ROLE_STAFF = 'staff'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_STAFF, 'Staff'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, primary_key=True, related_name='profile')
    name = models.CharField(max_length=200)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STAFF, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def id(self):
        return self.user_id

    def __str__(self):
        return f"{self.name} ({self.role})"

    class Meta:
        db_table = 'profiles'
        ordering = ['-created_at']
