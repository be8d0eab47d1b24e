"""
User models for the editorial workflow.
Handles authentication and the profile that carries an actor's workflow role.
"""
import uuid
from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.core.validators import EmailValidator
from django.conf import settings


# Roles that act as editors on a submission.
EDITOR_ROLES = frozenset({'editor', 'section-editor', 'managing-editor', 'editor-in-chief'})

# Roles allowed to change stage time limits.
TIME_LIMIT_ADMIN_ROLES = frozenset({'admin', 'managing-editor', 'editor-in-chief'})


class CustomUserManager(UserManager):
    """Custom user manager that uses email instead of username."""

    def create_user(self, email, password=None, **extra_fields):
        """Create and return a regular user with an email and password."""
        if not email:
            raise ValueError('The Email field must be set')

        email = self.normalize_email(email)
        extra_fields.setdefault('username', email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create and return a superuser with an email and password."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """
    Email-login user with a UUID primary key.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(
        unique=True,
        validators=[EmailValidator()],
        help_text="Unique email address for authentication"
    )
    username = models.CharField(
        max_length=150,
        unique=True,
        null=True,
        blank=True,
        help_text="Optional username, defaults to email"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        app_label = 'users'
        indexes = [
            models.Index(fields=['email']),
        ]

    def save(self, *args, **kwargs):
        if not self.username:
            self.username = self.email
        super().save(*args, **kwargs)

    def __str__(self):
        return self.email


class Profile(models.Model):
    """
    Editorial profile of a user. ``role`` is the actor role the workflow
    authorizes against.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('author', 'Author'),
        ('editor', 'Editor'),
        ('section-editor', 'Section Editor'),
        ('managing-editor', 'Managing Editor'),
        ('editor-in-chief', 'Editor-in-Chief'),
        ('reviewer', 'Reviewer'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='profile'
    )

    display_name = models.CharField(max_length=255, blank=True)
    affiliation_name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=30, choices=ROLE_CHOICES, default='author')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['role']),
        ]

    def __str__(self):
        return self.display_name or self.user.email

    @property
    def email(self):
        return self.user.email

    def get_full_name(self):
        """Return the full name or display name."""
        if self.display_name:
            return self.display_name
        return f"{self.user.first_name} {self.user.last_name}".strip() or self.user.email
