"""
Authentication models.

This module defines the user model consumed by the chat core:
- User: Custom user model with email-based authentication, display name
  fields and a credential-version counter

Related files:
    - managers.py: Custom user manager for email-based creation
    - tokens.py: Token issuance and the shared credential check
    - services.py: AuthService business logic

Security:
    - User passwords hashed with Django's configured hashers
    - token_version only ever increases; every increase revokes all tokens
      issued before it
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.db.models import F

from authentication.managers import UserManager
from core.model_mixins import UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        first_name / last_name: Display name fields
        token_version: Credential version embedded in every issued token
        is_active: Whether the user account is active
        is_staff: Admin access; also the privileged role allowed to delete
            any chat message
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='securepassword',
            first_name='Ada',
        )

        # Force logout everywhere
        user.bump_token_version()
    """

    # Primary identifier (replaces username)
    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)

    token_version = models.PositiveIntegerField(
        default=0,
        help_text="Incremented to invalidate every previously issued token",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site and moderate messages.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return first and last name, or the email when neither is set."""
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]

    def bump_token_version(self):
        """
        Increment the credential version atomically.

        Uses an F() expression so concurrent bumps are never lost, then
        reloads the field so the instance reflects the stored value.
        """
        User.objects.filter(pk=self.pk).update(token_version=F("token_version") + 1)
        self.refresh_from_db(fields=["token_version"])
        return self.token_version
