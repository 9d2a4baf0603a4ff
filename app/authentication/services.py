"""
Authentication service layer.

AuthService covers the credential operations the chat core depends on:
account creation, profile updates, password change, forced logout and
account deletion. Email change, password change and forced logout bump the
user's credential version, which invalidates every token issued before the
bump.
"""

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError

from authentication.models import User
from core.exceptions import ErrorCode
from core.services import BaseService, ServiceResult


class AuthService(BaseService):
    """Business logic for user accounts and credential versions."""

    @classmethod
    def register(
        cls,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> ServiceResult[User]:
        email = User.objects.normalize_email(email)
        if User.objects.filter(email__iexact=email).exists():
            return ServiceResult.failure(
                "A user with this email already exists",
                error_code=ErrorCode.CONFLICT,
            )

        candidate = User(email=email, first_name=first_name, last_name=last_name)
        try:
            validate_password(password, user=candidate)
        except DjangoValidationError as e:
            return ServiceResult.failure(
                "Password is not valid",
                error_code=ErrorCode.INVALID_INPUT,
                errors={"password": list(e.messages)},
            )

        try:
            with cls.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                )
        except IntegrityError:
            # A concurrent registration took the email after the check above
            return ServiceResult.failure(
                "A user with this email already exists",
                error_code=ErrorCode.CONFLICT,
            )
        cls.get_logger().info(f"Registered user {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def change_password(
        cls, user: User, current_password: str, new_password: str
    ) -> ServiceResult[User]:
        """
        Change the password and revoke all existing tokens.

        The caller is expected to hand the user a fresh token pair.
        """
        if not user.check_password(current_password):
            return ServiceResult.failure(
                "Current password is incorrect",
                error_code=ErrorCode.INVALID_INPUT,
            )

        try:
            validate_password(new_password, user=user)
        except DjangoValidationError as e:
            return ServiceResult.failure(
                "Password is not valid",
                error_code=ErrorCode.INVALID_INPUT,
                errors={"new_password": list(e.messages)},
            )

        with cls.atomic():
            user.set_password(new_password)
            user.save(update_fields=["password", "updated_at"])
            user.bump_token_version()

        cls.get_logger().info(f"Password changed for user {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def update_profile(
        cls,
        user: User,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
        current_password: str | None = None,
    ) -> ServiceResult[tuple[User, bool]]:
        """
        Update display names and, optionally, the login email.

        Changing the email requires the current password and revokes every
        existing token, like a password change.

        Returns:
            ServiceResult with (user, credentials_rotated)

        Error codes:
            INVALID_INPUT: Missing or wrong current password for an email change
            CONFLICT: The new email belongs to another account
        """
        update_fields = []
        if first_name is not None:
            user.first_name = first_name
            update_fields.append("first_name")
        if last_name is not None:
            user.last_name = last_name
            update_fields.append("last_name")

        email_changed = False
        if email:
            email = User.objects.normalize_email(email)
            email_changed = email.lower() != user.email.lower()

        if email_changed:
            if not current_password:
                return ServiceResult.failure(
                    "Current password is required to change email",
                    error_code=ErrorCode.INVALID_INPUT,
                )
            if not user.check_password(current_password):
                return ServiceResult.failure(
                    "Current password is incorrect",
                    error_code=ErrorCode.INVALID_INPUT,
                )
            if User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
                return ServiceResult.failure(
                    "Email is already taken", error_code=ErrorCode.CONFLICT
                )
            user.email = email
            update_fields.append("email")

        if not update_fields:
            return ServiceResult.success((user, False))

        try:
            with cls.atomic():
                user.save(update_fields=[*update_fields, "updated_at"])
                if email_changed:
                    user.bump_token_version()
        except IntegrityError:
            user.refresh_from_db()
            return ServiceResult.failure(
                "Email is already taken", error_code=ErrorCode.CONFLICT
            )

        cls.get_logger().info(
            f"Profile updated for user {user.id} (fields={update_fields})"
        )
        return ServiceResult.success((user, email_changed))

    @classmethod
    def delete_account(cls, user: User) -> ServiceResult[str]:
        """
        Delete the account.

        Private conversations of the user and every message they sent go
        with it. Groups they belonged to stay, without them.

        Returns:
            ServiceResult with the deleted user id
        """
        user_id = str(user.id)
        with cls.atomic():
            user.delete()
        cls.get_logger().info(f"Deleted account {user_id}")
        return ServiceResult.success(user_id)

    @classmethod
    def revoke_all_tokens(cls, user: User) -> ServiceResult[int]:
        """Force logout on every device by bumping the credential version."""
        version = user.bump_token_version()
        cls.get_logger().info(f"Revoked all tokens for user {user.id} (version={version})")
        return ServiceResult.success(version)
