"""
Tests for AuthService.

Testing Philosophy:
    Each test checks the ServiceResult and the stored state. Credential
    rotations are verified through the same gate the transports use.
"""

from unittest.mock import patch

import pytest
from django.db.models import QuerySet

from authentication.models import User
from authentication.services import AuthService
from authentication.tests.factories import UserFactory
from authentication.tokens import authenticate_token, issue_token_pair
from chat.models import Conversation
from chat.tests.factories import ConversationFactory
from core.exceptions import AuthenticationError, ErrorCode

pytestmark = pytest.mark.django_db


class TestRegister:
    def test_email_taken_between_check_and_insert_conflicts(self, user):
        """
        Why it matters: Two simultaneous sign-ups with one email must give
        the loser a 409, not a server error.
        """
        with patch.object(QuerySet, "exists", return_value=False):
            result = AuthService.register(user.email, "V3ry-Str0ng-Pass")

        assert result.success is False
        assert result.error_code == ErrorCode.CONFLICT
        assert User.objects.filter(email__iexact=user.email).count() == 1


class TestUpdateProfile:
    """
    Tests for AuthService.update_profile().

    Why it matters: An email change is a credential change, so it must be
    guarded by the password and must log out every device.
    """

    def test_name_change_keeps_tokens(self, user):
        access = issue_token_pair(user)["access"]

        result = AuthService.update_profile(user, first_name="Ada", last_name="King")

        assert result.success is True
        _, rotated = result.data
        assert rotated is False
        user.refresh_from_db()
        assert (user.first_name, user.last_name) == ("Ada", "King")
        assert authenticate_token(access) == user

    def test_email_change_revokes_existing_tokens(self, user):
        access = issue_token_pair(user)["access"]
        version = user.token_version

        result = AuthService.update_profile(
            user, email="moved@example.com", current_password="TestPass123!"
        )

        assert result.success is True
        assert result.data[1] is True
        user.refresh_from_db()
        assert user.email == "moved@example.com"
        assert user.token_version == version + 1
        with pytest.raises(AuthenticationError):
            authenticate_token(access)

    def test_email_change_requires_current_password(self, user):
        result = AuthService.update_profile(user, email="moved@example.com")

        assert result.error_code == ErrorCode.INVALID_INPUT
        user.refresh_from_db()
        assert user.email != "moved@example.com"

    def test_email_change_with_wrong_password_is_rejected(self, user):
        result = AuthService.update_profile(
            user, email="moved@example.com", current_password="wrong"
        )

        assert result.error_code == ErrorCode.INVALID_INPUT

    def test_email_of_another_account_conflicts(self, user, other_user):
        result = AuthService.update_profile(
            user, email=other_user.email.upper(), current_password="TestPass123!"
        )

        assert result.error_code == ErrorCode.CONFLICT

    def test_same_email_is_not_a_change(self, user):
        version = user.token_version

        result = AuthService.update_profile(user, email=user.email)

        assert result.success is True
        assert result.data[1] is False
        user.refresh_from_db()
        assert user.token_version == version


class TestDeleteAccount:
    def test_deletes_user_and_private_conversations(self, user, other_user):
        ConversationFactory(users=(user, other_user))
        user_id = user.id

        result = AuthService.delete_account(user)

        assert result.success is True
        assert result.data == str(user_id)
        assert not User.objects.filter(id=user_id).exists()
        assert not Conversation.objects.exists()
        assert User.objects.filter(id=other_user.id).exists()

    def test_token_of_deleted_account_is_rejected(self):
        doomed = UserFactory()
        access = issue_token_pair(doomed)["access"]

        AuthService.delete_account(doomed)

        with pytest.raises(AuthenticationError):
            authenticate_token(access)
