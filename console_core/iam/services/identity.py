# console_core/iam/services/identity.py
"""
External identity side effect used by provisioning.

The backend is chosen by settings.CONSOLE_IDENTITY_BACKEND (dotted path).
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils.module_loading import import_string
from rest_framework.exceptions import ValidationError

from console_core.common.api.exceptions import DuplicateUser

logger = logging.getLogger(__name__)


class IdentityBackend:
    def create_account(self, *, email: str, password: str, full_name: str):
        """Create the login account. Raise DuplicateUser when the email is taken."""
        raise NotImplementedError

    def delete_account(self, user) -> None:
        """Compensation when the console rows could not be written."""
        raise NotImplementedError


class DjangoIdentityBackend(IdentityBackend):
    """
    Accounts are django.contrib.auth users; username = email.
    """

    def create_account(self, *, email: str, password: str, full_name: str):
        User = get_user_model()
        email = email.strip().lower()

        if User.objects.filter(username__iexact=email).exists() or User.objects.filter(email__iexact=email).exists():
            raise DuplicateUser(f"A user with email '{email}' already exists.")

        # username = email, so the email has to fit the username column
        max_length = User._meta.get_field(User.USERNAME_FIELD).max_length
        if max_length and len(email) > max_length:
            raise ValidationError({"email": f"Email must be at most {max_length} characters to be used as a login."})

        first, _, last = full_name.strip().partition(" ")
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=first[:150],
            last_name=last[:150],
        )
        logger.info("identity account created user_id=%s", user.id)
        return user

    def delete_account(self, user) -> None:
        logger.info("identity account removed user_id=%s", user.id)
        user.delete()


def get_identity_backend() -> IdentityBackend:
    return import_string(settings.CONSOLE_IDENTITY_BACKEND)()
