# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CONSOLE_IDENTITY_BACKEND = "console_core.iam.services.identity.DjangoIdentityBackend"
CONSOLE_DEFAULT_PASSWORD = "123456"
