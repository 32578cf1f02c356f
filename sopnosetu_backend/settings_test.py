import os
import tempfile
from pathlib import Path

os.environ.setdefault("USE_SQLITE_FOR_TESTS", "1")

from .settings import *  # noqa: F401,F403


PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

ALLOWED_HOSTS = [*ALLOWED_HOSTS, "testserver"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    },
}

MEDIA_ROOT = Path(tempfile.mkdtemp(prefix="sopnosetu_media_"))

STATIC_ROOT = BASE_DIR / "staticfiles_test"
Path(STATIC_ROOT).mkdir(parents=True, exist_ok=True)

LOGGING["loggers"]["core"]["level"] = "CRITICAL"
