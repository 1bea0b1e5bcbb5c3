"""Local sign-in gate for the desktop app.

Credentials are stored as a salted PBKDF2-HMAC-SHA256 hash in app_settings;
the password itself is never written anywhere. The ledger core has no
knowledge of identity; the UI shell checks ``is_authorized`` before showing it.
"""
import hashlib
import hmac
import logging
import secrets
from typing import NamedTuple

from database.db_manager import DatabaseManager
from utils.constants import MIN_PASSWORD_LENGTH, PBKDF2_ITERATIONS
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

_EMAIL_KEY = "auth_email"
_SALT_KEY = "auth_salt"
_HASH_KEY = "auth_hash"
_ITER_KEY = "auth_iterations"


class Credentials(NamedTuple):
    email: str
    password: str


def _hash_password(password: str, salt: bytes, iterations: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations).hex()


class AuthService:
    def __init__(self, db: DatabaseManager, iterations: int = PBKDF2_ITERATIONS):
        self._db = db
        self._iterations = iterations

    def has_credentials(self) -> bool:
        return bool(self._db.get_setting(_HASH_KEY))

    def set_credentials(self, email: str, password: str):
        email = (email or "").strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("Please enter a valid email address.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )
        salt = secrets.token_bytes(16)
        self._db.set_setting(_EMAIL_KEY, email)
        self._db.set_setting(_SALT_KEY, salt.hex())
        self._db.set_setting(_ITER_KEY, str(self._iterations))
        self._db.set_setting(_HASH_KEY, _hash_password(password, salt, self._iterations))
        logger.info("Credentials stored for %s", email)

    def is_authorized(self, credentials: Credentials) -> bool:
        stored_hash = self._db.get_setting(_HASH_KEY)
        if not stored_hash:
            return False
        stored_email = self._db.get_setting(_EMAIL_KEY)
        try:
            salt = bytes.fromhex(self._db.get_setting(_SALT_KEY))
            iterations = int(self._db.get_setting(_ITER_KEY, str(self._iterations)))
        except ValueError:
            logger.error("Stored credential data is corrupt")
            return False

        email_ok = hmac.compare_digest(
            (credentials.email or "").strip().lower().encode("utf-8"),
            stored_email.encode("utf-8"),
        )
        candidate = _hash_password(credentials.password or "", salt, iterations)
        password_ok = hmac.compare_digest(candidate, stored_hash)
        if not (email_ok and password_ok):
            logger.warning("Failed sign-in attempt")
            return False
        return True

    def change_password(self, old_password: str, new_password: str):
        email = self._db.get_setting(_EMAIL_KEY)
        if not self.is_authorized(Credentials(email, old_password)):
            raise ValidationError("Current password is incorrect.")
        self.set_credentials(email, new_password)
