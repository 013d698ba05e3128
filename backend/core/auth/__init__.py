"""Credentials, sessions and the user registry."""

from core.auth.models import ErrorRecord, Session, User, UserProfile, UserSettings
from core.auth.password import PasswordHasher, Pbkdf2Hasher, generate_salt
from core.auth.registry import UserRegistry
from core.auth.session_store import DEFAULT_SESSION_TTL_SECONDS, SessionStore

__all__ = [
    "DEFAULT_SESSION_TTL_SECONDS",
    "ErrorRecord",
    "PasswordHasher",
    "Pbkdf2Hasher",
    "Session",
    "SessionStore",
    "User",
    "UserProfile",
    "UserRegistry",
    "UserSettings",
    "generate_salt",
]
