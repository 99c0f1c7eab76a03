"""User profile persistence port and its adapters."""

from pathlib import Path
from typing import Protocol

import structlog
from pydantic import ValidationError

from tutorx.errors import PersistenceError
from tutorx.models.profile import UserProfile
from tutorx.storage.files import key_to_filename, read_json, write_json

logger = structlog.get_logger()


class ProfileStore(Protocol):
    """Opaque key-value store for profiles, keyed by e-mail."""

    def load(self, email: str) -> UserProfile | None: ...

    def save(self, profile: UserProfile) -> None: ...


class JsonProfileStore:
    """One JSON document per user under ``profiles_dir``.

    Args:
        profiles_dir: Directory holding the profile documents.
    """

    def __init__(self, profiles_dir: Path):
        self.profiles_dir = profiles_dir

    def get_profile_path(self, email: str) -> Path:
        return self.profiles_dir / key_to_filename(email)

    def load(self, email: str) -> UserProfile | None:
        path = self.get_profile_path(email)
        try:
            data = read_json(path)
        except (OSError, ValueError) as e:
            logger.exception("profile_load_failed", email=email)
            raise PersistenceError(f"Could not load profile for {email}") from e
        if data is None:
            return None
        try:
            return UserProfile.model_validate(data)
        except ValidationError as e:
            logger.exception("profile_invalid", email=email, path=str(path))
            raise PersistenceError(f"Stored profile for {email} is corrupt") from e

    def save(self, profile: UserProfile) -> None:
        path = self.get_profile_path(profile.email)
        try:
            write_json(path, profile.model_dump(mode="json"))
        except OSError as e:
            logger.exception("profile_save_failed", email=profile.email)
            raise PersistenceError(f"Could not save profile for {profile.email}") from e
        logger.debug("profile_saved", email=profile.email)


class InMemoryProfileStore:
    """Dictionary-backed store for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}

    def load(self, email: str) -> UserProfile | None:
        profile = self._profiles.get(email.strip().lower())
        return profile.model_copy(deep=True) if profile else None

    def save(self, profile: UserProfile) -> None:
        self._profiles[profile.email.strip().lower()] = profile.model_copy(deep=True)
