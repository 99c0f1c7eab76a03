"""Account registration, login and access tokens."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from tutorx.errors import AuthFailure
from tutorx.models.profile import UserProfile
from tutorx.progress.state import new_profile
from tutorx.storage.files import key_to_filename, read_json, write_json
from tutorx.storage.profile_store import ProfileStore

logger = structlog.get_logger()

logging.getLogger("passlib").setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class CredentialStore:
    """Password hashes kept apart from profiles, one JSON file per account."""

    def __init__(self, credentials_dir: Path):
        self.credentials_dir = credentials_dir

    def _path(self, email: str) -> Path:
        return self.credentials_dir / key_to_filename(email)

    def get_hash(self, email: str) -> str | None:
        data = read_json(self._path(email))
        return data.get("password_hash") if data else None

    def set_hash(self, email: str, password_hash: str) -> None:
        write_json(self._path(email), {"email": email, "password_hash": password_hash})


class AccountService:
    """Registers and authenticates learners.

    Failures never reveal whether the account exists: every login problem
    raises the same AuthFailure.

    Args:
        profiles: Profile persistence port.
        credentials: Password hash store.
        secret_key: JWT signing key.
        algorithm: JWT algorithm.
        expire_minutes: Access token lifetime.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        credentials: CredentialStore,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 120,
    ):
        self.profiles = profiles
        self.credentials = credentials
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def register(
        self,
        email: str,
        password: str,
        preferred_level: str = "High School",
        exam_type: str | None = None,
        display_name: str | None = None,
        now: datetime | None = None,
    ) -> UserProfile:
        email = normalize_email(email)
        if not email or "@" not in email or len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthFailure()
        if self.credentials.get_hash(email) is not None:
            logger.info("register_rejected_existing", email=email)
            raise AuthFailure()

        profile = new_profile(
            email,
            now or datetime.now(),
            preferred_level=preferred_level,
            exam_type=exam_type,
            display_name=display_name,
        )
        self.profiles.save(profile)
        self.credentials.set_hash(email, pwd_context.hash(password))
        logger.info("account_registered", email=email)
        return profile

    def authenticate(self, email: str, password: str) -> UserProfile:
        email = normalize_email(email)
        hashed = self.credentials.get_hash(email) if email else None
        if not hashed or not pwd_context.verify(password or "", hashed):
            logger.info("login_failed", email=email)
            raise AuthFailure()
        profile = self.profiles.load(email)
        if profile is None:
            logger.warning("login_profile_missing", email=email)
            raise AuthFailure()
        logger.info("login_succeeded", email=email)
        return profile

    def create_access_token(self, email: str, expires_delta: timedelta | None = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expire_minutes)
        )
        return jwt.encode(
            {"sub": normalize_email(email), "exp": expire},
            self.secret_key,
            algorithm=self.algorithm,
        )

    def decode_access_token(self, token: str) -> str:
        """Return the e-mail a token was issued for."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise AuthFailure("Could not validate credentials")
        email = payload.get("sub")
        if not email:
            raise AuthFailure("Could not validate credentials")
        return email
