import os
import secrets
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from logger import logger
from .config import ALGORITHM, SESSION_DURATION
from .database import Database
from .errors import NotAuthenticatedError, StorageError
from .models import Session, utcnow

# Avoid circular imports
if TYPE_CHECKING:
    from .repository import UserRepository

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def get_salt(hashed_password: str) -> str:
    """Salt segment of a modular crypt hash: $pbkdf2-sha256$<rounds>$<salt>$<checksum>."""
    return hashed_password.split("$")[3]


def load_secret_key(path: Path) -> str:
    """Signing key from TODO_SECRET_KEY, else from the data directory, generated on first use."""
    key = os.getenv("TODO_SECRET_KEY")
    if key:
        return key
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
        key = secrets.token_hex(32)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(key, encoding="utf-8")
        os.chmod(path, 0o600)
    except OSError as e:
        raise StorageError(f"Could not access signing key {path}: {e}") from e
    logger.info("Generated a new session signing key")
    return key


def create_access_token(data: dict, secret_key: str, issued_at: datetime, expires_at: datetime) -> str:
    to_encode = data.copy()
    to_encode.update({"iat": issued_at, "exp": expires_at})
    return jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> Optional[dict]:
    # Expiry is compared against the injected clock by the caller
    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM], options={"verify_exp": False})
    except JWTError:
        return None


class SessionManager:
    """Owns the single active session and gates every todo operation on it."""

    def __init__(self, db: Database, users: "UserRepository", clock: Callable[[], datetime] = utcnow):
        self.file = db.session
        self.users = users
        self.clock = clock
        self.secret_key = load_secret_key(db.secret_key_path)

    def login(self, username: str, password: str) -> Session:
        user = self.users.authenticate(username, password)
        return self.start_session(user.username)

    def start_session(self, username: str) -> Session:
        """Replace any existing session with a fresh one for username."""
        issued_at = self.clock()
        expires_at = issued_at + SESSION_DURATION
        token = create_access_token({"sub": username}, self.secret_key, issued_at, expires_at)
        session = Session(username=username, issued_at=issued_at, expires_at=expires_at, token=token)
        self.file.save(session.model_dump(mode="json"))
        logger.info(f"Session started for user: {username}")
        return session

    def current_session(self) -> Optional[Session]:
        """
        The persisted session, or None if absent, expired, tampered with, or
        its user is gone. An expired file stays on disk until the next login
        or logout rewrites it.
        """
        raw = self.file.load()
        if not raw:
            return None

        try:
            session = Session.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed session file")
            return None

        if session.is_expired(self.clock()):
            logger.debug(f"Session for {session.username} expired at {session.expires_at}")
            return None

        payload = decode_access_token(session.token, self.secret_key)
        if (
            payload is None
            or payload.get("sub") != session.username
            or payload.get("exp") != int(session.expires_at.timestamp())
        ):
            logger.warning("Ignoring session with an invalid token")
            return None

        if self.users.get_by_username(session.username) is None:
            return None
        return session

    def end_session(self) -> None:
        self.file.delete()
        logger.info("Session ended")

    def require_session(self) -> Session:
        session = self.current_session()
        if session is None:
            raise NotAuthenticatedError()
        return session
