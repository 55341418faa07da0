from datetime import datetime, timedelta

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from farmhelper.config import settings
from farmhelper.models.pending_user import PendingUserEntry
from farmhelper.models.user import UserEntry
from farmhelper.services.errors import ConflictError, NotFoundError
from farmhelper.services.otp import normalize_email


def _normalize_username(username: str) -> str:
    return username.strip()


class UserStore:
    def __init__(self, pending_ttl_seconds: int) -> None:
        self._pending_ttl_seconds = pending_ttl_seconds

    def ensure_available(self, session: Session, username: str, email: str) -> None:
        """Raise ConflictError when a confirmed user already holds the email or username."""
        email = normalize_email(email)
        username = _normalize_username(username)
        existing = session.execute(
            select(UserEntry).where(
                or_(UserEntry.email == email, UserEntry.username == username)
            )
        ).scalars().all()
        if any(entry.email == email for entry in existing):
            raise ConflictError("Email already exists!")
        if any(entry.username == username for entry in existing):
            raise ConflictError("Username already exists!")

    def upsert_pending(
        self,
        session: Session,
        username: str,
        email: str,
        password_hash: str,
        now: datetime,
    ) -> PendingUserEntry:
        email = normalize_email(email)
        username = _normalize_username(username)
        # A new attempt replaces whatever pending rows hold either identity.
        session.execute(
            delete(PendingUserEntry).where(
                or_(
                    PendingUserEntry.email == email,
                    PendingUserEntry.username == username,
                )
            )
        )
        session.flush()
        entry = PendingUserEntry(
            username=username,
            email=email,
            password_hash=password_hash,
            created_at=now,
            expires_at=now + timedelta(seconds=self._pending_ttl_seconds),
        )
        session.add(entry)
        session.flush()
        return entry

    def get_pending(self, session: Session, email: str) -> PendingUserEntry | None:
        return session.execute(
            select(PendingUserEntry).where(
                PendingUserEntry.email == normalize_email(email)
            )
        ).scalar_one_or_none()

    def promote_pending(self, session: Session, email: str, now: datetime) -> UserEntry:
        pending = self.get_pending(session, email)
        if pending is None:
            raise NotFoundError("Pending user not found!")
        self.ensure_available(session, pending.username, pending.email)
        entry = UserEntry(
            username=pending.username,
            email=pending.email,
            password_hash=pending.password_hash,
            created_at=now,
        )
        session.add(entry)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError("User already exists!") from exc
        session.delete(pending)
        session.flush()
        return entry

    def purge_stale_pending(self, session: Session, now: datetime) -> int:
        result = session.execute(
            delete(PendingUserEntry).where(PendingUserEntry.expires_at <= now)
        )
        return result.rowcount

    def get_by_username(self, session: Session, username: str) -> UserEntry | None:
        return session.execute(
            select(UserEntry).where(UserEntry.username == _normalize_username(username))
        ).scalar_one_or_none()


user_store = UserStore(settings.pending_ttl_seconds)
