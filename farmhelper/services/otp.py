from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import secrets

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from farmhelper.config import settings
from farmhelper.models.otp import OtpEntry
from farmhelper.services.errors import ExpiredError, MismatchError, NotFoundError


@dataclass(frozen=True)
class OtpRecord:
    email: str
    code: str
    expires_at: datetime


def normalize_email(email: str) -> str:
    return email.strip().lower()


def as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back as naive values.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OtpLedger:
    def __init__(self, ttl_seconds: int, code_length: int) -> None:
        self._ttl_seconds = ttl_seconds
        self._code_length = code_length

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, session: Session, email: str, now: datetime) -> OtpRecord:
        """Store a fresh code for ``email``; earlier unexpired codes stay in place."""
        record = OtpRecord(
            email=normalize_email(email),
            code=self._generate_code(),
            expires_at=now + timedelta(seconds=self._ttl_seconds),
        )
        self.purge_expired(session, now)
        session.add(
            OtpEntry(
                email=record.email,
                code=record.code,
                expires_at=record.expires_at,
                created_at=now,
            )
        )
        return record

    def latest(self, session: Session, email: str) -> OtpEntry | None:
        result = session.execute(
            select(OtpEntry)
            .where(OtpEntry.email == normalize_email(email))
            .order_by(OtpEntry.created_at.desc(), OtpEntry.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    def consume(self, session: Session, email: str, code: str, now: datetime) -> None:
        """Check ``code`` against the newest code for ``email`` and burn every code on a match.

        Deletion happens inside the caller's transaction, so a later failure
        in the same unit of work restores the codes.
        """
        entry = self.latest(session, email)
        if entry is None:
            raise NotFoundError("No OTP request found!")
        if as_utc(entry.expires_at) <= now:
            raise ExpiredError("OTP expired!")
        if entry.code != code.strip():
            raise MismatchError("Invalid OTP!")
        session.execute(delete(OtpEntry).where(OtpEntry.email == entry.email))

    def purge_expired(self, session: Session, now: datetime) -> int:
        result = session.execute(delete(OtpEntry).where(OtpEntry.expires_at <= now))
        return result.rowcount

    def _generate_code(self) -> str:
        value = secrets.randbelow(10**self._code_length)
        return str(value).zfill(self._code_length)


otp_ledger = OtpLedger(settings.otp_ttl_seconds, settings.otp_length)
