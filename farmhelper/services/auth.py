"""Registration, email verification and login.

A registration moves through ``NoRecord -> Pending -> Confirmed``. Submitting
the form again while pending refreshes the password and issues a new code;
nothing leads back out of ``Confirmed``.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Optional

from farmhelper.config import settings
from farmhelper.database import session_scope
from farmhelper.services.email import send_otp_email
from farmhelper.services.errors import AuthError, ValidationError
from farmhelper.services.otp import OtpLedger, normalize_email, otp_ledger
from farmhelper.services.passwords import hash_password, verify_password
from farmhelper.services.tokens import create_access_token
from farmhelper.services.users import UserStore, user_store

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    email: str
    code: str
    expires_in_seconds: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


class AuthWorkflow:
    def __init__(
        self, users: UserStore, otps: OtpLedger, deliver_code: bool = True
    ) -> None:
        self._users = users
        self._otps = otps
        self._deliver_code = deliver_code

    def register(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> Registration:
        username, email = _clean(username), normalize_email(email or "")
        if not username or not email or not password:
            raise ValidationError("All fields are required")

        now = _utcnow()
        with session_scope() as session:
            self._users.ensure_available(session, username, email)

        password_hash = hash_password(password)
        with session_scope() as session:
            self._users.purge_stale_pending(session, now)
            self._users.upsert_pending(session, username, email, password_hash, now)
            record = self._otps.issue(session, email, now)

        if self._deliver_code:
            send_otp_email(email, record.code)
        else:
            LOGGER.warning("Email delivery disabled, OTP for %s is %s", email, record.code)
        LOGGER.info("Registration pending for username=%s email=%s", username, email)
        return Registration(
            email=email,
            code=record.code,
            expires_in_seconds=self._otps.ttl_seconds,
        )

    def verify_otp(self, email: Optional[str], code: Optional[str]) -> int:
        email, code = normalize_email(email or ""), _clean(code)
        if not email or not code:
            raise ValidationError("Email and OTP are required!")

        now = _utcnow()
        with session_scope() as session:
            self._otps.consume(session, email, code, now)
            user = self._users.promote_pending(session, email, now)
            user_id = user.id
        LOGGER.info("Account confirmed user_id=%s email=%s", user_id, email)
        return user_id

    def login(self, username: Optional[str], password: Optional[str]) -> str:
        username = _clean(username)
        if not username or not password:
            raise AuthError("Invalid username or password")

        with session_scope() as session:
            user = self._users.get_by_username(session, username)
            if user is None:
                raise AuthError("Invalid username or password")
            user_id, password_hash = user.id, user.password_hash

        if not verify_password(password, password_hash):
            raise AuthError("Invalid username or password")
        return create_access_token(user_id, username)


auth_workflow = AuthWorkflow(user_store, otp_ledger, deliver_code=not settings.otp_debug)
