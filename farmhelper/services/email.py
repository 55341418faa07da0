"""Verification email delivery over an authenticated SMTP relay."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from farmhelper.config import settings
from farmhelper.services.errors import EmailSendError

LOGGER = logging.getLogger(__name__)

_OTP_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<body style="margin:0;padding:0;font-family:'Segoe UI',Arial,sans-serif;background-color:#f7f9fc;">
  <table width="100%" cellpadding="0" cellspacing="0" border="0">
    <tr>
      <td align="center" style="padding:30px 0;">
        <table width="600" cellpadding="0" cellspacing="0" border="0"
               style="background-color:#ffffff;border-radius:12px;">
          <tr>
            <td align="center" style="padding:30px 0 20px 0;">
              <h1 style="margin:0;font-size:32px;color:#333333;">Farm Helper</h1>
            </td>
          </tr>
          <tr>
            <td style="padding:0 40px;text-align:center;color:#555555;font-size:16px;">
              <h2 style="color:#2a2a2a;">Verify Your Identity</h2>
              <p>Hi there,<br>To finish creating your account, please use the following
              One-Time Password (OTP):</p>
            </td>
          </tr>
          <tr>
            <td align="center" style="padding:20px 40px;">
              <p style="font-size:42px;font-weight:bold;color:#007bff;letter-spacing:8px;margin:0;">
                {code}
              </p>
            </td>
          </tr>
          <tr>
            <td style="padding:0 40px 30px 40px;text-align:center;font-size:14px;color:#888888;">
              <p>This code is valid for <strong>{minutes} minutes</strong> and can only be used once.</p>
              <p>If you did not request this code, please disregard this email.</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def send_otp_email(to_email: str, code: str) -> None:
    sender = settings.email_from or settings.smtp_user
    if not sender or not settings.smtp_host:
        raise EmailSendError("Mail relay is not configured")

    message = build_otp_message(sender, to_email, code, settings.otp_ttl_seconds)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as conn:
            conn.ehlo()
            conn.starttls()
            conn.ehlo()
            if settings.smtp_user:
                conn.login(settings.smtp_user, settings.smtp_pass)
            conn.sendmail(sender, [to_email], message.as_string())
    except smtplib.SMTPException as exc:
        LOGGER.error("SMTP relay rejected verification email to=%s: %s", to_email, exc)
        raise EmailSendError("Failed to send verification email") from exc
    except OSError as exc:
        LOGGER.error("SMTP relay unreachable host=%s: %s", settings.smtp_host, exc)
        raise EmailSendError("Failed to reach mail relay") from exc
    LOGGER.info("Verification email sent to=%s", to_email)


def build_otp_message(
    sender: str, recipient: str, code: str, ttl_seconds: int
) -> MIMEMultipart:
    minutes = max(1, ttl_seconds // 60)
    message = MIMEMultipart("alternative")
    message["Subject"] = settings.otp_email_subject
    message["From"] = f"FarmHelper <{sender}>"
    message["To"] = recipient
    message.attach(
        MIMEText(
            f"Your FarmHelper verification code is {code}. "
            f"It expires in {minutes} minute(s).",
            "plain",
            "utf-8",
        )
    )
    message.attach(
        MIMEText(_OTP_TEMPLATE.format(code=code, minutes=minutes), "html", "utf-8")
    )
    return message
