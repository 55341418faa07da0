import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


def _env_first(*names: str, default: str = "") -> str:
    for name in names:
        raw_value = os.getenv(name)
        if raw_value:
            return raw_value
    return default


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./farmhelper.db")
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("ALGORITHM", "HS256")
    access_token_expire_days: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "1"))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    otp_length: int = int(os.getenv("OTP_LENGTH", "6"))
    otp_ttl_seconds: int = int(os.getenv("OTP_TTL_SECONDS", "900"))
    pending_ttl_seconds: int = int(os.getenv("PENDING_TTL_SECONDS", "86400"))
    otp_debug: bool = _env_bool("OTP_DEBUG", False)
    otp_email_subject: str = os.getenv(
        "OTP_EMAIL_SUBJECT", "FarmHelper - Please verify your account"
    )
    smtp_host: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = _env_first("SMTP_USER", "MyEmail")
    smtp_pass: str = _env_first("SMTP_PASS", "MyPass")
    email_from: str = os.getenv("EMAIL_FROM", "")
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    elevenlabs_api_key: str = os.getenv("ELEVENLABS_API_KEY", "")
    elevenlabs_voice_id: str = os.getenv("ELEVENLABS_VOICE_ID", "4BoDaQ6aygOP6fpsUmJe")
    elevenlabs_model_id: str = os.getenv(
        "ELEVENLABS_MODEL_ID", "eleven_multilingual_v2"
    )
    audio_dir: str = os.getenv("AUDIO_DIR", "public/audio")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000").rstrip(
        "/"
    )
    advisory_requires_auth: bool = _env_bool("ADVISORY_REQUIRES_AUTH", True)
    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:5173")
    )
    http_timeout_seconds: int = int(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))


settings = Settings()
