import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OTP_DEBUG"] = "false"
os.environ["ADVISORY_REQUIRES_AUTH"] = "true"
os.environ["GEMINI_API_KEY"] = ""
os.environ["ELEVENLABS_API_KEY"] = ""
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["AUDIO_DIR"] = tempfile.mkdtemp(prefix="farmhelper-audio-")

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from farmhelper.database import Base, engine, init_db


@pytest.fixture(autouse=True)
def clean_db():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    with patch("farmhelper.services.auth.send_otp_email") as mocked:
        yield mocked


@pytest.fixture
def client(mailer):
    from farmhelper.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def last_code(mailer):
    def _last_code() -> str:
        _, code = mailer.call_args.args
        return code

    return _last_code
