from dataclasses import replace

from farmhelper.routers import users
from farmhelper.services.auth import AuthWorkflow
from farmhelper.services.errors import EmailSendError
from farmhelper.services.otp import otp_ledger
from farmhelper.services.users import user_store


def _register(client, username="alice", email="alice@x.com", password="secret1"):
    return client.post(
        "/api/user/register",
        json={"username": username, "email": email, "password": password},
    )


def test_register_returns_email(client, mailer):
    response = _register(client)

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "alice@x.com"
    assert body["message"] == "OTP sent to email. Verify within 15 minutes!"
    assert "otp" not in body
    mailer.assert_called_once()


def test_register_missing_field_is_400(client, mailer):
    response = client.post(
        "/api/user/register", json={"username": "alice", "email": "alice@x.com"}
    )

    assert response.status_code == 400
    assert response.json() == {"message": "All fields are required"}
    mailer.assert_not_called()


def test_register_malformed_body_is_400(client):
    response = client.post("/api/user/register", json={"username": ["alice"]})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request body"


def test_register_mail_failure_is_502(client, mailer):
    mailer.side_effect = EmailSendError("Failed to send verification email")

    response = _register(client)

    assert response.status_code == 502
    assert response.json() == {"message": "Failed to send verification email"}


def test_full_registration_scenario(client, last_code):
    assert _register(client).status_code == 200
    code = last_code()
    wrong = "000000" if code != "000000" else "111111"

    mismatch = client.post(
        "/api/user/verify-otp", json={"email": "alice@x.com", "otp": wrong}
    )
    assert mismatch.status_code == 400
    assert mismatch.json() == {"message": "Invalid OTP!"}

    confirmed = client.post(
        "/api/user/verify-otp", json={"email": "alice@x.com", "otp": code}
    )
    assert confirmed.status_code == 201
    assert confirmed.json() == {"message": "Account created successfully!"}

    replay = client.post(
        "/api/user/verify-otp", json={"email": "alice@x.com", "otp": code}
    )
    assert replay.status_code == 400
    assert replay.json() == {"message": "No OTP request found!"}

    login = client.post(
        "/api/user/login", json={"username": "alice", "password": "secret1"}
    )
    assert login.status_code == 200
    assert login.json()["token"]

    duplicate = _register(client)
    assert duplicate.status_code == 400
    assert duplicate.json() == {"message": "Email already exists!"}


def test_verify_requires_email_and_otp(client):
    response = client.post("/api/user/verify-otp", json={"email": "alice@x.com"})

    assert response.status_code == 400
    assert response.json() == {"message": "Email and OTP are required!"}


def test_login_wrong_password_is_401(client, last_code):
    _register(client)
    client.post(
        "/api/user/verify-otp", json={"email": "alice@x.com", "otp": last_code()}
    )

    response = client.post(
        "/api/user/login", json={"username": "alice", "password": "nope"}
    )

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid username or password"}
    assert "token" not in response.json()


def test_root_and_health(client):
    assert client.get("/").json() == {"status": "Backend running"}
    assert client.get("/api/health").json() == {"status": "ok"}


def test_debug_mode_echoes_code_and_skips_mail(client, mailer, monkeypatch):
    monkeypatch.setattr(users, "settings", replace(users.settings, otp_debug=True))
    monkeypatch.setattr(
        users, "auth_workflow", AuthWorkflow(user_store, otp_ledger, deliver_code=False)
    )

    response = _register(client)

    assert response.status_code == 200
    code = response.json()["otp"]
    assert len(code) == 6 and code.isdigit()
    mailer.assert_not_called()

    verified = client.post(
        "/api/user/verify-otp", json={"email": "alice@x.com", "otp": code}
    )
    assert verified.status_code == 201
