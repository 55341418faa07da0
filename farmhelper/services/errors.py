from fastapi import status


class FarmHelperError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong!"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FarmHelperError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "All fields are required"


class ConflictError(FarmHelperError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists!"


class AuthError(FarmHelperError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid username or password"


class NotFoundError(FarmHelperError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No OTP request found!"


class ExpiredError(FarmHelperError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OTP expired!"


class MismatchError(FarmHelperError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid OTP!"


class ExtractionError(FarmHelperError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Could not read the advisory returned by the AI service"


class UpstreamError(FarmHelperError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "External service is unavailable"


class EmailSendError(UpstreamError):
    default_message = "Failed to send verification email"
