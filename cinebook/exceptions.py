"""Errors raised by the account and session services."""


class AccountError(Exception):
    """Base error. Carries the HTTP status and the message shown to clients."""
    status_code = 400
    detail = "Request failed"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class DuplicateAccount(AccountError):
    status_code = 409
    detail = "Email already registered"


class InvalidOtp(AccountError):
    """Wrong, expired, missing or already used code. Deliberately indistinguishable."""
    status_code = 400
    detail = "Invalid or expired OTP"


class NotificationFailed(AccountError):
    status_code = 502
    detail = "Could not send the verification email. Please request a new code."


class AccountCreationFailed(AccountError):
    status_code = 409
    detail = "Account could not be created. Check whether the account already exists before retrying."


class LogoutFailed(AccountError):
    status_code = 502
    detail = "Could not revoke the session"


class AccountNotFound(AccountError):
    status_code = 404
    detail = "No account is registered with this email"


class InvalidCredentials(AccountError):
    status_code = 401
    detail = "Incorrect username or password"


class CredentialStoreError(AccountError):
    status_code = 503
    detail = "Service temporarily unavailable"
