from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

GENERIC_ERROR_DETAIL = "Terjadi kesalahan"
INTERNAL_ERROR = "Internal Server Error"


class FailureKind(Enum):
    MISSING_FIELDS = "missing_fields"
    INVALID_PHONE = "invalid_phone"
    INVALID_PIN = "invalid_pin"
    INVALID_OTP = "invalid_otp"
    PHONE_TOO_SHORT = "phone_too_short"
    MISCONFIGURED = "misconfigured"
    BAD_REQUEST_BODY = "bad_request_body"
    UPSTREAM = "upstream"

    @property
    def is_client_error(self) -> bool:
        return self in CLIENT_ERRORS


CLIENT_ERRORS = frozenset(
    {
        FailureKind.MISSING_FIELDS,
        FailureKind.INVALID_PHONE,
        FailureKind.INVALID_PIN,
        FailureKind.INVALID_OTP,
        FailureKind.PHONE_TOO_SHORT,
    }
)


@dataclass(frozen=True)
class RelayFailure:
    """
    Returned (not raised) by every validation and network step.

    - error: the message shown to the caller in the "error" field
    - detail: the underlying reason; only exposed to callers in development
    - exc: the exception behind a server-side failure, kept for logging
    """

    kind: FailureKind
    error: str
    detail: str | None = None
    exc: BaseException | None = None

    def payload(self, *, expose_detail: bool) -> dict[str, str]:
        if self.kind.is_client_error:
            return {"error": self.error}
        detail = self.detail if expose_detail and self.detail else GENERIC_ERROR_DETAIL
        return {"error": self.error, "details": detail}


@dataclass(frozen=True)
class RelayResult:
    telegram_status: int
