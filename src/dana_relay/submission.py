from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class Submission(BaseModel):
    """
    Parsed, not yet validated request body.

    Only strings are accepted; a number or object in any of these fields is a
    parse failure rather than something to coerce.
    """

    model_config = ConfigDict(extra="ignore", strict=True)

    type: str | None = None
    phone: str | None = None
    pin: str | None = None
    otp: str | None = None


@dataclass(frozen=True)
class OutboundMessage:
    chat_id: str
    text: str
