from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx

from .config import Settings
from .logging_config import get_logger
from .outcome import INTERNAL_ERROR, FailureKind, RelayFailure, RelayResult
from .submission import OutboundMessage

logger = get_logger(__name__)


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client


async def send_message(
    client: httpx.AsyncClient,
    settings: Settings,
    message: OutboundMessage,
) -> RelayResult | RelayFailure:
    """
    Deliver one message through the Bot API sendMessage method.

    Exactly one attempt is made, bounded by settings.telegram_timeout_seconds.
    Timeouts, transport errors and non-2xx answers all come back as an
    UPSTREAM failure; a response is only a success once Telegram accepted it.
    """
    payload = {
        "chat_id": message.chat_id,
        "text": message.text,
        "parse_mode": "HTML",
    }

    try:
        response = await client.post(
            settings.send_message_url(),
            json=payload,
            timeout=settings.telegram_timeout_seconds,
        )
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        return RelayFailure(
            kind=FailureKind.UPSTREAM,
            error=INTERNAL_ERROR,
            detail=f"timeout of {settings.telegram_timeout_seconds:g}s exceeded",
            exc=exc,
        )
    except httpx.HTTPStatusError as exc:
        # Its message quotes the request URL, token included, so it is not kept for logging
        return RelayFailure(
            kind=FailureKind.UPSTREAM,
            error=INTERNAL_ERROR,
            detail=f"Request failed with status code {exc.response.status_code}",
        )
    except httpx.HTTPError as exc:
        # The request URL embeds the bot token, so only the class name is surfaced
        return RelayFailure(
            kind=FailureKind.UPSTREAM,
            error=INTERNAL_ERROR,
            detail=f"{type(exc).__name__} while contacting Telegram",
            exc=exc,
        )

    logger.info("telegram_message_sent", status=response.status_code)
    return RelayResult(telegram_status=response.status_code)
