"""
Expo push notifications.

Sends are fire-and-forget: scheduled as background tasks after the
response, failures are logged and never reach the caller.
"""

import logging
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session_maker
from app.models.push_token import PushToken

logger = logging.getLogger(__name__)


async def get_active_tokens(db: AsyncSession, user_ids: list[UUID]) -> list[str]:
    if not user_ids:
        return []
    result = await db.execute(
        select(PushToken.token).where(
            PushToken.user_id.in_(user_ids),
            PushToken.active.is_(True),
        )
    )
    return list(result.scalars().all())


async def deactivate_tokens(db: AsyncSession, tokens: list[str]) -> None:
    if not tokens:
        return
    await db.execute(
        update(PushToken).where(PushToken.token.in_(tokens)).values(active=False)
    )
    await db.commit()
    logger.info("Deactivated %d unregistered push tokens", len(tokens))


async def send_push(
    db: AsyncSession,
    user_ids: list[UUID],
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Post one message per active token to the Expo push API.

    Tokens Expo reports as DeviceNotRegistered are deactivated. Returns the
    number of messages sent.
    """
    tokens = await get_active_tokens(db, user_ids)
    if not tokens:
        return 0

    messages = [
        {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }
        for token in tokens
    ]

    async with httpx.AsyncClient(
        timeout=settings.PUSH_TIMEOUT_SECONDS,
        transport=transport,
    ) as client:
        response = await client.post(settings.EXPO_PUSH_URL, json=messages)

    if response.status_code != 200:
        logger.error(
            "Push send failed with status %s: %s",
            response.status_code,
            response.text[:500],
        )
        return 0

    tickets = response.json().get("data") or []
    invalid = [
        token
        for token, ticket in zip(tokens, tickets)
        if ticket.get("status") == "error"
        and (ticket.get("details") or {}).get("error") == "DeviceNotRegistered"
    ]
    await deactivate_tokens(db, invalid)
    return len(messages)


async def notify_users(
    user_ids: list[UUID],
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
) -> None:
    """Background task entry point. Opens its own session, never raises."""
    if not settings.PUSH_NOTIFICATIONS_ENABLED:
        return

    try:
        async with async_session_maker() as db:
            await send_push(db, user_ids, title, body, data)
    except Exception:
        logger.exception("Push notification to %s failed", user_ids)
