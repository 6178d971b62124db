from __future__ import annotations

import json
from typing import List

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import Text, cast, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boss_alert.models.subscription import Subscription, SubscriptionRecord


class SubscriptionFetchError(Exception):
    """Raised when the subscription table cannot be read or holds a bad row."""


def decode_subscription(raw: str) -> Subscription:
    """Decode one stored subscription value.

    Stored values are double-encoded: the column holds a JSON string literal
    whose content is the subscription JSON. Both layers are decoded here.

    Raises:
        SubscriptionFetchError: if either layer fails to decode or a required
            field (endpoint, keys.p256dh, keys.auth) is missing or empty.
    """
    try:
        unescaped = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SubscriptionFetchError(
            f"failed to unescape subscription JSON: {e}\nRaw JSON: {raw}"
        ) from e
    if not isinstance(unescaped, str):
        raise SubscriptionFetchError(
            f"failed to unescape subscription JSON: expected a JSON string\n"
            f"Raw JSON: {raw}"
        )

    try:
        data = json.loads(unescaped)
    except ValueError as e:
        raise SubscriptionFetchError(
            f"failed to parse subscription JSON: {e}\nUnescaped JSON: {unescaped}"
        ) from e
    if not isinstance(data, dict):
        raise SubscriptionFetchError(
            f"failed to parse subscription JSON: expected an object\n"
            f"Unescaped JSON: {unescaped}"
        )

    if not data.get("endpoint"):
        raise SubscriptionFetchError(
            f"subscription missing required endpoint field: {unescaped}"
        )
    keys = data.get("keys")
    if not isinstance(keys, dict) or not keys.get("p256dh") or not keys.get("auth"):
        raise SubscriptionFetchError(f"subscription missing required keys: {unescaped}")

    try:
        return Subscription.model_validate(data)
    except ValidationError as e:
        raise SubscriptionFetchError(
            f"invalid subscription: {e}\nUnescaped JSON: {unescaped}"
        ) from e


def fetch_subscriptions(session: Session) -> List[Subscription]:
    """Load and decode every stored subscription.

    The first malformed row aborts the whole fetch; no partial list is
    returned.
    """
    stmt = select(cast(SubscriptionRecord.subscription, Text))
    try:
        rows = session.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        raise SubscriptionFetchError(f"error querying subscriptions: {e}") from e

    subscriptions = [decode_subscription(raw) for raw in rows]
    logger.debug(f"Fetched {len(subscriptions)} subscriptions")
    return subscriptions
