from __future__ import annotations

import requests
from loguru import logger
from py_vapid import VapidException
from pywebpush import WebPushException, webpush

from boss_alert.config import get_settings
from boss_alert.models.subscription import Subscription


def vapid_claims_subject(subscriber: str) -> str:
    """Return a VAPID ``sub`` claim; bare e-mail addresses get a mailto: prefix."""
    if subscriber.startswith(("https:", "mailto:")):
        return subscriber
    return f"mailto:{subscriber}"


class WebPushSender:
    """Send encrypted Web Push messages signed with the service's VAPID key."""

    def __init__(self):
        settings = get_settings()
        self.private_key = settings.vapid_private_key
        self.subscriber = settings.vapid_subscriber
        self.urgency = settings.push_urgency
        self.ttl = settings.push_ttl

    @classmethod
    def is_configured(cls) -> bool:
        """Check if VAPID credentials are set."""
        return get_settings().is_push_configured

    def send(self, subscription: Subscription, payload: str) -> bool:
        """Push one message to a subscription.

        Args:
            subscription: Target browser subscription.
            payload: JSON text delivered to the service worker.

        Returns:
            True if the push service accepted the message, False otherwise.
        """
        try:
            webpush(
                subscription_info=subscription.to_subscription_info(),
                data=payload,
                vapid_private_key=self.private_key,
                vapid_claims={"sub": vapid_claims_subject(self.subscriber)},
                ttl=self.ttl,
                headers={"Urgency": self.urgency},
            )
        except VapidException as e:
            # Raised while signing when the endpoint has no scheme/host for "aud"
            logger.error(
                f"Error signing notification for {subscription.endpoint}: {e}"
            )
            return False
        except WebPushException as e:
            logger.error(
                f"Error sending notification to {subscription.endpoint}: {e}"
            )
            return False
        except requests.RequestException as e:
            logger.error(
                f"Request failed sending notification to {subscription.endpoint}: {e}"
            )
            return False
        except ValueError as e:
            # Malformed p256dh/auth keys fail during payload encryption
            logger.error(
                f"Invalid keys for subscription {subscription.endpoint}: {e}"
            )
            return False

        logger.info(f"Successfully sent notification to {subscription.endpoint}")
        return True
