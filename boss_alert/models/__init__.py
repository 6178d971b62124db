from boss_alert.models.subscription import (
    Subscription,
    SubscriptionKeys,
    SubscriptionRecord,
)

__all__ = [
    "Subscription",
    "SubscriptionKeys",
    "SubscriptionRecord",
]
