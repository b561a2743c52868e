from .user import User, Token, TOKEN_TTL_MS
from .payment import SubscriptionPlan, StripeTransaction
from .track import Track

__all__ = [
    "User",
    "Token",
    "TOKEN_TTL_MS",
    "SubscriptionPlan",
    "StripeTransaction",
    "Track",
]
