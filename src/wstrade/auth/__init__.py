"""Authentication/session state

TokenStore - current access/refresh tokens
EventHub - otp and refresh hooks
Authenticator - login, refresh and the implicit refresh gate
"""

from .authenticator import AuthState, Authenticator
from .events import AuthEvent, EventHub, LiteralOTP, OTPProducer
from .tokens import TokenStore

__all__ = [
    "AuthEvent",
    "AuthState",
    "Authenticator",
    "EventHub",
    "LiteralOTP",
    "OTPProducer",
    "TokenStore",
]
