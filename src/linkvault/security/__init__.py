"""
Security gate for privileged endpoints.

Origin validation, bearer authentication, fixed-window rate limiting and
audit logging, applied in that order.
"""

from linkvault.security.gate import GateContext, GateOptions, SecurityGate
from linkvault.security.identity import (
    IdentityVerifier,
    JwtIdentityVerifier,
    RemoteIdentityVerifier,
)
from linkvault.security.rate_limit import RateLimitDecision, RateLimiter

__all__ = [
    "GateContext",
    "GateOptions",
    "IdentityVerifier",
    "JwtIdentityVerifier",
    "RateLimitDecision",
    "RateLimiter",
    "RemoteIdentityVerifier",
    "SecurityGate",
]
