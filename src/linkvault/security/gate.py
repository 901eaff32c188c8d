"""
Security gate pipeline.

Every privileged endpoint runs through the same steps, stopping at the
first failure:

1. origin check (``Origin``, falling back to ``Referer``)
2. bearer authentication
3. fixed-window rate limit per (subject, action)
4. the handler
5. an audit event, only after the handler succeeded

Routes wrap the steps in a FastAPI dependency (see ``linkvault.di``).
``SecurityGate.run`` applies the same pipeline to a plain coroutine.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar
from urllib.parse import urlsplit

from fastapi import Request
from loguru import logger

from linkvault.domain.errors import ForbiddenOrigin, TooManyRequests, Unauthorized
from linkvault.domain.models import AuditEvent
from linkvault.infrastructure.repositories import AuditSink
from linkvault.security.identity import IdentityVerifier
from linkvault.security.rate_limit import DEFAULT_MAX, DEFAULT_WINDOW_MS, RateLimiter

T = TypeVar("T")

DEFAULT_PORTS = {"http": 80, "https": 443}


def origin_of(url: str | None) -> str | None:
    """
    Reduce a URL to its origin, ``scheme://host[:port]``.

    Scheme and host are lower-cased and default ports dropped, so
    ``https://App.Example:443/path`` becomes ``https://app.example``.

    Returns:
        The origin, or None if the value is not an absolute http(s) URL
    """
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parts.hostname:
        return None
    if port is None or port == DEFAULT_PORTS[scheme]:
        return f"{scheme}://{parts.hostname}"
    return f"{scheme}://{parts.hostname}:{port}"


@dataclass(frozen=True)
class GateOptions:
    """
    Per-route gate configuration.

    Attributes:
        rate_limit_key: Bucket name; no rate limit when None
        rate_limit_max: Calls admitted per window
        rate_limit_window_ms: Window length in milliseconds
        audit_action: Audit action recorded on success; no audit when None
        resource_type: Resource type of the success audit event
        skip_origin_validation: Skip step 1
    """

    rate_limit_key: str | None = None
    rate_limit_max: int = DEFAULT_MAX
    rate_limit_window_ms: int = DEFAULT_WINDOW_MS
    audit_action: str | None = None
    resource_type: str = "api_key"
    skip_origin_validation: bool = False


@dataclass
class RequestInfo:
    """Headers the gate reads from an inbound request."""

    origin: str | None = None
    referer: str | None = None
    authorization: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestInfo":
        headers = request.headers
        forwarded = headers.get("x-forwarded-for")
        ip_address = forwarded.split(",")[0].strip() if forwarded else None
        return cls(
            origin=headers.get("origin"),
            referer=headers.get("referer"),
            authorization=headers.get("authorization"),
            ip_address=ip_address or headers.get("x-real-ip"),
            user_agent=headers.get("user-agent"),
        )


@dataclass
class GateContext:
    """
    What a handler gets after the gate admitted the request.

    Handlers may set ``resource_id`` and ``metadata``; both end up in the
    success audit event.
    """

    user_id: str
    request: RequestInfo
    resource_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class SecurityGate:
    """Origin check, authentication, rate limit and audit for one app."""

    def __init__(
        self,
        allowed_origins: list[str],
        verifier: IdentityVerifier,
        limiter: RateLimiter,
        audit_sink: AuditSink,
    ):
        """
        Initialize the gate.

        Args:
            allowed_origins: Origins accepted by step 1 (normalized to scheme://host[:port])
            verifier: Bearer token verifier
            limiter: Fixed-window rate limiter
            audit_sink: Where audit events go
        """
        self.allowed_origins = {
            normalized
            for normalized in (origin_of(o) for o in allowed_origins)
            if normalized
        }
        self.verifier = verifier
        self.limiter = limiter
        self.audit_sink = audit_sink

    def is_allowed_origin(self, origin: str | None, referer: str | None) -> bool:
        """
        Whether the request comes from an allow-listed origin.

        A non-empty ``Origin`` decides on its own. ``Referer`` is only
        consulted when ``Origin`` is absent, as browsers omit it on some
        same-origin GETs. Origins must equal an allow-list entry exactly.
        """
        candidate = origin if origin else referer
        return origin_of(candidate) in self.allowed_origins

    def check_origin(self, info: RequestInfo) -> None:
        """
        Raises:
            ForbiddenOrigin: If the request origin is not allow-listed
        """
        if not self.is_allowed_origin(info.origin, info.referer):
            logger.warning(
                f"Invalid origin: origin={info.origin!r} referer={info.referer!r}"
            )
            raise ForbiddenOrigin()

    async def authenticate(self, info: RequestInfo) -> str:
        """
        Resolve the bearer token to a subject id.

        Raises:
            Unauthorized: If the header is missing or the token is invalid
        """
        header = info.authorization or ""
        scheme, _, token = header.partition(" ")
        if scheme != "Bearer" or not token.strip():
            logger.warning("Missing or invalid authorization header")
            raise Unauthorized()
        return await self.verifier.verify(token.strip())

    async def enforce_rate_limit(
        self, user_id: str, info: RequestInfo, options: GateOptions
    ) -> None:
        """
        Count the call against its bucket.

        Raises:
            TooManyRequests: If the bucket is exhausted
        """
        if not options.rate_limit_key:
            return

        decision = await self.limiter.check(
            user_id,
            options.rate_limit_key,
            options.rate_limit_max,
            options.rate_limit_window_ms,
        )
        if decision.allowed:
            return

        logger.warning(
            f"Rate limit exceeded for {user_id} on {options.rate_limit_key}"
        )
        await self.audit(
            AuditEvent(
                user_id=user_id,
                action=f"{options.rate_limit_key}_rate_limit_exceeded",
                resource_type="rate_limit",
                metadata={
                    "limit": options.rate_limit_max,
                    "window_ms": options.rate_limit_window_ms,
                },
                ip_address=info.ip_address,
                user_agent=info.user_agent,
            )
        )
        raise TooManyRequests(decision.reset_in)

    async def admit(self, info: RequestInfo, options: GateOptions) -> GateContext:
        """Run steps 1 to 3 and return the handler context."""
        if not options.skip_origin_validation:
            self.check_origin(info)
        user_id = await self.authenticate(info)
        await self.enforce_rate_limit(user_id, info, options)
        return GateContext(user_id=user_id, request=info)

    async def audit(self, event: AuditEvent) -> None:
        """Record an audit event. Failures are logged and swallowed."""
        try:
            await self.audit_sink.append(event)
        except Exception as e:
            logger.error(f"Failed to record audit event {event.action}: {e}")

    async def audit_success(self, context: GateContext, options: GateOptions) -> None:
        """Step 5: record ``options.audit_action`` for a handled request."""
        if not options.audit_action:
            return
        await self.audit(
            AuditEvent(
                user_id=context.user_id,
                action=options.audit_action,
                resource_type=options.resource_type,
                resource_id=context.resource_id,
                metadata=dict(context.metadata),
                ip_address=context.request.ip_address,
                user_agent=context.request.user_agent,
            )
        )

    async def run(
        self,
        info: RequestInfo,
        options: GateOptions,
        handler: Callable[[GateContext], Awaitable[T]],
    ) -> T:
        """
        Run the whole pipeline around ``handler``.

        Args:
            info: Request headers
            options: Gate options
            handler: Coroutine receiving the admitted context

        Returns:
            Whatever the handler returned
        """
        context = await self.admit(info, options)
        result = await handler(context)
        await self.audit_success(context, options)
        return result
