"""
Infrastructure abstraction layer.

This module provides repository interfaces and implementations for:
- Provider credential rows (one connected account per user and provider)
- Encrypted API key rows
- Rate limit counters and consumed OAuth nonces
- Append-only audit events

Backends are chosen by ``InfrastructureFactory`` from settings.
"""

from linkvault.infrastructure.factory import InfrastructureFactory

__all__ = ["InfrastructureFactory"]
