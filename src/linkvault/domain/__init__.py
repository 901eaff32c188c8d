"""
Domain layer: connector contracts, credential models and the error taxonomy.
"""

from linkvault.domain.errors import LinkVaultError

__all__ = ["LinkVaultError"]
