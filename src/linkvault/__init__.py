"""
linkvault: connected-account and API key vault backend.

Stores third-party OAuth credentials and provider API keys so that
downstream automation can act on a user's behalf.
"""

__version__ = "1.0.0"
