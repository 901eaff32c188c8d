"""
Logging filters for uvicorn access logs.
"""

import logging


class HealthCheckFilter(logging.Filter):
    """
    Drops access log lines for health probes.

    Load balancers poll ``/health`` every few seconds; logging each hit
    buries the OAuth callback and key vault traffic we actually audit.
    """

    EXCLUDED_PATHS = {"/health", "/favicon.ico"}

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Determine if a log record should be logged.

        Args:
            record: Log record from uvicorn

        Returns:
            False if the request path is a health probe, True otherwise
        """
        # Access log format: 'IP:PORT - "METHOD PATH PROTOCOL" STATUS'
        message = record.getMessage()
        for path in self.EXCLUDED_PATHS:
            if f" {path} " in message or f'"{path}"' in message:
                return False
        return True
