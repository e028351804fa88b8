"""
Structured logging for Backend TokenLens.

JSON logs with timestamp, event_type, and request-scoped fields.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_tokenlens.tokenlens_logging.logger import get_logger, short_address

__all__ = ["get_logger", "short_address"]
