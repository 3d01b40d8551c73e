"""
Observability: structured logging and run ids.

Usage:
    import logging
    from krocs.observability import RunContext

    logger = logging.getLogger(__name__)

    with RunContext(prefix="sync"):
        logger.info("Sync started")  # formatted with the run id
"""

from .context import RunContext, generate_run_id, get_run_id, set_run_id
from .logging import CorrelationIdMiddleware, HumanFormatter, JSONFormatter, configure_logging

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RunContext",
    "get_run_id",
    "set_run_id",
    "generate_run_id",
]
