"""
Observability module: structured logging scoped to batch runs.

Usage:
    from timeline.observability import get_logger, RunContext

    logger = get_logger(__name__)

    with RunContext(item_count=3, sort_policy="custom_order"):
        logger.warning("Write failed")  # formatters attach the run fields
"""

from .context import RunContext, RunInfo, current_run, generate_run_id, get_run_id
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "RunContext",
    "RunInfo",
    "current_run",
    "get_run_id",
    "generate_run_id",
]
