"""
Logging Setup

Modules log through logging.getLogger(__name__) and never configure handlers
themselves. The package has no entry point of its own: the embedding
application (a script, worker or API process) calls configure_logging() once
at startup, before the first validation runs.
"""

import logging
from typing import Optional

from tradecheck.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once, using the configured level by default."""
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("tradecheck").setLevel(resolved)

    # yfinance is chatty at INFO
    logging.getLogger("yfinance").setLevel(logging.WARNING)
