"""
Diagnostics - non-fatal warnings about responses that could not be verified.

Emitted by ContractClient when:
- a response's resolved path has no route definition
- a response carries no resolvable url/method

These never interrupt delivery of a response. Production deployments
typically silence them via Config.DIAGNOSTICS_ENABLED.
"""

import logging
from typing import Any, Optional

from .config import Config


class Diagnostics:
    """
    Injectable sink for client diagnostics.

    Args:
        logger: Logger to emit through (default: "restcontract.client")
        level: Log level diagnostics are emitted at
        enabled: When False, diagnostics are dropped
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.WARNING,
        enabled: bool = True,
    ):
        self.logger = logger or logging.getLogger("restcontract.client")
        self.level = level
        self.enabled = enabled

    @classmethod
    def from_config(cls, config: Any = Config, logger: Optional[logging.Logger] = None) -> "Diagnostics":
        return cls(logger=logger, enabled=bool(getattr(config, "DIAGNOSTICS_ENABLED", True)))

    def warn(self, message: str, **extra: Any) -> None:
        if not self.enabled:
            return
        self.logger.log(self.level, message, extra=extra)
