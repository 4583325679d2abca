"""Deployed/obsolete flags gating remote access."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .exceptions import ObsoleteAccessError, UndeployedAccessError

logger = logging.getLogger(__name__)


@dataclass
class LifecycleFlags:
    """Two monotonic flags describing the backing record.

    ``deployed`` means the record exists remotely and may be fetched from or
    written to. ``obsolete`` means it was destroyed and nothing may touch
    the dataset anymore. Neither flag is ever reset.
    """

    _deployed: bool = field(default=False, init=False)
    _obsolete: bool = field(default=False, init=False)

    @property
    def deployed(self) -> bool:
        return self._deployed

    @property
    def obsolete(self) -> bool:
        return self._obsolete

    def mark_deployed(self) -> None:
        if not self._deployed:
            logger.debug("Dataset marked as deployed")
        self._deployed = True

    def mark_obsolete(self) -> None:
        if not self._obsolete:
            logger.debug("Dataset marked as obsolete")
        self._obsolete = True

    def ensure_usable(self, operation: str) -> None:
        """Raise ObsoleteAccessError if the record was destroyed."""
        if self._obsolete:
            raise ObsoleteAccessError(operation)

    def ensure_fetchable(self, operation: str) -> None:
        """Raise unless the record is alive and deployed."""
        self.ensure_usable(operation)
        if not self._deployed:
            raise UndeployedAccessError(operation)
