"""Cached-view invalidation hook, called after every mutating operation."""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ViewInvalidatorPort(Protocol):
    """Drop cached views for a workspace and, where known, one owner entity."""

    def invalidate(self, workspace_id: str, owner_id: str | None = None) -> None:
        ...


class LoggingInvalidator:
    """Default invalidator for processes without a view cache: records the request at DEBUG."""

    def invalidate(self, workspace_id: str, owner_id: str | None = None) -> None:
        logger.debug("view_invalidate workspace=%s owner=%s", workspace_id, owner_id)


def notify(invalidator: ViewInvalidatorPort | None, workspace_id: str, owner_id: str | None = None) -> None:
    """Fire-and-forget: invalidator failures are logged and never reach the caller."""
    if invalidator is None:
        return
    try:
        invalidator.invalidate(workspace_id, owner_id)
    except Exception:  # noqa: BLE001
        logger.warning(
            "view_invalidation_failed",
            exc_info=True,
            extra={"workspace_id": workspace_id, "owner_id": owner_id},
        )
