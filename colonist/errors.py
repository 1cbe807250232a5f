"""Exceptions raised at the edges of the production core.

Nothing inside a scheduling pass raises: unaffordable, untargeted, or
vetoed candidates are filtered and recorded as rejections.  These types
exist for the seams where outside data enters or outside actions fail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from colonist.spawning.executor import ActionStatus


class ColonistError(Exception):
    """Base class for all colonist errors."""


class MalformedSnapshotError(ColonistError):
    """A colony snapshot record is missing or has unusable core fields."""


class ActionRejectedError(ColonistError):
    """The external action interface refused a command.

    Attributes:
        status: The status reported by the action interface.
    """

    def __init__(self, status: ActionStatus, message: str = "") -> None:
        self.status = status
        super().__init__(message or f"action rejected: {status.name}")
