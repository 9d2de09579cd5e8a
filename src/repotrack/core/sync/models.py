"""
Data models for repo checkouts.

Defines the phases a checkout goes through and the result it reports.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SyncPhase(str, Enum):
    """Steps of a checkout, in the order they can run."""

    INIT = "init"
    PRE_RESET = "pre_reset"
    SYNC = "sync"
    FORCE_RESET = "force_reset"
    SYNC_RETRY = "sync_retry"


class CheckoutResult(BaseModel):
    """
    Result of SyncOrchestrator.checkout().

    ``phases`` lists the steps that ran, so a caller can tell a clean sync
    from one that only succeeded after a reset and retry.
    """

    success: bool = Field(description="Whether the checkout succeeded")

    phases: list[SyncPhase] = Field(
        default_factory=list,
        description="Phases executed, in order",
    )

    message: str = Field(
        default="",
        description="Human-readable result message",
    )

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def retried(self) -> bool:
        return SyncPhase.SYNC_RETRY in self.phases

    @property
    def duration_seconds(self) -> float | None:
        """Calculate operation duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        if not self.success:
            return f"checkout failed: {self.message}"

        parts = ["checkout succeeded"]
        if self.retried:
            parts.append("after reset and retry")
        if self.message:
            parts.append(self.message)
        return ", ".join(parts)
