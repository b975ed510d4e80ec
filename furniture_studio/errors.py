from __future__ import annotations

"""
Error taxonomy for the furniture studio core.

Every failure raised by the analyzer, the generation client or the
orchestrator derives from StudioError so a caller can render a single
blocking notification. The orchestrator fills in ``stage`` before an error
leaves it, which tells the user whether the cached visual DNA or the working
base image is still the one they started from.
"""

from enum import Enum
from typing import Any, Optional, Tuple


class Stage(str, Enum):
    """Pipeline stage an error is attributed to."""

    ANALYSIS = "analysis"
    GENERATION = "generation"
    EDIT = "edit"
    RESIZE = "resize"
    VIDEO = "video"


class StudioError(Exception):
    """Base class for all caller-visible failures."""

    def __init__(self, message: str, stage: Optional[Stage] = None) -> None:
        super().__init__(message)
        self.stage = stage
        # Results finished before the failure, when a bundle was interrupted.
        self.completed: Tuple[Any, ...] = ()

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage is None:
            return message
        return f"[{self.stage.value}] {message}"


class AssemblyError(StudioError):
    """Reserved. Prompt assembly is total and never raises this."""


class AnalysisFailed(StudioError):
    """The visual identity of a source image could not be extracted."""


class DescribeFailed(AnalysisFailed):
    """The describe call errored or returned no usable text."""


class GenerationFailed(StudioError):
    """A remote generate, edit or text call raised."""


class NoImageReturned(StudioError):
    """The remote call succeeded but the response held no inline image."""


class VideoJobFailed(StudioError):
    """A video job finished with an error or without a video."""


class VideoJobTimeout(VideoJobFailed):
    """A video job did not finish within the allowed number of polls."""


class OperationCancelled(StudioError):
    """The caller cancelled the request; its result was discarded."""


class SlotBusy(StudioError):
    """Another request for the same image slot is still in flight."""


class NoSourceImage(StudioError):
    """An operation needs a working base image but none is set."""


class InvalidReference(StudioError, ValueError):
    """An uploaded reference could not be decoded as an image."""
