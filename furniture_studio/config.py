from __future__ import annotations

"""
Runtime configuration read from the environment.

The API key is read from GEMINI_API_KEY or GOOGLE_API_KEY. Model names and
the video polling limits can be overridden per deployment without code
changes.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_TEXT_MODEL = "gemini-3-flash-preview"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_EDIT_MODEL = "gemini-2.5-flash-image"
DEFAULT_VIDEO_MODEL = "veo-3.1-fast-generate-preview"

# Image calls at 4K regularly take well over a minute.
DEFAULT_TIMEOUT_MS = 180_000
DEFAULT_VIDEO_POLL_SECONDS = 5.0
# 120 polls at 5s is ten minutes of waiting for a single clip.
DEFAULT_VIDEO_MAX_POLLS = 120


@dataclass(frozen=True)
class StudioSettings:
    """Immutable settings shared by every component of a session."""

    api_key: str
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    edit_model: str = DEFAULT_EDIT_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL

    # Per HTTP request timeout, in milliseconds as the SDK expects.
    request_timeout_ms: int = DEFAULT_TIMEOUT_MS

    video_poll_interval: float = DEFAULT_VIDEO_POLL_SECONDS
    video_max_poll_attempts: int = DEFAULT_VIDEO_MAX_POLLS

    def __repr__(self) -> str:
        # Keep the key out of logs and tracebacks.
        return (
            f"StudioSettings(text_model={self.text_model!r}, "
            f"image_model={self.image_model!r}, edit_model={self.edit_model!r}, "
            f"video_model={self.video_model!r})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StudioSettings":
        env = os.environ if environ is None else environ

        api_key = env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY")
        if not api_key:
            raise RuntimeError(
                "GEMINI_API_KEY or GOOGLE_API_KEY must be set in the environment "
                "for image generation."
            )

        return cls(
            api_key=api_key,
            text_model=env.get("GEMINI_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            image_model=env.get("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            edit_model=env.get("GEMINI_EDIT_MODEL", DEFAULT_EDIT_MODEL),
            video_model=env.get("GEMINI_VIDEO_MODEL", DEFAULT_VIDEO_MODEL),
            request_timeout_ms=int(
                env.get("FURNITURE_STUDIO_TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
            ),
            video_poll_interval=float(
                env.get("FURNITURE_STUDIO_VIDEO_POLL_SECONDS", DEFAULT_VIDEO_POLL_SECONDS)
            ),
            video_max_poll_attempts=int(
                env.get("FURNITURE_STUDIO_VIDEO_MAX_POLLS", DEFAULT_VIDEO_MAX_POLLS)
            ),
        )
