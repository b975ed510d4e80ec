from __future__ import annotations

import logging

from .client import GenerationClient
from .errors import DescribeFailed, GenerationFailed
from .models import ImagePayload
from .prompts import DESCRIBE_INSTRUCTION


class VisualIdentityAnalyzer:
    """Extracts an angle-invariant text description ("visual DNA") of a piece.

    The description is later used as the identity anchor of consistency
    prompts, so an empty answer is an error and never a result.
    """

    def __init__(self, client: GenerationClient, instruction: str = DESCRIBE_INSTRUCTION) -> None:
        self._client = client
        self._instruction = instruction

    def describe(self, image: ImagePayload) -> str:
        try:
            text = self._client.describe_image(image, self._instruction)
        except GenerationFailed as exc:
            raise DescribeFailed(f"Could not analyze source image: {exc}") from exc

        if not text or not text.strip():
            raise DescribeFailed("Image description came back empty.")

        logging.info("Extracted visual DNA (%d characters).", len(text))
        return text.strip()
