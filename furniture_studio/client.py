from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from google import genai
from google.genai import types

from .cancellation import CancelToken
from .config import StudioSettings
from .errors import (
    GenerationFailed,
    NoImageReturned,
    OperationCancelled,
    VideoJobFailed,
    VideoJobTimeout,
)
from .models import GenerationConfig, ImagePayload


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def extract_first_image(response: Any) -> ImagePayload:
    """Return the first inline image part of a Gen AI response."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        if not content:
            continue
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None:
                continue
            mime_type = getattr(inline_data, "mime_type", None) or "image/png"
            data = getattr(inline_data, "data", None)
            if data and mime_type.startswith("image/"):
                return ImagePayload(data=data, mime_type=mime_type)

    raise NoImageReturned("No image data found in Gemini response")


def extract_text(response: Any) -> str:
    """Join every text part of a Gen AI response."""
    texts: List[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        if not content:
            continue
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                texts.append(text)
    return "\n".join(texts).strip()


def _image_part(image: ImagePayload) -> types.Part:
    return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GenerationClient:
    """Request shaping around one injected ``genai.Client``.

    None of the calls retry. Any exception raised by the SDK is re-raised as
    GenerationFailed, and a successful image call without an image part is
    reported as NoImageReturned.
    """

    def __init__(self, client: genai.Client, settings: StudioSettings) -> None:
        self._client = client
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: StudioSettings) -> "GenerationClient":
        client = genai.Client(
            api_key=settings.api_key,
            http_options=types.HttpOptions(timeout=settings.request_timeout_ms),
        )
        # Do not log the key, only that the client has been constructed.
        logging.info("Initialized Gemini client for furniture generation.")
        return cls(client, settings)

    @property
    def settings(self) -> StudioSettings:
        return self._settings

    def _call(self, description: str, **kwargs: Any) -> Any:
        try:
            return self._client.models.generate_content(**kwargs)
        except Exception as exc:
            raise GenerationFailed(f"Gemini {description} failed: {exc}") from exc

    def generate_text(self, prompt: str) -> str:
        """Text-only call, used for brand context generation."""
        logging.info(
            "Calling text model %s (prompt length=%d)",
            self._settings.text_model,
            len(prompt),
        )
        response = self._call(
            "text generation",
            model=self._settings.text_model,
            contents=prompt,
        )
        return extract_text(response)

    def describe_image(self, image: ImagePayload, instruction: str) -> str:
        logging.info(
            "Calling text model %s to describe a %s image",
            self._settings.text_model,
            image.mime_type,
        )
        response = self._call(
            "image description",
            model=self._settings.text_model,
            contents=[_image_part(image), instruction],
        )
        return extract_text(response)

    def generate(
            self,
            prompt: str,
            config: GenerationConfig,
            reference_images: Sequence[ImagePayload] = (),
    ) -> ImagePayload:
        """Fresh image from a prompt plus ordered reference images."""
        contents: List[Any] = [prompt]
        contents.extend(_image_part(image) for image in reference_images)

        logging.info(
            "Calling image model %s with %d reference image(s), ratio %s, size %s",
            self._settings.image_model,
            len(reference_images),
            config.aspect_ratio,
            config.image_size,
        )

        response = self._call(
            "image generation",
            model=self._settings.image_model,
            contents=contents,
            config=types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
                image_config=types.ImageConfig(
                    aspect_ratio=config.aspect_ratio,
                    image_size=config.image_size,
                ),
            ),
        )
        return extract_first_image(response)

    def edit(
            self,
            base_image: ImagePayload,
            instruction: str,
            config: Optional[GenerationConfig] = None,
    ) -> ImagePayload:
        """Image-conditioned edit of exactly one base image."""
        config_kwargs: Dict[str, Any] = {"response_modalities": ["TEXT", "IMAGE"]}
        if config is not None:
            config_kwargs["image_config"] = types.ImageConfig(aspect_ratio=config.aspect_ratio)

        logging.info(
            "Calling edit model %s (instruction length=%d, ratio=%s)",
            self._settings.edit_model,
            len(instruction),
            config.aspect_ratio if config is not None else "unchanged",
        )

        response = self._call(
            "image edit",
            model=self._settings.edit_model,
            contents=[_image_part(base_image), instruction],
            config=types.GenerateContentConfig(**config_kwargs),
        )
        return extract_first_image(response)

    def generate_video(
            self,
            image: ImagePayload,
            prompt: str,
            cancel_token: Optional[CancelToken] = None,
    ) -> bytes:
        """Animate a still image with a Veo job and return the video bytes.

        The job is polled every ``video_poll_interval`` seconds, at most
        ``video_max_poll_attempts`` times. Cancelling the token stops the
        wait between two polls.
        """
        token = cancel_token or CancelToken()
        token.raise_if_cancelled()

        logging.info(
            "Submitting video job to %s (prompt length=%d)",
            self._settings.video_model,
            len(prompt),
        )
        try:
            operation = self._client.models.generate_videos(
                model=self._settings.video_model,
                prompt=prompt,
                image=types.Image(image_bytes=image.data, mime_type=image.mime_type),
                config=types.GenerateVideosConfig(number_of_videos=1),
            )
        except Exception as exc:
            raise GenerationFailed(
                f"Gemini video submission failed: {exc}"
            ) from exc

        checks = 0
        while not operation.done:
            if checks >= self._settings.video_max_poll_attempts:
                raise VideoJobTimeout(
                    f"Video job not finished after {checks} status checks."
                )
            if token.wait(self._settings.video_poll_interval):
                raise OperationCancelled("Video job was cancelled.")
            try:
                operation = self._client.operations.get(operation)
            except Exception as exc:
                raise GenerationFailed(
                    f"Gemini video status check failed: {exc}"
                ) from exc
            checks += 1
            logging.info("Video job status check %d: done=%s", checks, operation.done)

        error = getattr(operation, "error", None)
        if error:
            raise VideoJobFailed(f"Video job failed: {error}")

        result = getattr(operation, "response", None) or getattr(operation, "result", None)
        generated = getattr(result, "generated_videos", None) if result is not None else None
        if not generated:
            raise VideoJobFailed("Video job finished without a video.")

        video = generated[0].video
        if video is None:
            raise VideoJobFailed("Video job finished without a video.")

        token.raise_if_cancelled()

        data = getattr(video, "video_bytes", None)
        if data:
            return data

        try:
            data = self._client.files.download(file=video)
        except Exception as exc:
            raise GenerationFailed(
                f"Gemini video download failed: {exc}"
            ) from exc
        if not data:
            raise VideoJobFailed("Downloaded video is empty.")
        return data
