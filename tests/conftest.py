"""
Pytest configuration and fixtures for the furniture studio tests.

The Gemini SDK client is replaced by a MagicMock; responses are built from
the real ``google.genai.types`` classes so the parsing code sees the same
shapes it gets in production.
"""
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from google.genai import types
from PIL import Image

from furniture_studio.client import GenerationClient
from furniture_studio.config import StudioSettings
from furniture_studio.ids import SequentialIdGenerator
from furniture_studio.models import BrandContext, ImagePayload


def make_png(color=(120, 90, 60), size=(8, 8)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def image_response(data: bytes, mime_type: str = "image/png") -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(
                    role="model",
                    parts=[
                        types.Part.from_text(text="Here is your render."),
                        types.Part.from_bytes(data=data, mime_type=mime_type),
                    ],
                )
            )
        ]
    )


def text_response(text: str) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part.from_text(text=text)])
            )
        ]
    )


def empty_response() -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(
                    role="model",
                    parts=[types.Part.from_text(text="I cannot render that.")],
                )
            )
        ]
    )


def video_operation(done: bool, video_bytes=None, error=None, with_video=True):
    response = None
    if done and with_video:
        response = SimpleNamespace(
            generated_videos=[
                SimpleNamespace(
                    video=SimpleNamespace(video_bytes=video_bytes, uri="files/video-1")
                )
            ]
        )
    return SimpleNamespace(done=done, error=error, response=response)


@pytest.fixture
def settings():
    return StudioSettings(
        api_key="test-key",
        video_poll_interval=0.0,
        video_max_poll_attempts=5,
    )


@pytest.fixture
def genai_client():
    """Stand-in for ``google.genai.Client``."""
    return MagicMock()


@pytest.fixture
def client(genai_client, settings):
    return GenerationClient(genai_client, settings)


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def source_image():
    return ImagePayload(data=make_png((200, 180, 160)), mime_type="image/png")


@pytest.fixture
def brand():
    return BrandContext(
        name="Nordic Minimal",
        sector="Furniture",
        market="EU",
        aesthetic="Pale oak, wool, soft daylight",
        system_prompt="Nordic Minimal",
    )


@pytest.fixture
def ids():
    return SequentialIdGenerator(prefix="asset")
