from __future__ import annotations

"""
Datamodels used throughout the furniture studio core.

These dataclasses are frozen and small so the UI layer can hand them to the
prompt assembly and orchestration code as plain values. Collections are
tuples; every change produces a new record instead of mutating one in place.
"""

import base64
import hashlib
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

ASPECT_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9", "21:9")
IMAGE_SIZES = ("1K", "2K", "4K")


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes plus their MIME type."""

    data: bytes
    mime_type: str = "image/png"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"

    @property
    def digest(self) -> str:
        """Content hash used as the identity of a source image."""
        return hashlib.sha256(self.data).hexdigest()

    def __repr__(self) -> str:
        return f"ImagePayload(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class BrandContext:
    """Brand identity shared by every generation in a session."""

    name: str = ""
    sector: str = ""
    market: str = ""

    # Free text description of the look and feel, written by the user.
    aesthetic: str = ""

    # Generated visual DNA of the brand, injected into every prompt.
    system_prompt: str = ""

    @property
    def style(self) -> str:
        """Brand style string used as the prompt context."""
        return self.system_prompt or self.aesthetic or self.name

    def with_system_prompt(self, system_prompt: str) -> "BrandContext":
        return replace(self, system_prompt=system_prompt)


@dataclass(frozen=True)
class ProductReference:
    """An uploaded product photo. Order defines its index in prompts."""

    id: str
    image: ImagePayload
    description: str = ""


@dataclass(frozen=True)
class EnvironmentReference:
    """The single scene photo the product should be placed into."""

    image: ImagePayload
    description: str = ""


class LightingKind(str, Enum):
    SOFT = "Soft"
    STUDIO = "Studio"
    NATURAL = "Natural"
    DRAMATIC = "Dramatic"
    CUSTOM = "Custom"


@dataclass(frozen=True)
class LightingSpec:
    kind: LightingKind = LightingKind.STUDIO

    # Only read when kind is CUSTOM.
    custom_text: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", LightingKind(self.kind))


@dataclass(frozen=True)
class DimensionSpec:
    """Physical size of the piece in centimeters."""

    width: int
    height: int
    depth: int

    def __post_init__(self) -> None:
        for name in ("width", "height", "depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer number of centimeters.")
            if value < 0:
                raise ValueError(f"{name} must not be negative.")


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class HumanModelDirective:
    """A person to stage in the scene, interacting with the product."""

    id: str
    gender: Gender = Gender.FEMALE
    interaction: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "gender", Gender(self.gender))


@dataclass(frozen=True)
class GenerationConfig:
    aspect_ratio: str = "1:1"
    image_size: str = "1K"

    def __post_init__(self) -> None:
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(
                f"Unsupported aspect ratio {self.aspect_ratio!r}; "
                f"expected one of {', '.join(ASPECT_RATIOS)}."
            )
        if self.image_size not in IMAGE_SIZES:
            raise ValueError(
                f"Unsupported image size {self.image_size!r}; "
                f"expected one of {', '.join(IMAGE_SIZES)}."
            )


class AssetType(str, Enum):
    RENDER = "render"
    REFERENCE = "reference"
    VIDEO = "video"


@dataclass(frozen=True)
class AssetMetadata:
    prompt: str = ""
    dimensions: Optional[DimensionSpec] = None
    brand_style: Optional[str] = None
    lighting: Optional[str] = None
    view_name: Optional[str] = None


@dataclass(frozen=True)
class Asset:
    """A finished render, reference or video handed to the gallery."""

    id: str
    data: bytes = field(repr=False)
    mime_type: str
    type: AssetType

    # Milliseconds since the epoch.
    timestamp: int

    metadata: AssetMetadata = field(default_factory=AssetMetadata)

    @property
    def image(self) -> ImagePayload:
        return ImagePayload(data=self.data, mime_type=self.mime_type)

    @property
    def url(self) -> str:
        return self.image.to_data_url()


@dataclass(frozen=True)
class RenderRequest:
    """Everything the generator form collects for one render."""

    dimensions: Optional[DimensionSpec] = None
    product_description: str = ""
    product_refs: Tuple[ProductReference, ...] = ()

    # Singleton: a new upload replaces the previous one.
    environment: Optional[EnvironmentReference] = None

    lighting: Optional[LightingSpec] = None
    view: Optional[str] = None
    models: Tuple[HumanModelDirective, ...] = ()
    config: GenerationConfig = field(default_factory=GenerationConfig)

    def with_product_ref(self, ref: ProductReference) -> "RenderRequest":
        return replace(self, product_refs=self.product_refs + (ref,))

    def without_product_ref(self, ref_id: str) -> "RenderRequest":
        return replace(
            self,
            product_refs=tuple(r for r in self.product_refs if r.id != ref_id),
        )

    def with_environment(self, environment: Optional[EnvironmentReference]) -> "RenderRequest":
        return replace(self, environment=environment)

    def with_model(self, model: HumanModelDirective) -> "RenderRequest":
        return replace(self, models=self.models + (model,))

    def with_updated_model(self, model: HumanModelDirective) -> "RenderRequest":
        return replace(
            self,
            models=tuple(model if m.id == model.id else m for m in self.models),
        )

    def without_model(self, model_id: str) -> "RenderRequest":
        return replace(self, models=tuple(m for m in self.models if m.id != model_id))

    def reference_images(self) -> List[ImagePayload]:
        """Product references in upload order, then the environment."""
        images = [ref.image for ref in self.product_refs]
        if self.environment is not None:
            images.append(self.environment.image)
        return images
