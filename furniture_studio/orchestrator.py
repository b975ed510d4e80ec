from __future__ import annotations

"""
Consistency orchestration for one development session.

The orchestrator holds the working base image and the visual DNA extracted
from it. It chains analyzer, prompt assembly and generation client so that a
piece stays identical across camera angles, aspect ratios and edits:

  - alternate views are generated from the base image and returned as
    separate variants; the base image stays where it is.
  - edits, resizes and fresh renders replace the base image, which drops the
    cached DNA because it described the previous image.

Each operation either produces a new Asset or raises; on failure the session
goes back to the state it was in before the operation started.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .analyzer import VisualIdentityAnalyzer
from .cancellation import CancelToken
from .client import GenerationClient
from .errors import NoSourceImage, SlotBusy, Stage, StudioError
from .ids import IdGenerator, UuidIdGenerator
from .models import (
    Asset,
    AssetMetadata,
    AssetType,
    BrandContext,
    GenerationConfig,
    HumanModelDirective,
    ImagePayload,
    RenderRequest,
)
from .prompts import (
    MAX_VIEWS_PER_BUNDLE,
    assemble_consistency_prompt,
    assemble_edit_prompt,
    assemble_furniture_prompt,
    assemble_resize_prompt,
    resolve_lighting,
)

BASE_SLOT = "base"


class SessionState(str, Enum):
    IDLE = "idle"
    HAS_SOURCE = "has_source"
    ANALYZING = "analyzing"
    HAS_DNA = "has_dna"
    GENERATING = "generating"


@dataclass(frozen=True)
class OperationResult:
    asset: Asset

    # Prompt that was sent, for the live debug display.
    prompt: str

    # True when the result became the new working base image.
    replaced_base: bool


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConsistencyOrchestrator:
    def __init__(
            self,
            client: GenerationClient,
            brand: BrandContext,
            analyzer: Optional[VisualIdentityAnalyzer] = None,
            id_generator: Optional[IdGenerator] = None,
            clock: Optional[Callable[[], int]] = None,
            cancel_token: Optional[CancelToken] = None,
    ) -> None:
        self._client = client
        self._brand = brand
        self._analyzer = analyzer or VisualIdentityAnalyzer(client)
        self._ids = id_generator or UuidIdGenerator()
        self._clock = clock or _now_ms
        self._session_token = cancel_token or CancelToken()

        self._source: Optional[ImagePayload] = None
        self._dna: Optional[str] = None
        # Digest of the source image the cached DNA was extracted from.
        self._dna_key: Optional[str] = None
        self._busy: Optional[SessionState] = None

        self._slots: Dict[str, threading.Lock] = {}
        self._slots_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self._busy is not None:
            return self._busy
        if self._source is None:
            return SessionState.IDLE
        if self.visual_dna is not None:
            return SessionState.HAS_DNA
        return SessionState.HAS_SOURCE

    @property
    def source_image(self) -> Optional[ImagePayload]:
        return self._source

    @property
    def visual_dna(self) -> Optional[str]:
        if self._source is None or self._dna_key != self._source.digest:
            return None
        return self._dna

    @property
    def brand(self) -> BrandContext:
        return self._brand

    def update_brand(self, brand: BrandContext) -> None:
        self._brand = brand

    def set_source(self, image: ImagePayload) -> None:
        """Make ``image`` the working base image (a new upload)."""
        with self._claim(BASE_SLOT):
            self._replace_source(image)
        logging.info("New source image set (%s); visual DNA invalidated.", image.mime_type)

    def close(self) -> None:
        """Abandon every request in flight; their results are discarded."""
        self._session_token.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _replace_source(self, image: ImagePayload) -> None:
        self._source = image
        self._dna = None
        self._dna_key = None

    def _slot_lock(self, slot: str) -> threading.Lock:
        with self._slots_guard:
            return self._slots.setdefault(slot, threading.Lock())

    @contextmanager
    def _claim(self, slot: str) -> Iterator[None]:
        lock = self._slot_lock(slot)
        if not lock.acquire(blocking=False):
            raise SlotBusy(f"A request for '{slot}' is already in flight.")
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def _operation(
            self,
            stage: Stage,
            busy_state: SessionState,
            cancel_token: Optional[CancelToken],
    ) -> Iterator[CancelToken]:
        """Guard one operation on the base slot.

        Yields a token that follows both the session and the caller token.
        Any error is tagged with ``stage`` and the busy state is cleared, so
        the session reverts to where it was before the operation.
        """
        with self._claim(BASE_SLOT):
            token = self._session_token.child(cancel_token)
            self._busy = busy_state
            try:
                token.raise_if_cancelled()
                yield token
            except StudioError as exc:
                if exc.stage is None:
                    exc.stage = stage
                logging.error("Operation failed during %s: %s", exc.stage.value, exc)
                raise
            finally:
                self._busy = None
                token.detach()

    def _require_source(self) -> ImagePayload:
        if self._source is None:
            raise NoSourceImage("Load or generate a base image first.")
        return self._source

    def _ensure_dna(self, token: CancelToken, force: bool = False) -> str:
        dna = self.visual_dna
        if dna is not None and not force:
            logging.info("Reusing cached visual DNA.")
            return dna

        source = self._require_source()
        self._busy = SessionState.ANALYZING
        try:
            dna = self._analyzer.describe(source)
            token.raise_if_cancelled()
        except StudioError as exc:
            exc.stage = exc.stage or Stage.ANALYSIS
            raise

        self._dna = dna
        self._dna_key = source.digest
        return dna

    def _make_asset(
            self,
            image: ImagePayload,
            asset_type: AssetType,
            metadata: AssetMetadata,
    ) -> Asset:
        return Asset(
            id=self._ids.new_id(),
            data=image.data,
            mime_type=image.mime_type,
            type=asset_type,
            timestamp=self._clock(),
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def analyze_source(
            self,
            force: bool = False,
            cancel_token: Optional[CancelToken] = None,
    ) -> str:
        """Extract and cache the visual DNA of the current base image."""
        with self._operation(Stage.ANALYSIS, SessionState.ANALYZING, cancel_token) as token:
            self._require_source()
            return self._ensure_dna(token, force=force)

    def render(
            self,
            request: RenderRequest,
            anchor_to_source: bool = False,
            cancel_token: Optional[CancelToken] = None,
    ) -> OperationResult:
        """Generate a new render from the generator inputs.

        With ``anchor_to_source`` the visual DNA of the current base image is
        injected as the identity anchor. The result replaces the base image.
        """
        with self._operation(Stage.GENERATION, SessionState.GENERATING, cancel_token) as token:
            visual_analysis = None
            if anchor_to_source:
                visual_analysis = self._ensure_dna(token)
                self._busy = SessionState.GENERATING

            prompt = assemble_furniture_prompt(
                brand_style=self._brand.style,
                dimensions=request.dimensions,
                product_desc=request.product_description,
                visual_analysis=visual_analysis,
                product_refs=request.product_refs,
                env_ref=request.environment,
                lighting=request.lighting,
                view=request.view,
                models=request.models,
            )
            image = self._client.generate(prompt, request.config, request.reference_images())
            token.raise_if_cancelled()

            asset = self._make_asset(
                image,
                AssetType.RENDER,
                AssetMetadata(
                    prompt=prompt,
                    dimensions=request.dimensions,
                    brand_style=self._brand.style,
                    lighting=resolve_lighting(request.lighting) if request.lighting else None,
                    view_name=request.view,
                ),
            )
            self._replace_source(image)

        logging.info("Render %s created; it is now the base image.", asset.id)
        return OperationResult(asset=asset, prompt=prompt, replaced_base=True)

    def generate_view(
            self,
            view: str,
            config: Optional[GenerationConfig] = None,
            cancel_token: Optional[CancelToken] = None,
    ) -> OperationResult:
        """Alternate camera angle of the base image; the base is kept."""
        with self._operation(Stage.GENERATION, SessionState.GENERATING, cancel_token) as token:
            source = self._require_source()
            dna = self._ensure_dna(token)
            self._busy = SessionState.GENERATING

            prompt = assemble_consistency_prompt(view, self._brand.style, dna)
            image = self._client.generate(prompt, config or GenerationConfig(), [source])
            token.raise_if_cancelled()

            asset = self._make_asset(
                image,
                AssetType.RENDER,
                AssetMetadata(prompt=prompt, brand_style=self._brand.style, view_name=view),
            )

        logging.info("Alternate view '%s' created as %s.", view, asset.id)
        return OperationResult(asset=asset, prompt=prompt, replaced_base=False)

    def generate_views(
            self,
            views: Sequence[str],
            config: Optional[GenerationConfig] = None,
            cancel_token: Optional[CancelToken] = None,
    ) -> List[OperationResult]:
        """Bundle of up to four alternate views sharing one visual DNA.

        Views run one after another. When one fails, the results of the views
        that already finished travel on the raised error as ``completed``.
        """
        if not views:
            raise ValueError("Select at least one view.")
        if len(views) > MAX_VIEWS_PER_BUNDLE:
            raise ValueError(f"At most {MAX_VIEWS_PER_BUNDLE} views can be generated at once.")
        results: List[OperationResult] = []
        for view in views:
            try:
                results.append(self.generate_view(view, config, cancel_token))
            except StudioError as exc:
                exc.completed = tuple(results)
                raise
        return results

    def edit(
            self,
            instruction: str,
            models: Sequence[HumanModelDirective] = (),
            config: Optional[GenerationConfig] = None,
            cancel_token: Optional[CancelToken] = None,
    ) -> OperationResult:
        """In-place edit of the base image; the result becomes the base."""
        if not instruction or not instruction.strip():
            raise ValueError("Describe the edit to apply.")
        with self._operation(Stage.EDIT, SessionState.GENERATING, cancel_token) as token:
            source = self._require_source()
            prompt = assemble_edit_prompt(instruction, models)
            image = self._client.edit(source, prompt, config)
            token.raise_if_cancelled()

            asset = self._make_asset(
                image,
                AssetType.RENDER,
                AssetMetadata(prompt=prompt, brand_style=self._brand.style),
            )
            self._replace_source(image)

        logging.info("Edit %s applied; it is now the base image.", asset.id)
        return OperationResult(asset=asset, prompt=prompt, replaced_base=True)

    def resize(
            self,
            aspect_ratio: str,
            image_size: str = "1K",
            cancel_token: Optional[CancelToken] = None,
    ) -> OperationResult:
        """Re-render the base image at another aspect ratio."""
        config = GenerationConfig(aspect_ratio=aspect_ratio, image_size=image_size)
        with self._operation(Stage.RESIZE, SessionState.GENERATING, cancel_token) as token:
            source = self._require_source()
            prompt = assemble_resize_prompt(self._brand.style, aspect_ratio)
            image = self._client.edit(source, prompt, config)
            token.raise_if_cancelled()

            asset = self._make_asset(
                image,
                AssetType.RENDER,
                AssetMetadata(prompt=prompt, brand_style=self._brand.style),
            )
            self._replace_source(image)

        logging.info("Resized base image to %s as %s.", aspect_ratio, asset.id)
        return OperationResult(asset=asset, prompt=prompt, replaced_base=True)

    def generate_video(
            self,
            prompt: str,
            image: Optional[ImagePayload] = None,
            cancel_token: Optional[CancelToken] = None,
    ) -> OperationResult:
        """Animate ``image`` (the base image by default).

        Runs on a slot of its own, keyed by the image, so it never blocks
        edits of the base image and leaves the session state untouched.
        """
        source = image or self._require_source()
        token = self._session_token.child(cancel_token)
        try:
            with self._claim(f"video:{source.digest}"):
                try:
                    data = self._client.generate_video(source, prompt, token)
                    token.raise_if_cancelled()
                except StudioError as exc:
                    exc.stage = exc.stage or Stage.VIDEO
                    logging.error("Operation failed during %s: %s", exc.stage.value, exc)
                    raise
        finally:
            token.detach()

        asset = self._make_asset(
            ImagePayload(data=data, mime_type="video/mp4"),
            AssetType.VIDEO,
            AssetMetadata(prompt=prompt, brand_style=self._brand.style),
        )
        logging.info("Video %s created.", asset.id)
        return OperationResult(asset=asset, prompt=prompt, replaced_base=False)
