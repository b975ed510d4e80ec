from __future__ import annotations

"""
Helpers for loading brand contexts and render requests from YAML or JSON
into the frozen dataclasses of ``furniture_studio.models``.

A render request document looks like::

    product_description: Lounge chair with a walnut frame
    dimensions: {width: 80, height: 45, depth: 80}
    product_references:
      - path: refs/chair_front.png
        description: Front view
    environment:
      path: refs/loft.jpg
      description: Industrial loft with concrete floor
    lighting: {kind: Studio}
    view: Front Three-Quarter
    models:
      - gender: female
        interaction: reading a book in the chair
    config: {aspect_ratio: "16:9", image_size: 2K}

Image paths are resolved relative to the document's directory.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .ids import IdGenerator, UuidIdGenerator
from .models import (
    BrandContext,
    DimensionSpec,
    GenerationConfig,
    HumanModelDirective,
    LightingKind,
    LightingSpec,
    RenderRequest,
)
from .prompts import DEFAULT_RENDER_VIEW
from .references import DEFAULT_PRODUCT_DESCRIPTION, environment_reference, product_reference


def _read_document(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    # Support both YAML and JSON so the caller can choose their preferred format.
    with path.open("r", encoding="utf-8") as f:
        if path.suffix.lower() in {".yml", ".yaml"}:
            raw = yaml.safe_load(f)
        else:
            raw = json.load(f)

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping at the top level.")
    return raw


def load_brand(path: Union[str, Path]) -> BrandContext:
    raw = _read_document(Path(path))
    return BrandContext(
        name=str(raw.get("name", "")),
        sector=str(raw.get("sector", "")),
        market=str(raw.get("market", "")),
        aesthetic=str(raw.get("aesthetic", "")),
        system_prompt=str(raw.get("system_prompt", "")),
    )


def save_brand(brand: BrandContext, path: Union[str, Path]) -> Path:
    """Persist a (possibly hand edited) brand context."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        if path.suffix.lower() in {".yml", ".yaml"}:
            yaml.safe_dump(asdict(brand), f, sort_keys=False, allow_unicode=True)
        else:
            json.dump(asdict(brand), f, indent=2, ensure_ascii=False)
    return path


def parse_lighting(raw: Union[str, Mapping[str, Any], None]) -> Optional[LightingSpec]:
    """Accept ``Studio`` or ``{kind: Custom, custom_text: ...}``."""
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = {"kind": raw}

    kind_text = str(raw.get("kind", LightingKind.STUDIO.value)).strip().lower()
    for kind in LightingKind:
        if kind.value.lower() == kind_text:
            return LightingSpec(kind=kind, custom_text=str(raw.get("custom_text") or ""))
    raise ValueError(
        f"Unknown lighting kind {raw.get('kind')!r}; expected one of "
        f"{', '.join(k.value for k in LightingKind)}."
    )


def parse_dimensions(raw: Optional[Mapping[str, Any]]) -> Optional[DimensionSpec]:
    if not raw:
        return None
    try:
        return DimensionSpec(
            width=int(raw["width"]),
            height=int(raw["height"]),
            depth=int(raw["depth"]),
        )
    except KeyError as exc:
        raise ValueError(f"dimensions is missing {exc.args[0]!r}.") from exc


def parse_config(raw: Optional[Mapping[str, Any]]) -> GenerationConfig:
    # Aspect ratios must be quoted in YAML, unquoted 16:9 is read as a
    # base-60 integer.
    raw = raw or {}
    return GenerationConfig(
        aspect_ratio=str(raw.get("aspect_ratio", "1:1")),
        image_size=str(raw.get("image_size", "1K")),
    )


def _reference_path(base_dir: Path, entry: Mapping[str, Any], field: str) -> Path:
    try:
        return base_dir / entry["path"]
    except KeyError as exc:
        raise ValueError(f"{field} entry is missing 'path'.") from exc


def load_render_request(
        path: Union[str, Path],
        id_generator: Optional[IdGenerator] = None,
) -> RenderRequest:
    """
    Load a render request and its reference images.

    The function:
      - Accepts .yml, .yaml, or .json files.
      - Reads every referenced image through the reference normalizer.
      - Falls back to the main architectural shot when no view is given.
    """
    path = Path(path)
    raw = _read_document(path)
    base_dir = path.parent
    ids = id_generator or UuidIdGenerator()

    request = RenderRequest(
        dimensions=parse_dimensions(raw.get("dimensions")),
        product_description=str(raw.get("product_description") or ""),
        lighting=parse_lighting(raw.get("lighting")),
        view=raw.get("view") or DEFAULT_RENDER_VIEW,
        config=parse_config(raw.get("config")),
    )

    for ref in raw.get("product_references") or []:
        request = request.with_product_ref(
            product_reference(
                _reference_path(base_dir, ref, "product_references"),
                description=ref.get("description") or DEFAULT_PRODUCT_DESCRIPTION,
                id_generator=ids,
            )
        )

    env = raw.get("environment")
    if env:
        request = request.with_environment(
            environment_reference(
                _reference_path(base_dir, env, "environment"),
                description=env.get("description") or "",
            )
        )

    for model in raw.get("models") or []:
        request = request.with_model(
            HumanModelDirective(
                id=ids.new_id(),
                gender=str(model.get("gender", "female")).lower(),
                interaction=str(model.get("interaction") or ""),
            )
        )

    return request
