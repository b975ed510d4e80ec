from __future__ import annotations

"""
Prompt assembly for furniture renders.

Every builder here is a pure function of its arguments: the same inputs
always give a byte-identical prompt, and no combination of present or missing
optional inputs raises. Clauses are emitted in a fixed order:

    context, identity anchor, technical specs, design focus, visual anchors,
    environment, lighting, cinematography, lifestyle, quality suffix.
"""

from typing import Iterable, List, Optional, Sequence

from .models import (
    DimensionSpec,
    EnvironmentReference,
    Gender,
    HumanModelDirective,
    LightingKind,
    LightingSpec,
    ProductReference,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

QUALITY_SUFFIX = (
    "Output: Professional design catalog photography, 8k resolution, "
    "hyper-detailed textures."
)

DEFAULT_ENVIRONMENT_DESCRIPTION = "Seamless integration into the provided scenario"

DEFAULT_RENDER_VIEW = "Main Architectural Shot"

VIEW_TYPES = (
    "Frontal",
    "Side",
    "Macro",
    "Back",
    "Wide",
    "Three-Quarter",
    "Seat Height",
    "Corner Perspective",
    "Top-Down",
    "Framing",
)

MAX_VIEWS_PER_BUNDLE = 4

LIGHTING_PHRASES = {
    LightingKind.SOFT: (
        "Soft diffused daylight through sheer curtains, gentle wraparound "
        "shadows and low contrast"
    ),
    LightingKind.STUDIO: (
        "Professional studio setup with large softboxes, controlled key and "
        "fill lights and a clean seamless backdrop"
    ),
    LightingKind.NATURAL: (
        "Natural window light with a realistic sun direction, warm ambient "
        "bounce and true-to-life color temperature"
    ),
    LightingKind.DRAMATIC: (
        "Dramatic low-key lighting with a strong directional key light, deep "
        "shadows and sculpted highlights on the materials"
    ),
}

DESCRIBE_INSTRUCTION = (
    "Describe ONLY the piece of furniture in this image as a physical object, "
    "in extreme technical detail: overall silhouette and proportions, exact "
    "materials, surface finish (matte, satin, glossy), textures, fabric weave "
    "and upholstery, stitching, joints and hardware, leg shape and base "
    "construction, and colors. Do NOT describe the camera angle, framing, "
    "lens, the lighting setup, shadows, or the surrounding environment. This "
    "description will be used to keep the same piece 100% consistent across "
    "future renders from other angles, so be concise but hyper-specific."
)


# ---------------------------------------------------------------------------
# Clause helpers
# ---------------------------------------------------------------------------


def resolve_lighting(lighting: LightingSpec) -> str:
    """Canonical phrase for a lighting choice.

    Custom lighting is passed through verbatim, even when empty. Any other
    kind ignores the custom text entirely.
    """
    if lighting.kind == LightingKind.CUSTOM:
        return lighting.custom_text
    return LIGHTING_PHRASES[lighting.kind]


def _gender_label(gender: Gender) -> str:
    return "Female model" if gender == Gender.FEMALE else "Male model"


def _lifestyle_clause(model: HumanModelDirective) -> str:
    return (
        f"[LIFESTYLE ELEMENTS]: Human presence: {_gender_label(model.gender)} "
        f"involved in: {model.interaction}. Do not obscure furniture details."
    )


def _visual_anchor_clause(refs: Sequence[ProductReference]) -> str:
    citations = " ".join(
        f"Reference {index}: {ref.description or 'product view'}."
        for index, ref in enumerate(refs, start=1)
    )
    return (
        "[VISUAL ANCHORS]: Maintain absolute consistency with the silhouettes "
        f"and finishes in the uploaded images. {citations}"
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def assemble_furniture_prompt(
        brand_style: str,
        dimensions: Optional[DimensionSpec] = None,
        product_desc: Optional[str] = None,
        visual_analysis: Optional[str] = None,
        product_refs: Sequence[ProductReference] = (),
        env_ref: Optional[EnvironmentReference] = None,
        lighting: Optional[LightingSpec] = None,
        view: Optional[str] = None,
        models: Iterable[HumanModelDirective] = (),
) -> str:
    """Fold the generator inputs into a single render instruction."""
    clauses: List[str] = [f"[CONTEXT]: {brand_style}."]

    # Extracted DNA replaces the generic "match the uploads" anchor below.
    if visual_analysis:
        clauses.append(f"[VISUAL DNA ANCHOR]: {visual_analysis}.")

    if dimensions is not None:
        clauses.append(
            "[TECHNICAL SPECS]: Precise physical dimensions - "
            f"Width {dimensions.width}cm, Height {dimensions.height}cm, "
            f"Depth {dimensions.depth}cm. Ensure the furniture respects these "
            "proportions."
        )

    if product_desc:
        clauses.append(f"[DESIGN FOCUS]: {product_desc}.")

    if product_refs and not visual_analysis:
        clauses.append(_visual_anchor_clause(product_refs))

    if env_ref is not None:
        clauses.append(
            "[ENVIRONMENTAL INTEGRATION]: "
            f"{env_ref.description or DEFAULT_ENVIRONMENT_DESCRIPTION}."
        )

    if lighting is not None:
        clauses.append(f"[LIGHTING ENGINE]: {resolve_lighting(lighting)}.")

    if view:
        clauses.append(f"[CINEMATOGRAPHY]: Framing/Shot {view}.")

    for model in models:
        clauses.append(_lifestyle_clause(model))

    clauses.append(QUALITY_SUFFIX)
    return " ".join(clauses)


def assemble_consistency_prompt(
        target_view: str,
        brand_style: str,
        visual_analysis: str,
) -> str:
    """Instruction for an alternate camera angle of the same piece."""
    return (
        "[PRODUCT CONSISTENCY MANDATE]: You are generating an alternative "
        "camera angle of the EXACT same furniture piece shown in the attached "
        "image.\n"
        f"[VISUAL DNA ANCHOR]: {visual_analysis}.\n"
        f"[CONTEXT]: {brand_style}.\n"
        f"[CINEMATOGRAPHY]: Change the camera viewpoint to a \"{target_view}\" shot.\n"
        "- MANDATORY: Keep every single texture, material, and geometric "
        "detail identical.\n"
        "- MANDATORY: Keep the lighting and background architectural details "
        "consistent.\n"
        f"{QUALITY_SUFFIX}"
    )


def assemble_resize_prompt(brand_style: str, aspect_ratio: str) -> str:
    return (
        "[ASPECT RATIO ADAPTATION]: Re-render the exact same scene but adapt it "
        f"to ratio: {aspect_ratio}. Extend or crop only the surroundings.\n"
        "MANDATORY: Identical furniture and environment. Do NOT stretch, "
        "squash or reshape the furniture.\n"
        f"[CONTEXT]: {brand_style}."
    )


def assemble_edit_prompt(
        instruction: str,
        models: Iterable[HumanModelDirective] = (),
) -> str:
    """In-place edit of the base image, optionally staging people in it."""
    clauses = [
        f"[EDIT]: {instruction}.",
        "Change nothing else: keep the furniture geometry, materials, camera "
        "and lighting exactly as in the attached image.",
    ]
    for model in models:
        clauses.append(_lifestyle_clause(model))
    return " ".join(clauses)


def assemble_brand_prompt(name: str, sector: str, market: str, aesthetic: str) -> str:
    return (
        "Analyze this company data and generate a refined, technical "
        "SYSTEM_PROMPT that defines the brand's visual and communicative DNA "
        "for future AI generations.\n"
        f"Brand: {name}\n"
        f"Sector: {sector}\n"
        f"Market: {market}\n"
        f"Aesthetic Description: {aesthetic}\n\n"
        "Return only the optimized system prompt, focused on materials, "
        "lighting, architectural style, and the \"vibe\" of the furniture "
        "design."
    )
