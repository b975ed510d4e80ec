"""
Test cases for prompt assembly.

Tests cover:
1. Clause order and the fixed context prefix / quality suffix
2. Visual DNA suppressing the generic visual anchors clause
3. Lighting resolution for canonical kinds and custom text
4. Lifestyle clauses for human models
5. Consistency, resize and edit builders
"""

import itertools

import pytest

from furniture_studio.models import (
    DimensionSpec,
    EnvironmentReference,
    Gender,
    HumanModelDirective,
    ImagePayload,
    LightingKind,
    LightingSpec,
    ProductReference,
)
from furniture_studio.prompts import (
    DEFAULT_ENVIRONMENT_DESCRIPTION,
    LIGHTING_PHRASES,
    QUALITY_SUFFIX,
    assemble_brand_prompt,
    assemble_consistency_prompt,
    assemble_edit_prompt,
    assemble_furniture_prompt,
    assemble_resize_prompt,
    resolve_lighting,
)

# =============================================================================
# Test Fixtures
# =============================================================================

IMAGE = ImagePayload(data=b"\x89PNG fake", mime_type="image/png")


@pytest.fixture
def product_refs():
    return (
        ProductReference(id="r1", image=IMAGE, description="Front view"),
        ProductReference(id="r2", image=IMAGE, description="Armrest detail"),
    )


@pytest.fixture
def env_ref():
    return EnvironmentReference(image=IMAGE, description="Concrete loft")


@pytest.fixture
def models():
    return (
        HumanModelDirective(id="m1", gender=Gender.FEMALE, interaction="reading on the seat"),
        HumanModelDirective(id="m2", gender=Gender.MALE, interaction="leaning on the backrest"),
    )


# =============================================================================
# Full assembly
# =============================================================================


class TestAssembleFurniturePrompt:
    def test_minimal_prompt_is_context_plus_suffix(self):
        prompt = assemble_furniture_prompt("Nordic Minimal")
        assert prompt == f"[CONTEXT]: Nordic Minimal. {QUALITY_SUFFIX}"

    def test_round_trip_scenario_order(self):
        prompt = assemble_furniture_prompt(
            brand_style="Nordic Minimal",
            dimensions=DimensionSpec(width=80, height=45, depth=80),
            lighting=LightingSpec(kind=LightingKind.STUDIO),
            view="Front Three-Quarter",
            models=[],
        )

        positions = [
            prompt.index("Nordic Minimal"),
            prompt.index("80cm"),
            prompt.index(LIGHTING_PHRASES[LightingKind.STUDIO]),
            prompt.index("Front Three-Quarter"),
        ]
        assert positions == sorted(positions)
        assert "Width 80cm, Height 45cm, Depth 80cm" in prompt

    def test_deterministic(self, product_refs, env_ref, models):
        kwargs = dict(
            brand_style="Warm Mediterranean",
            dimensions=DimensionSpec(width=200, height=90, depth=100),
            product_desc="Three seat sofa",
            product_refs=product_refs,
            env_ref=env_ref,
            lighting=LightingSpec(kind=LightingKind.NATURAL),
            view="Wide",
            models=models,
        )
        assert assemble_furniture_prompt(**kwargs) == assemble_furniture_prompt(**kwargs)

    def test_full_clause_order(self, product_refs, env_ref, models):
        prompt = assemble_furniture_prompt(
            brand_style="Brand",
            dimensions=DimensionSpec(width=1, height=2, depth=3),
            product_desc="Sofa",
            product_refs=product_refs,
            env_ref=env_ref,
            lighting=LightingSpec(kind=LightingKind.SOFT),
            view="Macro",
            models=models,
        )
        tags = [
            "[CONTEXT]",
            "[TECHNICAL SPECS]",
            "[DESIGN FOCUS]",
            "[VISUAL ANCHORS]",
            "[ENVIRONMENTAL INTEGRATION]",
            "[LIGHTING ENGINE]",
            "[CINEMATOGRAPHY]",
            "[LIFESTYLE ELEMENTS]",
        ]
        positions = [prompt.index(tag) for tag in tags]
        assert positions == sorted(positions)
        assert prompt.startswith("[CONTEXT]: Brand.")
        assert prompt.endswith(QUALITY_SUFFIX)

    def test_optional_combinations_never_raise(self, product_refs, env_ref, models):
        options = {
            "dimensions": DimensionSpec(width=10, height=10, depth=10),
            "product_desc": "Stool",
            "visual_analysis": "Solid ash legs",
            "product_refs": product_refs,
            "env_ref": env_ref,
            "lighting": LightingSpec(kind=LightingKind.CUSTOM, custom_text=""),
            "view": "Top-Down",
            "models": models,
        }
        for size in range(len(options) + 1):
            for keys in itertools.combinations(options, size):
                prompt = assemble_furniture_prompt("Brand", **{k: options[k] for k in keys})
                assert prompt.startswith("[CONTEXT]: Brand.")
                assert prompt.endswith(QUALITY_SUFFIX)

    def test_visual_analysis_suppresses_visual_anchors(self, product_refs):
        prompt = assemble_furniture_prompt(
            "Brand",
            visual_analysis="Curved walnut shell, boucle cushion",
            product_refs=product_refs,
        )
        assert "[VISUAL DNA ANCHOR]: Curved walnut shell, boucle cushion." in prompt
        assert "[VISUAL ANCHORS]" not in prompt
        assert "uploaded images" not in prompt

    def test_identity_anchor_follows_context(self):
        prompt = assemble_furniture_prompt(
            "Brand",
            dimensions=DimensionSpec(width=1, height=1, depth=1),
            visual_analysis="Oak frame",
        )
        assert prompt.startswith("[CONTEXT]: Brand. [VISUAL DNA ANCHOR]: Oak frame.")

    def test_visual_anchors_cite_each_reference(self, product_refs):
        prompt = assemble_furniture_prompt("Brand", product_refs=product_refs)
        assert "Reference 1: Front view." in prompt
        assert "Reference 2: Armrest detail." in prompt

    def test_empty_product_description_is_omitted(self):
        assert "[DESIGN FOCUS]" not in assemble_furniture_prompt("Brand", product_desc="")

    def test_environment_default_description(self):
        env = EnvironmentReference(image=IMAGE, description="")
        prompt = assemble_furniture_prompt("Brand", env_ref=env)
        assert f"[ENVIRONMENTAL INTEGRATION]: {DEFAULT_ENVIRONMENT_DESCRIPTION}." in prompt

    def test_lifestyle_clause_per_model(self, models):
        prompt = assemble_furniture_prompt("Brand", models=models)
        assert prompt.count("[LIFESTYLE ELEMENTS]") == 2
        assert prompt.count("Do not obscure furniture details.") == 2
        assert "Female model involved in: reading on the seat" in prompt
        assert "Male model involved in: leaning on the backrest" in prompt


# =============================================================================
# Lighting
# =============================================================================


class TestLighting:
    @pytest.mark.parametrize(
        "kind",
        [LightingKind.SOFT, LightingKind.STUDIO, LightingKind.NATURAL, LightingKind.DRAMATIC],
    )
    def test_custom_text_ignored_for_fixed_kinds(self, kind):
        plain = assemble_furniture_prompt("Brand", lighting=LightingSpec(kind=kind))
        with_text = assemble_furniture_prompt(
            "Brand", lighting=LightingSpec(kind=kind, custom_text="candle light")
        )
        assert plain == with_text
        assert LIGHTING_PHRASES[kind] in plain
        assert "candle light" not in with_text

    def test_fixed_phrases_are_unique(self):
        assert len(set(LIGHTING_PHRASES.values())) == len(LIGHTING_PHRASES)

    def test_custom_text_verbatim(self):
        spec = LightingSpec(kind=LightingKind.CUSTOM, custom_text="Blue hour, neon rim light")
        assert resolve_lighting(spec) == "Blue hour, neon rim light"
        prompt = assemble_furniture_prompt("Brand", lighting=spec)
        assert "[LIGHTING ENGINE]: Blue hour, neon rim light." in prompt

    def test_empty_custom_text_keeps_clause(self):
        prompt = assemble_furniture_prompt(
            "Brand", lighting=LightingSpec(kind=LightingKind.CUSTOM, custom_text="")
        )
        assert "[LIGHTING ENGINE]: ." in prompt

    def test_string_kind_is_coerced(self):
        assert LightingSpec(kind="Dramatic").kind is LightingKind.DRAMATIC


# =============================================================================
# Other builders
# =============================================================================


def test_consistency_prompt_carries_dna_and_view():
    prompt = assemble_consistency_prompt("Side", "Nordic Minimal", "Oak legs, grey wool")
    assert "EXACT same furniture piece" in prompt
    assert "Oak legs, grey wool" in prompt
    assert '"Side"' in prompt
    assert "Nordic Minimal" in prompt


def test_resize_prompt_names_ratio():
    prompt = assemble_resize_prompt("Nordic Minimal", "16:9")
    assert "ratio: 16:9" in prompt
    assert "Identical furniture and environment" in prompt


def test_edit_prompt_with_models():
    model = HumanModelDirective(id="m1", gender="male", interaction="sitting")
    prompt = assemble_edit_prompt("Make the cushions terracotta", [model])
    assert prompt.startswith("[EDIT]: Make the cushions terracotta.")
    assert "Male model involved in: sitting" in prompt


def test_brand_prompt_lists_inputs():
    prompt = assemble_brand_prompt("Hygge Co", "Furniture", "Nordics", "Pale oak")
    for expected in ("Brand: Hygge Co", "Sector: Furniture", "Market: Nordics", "Pale oak"):
        assert expected in prompt
