from __future__ import annotations

"""Brand context generation: turns the brand form into a system prompt."""

import logging

from .client import GenerationClient
from .errors import GenerationFailed
from .models import BrandContext
from .prompts import assemble_brand_prompt


def generate_brand_context(
        client: GenerationClient,
        name: str,
        sector: str = "",
        market: str = "",
        aesthetic: str = "",
) -> BrandContext:
    """Ask the text model for the brand's visual DNA and wrap it in a record."""
    prompt = assemble_brand_prompt(name, sector, market, aesthetic)
    logging.info("Generating brand context for '%s' (sector=%s, market=%s)", name, sector, market)

    system_prompt = client.generate_text(prompt)
    if not system_prompt:
        raise GenerationFailed(f"Brand context generation for '{name}' returned no text.")

    return BrandContext(
        name=name,
        sector=sector,
        market=market,
        aesthetic=aesthetic,
        system_prompt=system_prompt,
    )
