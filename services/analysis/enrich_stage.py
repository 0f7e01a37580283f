"""Stage 2: background knowledge about the product's ingredients."""

from __future__ import annotations

import logging

from models.label_artifacts import ProductEnrichment, ProductExtraction
from models.stage_result import StageResult
from services.analysis.coercion import ParseFallback, coerce_output
from services.analysis.prompts import ENRICHMENT_SYSTEM_PROMPT, enrichment_user_prompt
from services.analysis.stage_base import ReasoningStage
from services.openai.reasoning_client import ReasoningClient

LOGGER = logging.getLogger(__name__)

DEFAULT_INGREDIENT_LIMIT = 10


def degraded_enrichment() -> ProductEnrichment:
    """Return the fixed enrichment used when research is unavailable."""
    return ProductEnrichment(
        ingredient_info=[],
        nutritional_context="Additional information unavailable",
        recommendations="Consult with a healthcare provider for personalized advice",
        comparisons=[],
    )


class EnrichStage(ReasoningStage):
    """Ask for health notes on the leading ingredients of an extracted product."""

    name = "enrich"
    max_output_tokens = 1000

    def __init__(self, capability: ReasoningClient, ingredient_limit: int = DEFAULT_INGREDIENT_LIMIT) -> None:
        super().__init__(capability)
        self.ingredient_limit = ingredient_limit

    def build_prompt(self, extraction: ProductExtraction) -> str:
        product_name = extraction.product_name or "Unknown Product"
        return enrichment_user_prompt(product_name, extraction.ingredients[: self.ingredient_limit])

    async def run(self, extraction: ProductExtraction) -> StageResult[ProductEnrichment]:
        reply = await self._invoke(ENRICHMENT_SYSTEM_PROMPT, self.build_prompt(extraction))
        if not reply.ok:
            return reply
        result = coerce_output(reply.value, ProductEnrichment, fallback=ParseFallback.FAIL)
        if not result.ok:
            LOGGER.error("Could not parse enrichment reply: %s", result.reason)
        return result
