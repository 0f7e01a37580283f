"""Stage 3: the user-facing verdict and report."""

from __future__ import annotations

import logging

from models.label_artifacts import (
    HealthScore,
    IngredientBreakdown,
    Macro,
    NutritionSummary,
    Overview,
    ProductEnrichment,
    ProductExtraction,
    ProductSummary,
    QuickVerdict,
)
from models.stage_result import StageResult
from services.analysis.coercion import ParseFallback, coerce_output
from services.analysis.prompts import SUMMARY_SYSTEM_PROMPT, summary_user_prompt
from services.analysis.stage_base import ReasoningStage

LOGGER = logging.getLogger(__name__)


def degraded_summary(extraction: ProductExtraction) -> ProductSummary:
    """Build a manual-review summary from the extraction alone."""
    facts = extraction.nutrition_facts
    return ProductSummary(
        quick_verdict=QuickVerdict(
            recommendation="moderate",
            title="Review Required",
            summary=(
                "Unable to generate a detailed verdict. "
                "Please review the nutritional information carefully."
            ),
            key_points=["Check ingredients list", "Verify allergen information", "Compare with similar products"],
            best_for=["General consumption"],
            avoid_if=["You have specific dietary restrictions"],
        ),
        overview=Overview(
            product_name=extraction.product_name or "Unknown Product",
            brand=extraction.brand_name or "Unknown Brand",
            tagline="Nutritional information available",
            highlights=["See details below"],
        ),
        nutrition=NutritionSummary(
            calories=facts.calories or 0,
            serving_size=facts.serving_size or "N/A",
            macros={
                "fat": Macro(amount=facts.total_fat or "N/A"),
                "carbs": Macro(amount=facts.total_carbohydrate or "N/A"),
                "protein": Macro(amount=facts.protein or "N/A"),
            },
        ),
        ingredients=IngredientBreakdown(main=list(extraction.ingredients[:5])),
        allergens=list(extraction.allergens),
        certifications=list(extraction.certifications),
        health_score=HealthScore(
            overall=70,
            category="Moderate",
            pros=["Contains essential nutrients"],
            cons=["May contain additives"],
        ),
        recommendations="Consume in moderation as part of a balanced diet.",
    )


class SummarizeStage(ReasoningStage):
    """Turn the extraction and enrichment into a :class:`ProductSummary`."""

    name = "summarize"
    max_output_tokens = 2500

    async def run(
        self, extraction: ProductExtraction, enrichment: ProductEnrichment
    ) -> StageResult[ProductSummary]:
        prompt = summary_user_prompt(extraction.to_prompt_json(), enrichment.to_prompt_json())
        reply = await self._invoke(SUMMARY_SYSTEM_PROMPT, prompt)
        if not reply.ok:
            return reply
        result = coerce_output(reply.value, ProductSummary, fallback=ParseFallback.FAIL)
        if not result.ok:
            LOGGER.error("Could not parse summary reply: %s", result.reason)
        return result
