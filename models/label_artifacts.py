"""Structured artifacts produced by the label analysis stages.

The models accept the camelCase keys the reasoning model is asked to emit and
expose snake_case attributes in Python. ``null`` values are treated as missing so
field defaults apply.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Amount = Union[str, int, float]


class ArtifactModel(BaseModel):
    """Base model shared by every artifact shape."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    def to_prompt_json(self) -> str:
        """Serialize with the camelCase keys used in prompts."""
        return self.model_dump_json(by_alias=True, indent=2)


# Stage 1: extraction


class NutritionFacts(ArtifactModel):
    serving_size: Amount = ""
    servings_per_container: Amount = ""
    calories: Amount = 0
    total_fat: Amount = ""
    saturated_fat: Amount = ""
    trans_fat: Amount = ""
    cholesterol: Amount = ""
    sodium: Amount = ""
    total_carbohydrate: Amount = ""
    dietary_fiber: Amount = ""
    total_sugars: Amount = ""
    added_sugars: Amount = ""
    protein: Amount = ""
    vitamin_d: Amount = ""
    calcium: Amount = ""
    iron: Amount = ""
    potassium: Amount = ""


class ProductExtraction(ArtifactModel):
    """What could be read off the label itself."""

    product_name: str = ""
    brand_name: str = ""
    ingredients: List[str] = Field(default_factory=list)
    nutrition_facts: NutritionFacts = Field(default_factory=NutritionFacts)
    allergens: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    expiry_date: str = ""


# Stage 2: enrichment


class IngredientNote(ArtifactModel):
    ingredient: str = ""
    health_impact: str = ""
    benefits: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)


class ProductEnrichment(ArtifactModel):
    """Background knowledge about the product and its ingredients."""

    ingredient_info: List[IngredientNote] = Field(default_factory=list)
    nutritional_context: str = ""
    recommendations: str = ""
    comparisons: List[Any] = Field(default_factory=list)


# Stage 3: summary


class QuickVerdict(ArtifactModel):
    recommendation: Literal["buy", "moderate", "avoid"] = "moderate"
    title: str = ""
    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    best_for: List[str] = Field(default_factory=list)
    avoid_if: List[str] = Field(default_factory=list)

    @field_validator("recommendation", mode="before")
    @classmethod
    def _normalize_recommendation(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class Overview(ArtifactModel):
    product_name: str = ""
    brand: str = ""
    tagline: str = ""
    highlights: List[str] = Field(default_factory=list)


class Macro(ArtifactModel):
    amount: Amount = ""
    percentage: Union[int, float] = 0


class NutritionSummary(ArtifactModel):
    calories: Amount = 0
    serving_size: Amount = ""
    macros: Dict[str, Macro] = Field(default_factory=dict)
    micronutrients: List[Any] = Field(default_factory=list)


class IngredientBreakdown(ArtifactModel):
    main: List[str] = Field(default_factory=list)
    beneficial: List[str] = Field(default_factory=list)
    concerning: List[str] = Field(default_factory=list)
    additives: List[str] = Field(default_factory=list)


class HealthScore(ArtifactModel):
    overall: Union[int, float] = 0
    category: str = ""
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class ProductSummary(ArtifactModel):
    """User-facing verdict; ``quick_verdict.recommendation`` is buy, moderate or avoid."""

    quick_verdict: QuickVerdict = Field(default_factory=QuickVerdict)
    overview: Overview = Field(default_factory=Overview)
    nutrition: NutritionSummary = Field(default_factory=NutritionSummary)
    ingredients: IngredientBreakdown = Field(default_factory=IngredientBreakdown)
    allergens: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    health_score: HealthScore = Field(default_factory=HealthScore)
    recommendations: str = ""


# Stage 4: follow-up answer


class FollowUpAnswer(ArtifactModel):
    answer: str = Field(min_length=1)
    suggested_questions: List[str] = Field(default_factory=list)
