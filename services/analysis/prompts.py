"""Prompt builders for the label analysis stages."""

from __future__ import annotations

import json
from typing import Iterable, List

EXTRACTION_SYSTEM_PROMPT = (
    "You are a food label analysis tool. You read packaging photos carefully and "
    "only report what is printed on the label."
)

EXTRACTION_USER_PROMPT = """Extract the following information from the provided food label image:

1. Product name (brand + product name)
2. Ingredients list (as listed on the package)
3. Nutrition facts (serving size, calories, macronutrients, etc.)
4. Allergen information
5. Any certifications (organic, non-GMO, etc.)
6. Expiration/best before date if visible

IMPORTANT: You MUST return a valid JSON object. If the image is not a food label or the text is not readable, return:
{
  "error": "Unable to process the image. Please ensure the image is clear and contains a food label.",
  "isError": true
}

Otherwise, return a JSON object with this exact structure:
{
  "productName": "",
  "brandName": "",
  "ingredients": [],
  "nutritionFacts": {
    "servingSize": "",
    "servingsPerContainer": "",
    "calories": 0,
    "totalFat": "",
    "saturatedFat": "",
    "transFat": "",
    "cholesterol": "",
    "sodium": "",
    "totalCarbohydrate": "",
    "dietaryFiber": "",
    "totalSugars": "",
    "addedSugars": "",
    "protein": "",
    "vitaminD": "",
    "calcium": "",
    "iron": "",
    "potassium": ""
  },
  "allergens": [],
  "certifications": [],
  "expiryDate": "",
  "isError": false
}
"""

ENRICHMENT_SYSTEM_PROMPT = (
    "You are a nutrition research assistant. Provide detailed information about food products "
    "and their ingredients based on your knowledge. Include health benefits, concerns, and "
    "nutritional context."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a nutrition expert creating comprehensive, well-formatted food product reports "
    "with clear, actionable recommendations."
)

SUMMARY_USER_TEMPLATE = """Create a well-structured report about this product.

Product Analysis:
{analysis}

Additional Research:
{research}

Start with a "Quick Verdict" that gives the user immediate actionable advice.

Return a JSON object with this structure:
{{
  "quickVerdict": {{
    "recommendation": "buy" | "moderate" | "avoid",
    "title": "",
    "summary": "",
    "keyPoints": [],
    "bestFor": [],
    "avoidIf": []
  }},
  "overview": {{"productName": "", "brand": "", "tagline": "", "highlights": []}},
  "nutrition": {{
    "calories": 0,
    "servingSize": "",
    "macros": {{
      "fat": {{"amount": "", "percentage": 0}},
      "carbs": {{"amount": "", "percentage": 0}},
      "protein": {{"amount": "", "percentage": 0}}
    }},
    "micronutrients": []
  }},
  "ingredients": {{"main": [], "beneficial": [], "concerning": [], "additives": []}},
  "allergens": [],
  "certifications": [],
  "healthScore": {{"overall": 0, "category": "", "pros": [], "cons": []}},
  "recommendations": ""
}}

For the quickVerdict:
- recommendation: "buy" (healthy choice), "moderate" (okay in moderation), or "avoid" (not recommended)
- title: a direct statement like "Great Choice!", "Proceed with Caution", or "Better Alternatives Exist"
- summary: 2-3 sentences explaining why
- keyPoints: 3-4 of the most important facts
- bestFor: who should buy this (e.g. "Athletes", "Kids")
- avoidIf: who should avoid this (e.g. "Diabetics", "Gluten sensitivity")
"""

FOLLOW_UP_SYSTEM_PROMPT = (
    "You are a helpful nutrition assistant answering questions about food products. Provide "
    "accurate, helpful information based on the product analysis and research data. Format your "
    "responses with proper structure using bullet points and sections where helpful."
)

FOLLOW_UP_USER_TEMPLATE = """Answer the user's question based on the product analysis and research.

Product Analysis:
{analysis}

Research:
{research}

Conversation History:
{history}

User Question: {question}

Provide a clear, informative answer.

Return a JSON object:
{{
  "answer": "",
  "suggestedQuestions": []
}}
"""


def enrichment_user_prompt(product_name: str, ingredients: Iterable[str]) -> str:
    """Return the research prompt for the named product and its leading ingredients."""
    ingredient_text = ", ".join(ingredients) or "not listed"
    return (
        f'Provide detailed information about "{product_name}" with these ingredients: {ingredient_text}.\n\n'
        "Include:\n"
        "1. Health analysis of key ingredients\n"
        "2. Overall nutritional value\n"
        "3. Who should or shouldn't consume this\n"
        "4. Comparison to similar products\n\n"
        "Return as JSON with this structure:\n"
        '{\n  "ingredientInfo": [{"ingredient": "", "healthImpact": "", "benefits": [], "concerns": []}],\n'
        '  "nutritionalContext": "",\n  "recommendations": "",\n  "comparisons": []\n}'
    )


def summary_user_prompt(analysis_json: str, research_json: str) -> str:
    """Return the report prompt grounded in the extraction and research artifacts."""
    return SUMMARY_USER_TEMPLATE.format(analysis=analysis_json, research=research_json)


def follow_up_user_prompt(analysis_json: str, research_json: str, history: List[dict], question: str) -> str:
    """Return the follow-up prompt with the full bounded history."""
    history_json = json.dumps(history, indent=2) if history else "No previous messages."
    return FOLLOW_UP_USER_TEMPLATE.format(
        analysis=analysis_json,
        research=research_json,
        history=history_json,
        question=question,
    )
