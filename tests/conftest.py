import json
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from fastapi.testclient import TestClient

from models.label_artifacts import ProductExtraction

Reply = Union[str, Exception, Callable[[], str]]


class FakeReasoningClient:
    """Scripted stand-in for ReasoningClient.

    Each call pops the next reply: a string is returned, an exception is raised,
    and a callable is invoked and its result returned.
    """

    def __init__(self, replies: Optional[List[Reply]] = None) -> None:
        self.replies: List[Reply] = list(replies or [])
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
        max_output_tokens: int = 1000,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "image_bytes": image_bytes,
                "mime_type": mime_type,
                "max_output_tokens": max_output_tokens,
            }
        )
        if not self.replies:
            raise RuntimeError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply()
        return reply


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


OAT_CRISP = {
    "productName": "Oat Crisp",
    "brandName": "Morning Mill",
    "ingredients": ["Whole grain oats", "Sugar", "Sunflower oil", "Salt", "Honey"],
    "nutritionFacts": {
        "servingSize": "40g",
        "calories": 150,
        "totalFat": "3g",
        "totalCarbohydrate": "27g",
        "protein": "4g",
    },
    "allergens": ["May contain wheat"],
    "certifications": ["Non-GMO"],
    "expiryDate": "",
    "isError": False,
}

ENRICHMENT = {
    "ingredientInfo": [
        {
            "ingredient": "Whole grain oats",
            "healthImpact": "positive",
            "benefits": ["Fiber"],
            "concerns": [],
        }
    ],
    "nutritionalContext": "A moderately sweetened breakfast cereal.",
    "recommendations": "Pair with protein.",
    "comparisons": ["Lower sugar than most granola"],
}

SUMMARY = {
    "quickVerdict": {
        "recommendation": "buy",
        "title": "Great Choice!",
        "summary": "Whole grain oats lead the list.",
        "keyPoints": ["High fiber"],
        "bestFor": ["Athletes"],
        "avoidIf": ["Gluten sensitivity"],
    },
    "overview": {"productName": "Oat Crisp", "brand": "Morning Mill", "tagline": "", "highlights": []},
    "nutrition": {
        "calories": 150,
        "servingSize": "40g",
        "macros": {"fat": {"amount": "3g", "percentage": 4}},
        "micronutrients": [],
    },
    "ingredients": {"main": ["Whole grain oats"], "beneficial": [], "concerning": ["Sugar"], "additives": []},
    "allergens": ["May contain wheat"],
    "certifications": ["Non-GMO"],
    "healthScore": {"overall": 78, "category": "Good", "pros": [], "cons": []},
    "recommendations": "Enjoy as part of a balanced breakfast.",
}

NOT_A_LABEL = {
    "error": "Unable to process the image. Please ensure the image is clear and contains a food label.",
    "isError": True,
}


def as_json(payload: Dict[str, Any], fenced: bool = False) -> str:
    text = json.dumps(payload)
    return f"```json\n{text}\n```" if fenced else text


@pytest.fixture
def fake_client() -> FakeReasoningClient:
    return FakeReasoningClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def extraction() -> ProductExtraction:
    return ProductExtraction.model_validate(OAT_CRISP)


@pytest.fixture
def app_client(fake_client):
    """TestClient with services wired to the fake client; the lifespan is not run."""
    from main import attach_services, create_app
    from utils.settings import Settings

    app = create_app(Settings())
    attach_services(app, fake_client)
    return TestClient(app)
