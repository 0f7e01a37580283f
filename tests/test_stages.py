from conftest import ENRICHMENT, NOT_A_LABEL, OAT_CRISP, SUMMARY, as_json

from models.label_artifacts import ProductExtraction
from models.session_models import SessionMessage
from models.stage_result import FailureKind
from services.analysis.enrich_stage import EnrichStage, degraded_enrichment
from services.analysis.extract_stage import NOT_A_LABEL_MESSAGE, ExtractStage
from services.analysis.respond_stage import GENERIC_SUGGESTED_QUESTIONS, RespondStage
from services.analysis.summarize_stage import SummarizeStage, degraded_summary

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


async def test_extract_rejects_unsupported_media_type_without_calling(fake_client):
    result = await ExtractStage(fake_client).run(PNG_BYTES, "application/pdf")

    assert result.kind is FailureKind.INVALID_INPUT
    assert fake_client.calls == []


async def test_extract_rejects_empty_payload(fake_client):
    result = await ExtractStage(fake_client).run(b"", "image/png")

    assert result.kind is FailureKind.INVALID_INPUT
    assert fake_client.calls == []


async def test_extract_sends_image_with_normalized_media_type(fake_client):
    fake_client.queue(as_json(OAT_CRISP, fenced=True))

    result = await ExtractStage(fake_client).run(PNG_BYTES, "Image/PNG; charset=binary")

    assert result.ok
    assert result.value.product_name == "Oat Crisp"
    assert fake_client.calls[0]["image_bytes"] == PNG_BYTES
    assert fake_client.calls[0]["mime_type"] == "image/png"


async def test_extract_reports_a_declared_error_with_a_stable_message(fake_client):
    fake_client.queue(as_json(NOT_A_LABEL))

    result = await ExtractStage(fake_client).run(PNG_BYTES, "image/png")

    assert result.kind is FailureKind.DECLARED_ERROR
    assert result.reason == NOT_A_LABEL_MESSAGE
    assert result.raw_detail == NOT_A_LABEL["error"]


async def test_extract_treats_a_string_error_flag_as_declared(fake_client):
    fake_client.queue('{"isError": "true", "productName": ""}')

    result = await ExtractStage(fake_client).run(PNG_BYTES, "image/png")

    assert result.kind is FailureKind.DECLARED_ERROR
    assert result.reason == NOT_A_LABEL_MESSAGE


async def test_extract_folds_call_errors_into_a_failure(fake_client):
    fake_client.queue(RuntimeError("connection reset"))

    result = await ExtractStage(fake_client).run(PNG_BYTES, "image/jpeg")

    assert result.kind is FailureKind.INVOCATION
    assert result.raw_detail == "connection reset"


async def test_extract_unparseable_reply_is_a_parse_failure(fake_client):
    fake_client.queue("Sorry, I can't help with that.")

    result = await ExtractStage(fake_client).run(PNG_BYTES, "image/jpeg")

    assert result.kind is FailureKind.PARSE


async def test_enrich_names_only_the_leading_ingredients(fake_client):
    payload = dict(OAT_CRISP, ingredients=[f"item{index:02d}" for index in range(1, 16)])
    extraction = ProductExtraction.model_validate(payload)
    fake_client.queue(as_json(ENRICHMENT))

    result = await EnrichStage(fake_client, ingredient_limit=10).run(extraction)

    prompt = fake_client.calls[0]["user_prompt"]
    assert result.ok
    assert "Oat Crisp" in prompt
    assert "item10" in prompt
    assert "item11" not in prompt
    assert fake_client.calls[0]["image_bytes"] is None


async def test_enrich_failure_is_returned_not_raised(fake_client, extraction):
    fake_client.queue(TimeoutError("upstream timeout"))

    result = await EnrichStage(fake_client).run(extraction)

    assert not result.ok
    assert result.kind is FailureKind.INVOCATION


async def test_summarize_parses_the_report(fake_client, extraction):
    fake_client.queue(as_json(SUMMARY, fenced=True))

    result = await SummarizeStage(fake_client).run(extraction, degraded_enrichment())

    assert result.ok
    assert result.value.quick_verdict.recommendation == "buy"
    assert result.value.health_score.overall == 78
    assert "Additional information unavailable" in fake_client.calls[0]["user_prompt"]


def test_degraded_summary_uses_extraction_fields(extraction):
    summary = degraded_summary(extraction)

    assert summary.quick_verdict.recommendation == "moderate"
    assert summary.quick_verdict.title == "Review Required"
    assert summary.overview.product_name == "Oat Crisp"
    assert summary.overview.brand == "Morning Mill"
    assert summary.nutrition.macros["protein"].amount == "4g"
    assert summary.ingredients.main == OAT_CRISP["ingredients"][:5]
    assert summary.allergens == ["May contain wheat"]


def test_degraded_summary_fills_missing_names():
    summary = degraded_summary(ProductExtraction())

    assert summary.overview.product_name == "Unknown Product"
    assert summary.nutrition.serving_size == "N/A"


async def test_respond_parses_structured_answer(fake_client, extraction):
    fake_client.queue(as_json({"answer": "Yes, it is vegan.", "suggestedQuestions": ["Is it gluten free?"]}))
    history = [SessionMessage(role="user", content="is this vegan?", created_at=1.0)]

    result = await RespondStage(fake_client).run(extraction, degraded_enrichment(), history, "is this vegan?")

    assert result.ok
    assert result.value.answer == "Yes, it is vegan."
    assert result.value.suggested_questions == ["Is it gluten free?"]
    assert '"content": "is this vegan?"' in fake_client.calls[0]["user_prompt"]


async def test_respond_uses_raw_text_when_reply_is_not_json(fake_client, extraction):
    fake_client.queue("Yes. Oats, sugar and oil are all plant based.")

    result = await RespondStage(fake_client).run(extraction, degraded_enrichment(), [], "is this vegan?")

    assert result.ok
    assert result.value.answer == "Yes. Oats, sugar and oil are all plant based."
    assert result.value.suggested_questions == list(GENERIC_SUGGESTED_QUESTIONS)


async def test_respond_keeps_the_answer_when_other_fields_are_malformed(fake_client, extraction):
    fake_client.queue(as_json({"answer": "Yes, it is vegan.", "suggestedQuestions": "Any nuts?"}))

    result = await RespondStage(fake_client).run(extraction, degraded_enrichment(), [], "is this vegan?")

    assert result.ok
    assert result.value.answer == "Yes, it is vegan."
    assert result.value.suggested_questions == list(GENERIC_SUGGESTED_QUESTIONS)


async def test_respond_call_failure_is_a_hard_failure(fake_client, extraction):
    fake_client.queue(RuntimeError("rate limited"))

    result = await RespondStage(fake_client).run(extraction, degraded_enrichment(), [], "is this vegan?")

    assert not result.ok
    assert result.kind is FailureKind.INVOCATION
