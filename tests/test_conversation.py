import pytest
from conftest import as_json

from services.analysis.conversation import ConversationService
from services.analysis.enrich_stage import degraded_enrichment
from services.analysis.errors import (
    InvalidQuestionError,
    ResponseGenerationError,
    SessionNotFoundError,
)
from services.analysis.respond_stage import RespondStage
from services.analysis.summarize_stage import degraded_summary
from services.session.session_store import InMemorySessionStore


@pytest.fixture
def store(clock):
    return InMemorySessionStore(history_limit=4, clock=clock)


@pytest.fixture
def session_id(store, extraction):
    return store.create(extraction, degraded_enrichment(), degraded_summary(extraction)).session_id


@pytest.fixture
def conversation(store, fake_client):
    return ConversationService(store, RespondStage(fake_client))


def answer(text):
    return as_json({"answer": text, "suggestedQuestions": ["What about sugar?"]})


async def test_blank_question_is_rejected_before_any_call(conversation, store, session_id, fake_client):
    with pytest.raises(InvalidQuestionError):
        await conversation.ask(session_id, "   ")

    assert fake_client.calls == []
    assert store.get(session_id).history == ()


async def test_missing_question_is_rejected(conversation, session_id):
    with pytest.raises(InvalidQuestionError):
        await conversation.ask(session_id, None)


async def test_unknown_session_is_not_a_validation_error(conversation, fake_client):
    with pytest.raises(SessionNotFoundError) as exc_info:
        await conversation.ask("unknown-id", "any question")

    assert not isinstance(exc_info.value, InvalidQuestionError)
    assert "expired" in exc_info.value.message
    assert fake_client.calls == []


async def test_expired_session_is_not_found(conversation, session_id, clock):
    clock.advance(31 * 60)

    with pytest.raises(SessionNotFoundError):
        await conversation.ask(session_id, "is this vegan?")


async def test_ask_records_question_then_answer(conversation, store, session_id, fake_client):
    fake_client.queue(answer("Yes."))

    reply = await conversation.ask(session_id, "  is this vegan?  ")

    assert reply.answer == "Yes."
    assert reply.suggested_questions == ["What about sugar?"]
    assert [(m.role, m.content) for m in reply.history] == [("user", "is this vegan?"), ("assistant", "Yes.")]
    assert store.get(session_id).history == tuple(reply.history)


async def test_prompt_includes_the_current_question_in_history(conversation, session_id, fake_client):
    fake_client.queue(answer("Yes."))

    await conversation.ask(session_id, "is this vegan?")

    prompt = fake_client.calls[0]["user_prompt"]
    assert '"role": "user"' in prompt
    assert "User Question: is this vegan?" in prompt


async def test_failed_answer_keeps_only_the_question(conversation, store, session_id, fake_client):
    fake_client.queue(RuntimeError("upstream error"))

    with pytest.raises(ResponseGenerationError):
        await conversation.ask(session_id, "is this vegan?")

    history = store.get(session_id).history
    assert [(m.role, m.content) for m in history] == [("user", "is this vegan?")]


async def test_history_stays_bounded_across_turns(conversation, store, session_id, fake_client):
    for turn in range(3):
        fake_client.queue(answer(f"answer {turn}"))
        await conversation.ask(session_id, f"question {turn}")

    history = store.get(session_id).history
    assert [m.content for m in history] == ["question 1", "answer 1", "question 2", "answer 2"]
    assert '"content": "question 0"' not in fake_client.calls[2]["user_prompt"]


def test_describe_reports_session_status(conversation, session_id):
    summary = conversation.describe(session_id)

    assert summary.has_artifacts
    assert not summary.has_enrichment
    assert summary.message_count == 0
    assert summary.product_name == "Oat Crisp"


def test_describe_and_delete_unknown_session(conversation):
    assert conversation.describe("missing") is None
    assert conversation.delete("missing") is False


def test_delete_ends_the_session(conversation, session_id):
    assert conversation.delete(session_id) is True
    assert conversation.describe(session_id) is None
