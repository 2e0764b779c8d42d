import httpx
import openai
import pytest

from notebook_studio.models import MIND_MAP_MAX_DEPTH, ContentType, MindMapNode, Role
from notebook_studio.services.catalogue import Intent
from notebook_studio.services.errors import BusyError, ErrorKind, ValidationError
from notebook_studio.services.orchestrator import ERROR_MESSAGE_TEXT, RequestState


QUIZ = {
    "questions": [
        {
            "question": "What is the capital of France?",
            "options": ["Paris", "Rome", "Madrid", "Berlin"],
            "correctAnswer": "Paris",
        }
    ]
}


def deep_mind_map(levels: int) -> dict:
    node = {"topic": f"level {levels}"}
    for level in range(levels - 1, -1, -1):
        node = {"topic": f"level {level}", "children": [node, {"topic": f"leaf {level}"}]}
    return node


def test_request_without_sources_is_rejected(app, backend):
    notebook = app.notebooks.create_notebook("Empty")

    with pytest.raises(ValidationError):
        app.orchestrator.run(Intent.CHAT, text="Hello?")

    assert app.notebooks.get_messages(notebook.id) == []
    assert backend.completions.calls == []
    assert not app.orchestrator.is_busy


def test_request_without_notebook_is_rejected(app, backend):
    with pytest.raises(ValidationError):
        app.orchestrator.run(Intent.SUMMARY)
    assert backend.completions.calls == []


def test_chat_needs_a_question(app, notebook_with_source):
    with pytest.raises(ValidationError):
        app.orchestrator.run(Intent.CHAT, text="   ")
    assert app.notebooks.get_messages(notebook_with_source.id) == []


def test_unknown_intent_is_rejected(app, notebook_with_source):
    with pytest.raises(ValidationError):
        app.orchestrator.run("essay")
    assert app.notebooks.get_messages(notebook_with_source.id) == []


def test_chat_answer_is_plain_text(app, backend, notebook_with_source):
    backend.completions.queue("Paris is the capital of France.")

    settlement = app.orchestrator.run("chat", text="What is the capital?")

    assert settlement.succeeded
    messages = app.notebooks.get_messages(notebook_with_source.id)
    assert [m.role for m in messages] == [Role.USER, Role.MODEL]
    assert messages[0].text == "What is the capital?"
    assert messages[1].text == "Paris is the capital of France."
    assert messages[1].content_type == ContentType.TEXT
    assert messages[1].content_data is None
    assert 'answer the following question: "What is the capital?"' in backend.completions.prompt()
    assert "--- SOURCE 1: Doc (TEXT) ---" in backend.completions.prompt()


def test_quiz_request(app, backend, notebook_with_source):
    backend.completions.queue(QUIZ)

    settlement = app.orchestrator.run(Intent.QUIZ)

    messages = app.notebooks.get_messages(notebook_with_source.id)
    assert len(messages) == 2
    assert messages[0].role == Role.USER
    quiz = messages[1]
    assert quiz.id == settlement.message.id
    assert quiz.content_type == ContentType.QUIZ
    assert quiz.text == "Here is your quiz:"
    for question in quiz.content_data:
        assert question["correctAnswer"] in question["options"]
    assert app.orchestrator.state == RequestState.IDLE


def test_invalid_quiz_becomes_one_error_message(app, backend, notebook_with_source):
    backend.completions.queue(
        {"questions": [{"question": "Q", "options": ["A", "B", "C", "D"], "correctAnswer": "E"}]}
    )

    settlement = app.orchestrator.run(Intent.QUIZ)

    assert settlement.error_kind == ErrorKind.INVALID_FORMAT
    messages = app.notebooks.get_messages(notebook_with_source.id)
    assert len(messages) == 2
    assert messages[1].content_type == ContentType.ERROR
    assert messages[1].text == ERROR_MESSAGE_TEXT
    assert messages[1].content_data is None
    assert len(backend.completions.calls) == 1
    assert not app.orchestrator.is_busy


def test_backend_failure_becomes_error_message(app, backend, notebook_with_source):
    backend.completions.queue(
        openai.APIConnectionError(request=httpx.Request("POST", "https://llm.test/v1/chat/completions"))
    )

    settlement = app.orchestrator.run(Intent.SUMMARY)

    assert settlement.error_kind == ErrorKind.GENERATION
    assert settlement.message.content_type == ContentType.ERROR
    # The user message survives the failure
    messages = app.notebooks.get_messages(notebook_with_source.id)
    assert messages[0].text == "Generate summary for this notebook."


def test_unexpected_failure_is_contained(app, backend, notebook_with_source):
    backend.completions.queue(RuntimeError("boom"))

    settlement = app.orchestrator.run(Intent.IDEAS)

    assert settlement.error_kind == ErrorKind.UNEXPECTED
    assert settlement.message.content_type == ContentType.ERROR


def test_flashcards_get_unique_ids(app, backend, notebook_with_source):
    backend.completions.queue(
        {"flashcards": [{"term": f"Term {i}", "definition": f"Definition {i}"} for i in range(5)]}
    )

    settlement = app.orchestrator.run(Intent.FLASHCARDS)

    cards = settlement.message.content_data
    assert len(cards) == 5
    assert len({card["id"] for card in cards}) == 5


def test_mind_map_is_capped(app, backend, notebook_with_source):
    backend.completions.queue(deep_mind_map(MIND_MAP_MAX_DEPTH + 1))

    settlement = app.orchestrator.run(Intent.MIND_MAP)

    assert settlement.succeeded
    tree = MindMapNode.model_validate(settlement.message.content_data)
    assert tree.topic == "level 0"
    assert tree.depth() == MIND_MAP_MAX_DEPTH


@pytest.mark.parametrize(
    "intent,content_type,expected",
    [
        (Intent.SUMMARY, ContentType.SUMMARY, "Short summary."),
        (Intent.PODCAST, ContentType.PODCAST, {"script": "Short summary."}),
        (Intent.CRITIQUE, ContentType.CRITIQUE, "Short summary."),
    ],
)
def test_text_artifacts(app, backend, notebook_with_source, intent, content_type, expected):
    backend.completions.queue("Short summary.")

    settlement = app.orchestrator.run(intent)

    assert settlement.message.content_type == content_type
    assert settlement.message.content_data == expected


def test_second_request_while_busy_is_rejected(app, backend, notebook_with_source, gate):
    def slow_reply():
        gate.wait(timeout=5)
        return "Done."

    backend.completions.queue(slow_reply)
    request_id = app.orchestrator.submit(Intent.SUMMARY)
    assert app.orchestrator.is_busy

    with pytest.raises(BusyError):
        app.orchestrator.submit(Intent.CHAT, text="Another question")
    # The rejected request left no trace
    assert len(app.notebooks.get_messages(notebook_with_source.id)) == 1

    gate.set()
    settlement = app.orchestrator.settle(request_id)

    assert settlement.succeeded
    assert not app.orchestrator.is_busy
    assert len(app.notebooks.get_messages(notebook_with_source.id)) == 2


def test_result_for_deleted_notebook_is_dropped(app, backend, notebook_with_source, gate):
    def slow_reply():
        gate.wait(timeout=5)
        return "Done."

    backend.completions.queue(slow_reply)
    request_id = app.orchestrator.submit(Intent.SUMMARY)
    app.notebooks.delete_notebook(notebook_with_source.id)
    gate.set()

    app.orchestrator.settle(request_id)

    assert app.notebooks.find_notebook(notebook_with_source.id) is None
    assert not app.orchestrator.is_busy


def test_settle_unknown_request(app):
    with pytest.raises(ValidationError):
        app.orchestrator.settle("req_missing")


def test_request_settles_only_once(app, backend, notebook_with_source):
    backend.completions.queue("Answer.")
    request_id = app.orchestrator.submit(Intent.CHAT, text="Question?")
    app.orchestrator.settle(request_id)

    with pytest.raises(ValidationError):
        app.orchestrator.settle(request_id)


def test_saved_quiz_is_independent_of_the_log(app, backend, notebook_with_source):
    backend.completions.queue(QUIZ)
    settlement = app.orchestrator.run(Intent.QUIZ)

    item = app.library.save_message(notebook_with_source.id, settlement.message.id)

    assert item.type == ContentType.QUIZ
    assert item.content_data == settlement.message.content_data
    assert item.id != settlement.message.id
    assert app.library.list_items(notebook_with_source.id) == [item]

    # Later log traffic does not touch the saved copy
    backend.completions.queue(QUIZ)
    app.orchestrator.run(Intent.QUIZ)
    assert app.library.get_item(notebook_with_source.id, item.id) == item
