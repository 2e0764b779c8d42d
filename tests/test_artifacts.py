import pytest
from pydantic import ValidationError

from notebook_studio.models import (
    MIND_MAP_MAX_DEPTH,
    DebateResponse,
    FlashcardResponse,
    MindMapNode,
    MindMapResponse,
    QuizQuestion,
    build_mind_map_model,
)


def nested_tree(levels: int) -> dict:
    """Root plus ``levels`` nested levels, one child per level"""
    node = {"topic": f"level {levels}"}
    for level in range(levels - 1, -1, -1):
        node = {"topic": f"level {level}", "children": [node]}
    return node


def test_quiz_answer_must_be_an_option():
    with pytest.raises(ValidationError):
        QuizQuestion.model_validate({"question": "Q", "options": ["A", "B"], "correctAnswer": "C"})


def test_quiz_answer_whitespace_is_normalised():
    question = QuizQuestion.model_validate({"question": "Q", "options": ["Paris", "Rome"], "correctAnswer": " Paris "})
    assert question.correct_answer == "Paris"


def test_flashcards_get_unique_ids():
    response = FlashcardResponse.model_validate(
        {"flashcards": [{"term": f"t{i}", "definition": f"d{i}"} for i in range(8)]}
    )

    cards = response.to_content_data()

    assert len(cards) == 8
    assert len({card["id"] for card in cards}) == 8
    assert all(card["id"].startswith("flashcard_") for card in cards)


def test_debate_dump_uses_camel_case():
    debate = DebateResponse.model_validate(
        {
            "viewpointA": {"title": "For", "arguments": ["a"]},
            "viewpointB": {"title": "Against", "arguments": ["b"]},
        }
    )
    assert set(debate.to_content_data()) == {"viewpointA", "viewpointB"}


def test_mind_map_schema_is_not_recursive():
    schema = MindMapResponse.model_json_schema()
    definitions = schema.get("$defs", {})

    assert len(definitions) == MIND_MAP_MAX_DEPTH
    deepest = definitions[f"MindMapLevel{MIND_MAP_MAX_DEPTH}"]
    assert set(deepest["properties"]) == {"topic"}


def test_mind_map_within_ceiling_is_kept():
    tree = nested_tree(MIND_MAP_MAX_DEPTH)
    content = MindMapResponse.model_validate(tree).to_content_data()
    assert content == tree


def test_mind_map_deeper_than_ceiling_is_truncated():
    content = MindMapResponse.model_validate(nested_tree(MIND_MAP_MAX_DEPTH + 1)).to_content_data()

    assert MindMapNode.model_validate(content).depth() == MIND_MAP_MAX_DEPTH
    # Same tree with the sixth level cut off
    assert content == nested_tree(MIND_MAP_MAX_DEPTH)


def test_custom_depth_model():
    model = build_mind_map_model(2)
    content = model.model_validate(nested_tree(4)).to_content_data()
    assert MindMapNode.model_validate(content).depth() == 2

    with pytest.raises(ValueError):
        build_mind_map_model(0)
