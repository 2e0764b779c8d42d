"""
Structured artifact models
Using Pydantic for validation and Instructor for structured AI output

Each ``*Response`` model is the schema the generative backend must fill in;
``to_content_data`` turns a validated response into the JSON payload stored on
a conversation message.
"""
from typing import Any, List, Optional, Type
from pydantic import Field, create_model, model_validator

from notebook_studio.models.notebook import CamelModel, generate_id


# Number of nested levels below the mind map root. The backend cannot accept a
# self-referential schema, so the tree is unrolled to this fixed depth and
# nodes at the last level are topic-only. Deeper output is truncated there.
MIND_MAP_MAX_DEPTH = 5


class ArtifactModel(CamelModel):
    """Base for every structured payload"""


class ArtifactResponse(ArtifactModel):
    """Top-level model handed to Instructor as ``response_model``"""

    def to_content_data(self) -> Any:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class FlashcardDraft(ArtifactModel):
    """Flashcard as produced by the backend, before it gets an id"""
    term: str = Field(description="The key term or concept.")
    definition: str = Field(description="A concise definition or explanation of the term.")


class Flashcard(FlashcardDraft):
    id: str = Field(default_factory=lambda: generate_id("flashcard"))


class QuizQuestion(ArtifactModel):
    question: str = Field(description="The quiz question.")
    options: List[str] = Field(min_length=2, description="An array of 4 possible answers.")
    correct_answer: str = Field(description="The correct answer from the options.")

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "QuizQuestion":
        if self.correct_answer in self.options:
            return self
        # Tolerate surrounding whitespace, store the option verbatim
        stripped = self.correct_answer.strip()
        for option in self.options:
            if option.strip() == stripped:
                self.correct_answer = option
                return self
        raise ValueError(f"correctAnswer {self.correct_answer!r} is not one of the options")


class FAQItem(ArtifactModel):
    question: str = Field(description="A frequently asked question from the source material.")
    answer: str = Field(description="A concise answer to the question, based on the source.")


class TimelineEvent(ArtifactModel):
    date: str = Field(description='The date or time period of the event (e.g., "1992", "Late 18th Century").')
    event: str = Field(description="A concise title for the event.")
    description: str = Field(description="A short description of the event, based on the source material.")


class Viewpoint(ArtifactModel):
    title: str = Field(description="The title for this viewpoint (e.g., 'For the Proposal').")
    arguments: List[str] = Field(description="A list of arguments supporting this viewpoint.")


class MindMapNode(CamelModel):
    """Stored mind map tree (recursive, used for reading payloads back)"""
    topic: str
    children: Optional[List["MindMapNode"]] = None

    def depth(self) -> int:
        """Number of nested levels below this node"""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)


class QuizResponse(ArtifactResponse):
    questions: List[QuizQuestion] = Field(description="The multiple-choice questions.")

    def to_content_data(self) -> Any:
        return [q.model_dump(by_alias=True, mode="json") for q in self.questions]


class FlashcardResponse(ArtifactResponse):
    flashcards: List[FlashcardDraft] = Field(description="Flashcards covering the main topics.")

    def to_content_data(self) -> Any:
        # Ids are assigned here; the backend payload never carries them
        return [
            Flashcard(term=card.term, definition=card.definition).model_dump(by_alias=True, mode="json")
            for card in self.flashcards
        ]


class FAQResponse(ArtifactResponse):
    items: List[FAQItem] = Field(description="Questions with their answers.")

    def to_content_data(self) -> Any:
        return [item.model_dump(by_alias=True, mode="json") for item in self.items]


class TimelineResponse(ArtifactResponse):
    events: List[TimelineEvent] = Field(description="Key events in chronological order.")

    def to_content_data(self) -> Any:
        return [event.model_dump(by_alias=True, mode="json") for event in self.events]


class DebateResponse(ArtifactResponse):
    viewpoint_a: Viewpoint = Field(description="The first viewpoint.")
    viewpoint_b: Viewpoint = Field(description="The opposing viewpoint.")


def build_mind_map_model(max_depth: int = MIND_MAP_MAX_DEPTH) -> Type[ArtifactResponse]:
    """
    Build the unrolled mind map schema

    The root node gets ``max_depth`` levels of children below it and the
    deepest level has no ``children`` field at all, so anything nested deeper
    is dropped during validation.

    Args:
        max_depth: Nested levels allowed below the root (at least 1)

    Returns:
        Response model class for the mind map intent
    """
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")

    node: Type[ArtifactModel] = create_model(
        f"MindMapLevel{max_depth}",
        __base__=ArtifactModel,
        topic=(str, Field(description="The topic for this node.")),
    )
    for level in range(max_depth - 1, 0, -1):
        node = create_model(
            f"MindMapLevel{level}",
            __base__=ArtifactModel,
            topic=(str, Field(description="The topic for this node.")),
            children=(Optional[List[node]], Field(default=None, description="Sub-topics.")),
        )
    return create_model(
        "MindMapResponse",
        __base__=ArtifactResponse,
        topic=(str, Field(description="The central idea or concept for the mind map.")),
        children=(
            Optional[List[node]],
            Field(default=None, description="An array of child nodes, representing sub-topics."),
        ),
    )


MindMapResponse = build_mind_map_model()
