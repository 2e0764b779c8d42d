"""
Intent catalogue
One entry per request kind: instruction template, optional response schema and
the content type of the resulting message
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from notebook_studio.models import (
    ArtifactResponse,
    ContentType,
    DebateResponse,
    FAQResponse,
    FlashcardResponse,
    MindMapResponse,
    QuizResponse,
    TimelineResponse,
)


class Intent(str, Enum):
    CHAT = "chat"
    SUMMARY = "summary"
    QUIZ = "quiz"
    FLASHCARDS = "flashcards"
    FAQ = "faq"
    TIMELINE = "timeline"
    PODCAST = "podcast"
    IDEAS = "ideas"
    CRITIQUE = "critique"
    MIND_MAP = "mindmap"
    DEBATE = "debate"


@dataclass(frozen=True)
class IntentSpec:
    """
    How one intent is generated and stored

    Attributes:
        content_type: Content type of the model message
        instruction: Task template; ``{question}`` is replaced with the user's text
        response_model: Structured schema, or None for free text
        reply_text: Caption of the model message; None puts the generated
            text itself into the message text (chat answers)
        text_field: For free-text artifacts, wrap the text as ``{text_field: text}``
    """
    content_type: ContentType
    instruction: str
    response_model: Optional[Type[ArtifactResponse]] = None
    reply_text: Optional[str] = None
    text_field: Optional[str] = None

    @property
    def is_structured(self) -> bool:
        return self.response_model is not None

    def render_instruction(self, text: str = "") -> str:
        return self.instruction.replace("{question}", text.strip())


CATALOGUE: Dict[Intent, IntentSpec] = {
    Intent.CHAT: IntentSpec(
        content_type=ContentType.TEXT,
        instruction='answer the following question: "{question}"',
    ),
    Intent.SUMMARY: IntentSpec(
        content_type=ContentType.SUMMARY,
        instruction="provide a concise summary",
        reply_text="Here is a summary of the sources:",
    ),
    Intent.QUIZ: IntentSpec(
        content_type=ContentType.QUIZ,
        instruction=(
            "generate a multiple-choice quiz with 4 options per question to test understanding "
            "of the key concepts. The correct answer must be copied exactly from the options"
        ),
        response_model=QuizResponse,
        reply_text="Here is your quiz:",
    ),
    Intent.FLASHCARDS: IntentSpec(
        content_type=ContentType.FLASHCARDS,
        instruction="generate a list of flashcards with terms and definitions covering the main topics",
        response_model=FlashcardResponse,
        reply_text="Here are your flashcards:",
    ),
    Intent.FAQ: IntentSpec(
        content_type=ContentType.FAQ,
        instruction="generate a list of frequently asked questions (FAQs) with answers",
        response_model=FAQResponse,
        reply_text="Here are some frequently asked questions:",
    ),
    Intent.TIMELINE: IntentSpec(
        content_type=ContentType.TIMELINE,
        instruction="generate a timeline of key events. Only include events explicitly mentioned in the text",
        response_model=TimelineResponse,
        reply_text="Here is a timeline of key events:",
    ),
    Intent.PODCAST: IntentSpec(
        content_type=ContentType.PODCAST,
        instruction=(
            "write a short, engaging podcast script that summarizes and discusses the main ideas. "
            "The script should be conversational and easy to follow"
        ),
        reply_text="Podcast Script:",
        text_field="script",
    ),
    Intent.IDEAS: IntentSpec(
        content_type=ContentType.IDEAS,
        instruction="generate a list of brainstorm ideas, new concepts, or interesting questions based on the material",
        reply_text="Here are some ideas based on the sources:",
    ),
    Intent.CRITIQUE: IntentSpec(
        content_type=ContentType.CRITIQUE,
        instruction=(
            "provide a constructive critique of the source material. "
            "Discuss its strengths, weaknesses, and potential biases"
        ),
        reply_text="Here is a critique of the sources:",
    ),
    Intent.MIND_MAP: IntentSpec(
        content_type=ContentType.MIND_MAP,
        instruction=(
            "generate a deeply hierarchical mind map of the key concepts. The mind map should have a "
            "central topic and multiple levels of nested children topics to represent the information hierarchy"
        ),
        response_model=MindMapResponse,
        reply_text="Here is a mind map of the key concepts:",
    ),
    Intent.DEBATE: IntentSpec(
        content_type=ContentType.DEBATE,
        instruction=(
            "generate two opposing viewpoints based on the source material. "
            "For each viewpoint, provide a title and a list of supporting arguments"
        ),
        response_model=DebateResponse,
        reply_text="Here is a debate on the source material:",
    ),
}


def get_intent_spec(intent: Intent) -> IntentSpec:
    return CATALOGUE[intent]
