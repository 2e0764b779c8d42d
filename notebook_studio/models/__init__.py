"""
Data models module
"""
from .notebook import (
    ContentType,
    ConversationMessage,
    Notebook,
    Role,
    SavedItem,
    Source,
    SourceType,
    generate_id,
    utc_now,
)
from .artifacts import (
    MIND_MAP_MAX_DEPTH,
    ArtifactResponse,
    DebateResponse,
    FAQItem,
    FAQResponse,
    Flashcard,
    FlashcardDraft,
    FlashcardResponse,
    MindMapNode,
    MindMapResponse,
    QuizQuestion,
    QuizResponse,
    TimelineEvent,
    TimelineResponse,
    Viewpoint,
    build_mind_map_model,
)

__all__ = [
    "ContentType",
    "ConversationMessage",
    "Notebook",
    "Role",
    "SavedItem",
    "Source",
    "SourceType",
    "generate_id",
    "utc_now",
    "MIND_MAP_MAX_DEPTH",
    "ArtifactResponse",
    "DebateResponse",
    "FAQItem",
    "FAQResponse",
    "Flashcard",
    "FlashcardDraft",
    "FlashcardResponse",
    "MindMapNode",
    "MindMapResponse",
    "QuizQuestion",
    "QuizResponse",
    "TimelineEvent",
    "TimelineResponse",
    "Viewpoint",
    "build_mind_map_model",
]
