"""
Data models for notebooks, sources, conversation messages and saved items
Persisted JSON uses camelCase aliases, Python code uses snake_case attributes
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def generate_id(prefix: str) -> str:
    """Return a fresh unique identifier such as ``msg_3f2a...``"""
    return f"{prefix}_{uuid.uuid4().hex}"


def utc_now() -> str:
    """Current time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceType(str, Enum):
    TEXT = "text"
    URL = "url"


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class ContentType(str, Enum):
    """Closed set of conversation message payload kinds"""
    TEXT = "TEXT"
    ERROR = "ERROR"
    SUMMARY = "SUMMARY"
    QUIZ = "QUIZ"
    FLASHCARDS = "FLASHCARDS"
    FAQ = "FAQ"
    TIMELINE = "TIMELINE"
    PODCAST = "PODCAST"
    IDEAS = "IDEAS"
    CRITIQUE = "CRITIQUE"
    MIND_MAP = "MIND_MAP"
    DEBATE = "DEBATE"


class Source(CamelModel):
    """Ingested reference material; content is raw text, or the URL for url sources"""
    id: str = Field(default_factory=lambda: generate_id("source"))
    type: SourceType = SourceType.TEXT
    title: str
    content: str


class SavedItem(CamelModel):
    """Artifact promoted out of the conversation log"""
    id: str = Field(default_factory=lambda: generate_id("saved"))
    notebook_id: str
    title: str
    type: ContentType
    content_data: Any = None
    created_at: str = Field(default_factory=utc_now)


class Notebook(CamelModel):
    id: str = Field(default_factory=lambda: generate_id("notebook"))
    title: str
    created_at: str = Field(default_factory=utc_now)
    sources: List[Source] = Field(default_factory=list)
    saved_items: List[SavedItem] = Field(default_factory=list)


class ConversationMessage(CamelModel):
    id: str = Field(default_factory=lambda: generate_id("msg"))
    role: Role
    text: str
    content_type: ContentType = ContentType.TEXT
    content_data: Optional[Any] = None
