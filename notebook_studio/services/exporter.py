"""
Export artifacts as downloadable text files
"""
import csv
import io
from dataclasses import dataclass
from typing import Any, Union

from notebook_studio.models import ContentType, MindMapNode
from notebook_studio.services.errors import ValidationError


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    media_type: str
    content: str


def flashcards_to_csv(flashcards: list) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["term", "definition"])
    for card in flashcards:
        writer.writerow([card["term"], card["definition"]])
    return buffer.getvalue()


def mind_map_to_text(node: Union[MindMapNode, dict], indent: int = 0) -> str:
    if isinstance(node, dict):
        node = MindMapNode.model_validate(node)
    text = "  " * indent + "- " + node.topic + "\n"
    for child in node.children or []:
        text += mind_map_to_text(child, indent + 1)
    return text


def quiz_to_text(questions: list) -> str:
    parts = []
    for index, question in enumerate(questions, start=1):
        options = "\n".join(f"  - {option}" for option in question["options"])
        parts.append(
            f"Question {index}: {question['question']}\n{options}\nCorrect Answer: {question['correctAnswer']}\n"
        )
    return "\n".join(parts)


def debate_to_text(debate: dict) -> str:
    text = ""
    for key in ("viewpointA", "viewpointB"):
        viewpoint = debate[key]
        if text:
            text += "\n"
        text += f"Viewpoint: {viewpoint['title']}\n"
        text += "".join(f"- {argument}\n" for argument in viewpoint["arguments"])
    return text


def faq_to_text(items: list) -> str:
    return "\n".join(f"Q: {item['question']}\nA: {item['answer']}\n" for item in items)


def timeline_to_text(events: list) -> str:
    return "\n".join(f"{event['date']} - {event['event']}\n  {event['description']}\n" for event in events)


def export_artifact(content_type: Union[ContentType, str], content_data: Any, basename: str = "") -> ExportedFile:
    """
    Render an artifact payload as a file

    Args:
        content_type: Type of the payload
        content_data: Payload as stored on a message or saved item
        basename: File name without extension (defaults to the type)

    Returns:
        File name, media type and text content
    """
    content_type = ContentType(content_type)
    if content_data is None:
        raise ValidationError(f"Nothing to export for {content_type.value}")

    name = basename or content_type.value.lower()
    if content_type == ContentType.FLASHCARDS:
        return ExportedFile(f"{name}.csv", "text/csv", flashcards_to_csv(content_data))
    if content_type == ContentType.QUIZ:
        return ExportedFile(f"{name}.txt", "text/plain", quiz_to_text(content_data))
    if content_type == ContentType.MIND_MAP:
        return ExportedFile(f"{name}.txt", "text/plain", mind_map_to_text(content_data))
    if content_type == ContentType.DEBATE:
        return ExportedFile(f"{name}.txt", "text/plain", debate_to_text(content_data))
    if content_type == ContentType.FAQ:
        return ExportedFile(f"{name}.txt", "text/plain", faq_to_text(content_data))
    if content_type == ContentType.TIMELINE:
        return ExportedFile(f"{name}.txt", "text/plain", timeline_to_text(content_data))
    if content_type == ContentType.PODCAST:
        return ExportedFile(f"{name}.txt", "text/plain", content_data["script"])
    if content_type in (ContentType.SUMMARY, ContentType.IDEAS, ContentType.CRITIQUE):
        return ExportedFile(f"{name}.md", "text/markdown", str(content_data))
    raise ValidationError(f"{content_type.value} messages cannot be exported")
