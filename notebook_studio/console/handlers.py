"""
Console command handlers
Parses one input line and delegates to the notebook services
"""
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple
from loguru import logger

from notebook_studio.app import NotebookApp
from notebook_studio.models import ContentType, ConversationMessage, Notebook
from notebook_studio.services.catalogue import Intent
from notebook_studio.services.errors import FetchError, ValidationError
from notebook_studio.services.exporter import export_artifact


HELP_TEXT = """Commands:
  /new <title>                 create a notebook and switch to it
  /list                        list notebooks
  /use <notebook-id>           switch the active notebook
  /delete <notebook-id>        delete a notebook and its conversation
  /text <title> | <content>    add a text source
  /url <url> [title]           fetch a web page or PDF as a source
  /sources                     list sources of the active notebook
  /gen <kind>                  generate: summary quiz flashcards faq timeline podcast ideas critique mindmap debate
  /history                     show the conversation
  /save <message-id> [title]   save a generated artifact
  /saved                       list saved items
  /unsave <item-id>            delete a saved item
  /export <message-id>         write an artifact to a file
  /theme                       toggle dark mode
  /quit                        exit
Anything else is asked as a question about the sources."""


class ConsoleCommandHandler:
    """Handler for console input lines"""

    def __init__(self, app: NotebookApp, export_dir: Optional[Path] = None):
        """
        Initialize command handler

        Args:
            app: Application state
            export_dir: Where /export writes files (defaults to <data dir>/exports)
        """
        self.app = app
        self.export_dir = Path(export_dir) if export_dir else app.settings.data_dir / "exports"
        self.commands: Dict[str, Callable[[str], str]] = {
            "/help": lambda _: HELP_TEXT,
            "/new": self._new_notebook,
            "/list": self._list_notebooks,
            "/use": self._use_notebook,
            "/delete": self._delete_notebook,
            "/text": self._add_text_source,
            "/url": self._add_url_source,
            "/sources": self._list_sources,
            "/gen": self._generate,
            "/history": self._history,
            "/save": self._save_item,
            "/saved": self._list_saved,
            "/unsave": self._delete_saved,
            "/export": self._export,
            "/theme": self._toggle_theme,
        }

    def handle_line(self, line: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Handle one input line

        Args:
            line: Raw user input

        Returns:
            Tuple of (reply_content, error_message)
            - If successful: (reply_content, None)
            - If error: (None, error_message)
        """
        line = line.strip()
        if not line:
            return None, None

        command, _, argument = line.partition(" ")
        argument = argument.strip()
        try:
            if not command.startswith("/"):
                return self._ask(line), None
            handler = self.commands.get(command.lower())
            if handler is None:
                return None, f"Unknown command {command}, type /help"
            return handler(argument), None
        except FetchError as e:
            logger.warning(f"URL ingestion failed ({e.reason}): {e}")
            return None, f"Could not add source: {e}"
        except ValidationError as e:
            return None, str(e)

    def _active(self) -> Notebook:
        notebook = self.app.notebooks.get_active_notebook()
        if notebook is None:
            raise ValidationError("No notebook yet, create one with /new <title>")
        return notebook

    def _new_notebook(self, argument: str) -> str:
        notebook = self.app.notebooks.create_notebook(argument)
        return f"Created notebook '{notebook.title}' ({notebook.id})"

    def _list_notebooks(self, _: str) -> str:
        active = self.app.notebooks.get_active_notebook()
        notebooks = self.app.notebooks.list_notebooks()
        if not notebooks:
            return "No notebooks yet"
        lines = []
        for notebook in notebooks:
            marker = "*" if active and notebook.id == active.id else " "
            lines.append(f"{marker} {notebook.id}  {notebook.title}  ({len(notebook.sources)} sources)")
        return "\n".join(lines)

    def _use_notebook(self, argument: str) -> str:
        notebook = self.app.notebooks.set_active_notebook(argument)
        return f"Now using '{notebook.title}'"

    def _delete_notebook(self, argument: str) -> str:
        if not self.app.notebooks.delete_notebook(argument):
            return f"No notebook {argument}"
        return f"Deleted notebook {argument}"

    def _add_text_source(self, argument: str) -> str:
        title, separator, content = argument.partition("|")
        if not separator:
            raise ValidationError("Usage: /text <title> | <content>")
        source = self.app.sources.add_source(self._active().id, title.strip(), content.strip())
        return f"Added source '{source.title}'"

    def _add_url_source(self, argument: str) -> str:
        url, _, title = argument.partition(" ")
        source = self.app.sources.add_url_source(self._active().id, url, title.strip() or None)
        return f"Added source '{source.title}' ({len(source.content)} characters)"

    def _list_sources(self, _: str) -> str:
        sources = self._active().sources
        if not sources:
            return "No sources yet"
        return "\n".join(
            f"{index}. {source.title} [{source.type.value}] {source.content[:50]!r}"
            for index, source in enumerate(sources, start=1)
        )

    def _ask(self, question: str) -> str:
        settlement = self.app.orchestrator.run(Intent.CHAT, text=question)
        return self.format_message(settlement.message)

    def _generate(self, argument: str) -> str:
        kind = argument.lower()
        if not kind or kind == Intent.CHAT.value:
            raise ValidationError("Usage: /gen <kind>, see /help")
        settlement = self.app.orchestrator.run(kind)
        return self.format_message(settlement.message)

    def _history(self, _: str) -> str:
        messages = self.app.notebooks.get_messages(self._active().id)
        if not messages:
            return "No messages yet"
        return "\n\n".join(self.format_message(message) for message in messages)

    def _save_item(self, argument: str) -> str:
        message_id, _, title = argument.partition(" ")
        item = self.app.library.save_message(self._active().id, message_id, title.strip() or None)
        return f"Saved '{item.title}' ({item.id})"

    def _list_saved(self, _: str) -> str:
        items = self.app.library.list_items(self._active().id)
        if not items:
            return "No saved items"
        return "\n".join(f"{item.id}  {item.title}  [{item.type.value}]" for item in items)

    def _delete_saved(self, argument: str) -> str:
        self.app.library.delete(self._active().id, argument)
        return f"Removed {argument}"

    def _export(self, argument: str) -> str:
        notebook = self._active()
        message = next((m for m in self.app.notebooks.get_messages(notebook.id) if m.id == argument), None)
        if message is None:
            raise ValidationError(f"Message not found: {argument}")
        exported = export_artifact(message.content_type, message.content_data)
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path = self.export_dir / exported.filename
        path.write_text(exported.content, encoding="utf-8")
        return f"Wrote {path}"

    def _toggle_theme(self, _: str) -> str:
        return "Dark mode on" if self.app.notebooks.toggle_dark_mode() else "Dark mode off"

    def format_message(self, message: ConversationMessage) -> str:
        """Render a conversation message as console text"""
        header = f"[{message.role.value} {message.id}]"
        if message.content_data is None or message.content_type == ContentType.TEXT:
            return f"{header} {message.text}"
        body = export_artifact(message.content_type, message.content_data).content
        return f"{header} {message.text}\n{body}"
