"""
Saved items library - artifacts promoted out of the conversation log
"""
import copy
from typing import Any, List, Optional, Union
from loguru import logger

from notebook_studio.models import ContentType, SavedItem
from notebook_studio.services.errors import NotebookNotFoundError, ValidationError
from notebook_studio.services.storage import DurableStore, StoreKey


class SavedItemsLibrary:
    """Per-notebook collection of saved artifacts with their own lifecycle"""

    def __init__(self, store: DurableStore):
        self.store = store

    def save(
        self,
        notebook_id: str,
        type: Union[ContentType, str],
        content_data: Any,
        title: Optional[str] = None,
    ) -> SavedItem:
        """
        Save a copy of an artifact payload into a notebook

        Args:
            notebook_id: Owning notebook
            type: Content type of the payload
            content_data: Payload; deep-copied so later changes to the
                originating message never reach the saved item
            title: Display title (defaults to "Saved <type>")

        Returns:
            The new saved item
        """
        try:
            content_type = ContentType(type)
        except ValueError:
            raise ValidationError(f"Unknown content type: {type}")
        if content_type == ContentType.ERROR:
            raise ValidationError("Error messages cannot be saved")

        title = (title or "").strip() or f"Saved {content_type.value.lower()}"
        item = SavedItem(
            notebook_id=notebook_id,
            title=title,
            type=content_type,
            content_data=copy.deepcopy(content_data),
        )

        def _append(notebooks):
            for notebook in notebooks:
                if notebook.id == notebook_id:
                    notebook.saved_items.append(item)
                    return
            raise NotebookNotFoundError(notebook_id)

        self.store.update(StoreKey.NOTEBOOKS, _append)
        logger.info(f"Saved {content_type.value} item {item.id} '{title}' in {notebook_id}")
        return item

    def save_message(self, notebook_id: str, message_id: str, title: Optional[str] = None) -> SavedItem:
        """Promote the payload of a conversation message into the library"""
        history = self.store.get(StoreKey.CHAT_HISTORY).get(notebook_id, [])
        message = next((m for m in history if m.id == message_id), None)
        if message is None:
            raise ValidationError(f"Message not found: {message_id}")
        if message.content_data is None:
            raise ValidationError(f"Message {message_id} has no artifact to save")
        return self.save(notebook_id, message.content_type, message.content_data, title)

    def delete(self, notebook_id: str, item_id: str) -> bool:
        """
        Remove a saved item; deleting an absent id is a no-op

        Returns:
            True if an item was removed
        """
        removed = []

        def _remove(notebooks):
            for notebook in notebooks:
                if notebook.id == notebook_id:
                    kept = [item for item in notebook.saved_items if item.id != item_id]
                    if len(kept) != len(notebook.saved_items):
                        removed.append(item_id)
                        notebook.saved_items = kept

        self.store.update(StoreKey.NOTEBOOKS, _remove)
        if removed:
            logger.info(f"Deleted saved item {item_id} from {notebook_id}")
        else:
            logger.debug(f"Saved item {item_id} not present in {notebook_id}, nothing to delete")
        return bool(removed)

    def list_items(self, notebook_id: str) -> List[SavedItem]:
        for notebook in self.store.get(StoreKey.NOTEBOOKS):
            if notebook.id == notebook_id:
                return notebook.saved_items
        raise NotebookNotFoundError(notebook_id)

    def get_item(self, notebook_id: str, item_id: str) -> Optional[SavedItem]:
        return next((item for item in self.list_items(notebook_id) if item.id == item_id), None)
