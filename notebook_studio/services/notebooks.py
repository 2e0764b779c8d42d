"""
Notebook lifecycle and conversation log management
"""
from typing import List, Optional
from loguru import logger

from notebook_studio.models import ConversationMessage, Notebook
from notebook_studio.services.errors import NotebookNotFoundError, ValidationError
from notebook_studio.services.storage import DurableStore, StoreKey


class NotebookService:
    """Creates, selects and deletes notebooks and owns their conversation logs"""

    def __init__(self, store: DurableStore):
        self.store = store

    def list_notebooks(self) -> List[Notebook]:
        return self.store.get(StoreKey.NOTEBOOKS)

    def find_notebook(self, notebook_id: str) -> Optional[Notebook]:
        for notebook in self.store.get(StoreKey.NOTEBOOKS):
            if notebook.id == notebook_id:
                return notebook
        return None

    def get_notebook(self, notebook_id: str) -> Notebook:
        notebook = self.find_notebook(notebook_id)
        if notebook is None:
            raise NotebookNotFoundError(notebook_id)
        return notebook

    def create_notebook(self, title: str) -> Notebook:
        """
        Create a notebook with an empty conversation log and make it active

        Args:
            title: Display title

        Returns:
            The new notebook
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Notebook title must not be empty")

        notebook = Notebook(title=title)
        with self.store.transaction():
            self.store.update(StoreKey.NOTEBOOKS, lambda notebooks: notebooks + [notebook])
            self.store.update(StoreKey.CHAT_HISTORY, lambda history: {**history, notebook.id: []})
            self.store.set(StoreKey.ACTIVE_NOTEBOOK_ID, notebook.id)

        logger.info(f"Created notebook {notebook.id} '{title}'")
        return notebook

    def delete_notebook(self, notebook_id: str) -> bool:
        """
        Delete a notebook together with its conversation log

        If it was the active notebook, the first remaining one becomes active.

        Returns:
            True if a notebook was removed
        """
        with self.store.transaction():
            notebooks = self.store.get(StoreKey.NOTEBOOKS)
            remaining = [n for n in notebooks if n.id != notebook_id]
            if len(remaining) == len(notebooks):
                logger.debug(f"Delete of unknown notebook {notebook_id} ignored")
                return False

            def _drop_log(history):
                history.pop(notebook_id, None)

            self.store.set(StoreKey.NOTEBOOKS, remaining)
            self.store.update(StoreKey.CHAT_HISTORY, _drop_log)
            if self.store.get(StoreKey.ACTIVE_NOTEBOOK_ID) == notebook_id:
                self.store.set(StoreKey.ACTIVE_NOTEBOOK_ID, remaining[0].id if remaining else None)

        logger.info(f"Deleted notebook {notebook_id}")
        return True

    def set_active_notebook(self, notebook_id: str) -> Notebook:
        notebook = self.get_notebook(notebook_id)
        self.store.set(StoreKey.ACTIVE_NOTEBOOK_ID, notebook.id)
        return notebook

    def get_active_notebook(self) -> Optional[Notebook]:
        """
        Return the active notebook

        When nothing is active (or the pointer is stale) the first notebook is
        selected, mirroring what a fresh start shows.
        """
        with self.store.transaction():
            active_id = self.store.get(StoreKey.ACTIVE_NOTEBOOK_ID)
            notebooks = self.store.get(StoreKey.NOTEBOOKS)
            for notebook in notebooks:
                if notebook.id == active_id:
                    return notebook
            if not notebooks:
                if active_id is not None:
                    self.store.set(StoreKey.ACTIVE_NOTEBOOK_ID, None)
                return None
            self.store.set(StoreKey.ACTIVE_NOTEBOOK_ID, notebooks[0].id)
            return notebooks[0]

    def get_messages(self, notebook_id: str) -> List[ConversationMessage]:
        return self.store.get(StoreKey.CHAT_HISTORY).get(notebook_id, [])

    def append_message(self, notebook_id: str, message: ConversationMessage) -> bool:
        """
        Append a message to a notebook's conversation log

        Reads the latest state under the store lock. A notebook deleted in the
        meantime is not resurrected.

        Returns:
            True if the message was stored
        """
        with self.store.transaction():
            if self.find_notebook(notebook_id) is None:
                logger.warning(f"Notebook {notebook_id} no longer exists, dropping message {message.id}")
                return False

            def _append(history):
                history.setdefault(notebook_id, []).append(message)

            self.store.update(StoreKey.CHAT_HISTORY, _append)

        logger.debug(f"Appended {message.role.value}/{message.content_type.value} message to {notebook_id}")
        return True

    def is_dark_mode(self) -> bool:
        return self.store.get(StoreKey.DARK_MODE)

    def toggle_dark_mode(self) -> bool:
        return self.store.update(StoreKey.DARK_MODE, lambda enabled: not enabled)
