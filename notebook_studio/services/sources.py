"""
Source registry - ordered, append-only source documents per notebook
"""
from typing import List, Optional, Union
from loguru import logger

from notebook_studio.models import Source, SourceType
from notebook_studio.services.errors import NotebookNotFoundError, ValidationError
from notebook_studio.services.scraper import ScraperService
from notebook_studio.services.storage import DurableStore, StoreKey


class SourceRegistry:
    """Appends sources to notebooks; existing sources are never touched"""

    def __init__(self, store: DurableStore, scraper: Optional[ScraperService] = None):
        """
        Initialize source registry

        Args:
            store: Durable store holding the notebooks
            scraper: URL fetch collaborator (only needed for ``add_url_source``)
        """
        self.store = store
        self.scraper = scraper

    def add_source(
        self,
        notebook_id: str,
        title: str,
        content: str,
        type: Union[SourceType, str] = SourceType.TEXT,
    ) -> Source:
        """
        Append a new source to a notebook

        Args:
            notebook_id: Target notebook
            title: Source title shown in prompts
            content: Extracted text, or the URL for url sources
            type: Source type

        Returns:
            The stored source with its fresh id
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Source title must not be empty")
        if not content or not content.strip():
            raise ValidationError("Source content must not be empty")

        try:
            source_type = SourceType(type)
        except ValueError:
            raise ValidationError(f"Unknown source type: {type}")

        source = Source(title=title, content=content, type=source_type)

        def _append(notebooks):
            for notebook in notebooks:
                if notebook.id == notebook_id:
                    notebook.sources.append(source)
                    return
            raise NotebookNotFoundError(notebook_id)

        self.store.update(StoreKey.NOTEBOOKS, _append)
        logger.info(f"Added {source.type.value} source {source.id} '{title}' ({len(content)} chars) to {notebook_id}")
        return source

    def list_sources(self, notebook_id: str) -> List[Source]:
        for notebook in self.store.get(StoreKey.NOTEBOOKS):
            if notebook.id == notebook_id:
                return notebook.sources
        raise NotebookNotFoundError(notebook_id)

    def add_url_source(self, notebook_id: str, url: str, title: Optional[str] = None) -> Source:
        """
        Fetch a URL and store the extracted text as a text source

        FetchError propagates to the caller and leaves the notebook unchanged.

        Args:
            notebook_id: Target notebook
            url: Page or document to fetch
            title: Source title (defaults to the URL)

        Returns:
            The stored source
        """
        if self.scraper is None:
            raise ValidationError("URL ingestion is not configured")
        # Fail fast before spending a network round trip
        self.list_sources(notebook_id)

        url = (url or "").strip()
        content = self.scraper.fetch_content(url)
        return self.add_source(notebook_id, title or url, content, SourceType.TEXT)
