"""
Application state object
Wires the durable store and the services together for one process lifetime
"""
from typing import Optional
from loguru import logger

from notebook_studio.config import Settings
from notebook_studio.services import (
    DurableStore,
    GenerationClient,
    NotebookService,
    Orchestrator,
    SavedItemsLibrary,
    ScraperService,
    SourceRegistry,
)


class NotebookApp:
    """
    Explicit application state

    ``create`` loads persisted state before returning; every later mutation
    is written through immediately. ``close`` stops the generation worker and
    flushes the store.
    """

    def __init__(
        self,
        settings: Settings,
        store: DurableStore,
        generator: GenerationClient,
        scraper: Optional[ScraperService] = None,
    ):
        self.settings = settings
        self.store = store
        self.scraper = scraper
        self.generator = generator
        self.notebooks = NotebookService(store)
        self.sources = SourceRegistry(store, scraper)
        self.library = SavedItemsLibrary(store)
        self.orchestrator = Orchestrator(self.notebooks, generator)

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        generator: Optional[GenerationClient] = None,
        scraper: Optional[ScraperService] = None,
    ) -> "NotebookApp":
        """
        Build the application and load persisted state

        Args:
            settings: Application settings (if None, will load from environment)
            generator: Generation client (if None, built from settings)
            scraper: URL fetch service (if None, built from settings)
        """
        if settings is None:
            from notebook_studio.config import get_settings
            settings = get_settings()

        store = DurableStore(settings.data_dir, settings.storage_namespace)
        store.load()

        app = cls(
            settings=settings,
            store=store,
            generator=generator or GenerationClient(settings),
            scraper=scraper or ScraperService(settings),
        )
        logger.info(f"Notebook app ready with {len(app.notebooks.list_notebooks())} notebooks")
        return app

    def close(self) -> None:
        self.orchestrator.shutdown(wait=True)
        if self.scraper is not None:
            self.scraper.close()
        self.store.close()

    def __enter__(self) -> "NotebookApp":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
