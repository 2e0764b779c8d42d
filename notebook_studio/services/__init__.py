"""
Services module - Business logic and external integrations
"""
from .storage import DurableStore, StoreKey
from .notebooks import NotebookService
from .sources import SourceRegistry
from .scraper import ScraperService
from .generation import GenerationClient, build_prompt
from .catalogue import CATALOGUE, Intent, IntentSpec
from .orchestrator import Orchestrator, RequestState, Settlement
from .library import SavedItemsLibrary
from .exporter import ExportedFile, export_artifact

__all__ = [
    "DurableStore",
    "StoreKey",
    "NotebookService",
    "SourceRegistry",
    "ScraperService",
    "GenerationClient",
    "build_prompt",
    "CATALOGUE",
    "Intent",
    "IntentSpec",
    "Orchestrator",
    "RequestState",
    "Settlement",
    "SavedItemsLibrary",
    "ExportedFile",
    "export_artifact",
]
