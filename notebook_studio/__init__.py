"""
Intelligent notebook - sources in, study artifacts out
"""
from notebook_studio.app import NotebookApp

__version__ = "0.1.0"

__all__ = ["NotebookApp", "__version__"]
