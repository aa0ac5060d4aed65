"""I/O adapters for document extraction and library persistence."""

from .library import Library, LibraryStore
from .pdf_extractor import PdfDocumentExtractor
from .storage import ArtifactStore

__all__ = ["ArtifactStore", "Library", "LibraryStore", "PdfDocumentExtractor"]
