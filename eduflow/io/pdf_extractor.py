"""PDF text and page-image extraction.

Responsibilities:
- Collect text for every page (tagged by page number) with `pypdf`.
- Rasterize a bounded prefix of pages to JPEG with PyMuPDF so scanned
  documents can still be sent to the vision model.
- Reject non-PDF input before any project state is created.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import io
from pathlib import Path

import fitz
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..errors import ExtractionError
from ..models.datatypes import ExtractedDocument, PageText

_PDF_MAGIC = b"%PDF-"


class PdfDocumentExtractor:
    """Extractor producing ordered page texts and a capped list of page images."""

    def __init__(
        self,
        max_visual_pages: int = 15,
        render_workers: int = 4,
        render_scale: float = 1.0,
        jpeg_quality: int = 60,
    ) -> None:
        """Initialize raster limits and the bounded render concurrency."""

        if max_visual_pages < 0:
            raise ValueError("`max_visual_pages` must not be negative.")
        if render_workers <= 0:
            raise ValueError("`render_workers` must be a positive integer.")
        self.max_visual_pages = max_visual_pages
        self.render_workers = render_workers
        self.render_scale = render_scale
        self.jpeg_quality = jpeg_quality

    def extract(self, pdf_path: Path) -> ExtractedDocument:
        """Extract all page texts and the first page images from a PDF file."""

        data = self._read_pdf_bytes(pdf_path)
        page_texts = self._extract_page_texts(data, pdf_path)
        visual_pages = min(len(page_texts), self.max_visual_pages)
        page_images = self._render_pages(data, visual_pages, pdf_path)
        return ExtractedDocument(
            name=pdf_path.name,
            page_count=len(page_texts),
            page_texts=page_texts,
            page_images=page_images,
        )

    def _read_pdf_bytes(self, pdf_path: Path) -> bytes:
        if not pdf_path.exists():
            raise ExtractionError(f"Input PDF not found: {pdf_path}")
        data = pdf_path.read_bytes()
        if not data.startswith(_PDF_MAGIC):
            raise ExtractionError(f"Please upload a valid PDF file: {pdf_path.name}")
        return data

    def _extract_page_texts(self, data: bytes, pdf_path: Path) -> tuple[PageText, ...]:
        """Extract per-page text with `pypdf`, joining text runs with spaces."""

        try:
            reader = PdfReader(io.BytesIO(data))
            pages: list[PageText] = []
            for number, page in enumerate(reader.pages, start=1):
                extracted_text = page.extract_text() or ""
                pages.append(PageText(page_number=number, text=" ".join(extracted_text.split())))
        except PyPdfError as exc:
            raise ExtractionError(f"Error reading PDF {pdf_path.name}: {exc}") from exc
        return tuple(pages)

    def _render_pages(self, data: bytes, page_total: int, pdf_path: Path) -> tuple[bytes, ...]:
        """Render pages `1..page_total` to JPEG, preserving page order."""

        if page_total == 0:
            return ()
        workers = min(self.render_workers, page_total)
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pdf-render") as pool:
                # Each worker opens its own document handle; PyMuPDF documents are not thread-safe.
                images = pool.map(lambda index: self._render_page(data, index), range(page_total))
                return tuple(images)
        except RuntimeError as exc:
            raise ExtractionError(f"Error rendering PDF {pdf_path.name}: {exc}") from exc

    def _render_page(self, data: bytes, page_index: int) -> bytes:
        with fitz.open(stream=data, filetype="pdf") as document:
            page = document.load_page(page_index)
            matrix = fitz.Matrix(self.render_scale, self.render_scale)
            pixmap = page.get_pixmap(matrix=matrix, alpha=False)
            return pixmap.tobytes(output="jpeg", jpg_quality=self.jpeg_quality)
