"""Shared pytest fixtures for the EduFlow test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fakes import write_pdf

_LESSON_SENTENCE = "Module 2 covers supply and demand equilibrium with worked examples. "


@pytest.fixture
def text_pdf_path(tmp_path: Path) -> Path:
    """Provide a three-page PDF whose extracted text is well above the image threshold."""

    return write_pdf(
        tmp_path / "lecture_notes.pdf",
        [_LESSON_SENTENCE * 6, _LESSON_SENTENCE * 6, _LESSON_SENTENCE * 6],
    )


@pytest.fixture
def scanned_pdf_path(tmp_path: Path) -> Path:
    """Provide a two-page PDF with drawings but no extractable text."""

    return write_pdf(tmp_path / "scanned.pdf", ["", ""])
