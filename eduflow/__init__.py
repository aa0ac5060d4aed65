"""Top-level package for EduFlow.

EduFlow turns a PDF study document into a short narrated educational video
project: outline, angle, narration script, SEO metadata, speech audio, and a
thumbnail. The main orchestration entry point is `EduflowPipeline`.
"""

from .pipeline import EduflowPipeline

__all__ = ["EduflowPipeline", "__version__"]

__version__ = "0.1.0"
