"""
PDF overlay editor core.

Page import, click-to-text localisation, debounced background masking,
and multi-page export for an overlay-style PDF editor.
"""

from .config import EditorConfig
from .models import EditSession, ImageElement, Page, TextElement
from .session import EditorSession
from .store import PageStore

__all__ = [
    "EditorConfig",
    "EditorSession",
    "EditSession",
    "ImageElement",
    "Page",
    "PageStore",
    "TextElement",
]
