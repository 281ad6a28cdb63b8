"""
Base classes and interfaces for PDF page rendering
Defines the contract the rasterizer and the direct-text fallback rely on
"""
from abc import ABC, abstractmethod
from typing import List, Tuple

from PIL import Image


class RendererError(Exception):
    """Base class for rendering failures"""


class PasswordRequiredError(RendererError):
    """The document cannot be opened without a password"""


class RenderTimeoutError(RendererError):
    """Rendering a page took longer than the allowed timeout"""


class DocumentReadError(RendererError):
    """The document is corrupted, unsupported or the engine is unavailable"""


class BasePageRenderer(ABC):
    """
    Abstract base class for PDF rendering engines
    Implementations must be safe to use from one pipeline at a time and hold no per-document state
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this renderer"""
        pass

    @abstractmethod
    def page_count(self, pdf_bytes: bytes) -> int:
        """
        Count pages in the document

        Raises:
            PasswordRequiredError: if the document is password protected
            DocumentReadError: if the document cannot be read
        """
        pass

    @abstractmethod
    def page_sizes(self, pdf_bytes: bytes, max_pages: int) -> List[Tuple[float, float]]:
        """
        Get (width, height) in points for the first max_pages pages
        """
        pass

    @abstractmethod
    def render(self, pdf_bytes: bytes, page_index: int, scale: float, timeout: float) -> Image.Image:
        """
        Render one page (0-indexed) at the given magnification over 72 DPI

        Raises:
            RenderTimeoutError: if rendering exceeds timeout seconds
            DocumentReadError: if the page cannot be rendered
        """
        pass

    @abstractmethod
    def embedded_text(self, pdf_bytes: bytes, page_index: int) -> str:
        """
        Extract the embedded (non-image) text layer of one page (0-indexed)
        """
        pass
