"""
PDF Renderers Package
"""
from .base_renderer import (
    BasePageRenderer,
    DocumentReadError,
    PasswordRequiredError,
    RendererError,
    RenderTimeoutError,
)
from .poppler_renderer import PopplerRenderer

__all__ = [
    'BasePageRenderer',
    'DocumentReadError',
    'PasswordRequiredError',
    'PopplerRenderer',
    'RendererError',
    'RenderTimeoutError',
]
