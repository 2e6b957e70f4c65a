"""
Módulo de persistencia de capturas emocionales.
"""

from .capture_store import CaptureStore, capture_filename

__all__ = ['CaptureStore', 'capture_filename']
