"""
Módulo de captura de frames.
Proporciona fuentes de frames RGB (webcam, vídeo, imágenes) y el overlay de depuración.
"""

from .base import FrameSource
from .webcam import WebcamCapture
from .image_source import ImageSequenceSource, load_image_rgb
from .overlay import draw_reading

__all__ = ['FrameSource', 'WebcamCapture', 'ImageSequenceSource', 'load_image_rgb', 'draw_reading']
