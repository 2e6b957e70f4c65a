"""
Módulo de pipeline para procesamiento afectivo por pasos.

Este módulo integra los componentes del sistema para crear un flujo
completo desde la captura de frames hasta la lectura emocional discreta.
"""

from .analyzer import EmotionAnalyzer, initialize
from .frame_buffer import FrameBuffer
from .emotion_pipeline import EmotionPipeline

__all__ = ['EmotionAnalyzer', 'initialize', 'FrameBuffer', 'EmotionPipeline']
