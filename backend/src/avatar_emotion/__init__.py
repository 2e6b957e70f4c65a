"""
avatar_emotion - Captura y clasificación emocional del avatar.

Este paquete contiene los componentes del sistema:
- camera: Fuentes de frames (webcam, vídeo, imágenes) y overlay de depuración
- emotion: Preprocesado de frames, modelo de Valencia-Activación y esquema de etiquetas
- va: Offsets de calibración y tabla de decisión VA → emoción discreta
- pipeline: Analizador y orquestación por pasos
- storage: Persistencia de capturas
- utils: Métricas de rendimiento

La API Flask vive en `avatar_emotion.app` y no se importa aquí.
"""

from . import camera
from . import emotion
from . import va
from . import pipeline
from . import storage
from . import utils

from .config import (
    AnalyzerConfig,
    CaptureConfig,
    NormalizationParams,
    OffsetParams,
    PipelineConfig,
    load_config
)
from .exceptions import AvatarEmotionError, InferenceError, InvalidInputError
from .emotion import EmotionReading, preprocess
from .va import classify
from .pipeline import EmotionAnalyzer, EmotionPipeline, initialize

__version__ = "0.1.0"

__all__ = [
    'camera',
    'emotion',
    'va',
    'pipeline',
    'storage',
    'utils',
    'AnalyzerConfig',
    'CaptureConfig',
    'NormalizationParams',
    'OffsetParams',
    'PipelineConfig',
    'load_config',
    'AvatarEmotionError',
    'InferenceError',
    'InvalidInputError',
    'EmotionReading',
    'preprocess',
    'classify',
    'EmotionAnalyzer',
    'EmotionPipeline',
    'initialize',
]
