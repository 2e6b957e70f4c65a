"""
Módulo de reconocimiento emocional facial.

Este paquete contiene el preprocesado de frames, el colaborador de
inferencia (modelo de Valencia-Activación) y el esquema de etiquetas.
"""

from .schema import (
    EMOTION_LABELS,
    EmotionReading,
    format_reading,
    get_all_emotions,
    is_valid_emotion,
    normalize_emotion
)
from .preprocessing import NormalizationParams, frame_to_tensor, preprocess, to_unit_rgb
from .inference import (
    CallableEmotionModel,
    EmotionModel,
    InferenceOutput,
    TorchEmotionModel,
    load_emotion_model
)

__all__ = [
    'EMOTION_LABELS',
    'EmotionReading',
    'format_reading',
    'get_all_emotions',
    'is_valid_emotion',
    'normalize_emotion',
    'NormalizationParams',
    'frame_to_tensor',
    'preprocess',
    'to_unit_rgb',
    'CallableEmotionModel',
    'EmotionModel',
    'InferenceOutput',
    'TorchEmotionModel',
    'load_emotion_model'
]
