"""
Módulo de clasificación Valence-Arousal (VA).

Este módulo implementa la conversión de coordenadas continuas en el espacio
Valencia-Activación a una emoción discreta mediante una tabla de decisión
ordenada y configurable.

Componentes:
    - rules: Tabla de reglas y evaluador "primera regla que cumple"
    - classifier: Offsets de calibración y clasificación de lecturas
"""

from .rules import DEFAULT_RULES, Bound, Comparison, EmotionRule, match_rule
from .classifier import OffsetParams, apply_offsets, classify, discrete_emotion

__all__ = [
    'DEFAULT_RULES',
    'Bound',
    'Comparison',
    'EmotionRule',
    'match_rule',
    'OffsetParams',
    'apply_offsets',
    'classify',
    'discrete_emotion'
]
