"""
Clasificador de coordenadas Valencia-Activación a emoción discreta.

Convierte la salida continua del modelo (valencia, activación) en una de las
cinco etiquetas del sistema aplicando primero los offsets de calibración y
después la tabla de decisión ordenada de `rules`.

Todas las funciones son puras: no hay estado oculto y el resultado depende
únicamente de los argumentos.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..emotion.schema import EmotionReading, best_expression
from .rules import DEFAULT_RULES, EmotionRule, match_rule

# Tipo para coordenadas VA
VACoordinates = Tuple[float, float]


@dataclass(frozen=True)
class OffsetParams:
    """Sesgos sumados a la salida cruda del modelo antes de clasificar."""
    valence: float = 0.0
    arousal: float = 0.0


NO_OFFSETS = OffsetParams()


def apply_offsets(valence_raw: float, arousal_raw: float, offsets: OffsetParams) -> VACoordinates:
    """
    Suma los offsets de calibración a la salida cruda del modelo.

    Example:
        >>> apply_offsets(0.05, 0.25, OffsetParams(valence=0.1))
        (0.15000000000000002, 0.25)
    """
    return (valence_raw + offsets.valence, arousal_raw + offsets.arousal)


def discrete_emotion(
    valence: float,
    arousal: float,
    rules: Sequence[EmotionRule] = DEFAULT_RULES
) -> str:
    """Etiqueta discreta para coordenadas ya ajustadas."""
    return match_rule(float(valence), float(arousal), rules)


def classify(
    valence_raw: float,
    arousal_raw: float,
    offsets: OffsetParams = NO_OFFSETS,
    rules: Sequence[EmotionRule] = DEFAULT_RULES,
    expression_scores: Optional[Sequence[float]] = None
) -> EmotionReading:
    """
    Clasifica la salida cruda del modelo en una lectura emocional.

    Args:
        valence_raw (float): Valencia devuelta por el modelo
        arousal_raw (float): Activación devuelta por el modelo
        offsets (OffsetParams): Sesgos de calibración
        rules: Tabla de decisión ordenada (gana la primera regla que cumple)
        expression_scores: Scores de la cabeza de expresión, si existen

    Returns:
        EmotionReading: Valores ajustados y etiqueta derivada

    Examples:
        >>> classify(0.2, 0.3).label
        'happy'
        >>> classify(0.05, 0.25, OffsetParams(valence=0.1)).label
        'happy'
    """
    valence, arousal = apply_offsets(float(valence_raw), float(arousal_raw), offsets)
    label = match_rule(valence, arousal, rules)

    scores = None
    expression = None
    if expression_scores is not None and len(expression_scores) > 0:
        scores = tuple(float(s) for s in expression_scores)
        expression = best_expression(scores)

    return EmotionReading(
        valence=valence,
        arousal=arousal,
        label=label,
        expression=expression,
        expression_scores=scores,
    )
