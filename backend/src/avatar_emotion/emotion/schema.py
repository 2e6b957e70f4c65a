"""
Esquema de emociones del sistema.

Define el conjunto fijo de etiquetas discretas que produce el clasificador
de Valencia-Activación, los vocabularios de expresión que pueden exponer
algunos modelos (EmoNet) y la estructura de lectura que se entrega a los
consumidores (display, persistencia, API).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

# Conjunto fijo de etiquetas discretas del clasificador VA
EMOTION_LABELS: List[str] = [
    "angry",      # Valencia negativa, activación alta
    "sad",        # Valencia negativa, activación baja
    "happy",      # Valencia positiva, activación alta
    "pleased",    # Valencia positiva, activación baja
    "neutral"     # Cerca del origen o sin regla aplicable
]

DEFAULT_LABEL = "neutral"

# Vocabularios de expresión de EmoNet según el número de clases de la cabeza
EXPRESSION_LABELS_8: List[str] = [
    "neutral", "happy", "sad", "surprise", "fear", "disgust", "anger", "contempt"
]
EXPRESSION_LABELS_5: List[str] = [
    "neutral", "happy", "sad", "surprise", "fear"
]

# Sinónimos aceptados al leer etiquetas externas (datasets, configuración)
LABEL_SYNONYMS: Dict[str, str] = {
    "anger": "angry",
    "angry": "angry",
    "sadness": "sad",
    "sad": "sad",
    "happiness": "happy",
    "happy": "happy",
    "pleased": "pleased",
    "pleasure": "pleased",
    "content": "pleased",
    "calm": "pleased",
    "neutral": "neutral",
}


def normalize_emotion(emotion: str) -> str:
    """
    Normaliza una etiqueta externa a una del conjunto EMOTION_LABELS.

    Args:
        emotion (str): Etiqueta a normalizar (ej. de un CSV de ground truth)

    Returns:
        str: Etiqueta normalizada, o "neutral" si no se reconoce

    Examples:
        >>> normalize_emotion("Anger")
        'angry'
        >>> normalize_emotion("confused")
        'neutral'
    """
    if not emotion:
        return DEFAULT_LABEL

    return LABEL_SYNONYMS.get(emotion.lower().strip(), DEFAULT_LABEL)


def is_valid_emotion(emotion: str) -> bool:
    """Indica si la etiqueta pertenece al conjunto estándar."""
    return emotion in EMOTION_LABELS


def get_all_emotions() -> List[str]:
    """Retorna una copia de las etiquetas estándar."""
    return EMOTION_LABELS.copy()


def expression_labels_for(size: int) -> List[str]:
    """
    Retorna el vocabulario de expresión para una cabeza de `size` clases.

    Los tamaños desconocidos usan nombres genéricos `class_<i>`.
    """
    if size == len(EXPRESSION_LABELS_8):
        return EXPRESSION_LABELS_8.copy()
    if size == len(EXPRESSION_LABELS_5):
        return EXPRESSION_LABELS_5.copy()
    return [f"class_{i}" for i in range(size)]


def best_expression(scores: Sequence[float]) -> Optional[str]:
    """
    Retorna la expresión con mayor score, o None si no hay scores.

    En caso de empate gana el primer índice.
    """
    if scores is None or len(scores) == 0:
        return None

    best = 0
    for i in range(1, len(scores)):
        if scores[i] > scores[best]:
            best = i
    return expression_labels_for(len(scores))[best]


@dataclass(frozen=True)
class EmotionReading:
    """
    Lectura emocional de un frame.

    Attributes:
        valence (float): Valencia ajustada (salida del modelo + offset)
        arousal (float): Activación ajustada (salida del modelo + offset)
        label (str): Etiqueta discreta derivada de (valence, arousal)
        expression (str | None): Expresión dominante si el modelo la expone
        expression_scores (tuple | None): Scores crudos de expresión
    """
    valence: float
    arousal: float
    label: str
    expression: Optional[str] = None
    expression_scores: Optional[Tuple[float, ...]] = field(default=None, repr=False)

    def format_display(self) -> str:
        """Texto de depuración con dos decimales, una magnitud por línea."""
        return format_reading(self)

    def to_dict(self, decimals: Optional[int] = None) -> Dict[str, object]:
        """
        Serializa la lectura para JSON.

        Args:
            decimals (int, optional): Si se indica, redondea valence/arousal
        """
        valence = self.valence if decimals is None else round(self.valence, decimals)
        arousal = self.arousal if decimals is None else round(self.arousal, decimals)
        data: Dict[str, object] = {
            'emotion': self.label,
            'valence': valence,
            'arousal': arousal,
        }
        if self.expression is not None:
            data['expression'] = self.expression
        return data


def format_reading(reading: EmotionReading) -> str:
    """
    Formatea una lectura para el colaborador de display.

    Example:
        >>> format_reading(EmotionReading(0.123, -0.3, "sad"))
        'Valence: 0.12\\nArousal: -0.30\\nEmotion: sad'
    """
    return (
        f"Valence: {reading.valence:.2f}\n"
        f"Arousal: {reading.arousal:.2f}\n"
        f"Emotion: {reading.label}"
    )
