"""
Tabla de decisión Valencia-Activación → emoción discreta.

Cada regla es una variante etiquetada con dos cotas (una para valencia y
otra para activación). Las reglas se evalúan en orden y gana la primera que
cumple ambas cotas. Los rangos se solapan, por lo que el orden de la tabla
forma parte de la semántica: reordenar reglas cambia la clasificación en
las fronteras.

Umbrales por defecto (comparaciones estrictas):

    | Condición                         | Etiqueta |
    |-----------------------------------|----------|
    | |v| < 0.1  y |a| < 0.1            | neutral  |
    | v > 0.1    y a > 0.2              | happy    |
    | v < -0.1   y a > 0.1              | angry    |
    | v < -0.1   y a < -0.1             | sad      |
    | v > 0.1    y a < -0.1             | pleased  |
    | (ninguna)                         | neutral  |

Nota:
    Con comparaciones estrictas, el punto (0.1, 0.1) no cumple ninguna
    regla y cae en la etiqueta por defecto.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..emotion.schema import DEFAULT_LABEL, EMOTION_LABELS


class Comparison(str, Enum):
    """Operadores admitidos en una cota."""
    ABS_LT = "abs_lt"   # |x| < umbral
    LT = "lt"           # x < umbral
    GT = "gt"           # x > umbral


@dataclass(frozen=True)
class Bound:
    """Cota sobre una dimensión: `op` aplicado contra `threshold`."""
    op: Comparison
    threshold: float

    def test(self, value: float) -> bool:
        if self.op is Comparison.ABS_LT:
            return abs(value) < self.threshold
        if self.op is Comparison.LT:
            return value < self.threshold
        return value > self.threshold

    def to_dict(self) -> Dict[str, object]:
        return {'op': self.op.value, 'threshold': self.threshold}

    @classmethod
    def from_value(cls, value) -> "Bound":
        """
        Construye una cota desde configuración.

        Acepta `{"op": "gt", "threshold": 0.1}` o el par `["gt", 0.1]`.
        """
        if isinstance(value, Bound):
            return value
        if isinstance(value, Mapping):
            op, threshold = value.get('op'), value.get('threshold')
        elif isinstance(value, (list, tuple)) and len(value) == 2:
            op, threshold = value
        else:
            raise ValueError(f"Cota inválida: {value!r}")

        try:
            comparison = Comparison(op)
        except ValueError:
            valid = [c.value for c in Comparison]
            raise ValueError(f"Operador '{op}' no soportado. Operadores válidos: {valid}")

        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ValueError(f"Umbral no numérico: {threshold!r}")
        return cls(comparison, float(threshold))


@dataclass(frozen=True)
class EmotionRule:
    """Regla de la tabla: si ambas cotas se cumplen, se asigna `label`."""
    label: str
    valence: Bound
    arousal: Bound

    def __post_init__(self):
        if self.label not in EMOTION_LABELS:
            raise ValueError(
                f"Etiqueta '{self.label}' no pertenece al conjunto {EMOTION_LABELS}"
            )

    def matches(self, valence: float, arousal: float) -> bool:
        return self.valence.test(valence) and self.arousal.test(arousal)

    def to_dict(self) -> Dict[str, object]:
        return {
            'label': self.label,
            'valence': self.valence.to_dict(),
            'arousal': self.arousal.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "EmotionRule":
        missing = {'label', 'valence', 'arousal'} - set(data)
        if missing:
            raise ValueError(f"Regla incompleta, faltan campos: {sorted(missing)}")
        return cls(
            label=data['label'],
            valence=Bound.from_value(data['valence']),
            arousal=Bound.from_value(data['arousal']),
        )


DEFAULT_RULES: Tuple[EmotionRule, ...] = (
    EmotionRule("neutral", Bound(Comparison.ABS_LT, 0.1), Bound(Comparison.ABS_LT, 0.1)),
    EmotionRule("happy", Bound(Comparison.GT, 0.1), Bound(Comparison.GT, 0.2)),
    EmotionRule("angry", Bound(Comparison.LT, -0.1), Bound(Comparison.GT, 0.1)),
    EmotionRule("sad", Bound(Comparison.LT, -0.1), Bound(Comparison.LT, -0.1)),
    EmotionRule("pleased", Bound(Comparison.GT, 0.1), Bound(Comparison.LT, -0.1)),
)


def match_rule(
    valence: float,
    arousal: float,
    rules: Sequence[EmotionRule] = DEFAULT_RULES,
    default: str = DEFAULT_LABEL
) -> str:
    """
    Evalúa la tabla en orden y retorna la etiqueta de la primera regla que cumple.

    Args:
        valence (float): Valencia ya ajustada
        arousal (float): Activación ya ajustada
        rules: Tabla de reglas ordenada
        default (str): Etiqueta si ninguna regla cumple

    Returns:
        str: Etiqueta discreta

    Examples:
        >>> match_rule(0.2, 0.3)
        'happy'
        >>> match_rule(0.1, 0.1)
        'neutral'
    """
    for rule in rules:
        if rule.matches(valence, arousal):
            return rule.label
    return default


def rules_from_config(items: Iterable[Mapping]) -> Tuple[EmotionRule, ...]:
    """Construye una tabla desde una lista de dicts (JSON de configuración)."""
    rules = tuple(EmotionRule.from_dict(item) for item in items)
    if not rules:
        raise ValueError("La tabla de reglas no puede estar vacía")
    return rules


def rules_to_config(rules: Sequence[EmotionRule]) -> List[Dict[str, object]]:
    """Serializa una tabla de reglas a una lista de dicts."""
    return [rule.to_dict() for rule in rules]
