"""
Analizador emocional: preprocesado → inferencia → clasificación.

Un EmotionAnalyzer adquiere el modelo al construirse y lo libera en close().
Cada llamada a step(frame) es síncrona y no guarda estado que afecte a la
clasificación; el único estado interno es el temporizador del log de
valores crudos.
"""

import logging
import time
from typing import Callable, Optional

import numpy as np

from ..config import AnalyzerConfig
from ..emotion.inference import EmotionModel, load_emotion_model
from ..emotion.preprocessing import preprocess
from ..emotion.schema import EmotionReading
from ..va.classifier import classify

logger = logging.getLogger(__name__)


class EmotionAnalyzer:
    """
    Convierte frames en lecturas emocionales.

    Attributes:
        config (AnalyzerConfig): Configuración inmutable
        model (EmotionModel): Colaborador de inferencia
        metrics: PerformanceMetrics opcional para medir cada etapa

    Example:
        >>> with initialize(AnalyzerConfig(model_path="va_model.pt")) as analyzer:
        ...     reading = analyzer.step(frame)
        ...     print(reading.format_display())
    """

    def __init__(
        self,
        config: AnalyzerConfig,
        model: EmotionModel,
        metrics=None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.config = config
        self.model = model
        self.metrics = metrics
        self._clock = clock
        self._last_log: Optional[float] = None

    def _measure(self, stage: str):
        if self.metrics is None:
            return _NullTimer()
        return self.metrics.measure(stage)

    def step(self, frame: np.ndarray) -> EmotionReading:
        """
        Procesa un frame completo.

        Args:
            frame (np.ndarray): Frame RGB (H, W, 3)

        Returns:
            EmotionReading: Valores ajustados y etiqueta

        Raises:
            InvalidInputError: Si el frame es ausente o inválido
            InferenceError: Si el modelo falla
        """
        with self._measure('preprocess'):
            tensor = preprocess(
                frame,
                self.config.target_size,
                self.config.normalization
            )

        with self._measure('inference'):
            output = self.model.infer(tensor)

        with self._measure('classify'):
            reading = classify(
                output.valence,
                output.arousal,
                self.config.offsets,
                self.config.rules,
                output.expression_scores
            )

        self._log_values(output.valence, output.arousal, reading)
        return reading

    def _log_values(self, raw_valence: float, raw_arousal: float, reading: EmotionReading):
        # Como máximo un log cada log_interval segundos
        now = self._clock()
        if self._last_log is not None and now - self._last_log <= self.config.log_interval:
            return
        self._last_log = now
        logger.info(
            f"Valores emocionales - Raw: (V:{raw_valence:.3f}, A:{raw_arousal:.3f}), "
            f"Ajustados: (V:{reading.valence:.3f}, A:{reading.arousal:.3f}) -> {reading.label}"
        )

    def close(self) -> None:
        """Libera el modelo de inferencia."""
        self.model.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class _NullTimer:
    def __enter__(self):
        return {}

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


def initialize(
    config: AnalyzerConfig,
    model: Optional[EmotionModel] = None,
    metrics=None
) -> EmotionAnalyzer:
    """
    Crea un analizador listo para usar.

    Si no se inyecta un modelo, se carga el TorchEmotionModel de
    config.model_path.

    Raises:
        FileNotFoundError: Si no hay modelo inyectado ni ruta válida
    """
    if model is None:
        model = load_emotion_model(config)
    return EmotionAnalyzer(config, model, metrics=metrics)
