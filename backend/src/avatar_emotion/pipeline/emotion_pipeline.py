"""
Pipeline de captura emocional paso a paso.

Este módulo orquesta el flujo completo por paso de tiempo:

    captura de frame → buffer de frames recientes → preprocesado →
    inferencia → clasificación → display → persistencia (opcional)

Todo el flujo es síncrono dentro de un paso. Por defecto solo se procesa
uno de cada dos pasos (pasos 0, 2, 4...).

Política de errores por paso:
1. Sin frame (no hay render target, fin de vídeo): se salta el paso
2. Frame inválido (InvalidInputError): se salta el paso
3. Fallo de inferencia (InferenceError): se propaga al llamador; el
   siguiente paso es independiente
4. Fallo de display o persistencia: se registra y no afecta a la lectura
"""

import logging
from typing import Callable, Optional

import numpy as np

from ..camera.base import FrameSource
from ..config import PipelineConfig
from ..emotion.schema import EmotionReading
from ..exceptions import InvalidInputError
from ..storage.capture_store import CaptureStore
from .analyzer import EmotionAnalyzer
from .frame_buffer import FrameBuffer

logger = logging.getLogger(__name__)

DisplayCallback = Callable[[EmotionReading], None]


class EmotionPipeline:
    """
    Pipeline de captura y clasificación emocional.

    Attributes:
        source (FrameSource): Colaborador de captura
        analyzer (EmotionAnalyzer): Preprocesado + inferencia + clasificación
        config (PipelineConfig): Cadencia, buffer y persistencia
        display (callable | None): Recibe cada lectura (texto de depuración, UI...)
        store (CaptureStore | None): Persistencia de capturas
        frame_buffer (FrameBuffer): Frames recientes
        frame_count (int): Pasos transcurridos desde el inicio
        last_reading (EmotionReading | None): Última lectura producida

    Example:
        >>> pipeline = EmotionPipeline(WebcamCapture(0), analyzer)
        >>> with pipeline:
        ...     for _ in range(100):
        ...         reading = pipeline.tick()
        ...         if reading:
        ...             print(reading.format_display())
    """

    def __init__(
        self,
        source: FrameSource,
        analyzer: EmotionAnalyzer,
        config: Optional[PipelineConfig] = None,
        display: Optional[DisplayCallback] = None,
        store: Optional[CaptureStore] = None
    ):
        self.source = source
        self.analyzer = analyzer
        self.config = config or PipelineConfig()
        self.display = display

        if store is None and self.config.save_captures:
            store = CaptureStore(self.config.output_dir)
        self.store = store

        self.frame_buffer = FrameBuffer(self.config.buffer_capacity, self.config.evict_batch)
        self.frame_count = 0
        self.last_reading: Optional[EmotionReading] = None

    def start(self):
        """
        Inicia la fuente de frames.

        Raises:
            RuntimeError: Si la fuente no se puede abrir
        """
        self.source.start()

    def tick(self) -> Optional[EmotionReading]:
        """
        Avanza un paso de tiempo.

        Solo los pasos múltiplos de `process_every` capturan y clasifican.

        Returns:
            EmotionReading | None: Lectura del paso, o None si no se procesó

        Raises:
            InferenceError: Si el modelo falla en este paso
        """
        should_process = self.frame_count % self.config.process_every == 0
        self.frame_count += 1

        if not should_process:
            return None
        return self.process_next()

    def process_next(self) -> Optional[EmotionReading]:
        """
        Captura un frame y lo procesa, sin tener en cuenta la cadencia.

        Returns:
            EmotionReading | None: None si la fuente no entregó frame

        Raises:
            InferenceError: Si el modelo falla
        """
        frame = self.source.capture_frame()
        if frame is None:
            logger.warning("No hay frame disponible (sin render target o fuente agotada)")
            return None
        return self.step(frame)

    def step(self, frame: np.ndarray) -> Optional[EmotionReading]:
        """
        Procesa un frame ya capturado.

        Returns:
            EmotionReading | None: None si el frame es inválido

        Raises:
            InferenceError: Si el modelo falla
        """
        try:
            reading = self.analyzer.step(frame)
        except InvalidInputError as e:
            logger.warning(f"Frame inválido, se salta el paso: {e}")
            return None

        self.frame_buffer.append(frame)
        self.last_reading = reading
        self._publish(frame, reading)
        return reading

    def _publish(self, frame: np.ndarray, reading: EmotionReading):
        if self.display is not None:
            try:
                self.display(reading)
            except Exception as e:
                logger.error(f"Error en el display de la lectura: {e}", exc_info=True)

        if self.store is not None:
            self.store.save(frame, reading)

    def stop(self):
        """Libera la fuente, el modelo y el buffer de frames."""
        try:
            self.source.release()
        finally:
            self.frame_buffer.clear()
            self.analyzer.close()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
