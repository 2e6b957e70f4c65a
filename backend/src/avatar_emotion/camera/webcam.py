"""
Fuente de frames desde webcam o archivo de vídeo usando OpenCV.

OpenCV entrega frames en BGR; esta fuente los convierte a RGB antes de
entregarlos al pipeline.
"""

import logging
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from .base import FrameSource

logger = logging.getLogger(__name__)


class WebcamCapture(FrameSource):
    """
    Captura de vídeo desde una webcam (índice) o un archivo de vídeo (ruta).

    Attributes:
        source (int | str): Índice de la cámara o ruta del vídeo
        cap (cv2.VideoCapture): Objeto de captura de OpenCV
        is_opened (bool): Estado de la captura
    """

    def __init__(self, source: Union[int, str] = 0, resolution: Optional[Tuple[int, int]] = (640, 480)):
        """
        Args:
            source (int | str): Índice de la cámara (default: 0) o ruta de vídeo
            resolution (tuple | None): (ancho, alto) solicitado a la webcam
        """
        self.source = source
        self.resolution = resolution
        self.cap: Optional[cv2.VideoCapture] = None
        self.is_opened = False
        self._ended = False

    def start(self) -> None:
        """
        Abre la conexión con la webcam o el vídeo.

        Raises:
            RuntimeError: Si no se puede abrir la fuente
        """
        if self.is_opened:
            return

        self.cap = cv2.VideoCapture(self.source)

        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            raise RuntimeError(
                f"No se pudo abrir la fuente de vídeo {self.source!r}. "
                "Verifica que la cámara esté conectada y no esté siendo utilizada por otra aplicación."
            )

        if isinstance(self.source, int) and self.resolution:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])

        self.is_opened = True
        self._ended = False
        logger.info(f"Fuente de vídeo {self.source!r} abierta correctamente")

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Lee un frame en BGR (formato nativo de OpenCV).

        Raises:
            RuntimeError: Si se intenta leer sin haber abierto la fuente
        """
        if not self.is_opened or self.cap is None:
            raise RuntimeError(
                "La cámara no está abierta. Llama a start() antes de leer frames."
            )

        success, frame = self.cap.read()

        if not success or frame is None:
            if self.is_file:
                self._ended = True
                logger.info(f"Fin del vídeo {self.source!r}")
            else:
                logger.warning("No se pudo leer el frame de la cámara")
            return False, None

        return True, frame

    def capture_frame(self) -> Optional[np.ndarray]:
        """Lee un frame y lo retorna en RGB, o None si la lectura falla."""
        success, frame = self.read()
        if not success:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    @property
    def is_file(self) -> bool:
        """True si la fuente es un archivo de vídeo (ruta) y no una webcam."""
        return isinstance(self.source, str)

    def exhausted(self) -> bool:
        """Solo un archivo de vídeo se agota; una webcam nunca."""
        return self.is_file and self._ended

    def release(self) -> None:
        """Libera los recursos de la cámara."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info("Recursos de cámara liberados")
        self.is_opened = False

    def get_properties(self) -> dict:
        """Propiedades actuales de la captura (ancho, alto, fps)."""
        if not self.is_opened or self.cap is None:
            return {}

        return {
            'width': int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            'height': int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            'fps': int(self.cap.get(cv2.CAP_PROP_FPS))
        }
