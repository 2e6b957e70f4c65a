"""
Persistencia de capturas clasificadas.

Guarda cada frame como PNG con un nombre que incluye la marca de tiempo y la
lectura (valencia, activación, etiqueta). Los fallos de escritura se
registran en el log y nunca interrumpen la clasificación.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

import cv2
import numpy as np

from ..emotion.preprocessing import to_unit_rgb
from ..emotion.schema import EmotionReading
from ..exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def _to_uint8(frame) -> np.ndarray:
    if isinstance(frame, np.ndarray) and frame.dtype == np.uint8 and frame.ndim == 3 and frame.shape[2] == 3:
        return frame
    return np.clip(to_unit_rgb(frame) * 255.0 + 0.5, 0, 255).astype(np.uint8)


def capture_filename(reading: EmotionReading, timestamp: datetime) -> str:
    """
    Nombre de archivo de una captura.

    Example:
        >>> capture_filename(EmotionReading(0.12, -0.3, "pleased"), datetime(2024, 1, 2, 3, 4, 5))
        'capture_20240102_030405_000000_V+0.12_A-0.30_pleased.png'
    """
    stamp = timestamp.strftime('%Y%m%d_%H%M%S_%f')
    return f"capture_{stamp}_V{reading.valence:+.2f}_A{reading.arousal:+.2f}_{reading.label}.png"


class CaptureStore:
    """
    Colaborador de persistencia de capturas.

    Attributes:
        output_dir (Path): Directorio de salida
    """

    def __init__(self, output_dir: Union[str, Path], now: Callable[[], datetime] = datetime.now):
        self.output_dir = Path(output_dir)
        self._now = now

    def save(self, frame: np.ndarray, reading: EmotionReading) -> Optional[Path]:
        """
        Guarda un frame RGB como PNG.

        Returns:
            Path | None: Ruta escrita, o None si la escritura falló
        """
        path = self.output_dir / capture_filename(reading, self._now())
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            image = _to_uint8(frame)
            image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
            if not cv2.imwrite(str(path), image):
                logger.error(f"No se pudo escribir la captura: {path}")
                return None
        except (OSError, cv2.error, InvalidInputError) as e:
            logger.error(f"Error al guardar captura {path}: {e}")
            return None

        logger.debug(f"Captura guardada: {path}")
        return path
