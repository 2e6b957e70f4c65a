"""
Fuente de frames a partir de imágenes en disco.

Útil para evaluación offline, calibración de offsets y pruebas del
pipeline sin cámara.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import cv2
import numpy as np

from .base import FrameSource

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp')


def load_image_rgb(path: Union[str, Path]) -> Optional[np.ndarray]:
    """Carga una imagen como RGB uint8, o None si no se puede decodificar."""
    frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if frame is None:
        return None
    return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


def list_images(directory: Union[str, Path]) -> List[Path]:
    """Lista ordenada de imágenes soportadas dentro de un directorio."""
    directory = Path(directory)
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


class ImageSequenceSource(FrameSource):
    """
    Entrega las imágenes de una lista en orden, una por llamada.

    Cuando se agota la lista, o una imagen no se puede leer, capture_frame()
    retorna None.
    """

    def __init__(self, paths: Iterable[Union[str, Path]], loop: bool = False):
        self.paths = [Path(p) for p in paths]
        self.loop = loop
        self.index = 0
        self.current_path: Optional[Path] = None

    @classmethod
    def from_directory(cls, directory: Union[str, Path], loop: bool = False) -> "ImageSequenceSource":
        return cls(list_images(directory), loop=loop)

    def capture_frame(self) -> Optional[np.ndarray]:
        if self.index >= len(self.paths):
            if not self.loop or not self.paths:
                return None
            self.index = 0

        self.current_path = self.paths[self.index]
        self.index += 1

        frame = load_image_rgb(self.current_path)
        if frame is None:
            logger.warning(f"No se pudo cargar la imagen: {self.current_path}")
        return frame

    def exhausted(self) -> bool:
        return not self.loop and self.index >= len(self.paths)

    def release(self) -> None:
        self.index = 0
        self.current_path = None
