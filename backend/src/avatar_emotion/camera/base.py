"""
Interfaz base para fuentes de frames.

Define el contrato del colaborador de render/captura: entregar frames RGB
bajo demanda, o None cuando no hay imagen disponible.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class FrameSource(ABC):
    """
    Fuente de frames RGB (H, W, 3).

    capture_frame() retorna None si no hay frame (sin render target, fin de
    vídeo, error de lectura). El llamador debe saltarse ese paso.
    """

    def start(self) -> None:
        """Abre la fuente (por defecto no hace nada)."""
        pass

    @abstractmethod
    def capture_frame(self) -> Optional[np.ndarray]:
        """Captura un frame RGB o retorna None."""
        pass

    def exhausted(self) -> bool:
        """True si la fuente no entregará más frames (fin de vídeo o de lista)."""
        return False

    def release(self) -> None:
        """Libera los recursos de la fuente."""
        pass

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
