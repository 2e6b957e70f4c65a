"""
Buffer acotado de frames recientes.

Retiene los últimos frames procesados para consumidores posteriores (por
ejemplo, suavizado temporal). El pipeline no interpreta su contenido.
"""

from collections import deque
from typing import List

import numpy as np


class FrameBuffer:
    """
    Buffer FIFO con desalojo por lotes.

    Cuando el buffer está lleno, se descartan los `evict_batch` frames más
    antiguos antes de añadir el nuevo, de modo que nunca supera `capacity`.

    Example:
        >>> buffer = FrameBuffer(capacity=10, evict_batch=5)
        >>> for i in range(11):
        ...     buffer.append(frame)
        >>> len(buffer)
        6
    """

    def __init__(self, capacity: int = 10, evict_batch: int = 5):
        if capacity < 1:
            raise ValueError("capacity debe ser >= 1")
        if not 1 <= evict_batch <= capacity:
            raise ValueError("evict_batch debe estar entre 1 y capacity")
        self.capacity = capacity
        self.evict_batch = evict_batch
        self._frames: deque = deque()

    def append(self, frame: np.ndarray) -> None:
        if len(self._frames) >= self.capacity:
            for _ in range(self.evict_batch):
                self._frames.popleft()
        self._frames.append(frame)

    def snapshot(self) -> List[np.ndarray]:
        """Copia de la lista de frames, del más antiguo al más reciente."""
        return list(self._frames)

    def latest(self):
        """Frame más reciente o None."""
        return self._frames[-1] if self._frames else None

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)
