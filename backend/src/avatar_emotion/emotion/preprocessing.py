"""
Preprocesado de frames para la red de Valencia-Activación.

Convierte un frame RGB capturado (numpy, HxWx3) en el tensor de entrada de la
red: redimensionado bilineal al tamaño fijo de entrada, conversión a flotante
en [0, 1] y estandarización por canal. El tensor resultante tiene forma
(1, H, W, 3), recorrido por filas y con el canal como dimensión más interna.

IMPORTANTE:
    La red no detecta desajustes de preprocesado. Una media/std o un layout
    distintos a los del entrenamiento degradan la clasificación sin lanzar
    ningún error, por lo que estos parámetros forman parte de la
    configuración del modelo y no deben modificarse por separado.
"""

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from ..exceptions import InvalidInputError

RGB = Tuple[float, float, float]

# (ancho, alto) de entrada de la red por defecto
DEFAULT_TARGET_SIZE: Tuple[int, int] = (224, 224)


def _rgb(value, name: str) -> RGB:
    values = tuple(float(v) for v in value)
    if len(values) != 3:
        raise ValueError(f"{name} debe tener 3 componentes RGB, recibido: {value!r}")
    return values


@dataclass(frozen=True)
class NormalizationParams:
    """Media y desviación estándar por canal RGB, en escala [0, 1]."""
    mean: RGB = (0.285, 0.256, 0.206)
    std: RGB = (0.4, 0.4, 0.4)

    def __post_init__(self):
        object.__setattr__(self, 'mean', _rgb(self.mean, 'mean'))
        object.__setattr__(self, 'std', _rgb(self.std, 'std'))
        if any(s == 0.0 for s in self.std):
            raise ValueError(f"std no puede contener ceros: {self.std}")


def to_unit_rgb(frame) -> np.ndarray:
    """
    Valida un frame y lo convierte a RGB float32 en [0, 1].

    Formatos aceptados:
        - uint8 en [0, 255]; otros enteros en [0, máximo del tipo]
        - float en [0, 1]
        - Escala de grises (H, W) o RGBA (H, W, 4), convertidos a RGB

    Args:
        frame (np.ndarray): Frame capturado

    Returns:
        np.ndarray: Array (H, W, 3) float32

    Raises:
        InvalidInputError: Si el frame es None, está vacío, tiene una forma
                           no soportada o contiene valores no finitos
    """
    if frame is None:
        raise InvalidInputError("Frame ausente: no hay imagen que procesar")

    if not isinstance(frame, np.ndarray):
        raise InvalidInputError(
            f"El frame debe ser un np.ndarray, recibido: {type(frame).__name__}"
        )

    if frame.size == 0:
        raise InvalidInputError(f"Frame vacío con forma {frame.shape}")

    if frame.ndim == 3 and frame.shape[2] == 1:
        frame = frame[:, :, 0]

    if frame.ndim == 2:
        frame = np.repeat(frame[:, :, np.newaxis], 3, axis=2)
    elif frame.ndim == 3 and frame.shape[2] == 4:
        frame = frame[:, :, :3]
    elif frame.ndim != 3 or frame.shape[2] != 3:
        raise InvalidInputError(
            f"Forma de frame no soportada: {frame.shape}. Se espera (H, W, 3)"
        )

    if frame.dtype == np.bool_:
        raise InvalidInputError("Frame booleano no soportado")

    if np.issubdtype(frame.dtype, np.integer):
        unit = frame.astype(np.float32) / float(np.iinfo(frame.dtype).max)
    elif np.issubdtype(frame.dtype, np.floating):
        unit = frame.astype(np.float32)
        if not np.all(np.isfinite(unit)):
            raise InvalidInputError("El frame contiene valores NaN o infinitos")
    else:
        raise InvalidInputError(f"Tipo de dato no soportado: {frame.dtype}")

    return unit


def resize_frame(frame: np.ndarray, target_size: Tuple[int, int]) -> np.ndarray:
    """
    Redimensiona a exactamente (ancho, alto) con interpolación bilineal.

    El aspecto de entrada no se conserva: la red tiene una entrada fija.
    Si el frame ya tiene el tamaño objetivo se retorna una copia sin
    remuestrear.
    """
    width, height = target_size
    if frame.shape[0] == height and frame.shape[1] == width:
        return frame.copy()

    return cv2.resize(frame, (width, height), interpolation=cv2.INTER_LINEAR)


def _finalize(values: np.ndarray) -> np.ndarray:
    tensor = np.ascontiguousarray(values[np.newaxis, ...], dtype=np.float32)
    # El tensor no se modifica tras su creación
    tensor.flags.writeable = False
    return tensor


def preprocess(
    frame: np.ndarray,
    target_size: Tuple[int, int] = DEFAULT_TARGET_SIZE,
    normalization: NormalizationParams = NormalizationParams()
) -> np.ndarray:
    """
    Convierte un frame RGB en el tensor normalizado de entrada de la red.

    Proceso:
    1. Validación y conversión a float RGB en [0, 1]
    2. Redimensionado bilineal a `target_size` (ancho, alto)
    3. Estandarización por canal: (valor - mean) / std
    4. Añade la dimensión de batch: (1, H, W, 3)

    Args:
        frame (np.ndarray): Frame RGB (H, W, 3)
        target_size (tuple): (ancho, alto) de entrada de la red
        normalization (NormalizationParams): Media y std por canal

    Returns:
        np.ndarray: Tensor float32 de solo lectura con forma (1, H, W, 3)

    Raises:
        InvalidInputError: Si el frame es ausente o inválido

    Example:
        >>> frame = np.full((480, 640, 3), 128, dtype=np.uint8)
        >>> preprocess(frame, (224, 224)).shape
        (1, 224, 224, 3)
    """
    unit = to_unit_rgb(frame)
    resized = resize_frame(unit, target_size)

    mean = np.asarray(normalization.mean, dtype=np.float32)
    std = np.asarray(normalization.std, dtype=np.float32)

    return _finalize((resized - mean) / std)


def frame_to_tensor(
    frame: np.ndarray,
    target_size: Tuple[int, int] = (256, 256),
    normalize_pixels: bool = True
) -> np.ndarray:
    """
    Convierte un frame en tensor (1, H, W, 3) sin estandarizar.

    Variante usada por modelos entrenados directamente sobre píxeles.

    Args:
        frame (np.ndarray): Frame RGB (H, W, 3)
        target_size (tuple): (ancho, alto) de salida
        normalize_pixels (bool): True para valores en [0, 1], False para [0, 255]

    Returns:
        np.ndarray: Tensor float32 de solo lectura
    """
    resized = resize_frame(to_unit_rgb(frame), target_size)
    if not normalize_pixels:
        resized = resized * 255.0
    return _finalize(resized)
