"""
Overlay de depuración sobre frames de vídeo.

Dibuja la lectura emocional (valencia, activación y etiqueta) en la esquina
superior izquierda del frame, con un fondo semitransparente.
"""

import cv2
import numpy as np

from ..emotion.schema import EmotionReading, format_reading

# Colores BGR por etiqueta
LABEL_COLORS = {
    'happy': (0, 255, 0),
    'pleased': (255, 200, 0),
    'angry': (0, 0, 255),
    'sad': (255, 100, 100),
    'neutral': (200, 200, 200),
}


def draw_reading(frame_bgr: np.ndarray, reading: EmotionReading) -> np.ndarray:
    """
    Dibuja la lectura sobre una copia del frame BGR.

    Args:
        frame_bgr (np.ndarray): Frame en formato OpenCV (BGR, uint8)
        reading (EmotionReading): Lectura a mostrar

    Returns:
        np.ndarray: Nuevo frame con el overlay
    """
    frame = frame_bgr.copy()

    overlay = frame.copy()
    cv2.rectangle(overlay, (10, 10), (330, 120), (0, 0, 0), -1)
    cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

    color = LABEL_COLORS.get(reading.label, (255, 255, 255))
    for i, line in enumerate(format_reading(reading).split('\n')):
        cv2.putText(
            frame,
            line,
            (20, 40 + i * 30),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.7,
            color if i == 2 else (255, 255, 255),
            2,
            cv2.LINE_AA
        )

    return frame
