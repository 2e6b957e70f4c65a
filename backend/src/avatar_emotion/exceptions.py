"""
Excepciones propias del sistema de captura emocional.

Se distinguen dos familias de fallo dentro de un paso del pipeline:
- Entrada inválida (frame ausente, vacío o con formato incorrecto): el
  llamador debe saltarse el paso.
- Fallo de inferencia: se propaga al llamador, nunca se sustituye por una
  lectura neutral por defecto.
"""


class AvatarEmotionError(Exception):
    """Excepción base del paquete."""


class InvalidInputError(AvatarEmotionError, ValueError):
    """El frame recibido no puede convertirse en un tensor válido."""


class InferenceError(AvatarEmotionError, RuntimeError):
    """El modelo de inferencia falló o devolvió una salida no interpretable."""
