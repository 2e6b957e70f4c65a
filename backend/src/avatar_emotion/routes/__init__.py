"""
Módulo de rutas de la API Flask.

Este paquete contiene los blueprints que definen los endpoints
de la API REST del sistema de captura emocional.
"""

from .health import health_bp
from .emotion import emotion_bp

__all__ = ['health_bp', 'emotion_bp']
