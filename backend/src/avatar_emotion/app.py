"""
Aplicación principal del backend - Captura emocional del avatar.

Este módulo implementa la API REST Flask que expone el pipeline de
clasificación emocional por Valencia-Activación.

La API proporciona endpoints para:
- Clasificación desde la cámara del servidor (lazy initialization)
- Clasificación desde una imagen enviada
- Consulta de la tabla de decisión activa
- Monitoreo de salud del servicio

IMPORTANTE: Ni el modelo ni la cámara se inicializan al arrancar.
Solo se cargan cuando se necesitan (/emotion o /emotion-from-frame).
"""

import logging

from flask import Flask
from flask_cors import CORS

from .config import load_config
from .routes import emotion_bp, health_bp

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def create_app(config=None):
    """
    Factory function para crear y configurar la aplicación Flask.

    Args:
        config (dict, optional): Configuración custom. Claves reconocidas:
            - CAPTURE_CONFIG: CaptureConfig (por defecto, load_config())
            - EMOTION_ANALYZER: Analizador ya construido (tests, stubs)
            - INCLUDE_METRICS: Incluir processing_time_ms en las respuestas

    Returns:
        Flask: Aplicación Flask configurada

    Example:
        >>> app = create_app()
        >>> app.run(debug=True, port=5000)
    """
    app = Flask(__name__)

    # Configuración por defecto
    app.config['DEBUG'] = False
    app.config['HOST'] = '0.0.0.0'
    app.config['PORT'] = 5000
    app.config['INCLUDE_METRICS'] = False

    # Placeholders para lazy initialization
    app.config['EMOTION_ANALYZER'] = None
    app.config['EMOTION_PIPELINE'] = None

    if config:
        app.config.update(config)

    if app.config.get('CAPTURE_CONFIG') is None:
        app.config['CAPTURE_CONFIG'] = load_config()

    CORS(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(emotion_bp)

    logger.info("Sistema iniciado (lazy initialization activa)")
    return app


def shutdown_resources(app):
    """Libera el pipeline (cámara) y el modelo si fueron creados."""
    pipeline = app.config.get('EMOTION_PIPELINE')
    analyzer = app.config.get('EMOTION_ANALYZER')

    if pipeline is not None:
        try:
            pipeline.stop()
            logger.info("Pipeline emocional detenido")
        except Exception as e:
            logger.error(f"Error al detener pipeline: {e}")
    elif analyzer is not None:
        analyzer.close()
        logger.info("Analizador emocional liberado")

    app.config['EMOTION_PIPELINE'] = None
    app.config['EMOTION_ANALYZER'] = None


def main():
    """
    Ejecuta el servidor de desarrollo.

    La configuración se lee del JSON indicado en AVATAR_EMOTION_CONFIG.

    Example:
        $ AVATAR_EMOTION_CONFIG=config.json avatar-emotion-api
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print("=" * 70)
    print(f"Backend - Captura Emocional del Avatar v{__version__}")
    print("=" * 70)

    app = create_app()

    print("\nEndpoints disponibles:")
    print("  GET  /health                - Verificación de estado")
    print("  POST /emotion               - Clasificar emoción (cámara servidor)")
    print("  POST /emotion-from-frame    - Clasificar emoción desde imagen enviada")
    print("  GET  /emotion/rules         - Tabla de decisión activa")
    print("\n" + "=" * 70)
    print(f"Servidor iniciando en http://{app.config['HOST']}:{app.config['PORT']}")
    print("=" * 70 + "\n")

    try:
        app.run(
            host=app.config['HOST'],
            port=app.config['PORT'],
            debug=app.config['DEBUG']
        )
    finally:
        shutdown_resources(app)


if __name__ == "__main__":
    main()
