"""
Blueprint para endpoints de clasificación emocional.

Proporciona endpoints para clasificar el estado emocional a partir de la
cámara del servidor o de una imagen enviada por el cliente, y para consultar
la tabla de decisión activa.
"""

import threading

import cv2
import numpy as np
from flask import Blueprint, current_app, jsonify, request

from ..camera.webcam import WebcamCapture
from ..exceptions import InferenceError, InvalidInputError
from ..pipeline.analyzer import initialize
from ..pipeline.emotion_pipeline import EmotionPipeline
from ..utils.metrics import ANALYZER_STAGES, get_metrics
from ..va.rules import rules_to_config

emotion_bp = Blueprint('emotion', __name__)

# Lock global para thread-safety en lazy initialization
_init_lock = threading.Lock()

# Un solo paso de análisis a la vez: cámara, buffer, modelo y métricas son compartidos
_step_lock = threading.Lock()


def _get_or_create_analyzer():
    """
    Obtiene el analizador emocional o lo crea (lazy initialization).

    Raises:
        FileNotFoundError: Si no hay modelo configurado o no existe
    """
    analyzer = current_app.config.get('EMOTION_ANALYZER')
    if analyzer is not None:
        return analyzer

    with _init_lock:
        analyzer = current_app.config.get('EMOTION_ANALYZER')
        if analyzer is not None:
            return analyzer

        current_app.logger.info("[LAZY INIT] Cargando modelo de Valencia-Activación...")
        capture_config = current_app.config['CAPTURE_CONFIG']
        analyzer = initialize(capture_config.analyzer, metrics=get_metrics())
        current_app.config['EMOTION_ANALYZER'] = analyzer
        current_app.logger.info("[LAZY INIT] Analizador emocional inicializado")
        return analyzer


def _get_or_create_pipeline():
    """
    Obtiene el pipeline con la cámara del servidor o lo crea.

    Raises:
        RuntimeError: Si no se puede abrir la cámara
        FileNotFoundError: Si no hay modelo disponible
    """
    pipeline = current_app.config.get('EMOTION_PIPELINE')
    if pipeline is not None:
        return pipeline

    analyzer = _get_or_create_analyzer()

    with _init_lock:
        pipeline = current_app.config.get('EMOTION_PIPELINE')
        if pipeline is not None:
            return pipeline

        capture_config = current_app.config['CAPTURE_CONFIG']
        camera = WebcamCapture(capture_config.pipeline.camera_index)
        pipeline = EmotionPipeline(camera, analyzer, capture_config.pipeline)
        pipeline.start()
        current_app.config['EMOTION_PIPELINE'] = pipeline
        current_app.logger.info("[LAZY INIT] Pipeline con cámara iniciado")
        return pipeline


def _reading_response(reading):
    response = reading.to_dict(decimals=2)
    response['display'] = reading.format_display()

    if current_app.config.get('INCLUDE_METRICS', False):
        metrics = get_metrics()
        durations = [metrics.last(stage) for stage in ANALYZER_STAGES]
        if all(d is not None for d in durations):
            response['processing_time_ms'] = round(sum(durations) * 1000, 2)

    return response


def _error(error: str, message: str, status: int):
    return jsonify({'error': error, 'message': message}), status


def _internal_error(error: str, e: Exception):
    current_app.logger.error(f"{error}: {e}", exc_info=True)
    message = str(e) if current_app.debug else 'Error interno del servidor'
    return _error(error, message, 500)


@emotion_bp.route('/emotion', methods=['POST'])
def detect_emotion():
    """
    Clasifica el estado emocional con un frame de la cámara del servidor.

    Response:
        {
            "emotion": "happy",
            "valence": 0.34,
            "arousal": 0.41,
            "display": "Valence: 0.34\\nArousal: 0.41\\nEmotion: happy"
        }

    Error cases:
        - 503: Modelo no disponible o la cámara no entregó frame
        - 500: Cámara no disponible o fallo de inferencia
    """
    try:
        pipeline = _get_or_create_pipeline()
    except FileNotFoundError as e:
        return _error('Modelo no disponible', str(e), 503)
    except RuntimeError as e:
        return _error('No se pudo acceder a la cámara del servidor', str(e), 500)

    try:
        with _step_lock:
            reading = pipeline.process_next()
            response = _reading_response(reading) if reading is not None else None
    except InferenceError as e:
        return _internal_error('Error de inferencia', e)
    except Exception as e:
        return _internal_error('Error al clasificar emoción', e)

    if reading is None:
        return _error('Sin frame', 'La cámara no entregó un frame válido', 503)

    return jsonify(response), 200


@emotion_bp.route('/emotion-from-frame', methods=['POST'])
def detect_emotion_from_frame():
    """
    Clasifica el estado emocional de una imagen enviada por el cliente.

    Request:
        - Content-Type: multipart/form-data
        - Campo: "image" (archivo jpeg/png)

    Error cases:
        - 400: Falta el campo "image", archivo vacío o formato inválido
        - 503: Modelo no disponible
        - 500: Fallo de inferencia o error interno
    """
    if 'image' not in request.files:
        return _error('Falta el campo "image"', 'Debes enviar una imagen en el campo "image"', 400)

    file = request.files['image']
    if file.filename == '':
        return _error('Archivo vacío', 'El campo "image" no contiene un archivo válido', 400)

    file_bytes = file.read()
    if not file_bytes:
        return _error('Archivo vacío', 'El archivo enviado no contiene datos', 400)

    frame_bgr = cv2.imdecode(np.frombuffer(file_bytes, np.uint8), cv2.IMREAD_COLOR)
    if frame_bgr is None:
        return _error(
            'Formato de imagen inválido',
            'No se pudo decodificar la imagen. Usa formato JPEG o PNG',
            400
        )
    frame = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

    try:
        analyzer = _get_or_create_analyzer()
    except FileNotFoundError as e:
        return _error('Modelo no disponible', str(e), 503)

    try:
        with _step_lock:
            reading = analyzer.step(frame)
            response = _reading_response(reading)
    except InvalidInputError as e:
        return _error('Imagen inválida', str(e), 400)
    except InferenceError as e:
        return _internal_error('Error de inferencia', e)
    except Exception as e:
        return _internal_error('Error al procesar la imagen', e)

    return jsonify(response), 200


@emotion_bp.route('/emotion/rules', methods=['GET'])
def get_rules():
    """
    Retorna la tabla de decisión y los offsets activos.

    Response:
        {
            "rules": [{"label": "neutral", "valence": {...}, "arousal": {...}}, ...],
            "offsets": {"valence": 0.0, "arousal": 0.0},
            "default": "neutral"
        }
    """
    analyzer_config = current_app.config['CAPTURE_CONFIG'].analyzer
    return jsonify({
        'rules': rules_to_config(analyzer_config.rules),
        'offsets': {
            'valence': analyzer_config.offsets.valence,
            'arousal': analyzer_config.offsets.arousal
        },
        'default': 'neutral'
    }), 200
