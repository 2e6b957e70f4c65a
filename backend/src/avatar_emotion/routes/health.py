"""
Blueprint para endpoints de salud y monitoreo de la API.
"""

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Endpoint de verificación de estado del servicio.

    Response:
        {
            "status": "ok",
            "model_loaded": false
        }
    """
    return jsonify({
        'status': 'ok',
        'model_loaded': current_app.config.get('EMOTION_ANALYZER') is not None
    }), 200
