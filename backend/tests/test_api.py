"""Tests de la API Flask."""

import io
import threading
import time

import cv2
import numpy as np
import pytest

from avatar_emotion.app import create_app, shutdown_resources
from avatar_emotion.config import AnalyzerConfig, CaptureConfig
from avatar_emotion.emotion.inference import CallableEmotionModel
from avatar_emotion.pipeline import EmotionAnalyzer, EmotionPipeline
from avatar_emotion.utils import get_metrics, reset_metrics


def _png_bytes(color=(0, 0, 255)):
    image = np.zeros((48, 64, 3), dtype=np.uint8)
    image[:] = color
    ok, buffer = cv2.imencode('.png', image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def app(analyzer):
    return create_app({
        'TESTING': True,
        'CAPTURE_CONFIG': CaptureConfig(),
        'EMOTION_ANALYZER': analyzer,
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def unloaded_client():
    app = create_app({'TESTING': True, 'CAPTURE_CONFIG': CaptureConfig()})
    return app.test_client()


def test_health(client, unloaded_client):
    assert client.get('/health').get_json() == {'status': 'ok', 'model_loaded': True}
    assert unloaded_client.get('/health').get_json()['model_loaded'] is False


def test_emotion_from_frame(client, fixed_model):
    response = client.post(
        '/emotion-from-frame',
        data={'image': (io.BytesIO(_png_bytes()), 'frame.png')},
        content_type='multipart/form-data'
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body['emotion'] == 'happy'
    assert body['valence'] == 0.2
    assert body['arousal'] == 0.3
    assert body['display'] == "Valence: 0.20\nArousal: 0.30\nEmotion: happy"
    assert 'processing_time_ms' not in body

    # El decodificador entrega BGR; el analizador debe recibir RGB
    tensor = fixed_model.calls[0]
    assert tensor[0, 0, 0, 0] > tensor[0, 0, 0, 2]


def test_emotion_from_frame_with_metrics(analyzer):
    reset_metrics()
    analyzer.metrics = get_metrics()
    app = create_app({
        'TESTING': True,
        'CAPTURE_CONFIG': CaptureConfig(),
        'EMOTION_ANALYZER': analyzer,
        'INCLUDE_METRICS': True,
    })
    response = app.test_client().post(
        '/emotion-from-frame',
        data={'image': (io.BytesIO(_png_bytes()), 'frame.png')},
        content_type='multipart/form-data'
    )
    assert response.get_json()['processing_time_ms'] >= 0
    reset_metrics()


@pytest.mark.parametrize("data", [
    {},
    {'image': (io.BytesIO(b''), '')},
    {'image': (io.BytesIO(b''), 'empty.png')},
    {'image': (io.BytesIO(b'not an image'), 'frame.png')},
])
def test_emotion_from_frame_bad_requests(client, data):
    response = client.post('/emotion-from-frame', data=data, content_type='multipart/form-data')
    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_emotion_from_frame_without_model(unloaded_client):
    response = unloaded_client.post(
        '/emotion-from-frame',
        data={'image': (io.BytesIO(_png_bytes()), 'frame.png')},
        content_type='multipart/form-data'
    )
    assert response.status_code == 503


def test_emotion_from_server_camera(app, analyzer, make_source, rgb_frame):
    source = make_source([rgb_frame])
    app.config['EMOTION_PIPELINE'] = EmotionPipeline(source, analyzer)
    client = app.test_client()

    first = client.post('/emotion')
    assert first.status_code == 200
    assert first.get_json()['emotion'] == 'happy'

    # Fuente agotada: sin frame
    assert client.post('/emotion').status_code == 503

    shutdown_resources(app)
    assert source.released
    assert app.config['EMOTION_PIPELINE'] is None


def test_emotion_without_model(unloaded_client):
    assert unloaded_client.post('/emotion').status_code == 503


def test_rules_endpoint(client):
    body = client.get('/emotion/rules').get_json()
    assert [rule['label'] for rule in body['rules']] == ['neutral', 'happy', 'angry', 'sad', 'pleased']
    assert body['offsets'] == {'valence': 0.0, 'arousal': 0.0}
    assert body['default'] == 'neutral'


def test_concurrent_requests_are_serialized():
    state = {'active': 0, 'max_active': 0}
    guard = threading.Lock()

    def slow_model(_):
        with guard:
            state['active'] += 1
            state['max_active'] = max(state['max_active'], state['active'])
        time.sleep(0.02)
        with guard:
            state['active'] -= 1
        return (0.2, 0.3)

    analyzer = EmotionAnalyzer(AnalyzerConfig(), CallableEmotionModel(slow_model))
    app = create_app({
        'TESTING': True,
        'CAPTURE_CONFIG': CaptureConfig(),
        'EMOTION_ANALYZER': analyzer,
    })
    payload = _png_bytes()
    statuses = []

    def post():
        response = app.test_client().post(
            '/emotion-from-frame',
            data={'image': (io.BytesIO(payload), 'frame.png')},
            content_type='multipart/form-data'
        )
        with guard:
            statuses.append(response.status_code)

    threads = [threading.Thread(target=post) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert statuses == [200] * 4
    assert state['max_active'] == 1
