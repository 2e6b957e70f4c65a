"""Fixtures compartidas para la suite de tests del backend."""

import sys
from pathlib import Path

import numpy as np
import pytest

# backend/src en el path para importar avatar_emotion sin instalar
SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from avatar_emotion.config import AnalyzerConfig, PipelineConfig  # noqa: E402
from avatar_emotion.emotion.inference import CallableEmotionModel  # noqa: E402
from avatar_emotion.pipeline import EmotionAnalyzer  # noqa: E402
from avatar_emotion.camera.base import FrameSource  # noqa: E402


class FixedModel(CallableEmotionModel):
    """Modelo stub que devuelve siempre la misma salida y cuenta las llamadas."""

    def __init__(self, output=(0.2, 0.3)):
        self.calls = []
        super().__init__(self._run, name="fixed")
        self.output = output

    def _run(self, tensor):
        self.calls.append(tensor)
        return self.output


class ListSource(FrameSource):
    """Fuente de frames que entrega una lista y después None."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.captured = 0
        self.started = False
        self.released = False

    def start(self):
        self.started = True

    def capture_frame(self):
        if self.captured >= len(self.frames):
            return None
        frame = self.frames[self.captured]
        self.captured += 1
        return frame

    def release(self):
        self.released = True


@pytest.fixture
def rgb_frame():
    """Frame RGB uint8 de 480x640 con un gradiente horizontal."""
    row = np.linspace(0, 255, 640, dtype=np.uint8)
    frame = np.repeat(row[np.newaxis, :, np.newaxis], 3, axis=2)
    return np.repeat(frame, 480, axis=0)


@pytest.fixture
def fixed_model():
    return FixedModel()


@pytest.fixture
def analyzer(fixed_model):
    return EmotionAnalyzer(AnalyzerConfig(), fixed_model)


@pytest.fixture
def pipeline_config():
    return PipelineConfig()


@pytest.fixture
def make_source():
    return ListSource
