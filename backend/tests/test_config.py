"""Tests de la configuración inmutable y su carga desde JSON."""

import dataclasses
import json

import pytest

from avatar_emotion.config import (
    CONFIG_ENV_VAR,
    AnalyzerConfig,
    CaptureConfig,
    PipelineConfig,
    apply_preset,
    config_from_dict,
    config_to_dict,
    get_preset,
    load_config,
    save_config,
)
from avatar_emotion.emotion.preprocessing import NormalizationParams
from avatar_emotion.va import DEFAULT_RULES, OffsetParams


def test_defaults():
    config = CaptureConfig()
    assert config.analyzer.target_size == (224, 224)
    assert config.analyzer.normalization == NormalizationParams((0.285, 0.256, 0.206), (0.4, 0.4, 0.4))
    assert config.analyzer.offsets == OffsetParams(0.0, 0.0)
    assert config.analyzer.rules == DEFAULT_RULES
    assert config.pipeline.process_every == 2
    assert config.pipeline.buffer_capacity == 10
    assert config.pipeline.evict_batch == 5


def test_config_is_immutable():
    config = AnalyzerConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.device = "cuda"


@pytest.mark.parametrize("kwargs", [
    {"target_size": (0, 224)},
    {"input_layout": "hwc"},
    {"rules": ()},
])
def test_invalid_analyzer_config(kwargs):
    with pytest.raises(ValueError):
        AnalyzerConfig(**kwargs)


@pytest.mark.parametrize("kwargs", [
    {"process_every": 0},
    {"buffer_capacity": 0},
    {"evict_batch": 11},
])
def test_invalid_pipeline_config(kwargs):
    with pytest.raises(ValueError):
        PipelineConfig(**kwargs)


def test_emonet_preset():
    preset = get_preset("emonet")
    assert preset.target_size == (256, 256)
    assert preset.normalization.mean == (0.0, 0.0, 0.0)
    assert preset.normalization.std == (1.0, 1.0, 1.0)
    with pytest.raises(ValueError):
        get_preset("resnet")


def test_partial_dict_keeps_defaults():
    config = config_from_dict({
        "analyzer": {"model_path": "va.pt", "offsets": {"valence": 0.1}},
        "pipeline": {"save_captures": True},
    })
    assert config.analyzer.model_path == "va.pt"
    assert config.analyzer.offsets == OffsetParams(valence=0.1, arousal=0.0)
    assert config.analyzer.target_size == (224, 224)
    assert config.pipeline.save_captures is True
    assert config.pipeline.process_every == 2


def test_preset_in_dict():
    config = config_from_dict({"analyzer": {"preset": "emonet", "model_path": "emonet.pt"}})
    assert config.analyzer.target_size == (256, 256)
    assert config.analyzer.model_path == "emonet.pt"


def test_custom_rules_in_dict():
    config = config_from_dict({"analyzer": {"rules": [
        {"label": "happy", "valence": ["gt", 0.0], "arousal": ["gt", 0.0]},
    ]}})
    assert len(config.analyzer.rules) == 1
    assert config.analyzer.rules[0].label == "happy"


@pytest.mark.parametrize("data", [
    {"unknown": {}},
    {"analyzer": {"modelpath": "x"}},
    {"analyzer": {"offsets": {"v": 0.1}}},
    {"pipeline": {"fps": 30}},
])
def test_unknown_keys_are_rejected(data):
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_dict_round_trip():
    config = config_from_dict({
        "analyzer": {"offsets": {"valence": -0.05, "arousal": 0.02}, "input_layout": "nchw"},
        "pipeline": {"camera_index": 1},
    })
    assert config_from_dict(config_to_dict(config)) == config


def test_save_and_load(tmp_path):
    config = CaptureConfig(analyzer=AnalyzerConfig(model_path="models/va.pt"))
    path = save_config(config, tmp_path / "nested" / "config.json")
    assert json.loads(path.read_text(encoding="utf-8"))["analyzer"]["model_path"] == "models/va.pt"
    assert load_config(path) == config


def test_load_from_env(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"pipeline": {"process_every": 3}}), encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config().pipeline.process_every == 3


def test_load_defaults_without_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert load_config() == CaptureConfig()


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(broken)


def test_apply_preset_keeps_other_fields():
    base = AnalyzerConfig(
        model_path="emonet.pt",
        device="cuda",
        input_layout="nchw",
        offsets=OffsetParams(0.05, -0.02),
        log_interval=10.0,
    )
    config = apply_preset(base, "emonet")

    assert config.target_size == (256, 256)
    assert config.normalization == get_preset("emonet").normalization
    assert config.input_layout == "nchw"
    assert config.log_interval == 10.0
    assert config.device == "cuda"
    assert config.offsets == OffsetParams(0.05, -0.02)
    assert config.model_path == "emonet.pt"


@pytest.mark.parametrize("data", [
    {"pipeline": "2"},
    {"pipeline": 5},
    {"pipeline": {"process_every": "2"}},
    {"pipeline": {"save_captures": "yes"}},
    {"pipeline": {"buffer_capacity": 10.5}},
    {"analyzer": {"target_size": None}},
    {"analyzer": {"offsets": {"valence": None}}},
    ["analyzer"],
])
def test_wrong_value_types_are_value_errors(data):
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_invalid_json_keeps_cause(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{\"pipeline\": ", encoding="utf-8")
    with pytest.raises(ValueError) as excinfo:
        load_config(broken)
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)
