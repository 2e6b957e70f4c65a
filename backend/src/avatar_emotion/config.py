"""
Configuración del sistema de captura emocional.

Toda la configuración es inmutable y se pasa explícitamente a los
componentes al construirlos; no existe estado global de configuración.

Los valores por defecto corresponden al modelo de Valencia-Activación de
entrada 224x224 con los parámetros de normalización calibrados para el
avatar. El preset `emonet` corresponde a la variante de 256x256 que recibe
píxeles en [0, 1] sin estandarizar y expone además una cabeza de expresión.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from .emotion.preprocessing import NormalizationParams
from .va.classifier import OffsetParams
from .va.rules import DEFAULT_RULES, EmotionRule, rules_from_config, rules_to_config

# Variable de entorno con la ruta del JSON de configuración (API Flask)
CONFIG_ENV_VAR = "AVATAR_EMOTION_CONFIG"


@dataclass(frozen=True)
class AnalyzerConfig:
    """
    Configuración del analizador (preprocesado + inferencia + clasificación).

    Attributes:
        model_path: Ruta al modelo TorchScript (None si se inyecta el modelo)
        device: Dispositivo torch ('cpu', 'cuda', 'cuda:0'...)
        input_layout: 'nhwc' (tensor tal cual) o 'nchw' (se transpone)
        target_size: (ancho, alto) de entrada de la red
        normalization: Media/std por canal
        offsets: Sesgos de valencia y activación
        rules: Tabla de decisión ordenada
        log_interval: Segundos mínimos entre logs de valores crudos
    """
    model_path: Optional[str] = None
    device: str = "cpu"
    input_layout: str = "nhwc"
    target_size: Tuple[int, int] = (224, 224)
    normalization: NormalizationParams = field(default_factory=NormalizationParams)
    offsets: OffsetParams = field(default_factory=OffsetParams)
    rules: Tuple[EmotionRule, ...] = DEFAULT_RULES
    log_interval: float = 3.0

    def __post_init__(self):
        width, height = (int(v) for v in self.target_size)
        if width <= 0 or height <= 0:
            raise ValueError(f"target_size debe ser positivo: {self.target_size}")
        object.__setattr__(self, 'target_size', (width, height))
        if self.input_layout not in ('nhwc', 'nchw'):
            raise ValueError(f"input_layout inválido: {self.input_layout}")
        object.__setattr__(self, 'rules', tuple(self.rules))
        if not self.rules:
            raise ValueError("La tabla de reglas no puede estar vacía")


@dataclass(frozen=True)
class PipelineConfig:
    """
    Configuración de la orquestación captura → clasificación.

    Attributes:
        process_every: Procesar uno de cada N pasos (2 = pasos pares)
        buffer_capacity: Frames recientes retenidos como máximo
        evict_batch: Frames más antiguos descartados al llenarse el buffer
        save_captures: Guardar cada frame clasificado en disco
        output_dir: Directorio de capturas guardadas
        camera_index: Índice de webcam (o ruta de vídeo) para la API
    """
    process_every: int = 2
    buffer_capacity: int = 10
    evict_batch: int = 5
    save_captures: bool = False
    output_dir: str = "output/captures"
    camera_index: Union[int, str] = 0

    def __post_init__(self):
        for name in ('process_every', 'buffer_capacity', 'evict_batch'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} debe ser un entero, recibido: {value!r}")
        if not isinstance(self.save_captures, bool):
            raise ValueError(f"save_captures debe ser booleano, recibido: {self.save_captures!r}")
        if isinstance(self.camera_index, bool) or not isinstance(self.camera_index, (int, str)):
            raise ValueError(f"camera_index debe ser un índice o una ruta, recibido: {self.camera_index!r}")
        if self.process_every < 1:
            raise ValueError("process_every debe ser >= 1")
        if self.buffer_capacity < 1:
            raise ValueError("buffer_capacity debe ser >= 1")
        if not 1 <= self.evict_batch <= self.buffer_capacity:
            raise ValueError("evict_batch debe estar entre 1 y buffer_capacity")


@dataclass(frozen=True)
class CaptureConfig:
    """Configuración completa: analizador + pipeline."""
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


# Presets por variante de red
MODEL_PRESETS: Dict[str, AnalyzerConfig] = {
    'emotion_analyzer': AnalyzerConfig(),
    'emonet': AnalyzerConfig(
        target_size=(256, 256),
        normalization=NormalizationParams(mean=(0.0, 0.0, 0.0), std=(1.0, 1.0, 1.0)),
    ),
}


def get_preset(name: str) -> AnalyzerConfig:
    """
    Retorna la configuración base de una variante de red.

    Raises:
        ValueError: Si el preset no existe
    """
    if name not in MODEL_PRESETS:
        raise ValueError(
            f"Preset '{name}' no existe. Presets disponibles: {list(MODEL_PRESETS)}"
        )
    return MODEL_PRESETS[name]


def apply_preset(config: AnalyzerConfig, name: str) -> AnalyzerConfig:
    """
    Cambia la variante de red (tamaño de entrada y normalización) de una
    configuración, conservando el resto de campos.

    Raises:
        ValueError: Si el preset no existe
    """
    preset = get_preset(name)
    return replace(
        config,
        target_size=preset.target_size,
        normalization=preset.normalization,
    )


def _check_keys(data: Mapping, allowed, section: str):
    unknown = set(data) - set(allowed)
    if unknown:
        raise ValueError(f"Claves desconocidas en '{section}': {sorted(unknown)}")


def analyzer_config_from_dict(data: Mapping) -> AnalyzerConfig:
    """
    Construye un AnalyzerConfig desde un dict; las claves ausentes mantienen
    el valor por defecto (o el del preset indicado en `preset`).
    """
    allowed = {f.name for f in fields(AnalyzerConfig)} | {'preset'}
    _check_keys(data, allowed, 'analyzer')

    base = get_preset(data['preset']) if 'preset' in data else AnalyzerConfig()
    changes = {}

    for key in ('model_path', 'device', 'input_layout', 'log_interval'):
        if key in data:
            changes[key] = data[key]
    if 'target_size' in data:
        changes['target_size'] = tuple(data['target_size'])
    if 'normalization' in data:
        norm = data['normalization']
        _check_keys(norm, ('mean', 'std'), 'normalization')
        changes['normalization'] = NormalizationParams(
            mean=norm.get('mean', base.normalization.mean),
            std=norm.get('std', base.normalization.std),
        )
    if 'offsets' in data:
        off = data['offsets']
        _check_keys(off, ('valence', 'arousal'), 'offsets')
        changes['offsets'] = OffsetParams(
            valence=float(off.get('valence', 0.0)),
            arousal=float(off.get('arousal', 0.0)),
        )
    if 'rules' in data:
        changes['rules'] = rules_from_config(data['rules'])

    return replace(base, **changes)


def pipeline_config_from_dict(data: Mapping) -> PipelineConfig:
    """Construye un PipelineConfig desde un dict."""
    _check_keys(data, {f.name for f in fields(PipelineConfig)}, 'pipeline')
    return PipelineConfig(**data)


def config_from_dict(data: Mapping) -> CaptureConfig:
    """Construye la configuración completa desde un dict con secciones."""
    if not isinstance(data, Mapping):
        raise ValueError(f"La configuración debe ser un objeto JSON, recibido: {type(data).__name__}")
    _check_keys(data, ('analyzer', 'pipeline'), 'root')
    try:
        return CaptureConfig(
            analyzer=analyzer_config_from_dict(data.get('analyzer', {})),
            pipeline=pipeline_config_from_dict(data.get('pipeline', {})),
        )
    except TypeError as e:
        raise ValueError(f"Tipo de valor inválido en la configuración: {e}") from e


def config_to_dict(config: CaptureConfig) -> Dict[str, object]:
    """Serializa la configuración completa (inversa de config_from_dict)."""
    analyzer = config.analyzer
    return {
        'analyzer': {
            'model_path': analyzer.model_path,
            'device': analyzer.device,
            'input_layout': analyzer.input_layout,
            'target_size': list(analyzer.target_size),
            'normalization': {
                'mean': list(analyzer.normalization.mean),
                'std': list(analyzer.normalization.std),
            },
            'offsets': {
                'valence': analyzer.offsets.valence,
                'arousal': analyzer.offsets.arousal,
            },
            'rules': rules_to_config(analyzer.rules),
            'log_interval': analyzer.log_interval,
        },
        'pipeline': {f.name: getattr(config.pipeline, f.name) for f in fields(PipelineConfig)},
    }


def load_config(path: Optional[Union[str, Path]] = None) -> CaptureConfig:
    """
    Carga la configuración desde un JSON.

    Si `path` es None se usa la variable de entorno AVATAR_EMOTION_CONFIG;
    si tampoco existe, se retorna la configuración por defecto.

    Raises:
        FileNotFoundError: Si la ruta indicada no existe
        ValueError: Si el JSON contiene claves o valores inválidos
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return CaptureConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuración no encontrada: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON inválido en {path}: {e}") from e

    return config_from_dict(data)


def save_config(config: CaptureConfig, path: Union[str, Path]) -> Path:
    """Escribe la configuración en JSON y retorna la ruta."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config_to_dict(config), f, indent=2, ensure_ascii=False)
    return path
