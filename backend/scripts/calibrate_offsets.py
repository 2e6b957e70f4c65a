#!/usr/bin/env python3
"""
Calibración de offsets de Valencia-Activación.

Ejecuta el modelo sobre un conjunto de imágenes con expresión neutral (con
offsets a cero) y calcula los offsets que re-centran la lectura media en el
origen. El resultado se escribe como JSON de configuración.

Uso:
    python backend/scripts/calibrate_offsets.py --model va.pt --images neutral_faces/
    python backend/scripts/calibrate_offsets.py --config config.json --images neutral/ --output config_calibrated.json
"""

import sys
import os
import argparse
import logging
from dataclasses import replace
from pathlib import Path

# Añadir el directorio src al path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np

from avatar_emotion.camera.image_source import list_images, load_image_rgb
from avatar_emotion.config import load_config, save_config
from avatar_emotion.exceptions import InferenceError, InvalidInputError
from avatar_emotion.pipeline import initialize
from avatar_emotion.va import OffsetParams

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def collect_raw_values(analyzer, image_paths):
    """
    Ejecuta el analizador (sin offsets) sobre cada imagen.

    Returns:
        np.ndarray: Array (N, 2) con (valence, arousal) por imagen válida
    """
    values = []
    for i, path in enumerate(image_paths):
        frame = load_image_rgb(path)
        if frame is None:
            logger.warning(f"  [{i+1}/{len(image_paths)}] No se pudo cargar: {path}")
            continue
        try:
            reading = analyzer.step(frame)
        except (InvalidInputError, InferenceError) as e:
            logger.error(f"  [{i+1}/{len(image_paths)}] Error en {path.name}: {e}")
            continue
        values.append((reading.valence, reading.arousal))

    return np.asarray(values, dtype=np.float64).reshape(-1, 2)


def compute_offsets(values: np.ndarray) -> OffsetParams:
    """Offsets que llevan la media de las lecturas al origen."""
    if values.size == 0:
        raise ValueError("No hay lecturas válidas para calibrar")
    mean_v, mean_a = values.mean(axis=0)
    return OffsetParams(valence=round(-float(mean_v), 4), arousal=round(-float(mean_a), 4))


def main():
    parser = argparse.ArgumentParser(description='Calibrar offsets de Valencia-Activación')
    parser.add_argument('--config', type=str, default=None, help='JSON de configuración base')
    parser.add_argument('--model', type=str, default=None, help='Ruta del modelo TorchScript')
    parser.add_argument('--images', type=Path, required=True, help='Carpeta de imágenes neutrales')
    parser.add_argument('--output', type=Path, default=Path('config_calibrated.json'),
                        help='JSON de salida con los offsets calibrados')
    args = parser.parse_args()

    config = load_config(args.config)
    analyzer_config = replace(config.analyzer, offsets=OffsetParams())
    if args.model:
        analyzer_config = replace(analyzer_config, model_path=args.model)

    image_paths = list_images(args.images)
    if not image_paths:
        logger.error(f"No hay imágenes en {args.images}")
        sys.exit(1)

    logger.info(f"Calibrando con {len(image_paths)} imágenes de {args.images}")

    with initialize(analyzer_config) as analyzer:
        values = collect_raw_values(analyzer, image_paths)

    try:
        offsets = compute_offsets(values)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    std_v, std_a = values.std(axis=0)
    logger.info(f"Lecturas válidas: {len(values)}")
    logger.info(f"Media cruda:  V={-offsets.valence:+.4f}  A={-offsets.arousal:+.4f}")
    logger.info(f"Desv. típica: V={std_v:.4f}  A={std_a:.4f}")
    logger.info(f"Offsets:      V={offsets.valence:+.4f}  A={offsets.arousal:+.4f}")

    calibrated = replace(config, analyzer=replace(config.analyzer, offsets=offsets))
    if args.model:
        calibrated = replace(calibrated, analyzer=replace(calibrated.analyzer, model_path=args.model))
    path = save_config(calibrated, args.output)
    logger.info(f"[OK] Configuración calibrada guardada en: {path}")


if __name__ == "__main__":
    main()
