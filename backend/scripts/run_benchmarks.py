#!/usr/bin/env python3
"""
Benchmark de latencia del analizador emocional.

Ejecuta N pasos del analizador sobre frames sintéticos (o imágenes reales)
y mide cada etapa: preprocesado, inferencia y clasificación.

Uso:
    python backend/scripts/run_benchmarks.py --model va.pt [--iterations N]
    python backend/scripts/run_benchmarks.py --model va.pt --images faces/ --save
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
from avatar_emotion.config import load_config
from avatar_emotion.pipeline import initialize
from avatar_emotion.utils import PerformanceMetrics

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def load_frames(images_dir, resolution, seed):
    """Imágenes reales de una carpeta, o un frame aleatorio de la resolución dada."""
    if images_dir:
        frames = [load_image_rgb(p) for p in list_images(images_dir)]
        frames = [f for f in frames if f is not None]
        if frames:
            return frames
        logger.warning(f"No se cargaron imágenes de {images_dir}, usando frames sintéticos")

    rng = np.random.default_rng(seed)
    width, height = resolution
    return [rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)]


def main():
    parser = argparse.ArgumentParser(description='Benchmark de latencia del analizador emocional')
    parser.add_argument('--config', type=str, default=None, help='JSON de configuración')
    parser.add_argument('--model', type=str, default=None, help='Ruta del modelo TorchScript')
    parser.add_argument('--iterations', type=int, default=50, help='Pasos a medir')
    parser.add_argument('--warmup', type=int, default=5, help='Pasos de calentamiento (no medidos)')
    parser.add_argument('--images', type=Path, default=None, help='Carpeta de imágenes reales')
    parser.add_argument('--resolution', type=int, nargs=2, default=[640, 480],
                        metavar=('WIDTH', 'HEIGHT'), help='Resolución de los frames sintéticos')
    parser.add_argument('--seed', type=int, default=42)
    parser.add_argument('--save', action='store_true', help='Guardar CSV/JSON de métricas')
    parser.add_argument('--output-dir', type=Path, default=Path('metrics'))
    args = parser.parse_args()

    config = load_config(args.config)
    analyzer_config = config.analyzer
    if args.model:
        analyzer_config = replace(analyzer_config, model_path=args.model)

    frames = load_frames(args.images, args.resolution, args.seed)
    metrics = PerformanceMetrics(args.output_dir)

    print(f"\n{'='*70}")
    print(f"BENCHMARK DEL ANALIZADOR - {args.iterations} iteraciones")
    print(f"{'='*70}\n")

    with initialize(analyzer_config) as analyzer:
        for i in range(args.warmup):
            analyzer.step(frames[i % len(frames)])

        analyzer.metrics = metrics
        for i in range(args.iterations):
            reading = analyzer.step(frames[i % len(frames)])
            if (i + 1) % 10 == 0 or (i + 1) == args.iterations:
                total = sum(metrics.last(stage) for stage in ('preprocess', 'inference', 'classify'))
                print(f"  [{i+1}/{args.iterations}] {total*1000:.2f} ms - {reading.label}")

    metrics.print_summary()

    if args.save:
        metrics.save_to_csv()
        metrics.save_to_json()


if __name__ == "__main__":
    main()
