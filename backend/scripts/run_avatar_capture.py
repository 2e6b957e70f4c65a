#!/usr/bin/env python3
"""
Bucle de captura emocional sobre webcam, vídeo o carpeta de imágenes.

Procesa uno de cada `process_every` pasos (por defecto, pasos pares),
muestra la lectura como texto de depuración y, opcionalmente, en una
ventana con overlay y guarda cada captura clasificada en disco.

Uso:
    python backend/scripts/run_avatar_capture.py --model models/va_model.pt
    python backend/scripts/run_avatar_capture.py --model va.pt --video avatar.mp4 --show
    python backend/scripts/run_avatar_capture.py --config config.json --images captures/ --save

Controles (con --show):
    - Presiona 'q' para salir
"""

import sys
import os
import argparse
import logging
from dataclasses import replace

# Añadir el directorio src al path para poder importar módulos
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import cv2

from avatar_emotion.camera import ImageSequenceSource, WebcamCapture, draw_reading
from avatar_emotion.config import apply_preset, load_config
from avatar_emotion.exceptions import InferenceError
from avatar_emotion.pipeline import EmotionPipeline, initialize
from avatar_emotion.utils import PerformanceMetrics

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def build_config(args):
    """Combina el JSON de configuración con los argumentos de línea de comandos."""
    config = load_config(args.config)
    analyzer = config.analyzer
    pipeline = config.pipeline

    if args.preset:
        analyzer = apply_preset(analyzer, args.preset)
    if args.model:
        analyzer = replace(analyzer, model_path=args.model)
    if args.device:
        analyzer = replace(analyzer, device=args.device)
    if args.save:
        pipeline = replace(pipeline, save_captures=True)
    if args.output_dir:
        pipeline = replace(pipeline, output_dir=args.output_dir)

    return replace(config, analyzer=analyzer, pipeline=pipeline)


def build_source(args, pipeline_config):
    if args.images:
        return ImageSequenceSource.from_directory(args.images)
    if args.video:
        return WebcamCapture(args.video, resolution=None)
    return WebcamCapture(pipeline_config.camera_index)


def print_reading(reading):
    print("-" * 30)
    print(reading.format_display())


def main():
    parser = argparse.ArgumentParser(description='Captura emocional del avatar por pasos')
    parser.add_argument('--config', type=str, default=None, help='JSON de configuración')
    parser.add_argument('--preset', choices=['emotion_analyzer', 'emonet'], default=None,
                        help='Variante de red (tamaño de entrada y normalización)')
    parser.add_argument('--model', type=str, default=None, help='Ruta del modelo TorchScript')
    parser.add_argument('--device', type=str, default=None, help="Dispositivo torch ('cpu', 'cuda')")
    parser.add_argument('--video', type=str, default=None, help='Archivo de vídeo en lugar de webcam')
    parser.add_argument('--images', type=str, default=None, help='Carpeta de imágenes en lugar de webcam')
    parser.add_argument('--max-steps', type=int, default=None, help='Número máximo de pasos')
    parser.add_argument('--show', action='store_true', help='Mostrar ventana con overlay')
    parser.add_argument('--save', action='store_true', help='Guardar capturas clasificadas')
    parser.add_argument('--output-dir', type=str, default=None, help='Directorio de capturas')
    parser.add_argument('--metrics', action='store_true', help='Mostrar resumen de latencias al salir')
    args = parser.parse_args()

    print("=" * 70)
    print("Captura Emocional del Avatar - Valencia/Activación")
    print("=" * 70)

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuración inválida: {e}")
        sys.exit(1)

    metrics = PerformanceMetrics() if args.metrics else None

    try:
        analyzer = initialize(config.analyzer, metrics=metrics)
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(f"No se pudo cargar el modelo: {e}")
        sys.exit(1)

    source = build_source(args, config.pipeline)
    pipeline = EmotionPipeline(source, analyzer, config.pipeline, display=print_reading)

    step = 0
    failed_steps = 0
    try:
        pipeline.start()

        while args.max_steps is None or step < args.max_steps:
            step += 1
            try:
                pipeline.tick()
            except InferenceError as e:
                # El paso falla, el siguiente es independiente
                failed_steps += 1
                logger.error(f"Paso {step}: fallo de inferencia: {e}")
                continue

            if source.exhausted():
                print("\n✓ Fuente agotada")
                break

            if args.show:
                latest = pipeline.frame_buffer.latest()
                if latest is not None:
                    frame_bgr = cv2.cvtColor(latest, cv2.COLOR_RGB2BGR)
                    if pipeline.last_reading is not None:
                        frame_bgr = draw_reading(frame_bgr, pipeline.last_reading)
                    cv2.imshow('Captura Emocional del Avatar', frame_bgr)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    print("\n✓ Saliendo...")
                    break

        print(f"\n✓ Pasos ejecutados: {step} (fallos de inferencia: {failed_steps})")

    except RuntimeError as e:
        logger.error(f"Error: {e}")
        print("\nSoluciones posibles:")
        print("  1. Verifica que la webcam esté conectada")
        print("  2. Asegúrate de que ninguna otra aplicación esté usando la cámara")
        print("  3. Verifica la ruta del vídeo o de la carpeta de imágenes")
        sys.exit(1)

    except KeyboardInterrupt:
        print("\n\n✓ Interrumpido por el usuario")

    finally:
        pipeline.stop()
        if args.show:
            cv2.destroyAllWindows()
        if metrics is not None:
            metrics.print_summary()
        print("✓ Recursos liberados correctamente")


if __name__ == "__main__":
    main()
