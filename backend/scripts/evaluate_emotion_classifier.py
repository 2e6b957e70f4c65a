#!/usr/bin/env python3
"""
Evaluación del clasificador emocional con matriz de confusión.

Este script ejecuta el analizador (modelo VA + tabla de decisión) sobre un
dataset de imágenes con ground truth y calcula métricas de clasificación
sobre las cinco etiquetas del sistema. Si el CSV incluye valencia y
activación de referencia, calcula además el error de regresión.

Uso:
    python evaluate_emotion_classifier.py --dataset_csv data/avatar_ground_truth.csv --model va.pt
    python evaluate_emotion_classifier.py --dataset_csv data/gt.csv --config config.json --output_dir results/eval

Formato CSV de entrada:
    image_path,true_emotion[,true_valence,true_arousal]
    images/happy_001.png,happy,0.45,0.38
    images/sad_002.png,sad,-0.52,-0.31
    ...

Output:
    - confusion_matrix.csv (matriz cruda)
    - confusion_matrix.png (heatmap)
    - classification_report.csv (precision/recall/f1 por clase)
    - metrics_summary.json (accuracy, macro F1, error VA)
"""

import sys
import os
import argparse
import logging
import csv
import json
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

# Añadir backend/src al path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
from sklearn.metrics import (
    confusion_matrix,
    accuracy_score,
    precision_recall_fscore_support,
    mean_absolute_error,
    mean_squared_error
)

from avatar_emotion.camera.image_source import load_image_rgb
from avatar_emotion.config import load_config
from avatar_emotion.emotion.schema import EMOTION_LABELS, normalize_emotion
from avatar_emotion.exceptions import InferenceError, InvalidInputError
from avatar_emotion.pipeline import initialize

# Matplotlib para heatmap
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == '':
        return None
    return float(value)


def load_ground_truth_dataset(csv_path: Path) -> List[Dict]:
    """
    Carga dataset con ground truth emocional.

    Raises:
        FileNotFoundError: Si el CSV no existe
        ValueError: Si faltan columnas obligatorias
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV no encontrado: {csv_path}")

    dataset = []
    with open(csv_path, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)

        if 'image_path' not in reader.fieldnames or 'true_emotion' not in reader.fieldnames:
            raise ValueError("CSV debe tener columnas: image_path, true_emotion")

        for row in reader:
            dataset.append({
                'image_path': row['image_path'],
                'true_emotion': normalize_emotion(row['true_emotion']),
                'true_valence': _optional_float(row.get('true_valence')),
                'true_arousal': _optional_float(row.get('true_arousal')),
            })

    logger.info(f"Dataset cargado: {len(dataset)} imágenes desde {csv_path.name}")
    return dataset


def evaluate_analyzer(dataset: List[Dict], analyzer, base_dir: Path) -> List[Dict]:
    """
    Ejecuta el analizador sobre el dataset.

    Returns:
        Lista de dicts con ground truth y predicción por imagen procesada
    """
    results = []
    total = len(dataset)
    logger.info(f"Evaluando analizador sobre {total} imágenes...\n")

    for i, sample in enumerate(dataset):
        image_path = Path(sample['image_path'])
        if not image_path.is_absolute():
            image_path = base_dir / image_path

        frame = load_image_rgb(image_path)
        if frame is None:
            logger.warning(f"  [{i+1}/{total}] No se pudo cargar: {image_path}")
            continue

        try:
            reading = analyzer.step(frame)
        except (InvalidInputError, InferenceError) as e:
            logger.error(f"  [{i+1}/{total}] Error procesando {image_path}: {e}")
            continue

        results.append({**sample, 'reading': reading})

        if (i + 1) % 10 == 0 or (i + 1) == total:
            match = "✓" if reading.label == sample['true_emotion'] else "✗"
            logger.info(
                f"  [{i+1}/{total}] {match} True: {sample['true_emotion']:8s} | "
                f"Pred: {reading.label:8s} | V: {reading.valence:+.2f} A: {reading.arousal:+.2f}"
            )

    logger.info(f"\n[OK] Evaluación completada: {len(results)}/{total} imágenes procesadas")
    return results


def calculate_metrics(results: List[Dict]) -> Dict:
    """Calcula métricas de clasificación y, si hay referencia, de regresión VA."""
    labels = list(EMOTION_LABELS)
    y_true = [r['true_emotion'] for r in results]
    y_pred = [r['reading'].label for r in results]

    accuracy = accuracy_score(y_true, y_pred)
    precision, recall, f1, support = precision_recall_fscore_support(
        y_true, y_pred, labels=labels, zero_division=0
    )
    cm = confusion_matrix(y_true, y_pred, labels=labels)

    metrics = {
        'accuracy': float(accuracy),
        'macro_f1': float(np.mean(f1)),
        'labels': labels,
        'precision': precision.tolist(),
        'recall': recall.tolist(),
        'f1_score': f1.tolist(),
        'support': support.tolist(),
        'confusion_matrix': cm.tolist()
    }

    with_va = [
        r for r in results
        if r['true_valence'] is not None and r['true_arousal'] is not None
    ]
    if with_va:
        true_va = np.array([[r['true_valence'], r['true_arousal']] for r in with_va])
        pred_va = np.array([[r['reading'].valence, r['reading'].arousal] for r in with_va])
        metrics['va_regression'] = {
            'samples': len(with_va),
            'valence_mae': float(mean_absolute_error(true_va[:, 0], pred_va[:, 0])),
            'arousal_mae': float(mean_absolute_error(true_va[:, 1], pred_va[:, 1])),
            'valence_rmse': float(np.sqrt(mean_squared_error(true_va[:, 0], pred_va[:, 0]))),
            'arousal_rmse': float(np.sqrt(mean_squared_error(true_va[:, 1], pred_va[:, 1]))),
        }

    logger.info(f"\n{'='*60}")
    logger.info("MÉTRICAS DE CLASIFICACIÓN")
    logger.info(f"{'='*60}")
    logger.info(f"Accuracy:  {metrics['accuracy']:.3f}")
    logger.info(f"Macro F1:  {metrics['macro_f1']:.3f}")
    if 'va_regression' in metrics:
        reg = metrics['va_regression']
        logger.info(f"MAE V/A:   {reg['valence_mae']:.3f} / {reg['arousal_mae']:.3f}")
    logger.info(f"{'='*60}\n")

    return metrics


def save_confusion_matrix_csv(cm: np.ndarray, labels: List[str], output_path: Path):
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['True \\ Predicted'] + labels)
        for i, label in enumerate(labels):
            writer.writerow([label] + cm[i].tolist())

    logger.info(f"Matriz de confusión guardada: {output_path}")


def save_confusion_matrix_heatmap(cm: np.ndarray, labels: List[str], output_path: Path):
    plt.figure(figsize=(8, 6))

    sns.heatmap(
        cm,
        annot=True,
        fmt='d',
        cmap='Blues',
        xticklabels=labels,
        yticklabels=labels,
        cbar_kws={'label': 'Count'}
    )

    plt.xlabel('Predicted Emotion', fontsize=12)
    plt.ylabel('True Emotion', fontsize=12)
    plt.title('Confusion Matrix - VA Emotion Classifier', fontsize=14, fontweight='bold')
    plt.tight_layout()

    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    plt.close()

    logger.info(f"Heatmap guardado: {output_path}")


def save_classification_report_csv(metrics: Dict, output_path: Path):
    rows = []
    for i, label in enumerate(metrics['labels']):
        rows.append({
            'emotion': label,
            'precision': round(metrics['precision'][i], 3),
            'recall': round(metrics['recall'][i], 3),
            'f1_score': round(metrics['f1_score'][i], 3),
            'support': metrics['support'][i]
        })

    rows.append({
        'emotion': 'macro_avg',
        'precision': round(float(np.mean(metrics['precision'])), 3),
        'recall': round(float(np.mean(metrics['recall'])), 3),
        'f1_score': round(metrics['macro_f1'], 3),
        'support': sum(metrics['support'])
    })

    fieldnames = ['emotion', 'precision', 'recall', 'f1_score', 'support']
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)

    logger.info(f"Reporte CSV guardado: {output_path}")


def save_metrics_summary_json(metrics: Dict, config_path: Optional[str], output_path: Path):
    summary = {
        'timestamp': datetime.now().isoformat(),
        'config': config_path,
        'accuracy': round(metrics['accuracy'], 4),
        'macro_f1': round(metrics['macro_f1'], 4),
        'num_samples': int(sum(metrics['support'])),
        'per_class_metrics': {},
    }

    for i, label in enumerate(metrics['labels']):
        summary['per_class_metrics'][label] = {
            'precision': round(metrics['precision'][i], 4),
            'recall': round(metrics['recall'][i], 4),
            'f1_score': round(metrics['f1_score'][i], 4),
            'support': int(metrics['support'][i])
        }

    if 'va_regression' in metrics:
        summary['va_regression'] = metrics['va_regression']

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)

    logger.info(f"Resumen JSON guardado: {output_path}")


def main():
    parser = argparse.ArgumentParser(
        description='Evaluación del clasificador emocional VA con matriz de confusión'
    )
    parser.add_argument('--dataset_csv', type=Path, required=True,
                        help='CSV con ground truth (columnas: image_path, true_emotion)')
    parser.add_argument('--config', type=str, default=None, help='JSON de configuración')
    parser.add_argument('--model', type=str, default=None, help='Ruta del modelo TorchScript')
    parser.add_argument('--output_dir', type=Path, default=Path('results/emotion_evaluation'),
                        help='Directorio de salida para resultados')
    parser.add_argument('--base_dir', type=Path, default=Path('.'),
                        help='Directorio base para resolver paths relativos de imágenes')
    args = parser.parse_args()

    args.output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("=" * 60)
    logger.info("EVALUACIÓN DEL CLASIFICADOR EMOCIONAL")
    logger.info("=" * 60)
    logger.info(f"Dataset CSV:   {args.dataset_csv}")
    logger.info(f"Output dir:    {args.output_dir}")
    logger.info("=" * 60 + "\n")

    try:
        dataset = load_ground_truth_dataset(args.dataset_csv)

        config = load_config(args.config)
        analyzer_config = config.analyzer
        if args.model:
            analyzer_config = replace(analyzer_config, model_path=args.model)

        with initialize(analyzer_config) as analyzer:
            results = evaluate_analyzer(dataset, analyzer, args.base_dir)

        if not results:
            logger.error("No se pudo procesar ninguna imagen. Abortando.")
            sys.exit(1)

        metrics = calculate_metrics(results)

        cm = np.array(metrics['confusion_matrix'])
        labels = metrics['labels']
        save_confusion_matrix_csv(cm, labels, args.output_dir / 'confusion_matrix.csv')
        save_confusion_matrix_heatmap(cm, labels, args.output_dir / 'confusion_matrix.png')
        save_classification_report_csv(metrics, args.output_dir / 'classification_report.csv')
        save_metrics_summary_json(metrics, args.config, args.output_dir / 'metrics_summary.json')

        logger.info(f"Resultados guardados en: {args.output_dir}")

    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error(f"Error durante la evaluación: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
