"""
Módulo de instrumentación y medición de rendimiento.

Mide la latencia de cada etapa del análisis emocional (preprocesado,
inferencia, clasificación) para evaluar el coste por paso de forma
reproducible.
"""

import csv
import json
import logging
import statistics
import time
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Etapas del análisis, en orden de ejecución
ANALYZER_STAGES = ('preprocess', 'inference', 'classify')


class PerformanceMetrics:
    """
    Gestor de métricas de rendimiento.

    Permite medir tiempos de ejecución por etapa y exportar los resultados
    para su análisis estadístico posterior.
    """

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Args:
            output_dir: Directorio donde guardar los resultados (se crea al guardar)
        """
        self.measurements: Dict[str, List[float]] = defaultdict(list)
        self.metadata: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.output_dir = Path(output_dir) if output_dir else Path('metrics')

    @contextmanager
    def measure(self, stage_name: str, metadata: Optional[Dict] = None):
        """
        Context manager para medir el tiempo de ejecución de una etapa.

        Example:
            with metrics.measure('inference') as timing:
                output = model.infer(tensor)
            print(f"Tardó {timing['duration']} segundos")
        """
        start_time = time.perf_counter()
        timing_info = {'stage': stage_name}

        try:
            yield timing_info
        finally:
            duration = time.perf_counter() - start_time

            timing_info['duration'] = duration
            timing_info['timestamp'] = datetime.now().isoformat()
            if metadata:
                timing_info.update(metadata)

            self.measurements[stage_name].append(duration)
            self.metadata[stage_name].append(timing_info)

    def last(self, stage_name: str) -> Optional[float]:
        """Última duración medida de una etapa, en segundos."""
        times = self.measurements.get(stage_name)
        return times[-1] if times else None

    def get_statistics(self, stage_name: Optional[str] = None) -> Dict:
        """
        Calcula estadísticas sobre las mediciones realizadas.

        Args:
            stage_name: Etapa específica (None para todas)

        Returns:
            Diccionario con count/mean/median/stdev/min/max/total por etapa
        """
        if stage_name:
            stages = {stage_name: self.measurements.get(stage_name, [])}
        else:
            stages = self.measurements

        stats = {}
        for name, times in stages.items():
            if not times:
                continue

            stats[name] = {
                'count': len(times),
                'mean': statistics.mean(times),
                'median': statistics.median(times),
                'stdev': statistics.stdev(times) if len(times) > 1 else 0.0,
                'min': min(times),
                'max': max(times),
                'total': sum(times)
            }

        return stats

    def _output_path(self, filename: Optional[str], extension: str) -> Path:
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'metrics_{timestamp}.{extension}'
        self.output_dir.mkdir(exist_ok=True, parents=True)
        return self.output_dir / filename

    def save_to_csv(self, filename: Optional[str] = None) -> Optional[Path]:
        """Guarda las mediciones individuales en CSV."""
        rows = []
        for stage_name, metadata_list in self.metadata.items():
            for entry in metadata_list:
                row = {
                    'stage': stage_name,
                    'duration': entry['duration'],
                    'timestamp': entry['timestamp']
                }
                for key, value in entry.items():
                    if key not in row:
                        row[key] = value
                rows.append(row)

        if not rows:
            logger.warning("No hay mediciones para guardar")
            return None

        fieldnames: List[str] = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)

        filepath = self._output_path(filename, 'csv')
        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)

        logger.info(f"Métricas guardadas en: {filepath}")
        return filepath

    def save_to_json(self, filename: Optional[str] = None) -> Path:
        """Guarda mediciones y estadísticas en JSON."""
        filepath = self._output_path(filename, 'json')

        data = {
            'timestamp': datetime.now().isoformat(),
            'statistics': self.get_statistics(),
            'raw_measurements': dict(self.measurements),
            'metadata': dict(self.metadata)
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Métricas guardadas en: {filepath}")
        return filepath

    def print_summary(self):
        """Imprime un resumen de las estadísticas por consola."""
        stats = self.get_statistics()

        if not stats:
            print("No hay mediciones disponibles")
            return

        print("\n" + "=" * 70)
        print("RESUMEN DE MÉTRICAS DE RENDIMIENTO")
        print("=" * 70)

        for stage_name, stage_stats in stats.items():
            print(f"\n[{stage_name.upper()}]")
            print(f"  Mediciones: {stage_stats['count']}")
            print(f"  Media:      {stage_stats['mean']*1000:.2f} ms")
            print(f"  Mediana:    {stage_stats['median']*1000:.2f} ms")
            print(f"  Desv. Est.: {stage_stats['stdev']*1000:.2f} ms")
            print(f"  Mínimo:     {stage_stats['min']*1000:.2f} ms")
            print(f"  Máximo:     {stage_stats['max']*1000:.2f} ms")

        if all(stage in stats for stage in ANALYZER_STAGES):
            total_mean = sum(stats[stage]['mean'] for stage in ANALYZER_STAGES)
            print("\n[LATENCIA TOTAL POR PASO - Preprocesado + Inferencia + Clasificación]")
            print(f"  Media:      {total_mean*1000:.2f} ms")

        print("\n" + "=" * 70 + "\n")

    def clear(self):
        """Limpia todas las mediciones almacenadas."""
        self.measurements.clear()
        self.metadata.clear()


# Instancia global para uso en la API
_global_metrics = None


def get_metrics(output_dir: Optional[Path] = None) -> PerformanceMetrics:
    """
    Obtiene la instancia global de métricas.

    Args:
        output_dir: Directorio de salida (solo para primera inicialización)
    """
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = PerformanceMetrics(output_dir)
    return _global_metrics


def reset_metrics():
    """Reinicia la instancia global de métricas."""
    global _global_metrics
    _global_metrics = None
