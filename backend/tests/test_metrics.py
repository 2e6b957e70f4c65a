"""Tests de las métricas de rendimiento."""

import json

from avatar_emotion.utils import PerformanceMetrics, get_metrics, reset_metrics


def test_measure_records_duration(tmp_path):
    metrics = PerformanceMetrics(tmp_path)
    with metrics.measure('inference', {'frame': 1}) as timing:
        pass

    assert timing['duration'] >= 0.0
    assert timing['frame'] == 1
    assert metrics.last('inference') == timing['duration']
    assert metrics.last('classify') is None


def test_statistics(tmp_path):
    metrics = PerformanceMetrics(tmp_path)
    metrics.measurements['preprocess'].extend([0.01, 0.03])
    stats = metrics.get_statistics('preprocess')['preprocess']
    assert stats['count'] == 2
    assert abs(stats['mean'] - 0.02) < 1e-9
    assert stats['min'] == 0.01
    assert metrics.get_statistics('missing') == {}


def test_save_files(tmp_path):
    metrics = PerformanceMetrics(tmp_path / "metrics")
    for stage in ('preprocess', 'inference', 'classify'):
        with metrics.measure(stage):
            pass

    csv_path = metrics.save_to_csv('run.csv')
    json_path = metrics.save_to_json('run.json')

    assert csv_path.read_text(encoding='utf-8').startswith('stage,duration,timestamp')
    data = json.loads(json_path.read_text(encoding='utf-8'))
    assert set(data['statistics']) == {'preprocess', 'inference', 'classify'}


def test_save_csv_without_measurements(tmp_path):
    metrics = PerformanceMetrics(tmp_path / "empty")
    assert metrics.save_to_csv() is None
    assert not (tmp_path / "empty").exists()


def test_print_summary(tmp_path, capsys):
    metrics = PerformanceMetrics(tmp_path)
    for stage in ('preprocess', 'inference', 'classify'):
        metrics.measurements[stage].append(0.001)
    metrics.print_summary()
    assert "LATENCIA TOTAL" in capsys.readouterr().out


def test_global_instance():
    reset_metrics()
    assert get_metrics() is get_metrics()
    first = get_metrics()
    reset_metrics()
    assert get_metrics() is not first
