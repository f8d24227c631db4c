# -*- coding: utf-8 -*-
"""Tests del profiling de operaciones y del registro de errores de dominio."""
import logging

import pytest

from shipdash import config, performance_logger
from shipdash.errors import ConflictError
from shipdash.logging_setup import get_logger, log_errors


@pytest.mark.skipif(not performance_logger.ENABLE_PROFILING, reason='profiling desactivado')
def test_profile_function_counts_calls():
    performance_logger.reset_stats()

    @performance_logger.profile_function(name='Operación de prueba')
    def operation(x):
        return x * 2

    assert operation(2) == 4
    assert operation(3) == 6
    stats = performance_logger.get_function_stats()['Operación de prueba']
    assert stats['calls'] == 2
    assert stats['failures'] == 0
    assert stats['max_time'] >= 0


@pytest.mark.skipif(not performance_logger.ENABLE_PROFILING, reason='profiling desactivado')
def test_profile_function_counts_failures_and_logs_slow_calls(monkeypatch, tmp_path):
    performance_logger.reset_stats()
    log_path = tmp_path / 'slow_operations.log'
    monkeypatch.setattr(performance_logger, 'SLOW_OPERATIONS_LOG', str(log_path))
    monkeypatch.setattr(config, 'SLOW_WARNING_MS', 0.0)

    @performance_logger.profile_function(name='Cerrar lote')
    def close(fail):
        if fail:
            raise ConflictError('lote cerrado')
        return True

    close(False)
    with pytest.raises(ConflictError):
        close(True)

    stats = performance_logger.get_function_stats()['Cerrar lote']
    assert (stats['calls'], stats['failures']) == (2, 1)
    entries = log_path.read_text(encoding='utf-8').splitlines()
    assert len(entries) == 2
    assert all(line.endswith('\tCerrar lote') for line in entries)

    report = performance_logger.write_function_stats_report()
    assert 'Cerrar lote' in report
    assert log_path.read_text(encoding='utf-8').endswith(report)


def test_log_errors_logs_and_reraises(caplog):
    logger = get_logger('shipdash.tests')
    logger.propagate = True

    @log_errors(logger)
    def failing():
        raise ConflictError('lote cerrado')

    try:
        with caplog.at_level(logging.WARNING, logger='shipdash.tests'):
            with pytest.raises(ConflictError):
                failing()
    finally:
        logger.propagate = False

    assert 'failing falló [Conflict]: lote cerrado' in caplog.text


def test_get_logger_configures_once():
    first = get_logger('shipdash.tests.once')
    second = get_logger('shipdash.tests.once')
    assert first is second
    assert len(first.handlers) == 1
