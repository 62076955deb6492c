"""
Test Configuration and Fixtures

Environment is prepared before any application module is imported, since
``settings`` and the logger read it at import time.

Unit tests (test/**/unit/) run against in-memory fakes and need neither
PostgreSQL nor Kvrocks. They are marked ``unit`` automatically.
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    if worker_id == 'master':
        os.environ['POSTGRES_DB'] = 'hostel_booking_test_db'
        os.environ['KVROCKS_KEY_PREFIX'] = 'test_'
    else:
        os.environ['POSTGRES_DB'] = f'hostel_booking_test_db_{worker_id}'
        os.environ['KVROCKS_KEY_PREFIX'] = f'test_{worker_id}_'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # No real sleeping between side-effect retries
    os.environ.setdefault('SIDE_EFFECT_BACKOFF_SECONDS', '0')
    os.environ.setdefault('PROPERTY_TIMEZONE', 'America/Sao_Paulo')


_early_setup_test_environment()

import pytest  # noqa: E402


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        path = str(item.fspath)
        if '/unit/' in path or '\\unit\\' in path:
            item.add_marker(pytest.mark.unit)
