"""Pytest configuration for phased testing.

Tests are organized by phase:
- f1: score mapping, domain types, configuration
- f2: best-score ledger, level gate, repositories
- f3: grading pipeline
- f4: aggregation, history, engine facade
- f5: Web API and CLI

Future phase tests are automatically skipped.
"""

import pytest

from levelup.config.app_config import clear_config_cache

# Current implementation phase
CURRENT_PHASE = 5


def pytest_collection_modifyitems(config, items):
    """Skip tests from phases that haven't been implemented yet."""
    for item in items:
        # Extract phase from path (tests/f2/... -> 2)
        parts = item.fspath.strpath.split("/")
        for part in parts:
            if part.startswith("f") and part[1:].isdigit():
                test_phase = int(part[1:])
                if test_phase > CURRENT_PHASE:
                    item.add_marker(
                        pytest.mark.skip(
                            reason=f"Phase F{test_phase} not yet implemented (current: F{CURRENT_PHASE})"
                        )
                    )
                break


@pytest.fixture(autouse=True)
def _fresh_config():
    """Every test starts and ends with an empty config cache."""
    clear_config_cache()
    yield
    clear_config_cache()
