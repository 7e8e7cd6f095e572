"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import logging
import sys
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of terraplane modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("terraplane"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _reset_logging():  # type: ignore[no-untyped-def]
    """Drop handlers installed by configure_logging; they may hold closed streams."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
