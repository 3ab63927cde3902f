"""
Init use case — write the annotated starter config.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from gobuilder.core.config.template import EXAMPLE_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class InitResult:
    path: Path
    written: bool = False
    error: str | None = None


def write_example_config(
    path: Path,
    force: bool = False,
    confirm: Callable[[Path], bool] | None = None,
) -> InitResult:
    """Write the example config to ``path``.

    An existing file is only replaced when ``force`` is set or
    ``confirm(path)`` returns True.
    """
    result = InitResult(path=path)

    if path.exists() and not force:
        if confirm is None or not confirm(path):
            result.error = "aborted by user"
            return result

    try:
        path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    except OSError as e:
        result.error = f"Cannot write {path}: {e}"
        return result

    logger.info("Wrote %s", path)
    result.written = True
    return result
