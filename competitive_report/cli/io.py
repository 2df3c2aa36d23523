"""
JSON input/output for the CLI scripts.

Input files hold workflow items: either a JSON list or a single object.
"""

import json
import logging
from pathlib import Path
from typing import Any

from tqdm import tqdm

logger = logging.getLogger(__name__)


class InputError(Exception):
    """An input file is missing or is not valid JSON."""


def load_items(paths: list[Path], progress: bool = True) -> list[Any]:
    """
    Read and concatenate workflow items from JSON files.

    Args:
        paths: Files to read, in order
        progress: Show a tqdm progress bar

    Returns:
        All items, in file order

    Raises:
        InputError: If a file cannot be read or parsed
    """
    items: list[Any] = []
    for path in tqdm(paths, desc="Reading inputs", unit="file", disable=not progress):
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise InputError(f"Cannot read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise InputError(f"Invalid JSON in {path}: {e}") from e
        if isinstance(data, list):
            items.extend(data)
        else:
            items.append(data)
        logger.debug(f"Loaded {path}")
    return items


def write_json(data: Any, path: Path) -> Path:
    """Write data as indented UTF-8 JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
