"""Collecting Cavvy source files and reading them."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..errors import SourceReadError

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".cay"


def _is_excluded(path: Path, root: Path, exclude: Iterable[str]) -> bool:
    try:
        rel_path = path.relative_to(root)
    except ValueError:
        return False
    parts = rel_path.parts
    for ex in exclude:
        ex_parts = Path(ex).parts
        if not ex_parts:
            continue
        # an exclude entry matches as a path prefix or as any directory name
        if parts[:len(ex_parts)] == ex_parts:
            return True
        if len(ex_parts) == 1 and ex_parts[0] in parts[:-1]:
            return True
    return False


def collect_files(
    root: Union[str, Path],
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
) -> List[Path]:
    """Collect ``.cay`` files under ``root``.

    Args:
        root: File or directory to search
        include: Paths to include, relative to root
        exclude: Paths or directory names to skip, relative to root

    Returns:
        Sorted, de-duplicated list of source file paths
    """
    root = Path(root)
    if root.is_file():
        return [root]

    include = include or ["."]
    exclude = list(exclude or [])
    files = []

    for inc in include:
        base = root / inc
        if not base.exists():
            logger.warning(f"Include path does not exist: {base}")
            continue

        if base.is_file():
            if base.suffix == SOURCE_SUFFIX:
                files.append(base)
            continue

        for p in base.rglob(f"*{SOURCE_SUFFIX}"):
            if p.is_file() and not _is_excluded(p, root, exclude):
                files.append(p)

    result = sorted(set(files))
    logger.debug(f"Collected {len(result)} source files under {root}")
    return result


def read_source(path: Union[str, Path]) -> str:
    """Read a source file as UTF-8.

    Raises:
        SourceReadError: The file is missing, unreadable, or not UTF-8
    """
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SourceReadError(f"{path} is not valid UTF-8: {e}", path=str(path)) from e
    except OSError as e:
        raise SourceReadError(f"Cannot read {path}: {e.strerror or e}", path=str(path)) from e
