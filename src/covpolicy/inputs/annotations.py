"""Read ``covpolicy:`` pragmas from the top of source files.

Recognised pragmas, anywhere on one of the first lines of a file::

    # covpolicy:ignore
    # covpolicy:domain=core
"""

from __future__ import annotations

from itertools import islice
from pathlib import Path
from typing import TYPE_CHECKING

from covpolicy import logger
from covpolicy.core.model import Annotation

if TYPE_CHECKING:
    from collections.abc import Iterable

MAX_SCAN_LINES = 20
PRAGMA_IGNORE = "covpolicy:ignore"
PRAGMA_DOMAIN = "covpolicy:domain="
SOURCE_SUFFIXES = frozenset({".py", ".pyi"})


def parse_pragmas(lines: Iterable[str]) -> Annotation | None:
    ignore = False
    domain: str | None = None
    for line in islice(lines, MAX_SCAN_LINES):
        if PRAGMA_IGNORE in line:
            ignore = True
        idx = line.find(PRAGMA_DOMAIN)
        if idx != -1:
            fields = line[idx + len(PRAGMA_DOMAIN) :].split()
            if fields:
                domain = fields[0]
    if not ignore and domain is None:
        return None
    return Annotation(ignore=ignore, domain=domain)


def scan_annotations(module_root: str | Path, files: Iterable[str]) -> dict[str, Annotation]:
    """Return annotations keyed by the module-relative paths in *files*.

    Non-Python files and files missing on disk are skipped.
    """
    root = Path(module_root) if module_root else Path()
    out: dict[str, Annotation] = {}
    for file in files:
        path = root / file
        if path.suffix not in SOURCE_SUFFIXES:
            continue
        try:
            with path.open(encoding="utf-8", errors="replace") as f:
                ann = parse_pragmas(f)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("could not read %s for annotations: %s", path, e)
            continue
        if ann is not None:
            logger.debug("annotation %s: %s", file, ann)
            out[file] = ann
    return out


__all__ = ["MAX_SCAN_LINES", "PRAGMA_DOMAIN", "PRAGMA_IGNORE", "parse_pragmas", "scan_annotations"]
