from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree

from covpolicy import logger
from covpolicy.core.model import CoverageStat
from covpolicy.errors import CoverageFileNotFoundError, InvalidCoverageFileError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path
    from xml.etree.ElementTree import Element


def read_root(path: Path) -> Element:
    """Parse coverage XML and return the root element."""
    if not path.is_file():
        msg = f"coverage report not found: {path}"
        raise CoverageFileNotFoundError(msg)
    try:
        root = ElementTree.parse(path).getroot()
    except ElementTree.ParseError as e:
        msg = f"failed to parse coverage XML {path}: {e}"
        raise InvalidCoverageFileError(msg) from e
    except (DefusedXmlException, OSError) as e:
        msg = f"could not read coverage XML {path}: {e!r}"
        raise InvalidCoverageFileError(msg) from e
    tag = (root.tag or "").split("}")[-1]
    if tag.lower() != "coverage":
        msg = f"unexpected root tag {root.tag!r} in {path}"
        raise InvalidCoverageFileError(msg)
    return root


def _first_source(root: Element) -> str:
    for src in root.findall("./sources/source"):
        text = (src.text or "").strip()
        if text:
            return text.replace("\\", "/")
    return ""


def iter_line_hits(root: Element, *, join_sources: bool = True) -> Iterator[tuple[str, int, int]]:
    """Yield ``(file, line, hits)`` for every ``<line>`` under a class.

    Lines nested under ``<methods>`` are included; duplicates are left to the
    caller to merge.
    """
    source = _first_source(root) if join_sources else ""
    for cls in root.findall(".//class"):
        filename = (cls.get("filename") or "").replace("\\", "/")
        if not filename:
            continue
        if source and not posixpath.isabs(filename):
            filename = posixpath.join(source, filename)
        for line_elem in cls.iter("line"):
            n_raw = line_elem.get("number")
            hits_raw = line_elem.get("hits")
            if not n_raw or hits_raw is None:
                continue
            try:
                n = int(n_raw)
                hits = int(hits_raw)
            except ValueError:
                continue
            yield filename, n, hits


def read_coverage(paths: Iterable[Path], *, join_sources: bool = True) -> dict[str, CoverageStat]:
    """Read one or more Cobertura reports into per-file statement counts.

    A statement is one distinct line number; it is covered when any report
    records a positive hit count for it.
    """
    hits_by_file: dict[str, dict[int, int]] = {}
    count = 0
    for path in paths:
        root = read_root(path)
        count += 1
        for file, line, hits in iter_line_hits(root, join_sources=join_sources):
            lines = hits_by_file.setdefault(file, {})
            lines[line] = max(lines.get(line, 0), hits)

    if count == 0:
        msg = "no coverage reports given"
        raise CoverageFileNotFoundError(msg)

    out = {
        file: CoverageStat(covered=sum(1 for h in lines.values() if h > 0), total=len(lines))
        for file, lines in hits_by_file.items()
    }
    logger.info("read %d files from %d coverage report(s)", len(out), count)
    return out


__all__ = ["iter_line_hits", "read_coverage", "read_root"]
