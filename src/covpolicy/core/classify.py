"""Path normalisation and domain classification for coverage records.

A coverage record key may be a module-qualified path (``example.com/pkg/a.py``),
a path relative to the module root, or an absolute path. Keys are first mapped
onto a canonical path under the module root, then classified against global
excludes, annotations, and each domain's directory prefixes.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covpolicy import logger
from covpolicy.core.values import match_any_glob

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from covpolicy.core.model import Annotation, Domain

REASON_GLOBAL_EXCLUDE = "matches global exclude pattern"
REASON_ANNOTATION_IGNORE = "ignored by annotation"
REASON_ANNOTATION_DOMAIN = "assigned by annotation"
REASON_DOMAIN_EXCLUDE = "matches domain-specific exclude pattern"
REASON_DOMAIN_MATCH = "matches domain directory"
REASON_NO_MATCH = "no domain match"

_RECURSIVE_SUFFIXES = ("/...", "/**", "/*")


def _clean(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


@dataclass(frozen=True, slots=True)
class PathNormalizer:
    """Map coverage record keys onto paths under ``module_root``.

    ``module_path`` is the import prefix some tools put in front of every file
    (for example a package name); it is replaced by ``module_root``.
    """

    module_root: str = ""
    module_path: str = ""

    def normalize(self, key: str) -> str:
        raw = key.replace("\\", "/")
        clean = _clean(raw)
        if posixpath.isabs(clean):
            return clean
        if self.module_path:
            if raw == self.module_path:
                return _clean(self.module_root or ".")
            prefix = self.module_path.rstrip("/") + "/"
            if raw.startswith(prefix):
                return _clean(posixpath.join(self.module_root, raw[len(prefix) :]))
        if self.module_root:
            return _clean(posixpath.join(self.module_root, clean))
        return clean

    def relative(self, normalized: str) -> str:
        if not self.module_root:
            return _clean(normalized)
        try:
            return _clean(posixpath.relpath(normalized, _clean(self.module_root)))
        except ValueError:
            return _clean(normalized)

    def relative_key(self, key: str) -> str:
        return self.relative(self.normalize(key))


def resolve_domain_dirs(domains: Sequence[Domain], module_root: str = "") -> dict[str, tuple[str, ...]]:
    """Turn each domain's match patterns into directory prefixes under *module_root*.

    ``./`` prefixes and trailing ``/...``, ``/**`` or ``/*`` wildcards are stripped;
    the remaining path is joined onto the module root. No filesystem access.
    """
    out: dict[str, tuple[str, ...]] = {}
    for d in domains:
        dirs: list[str] = []
        for pattern in d.match:
            p = pattern.replace("\\", "/")
            p = p.removeprefix("./")
            for suffix in _RECURSIVE_SUFFIXES:
                if p.endswith(suffix):
                    p = p[: -len(suffix)]
                    break
            if p in {"...", "**", "*"}:
                p = "."
            if not posixpath.isabs(p) and module_root:
                p = posixpath.join(module_root, p)
            p = _clean(p or ".")
            if p not in dirs:
                dirs.append(p)
        out[d.name] = tuple(dirs)
    return out


def matches_any_dir(path: str, dirs: Iterable[str]) -> bool:
    """Return ``True`` if *path* equals one of *dirs* or lies beneath it."""
    clean_file = _clean(path)
    for directory in dirs:
        clean_dir = _clean(directory)
        if clean_file == clean_dir:
            return True
        prefix = clean_dir if clean_dir.endswith("/") else clean_dir + "/"
        if clean_dir == "." and not posixpath.isabs(clean_file) and not clean_file.startswith("../"):
            return True
        if clean_file.startswith(prefix):
            return True
    return False


@dataclass(frozen=True, slots=True)
class Classification:
    """Diagnostic record describing why a file did or did not count toward a domain."""

    file: str
    domain: str | None = None
    excluded: bool = False
    annotated: bool = False
    reason: str = REASON_NO_MATCH


@dataclass(frozen=True, slots=True)
class FileClassification:
    """Full classification of a single coverage record."""

    key: str
    path: str
    relative: str
    domains: tuple[str, ...] = ()
    excluded: bool = False
    annotated: bool = False
    records: tuple[Classification, ...] = field(default=(), repr=False)

    @property
    def classified(self) -> bool:
        return bool(self.domains)


class PathClassifier:
    """Decide which domain(s), if any, a coverage record belongs to.

    Priority order: global excludes, then annotations (ignore or explicit
    domain), then directory-prefix matching against every domain. Directory
    prefixes may overlap, in which case the file counts toward each matching
    domain.
    """

    def __init__(
        self,
        domain_dirs: Mapping[str, Sequence[str]],
        *,
        normalizer: PathNormalizer | None = None,
        global_excludes: Sequence[str] = (),
        domain_excludes: Mapping[str, Sequence[str]] | None = None,
        annotations: Mapping[str, Annotation] | None = None,
    ) -> None:
        self._domain_dirs = {name: tuple(dirs) for name, dirs in domain_dirs.items()}
        self._normalizer = normalizer or PathNormalizer()
        self._global_excludes = tuple(global_excludes)
        self._domain_excludes = {name: tuple(p) for name, p in (domain_excludes or {}).items()}
        self._annotations = dict(annotations or {})

    def classify(self, key: str) -> FileClassification:
        path = self._normalizer.normalize(key)
        rel = self._normalizer.relative(path)

        if match_any_glob(self._global_excludes, rel):
            logger.debug("classify %s: %s", rel, REASON_GLOBAL_EXCLUDE)
            return FileClassification(
                key=key,
                path=path,
                relative=rel,
                excluded=True,
                records=(Classification(file=key, excluded=True, reason=REASON_GLOBAL_EXCLUDE),),
            )

        ann = self._annotations.get(rel)
        if ann is not None:
            if ann.ignore:
                logger.debug("classify %s: %s", rel, REASON_ANNOTATION_IGNORE)
                return FileClassification(
                    key=key,
                    path=path,
                    relative=rel,
                    excluded=True,
                    annotated=True,
                    records=(
                        Classification(
                            file=key, excluded=True, annotated=True, reason=REASON_ANNOTATION_IGNORE
                        ),
                    ),
                )
            if ann.domain:
                logger.debug("classify %s: %s %s", rel, REASON_ANNOTATION_DOMAIN, ann.domain)
                return FileClassification(
                    key=key,
                    path=path,
                    relative=rel,
                    domains=(ann.domain,),
                    annotated=True,
                    records=(
                        Classification(
                            file=key, domain=ann.domain, annotated=True, reason=REASON_ANNOTATION_DOMAIN
                        ),
                    ),
                )

        domains: list[str] = []
        records: list[Classification] = []
        for name, dirs in self._domain_dirs.items():
            if not matches_any_dir(path, dirs):
                continue
            if match_any_glob(self._domain_excludes.get(name, ()), rel):
                records.append(
                    Classification(file=key, domain=name, excluded=True, reason=REASON_DOMAIN_EXCLUDE)
                )
                continue
            domains.append(name)
            records.append(Classification(file=key, domain=name, reason=REASON_DOMAIN_MATCH))

        if not records:
            records.append(Classification(file=key, reason=REASON_NO_MATCH))
        logger.debug("classify %s: domains=%s", rel, domains)
        return FileClassification(
            key=key,
            path=path,
            relative=rel,
            domains=tuple(domains),
            records=tuple(records),
        )


__all__ = [
    "REASON_ANNOTATION_DOMAIN",
    "REASON_ANNOTATION_IGNORE",
    "REASON_DOMAIN_EXCLUDE",
    "REASON_DOMAIN_MATCH",
    "REASON_GLOBAL_EXCLUDE",
    "REASON_NO_MATCH",
    "Classification",
    "FileClassification",
    "PathClassifier",
    "PathNormalizer",
    "matches_any_dir",
    "resolve_domain_dirs",
]
