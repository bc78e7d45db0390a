from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from jsonschema import validate

from covpolicy import __version__
from covpolicy.core.config import get_schema

if TYPE_CHECKING:
    from covpolicy.core.model import DomainResult, FileResult, Result

SCHEMA_VERSION = 1


def _domain(d: DomainResult) -> dict[str, Any]:
    out: dict[str, Any] = {
        "domain": d.domain,
        "covered": d.covered,
        "total": d.total,
        "percent": d.percent,
        "required": d.required,
        "status": str(d.status),
        "shortfall": d.shortfall,
    }
    if d.delta is not None:
        out["delta"] = d.delta
    return out


def _file(f: FileResult) -> dict[str, Any]:
    return {
        "file": f.file,
        "covered": f.covered,
        "total": f.total,
        "percent": f.percent,
        "required": f.required,
        "status": str(f.status),
        "shortfall": f.shortfall,
    }


def result_payload(result: Result) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "tool": {"name": "covpolicy", "version": __version__},
        "passed": result.passed,
        "overall": result.overall_percent(),
        "summary": result.summary(),
        "domains": [_domain(d) for d in result.domains],
        "files": [_file(f) for f in result.files],
        "warnings": list(result.warnings),
    }


def format_json(result: Result) -> str:
    """Serialise *result* after validating it against the bundled schema."""
    payload = result_payload(result)
    validate(payload, get_schema("v1"))
    return json.dumps(payload, indent=2, sort_keys=True)


__all__ = ["SCHEMA_VERSION", "format_json", "result_payload"]
