"""
Identifier list files.

Two on-disk formats are supported, chosen by file suffix:

- ``.js``: a generated source listing (``const users = [...]; module.exports = users;``)
- anything else: a JSON array

Collected lists are merged into an existing file by set union, so re-running
a collection never loses or duplicates identifiers.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_LISTING_BODY = re.compile(r"\[(.*)\]", re.DOTALL)


@dataclass(frozen=True)
class MergeReport:
    path: Path
    total: int
    added: int


def resolve_output_path(save_to: str | Path, base_dir: str | Path | None = None) -> Path:
    path = Path(save_to)
    if path.is_absolute() or base_dir is None:
        return path
    return Path(base_dir) / path


def render_js_listing(items: Iterable[str]) -> str:
    entries = ",\n".join(f"    {json.dumps(item, ensure_ascii=False)}" for item in items)
    return f"const users = [\n{entries}\n];\n\nmodule.exports = users;"


def parse_js_listing(text: str) -> list[str]:
    match = _LISTING_BODY.search(text)
    if not match:
        raise ValueError("no array literal found")
    body = re.sub(r",\s*$", "", match.group(1).strip())
    data = json.loads(f"[{body}]")
    return [item for item in data if isinstance(item, str)]


def read_identifiers(path: str | Path) -> list[str]:
    """Read an identifier list. Missing or unreadable files count as empty."""
    path = Path(path)
    if not path.exists():
        return []

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".js":
            return parse_js_listing(text)
        data = json.loads(text)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable identifier file {path}: {e}")
        return []

    if not isinstance(data, list):
        logger.warning(f"Ignoring identifier file {path}: not a list")
        return []
    return [item for item in data if isinstance(item, str)]


def write_identifiers(path: str | Path, items: Iterable[Any]) -> Path:
    """Write values as-is (no merge) in the format implied by the suffix."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    values = list(items)
    if path.suffix == ".js":
        content = render_js_listing("" if v is None else str(v) for v in values)
    else:
        content = json.dumps(values, indent=2, ensure_ascii=False)
    path.write_text(content, encoding="utf-8")
    return path


def write_single(path: str | Path, value: Any) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"content": value}, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def merge_identifiers(path: str | Path, items: Iterable[str]) -> MergeReport:
    """Union ``items`` into the list stored at ``path`` and write it back."""
    path = Path(path)
    previous = read_identifiers(path)
    merged = list(dict.fromkeys([*previous, *items]))
    write_identifiers(path, merged)

    report = MergeReport(path=path, total=len(merged), added=len(merged) - len(set(previous)))
    logger.info(f"Appended to: {path} (Total: {report.total}, New: {report.added})")
    return report
