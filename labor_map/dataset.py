"""
labor_map/dataset.py

Read, merge, write and mirror data/latest.json.

The file is shared by both pipelines: LAUS owns "unemployment_rate", OEWS
owns "swdev_wage". Each run only overwrites the fields it was given, so the
two can run independently (and repeatedly) without clobbering each other.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Mapping, Optional

from labor_map.config import METRIC_META, MIRROR_RELATIVE

Record = dict[str, Any]
Dataset = dict[str, Record]


def empty_record() -> Record:
    """A record with every tracked metric present and set to null."""
    return {field: None for field in METRIC_META}


def load_dataset(path: Path) -> Dataset:
    """Load the dataset, or an empty mapping if it has not been created yet."""
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def merge_dataset(existing: Mapping[str, Record], updates: Mapping[str, Mapping[str, Any]]) -> Dataset:
    """
    Merge per-state partial records into the existing dataset.

    - States not in `updates` are passed through unchanged.
    - A touched state gets every metric key (null by default), then its
      existing values, then the update's values.
    - Neither input is modified.

    Applying the same update twice gives the same result as applying it once.
    """
    merged: Dataset = {abbr: dict(rec) for abbr, rec in existing.items()}
    for abbr, partial in updates.items():
        record = empty_record()
        record.update(merged.get(abbr, {}))
        record.update(partial)
        merged[abbr] = record
    return merged


def write_dataset(dataset: Mapping[str, Record], path: Path) -> None:
    """Write pretty-printed UTF-8 JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dataset, indent=2) + "\n", encoding="utf-8")


def mirror_dataset(path: Path, mirror_root: Optional[Path]) -> Optional[Path]:
    """
    Copy the just-written file byte-for-byte under `mirror_root`.

    Only happens if `mirror_root` already exists (e.g. a docs/ folder served
    by GitHub Pages). Returns the mirror path, or None if skipped.
    """
    if mirror_root is None or not mirror_root.is_dir():
        return None
    target = mirror_root / MIRROR_RELATIVE
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(path, target)
    print(f"Mirrored {target}")
    return target


def preserve_dataset(path: Path, mirror_root: Optional[Path]) -> Dataset:
    """
    Keep the current dataset exactly as it is and refresh the mirror.

    Used when BLS says the daily quota is gone. An existing file is never
    rewritten, so its bytes stay identical; a missing one is created empty.
    """
    if not path.exists():
        write_dataset({}, path)
    mirror_dataset(path, mirror_root)
    return load_dataset(path)
