"""Corpus discovery and file reading."""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from corpus_rag.ingestion.models import NormalizedDocument, RawFile

logger = logging.getLogger(__name__)


def discover_files(
    root: str | Path,
    patterns: Iterable[str],
    ignored_folders: Iterable[str] = (),
) -> list[Path]:
    """Recursively find the files under *root* matching any of *patterns*.

    Parameters
    ----------
    root:
        Corpus directory.  Created (empty) when it does not exist yet.
    patterns:
        Glob patterns relative to *root*, e.g. ``"**/*.md"``.
    ignored_folders:
        Directory names excluded anywhere in the tree (``node_modules`` …).

    Returns
    -------
    list[Path]
        De-duplicated, sorted file paths.
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    ignored = set(ignored_folders)

    found: set[Path] = set()
    for pattern in patterns:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            if ignored.intersection(path.relative_to(root).parts[:-1]):
                continue
            found.add(path)
    return sorted(found)


def read_raw_file(path: str | Path) -> RawFile:
    """Read a UTF-8 corpus file."""
    path = Path(path)
    return RawFile(path=path, content=path.read_text(encoding="utf-8"))


def _read_json(path: Path) -> dict[str, Any] | None:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def _read_toml(path: Path) -> dict[str, Any] | None:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def project_manifest(root: str | Path) -> tuple[RawFile, NormalizedDocument] | None:
    """Summarise the build manifests found at the root of a code corpus.

    Looks at ``tsconfig.json``, ``package.json`` and ``pyproject.toml``.
    Returns ``None`` when none of them is present.
    """
    root = Path(root)
    summary: dict[str, Any] = {}

    tsconfig = _read_json(root / "tsconfig.json")
    if tsconfig is not None:
        summary["tsconfig"] = {"compilerOptions": tsconfig.get("compilerOptions", {})}

    package_json = _read_json(root / "package.json")
    if package_json is not None:
        summary["packageJson"] = {
            key: package_json.get(key)
            for key in ("name", "version", "dependencies", "devDependencies")
        }

    pyproject = _read_toml(root / "pyproject.toml")
    if pyproject is not None:
        project = pyproject.get("project", {})
        summary["pyproject"] = {
            key: project.get(key)
            for key in ("name", "version", "dependencies", "optional-dependencies")
        }

    if not summary:
        logger.info("No project manifest found in %s", root)
        return None

    text = json.dumps(summary, indent=2, sort_keys=True)
    raw = RawFile(path=root, content=text)
    document = NormalizedDocument(
        text=text,
        metadata={"manifests": sorted(summary)},
        doc_type="project_manifest",
    )
    return raw, document
