"""Project manifest persistence.

The manifest (manifest.json at the project root) is the single record of a
project's progress. Every command reads it fully, changes it in memory and
writes it back whole.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"

DEFAULT_ARTIFACTS = {
    'rawContent': 'sources/raw-content.txt',
    'script': 'sources/script.md',
    'layoutRecommendations': 'build/layout-recommendations.json',
    'visualRecommendations': 'build/visual-recommendations.json',
    'deckImages': 'build/deck',
    'recording': 'exports/recording.pptx',
}


class ManifestError(Exception):
    """Raised when a manifest is missing or cannot be read."""
    pass


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def manifest_path(project_dir: Path) -> Path:
    return Path(project_dir) / MANIFEST_NAME


def read_json(file_path: Path) -> Any:
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(file_path: Path, data: Any) -> None:
    """Write JSON with 2-space indent, non-ASCII kept, trailing newline."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.write('\n')


def new_manifest(title: str, slug: str, root_dir: Path) -> dict[str, Any]:
    """Build the manifest of a freshly created project."""
    iso = now_iso()
    return {
        'project': {
            'title': title,
            'slug': slug,
            'rootDir': str(root_dir),
            'createdAt': iso,
            'updatedAt': iso,
            'wordCount': 0,
            'slideCount': 0,
        },
        'stages': {
            'projectInit': {'status': 'completed', 'at': iso},
        },
        'artifacts': dict(DEFAULT_ARTIFACTS),
    }


def load_manifest(project_dir: Path) -> dict[str, Any]:
    """Load a project's manifest.

    Raises:
        ManifestError: If the manifest is missing, unreadable or not an object.
    """
    path = manifest_path(project_dir)
    if not path.exists():
        raise ManifestError(f"manifest.json not found in project: {project_dir}")

    try:
        data = read_json(path)
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} is not a JSON object")

    data.setdefault('project', {})
    data.setdefault('stages', {})
    data.setdefault('artifacts', {})
    return data


def save_manifest(project_dir: Path, manifest: dict[str, Any]) -> Path:
    """Stamp project.updatedAt and write the manifest back."""
    manifest.setdefault('project', {})['updatedAt'] = now_iso()
    path = manifest_path(project_dir)
    write_json(path, manifest)
    logger.debug(f"Saved manifest: {path}")
    return path


def record_stage(project_dir: Path, key: str, **fields: Any) -> dict[str, Any]:
    """Record a pipeline event under stages.<key> and save.

    Returns:
        The updated manifest.
    """
    manifest = load_manifest(project_dir)
    manifest['stages'][key] = {'status': 'completed', 'at': now_iso(), **fields}
    save_manifest(project_dir, manifest)
    logger.info(f"Recorded stage {key}")
    return manifest
