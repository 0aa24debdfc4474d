"""Project directory layout and scaffolding."""

import re
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import yaml

from .manifest import manifest_path, new_manifest, write_json
from .script_parser import Document, SlideRecord, render_script

logger = logging.getLogger(__name__)


@dataclass
class ProjectPaths:
    """Well-known locations inside a project directory."""
    root: Path

    @property
    def manifest(self) -> Path:
        return manifest_path(self.root)

    @property
    def sources_dir(self) -> Path:
        return self.root / "sources"

    @property
    def raw_content(self) -> Path:
        return self.sources_dir / "raw-content.txt"

    @property
    def script(self) -> Path:
        return self.sources_dir / "script.md"

    @property
    def data_dir(self) -> Path:
        return self.sources_dir / "data"

    @property
    def assets_dir(self) -> Path:
        return self.sources_dir / "assets"

    @property
    def build_dir(self) -> Path:
        return self.root / "build"

    @property
    def deck_dir(self) -> Path:
        return self.build_dir / "deck"

    @property
    def motion_dir(self) -> Path:
        return self.build_dir / "motion"

    @property
    def layout_recommendations(self) -> Path:
        return self.build_dir / "layout-recommendations.json"

    @property
    def visual_recommendations(self) -> Path:
        return self.build_dir / "visual-recommendations.json"

    @property
    def exports_dir(self) -> Path:
        return self.root / "exports"

    def export_file(self, name: str = "recording.pptx") -> Path:
        return self.exports_dir / name

    def props_file(self, slide_id: str) -> Path:
        return self.build_dir / f"props-{slide_id}.json"

    def slide_image(self, slide_id: str) -> Path:
        return self.deck_dir / f"slide-{slide_id}.png"


def slugify(text: str) -> str:
    """Lowercase ASCII slug; empty for titles without ASCII letters or digits."""
    slug = str(text or '').lower()
    slug = re.sub(r'["\']', '', slug)
    slug = re.sub(r'[^a-z0-9]+', '-', slug)
    return slug.strip('-')


def timestamp_slug(moment: datetime | None = None) -> str:
    moment = moment or datetime.now()
    return moment.strftime("ppt%Y%m%d%H%M%S")


def _starter_script(title: str) -> str:
    document = Document(
        front_matter={'title': title, 'language': 'zh', 'aspect': '16:9', 'theme': 'auto'},
        slides=[SlideRecord(id='s01', index=1, type='cover', title=title, notes='')],
    )
    return render_script(document)


def create_project(root: Path, title: str, slug: str | None = None) -> ProjectPaths:
    """Create a new project under <root>/projects/<slug>.

    The slug falls back to a slug of the title, then to a timestamp for
    titles without ASCII characters.

    Args:
        root: Workspace directory.
        title: Project title.
        slug: Explicit directory name.

    Returns:
        ProjectPaths of the new project.

    Raises:
        ValueError: If the title is empty.
        FileExistsError: If the project directory already exists.
    """
    title = (title or '').strip()
    if not title:
        raise ValueError("Project title is required")

    slug = (slug or '').strip() or slugify(title) or timestamp_slug()
    project_dir = Path(root) / "projects" / slug
    if project_dir.exists():
        raise FileExistsError(f"Project already exists: {project_dir}")

    paths = ProjectPaths(project_dir)
    for directory in (paths.data_dir, paths.assets_dir, paths.deck_dir, paths.motion_dir, paths.exports_dir):
        directory.mkdir(parents=True, exist_ok=True)

    paths.script.write_text(_starter_script(title), encoding='utf-8')

    studio = {'title': title, 'slug': slug, 'rootDir': str(Path(root).resolve())}
    with open(project_dir / "studio.yml", 'w', encoding='utf-8') as f:
        yaml.safe_dump(studio, f, allow_unicode=True, sort_keys=False)

    write_json(paths.manifest, new_manifest(title, slug, project_dir))
    logger.info(f"Created project {slug} at {project_dir}")
    return paths
