"""Assembly of rendered slide images into a PowerPoint deck.

Pipeline flow:
    1. Refuse to build while any layout recommendation is unaccepted
    2. Collect build/deck/slide-<id>.png for every slide in script order
    3. Add one blank slide per image with the picture stretched full-bleed
    4. Copy speaker notes and save exports/recording.pptx
"""

import logging
from pathlib import Path
from typing import Optional

from pptx import Presentation
from pptx.util import Inches

from .config import Config
from .layouts import unaccepted_slide_ids
from .manifest import load_manifest, now_iso, read_json, save_manifest
from .project import ProjectPaths
from .script_parser import Document, parse_script_file

logger = logging.getLogger(__name__)

# Index of the "Blank" layout in python-pptx's default template
BLANK_LAYOUT_INDEX = 6


class DeckBuildError(Exception):
    """Raised when the deck cannot be assembled."""
    pass


def check_slide_image(image_path: Path, min_bytes: int) -> str | None:
    """Return a problem description for a rendered image, or None if it looks fine."""
    if not image_path.exists():
        return f"Image not found: {image_path}"
    size = image_path.stat().st_size
    if size < min_bytes:
        return f"Image too small ({size} bytes, minimum {min_bytes}): {image_path}"
    return None


def collect_slide_images(document: Document, deck_dir: Path) -> dict[str, Path]:
    """Map slide ids to their rendered images, in script order.

    Slides without an image are still listed so the deck keeps its order;
    build_deck skips and reports them.
    """
    return {slide.id: Path(deck_dir) / f"slide-{slide.id}.png" for slide in document.slides}


class DeckBuilder:
    """Builds a picture-per-slide presentation."""

    def __init__(self, config: Config | None = None):
        """Initialize the builder.

        Args:
            config: Configuration with deck.* settings; defaults are used if omitted.
        """
        self.config = config or Config.from_dict({})
        self.width_in = float(self.config.get('deck.width_in', 10.0))
        self.height_in = float(self.config.get('deck.height_in', 5.625))
        self.min_image_bytes = int(self.config.get('deck.min_image_bytes', 30000))

    def build(self, images: dict[str, Path], output_path: Path,
              notes: Optional[dict[str, str]] = None, title: str = "") -> Path:
        """Write the deck.

        Args:
            images: Ordered slide id to image path mapping.
            output_path: Destination .pptx file.
            notes: Optional slide id to speaker notes mapping.
            title: Value for the core "title" property.

        Returns:
            The output path.
        """
        notes = notes or {}
        prs = Presentation()
        prs.slide_width = Inches(self.width_in)
        prs.slide_height = Inches(self.height_in)
        if title:
            prs.core_properties.title = title
        prs.core_properties.author = "ppt-studio"

        blank_layout = prs.slide_layouts[BLANK_LAYOUT_INDEX]
        missing = 0

        for slide_id, image_path in images.items():
            slide = prs.slides.add_slide(blank_layout)
            problem = check_slide_image(Path(image_path), self.min_image_bytes)
            if problem and not Path(image_path).exists():
                logger.warning(f"  {slide_id}: {problem}")
                missing += 1
            else:
                if problem:
                    logger.warning(f"  {slide_id}: {problem}")
                slide.shapes.add_picture(
                    str(image_path),
                    Inches(0),
                    Inches(0),
                    width=Inches(self.width_in),
                    height=Inches(self.height_in)
                )
            if notes.get(slide_id):
                slide.notes_slide.notes_text_frame.text = notes[slide_id]

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Saving presentation to {output_path}...")
        prs.save(str(output_path))
        logger.info(f"✓ Presentation saved: {len(prs.slides)} slides, {missing} without image")
        return output_path


def build_deck(images: dict[str, Path], output_path: Path,
               notes: Optional[dict[str, str]] = None, config: Config | None = None) -> Path:
    """Write one full-bleed picture slide per image to output_path."""
    return DeckBuilder(config).build(images, output_path, notes)


def assemble_project(project_dir: Path, config: Config | None = None) -> Path:
    """Build exports/<output_name> for a project and record it in the manifest.

    Raises:
        DeckBuildError: If layout recommendations are missing or not all accepted.
        FileNotFoundError: If the script is missing.
    """
    config = config or Config.from_dict({})
    paths = ProjectPaths(Path(project_dir))

    if not paths.layout_recommendations.exists():
        raise DeckBuildError("layout-recommendations.json not found. Run: ppt-studio analyze")

    unaccepted = unaccepted_slide_ids(read_json(paths.layout_recommendations))
    if unaccepted:
        raise DeckBuildError(
            f"{len(unaccepted)} slide(s) not accepted: {', '.join(unaccepted)}. "
            f"Edit layout-recommendations.json or run: ppt-studio accept"
        )

    document = parse_script_file(paths.script)
    images = collect_slide_images(document, paths.deck_dir)
    notes = {slide.id: slide.notes for slide in document.slides if slide.notes}

    output_path = paths.export_file(config.get('deck.output_name', 'recording.pptx'))
    builder = DeckBuilder(config)
    builder.build(images, output_path, notes, title=document.title or paths.root.name)

    manifest = load_manifest(paths.root)
    manifest['stages']['deckBuilt'] = {'status': 'completed', 'at': now_iso(), 'slides': len(images)}
    manifest['artifacts']['pptx'] = str(output_path)
    save_manifest(paths.root, manifest)
    return output_path
