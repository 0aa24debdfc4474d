"""ppt-studio: narrative text to validated slide scripts and decks."""

from .config import Config
from .script_parser import (
    Card,
    SlideRecord,
    Document,
    Context,
    parse_front_matter,
    parse_slide_block,
    parse_script,
    parse_script_file,
    render_script,
)
from .classifier import (
    Classification,
    classify_slide,
    classify_document,
    detect_content_type,
    detect_slide_type,
)
from .drafting import BulletPolicy, draft_document, extract_bullets
from .layouts import (
    RecommenderSettings,
    recommend_layout,
    recommend_style,
    build_layout_artifact,
    accept_recommendations,
)
from .visuals import detect_visual_candidates, estimate_complexity, analyze_document
from .pipeline_gate import StageCheck, check_stage, complete_stage, confirm, gate_status
from .manifest import ManifestError, load_manifest, save_manifest
from .project import ProjectPaths, create_project
from .deck import DeckBuildError, build_deck, assemble_project

__all__ = [
    "Config",
    # Script parsing
    "Card",
    "SlideRecord",
    "Document",
    "Context",
    "parse_front_matter",
    "parse_slide_block",
    "parse_script",
    "parse_script_file",
    "render_script",
    # Classification and drafting
    "Classification",
    "classify_slide",
    "classify_document",
    "detect_content_type",
    "detect_slide_type",
    "BulletPolicy",
    "draft_document",
    "extract_bullets",
    # Recommendation
    "RecommenderSettings",
    "recommend_layout",
    "recommend_style",
    "build_layout_artifact",
    "accept_recommendations",
    "detect_visual_candidates",
    "estimate_complexity",
    "analyze_document",
    # Pipeline
    "StageCheck",
    "check_stage",
    "complete_stage",
    "confirm",
    "gate_status",
    "ManifestError",
    "load_manifest",
    "save_manifest",
    "ProjectPaths",
    "create_project",
    # Deck
    "DeckBuildError",
    "build_deck",
    "assemble_project",
]
