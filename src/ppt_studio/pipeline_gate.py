"""Ordered five-stage gate over a project's pipeline.

A stage can only be checked or completed once every earlier stage is marked
complete in the manifest. Each stage lists the artifacts it needs and may run
a content validator. Gate violations are reported as StageCheck errors, never
raised.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .drafting import BulletPolicy
from .manifest import load_manifest, now_iso, read_json, save_manifest
from .project import ProjectPaths
from .script_parser import parse_script_file

logger = logging.getLogger(__name__)

CONFIRMATION_KEY = "userConfirmed"


@dataclass
class StageCheck:
    """Outcome of checking one stage."""
    stage: int
    ok: bool
    errors: list[str] = field(default_factory=list)


Validator = Callable[[ProjectPaths, dict[str, Any], BulletPolicy], list[str]]


def _truncated(text: str, limit: int) -> str:
    return f'"{text[:limit]}..."'


def validate_script(paths: ProjectPaths, manifest: dict[str, Any], policy: BulletPolicy) -> list[str]:
    """The script has slides and every bullet respects the length policy."""
    document = parse_script_file(paths.script)
    if not document.slides:
        return ["No slides found in script.md"]

    errors = []
    for slide in document.slides:
        bullets = (slide.bullets or []) + (slide.left_bullets or []) + (slide.right_bullets or [])
        for bullet in bullets:
            if len(bullet) < policy.min_length:
                errors.append(
                    f"Slide {slide.id}: bullet too short (<{policy.min_length} chars): {_truncated(bullet, 20)}"
                )
            if len(bullet) > policy.max_length:
                errors.append(
                    f"Slide {slide.id}: bullet too long (>{policy.max_length} chars): {_truncated(bullet, 30)}"
                )
    return errors


def validate_visual_plan(paths: ProjectPaths, manifest: dict[str, Any], policy: BulletPolicy) -> list[str]:
    """Every slide declares a visual block and every plan entry has a type."""
    errors = []
    document = parse_script_file(paths.script)
    for slide in document.slides:
        if slide.visual is None:
            errors.append(f"Slide {slide.id} has no visual: block")

    try:
        plan = read_json(paths.visual_recommendations)
    except json.JSONDecodeError as e:
        return errors + [f"Visual plan is not valid JSON: {e}"]

    recommendations = plan.get('recommendations') if isinstance(plan, dict) else None
    if not isinstance(recommendations, list):
        return errors + ["Visual plan has no recommendations list"]

    for entry in recommendations:
        if not isinstance(entry, dict):
            errors.append("Visual plan entry is not an object")
        elif not (entry.get('detectedType') or entry.get('visualType')):
            errors.append(f"Slide {entry.get('slideId', '?')} has no detected visual type")
    return errors


def validate_confirmation(paths: ProjectPaths, manifest: dict[str, Any], policy: BulletPolicy) -> list[str]:
    confirmation = manifest.get('stages', {}).get(CONFIRMATION_KEY) or {}
    if confirmation.get('status') != 'confirmed':
        return ["The plan has not been confirmed by the user (run: ppt-studio confirm)"]
    return []


@dataclass(frozen=True)
class Stage:
    number: int
    name: str
    required: tuple[str, ...] = ()
    validator: Validator | None = None

    @property
    def key(self) -> str:
        return f"step{self.number}"


STAGES: tuple[Stage, ...] = (
    Stage(1, "Content input", ("sources/raw-content.txt",)),
    Stage(2, "Script authoring", ("sources/script.md",), validate_script),
    Stage(3, "Visual planning", ("sources/script.md", "build/visual-recommendations.json"), validate_visual_plan),
    Stage(4, "User confirmation", (), validate_confirmation),
    Stage(5, "Render and export", ("exports/recording.pptx",)),
)


def get_stage(number: int) -> Stage:
    """Look up a stage by number.

    Raises:
        ValueError: If there is no such stage.
    """
    for stage in STAGES:
        if stage.number == number:
            return stage
    raise ValueError(f"Invalid stage: {number} (expected 1-{len(STAGES)})")


def is_stage_complete(manifest: dict[str, Any], number: int) -> bool:
    entry = manifest.get('stages', {}).get(f"step{number}") or {}
    return bool(entry.get('completed'))


def check_stage(project_dir: Path, number: int, policy: BulletPolicy | None = None) -> StageCheck:
    """Check whether a stage may be completed.

    Stops at the first incomplete predecessor; otherwise reports every missing
    artifact, and only then runs the stage validator.

    Raises:
        ValueError: If the stage number is unknown.
        ManifestError: If the project manifest is missing or corrupt.
    """
    stage = get_stage(number)
    policy = policy or BulletPolicy()
    paths = ProjectPaths(Path(project_dir))
    manifest = load_manifest(paths.root)

    for previous in STAGES[:number - 1]:
        if not is_stage_complete(manifest, previous.number):
            return StageCheck(number, False, [
                f"Stage {previous.number} ({previous.name}) must be completed first"
            ])

    missing = [f"Missing required file: {rel}" for rel in stage.required if not (paths.root / rel).exists()]
    if missing:
        return StageCheck(number, False, missing)

    errors = stage.validator(paths, manifest, policy) if stage.validator else []
    return StageCheck(number, not errors, errors)


def complete_stage(project_dir: Path, number: int, policy: BulletPolicy | None = None) -> StageCheck:
    """Check a stage and, if it passes, mark it complete in the manifest.

    Completing an already completed stage keeps its original timestamp.
    """
    result = check_stage(project_dir, number, policy)
    if not result.ok:
        logger.warning(f"Stage {number} not completed: {len(result.errors)} error(s)")
        return result

    stage = get_stage(number)
    manifest = load_manifest(project_dir)
    previous = manifest['stages'].get(stage.key) or {}
    if previous.get('completed'):
        logger.info(f"Stage {number} already completed at {previous.get('at')}")
        return result

    manifest['stages'][stage.key] = {'completed': True, 'at': now_iso(), 'name': stage.name}
    save_manifest(project_dir, manifest)
    logger.info(f"Stage {number} ({stage.name}) completed")
    return result


def confirm(project_dir: Path) -> dict[str, Any]:
    """Record the user's confirmation of the plan."""
    manifest = load_manifest(project_dir)
    manifest['stages'][CONFIRMATION_KEY] = {'status': 'confirmed', 'at': now_iso()}
    save_manifest(project_dir, manifest)
    logger.info("Plan confirmed")
    return manifest


@dataclass
class GateStatus:
    current: int
    completed: list[int]


def gate_status(project_dir: Path) -> GateStatus:
    """Return the stage to work on next and the stages already completed."""
    manifest = load_manifest(project_dir)
    completed = [stage.number for stage in STAGES if is_stage_complete(manifest, stage.number)]
    current = 1
    for stage in STAGES:
        if stage.number in completed:
            current = stage.number + 1
    return GateStatus(current=min(current, len(STAGES)), completed=completed)
