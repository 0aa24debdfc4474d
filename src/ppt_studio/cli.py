"""Command-line interface for the ppt-studio authoring pipeline."""

import argparse
import sys
import logging
from pathlib import Path

from .config import Config
from .deck import DeckBuildError, assemble_project
from .drafting import BulletPolicy, GOAL_PREAMBLE, draft_document
from .layouts import (
    RecommenderSettings,
    accept_recommendations,
    build_layout_artifact,
    unaccepted_slide_ids,
)
from .manifest import ManifestError, load_manifest, now_iso, read_json, record_stage, save_manifest, write_json
from .metrics import count_paragraphs, count_words, recommended_slide_range
from .pipeline_gate import STAGES, check_stage, complete_stage, confirm, gate_status
from .project import ProjectPaths, create_project
from .render_props import build_visual_slide_props, plan_render, write_render_plan
from .script_parser import parse_script_file, render_script
from .visuals import analyze_document, separate_visual_slides

RULE = "=" * 60


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog='ppt-studio',
        description='Turn narrative text into a validated slide script and assemble the deck.'
    )
    parser.add_argument(
        '--config',
        help='Path to configuration file (default: built-in defaults)'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    new = subparsers.add_parser('new', help='Create a new project')
    new.add_argument('--title', required=True, help='Project title')
    new.add_argument('--slug', help='Project directory name (default: derived from title)')
    new.add_argument('--root', help='Workspace directory (default: paths.workspace)')

    def project_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--project', required=True, help='Project directory')
        return sub

    draft = project_command('draft', 'Draft sources/script.md from raw content')
    draft.add_argument('--title', required=True, help='Episode title')
    draft.add_argument('--file', help='Read content from file (default: sources/raw-content.txt or stdin)')
    draft.add_argument('--lang', help='Language code (default: script.language)')

    analyze = project_command('analyze', 'Recommend layouts and style')
    analyze.add_argument('--accept-all', action='store_true', help='Accept every recommendation')

    accept = project_command('accept', 'Accept layout recommendations')
    accept.add_argument('--slide', nargs='+', help='Slide ids to accept (default: all)')

    visuals = project_command('visuals', 'Detect diagram-worthy content')
    visuals.add_argument('--style', help='Style override')

    check = project_command('check', 'Check whether a stage may be completed')
    check.add_argument('stage', type=int, help='Stage number (1-5)')

    complete = project_command('complete', 'Mark a stage as completed')
    complete.add_argument('stage', type=int, help='Stage number (1-5)')

    project_command('confirm', 'Record user confirmation of the plan')
    project_command('status', 'Show pipeline status')

    render_plan = project_command('render-plan', 'Write renderer props for every slide')
    render_plan.add_argument('--style', help='Style override')

    project_command('build', 'Assemble rendered slides into exports/recording.pptx')

    return parser.parse_args(argv)


def _print_errors(errors: list[str]) -> None:
    for error in errors:
        print(f"   - {error}")


def cmd_new(args: argparse.Namespace, config: Config) -> int:
    root = Path(args.root) if args.root else config.workspace_dir
    paths = create_project(root, args.title, args.slug)
    print("Created new project:")
    print(f"- Title:   {args.title}")
    print(f"- Project: {paths.root}")
    print(f"- Script:  {paths.script}")
    print(f"- Manifest: {paths.manifest}")
    return 0


def cmd_draft(args: argparse.Namespace, config: Config) -> int:
    paths = ProjectPaths(Path(args.project))
    manifest = load_manifest(paths.root)

    if args.file:
        content = Path(args.file).read_text(encoding='utf-8')
    elif paths.raw_content.exists():
        content = paths.raw_content.read_text(encoding='utf-8')
    else:
        print("Paste your content below. Press Ctrl+D when done:\n")
        content = sys.stdin.read()

    if not content.strip():
        print("Error: No content provided.")
        return 1

    if not paths.raw_content.exists():
        paths.raw_content.parent.mkdir(parents=True, exist_ok=True)
        paths.raw_content.write_text(content, encoding='utf-8')

    words = count_words(content)
    low, high = recommended_slide_range(words)
    print("Analyzing content...")
    print(f"  Characters: {len(content)}")
    print(f"  Words:      {words}")
    print(f"  Paragraphs: {count_paragraphs(content)}")
    print(f"  Recommended slides: {low}-{high}")

    lang = args.lang or config.get('script.language', 'zh')
    document = draft_document(content, args.title, lang, BulletPolicy.from_config(config))
    paths.script.write_text(render_script(document, GOAL_PREAMBLE), encoding='utf-8')
    print(f"\nGenerated: {paths.script}")

    manifest['project'].update({'title': args.title, 'wordCount': words, 'slideCount': len(document.slides)})
    manifest['stages']['scriptParsed'] = {'status': 'completed', 'at': now_iso()}
    save_manifest(paths.root, manifest)

    print("\nSlide summary:")
    for i, slide in enumerate(document.slides, start=1):
        visual = f" [{slide.recommended_visuals[0]}]" if slide.recommended_visuals else ""
        title = slide.title if len(slide.title) <= 35 else slide.title[:35] + "..."
        print(f"  {i}. [{slide.type}]{visual} {title}")
    return 0


def cmd_analyze(args: argparse.Namespace, config: Config) -> int:
    paths = ProjectPaths(Path(args.project))
    document = parse_script_file(paths.script)
    if not document.slides:
        print("Error: No slides found in script.md")
        return 1

    artifact = build_layout_artifact(document, RecommenderSettings.from_config(config), args.accept_all)
    write_json(paths.layout_recommendations, artifact)

    style = artifact['style']
    print(f"Style: {style['recommended']} - {style['recommendedDescription']}")
    for alternative in style['alternatives']:
        print(f"    - {alternative['name']} - {alternative['description']}")
    print("\nLayouts:")
    for i, rec in enumerate(artifact['recommendations'], start=1):
        print(f"  [{i}] {rec['slideId']} {rec['recommended']} ({rec['confidence']}%)")
        for alternative in rec['alternatives']:
            print(f"        - {alternative['name']} ({alternative['confidence']}%)")

    record_stage(paths.root, 'layoutsAnalyzed')
    print(f"\nSaved: {paths.layout_recommendations}")
    if not args.accept_all:
        print("Accept with: ppt-studio accept --project <dir> [--slide ID ...]")
    return 0


def cmd_accept(args: argparse.Namespace, config: Config) -> int:
    paths = ProjectPaths(Path(args.project))
    if not paths.layout_recommendations.exists():
        print("Error: layout-recommendations.json not found. Run: ppt-studio analyze")
        return 1

    artifact = read_json(paths.layout_recommendations)
    changed = accept_recommendations(artifact, args.slide)
    write_json(paths.layout_recommendations, artifact)
    remaining = unaccepted_slide_ids(artifact)
    print(f"Accepted {changed} recommendation(s), {len(remaining)} remaining")
    return 0


def cmd_visuals(args: argparse.Namespace, config: Config) -> int:
    paths = ProjectPaths(Path(args.project))
    document = parse_script_file(paths.script)

    style = args.style
    if not style and paths.layout_recommendations.exists():
        layout_artifact = read_json(paths.layout_recommendations)
        if isinstance(layout_artifact, dict):
            style = (layout_artifact.get('style') or {}).get('recommended')
    style = style or config.get('render.default_style', 'apple')

    artifact = analyze_document(document, style)
    write_json(paths.visual_recommendations, artifact)

    separate = separate_visual_slides(artifact)
    for recommendation in separate:
        slide = document.get_slide(recommendation['slideId'])
        if slide is None:
            continue
        visual_id, composition, props = build_visual_slide_props(recommendation, slide, style)
        write_json(paths.props_file(visual_id), props)
        print(f"  {visual_id}: {composition}")

    record_stage(paths.root, 'visualMatching',
                 slidesAnalyzed=len(document.slides), visualsDetected=artifact['slidesWithVisuals'])
    print(f"Wrote: {paths.visual_recommendations}")
    print(f"  Total slides:           {len(document.slides)}")
    print(f"  Slides with visuals:    {artifact['slidesWithVisuals']}")
    print(f"  Separate visual slides: {len(separate)}")
    return 0


def cmd_check(args: argparse.Namespace, config: Config) -> int:
    result = check_stage(Path(args.project), args.stage, BulletPolicy.from_config(config))
    if result.ok:
        print(f"✓ Stage {args.stage} check passed")
        return 0
    print(f"✗ Stage {args.stage} check failed:")
    _print_errors(result.errors)
    return 1


def cmd_complete(args: argparse.Namespace, config: Config) -> int:
    result = complete_stage(Path(args.project), args.stage, BulletPolicy.from_config(config))
    if result.ok:
        print(f"✓ Stage {args.stage} completed")
        return 0
    print(f"✗ Cannot complete stage {args.stage}:")
    _print_errors(result.errors)
    return 1


def cmd_confirm(args: argparse.Namespace, config: Config) -> int:
    confirm(Path(args.project))
    print("✓ Plan confirmed")
    return 0


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    project_dir = Path(args.project)
    manifest = load_manifest(project_dir)
    status = gate_status(project_dir)

    print(f"Project: {manifest['project'].get('title', '')} ({manifest['project'].get('slug', '')})")
    for stage in STAGES:
        if stage.number in status.completed:
            mark = "[x]"
        elif stage.number == status.current:
            mark = "[>]"
        else:
            mark = "[ ]"
        print(f"  {mark} Stage {stage.number}: {stage.name}")
    print(f"\nCurrent stage: {status.current}")
    return 0


def cmd_render_plan(args: argparse.Namespace, config: Config) -> int:
    paths = ProjectPaths(Path(args.project))
    document = parse_script_file(paths.script)
    artifact = read_json(paths.layout_recommendations) if paths.layout_recommendations.exists() else None

    requests = plan_render(document, artifact, paths, args.style,
                           default_style=config.get('render.default_style', 'apple'))
    write_render_plan(requests)
    for request in requests:
        print(f"  {request.slide_id}: {request.layout} -> {request.composition_id}")
    record_stage(paths.root, 'renderPlanned', slides=len(requests))
    print(f"Wrote {len(requests)} props file(s) to {paths.build_dir}")
    return 0


def cmd_build(args: argparse.Namespace, config: Config) -> int:
    output_path = assemble_project(Path(args.project), config)
    print(f"✓ PPTX created: {output_path}")
    return 0


COMMANDS = {
    'new': cmd_new,
    'draft': cmd_draft,
    'analyze': cmd_analyze,
    'accept': cmd_accept,
    'visuals': cmd_visuals,
    'check': cmd_check,
    'complete': cmd_complete,
    'confirm': cmd_confirm,
    'status': cmd_status,
    'render-plan': cmd_render_plan,
    'build': cmd_build,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_arguments(argv)

    try:
        config = Config(args.config) if args.config else Config()
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print(f"Please ensure the configuration file exists at: {args.config}")
        return 1

    print(RULE)
    print(f"ppt-studio {args.command}")
    print(RULE)

    try:
        return COMMANDS[args.command](args, config)
    except (FileNotFoundError, FileExistsError, ManifestError, DeckBuildError, ValueError) as e:
        print(f"\nError: {e}")
        return 1
    except Exception as e:
        logging.exception(f"Unexpected error in {args.command}")
        print(f"\nError: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
