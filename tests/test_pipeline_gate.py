import json

import pytest

from ppt_studio.manifest import ManifestError, load_manifest, write_json
from ppt_studio.pipeline_gate import (
    STAGES,
    check_stage,
    complete_stage,
    confirm,
    gate_status,
    get_stage,
)

VISUAL_SLIDE = '''## Slide 01

```yaml
id: s01
type: cover
title: "Demo Talk"
visual:
  type: flow
bullets:
  - "a bullet that is long enough"
```
'''


def _slide(bullets):
    lines = "\n".join(f'  - "{b}"' for b in bullets)
    return f"## Slide 01\n\n```yaml\nid: s01\ntitle: \"t\"\nbullets:\n{lines}\n```\n"


def _complete_first(project):
    project.raw_content.write_text("raw narrative", encoding="utf-8")
    assert complete_stage(project.root, 1).ok


def test_stage_table():
    assert [s.number for s in STAGES] == [1, 2, 3, 4, 5]
    assert get_stage(3).key == "step3"
    with pytest.raises(ValueError):
        get_stage(6)


def test_missing_required_file(project):
    result = check_stage(project.root, 1)
    assert not result.ok
    assert result.errors == ["Missing required file: sources/raw-content.txt"]


def test_stages_must_run_in_order(project):
    result = check_stage(project.root, 3)
    assert not result.ok
    assert result.errors == ["Stage 1 (Content input) must be completed first"]

    _complete_first(project)
    result = complete_stage(project.root, 3)
    assert result.errors == ["Stage 2 (Script authoring) must be completed first"]
    assert "step3" not in load_manifest(project.root)["stages"]


def test_bullet_policy_errors(project, write_script):
    _complete_first(project)
    write_script(_slide(["abcdefghij", "x" * 60]))

    result = check_stage(project.root, 2)
    assert not result.ok
    assert result.errors == [
        'Slide s01: bullet too short (<15 chars): "abcdefghij..."',
        'Slide s01: bullet too long (>50 chars): "' + "x" * 30 + '..."',
    ]


def test_script_without_slides(project, write_script):
    _complete_first(project)
    write_script("no slides here\n")
    assert check_stage(project.root, 2).errors == ["No slides found in script.md"]


def test_complete_is_idempotent(project):
    _complete_first(project)
    first = load_manifest(project.root)["stages"]["step1"]
    assert first["completed"] is True
    assert first["name"] == "Content input"

    assert complete_stage(project.root, 1).ok
    assert load_manifest(project.root)["stages"]["step1"]["at"] == first["at"]


def test_visual_plan_checks(project, write_script):
    _complete_first(project)
    write_script(_slide(["a bullet that is long enough"]))
    assert complete_stage(project.root, 2).ok

    assert check_stage(project.root, 3).errors == [
        "Missing required file: build/visual-recommendations.json"
    ]

    write_json(project.visual_recommendations, {"recommendations": [{"slideId": "s01"}]})
    assert check_stage(project.root, 3).errors == [
        "Slide s01 has no visual: block",
        "Slide s01 has no detected visual type",
    ]

    write_script(VISUAL_SLIDE)
    write_json(project.visual_recommendations, {"recommendations": []})
    assert complete_stage(project.root, 3).ok


def test_invalid_visual_plan(project, write_script):
    _complete_first(project)
    write_script(VISUAL_SLIDE)
    assert complete_stage(project.root, 2).ok

    project.visual_recommendations.write_text("{not json", encoding="utf-8")
    errors = check_stage(project.root, 3).errors
    assert len(errors) == 1
    assert errors[0].startswith("Visual plan is not valid JSON")

    write_json(project.visual_recommendations, {"recommendations": {"0": {}}})
    assert check_stage(project.root, 3).errors == ["Visual plan has no recommendations list"]


def test_confirmation_and_export(project, write_script):
    _complete_first(project)
    write_script(VISUAL_SLIDE)
    write_json(project.visual_recommendations, {"recommendations": [{"slideId": "s01", "detectedType": "flow"}]})
    assert complete_stage(project.root, 2).ok
    assert complete_stage(project.root, 3).ok

    assert not check_stage(project.root, 4).ok
    confirm(project.root)
    assert complete_stage(project.root, 4).ok

    assert check_stage(project.root, 5).errors == ["Missing required file: exports/recording.pptx"]
    project.export_file().write_bytes(b"pptx")
    assert complete_stage(project.root, 5).ok

    status = gate_status(project.root)
    assert status.completed == [1, 2, 3, 4, 5]
    assert status.current == 5


def test_gate_status_of_new_project(project):
    status = gate_status(project.root)
    assert status.current == 1
    assert status.completed == []

    _complete_first(project)
    assert gate_status(project.root).current == 2


def test_missing_or_corrupt_manifest(project, tmp_path):
    with pytest.raises(ManifestError):
        check_stage(tmp_path / "nowhere", 1)

    project.manifest.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ManifestError):
        check_stage(project.root, 1)

    project.manifest.write_text("{broken", encoding="utf-8")
    with pytest.raises(ManifestError):
        gate_status(project.root)


def test_manifest_written_with_trailing_newline(project):
    _complete_first(project)
    text = project.manifest.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert json.loads(text)["stages"]["step1"]["completed"] is True
