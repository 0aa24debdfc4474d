from ppt_studio.cli import main
from ppt_studio.manifest import load_manifest, read_json
from ppt_studio.script_parser import parse_script_file

RAW = "\n\n".join([
    "Demo 工作流\n为什么我们需要新的工作流",
    "第一步：收集素材然后整理成为完整提纲\n第二步：撰写脚本并且检查每一条要点",
    "并行 vs 系统 的对比",
    "整个过程里最重要的是坚持节奏与复盘",
    "最后总结一下今天的内容",
])


def test_new_project(tmp_path, capsys):
    assert main(["new", "--title", "Demo Talk", "--root", str(tmp_path)]) == 0
    assert (tmp_path / "projects" / "demo-talk" / "manifest.json").exists()
    assert "Created new project" in capsys.readouterr().out

    assert main(["new", "--title", "Demo Talk", "--root", str(tmp_path)]) == 1
    assert "already exists" in capsys.readouterr().out


def test_draft_analyze_accept(project, tmp_path, capsys):
    source = tmp_path / "raw.txt"
    source.write_text(RAW, encoding="utf-8")

    assert main(["draft", "--project", str(project.root), "--title", "Demo", "--file", str(source)]) == 0
    document = parse_script_file(project.script)
    assert len(document.slides) == 5
    assert "# Goal" in project.script.read_text(encoding="utf-8")
    assert project.raw_content.read_text(encoding="utf-8") == RAW
    manifest = load_manifest(project.root)
    assert manifest["project"]["slideCount"] == 5
    assert manifest["stages"]["scriptParsed"]["status"] == "completed"

    assert main(["analyze", "--project", str(project.root)]) == 0
    artifact = read_json(project.layout_recommendations)
    assert len(artifact["recommendations"]) == 5

    assert main(["accept", "--project", str(project.root), "--slide", "s01"]) == 0
    assert "Accepted 1 recommendation(s), 4 remaining" in capsys.readouterr().out

    assert main(["build", "--project", str(project.root)]) == 1
    assert "not accepted" in capsys.readouterr().out


def test_visuals_and_render_plan(project, write_script):
    write_script('## Slide 01\n\n```yaml\nid: s01\ntitle: "并行 vs 系统"\n```\n')
    assert main(["visuals", "--project", str(project.root), "--style", "tech"]) == 0
    artifact = read_json(project.visual_recommendations)
    assert artifact["style"] == "tech"
    assert artifact["recommendations"][0]["detectedType"] == "comparison"

    assert main(["render-plan", "--project", str(project.root)]) == 0
    assert read_json(project.props_file("s01"))["style"] == "apple"


def test_check_and_status(project, capsys):
    assert main(["check", "--project", str(project.root), "1"]) == 1
    assert "Missing required file: sources/raw-content.txt" in capsys.readouterr().out

    project.raw_content.write_text("raw", encoding="utf-8")
    assert main(["complete", "--project", str(project.root), "1"]) == 0
    assert main(["status", "--project", str(project.root)]) == 0
    out = capsys.readouterr().out
    assert "[x] Stage 1: Content input" in out
    assert "Current stage: 2" in out


def test_invalid_stage_and_missing_project(tmp_path, capsys):
    assert main(["check", "--project", str(tmp_path), "9"]) == 1
    assert main(["status", "--project", str(tmp_path / "missing")]) == 1
    assert "manifest.json not found" in capsys.readouterr().out


def test_confirm(project):
    assert main(["confirm", "--project", str(project.root)]) == 0
    assert load_manifest(project.root)["stages"]["userConfirmed"]["status"] == "confirmed"


def test_missing_config_file(capsys):
    assert main(["--config", "nope.yaml", "status", "--project", "."]) == 1
    assert "Configuration file not found" in capsys.readouterr().out
