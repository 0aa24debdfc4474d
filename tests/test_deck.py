import pytest
from pptx import Presentation

from ppt_studio.config import Config
from ppt_studio.deck import DeckBuildError, assemble_project, build_deck, check_slide_image
from ppt_studio.layouts import build_layout_artifact
from ppt_studio.manifest import load_manifest, write_json
from ppt_studio.script_parser import parse_script_file

Image = pytest.importorskip("PIL.Image")

SCRIPT = '''## Slide 01

```yaml
id: s01
type: cover
title: "Demo Talk"
notes: |
  Welcome everyone
```

## Slide 02

```yaml
id: s02
title: "Second"
```
'''


def _png(path, color="white"):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (64, 36), color).save(path)
    return path


def test_check_slide_image(tmp_path):
    image = _png(tmp_path / "a.png")
    assert check_slide_image(image, 1) is None
    assert "too small" in check_slide_image(image, 10 ** 9)
    assert "not found" in check_slide_image(tmp_path / "b.png", 1)


def test_build_deck_with_notes_and_missing_image(tmp_path):
    images = {"s01": _png(tmp_path / "s01.png"), "s02": tmp_path / "missing.png"}
    output = build_deck(images, tmp_path / "out" / "deck.pptx", notes={"s01": "Hello"})

    prs = Presentation(str(output))
    slides = list(prs.slides)
    assert len(slides) == 2
    assert len(slides[0].shapes) == 1
    assert len(slides[1].shapes) == 0
    assert slides[0].notes_slide.notes_text_frame.text == "Hello"
    assert not slides[1].has_notes_slide


def test_deck_size_from_config(tmp_path):
    config = Config.from_dict({"deck": {"width_in": 13.333, "height_in": 7.5}})
    output = build_deck({"s01": _png(tmp_path / "s01.png")}, tmp_path / "deck.pptx", config=config)
    prs = Presentation(str(output))
    assert prs.slide_height == 6858000


def test_assemble_requires_layout_artifact(project, write_script):
    write_script(SCRIPT)
    with pytest.raises(DeckBuildError, match="not found"):
        assemble_project(project.root)


def test_assemble_refuses_unaccepted(project, write_script):
    write_script(SCRIPT)
    write_json(project.layout_recommendations, build_layout_artifact(parse_script_file(project.script)))
    with pytest.raises(DeckBuildError, match="s01, s02"):
        assemble_project(project.root)
    assert not project.export_file().exists()


def test_assemble_project(project, write_script):
    write_script(SCRIPT)
    document = parse_script_file(project.script)
    write_json(project.layout_recommendations, build_layout_artifact(document, accept_all=True))
    _png(project.slide_image("s01"))
    _png(project.slide_image("s02"), "black")

    output = assemble_project(project.root)
    assert output == project.export_file()

    prs = Presentation(str(output))
    assert len(prs.slides) == 2
    assert prs.core_properties.title == "Demo Talk"
    assert prs.slides[0].notes_slide.notes_text_frame.text == "Welcome everyone"

    manifest = load_manifest(project.root)
    assert manifest["stages"]["deckBuilt"]["slides"] == 2
    assert manifest["artifacts"]["pptx"] == str(output)
