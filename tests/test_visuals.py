import pytest

from ppt_studio.script_parser import Document, SlideRecord
from ppt_studio.visuals import (
    CREATE_SEPARATE,
    DEFAULT_CYCLE_LABELS,
    INLINE,
    analyze_document,
    detect_visual_candidates,
    estimate_complexity,
    extract_cycle,
    extract_hierarchy,
    extract_tree,
    recommend_visual,
    separate_visual_slides,
    visual_text,
)

FLOW_SLIDE = SlideRecord(
    id="s02",
    title="制作一期视频",
    bullets=["第一步：收集素材", "第二步：撰写脚本", "第三步：渲染输出"],
)
COMPARISON_SLIDE = SlideRecord(id="s03", title="并行 vs 系统")


def test_visual_text_includes_columns():
    slide = SlideRecord(title="T", left_bullets=["l"], right_bullets=["r"], notes="ignored")
    assert visual_text(slide) == "T l r"


def test_flow_with_ordinal_steps():
    rec = recommend_visual(FLOW_SLIDE, 2)
    assert rec["detectedType"] == "flow"
    assert rec["composition"] == "HorizontalFlow"
    assert [s["title"] for s in rec["extractedData"]["steps"]] == ["收集素材", "撰写脚本", "渲染输出"]
    assert rec["confidence"] == pytest.approx(0.6)
    assert rec["complexity"]["canInline"] is True
    assert rec["action"] == INLINE
    assert rec["slideIndex"] == 2


def test_explicit_versus_comparison():
    rec = recommend_visual(COMPARISON_SLIDE)
    assert rec["detectedType"] == "comparison"
    assert rec["extractedData"]["leftTitle"] == "并行"
    assert rec["extractedData"]["rightTitle"] == "系统"
    assert rec["confidence"] == pytest.approx(0.25)


def test_hierarchy_levels():
    text = "战略层：确定方向\n战术层：拆解目标\n执行层：落地行动"
    candidates = detect_visual_candidates(text)
    assert candidates[0].type == "hierarchy"
    assert candidates[0].data["levels"] == [
        {"label": "战略层", "sublabel": "确定方向"},
        {"label": "战术层", "sublabel": "拆解目标"},
        {"label": "执行层", "sublabel": "落地行动"},
    ]


def test_hierarchy_line_with_two_layer_keywords_yields_two_levels():
    assert extract_hierarchy("战略层与执行层：方向落地") == {"levels": [
        {"label": "战略层", "sublabel": "与执行层方向落地"},
        {"label": "执行层", "sublabel": "战略层与方向落地"},
    ]}


def test_hierarchy_keyword_ending_in_layer_is_not_doubled():
    result = extract_hierarchy("顶层设计：明确愿景\n底层能力：数据平台")
    assert result == {"levels": [
        {"label": "顶层", "sublabel": "设计明确愿景"},
        {"label": "底层", "sublabel": "能力数据平台"},
    ]}


def test_hierarchy_repeated_level_counts_once():
    assert extract_hierarchy("战略层：方向一\n战略层：方向二") is None


def test_timeline_events():
    candidates = detect_visual_candidates("2019年 创立公司。2021年 完成融资。2023年 上市")
    assert [c.type for c in candidates] == ["timeline"]
    events = candidates[0].data["events"]
    assert [(e["year"], e["title"]) for e in events] == [
        ("2019", "创立公司"), ("2021", "完成融资"), ("2023", "上市"),
    ]


def test_funnel_stages_are_borderline():
    candidates = detect_visual_candidates("访问 10000，注册 2000，付费 300，留存 100")
    funnel = candidates[0]
    assert funnel.type == "funnel"
    assert funnel.data["stages"][0] == {"label": "访问", "value": "10000"}
    assert len(funnel.data["stages"]) == 4

    complexity = estimate_complexity("funnel", funnel.data)
    assert complexity == {"canInline": False, "needsSeparateSlide": False, "itemCount": 4, "borderline": True}


def test_tree_children():
    data = extract_tree("产品线包括：硬件、软件和服务")
    assert data["children"] == ["硬件", "软件", "服务"]
    assert extract_tree("没有分支") is None


def test_cycle_labels():
    assert extract_cycle("计划，执行，检查，改进") == {"labels": ["计划", "执行", "检查", "改进"]}
    assert extract_cycle("我们按计划推进") == {"labels": DEFAULT_CYCLE_LABELS}
    assert extract_cycle("hello") is None


def test_no_candidates_for_plain_text():
    assert detect_visual_candidates("hello world") == []
    assert recommend_visual(SlideRecord(id="s09", title="hello")) is None


def test_complexity_thresholds():
    steps = {"steps": [{"title": str(i), "description": ""} for i in range(7)]}
    complexity = estimate_complexity("flow", steps)
    assert complexity["needsSeparateSlide"] is True
    assert complexity["itemCount"] == 7
    assert estimate_complexity("unknown", {})["canInline"] is True


def test_analyze_document():
    document = Document(slides=[FLOW_SLIDE, COMPARISON_SLIDE, SlideRecord(id="s04", title="hello")])
    artifact = analyze_document(document, style="tech")
    assert artifact["style"] == "tech"
    assert artifact["totalSlides"] == 3
    assert artifact["slidesWithVisuals"] == 2
    assert [r["slideId"] for r in artifact["recommendations"]] == ["s02", "s03"]
    assert separate_visual_slides(artifact) == []


def test_separate_visual_slides():
    artifact = {"recommendations": [{"slideId": "s01", "action": INLINE},
                                    {"slideId": "s02", "action": CREATE_SEPARATE}]}
    assert [r["slideId"] for r in separate_visual_slides(artifact)] == ["s02"]
