import pytest

import finishing_layout as fl


EPSILON = 1e-6

LETTER = fl.Rect(0.0, 0.0, 612.0, 792.0)
BANNER_BLEED = fl.BleedMargins(left=72.0, right=72.0, top=36.0, bottom=36.0)


#============================================
def build_default_config(**kwargs) -> fl.FinishingConfig:
    """
    Build a FinishingConfig with the banner bleed used across tests.
    """
    kwargs.setdefault("bleed", BANNER_BLEED)
    return fl.FinishingConfig(**kwargs)


#============================================
def test_resolver_precedence() -> None:
    """
    Trim wins over crop over media; zero-width boxes are skipped.
    """
    trim = fl.Rect(9.0, 9.0, 594.0, 774.0)
    crop = fl.Rect(0.0, 0.0, 600.0, 780.0)
    assert fl.resolve_content_box([trim, crop, LETTER]) == trim
    assert fl.resolve_content_box([None, crop, LETTER]) == crop
    assert fl.resolve_content_box([fl.Rect(0, 0, 0, 10), None, LETTER]) == LETTER


#============================================
def test_resolver_without_usable_box_is_fatal() -> None:
    with pytest.raises(fl.DegenerateGeometryError):
        fl.resolve_content_box([None, fl.Rect(0, 0, 0, 100), fl.Rect(0, 0, -5, 100)])


#============================================
def test_rect_from_corners_normalizes() -> None:
    rect = fl.Rect.from_corners(612, 792, 0, 0)
    assert rect == LETTER
    assert rect.as_box() == [0.0, 0.0, 612.0, 792.0]


#============================================
def test_canvas_scenario() -> None:
    """
    Letter page with 72/72/36/36 bleed grows to 756 x 864.
    """
    box, margins, canvas = fl.resolve_geometry([None, None, LETTER], BANNER_BLEED)
    assert box == LETTER
    assert (canvas.width, canvas.height) == (756.0, 864.0)
    assert len(fl.plan_mirrors(box, margins, canvas)) == 4
    assert len(fl.plan_crop_marks(box, margins)) == 8


#============================================
def test_negative_bleed_normalized_per_edge() -> None:
    """
    A negative margin counts as zero on that edge only.
    """
    margins = fl.BleedMargins(left=-10.0, right=20.0, top=0.0, bottom=5.0)
    box, normalized, canvas = fl.resolve_geometry([LETTER], margins)
    assert normalized == fl.BleedMargins(0.0, 20.0, 0.0, 5.0)
    assert normalized.active_edges() == ["right", "bottom"]
    assert canvas.width == 632.0
    assert canvas.height == 797.0
    assert canvas.width >= box.width and canvas.height >= box.height


#============================================
def test_zero_left_bleed_drops_left_edge() -> None:
    """
    No left mirror and the two left crop-mark segments disappear.
    """
    margins = fl.BleedMargins(left=0.0, right=72.0, top=36.0, bottom=36.0)
    box, margins, canvas = fl.resolve_geometry([LETTER], margins)
    mirrors = fl.plan_mirrors(box, margins, canvas)
    marks = fl.plan_crop_marks(box, margins)
    assert [m.edge for m in mirrors] == ["right", "top", "bottom"]
    assert len(marks) == 6
    assert all(seg.edge != "left" for seg in marks)


#============================================
def test_mirror_clip_strips() -> None:
    """
    Each clip rectangle is exactly the bleed strip along the content.
    """
    box = fl.Rect(10.0, 20.0, 612.0, 792.0)
    _, margins, canvas = fl.resolve_geometry([box], BANNER_BLEED)
    clips = {m.edge: m.clip_rect for m in fl.plan_mirrors(box, margins, canvas)}
    assert clips["left"] == fl.Rect(0.0, 36.0, 72.0, 792.0)
    assert clips["right"] == fl.Rect(684.0, 36.0, 72.0, 792.0)
    assert clips["top"] == fl.Rect(72.0, 828.0, 612.0, 36.0)
    assert clips["bottom"] == fl.Rect(72.0, 0.0, 612.0, 36.0)

    trim = fl.Rect(72.0, 36.0, 612.0, 792.0)
    for clip in clips.values():
        # strips never reach into the trim interior
        overlap_w = min(clip.right, trim.right) - max(clip.x, trim.x)
        overlap_h = min(clip.top, trim.top) - max(clip.y, trim.y)
        assert overlap_w <= 0 or overlap_h <= 0


#============================================
def test_mirror_matrices_and_offsets() -> None:
    """
    Right and top strips pivot around the far content boundary.
    """
    box = fl.Rect(10.0, 20.0, 600.0, 800.0)
    margins = fl.BleedMargins(left=30.0, right=40.0, top=50.0, bottom=60.0)
    _, margins, canvas = fl.resolve_geometry([box], margins)
    regions = {m.edge: m for m in fl.plan_mirrors(box, margins, canvas)}

    assert regions["left"].matrix == (-1, 0, 0, 1, 0, 0)
    assert regions["left"].placement == (-10.0 - 30.0, -20.0 + 60.0)
    assert regions["right"].matrix == (-1, 0, 0, 1, canvas.width, 0)
    assert regions["right"].placement == (-10.0 - 600.0 + 40.0, -20.0 + 60.0)
    assert regions["top"].matrix == (1, 0, 0, -1, 0, canvas.height)
    assert regions["top"].placement == (-10.0 + 30.0, -20.0 - 800.0 + 50.0)
    assert regions["bottom"].matrix == (1, 0, 0, -1, 0, 60.0)
    assert regions["bottom"].placement == (-10.0 + 30.0, -20.0)


#============================================
def test_mirror_continuity_at_trim_line() -> None:
    """
    The source pixel on each content edge lands on the trim line, and
    pixels further inside land further out in the bleed.
    """
    box = fl.Rect(10.0, 20.0, 600.0, 800.0)
    margins = fl.BleedMargins(left=30.0, right=40.0, top=50.0, bottom=60.0)
    _, margins, canvas = fl.resolve_geometry([box], margins)
    regions = {m.edge: m for m in fl.plan_mirrors(box, margins, canvas)}
    mid_y = box.y + box.height / 2
    mid_x = box.x + box.width / 2

    x, y = regions["left"].source_to_canvas(box.x, mid_y)
    assert x == pytest.approx(30.0) and y == pytest.approx(60.0 + 400.0)
    assert regions["left"].source_to_canvas(box.x + 5, mid_y)[0] == pytest.approx(25.0)

    x, _ = regions["right"].source_to_canvas(box.right, mid_y)
    assert x == pytest.approx(30.0 + 600.0)
    assert regions["right"].source_to_canvas(box.right - 5, mid_y)[0] == pytest.approx(635.0)

    _, y = regions["top"].source_to_canvas(mid_x, box.top)
    assert y == pytest.approx(60.0 + 800.0)
    assert regions["top"].source_to_canvas(mid_x, box.top - 5)[1] == pytest.approx(865.0)

    x, y = regions["bottom"].source_to_canvas(mid_x, box.y)
    assert y == pytest.approx(60.0) and x == pytest.approx(30.0 + 300.0)
    assert regions["bottom"].source_to_canvas(mid_x, box.y + 5)[1] == pytest.approx(55.0)


#============================================
def test_mirror_reflection_is_involution() -> None:
    box = fl.Rect(10.0, 20.0, 600.0, 800.0)
    margins = fl.BleedMargins(left=30.0, right=40.0, top=50.0, bottom=60.0)
    _, margins, canvas = fl.resolve_geometry([box], margins)
    points = [(30.0, 60.0), (630.0, 860.0), (30.0, 500.0), (300.0, 860.0), (12.5, 47.25)]
    for region in fl.plan_mirrors(box, margins, canvas):
        for point in points:
            once = region.reflect(*point)
            twice = region.reflect(*once)
            assert twice == pytest.approx(point, abs=EPSILON)


#============================================
def test_zero_height_content_skips_side_mirrors() -> None:
    box = fl.Rect(0.0, 0.0, 100.0, 0.0)
    _, margins, canvas = fl.resolve_geometry([box], BANNER_BLEED)
    edges = [m.edge for m in fl.plan_mirrors(box, margins, canvas)]
    assert edges == ["top", "bottom"]


#============================================
@pytest.mark.parametrize("scale", [1.0, 0.5, 2.0, 10.0])
def test_crop_mark_length_clamped(scale) -> None:
    """
    Every segment is min(mark length * scale, bleed on its side).
    """
    margins = fl.BleedMargins(left=72.0, right=5.0, top=36.0, bottom=12.0)
    segments = fl.plan_crop_marks(LETTER, margins, scale)
    assert len(segments) == 8
    for seg in segments:
        expected = min(fl.MARK_LENGTH * scale, margins.get(seg.edge))
        assert seg.length == pytest.approx(expected)
        assert seg.length <= margins.get(seg.edge) + EPSILON


#============================================
def test_crop_marks_start_at_trim_corners() -> None:
    segments = fl.plan_crop_marks(LETTER, BANNER_BLEED)
    corners = {(72.0, 36.0), (684.0, 36.0), (72.0, 828.0), (684.0, 828.0)}
    assert {seg.start for seg in segments} == corners
    for seg in segments:
        # axis aligned and pointing away from the content
        assert seg.start[0] == seg.end[0] or seg.start[1] == seg.end[1]
        if seg.edge == "left":
            assert seg.end[0] < seg.start[0]
        elif seg.edge == "right":
            assert seg.end[0] > seg.start[0]
        elif seg.edge == "top":
            assert seg.end[1] > seg.start[1]
        else:
            assert seg.end[1] < seg.start[1]


#============================================
def test_to_page_units() -> None:
    assert fl.to_page_units(12.0) == 864.0
    assert fl.to_page_units(0.5, 2.0) == 72.0


#============================================
def test_plan_page_scales_physical_inputs_only() -> None:
    """
    Grommet spacing, offset and mark sizes scale; bleed margins do not.
    """
    config = build_default_config(grommet_spacing_in=2.0)
    layout = fl.plan_page([None, None, LETTER], config, scale=2.0)
    assert (layout.canvas.width, layout.canvas.height) == (756.0, 864.0)
    assert layout.crop_mark_weight == 1.0
    # spacing 288, offset 72: x at 72, 360; y at 72, 360, 648
    assert len(layout.grommets) == 2 * 2 + 2 * 3
    bottom = [m for m in layout.grommets if m.edge == "bottom"]
    assert [m.x for m in bottom] == [72.0 + 72.0, 72.0 + 360.0]
    assert all(m.y == 36.0 + 72.0 for m in bottom)


#============================================
def test_plan_page_policy_selection() -> None:
    step = fl.plan_page([LETTER], build_default_config(grommet_spacing_in=2.0))
    spread = fl.plan_page([LETTER], build_default_config(
        grommet_spacing_in=2.0, grommet_policy=fl.GrommetSpacing.DISTRIBUTE))
    step_right = max(m.x for m in step.grommets if m.edge == "top")
    spread_right = max(m.x for m in spread.grommets if m.edge == "top")
    assert step_right == 72.0 + 468.0
    assert spread_right == 72.0 + 612.0 - 36.0


#============================================
def test_plan_page_without_grommets() -> None:
    layout = fl.plan_page([LETTER], build_default_config())
    assert layout.grommets == []
    assert layout.content_offset == (72.0, 36.0)
    assert layout.trim_rect == fl.Rect(72.0, 36.0, 612.0, 792.0)


#============================================
@pytest.mark.parametrize("scale", [0.0, -1.0])
def test_plan_page_rejects_bad_scale(scale) -> None:
    with pytest.raises(fl.InvalidArgumentError):
        fl.plan_page([LETTER], build_default_config(), scale=scale)
