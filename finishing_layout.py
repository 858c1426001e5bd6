#!/usr/bin/env python3
"""
Print finishing layout engine.

Pure geometry for wide-format finishing. Given a page's candidate boxes and
the requested bleed margins it decides:
1. Which box is the content box and how large the extended canvas is
2. Where mirrored copies of the content go to fill each bleed strip
3. Where the corner crop marks are drawn
4. Where grommet (eyelet) crosses are placed along the perimeter

Nothing here touches a PDF. All coordinates are in the canvas frame of the
output page: origin at the lower-left corner of the bleed area.
"""

import enum
import math
from dataclasses import dataclass, field


# ── Constants (all in points: 1 inch = 72 pt) ──────────────────────────────
PTS_PER_INCH = 72

# Crop mark drawing parameters (scaled by the page unit scale)
MARK_LENGTH = 20.0
MARK_WEIGHT = 0.5

# Grommet cross: 9 pt = 1/8" at scale 1, white halo under a black line
GROMMET_CROSS_SIZE = 9.0
GROMMET_HALO_WEIGHT = 2.0
GROMMET_LINE_WEIGHT = 1.0
DEFAULT_GROMMET_OFFSET_IN = 0.5

# Absorbs float error when the span is an exact multiple of the spacing
STEP_EPSILON = 0.0001

EDGES = ("left", "right", "top", "bottom")


# ── Errors ─────────────────────────────────────────────────────────────────

class FinishingError(Exception):
    """Base class for fatal finishing errors."""


class InputNotFoundError(FinishingError):
    pass


class InvalidArgumentError(FinishingError, ValueError):
    pass


class DegenerateGeometryError(FinishingError, ValueError):
    """No candidate box on the page has a positive width."""


# ── Value types ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, x0, y0, x1, y1):
        """Build a rectangle from a PDF-style [x0 y0 x1 y1] array."""
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))

    @property
    def right(self):
        return self.x + self.width

    @property
    def top(self):
        return self.y + self.height

    def as_box(self):
        return [self.x, self.y, self.right, self.top]


@dataclass(frozen=True)
class BleedMargins:
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    def normalized(self):
        """Clamp every edge independently so that zero or negative means off."""
        return BleedMargins(
            left=max(self.left, 0.0),
            right=max(self.right, 0.0),
            top=max(self.top, 0.0),
            bottom=max(self.bottom, 0.0),
        )

    def get(self, edge):
        return getattr(self, edge)

    def active_edges(self):
        return [edge for edge in EDGES if self.get(edge) > 0]


@dataclass(frozen=True)
class CanvasFrame:
    width: float
    height: float


@dataclass(frozen=True)
class MirrorRegion:
    """
    One mirrored bleed strip.

    clip_rect      – the bleed strip in canvas space
    matrix         – (a, b, c, d, e, f) reflection + re-anchoring translation
    placement      – (x, y) at which the content object is drawn after
                     `matrix` has been applied
    content_origin – (x, y) of the content box's source origin, used to map
                     source space back into canvas space
    """
    edge: str
    clip_rect: Rect
    matrix: tuple
    placement: tuple
    content_origin: tuple = (0.0, 0.0)

    def source_to_canvas(self, px, py):
        """Where a point of the source page lands inside this strip."""
        a, b, c, d, e, f = self.matrix
        tx = px + self.placement[0]
        ty = py + self.placement[1]
        return (a * tx + c * ty + e, b * tx + d * ty + f)

    def reflect(self, x, y):
        """
        Reflect a canvas-space point across the trim line of this edge.

        The unmirrored copy maps source (px, py) to canvas
        (px - ox, py - oy) where (ox, oy) is `content_origin`, so undoing that
        and applying `source_to_canvas` gives the canvas-space reflection.
        """
        ox, oy = self.content_origin
        return self.source_to_canvas(x + ox, y + oy)


@dataclass(frozen=True)
class CropMarkSegment:
    edge: str
    start: tuple
    end: tuple

    @property
    def length(self):
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])


@dataclass(frozen=True)
class GrommetMark:
    edge: str
    x: float
    y: float
    size: float
    halo_weight: float
    line_weight: float


class GrommetSpacing(enum.Enum):
    """How grommet positions are spread over the usable span."""
    FIXED_STEP = "step"
    DISTRIBUTE = "distribute"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(p.value for p in cls)
            raise InvalidArgumentError(
                f"Unknown grommet policy {value!r} (expected one of: {names})"
            ) from None


@dataclass(frozen=True)
class FinishingConfig:
    bleed: BleedMargins = field(default_factory=BleedMargins)
    grommet_spacing_in: float = None
    grommet_offset_in: float = DEFAULT_GROMMET_OFFSET_IN
    grommet_policy: GrommetSpacing = GrommetSpacing.FIXED_STEP
    mark_length: float = MARK_LENGTH
    mark_weight: float = MARK_WEIGHT
    grommet_cross_size: float = GROMMET_CROSS_SIZE
    grommet_halo_weight: float = GROMMET_HALO_WEIGHT
    grommet_line_weight: float = GROMMET_LINE_WEIGHT


@dataclass(frozen=True)
class PageLayout:
    content_box: Rect
    margins: BleedMargins
    canvas: CanvasFrame
    scale: float
    content_offset: tuple
    trim_rect: Rect
    mirrors: list
    crop_marks: list
    crop_mark_weight: float
    grommets: list


# ── UnitScalingAdapter ─────────────────────────────────────────────────────

def to_page_units(physical_inches, scale=1.0):
    """Convert inches to page units under a per-page scale factor."""
    return physical_inches * PTS_PER_INCH * scale


def check_scale(scale):
    if scale is None:
        return 1.0
    scale = float(scale)
    if not scale > 0:
        raise InvalidArgumentError(f"Unit scale must be positive, got {scale}")
    return scale


# ── GeometryResolver ───────────────────────────────────────────────────────

def resolve_content_box(candidates):
    """
    Pick the authoritative content box.

    `candidates` is ordered most to least specific (trim, crop, media); None
    entries are allowed. The first box with a positive width wins.
    """
    for box in candidates:
        if box is not None and box.width > 0:
            return box
    raise DegenerateGeometryError("Page has no box with a positive width")


def resolve_geometry(candidates, margins):
    """Return (content_box, normalized margins, canvas frame)."""
    content_box = resolve_content_box(candidates)
    margins = margins.normalized()
    canvas = CanvasFrame(
        width=content_box.width + margins.left + margins.right,
        height=max(content_box.height, 0.0) + margins.top + margins.bottom,
    )
    return content_box, margins, canvas


# ── BleedMirrorPlanner ─────────────────────────────────────────────────────

def plan_mirrors(content_box, margins, canvas):
    """
    Compute up to four mirrored bleed strips.

    Left and bottom strips reflect around the near trim line, right and top
    strips around the far one, so the source offset for right/top carries the
    content dimension as well as the margin.
    """
    margins = margins.normalized()
    x0, y0 = content_box.x, content_box.y
    w, h = content_box.width, content_box.height
    left, right, top, bottom = margins.left, margins.right, margins.top, margins.bottom
    origin = (x0 - left, y0 - bottom)

    regions = []
    if left > 0 and h > 0:
        regions.append(MirrorRegion(
            edge="left",
            clip_rect=Rect(0.0, bottom, left, h),
            matrix=(-1, 0, 0, 1, 0, 0),
            placement=(-x0 - left, -y0 + bottom),
            content_origin=origin,
        ))
    if right > 0 and h > 0:
        regions.append(MirrorRegion(
            edge="right",
            clip_rect=Rect(canvas.width - right, bottom, right, h),
            matrix=(-1, 0, 0, 1, canvas.width, 0),
            placement=(-x0 - w + right, -y0 + bottom),
            content_origin=origin,
        ))
    if top > 0 and w > 0:
        regions.append(MirrorRegion(
            edge="top",
            clip_rect=Rect(left, canvas.height - top, w, top),
            matrix=(1, 0, 0, -1, 0, canvas.height),
            placement=(-x0 + left, -y0 - h + top),
            content_origin=origin,
        ))
    if bottom > 0 and w > 0:
        regions.append(MirrorRegion(
            edge="bottom",
            clip_rect=Rect(left, 0.0, w, bottom),
            matrix=(1, 0, 0, -1, 0, bottom),
            placement=(-x0 + left, -y0),
            content_origin=origin,
        ))
    return regions


# ── CropMarkPlanner ────────────────────────────────────────────────────────

def plan_crop_marks(content_box, margins, scale=1.0, mark_length=MARK_LENGTH):
    """
    Two segments per trim corner, each running outward into the bleed.

    A segment is never longer than the bleed on its side and is left out when
    that side has no bleed.
    """
    margins = margins.normalized()
    length = mark_length * scale
    left_x = margins.left
    right_x = margins.left + content_box.width
    bottom_y = margins.bottom
    top_y = margins.bottom + content_box.height

    corners = [
        # (corner_x, corner_y, horizontal edge, h_dir, vertical edge, v_dir)
        (left_x, bottom_y, "left", -1, "bottom", -1),
        (right_x, bottom_y, "right", +1, "bottom", -1),
        (left_x, top_y, "left", -1, "top", +1),
        (right_x, top_y, "right", +1, "top", +1),
    ]

    segments = []
    for cx, cy, h_edge, h_dir, v_edge, v_dir in corners:
        h_bleed = margins.get(h_edge)
        if h_bleed > 0:
            reach = min(length, h_bleed)
            segments.append(CropMarkSegment(h_edge, (cx, cy), (cx + h_dir * reach, cy)))
        v_bleed = margins.get(v_edge)
        if v_bleed > 0:
            reach = min(length, v_bleed)
            segments.append(CropMarkSegment(v_edge, (cx, cy), (cx, cy + v_dir * reach)))
    return segments


# ── GrommetPlacementPlanner ────────────────────────────────────────────────

def _usable_span(distance, spacing, offset):
    if spacing <= 0 or offset < 0 or 2 * offset >= distance:
        return None
    return distance - 2 * offset


def grommet_positions_stepped(distance, spacing, offset):
    """
    Step by exactly `spacing` from `offset` until passing `distance - offset`.

    The last gap before the far offset may be short or missing entirely.
    """
    if _usable_span(distance, spacing, offset) is None:
        return []
    max_pos = distance - offset
    positions = []
    count = 0
    current = offset
    # STEP_EPSILON keeps the far position when spacing divides the span exactly
    while current <= max_pos + STEP_EPSILON:
        positions.append(current)
        count += 1
        current = offset + count * spacing
    return positions


def grommet_positions_distributed(distance, spacing, offset):
    """
    Spread equal intervals no wider than `spacing` from `offset` to
    `distance - offset`; both end positions are always present.
    """
    usable = _usable_span(distance, spacing, offset)
    if usable is None:
        return []
    intervals = math.ceil(usable / spacing)
    actual = usable / intervals
    positions = [offset + i * actual for i in range(intervals)]
    positions.append(distance - offset)
    return positions


_POLICY_FUNCS = {
    GrommetSpacing.FIXED_STEP: grommet_positions_stepped,
    GrommetSpacing.DISTRIBUTE: grommet_positions_distributed,
}


def plan_grommets(distance_x, distance_y, spacing_pts, offset_pts,
                  policy=GrommetSpacing.FIXED_STEP):
    """Return (x_positions, y_positions) along the content width and height."""
    func = _POLICY_FUNCS[GrommetSpacing.parse(policy)]
    if spacing_pts is None or spacing_pts <= 0:
        return [], []
    return (func(distance_x, spacing_pts, offset_pts),
            func(distance_y, spacing_pts, offset_pts))


def place_grommet_marks(content_box, margins, x_positions, y_positions,
                        offset_pts, scale=1.0, config=None):
    """
    Turn 1-D positions into cross marks on the perimeter.

    X positions feed the top and bottom rows, Y positions the left and right
    columns, each `offset_pts` in from the trim edge.
    """
    config = config or FinishingConfig()
    margins = margins.normalized()
    size = config.grommet_cross_size * scale
    halo = config.grommet_halo_weight * scale
    line = config.grommet_line_weight * scale
    w, h = content_box.width, content_box.height
    left, bottom = margins.left, margins.bottom

    marks = []
    for x in x_positions:
        marks.append(GrommetMark("top", left + x, bottom + h - offset_pts, size, halo, line))
        marks.append(GrommetMark("bottom", left + x, bottom + offset_pts, size, halo, line))
    for y in y_positions:
        marks.append(GrommetMark("left", left + offset_pts, bottom + y, size, halo, line))
        marks.append(GrommetMark("right", left + w - offset_pts, bottom + y, size, halo, line))
    return marks


# ── Page planning ──────────────────────────────────────────────────────────

def plan_page(candidates, config, scale=1.0):
    """
    Run the resolver and then every planner for one page.

    `candidates` are the trim, crop and media boxes in that order and `scale`
    is the page's declared unit scale.
    """
    scale = check_scale(scale)
    content_box, margins, canvas = resolve_geometry(candidates, config.bleed)

    mirrors = plan_mirrors(content_box, margins, canvas)
    crop_marks = plan_crop_marks(content_box, margins, scale, config.mark_length)

    grommets = []
    if config.grommet_spacing_in is not None and config.grommet_spacing_in > 0:
        spacing_pts = to_page_units(config.grommet_spacing_in, scale)
        offset_pts = to_page_units(config.grommet_offset_in, scale)
        xs, ys = plan_grommets(content_box.width, content_box.height,
                               spacing_pts, offset_pts, config.grommet_policy)
        grommets = place_grommet_marks(content_box, margins, xs, ys,
                                       offset_pts, scale, config)

    return PageLayout(
        content_box=content_box,
        margins=margins,
        canvas=canvas,
        scale=scale,
        content_offset=(margins.left - content_box.x, margins.bottom - content_box.y),
        trim_rect=Rect(margins.left, margins.bottom, content_box.width,
                       max(content_box.height, 0.0)),
        mirrors=mirrors,
        crop_marks=crop_marks,
        crop_mark_weight=config.mark_weight * scale,
        grommets=grommets,
    )
