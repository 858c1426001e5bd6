#!/usr/bin/env python3
"""
PDF Bleed Mirroring Tool

Prepares PDFs for wide-format print production by:
1. Extending each page by per-edge bleed margins (in points)
2. Filling the bleed by mirroring the content next to each trim edge
3. Adding corner crop marks that stay inside the bleed
4. Optionally adding grommet crosses every N inches along the perimeter
5. Setting correct PDF boxes (MediaBox, TrimBox, BleedBox) and keeping /UserUnit

Usage:
    python bleed_mirror.py -i=Input.pdf -o=Output.pdf -l=72 -r=72 -t=36 -b=36 [-g=12]
"""

import argparse
import contextlib
import os
import sys

import pikepdf
from pikepdf import Pdf, Name, Array, Dictionary

import finishing_layout as fl


FORM_NAME = Name("/SrcPage")


# ── Content stream builder ─────────────────────────────────────────────────

class ContentStream:
    """Collects PDF content-stream operators for one output page."""

    def __init__(self):
        self.lines = []

    @contextlib.contextmanager
    def saved_state(self):
        """Graphics state scope: `q` on entry, `Q` on every exit path."""
        self.lines.append("q")
        try:
            yield self
        finally:
            self.lines.append("Q")

    def clip_rect(self, rect):
        self.lines.append(f"{rect.x:.4f} {rect.y:.4f} {rect.width:.4f} {rect.height:.4f} re W n")

    def concat(self, a, b, c, d, e, f):
        self.lines.append(f"{a:g} {b:g} {c:g} {d:g} {e:.4f} {f:.4f} cm")

    def draw_xobject_at(self, name, x, y):
        with self.saved_state():
            self.concat(1, 0, 0, 1, x, y)
            self.lines.append(f"{name} Do")

    def set_line_width(self, width):
        self.lines.append(f"{width:.4f} w")

    def set_stroke_rgb(self, r, g, b):
        self.lines.append(f"{r:g} {g:g} {b:g} RG")

    def line(self, x1, y1, x2, y2):
        self.lines.append(f"{x1:.4f} {y1:.4f} m {x2:.4f} {y2:.4f} l S")

    def to_bytes(self):
        return "\n".join(self.lines).encode("latin-1")


# ── Page access ────────────────────────────────────────────────────────────

def get_box(page, kind):
    """Return the page's own trim/crop/media box as a Rect, or None."""
    if kind == "media":
        values = page.mediabox
    else:
        key = {"trim": Name.TrimBox, "crop": Name.CropBox}[kind]
        values = page.obj.get(key)
        if values is None:
            return None
    x0, y0, x1, y1 = [float(v) for v in values]
    return fl.Rect.from_corners(x0, y0, x1, y1)


def get_unit_scale(page):
    """Declared /UserUnit of the page, 1.0 when absent."""
    value = page.obj.get(Name.UserUnit)
    if value is None:
        return 1.0
    return float(value)


def read_page_content(page):
    """Concatenate the page's content stream(s) into bytes."""
    obj = page.obj
    if Name.Contents not in obj:
        return b""
    contents = obj[Name.Contents]
    if isinstance(contents, pikepdf.Array):
        data = b""
        for stream_ref in contents:
            data += stream_ref.read_bytes() + b"\n"
        return data
    return contents.read_bytes()


def copy_as_form_xobject(pdf, page):
    """
    Wrap the page's content in a Form XObject.

    The form keeps the page's own coordinate system (no /Matrix), so it is
    positioned by the translation given when it is drawn.
    """
    form_xobj = pikepdf.Stream(pdf, read_page_content(page))
    form_xobj[Name.Type] = Name.XObject
    form_xobj[Name.Subtype] = Name.Form
    crop = get_box(page, "crop") or get_box(page, "media")
    form_xobj[Name.BBox] = Array(crop.as_box())
    form_xobj[Name.Resources] = page.obj.get(Name.Resources, Dictionary())
    return form_xobj


# ── Drawing ────────────────────────────────────────────────────────────────

def draw_mirrors(stream, mirrors, name=FORM_NAME):
    for region in mirrors:
        with stream.saved_state():
            stream.clip_rect(region.clip_rect)
            stream.concat(*region.matrix)
            stream.draw_xobject_at(name, *region.placement)


def draw_crop_marks(stream, segments, weight):
    if not segments:
        return
    with stream.saved_state():
        stream.set_line_width(weight)
        stream.set_stroke_rgb(0, 0, 0)
        for seg in segments:
            stream.line(seg.start[0], seg.start[1], seg.end[0], seg.end[1])


def draw_grommet_cross(stream, mark):
    """Thick white cross under a thin black one, both centred on the mark."""
    half = mark.size / 2.0
    for weight, rgb in ((mark.halo_weight, (1, 1, 1)), (mark.line_weight, (0, 0, 0))):
        with stream.saved_state():
            stream.set_line_width(weight)
            stream.set_stroke_rgb(*rgb)
            stream.line(mark.x - half, mark.y, mark.x + half, mark.y)
            stream.line(mark.x, mark.y - half, mark.x, mark.y + half)


def build_page_stream(layout, name=FORM_NAME):
    """
    Content order:
      a) original content at the content offset
      b) mirrored strips, each clipped to its bleed strip
      c) crop marks
      d) grommet crosses on top
    """
    stream = ContentStream()
    stream.draw_xobject_at(name, *layout.content_offset)
    draw_mirrors(stream, layout.mirrors, name)
    draw_crop_marks(stream, layout.crop_marks, layout.crop_mark_weight)
    for mark in layout.grommets:
        draw_grommet_cross(stream, mark)
    return stream


# ── Page processing ────────────────────────────────────────────────────────

def plan_pdf_page(page, config):
    candidates = [get_box(page, "trim"), get_box(page, "crop"), get_box(page, "media")]
    return fl.plan_page(candidates, config, get_unit_scale(page))


def process_page(pdf, page, page_index, config):
    """
    Re-compose a single page in place.

    Steps:
      1. Resolve the content box and canvas size
      2. Wrap the original content in a Form XObject
      3. Draw content, mirrors, crop marks and grommets
      4. Set MediaBox, TrimBox, BleedBox and /UserUnit
    """
    layout = plan_pdf_page(page, config)
    box = layout.content_box
    canvas = layout.canvas

    form_xobj = copy_as_form_xobject(pdf, page)

    new_resources = Dictionary()
    xobj_dict = Dictionary()
    xobj_dict[FORM_NAME] = form_xobj
    new_resources[Name.XObject] = xobj_dict
    new_resources[Name.ProcSet] = Array([
        Name.PDF, Name.Text, Name.ImageB, Name.ImageC, Name.ImageI,
    ])

    stream = build_page_stream(layout)

    obj = page.obj
    obj[Name.Contents] = pikepdf.Stream(pdf, stream.to_bytes())
    obj[Name.Resources] = new_resources
    obj[Name.MediaBox] = Array([0, 0, canvas.width, canvas.height])
    obj[Name.TrimBox] = Array(layout.trim_rect.as_box())
    obj[Name.BleedBox] = Array([0, 0, canvas.width, canvas.height])
    obj[Name.UserUnit] = layout.scale

    for key in (Name.CropBox, Name.Rotate, Name.Annots):
        # Annotations are positioned in the old coordinate frame
        if key in obj:
            del obj[key]

    mirrored = ", ".join(m.edge for m in layout.mirrors) or "none"
    print(f"  Page {page_index + 1}: content = {box.width:.2f} × {box.height:.2f} pt "
          f"at ({box.x:.2f}, {box.y:.2f}), canvas = {canvas.width:.2f} × {canvas.height:.2f} pt"
          f"{f'  (user unit: {layout.scale:g})' if layout.scale != 1 else ''}")
    print(f"    Mirrored edges: {mirrored}; crop marks: {len(layout.crop_marks)}; "
          f"grommets: {len(layout.grommets)}")
    return layout


def process_pdf(input_path, output_path, config):
    """Process all pages of a PDF; returns the list of page layouts."""
    if not os.path.isfile(input_path):
        raise fl.InputNotFoundError(f"input file '{input_path}' does not exist.")

    bleed = config.bleed
    spacing = config.grommet_spacing_in
    print("=== PDF Bleed Mirroring ===")
    print(f"Input: {input_path}")
    print(f"Output: {output_path}")
    print(f"Bleeds (pts): Left={bleed.left:g}, Right={bleed.right:g}, "
          f"Top={bleed.top:g}, Bottom={bleed.bottom:g}")
    print(f"Grommet spacing (inches): {f'{spacing:g}' if spacing and spacing > 0 else 'none'}"
          f"{f' ({config.grommet_policy.value})' if spacing and spacing > 0 else ''}")

    layouts = []
    with Pdf.open(input_path) as pdf:
        num_pages = len(pdf.pages)
        print(f"Processing {num_pages} page(s)...")
        for i, page in enumerate(pdf.pages):
            layouts.append(process_page(pdf, page, i, config))
        pdf.save(output_path, linearize=False)

    print(f"Finished! Saved to {output_path}")
    return layouts


def verify_page(page, layout):
    """Check the boxes of one output page against its planned layout."""
    mbox = [float(v) for v in page.mediabox]
    tbox = [float(v) for v in page.obj.get(Name.TrimBox, page.mediabox)]
    margins = layout.margins

    bleed_l = tbox[0] - mbox[0]
    bleed_r = mbox[2] - tbox[2]
    bleed_b = tbox[1] - mbox[1]
    bleed_t = mbox[3] - tbox[3]

    checks = [
        ("TrimBox present", Name.TrimBox in page.obj),
        ("BleedBox present", Name.BleedBox in page.obj),
        (f"Bleed Left = {margins.left:g} pt", abs(bleed_l - margins.left) < 0.01),
        (f"Bleed Right = {margins.right:g} pt", abs(bleed_r - margins.right) < 0.01),
        (f"Bleed Top = {margins.top:g} pt", abs(bleed_t - margins.top) < 0.01),
        (f"Bleed Bottom = {margins.bottom:g} pt", abs(bleed_b - margins.bottom) < 0.01),
        ("Trim width = content width",
         abs((tbox[2] - tbox[0]) - layout.content_box.width) < 0.01),
        (f"UserUnit = {layout.scale:g}",
         abs(float(page.obj.get(Name.UserUnit, 1)) - layout.scale) < 1e-6),
    ]
    return [{"label": label, "pass": ok} for label, ok in checks]


def verify_output(path, layouts):
    """Reopen the output PDF and print PASS/FAIL per page."""
    print("VERIFICATION:")
    results = []
    with Pdf.open(path) as pdf:
        for i, (page, layout) in enumerate(zip(pdf.pages, layouts)):
            checks = verify_page(page, layout)
            all_pass = all(c["pass"] for c in checks)
            print(f"  Page {i + 1}:")
            for check in checks:
                print(f"    [{'PASS' if check['pass'] else 'FAIL'}] {check['label']}")
            if not all_pass:
                print("    WARNING: Some checks failed!")
            results.append({"page": i + 1, "checks": checks, "all_pass": all_pass})
    return results


# ── CLI ────────────────────────────────────────────────────────────────────

def build_parser():
    parser = argparse.ArgumentParser(
        description="Mirror page content into bleed margins and add crop/grommet marks.",
        epilog="Example: bleed-mirror -i=Input.pdf -o=Output.pdf -l=72 -r=72 -t=36 -b=36 -g=12",
    )
    parser.add_argument("-i", "--input", dest="input_path", required=True, help="Input PDF.")
    parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF.")

    bleed_group = parser.add_argument_group("Bleed (points)")
    bleed_group.add_argument("-l", "--left", type=float, required=True)
    bleed_group.add_argument("-r", "--right", type=float, required=True)
    bleed_group.add_argument("-t", "--top", type=float, required=True)
    bleed_group.add_argument("-b", "--bottom", type=float, required=True)

    grommet_group = parser.add_argument_group("Grommets")
    grommet_group.add_argument("-g", "--grommets", dest="grommet_spacing", type=float,
                               default=None, help="Grommet spacing in inches.")
    grommet_group.add_argument("--grommet-offset", dest="grommet_offset", type=float,
                               default=fl.DEFAULT_GROMMET_OFFSET_IN,
                               help="Inward offset from the trim edge in inches.")
    grommet_group.add_argument("--grommet-policy", dest="grommet_policy",
                               choices=[p.value for p in fl.GrommetSpacing],
                               default=fl.GrommetSpacing.FIXED_STEP.value,
                               help="step: exact spacing; distribute: even intervals ending at both offsets.")
    return parser


def build_config(args):
    return fl.FinishingConfig(
        bleed=fl.BleedMargins(left=args.left, right=args.right, top=args.top, bottom=args.bottom),
        grommet_spacing_in=args.grommet_spacing,
        grommet_offset_in=args.grommet_offset,
        grommet_policy=fl.GrommetSpacing.parse(args.grommet_policy),
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = build_config(args)
    try:
        layouts = process_pdf(args.input_path, args.output_path, config)
        verify_output(args.output_path, layouts)
    except Exception as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
