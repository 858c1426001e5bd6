#!/usr/bin/env python3
"""Inspect a bleed-mirrored PDF: boxes, user unit and content stream."""

import sys

import pikepdf
from pikepdf import Name

import bleed_mirror


def summarize_page(page):
    """Collect what the bleed tool wrote on one output page."""
    summary = {
        "mediabox": [float(v) for v in page.mediabox],
        "trimbox": None,
        "bleedbox": None,
        "user_unit": bleed_mirror.get_unit_scale(page),
        "xobjects": [],
    }
    if Name.TrimBox in page.obj:
        summary["trimbox"] = [float(v) for v in page.obj[Name.TrimBox]]
    if Name.BleedBox in page.obj:
        summary["bleedbox"] = [float(v) for v in page.obj[Name.BleedBox]]

    res = page.obj.get(Name.Resources, {})
    if Name.XObject in res:
        summary["xobjects"] = [str(name) for name in res[Name.XObject].keys()]

    content = bleed_mirror.read_page_content(page).decode("latin-1")
    summary["content"] = content
    summary["draw_calls"] = content.count(" Do")
    summary["clips"] = content.count("re W n")
    summary["strokes"] = content.count(" l S")
    return summary


def verify(path):
    with pikepdf.open(path) as pdf:
        for i, page in enumerate(pdf.pages):
            s = summarize_page(page)
            print(f"=== Page {i+1} ===")
            print(f"MediaBox: {s['mediabox']}")
            print(f"TrimBox:  {s['trimbox'] if s['trimbox'] else 'MISSING!'}")
            print(f"BleedBox: {s['bleedbox'] if s['bleedbox'] else 'MISSING!'}")
            print(f"UserUnit: {s['user_unit']:g}")
            print(f"XObjects: {s['xobjects']}")
            print(f"Draws: {s['draw_calls']}  Clips: {s['clips']}  Strokes: {s['strokes']}")

            content = s["content"]
            print(f"\nContent stream ({len(content)} bytes):")
            print(content[:800])
            if len(content) > 800:
                print("...")
                print(content[-600:])
            print()


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else "test_output.pdf"
    verify(path)
