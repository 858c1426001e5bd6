#!/usr/bin/env python3
"""Create test PDFs with edge markers for validating the bleed mirroring tool."""

import pikepdf
from pikepdf import Name, Array
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from reportlab.lib.colors import HexColor


def create_test_pdf(output_path="test_input.pdf", pagesize=letter, pages=1,
                    trim_inset=None, crop_inset=None, user_unit=None):
    """
    Create a PDF whose edges are easy to spot once mirrored.

    trim_inset / crop_inset add a TrimBox / CropBox inset by that many points
    on every side; user_unit sets /UserUnit on every page.
    """
    width, height = pagesize
    c = canvas.Canvas(output_path, pagesize=(width, height))

    for n in range(pages):
        # Light background with a darker band
        c.setFillColor(HexColor("#f5f0e8"))
        c.rect(0, 0, width, height, fill=1, stroke=0)
        c.setFillColor(HexColor("#2d4a6f"))
        c.rect(0, height * 0.3, width, height * 0.4, fill=1, stroke=0)

        c.setFillColor(HexColor("#333333"))
        c.setFont("Helvetica-Bold", 24)
        c.drawCentredString(width / 2, height / 2, f"Bleed Mirror Test - Page {n + 1}")

        # Edge markers (should reappear mirrored in the bleed)
        c.setFillColor(HexColor("#00ff88"))
        c.rect(0, height/2 - 5, 10, 10, fill=1, stroke=0)           # left edge
        c.rect(width - 10, height/2 - 5, 10, 10, fill=1, stroke=0)  # right edge
        c.rect(width/2 - 5, 0, 10, 10, fill=1, stroke=0)            # bottom edge
        c.rect(width/2 - 5, height - 10, 10, 10, fill=1, stroke=0)  # top edge

        c.showPage()
    c.save()

    if trim_inset is not None or crop_inset is not None or user_unit is not None:
        with pikepdf.open(output_path, allow_overwriting_input=True) as pdf:
            for page in pdf.pages:
                if trim_inset is not None:
                    page.obj[Name.TrimBox] = Array(
                        [trim_inset, trim_inset, width - trim_inset, height - trim_inset])
                if crop_inset is not None:
                    page.obj[Name.CropBox] = Array(
                        [crop_inset, crop_inset, width - crop_inset, height - crop_inset])
                if user_unit is not None:
                    page.obj[Name.UserUnit] = user_unit
            pdf.save(output_path)
    return output_path


if __name__ == "__main__":
    path = create_test_pdf()
    print(f"Created test PDF: {path}")
