#!/usr/bin/env python3
"""
PDF Bleed Mirroring – Web UI.

Run:
    python bleed_app.py

Then POST a PDF to http://localhost:5001/api/preview and process it with
/api/process.
"""

import base64
import os
import tempfile
import uuid

from flask import Flask, request, jsonify, send_file

from pikepdf import Pdf
import fitz  # pymupdf – for thumbnail rendering

import bleed_mirror
import finishing_layout as fl


THUMBNAIL_DPI = 96

app = Flask(__name__)

UPLOAD_DIR = os.path.join(tempfile.gettempdir(), "pdf_bleed_uploads")
os.makedirs(UPLOAD_DIR, exist_ok=True)


# ── Helpers ───────────────────────────────────────────────────────────────────

def render_thumbnails(pdf_path, dpi=THUMBNAIL_DPI):
    """Return list of base64-encoded PNG thumbnails, one per page."""
    doc = fitz.open(pdf_path)
    thumbs = []
    for page in doc:
        zoom = dpi / 72.0
        mat = fitz.Matrix(zoom, zoom)
        pix = page.get_pixmap(matrix=mat, alpha=False)
        png_data = pix.tobytes("png")
        thumbs.append(base64.b64encode(png_data).decode("ascii"))
    doc.close()
    return thumbs


def valid_job_id(job_id):
    return bool(job_id) and job_id.isalnum() and len(job_id) == 8


def form_float(name, default=None):
    raw = request.form.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise fl.InvalidArgumentError(f"{name} must be numeric, got {raw!r}") from None


def config_from_form():
    spacing = form_float("grommet_spacing")
    return fl.FinishingConfig(
        bleed=fl.BleedMargins(
            left=form_float("bleed_left", 0.0),
            right=form_float("bleed_right", 0.0),
            top=form_float("bleed_top", 0.0),
            bottom=form_float("bleed_bottom", 0.0),
        ),
        grommet_spacing_in=spacing,
        grommet_offset_in=form_float("grommet_offset", fl.DEFAULT_GROMMET_OFFSET_IN),
        grommet_policy=fl.GrommetSpacing.parse(
            request.form.get("grommet_policy", fl.GrommetSpacing.FIXED_STEP.value)),
    )


def summarize_layout(index, layout):
    box = layout.content_box
    canvas = layout.canvas
    return {
        "page": index + 1,
        "content_size": f"{box.width/72:.3f}\" x {box.height/72:.3f}\"",
        "canvas_size": f"{canvas.width/72:.4f}\" x {canvas.height/72:.4f}\"",
        "canvas_pts": [round(canvas.width, 4), round(canvas.height, 4)],
        "user_unit": layout.scale,
        "mirrored_edges": [m.edge for m in layout.mirrors],
        "crop_marks": len(layout.crop_marks),
        "grommets": len(layout.grommets),
    }


# ── Routes ────────────────────────────────────────────────────────────────────

@app.route("/api/preview", methods=["POST"])
def api_preview():
    """Upload a PDF and return the resolved content box of each page plus
    thumbnails of the original pages."""
    if "file" not in request.files:
        return jsonify({"error": "No file uploaded"}), 400
    file = request.files["file"]
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        return jsonify({"error": "Please upload a PDF file"}), 400

    job_id = uuid.uuid4().hex[:8]
    job_dir = os.path.join(UPLOAD_DIR, job_id)
    os.makedirs(job_dir, exist_ok=True)
    input_path = os.path.join(job_dir, "input.pdf")
    file.save(input_path)

    try:
        pages_info = []
        with Pdf.open(input_path) as pdf:
            for i, page in enumerate(pdf.pages):
                box = fl.resolve_content_box([
                    bleed_mirror.get_box(page, "trim"),
                    bleed_mirror.get_box(page, "crop"),
                    bleed_mirror.get_box(page, "media"),
                ])
                pages_info.append({
                    "index": i,
                    "width_in": round(box.width / 72, 3),
                    "height_in": round(box.height / 72, 3),
                    "user_unit": bleed_mirror.get_unit_scale(page),
                })
        thumbs = render_thumbnails(input_path, dpi=72)
    except Exception as e:
        return jsonify({"error": str(e)}), 500

    return jsonify({
        "job_id": job_id,
        "filename": file.filename,
        "page_count": len(pages_info),
        "pages": pages_info,
        "thumbnails": thumbs,
    })


@app.route("/api/process", methods=["POST"])
def api_process():
    """Process a previewed PDF with the given bleeds and grommet options."""
    job_id = request.form.get("job_id")
    if not valid_job_id(job_id):
        return jsonify({"error": "Invalid job ID. Upload a file first."}), 400

    input_path = os.path.join(UPLOAD_DIR, job_id, "input.pdf")
    if not os.path.isfile(input_path):
        return jsonify({"error": "File not found. Please re-upload."}), 404
    output_path = os.path.join(UPLOAD_DIR, job_id, "output.pdf")

    try:
        config = config_from_form()
    except fl.InvalidArgumentError as e:
        return jsonify({"error": str(e)}), 400

    try:
        layouts = bleed_mirror.process_pdf(input_path, output_path, config)
        verification = bleed_mirror.verify_output(output_path, layouts)
        thumbnails = render_thumbnails(output_path)
    except Exception as e:
        return jsonify({"error": str(e)}), 500

    return jsonify({
        "job_id": job_id,
        "pages": [summarize_layout(i, layout) for i, layout in enumerate(layouts)],
        "verification": verification,
        "thumbnails": thumbnails,
    })


@app.route("/api/download/<job_id>")
def api_download(job_id):
    if not valid_job_id(job_id):
        return jsonify({"error": "Invalid job ID"}), 400
    output_path = os.path.join(UPLOAD_DIR, job_id, "output.pdf")
    if not os.path.isfile(output_path):
        return jsonify({"error": "File not found"}), 404

    original_name = request.args.get("name", "output")
    base = os.path.splitext(original_name)[0]
    return send_file(output_path, as_attachment=True,
                     download_name=f"{base}_bleed.pdf")


if __name__ == "__main__":
    print("PDF Bleed Mirroring Web UI")
    print("Open http://localhost:5001")
    app.run(host="0.0.0.0", port=5001, debug=False)
