#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
I Love QR - Flask Web Application
"""

import logging
from io import BytesIO
from typing import Optional

import numpy as np
from flask import Flask, jsonify, request, send_file

from iloveqr.compositor import Compositor
from iloveqr.config import MAX_OVERLAY_BYTES, TEMPLATES, read_settings
from iloveqr.exceptions import EncodingFailed, ImageDecodeFailed
from iloveqr.functional_areas import assess_overlay
from iloveqr.qr_generator import make_qr, rasterize_qr

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)
# Room for the form fields next to a maximum size logo
app.config['MAX_CONTENT_LENGTH'] = MAX_OVERLAY_BYTES + 64 * 1024


def _read_logo(req) -> Optional[bytes]:
    """Return the uploaded logo bytes, or None when no file was sent."""
    file = req.files.get('logo')
    if file is None or not file.filename:
        return None
    data = file.read()
    logger.info(f"Logo uploaded: {file.filename} ({len(data)} bytes)")
    return data or None


@app.route('/render', methods=['GET', 'POST'])
def render_png():
    settings = read_settings(request.values)
    if not settings.text:
        return "Missing text", 400

    logo = _read_logo(request)
    if logo is not None and len(logo) > MAX_OVERLAY_BYTES:
        return "Image size should be less than 5MB", 413

    try:
        qr = make_qr(settings.text, ecc=settings.ecc)
    except EncodingFailed as ex:
        logger.error(f"QR generation failed: {ex}")
        return f"Could not generate the QR code: {ex}", 400

    base = rasterize_qr(qr, settings.size, dark=settings.dark, light=settings.light)
    if logo is not None:
        assess_overlay(qr, settings.size, settings.overlay_area_fraction)

    rng = np.random.default_rng(settings.seed)
    try:
        png = Compositor(rng).render(settings.to_request(base, logo))
    except ImageDecodeFailed as ex:
        logger.error(f"Render failed: {ex}")
        return f"Could not read the uploaded image: {ex}", 400

    return send_file(BytesIO(png), mimetype='image/png', download_name='iloveqr-code.png')


@app.route('/templates', methods=['GET'])
def list_templates():
    return jsonify(TEMPLATES)


if __name__ == "__main__":
    app.run(debug=True)
