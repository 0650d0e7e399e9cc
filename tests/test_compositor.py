import asyncio
import logging
from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from iloveqr.compositor import Compositor, RenderJob, RenderStage, decode_raster, render, render_image
from iloveqr.exceptions import EncodingUnavailable, ImageDecodeFailed
from iloveqr.models import Effect, RenderRequest, Shape
from iloveqr.qr_generator import encode_qr_png

from .utils import distance_from_center, solid_png, to_array

RED = (255, 0, 0, 255)
STROKE = (220, 38, 38)


def _is_red(pixel):
    r, g, b, a = (int(v) for v in pixel)
    return r >= 250 and g <= 5 and b <= 5 and a == 255


def test_scenario_circle_overlay(base_png, red_png):
    request = RenderRequest(
        base_image=base_png,
        overlay_image=red_png,
        overlay_area_fraction=0.30,
        shape=Shape.CIRCLE,
        effect=Effect.NONE,
        canvas_size=300,
    )
    out = to_array(render(request))
    base = to_array(base_png)
    assert out.shape == (300, 300, 4)

    dist = distance_from_center(300)
    inside = dist <= 44
    outside = dist >= 46
    assert all(_is_red(p) for p in out[inside])
    assert np.array_equal(out[outside], base[outside])


def test_scenario_frame_without_overlay():
    base_png = encode_qr_png('https://example.com', 300, dark='#DC2626', light='#FEE2E2')
    request = RenderRequest(base_image=base_png, effect='frame', stroke_color=STROKE, canvas_size=300)
    out = to_array(render(request))
    base = to_array(base_png)
    red = np.array(STROKE + (255,))

    stroke = np.zeros((300, 300), dtype=bool)
    stroke[8:292, 8:292] = True
    stroke[12:288, 12:288] = False
    assert np.all(out[stroke] == red)
    assert np.array_equal(out[~stroke], base[~stroke])


@pytest.mark.parametrize('effect', ['none', 'gradient', 'frame'])
@pytest.mark.parametrize('shape', list(Shape))
def test_deterministic_effects_are_idempotent(base_png, red_png, effect, shape):
    request = RenderRequest(base_image=base_png, overlay_image=red_png, shape=shape,
                            effect=effect, stroke_color=STROKE)
    assert render(request) == render(request)


def test_dots_reproducible_with_seed(base_png):
    request = RenderRequest(base_image=base_png, effect='dots')
    first = render(request, rng=np.random.default_rng(3))
    second = render(request, rng=np.random.default_rng(3))
    assert first == second


def test_dots_structure(base_png, red_png):
    plain = to_array(render(RenderRequest(base_image=base_png, overlay_image=red_png)))
    dotted = to_array(render(RenderRequest(base_image=base_png, overlay_image=red_png, effect='dots')))

    changed = np.any(plain != dotted, axis=-1)
    centers = np.arange(300) + 0.5
    offset = centers - np.round(centers / 8) * 8
    on_dot = (offset[:, None] ** 2 + offset[None, :] ** 2) <= 4
    assert changed.any()
    assert not np.any(changed & ~on_dot)
    assert np.array_equal(plain[..., 3], dotted[..., 3])


@pytest.mark.parametrize('effect', ['gradient', 'frame'])
def test_overlay_stays_visible_under_effect(base_png, red_png, effect):
    request = RenderRequest(base_image=base_png, overlay_image=red_png, effect=effect,
                            stroke_color=STROKE)
    out = to_array(render(request))
    r, g, b, a = (int(v) for v in out[150, 150])
    assert a == 255
    assert r == 255
    assert g < 255 and b < 255


def test_effect_applies_over_overlay(base_png, red_png):
    plain = to_array(render(RenderRequest(base_image=base_png, overlay_image=red_png)))
    veiled = to_array(render(RenderRequest(base_image=base_png, overlay_image=red_png, effect='gradient')))
    assert _is_red(plain[150, 150])
    assert not _is_red(veiled[150, 150])


def test_square_overlay_fills_box(base_png, red_png):
    request = RenderRequest(base_image=base_png, overlay_image=red_png, shape='square',
                            overlay_area_fraction=0.5)
    out = to_array(render(request))
    assert all(_is_red(p) for p in out[76:224, 76:224].reshape(-1, 4))
    assert not _is_red(out[74, 150])


def test_non_square_overlay_is_stretched(base_png):
    wide = solid_png((120, 30), RED)
    request = RenderRequest(base_image=base_png, overlay_image=wide, shape='square')
    out = to_array(render(request))
    # The 90px box is fully covered although the source is 4:1
    assert _is_red(out[106, 150])
    assert _is_red(out[193, 150])
    assert _is_red(out[150, 106])


def test_unknown_shape_renders_as_circle(base_png, red_png):
    circle = render(RenderRequest(base_image=base_png, overlay_image=red_png, shape='circle'))
    unknown = render(RenderRequest(base_image=base_png, overlay_image=red_png, shape='hexagon'))
    assert circle == unknown


def test_output_size_follows_canvas_size(base_png):
    image = render_image(RenderRequest(base_image=base_png, canvas_size=500))
    assert image.size == (500, 500)
    assert image.mode == 'RGBA'


def test_accepts_decoded_images(base_png):
    base = Image.open(BytesIO(base_png))
    logo = Image.new('RGB', (40, 40), (255, 0, 0))
    out = to_array(render(RenderRequest(base_image=base, overlay_image=logo)))
    assert _is_red(out[150, 150])


def test_corrupt_base_raises_encoding_unavailable():
    with pytest.raises(EncodingUnavailable):
        render(RenderRequest(base_image=b'not an image'))


def test_corrupt_overlay_raises_decode_failed(base_png):
    request = RenderRequest(base_image=base_png, overlay_image=b'\x89PNG broken', effect='frame')
    job = RenderJob(request, np.random.default_rng())
    with pytest.raises(ImageDecodeFailed) as excinfo:
        asyncio.run(job.run())
    assert not isinstance(excinfo.value, EncodingUnavailable)
    assert job.stage is RenderStage.DECODING_OVERLAY


def test_decode_raster_empty():
    with pytest.raises(ImageDecodeFailed):
        decode_raster(b'')


def test_decode_raster_rejects_oversized_image(monkeypatch):
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 1000)
    with pytest.raises(ImageDecodeFailed):
        decode_raster(solid_png((100, 100), RED))


def test_oversized_overlay_raises_decode_failed(base_png, monkeypatch):
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100000)
    request = RenderRequest(base_image=base_png, overlay_image=solid_png((500, 500), RED))
    with pytest.raises(ImageDecodeFailed) as excinfo:
        render(request)
    assert not isinstance(excinfo.value, EncodingUnavailable)


@pytest.mark.parametrize('entry', [render, render_image])
def test_completed_render_is_logged(base_png, caplog, entry):
    caplog.set_level(logging.INFO, logger='iloveqr.compositor')
    entry(RenderRequest(base_image=base_png, shape='heart', effect='frame'))
    assert 'Rendered 300x300 (shape=heart, effect=frame, overlay=False)' in caplog.text


def test_each_render_gets_a_fresh_canvas(base_png, red_png):
    request = RenderRequest(base_image=base_png, overlay_image=red_png, effect='gradient')
    first = RenderJob(request, np.random.default_rng())
    second = RenderJob(request, np.random.default_rng())
    asyncio.run(first.run())
    asyncio.run(second.run())
    assert first.canvas is not second.canvas
    assert not first.canvas.is_clipped
    assert np.array_equal(np.asarray(first.canvas.image), np.asarray(second.canvas.image))


def test_stage_order_without_overlay(base_png, monkeypatch):
    seen = []
    original = RenderJob._enter

    def record(self, stage):
        seen.append(stage)
        original(self, stage)

    monkeypatch.setattr(RenderJob, '_enter', record)
    render(RenderRequest(base_image=base_png, effect='frame'))
    assert seen == [
        RenderStage.DECODING_BASE,
        RenderStage.DRAWING_BASE,
        RenderStage.APPLYING_EFFECT,
        RenderStage.ENCODING,
        RenderStage.DONE,
    ]


def test_stage_order_with_overlay(base_png, red_png, monkeypatch):
    seen = []
    original = RenderJob._enter

    def record(self, stage):
        seen.append(stage)
        original(self, stage)

    monkeypatch.setattr(RenderJob, '_enter', record)
    render(RenderRequest(base_image=base_png, overlay_image=red_png, effect='gradient'))
    assert seen == [
        RenderStage.DECODING_BASE,
        RenderStage.DRAWING_BASE,
        RenderStage.DECODING_OVERLAY,
        RenderStage.COMPOSITING_OVERLAY,
        RenderStage.APPLYING_EFFECT,
        RenderStage.ENCODING,
        RenderStage.DONE,
    ]


def test_concurrent_renders_do_not_interfere(base_png, red_png):
    requests = [
        RenderRequest(base_image=base_png, overlay_image=red_png, shape='heart', effect='gradient'),
        RenderRequest(base_image=base_png, effect='frame', stroke_color=STROKE, canvas_size=400),
        RenderRequest(base_image=base_png, overlay_image=red_png, shape='diamond'),
    ]
    compositor = Compositor()

    async def run_all():
        return await asyncio.gather(*(compositor.render_async(r) for r in requests))

    concurrent = asyncio.run(run_all())
    sequential = [compositor.render(r) for r in requests]
    assert concurrent == sequential
