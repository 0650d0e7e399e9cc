import numpy as np
import pytest
import segno

from iloveqr.exceptions import EncodingFailed, QRCompositorError
from iloveqr.qr_generator import encode_qr_png, make_qr, rasterize_qr

from .utils import to_array


@pytest.mark.parametrize('size', [200, 300, 450, 800])
def test_encode_exact_size(size):
    out = to_array(encode_qr_png('https://example.com', size))
    assert out.shape == (size, size, 4)
    assert np.all(out[..., 3] == 255)


def test_encode_colors():
    out = to_array(encode_qr_png('https://example.com', 300, dark='#7C3AED', light='#F3E8FF'))
    colors = {tuple(int(v) for v in p) for p in out.reshape(-1, 4)}
    assert colors == {(0x7C, 0x3A, 0xED, 255), (0xF3, 0xE8, 0xFF, 255)}
    # Quiet zone in the corner
    assert tuple(out[0, 0]) == (0xF3, 0xE8, 0xFF, 255)


@pytest.mark.parametrize('ecc', ['L', 'M', 'Q', 'H', 'h'])
def test_make_qr_levels(ecc):
    qr = make_qr('https://example.com', ecc=ecc)
    assert qr.error == ecc.upper()


def test_higher_level_needs_larger_symbol():
    assert make_qr('https://example.com', ecc='H').version > make_qr('https://example.com', ecc='L').version


def test_text_too_long_for_level():
    with pytest.raises(EncodingFailed) as excinfo:
        encode_qr_png('x' * 3000, 300, ecc='H')
    assert 'level H' in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, segno.DataOverflowError)


def test_empty_text():
    with pytest.raises(EncodingFailed):
        make_qr('')


def test_unknown_level():
    with pytest.raises(QRCompositorError):
        make_qr('hello', ecc='X')


def test_rasterize_keeps_module_grid():
    qr = make_qr('hello', ecc='L')
    modules, _ = qr.symbol_size(scale=1, border=2)
    size = modules * 10
    out = to_array(rasterize_qr(qr, size, border=2))
    # Top-left finder pattern starts after the two module quiet zone
    assert tuple(out[25, 25][:3]) == (0, 0, 0)
    assert tuple(out[15, 15][:3]) == (255, 255, 255)
