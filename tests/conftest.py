"""Pytest fixtures shared by the iloveqr tests."""

import numpy as np
import pytest

from iloveqr.qr_generator import encode_qr_png

from .utils import solid_png

SCENARIO_TEXT = 'https://example.com'


@pytest.fixture(scope='session')
def base_png():
    return encode_qr_png(SCENARIO_TEXT, 300, ecc='M')


@pytest.fixture(scope='session')
def red_png():
    return solid_png((60, 60), (255, 0, 0, 255))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
