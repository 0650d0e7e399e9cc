from io import BytesIO

import pytest
from PIL import Image

from app import app

from .utils import solid_png, to_array


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def test_render_plain(client):
    response = client.get('/render?text=https://example.com&size=400')
    assert response.status_code == 200
    assert response.mimetype == 'image/png'
    assert Image.open(BytesIO(response.data)).size == (400, 400)


def test_render_missing_text(client):
    response = client.get('/render')
    assert response.status_code == 400


def test_render_text_too_long(client):
    response = client.post('/render', data={'text': 'x' * 3000, 'ecc': 'H'})
    assert response.status_code == 400
    assert b'Could not generate' in response.data


def test_render_with_logo(client):
    data = {
        'text': 'https://example.com',
        'ecc': 'H',
        'shape': 'square',
        'logo': (BytesIO(solid_png((60, 60), (255, 0, 0, 255))), 'logo.png'),
    }
    response = client.post('/render', data=data, content_type='multipart/form-data')
    assert response.status_code == 200
    out = to_array(response.data)
    assert tuple(out[150, 150]) == (255, 0, 0, 255)


def test_render_with_corrupt_logo(client):
    data = {'text': 'hello', 'logo': (BytesIO(b'garbage'), 'logo.png')}
    response = client.post('/render', data=data, content_type='multipart/form-data')
    assert response.status_code == 400


def test_render_with_oversized_logo_dimensions(client, monkeypatch):
    # The 300x300 base stays under the limit, the 500x500 logo is over twice it
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100000)
    logo = solid_png((500, 500), (255, 0, 0, 255))
    data = {'text': 'hello', 'size': '300', 'logo': (BytesIO(logo), 'logo.png')}
    response = client.post('/render', data=data, content_type='multipart/form-data')
    assert response.status_code == 400
    assert b'Could not read the uploaded image' in response.data


def test_render_with_template_and_seed(client):
    url = '/render?text=hello&template=nature&seed=5'
    first = client.get(url)
    second = client.get(url)
    assert first.status_code == 200
    assert first.data == second.data


def test_templates(client):
    response = client.get('/templates')
    assert response.status_code == 200
    assert response.get_json()['red-alert']['effect'] == 'frame'
