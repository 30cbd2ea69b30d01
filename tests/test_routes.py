import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from image_gateway.app import create_app
from image_gateway.config import APP_VERSION, Settings
from image_gateway.controllers.pipeline_controller import PipelineController

SRC = "http://img.test/src.png"


@pytest.fixture
def client(fake_fetch, png_bytes):
    fetch = fake_fetch({SRC: png_bytes(40, 30)}, {"http://img.test/gone.png": 404})
    app = create_app(settings=Settings(workers=2), controller=PipelineController(fetch_service=fetch))
    return TestClient(app)


def test_transform_returns_image_with_cache_header(client):
    response = client.get("/", params={"url": SRC, "action": "resize!300,200", "format": "webp"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/webp"
    assert response.headers["cache-control"] == "public, max-age=31536000"
    with Image.open(io.BytesIO(response.content)) as img:
        assert img.size == (300, 200)


def test_bogus_format_is_png(client):
    response = client.get("/", params={"url": SRC, "format": "bogus"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"


def test_upstream_404_maps_to_bad_gateway(client):
    response = client.get("/", params={"url": "http://img.test/gone.png"})
    assert response.status_code == 502
    assert "status: 404" in response.text


def test_missing_required_params_is_bad_request(client):
    response = client.get("/", params={"url": SRC, "action": "crop!0,0"})
    assert response.status_code == 400
    assert "crop requires 4 parameters" in response.text


def test_empty_url_is_bad_request(client):
    assert client.get("/", params={"url": ""}).status_code == 400


def test_query_validation(client):
    assert client.get("/").status_code == 422
    assert client.get("/", params={"url": SRC, "quality": 300}).status_code == 422


def test_status(client):
    response = client.get("/status")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "name": "image-gateway",
        "version": APP_VERSION,
        "workers": 2,
    }
