from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from canvasfit import server
from canvasfit.app import origin
from canvasfit.app.config import Settings
from canvasfit.app.errors import OriginFetchError
from canvasfit.app.routes import images
from conftest import image_bytes, make_image


@pytest.fixture
def client(settings):
    with TestClient(server.create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def origin_bytes(monkeypatch, portrait_png):
    requested = []

    def fake_fetch(url, settings):
        requested.append(url)
        return portrait_png

    monkeypatch.setattr(images, "fetch_origin", fake_fetch)
    return requested


def _decode(response):
    return Image.open(BytesIO(response.content))


def test_get_processed_image_fills_canvas(client, origin_bytes):
    response = client.get(
        "/api/images/photo.png",
        params={"origin": "https://images.test/photo.png", "mode": "fill", "width": 20, "height": 25},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=86400"
    assert origin_bytes == ["https://images.test/photo.png"]
    with _decode(response) as decoded:
        assert decoded.size == (20, 25)


def test_get_processed_image_as_jpeg_with_background(client, origin_bytes):
    response = client.get(
        "/api/images/photo.jpg",
        params={
            "origin": "https://images.test/photo.png",
            "mode": "fit",
            "width": 100,
            "height": 50,
            "bg": "ffffff",
            "quality": 80,
        },
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    with _decode(response) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.size == (100, 50)
        assert decoded.convert("RGB").getpixel((2, 25)) == pytest.approx((255, 255, 255), abs=3)


def test_get_processed_image_rejects_unknown_extension(client, origin_bytes):
    response = client.get(
        "/api/images/photo.gif",
        params={"origin": "https://images.test/photo.png", "mode": "fill", "width": 20, "height": 20},
    )

    assert response.status_code == 400
    assert "extension" in response.json()["detail"]
    assert origin_bytes == []


def test_get_processed_image_reports_origin_failures(client, monkeypatch):
    def failing_fetch(url, settings):
        raise OriginFetchError("could not fetch origin image: 404 Error")

    monkeypatch.setattr(images, "fetch_origin", failing_fetch)

    response = client.get(
        "/api/images/photo.png",
        params={"origin": "https://images.test/missing.png", "mode": "fit", "width": 20},
    )

    assert response.status_code == 502


def test_missing_bounds_are_rejected(client, origin_bytes):
    response = client.get(
        "/api/images/photo.png",
        params={"origin": "https://images.test/photo.png", "mode": "fill", "width": 20},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Mode 'fill' needs both width and height"


def test_unknown_mode_is_rejected(client, origin_bytes):
    response = client.get(
        "/api/images/photo.png",
        params={"origin": "https://images.test/photo.png", "mode": "stretch", "width": 20},
    )

    assert response.status_code == 400


@pytest.mark.parametrize(
    "overrides", [{"dx": "2"}, {"scale": "0"}, {"bg": "purple"}, {"quality": "0"}]
)
def test_invalid_parameters_are_unprocessable(client, origin_bytes, overrides):
    params = {"origin": "https://images.test/photo.png", "mode": "fit", "width": 20}
    params.update(overrides)

    response = client.get("/api/images/photo.png", params=params)

    assert response.status_code == 422


def test_scale_above_maximum_is_rejected(client, origin_bytes):
    response = client.get(
        "/api/images/photo.png",
        params={"origin": "https://images.test/photo.png", "mode": "fit", "width": 20, "scale": 11},
    )

    assert response.status_code == 400


def test_process_upload_keeps_input_format(client):
    data = image_bytes(make_image(300, 200), "JPEG")

    response = client.post(
        "/api/images/process",
        params={"mode": "fit", "height": 20},
        files={"file": ("photo.jpg", data, "image/jpeg")},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    with _decode(response) as decoded:
        assert decoded.size == (30, 20)


def test_process_upload_honours_requested_format(client):
    data = image_bytes(make_image(300, 200), "GIF")

    response = client.post(
        "/api/images/process",
        params={"mode": "limit", "width": 60, "height": 60, "format": "jpg"},
        files={"file": ("photo.gif", data, "image/gif")},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    with _decode(response) as decoded:
        assert decoded.size == (60, 40)


def test_process_upload_rejects_unrecognised_data(client):
    response = client.post(
        "/api/images/process",
        params={"mode": "fit", "width": 20},
        files={"file": ("notes.txt", b"plain text", "text/plain")},
    )

    assert response.status_code == 415


def test_process_upload_rejects_undecodable_data_with_explicit_format(client):
    response = client.post(
        "/api/images/process",
        params={"mode": "fit", "width": 20, "format": "png"},
        files={"file": ("notes.txt", b"plain text", "text/plain")},
    )

    assert response.status_code == 422


def test_process_upload_reports_placement_failure(client):
    data = image_bytes(make_image(1000, 1), "PNG")

    response = client.post(
        "/api/images/process",
        params={"mode": "fit_width", "width": 1},
        files={"file": ("line.png", data, "image/png")},
    )

    assert response.status_code == 422
    assert "no area" in response.json()["detail"]


def test_dimensions_endpoint(client):
    response = client.get(
        "/api/dimensions",
        params={"input_width": 200, "input_height": 300, "mode": "limit", "width": 60, "height": 60, "scale": 1.2},
    )

    assert response.status_code == 200
    assert response.json() == {
        "mode": "limit",
        "canvas": {"width": 40, "height": 60},
        "size": {"width": 48, "height": 72},
        "origin": {"x": -4, "y": -6},
    }


def test_dimensions_endpoint_degrades_fit_to_single_axis(client):
    response = client.get(
        "/api/dimensions",
        params={"input_width": 300, "input_height": 200, "mode": "fit", "width": 20},
    )

    assert response.status_code == 200
    assert response.json()["mode"] == "fit_width"
    assert response.json()["canvas"] == {"width": 20, "height": 13}


def test_cors_allows_any_origin_by_default(client):
    response = client.get(
        "/api/dimensions",
        params={"input_width": 10, "input_height": 10, "mode": "fill", "width": 5, "height": 5},
        headers={"Origin": "https://app.test"},
    )

    assert response.headers["access-control-allow-origin"] == "https://app.test"


def test_origin_fetch_uses_app_settings(monkeypatch, portrait_png):
    settings = Settings(allowed_origin_hosts=("images.test",))
    app = server.create_app(settings)
    origin.clear_origin_cache()

    with TestClient(app) as test_client:
        response = test_client.get(
            "/api/images/photo.png",
            params={"origin": "https://other.test/photo.png", "mode": "fit", "width": 20},
        )

    assert response.status_code == 502
    assert "not allowed" in response.json()["detail"]


def test_app_settings_reach_the_routes(origin_bytes):
    settings = Settings(max_scale=2.0, cache_max_age=60)

    with TestClient(server.create_app(settings)) as test_client:
        too_large = test_client.get(
            "/api/images/photo.png",
            params={"origin": "https://images.test/photo.png", "mode": "fit", "width": 20, "scale": 5},
        )
        allowed = test_client.get(
            "/api/images/photo.png",
            params={"origin": "https://images.test/photo.png", "mode": "fit", "width": 20, "scale": 2},
        )

    assert too_large.status_code == 400
    assert allowed.status_code == 200
    assert allowed.headers["cache-control"] == "public, max-age=60"


def test_oversized_output_is_rejected_before_allocation(client, origin_bytes, monkeypatch):
    def no_allocation(*args):
        raise AssertionError("canvas allocated")

    monkeypatch.setattr(images.compositor.codec, "new_canvas", no_allocation)

    response = client.get(
        "/api/images/photo.png",
        params={"origin": "https://images.test/photo.png", "mode": "fill", "width": 200000, "height": 200000},
    )

    assert response.status_code == 422
    assert "limit" in response.json()["detail"]


def test_process_upload_rejects_oversized_body():
    settings = Settings(max_origin_bytes=64)
    data = image_bytes(make_image(300, 200), "PNG")
    assert len(data) > 64

    with TestClient(server.create_app(settings)) as test_client:
        response = test_client.post(
            "/api/images/process",
            params={"mode": "fit", "width": 20},
            files={"file": ("photo.png", data, "image/png")},
        )

    assert response.status_code == 413
