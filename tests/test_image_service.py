"""Tests for image URL building and the Cloudinary gateway."""

import asyncio
import hashlib

import httpx
import pytest

from storefront.services.exceptions import ImageServiceError, ServiceUnavailableError
from storefront.services.images import (
    CloudinaryImageGateway,
    ImageService,
    UnavailableImageGateway,
    build_image_url,
    build_transformation,
    sign_params,
)

BASE = "https://res.cloudinary.com/demo/image/upload"


def make_gateway(handler=None):
    handler = handler or (lambda request: httpx.Response(200, json={}))
    return CloudinaryImageGateway(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def service():
    return ImageService(make_gateway(), folder="dollers-electro", brand="DollersElectro")


class TestUrlBuilding:
    def test_transformation_is_sorted_and_skips_none(self):
        assert build_transformation({"width": 300, "height": None, "crop": "fill"}) == "c_fill,w_300"

    def test_unknown_option_is_rejected(self):
        with pytest.raises(ValueError):
            build_transformation({"sparkle": True})

    def test_plain_url(self):
        assert build_image_url("demo", "products/bulb") == f"{BASE}/products/bulb"

    def test_chained_transformations(self):
        url = build_image_url("demo", "bulb", [{"width": 100}, {"angle": 90}])

        assert url == f"{BASE}/w_100/a_90/bulb"

    def test_signature(self):
        expected = hashlib.sha1(b"folder=f&timestamp=10secret").hexdigest()

        assert sign_params({"timestamp": 10, "folder": "f", "tags": None}, "secret") == expected


class TestImageService:
    def test_transform_url_defaults_to_auto(self, service):
        assert service.transform_url("bulb") == f"{BASE}/f_auto,q_auto/bulb"
        assert service.transform_url("bulb", quality=80) == f"{BASE}/f_auto,q_80/bulb"

    def test_thumbnail(self, service):
        assert service.thumbnail("bulb") == f"{BASE}/c_fill,h_300,q_auto,w_300/bulb"

    def test_responsive_images(self, service):
        images = service.responsive_images("bulb")

        assert [i["width"] for i in images] == [320, 640, 960, 1280]
        assert images[0]["url"] == f"{BASE}/c_scale,q_auto,w_320/bulb"

    def test_product_gallery(self, service):
        gallery = service.product_gallery("bulb")

        assert set(gallery) == {"thumbnail", "small", "medium", "large", "original"}
        assert gallery["small"] == f"{BASE}/c_fill,h_300,q_auto,w_300/bulb"
        assert gallery["original"] == f"{BASE}/bulb"

    def test_watermark_defaults(self, service):
        url = service.watermark("bulb")

        assert url == f"{BASE}/co_white,g_south_east,l_text:Arial_20:DollersElectro,o_70/bulb"

    def test_optimize_for_web_only_crops_when_resizing(self, service):
        assert service.optimize_for_web("bulb") == f"{BASE}/f_auto,q_auto/bulb"
        assert service.optimize_for_web("bulb", width=800) == f"{BASE}/c_scale,f_auto,q_auto,w_800/bulb"

    def test_collage_layers_the_other_images(self, service):
        url = service.collage(["a", "folder/b"], width=800, height=600)

        assert url.startswith(f"{BASE}/b_white,c_fill,h_600,w_800/")
        assert "l_folder:b" in url
        assert url.endswith("/a")

    def test_collage_needs_images(self, service):
        with pytest.raises(ValueError):
            service.collage([])

    def test_unavailable_service_raises(self):
        service = ImageService(UnavailableImageGateway())

        with pytest.raises(ServiceUnavailableError):
            service.thumbnail("bulb")
        with pytest.raises(ServiceUnavailableError):
            asyncio.run(service.upload(b"bytes"))
        assert asyncio.run(service.test_connection()) is False


class TestCloudinaryGateway:
    def test_upload_bytes(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "secure_url": f"{BASE}/dollers-electro/x.png",
                    "public_id": "dollers-electro/x",
                    "asset_id": "abc",
                    "format": "png",
                    "bytes": 1024,
                    "width": 64,
                    "height": 32,
                },
            )

        service = ImageService(make_gateway(handler))
        image = asyncio.run(service.upload(b"\x89PNG..."))

        assert image.public_id == "dollers-electro/x"
        assert image.size == 1024
        assert image.to_dict()["url"].endswith("x.png")
        assert requests[0].url.path == "/v1_1/demo/auto/upload"
        body = requests[0].content
        assert b'name="signature"' in body
        assert b'name="api_key"' in body
        assert b"dollers-electro" in body

    def test_upload_from_url_sends_url_as_file_field(self):
        captured = {}

        def handler(request):
            captured["form"] = dict(httpx.QueryParams(request.content.decode()))
            return httpx.Response(200, json={"public_id": "remote"})

        asyncio.run(ImageService(make_gateway(handler)).upload("https://example.com/a.jpg"))

        assert captured["form"]["file"] == "https://example.com/a.jpg"
        assert captured["form"]["allowed_formats"] == "jpg,jpeg,png,gif,webp"

    def test_upload_from_path(self, tmp_path):
        path = tmp_path / "bulb.jpg"
        path.write_bytes(b"jpegdata")
        seen = []

        def handler(request):
            seen.append(request.content)
            return httpx.Response(200, json={"public_id": "bulb"})

        asyncio.run(ImageService(make_gateway(handler)).upload(path))

        assert b"jpegdata" in seen[0]
        assert b'filename="bulb.jpg"' in seen[0]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageServiceError):
            asyncio.run(ImageService(make_gateway()).upload(tmp_path / "missing.jpg"))

    def test_provider_error_raises(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "Invalid Signature"}})

        with pytest.raises(ImageServiceError, match="Invalid Signature"):
            asyncio.run(ImageService(make_gateway(handler)).delete("bulb"))

    def test_provider_error_as_plain_string(self):
        def handler(request):
            return httpx.Response(400, json={"error": "Resource not found"})

        with pytest.raises(ImageServiceError, match="Resource not found"):
            asyncio.run(ImageService(make_gateway(handler)).delete("bulb"))

    def test_delete_many(self):
        deleted = []

        def handler(request):
            deleted.append(dict(httpx.QueryParams(request.content.decode()))["public_id"])
            return httpx.Response(200, json={"result": "ok"})

        results = asyncio.run(ImageService(make_gateway(handler)).delete_many(["a", "b"]))

        assert deleted == ["a", "b"]
        assert results == [{"result": "ok"}, {"result": "ok"}]

    def test_search_and_metadata_use_basic_auth(self):
        def handler(request):
            assert request.headers["authorization"].startswith("Basic ")
            if request.url.path.endswith("/resources/search"):
                return httpx.Response(200, json={"resources": [{"public_id": "a"}]})
            return httpx.Response(
                200, json={"public_id": "a", "format": "jpg", "bytes": 10, "tags": ["led"]}
            )

        service = ImageService(make_gateway(handler))

        assert asyncio.run(service.search("folder:dollers-electro")) == [{"public_id": "a"}]
        metadata = asyncio.run(service.metadata("a"))
        assert metadata["publicId"] == "a"
        assert metadata["tags"] == ["led"]

    def test_connection_check(self):
        assert asyncio.run(ImageService(make_gateway()).test_connection()) is True

        def failing(request):
            return httpx.Response(500, text="boom")

        assert asyncio.run(ImageService(make_gateway(failing)).test_connection()) is False
