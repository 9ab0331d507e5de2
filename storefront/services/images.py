"""
Image Service - product images hosted on Cloudinary.

Uploads and deletes go through the Cloudinary REST API. Derived images
(thumbnails, responsive widths, gallery sizes, watermarks, collages) are
delivery URLs built locally; no request is made to produce them.
"""

from __future__ import annotations

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
from urllib.parse import quote

import httpx

from storefront.config import Settings, settings
from storefront.services.exceptions import ImageServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Image service not configured"

ALLOWED_FORMATS = ("jpg", "jpeg", "png", "gif", "webp")
DEFAULT_RESPONSIVE_WIDTHS = (320, 640, 960, 1280)
DEFAULT_GALLERY_SIZES: Dict[str, int] = {
    "thumbnail": 150,
    "small": 300,
    "medium": 600,
    "large": 1200,
}

# Transformation option -> URL parameter code
TRANSFORMATION_CODES: Dict[str, str] = {
    "angle": "a",
    "background": "b",
    "color": "co",
    "crop": "c",
    "effect": "e",
    "fetch_format": "f",
    "flags": "fl",
    "gravity": "g",
    "height": "h",
    "opacity": "o",
    "overlay": "l",
    "quality": "q",
    "radius": "r",
    "width": "w",
    "x": "x",
    "y": "y",
}

GRAVITY_ALIASES: Dict[str, str] = {
    "top_left": "north_west",
    "top": "north",
    "top_right": "north_east",
    "left": "west",
    "center": "center",
    "right": "east",
    "bottom_left": "south_west",
    "bottom": "south",
    "bottom_right": "south_east",
}

ImageSource = Union[bytes, str, Path]


def build_transformation(options: Dict[str, Any]) -> str:
    """Turn transformation options into a URL component, e.g. ``c_fill,h_300,w_300``."""
    parts = []
    for key, value in options.items():
        if value is None:
            continue
        code = TRANSFORMATION_CODES.get(key)
        if code is None:
            raise ValueError(f"Unsupported transformation option: {key}")
        if key == "gravity":
            value = GRAVITY_ALIASES.get(value, value)
        parts.append(f"{code}_{value}")
    return ",".join(sorted(parts))


def text_overlay(text: str, font_family: str = "Arial", font_size: int = 20) -> str:
    """Overlay value for a text layer."""
    return f"text:{font_family}_{font_size}:{quote(text, safe='')}"


def build_image_url(
    cloud_name: str,
    public_id: str,
    transformations: Optional[Sequence[Dict[str, Any]]] = None,
    resource_type: str = "image",
    delivery_type: str = "upload",
) -> str:
    """Build a delivery URL. Each transformation dict becomes one chained component."""
    components = [build_transformation(t) for t in transformations or []]
    path = "/".join([c for c in components if c] + [public_id])
    return f"https://res.cloudinary.com/{cloud_name}/{resource_type}/{delivery_type}/{path}"


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """Cloudinary API signature: SHA-1 of the sorted parameters plus the secret."""
    pairs = []
    for key in sorted(params):
        value = params[key]
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        pairs.append(f"{key}={value}")
    return hashlib.sha1(("&".join(pairs) + api_secret).encode("utf-8")).hexdigest()


@dataclass
class UploadedImage:
    url: str
    public_id: str
    asset_id: Optional[str]
    format: Optional[str]
    size: Optional[int]
    width: Optional[int]
    height: Optional[int]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "UploadedImage":
        return cls(
            url=payload.get("secure_url") or payload.get("url"),
            public_id=payload["public_id"],
            asset_id=payload.get("asset_id"),
            format=payload.get("format"),
            size=payload.get("bytes"),
            width=payload.get("width"),
            height=payload.get("height"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ImageGateway(ABC):
    """Transport for the image host."""

    is_available: bool = True
    cloud_name: Optional[str] = None

    @abstractmethod
    async def upload(self, source: ImageSource, params: Dict[str, Any]) -> Dict[str, Any]:
        """Upload an image from bytes, a file path or a remote URL."""

    @abstractmethod
    async def destroy(self, public_id: str) -> Dict[str, Any]:
        """Delete an uploaded image."""

    @abstractmethod
    async def resource(self, public_id: str) -> Dict[str, Any]:
        """Fetch details of an uploaded image."""

    @abstractmethod
    async def search(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """Run a search expression over uploaded images."""

    @abstractmethod
    async def ping(self) -> Dict[str, Any]:
        """Connectivity check."""


class UnavailableImageGateway(ImageGateway):
    """Stand-in used when no provider credentials are configured."""

    is_available = False

    async def upload(self, source: ImageSource, params: Dict[str, Any]) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def resource(self, public_id: str) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def search(self, query: Dict[str, Any]) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def ping(self) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)


class CloudinaryImageGateway(ImageGateway):
    """Cloudinary upload and admin API client."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        api_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = f"{api_url.rstrip('/')}/{cloud_name}"
        self.timeout = timeout
        self.transport = transport

    def _client(self, authenticated: bool = False) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.api_key, self.api_secret) if authenticated else None,
            timeout=self.timeout,
            transport=self.transport,
        )

    def _signed(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {k: v for k, v in params.items() if v is not None}
        params["timestamp"] = int(time.time())
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        return {
            k: ",".join(str(i) for i in v) if isinstance(v, (list, tuple)) else str(v)
            for k, v in params.items()
        }

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        if response.status_code >= 400:
            error = payload.get("error")
            message = error.get("message") if isinstance(error, dict) else error
            raise ImageServiceError(
                f"Cloudinary error {response.status_code}: {message or response.text}"
            )
        return payload

    async def _request(
        self, method: str, url: str, authenticated: bool = False, **kwargs: Any
    ) -> Dict[str, Any]:
        try:
            async with self._client(authenticated) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ImageServiceError(f"Cloudinary unreachable: {e}") from e
        return self._json(response)

    async def upload(self, source: ImageSource, params: Dict[str, Any]) -> Dict[str, Any]:
        data = self._signed(params)
        files = None
        if isinstance(source, bytes):
            files = {"file": ("upload", source)}
        elif isinstance(source, str) and source.startswith(("http://", "https://")):
            data["file"] = source
        else:
            path = Path(source)
            try:
                files = {"file": (path.name, path.read_bytes())}
            except OSError as e:
                raise ImageServiceError(f"Cannot read image file {path}: {e}") from e
        return await self._request("POST", "/auto/upload", data=data, files=files)

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        data = self._signed({"public_id": public_id})
        return await self._request("POST", "/image/destroy", data=data)

    async def resource(self, public_id: str) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/resources/image/upload/{public_id}", authenticated=True
        )

    async def search(self, query: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/resources/search", authenticated=True, json=query)

    async def ping(self) -> Dict[str, Any]:
        return await self._request("GET", "/ping", authenticated=True)


def create_image_gateway(config: Settings = settings) -> ImageGateway:
    if not config.images_configured:
        logger.warning("Cloudinary credentials not configured, image service will be disabled")
        return UnavailableImageGateway()
    return CloudinaryImageGateway(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
        api_url=config.CLOUDINARY_API_URL,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )


class ImageService:
    """
    Service for uploading product images and building derived image URLs.

    Provider failures surface as ImageServiceError; an unconfigured provider
    raises ServiceUnavailableError.
    """

    def __init__(
        self,
        gateway: ImageGateway,
        folder: str = "dollers-electro",
        brand: str = "DollersElectro",
    ):
        self.gateway = gateway
        self.folder = folder
        self.brand = brand

    @property
    def is_available(self) -> bool:
        return self.gateway.is_available

    def _require_available(self) -> None:
        if not self.is_available:
            raise ServiceUnavailableError(NOT_CONFIGURED)

    async def upload(
        self,
        source: ImageSource,
        folder: Optional[str] = None,
        transformation: Optional[Dict[str, Any]] = None,
        **options: Any,
    ) -> UploadedImage:
        """Upload from bytes, a local path or a remote URL."""
        self._require_available()
        params: Dict[str, Any] = {
            "folder": folder or self.folder,
            "allowed_formats": list(ALLOWED_FORMATS),
            **options,
        }
        if transformation:
            params["transformation"] = build_transformation(transformation)
        try:
            payload = await self.gateway.upload(source, params)
        except ImageServiceError as e:
            logger.error(f"Cloudinary upload error: {e}")
            raise
        image = UploadedImage.from_response(payload)
        logger.info("Uploaded image %s (%s bytes)", image.public_id, image.size)
        return image

    async def upload_many(self, sources: Iterable[ImageSource], **options: Any) -> List[UploadedImage]:
        """Upload several images one after the other. Stops at the first failure."""
        return [await self.upload(source, **options) for source in sources]

    async def delete(self, public_id: str) -> Dict[str, Any]:
        self._require_available()
        try:
            return await self.gateway.destroy(public_id)
        except ImageServiceError as e:
            logger.error(f"Cloudinary delete error for {public_id}: {e}")
            raise

    async def delete_many(self, public_ids: Iterable[str]) -> List[Dict[str, Any]]:
        return [await self.delete(public_id) for public_id in public_ids]

    def _url(self, public_id: str, *transformations: Dict[str, Any]) -> str:
        self._require_available()
        return build_image_url(self.gateway.cloud_name, public_id, list(transformations))

    def transform_url(self, public_id: str, **transformation: Any) -> str:
        """Delivery URL with automatic quality and format unless overridden."""
        return self._url(public_id, {"quality": "auto", "fetch_format": "auto", **transformation})

    def responsive_images(
        self,
        public_id: str,
        widths: Sequence[int] = DEFAULT_RESPONSIVE_WIDTHS,
        quality: str = "auto",
    ) -> List[Dict[str, Any]]:
        return [
            {
                "width": width,
                "url": self._url(public_id, {"width": width, "quality": quality, "crop": "scale"}),
            }
            for width in widths
        ]

    def thumbnail(
        self, public_id: str, width: int = 300, height: int = 300, crop: str = "fill"
    ) -> str:
        return self._url(
            public_id, {"width": width, "height": height, "crop": crop, "quality": "auto"}
        )

    def product_gallery(
        self, public_id: str, sizes: Optional[Dict[str, int]] = None
    ) -> Dict[str, str]:
        """Square variants for product pages plus the untouched original."""
        gallery = {
            name: self.thumbnail(public_id, width=size, height=size)
            for name, size in (sizes or DEFAULT_GALLERY_SIZES).items()
        }
        gallery["original"] = self._url(public_id)
        return gallery

    def optimize_for_web(
        self,
        public_id: str,
        quality: str = "auto",
        format: str = "auto",
        width: Optional[int] = None,
        height: Optional[int] = None,
        crop: Optional[str] = "scale",
    ) -> str:
        return self._url(
            public_id,
            {
                "quality": quality,
                "fetch_format": format,
                "width": width,
                "height": height,
                "crop": crop if (width or height) else None,
            },
        )

    def watermark(
        self,
        public_id: str,
        text: Optional[str] = None,
        position: str = "bottom_right",
        font_family: str = "Arial",
        font_size: int = 20,
        color: str = "white",
        opacity: int = 70,
    ) -> str:
        """Image with a text watermark layer."""
        return self._url(
            public_id,
            {
                "overlay": text_overlay(text or self.brand, font_family, font_size),
                "color": color,
                "gravity": position,
                "opacity": opacity,
            },
        )

    def collage(
        self,
        public_ids: Sequence[str],
        width: int = 800,
        height: int = 600,
        columns: int = 2,
        rows: int = 2,
        spacing: int = 10,
    ) -> str:
        """Grid of images laid over the first one."""
        if not public_ids:
            raise ValueError("A collage needs at least one image")
        cell_width = width // columns - spacing
        cell_height = height // rows - spacing

        layers: List[Dict[str, Any]] = [
            {"width": width, "height": height, "crop": "fill", "background": "white"}
        ]
        for index, public_id in enumerate(public_ids[1:], start=1):
            layers.append(
                {
                    "overlay": public_id.replace("/", ":"),
                    "width": cell_width,
                    "height": cell_height,
                    "crop": "fill",
                }
            )
            layers.append(
                {
                    "flags": "layer_apply",
                    "gravity": "north_west",
                    "x": (index % columns) * (width // columns),
                    "y": (index // columns) * (height // rows),
                }
            )
        return self._url(public_ids[0], *layers)

    async def metadata(self, public_id: str) -> Dict[str, Any]:
        self._require_available()
        result = await self.gateway.resource(public_id)
        return {
            "publicId": result.get("public_id"),
            "format": result.get("format"),
            "size": result.get("bytes"),
            "width": result.get("width"),
            "height": result.get("height"),
            "url": result.get("secure_url"),
            "createdAt": result.get("created_at"),
            "tags": result.get("tags") or [],
            "context": result.get("context") or {},
        }

    async def search(
        self,
        expression: str,
        max_results: int = 50,
        sort_by: str = "created_at",
        sort_direction: str = "desc",
    ) -> List[Dict[str, Any]]:
        self._require_available()
        result = await self.gateway.search(
            {
                "expression": expression,
                "max_results": max_results,
                "sort_by": [{sort_by: sort_direction}],
            }
        )
        return result.get("resources", [])

    async def test_connection(self) -> bool:
        if not self.is_available:
            return False
        try:
            await self.gateway.ping()
        except ImageServiceError as e:
            logger.error(f"Cloudinary connection failed: {e}")
            return False
        logger.info("Cloudinary connection successful")
        return True


_image_service: Optional[ImageService] = None


def get_image_service() -> ImageService:
    global _image_service
    if _image_service is None:
        _image_service = ImageService(
            create_image_gateway(settings),
            folder=settings.CLOUDINARY_FOLDER,
            brand=settings.BRAND_NAME,
        )
    return _image_service
