"""
Cloudinary image upload client.

Uploads are signed: the signature is the SHA-1 of the sorted upload
parameters joined as ``key=value&...`` followed by the API secret.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

CLOUDINARY_BASE_URL = "https://api.cloudinary.com/v1_1"


@dataclass
class UploadedImage:
    url: str
    public_id: str


class CloudinaryError(Exception):
    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


def sign_params(params: dict, api_secret: str) -> str:
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryClient:
    def __init__(
        self,
        cloud_name: str = None,
        api_key: str = None,
        api_secret: str = None,
    ):
        settings = get_settings()
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise CloudinaryError("Cloudinary credentials are not configured")

    async def _request(self, data: dict, files: dict) -> dict:
        url = f"{CLOUDINARY_BASE_URL}/{self.cloud_name}/image/upload"
        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                response = await client.post(url, data=data, files=files)
        except httpx.HTTPError as exc:
            logger.error("Cloudinary upload failed: %s", exc)
            raise CloudinaryError("Cloudinary is unreachable") from exc

        payload = response.json()
        if not response.is_success:
            message = payload.get("error", {}).get("message", "Unknown Cloudinary error")
            logger.error("Cloudinary API error: %s - %s", response.status_code, message)
            raise CloudinaryError(
                message=message,
                status_code=response.status_code,
                response_data=payload,
            )
        return payload

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        folder: Optional[str] = None,
    ) -> UploadedImage:
        params = {"timestamp": str(int(time.time()))}
        if folder:
            params["folder"] = folder
        data = {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self.api_secret),
        }
        files = {"file": (filename, content, content_type or "application/octet-stream")}
        payload = await self._request(data, files)
        return UploadedImage(
            url=payload.get("secure_url") or payload["url"],
            public_id=payload.get("public_id", ""),
        )
