"""
media/uploader.py -- Uploads profile photos and resumes to Cloudinary.

Files arrive from the HTTP layer as UploadedFile values (name, MIME type and
raw bytes). to_data_uri() turns one into a base64 data URI, which Cloudinary's
upload endpoint accepts directly in its "file" parameter, and
MediaUploader.upload() performs a signed upload over the REST API and returns
the secure HTTPS URL of the stored asset.

Signed upload, per Cloudinary's REST contract:
  signature = SHA-1("<sorted k=v pairs joined by &>" + api_secret)
  where the signed params exclude file, api_key, cloud_name and resource_type.

Every failure (missing configuration, network error, non-2xx, response
without secure_url) raises UploadError so callers see one failure type.

Layer rule: no imports from api/ or auth/. Import from core/ is allowed.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import mimetypes
import time
from dataclasses import dataclass

import requests

from core.config import Settings
from core.errors import UploadError

logger = logging.getLogger("jobportal.media")

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/{resource_type}/upload"


@dataclass
class UploadedFile:
    """A file received from the client, already read into memory."""

    filename: str
    content_type: str | None
    content: bytes


def to_data_uri(upload: UploadedFile) -> str:
    """Encode an uploaded file as data:<mime>;base64,<payload>.

    The MIME type comes from the client first, then from the file extension.
    Raises UploadError when there is nothing to encode.
    """
    if not upload.content:
        raise UploadError("Could not create Data-URI")
    mime = upload.content_type or mimetypes.guess_type(upload.filename)[0] or "application/octet-stream"
    payload = base64.b64encode(upload.content).decode("ascii")
    return f"data:{mime};base64,{payload}"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Return the Cloudinary SHA-1 signature for the given upload parameters."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()  # noqa: S324 -- mandated by Cloudinary


class MediaUploader:
    """Signed uploads to one Cloudinary cloud.

    Usage:
        uploader = MediaUploader.from_settings(get_settings())
        url = uploader.upload(to_data_uri(upload), resource_type="auto")
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> MediaUploader:
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            timeout=settings.upload_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self._api_key and self._api_secret)

    def upload(self, data_uri: str, resource_type: str = "image") -> str:
        """Upload a data URI and return the asset's secure_url.

        resource_type is "image", "raw", "video" or "auto" (let Cloudinary
        detect it -- used for resumes, which may be PDF or DOCX).
        """
        if not self.configured:
            logger.error("Upload attempted but Cloudinary credentials are not configured")
            raise UploadError("Media storage is not configured")

        params = {"timestamp": str(int(time.time()))}
        data = {
            **params,
            "file": data_uri,
            "api_key": self._api_key,
            "signature": sign_params(params, self._api_secret),
        }
        url = CLOUDINARY_UPLOAD_URL.format(cloud_name=self.cloud_name, resource_type=resource_type)
        try:
            resp = self._session.post(url, data=data, timeout=self._timeout)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Cloudinary upload failed: %s", e)
            raise UploadError("Upload failed") from e

        secure_url = body.get("secure_url")
        if not secure_url:
            logger.warning("Cloudinary response had no secure_url: %s", body.get("error"))
            raise UploadError("Upload failed")
        return secure_url
