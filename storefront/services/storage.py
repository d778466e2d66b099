"""
Pluggable file storage for book thumbnails and PDFs.

Two backends share one interface:

* ``DiskStorage`` keeps files under ``settings.upload_dir`` and hands out
  ``/uploads/<folder>/<file>`` refs. Only the thumbnails folder is served
  as static files; PDFs are streamed by the content gate.
* ``R2Storage`` talks to Cloudflare R2 through boto3 and hands out
  ``r2://<key>`` refs. Content is served through short-lived presigned URLs.

The backend is picked once from ``settings.storage_backend``.
"""
import logging
import os
import time
from functools import lru_cache
from typing import Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from slugify import slugify

from storefront.config import settings
from storefront.errors import ConfigurationError, NotFoundError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

THUMBNAILS = "thumbnails"
PDFS = "pdfs"
CHUNK_SIZE = 64 * 1024


def safe_filename(original_name: str, default: str = "file") -> str:
    """``My Book (v2).PDF`` -> ``my-book-v2_1700000000.pdf``"""
    base, ext = os.path.splitext(original_name or "")
    stem = slugify(base)[:80] or default
    return f"{stem}_{int(time.time() * 1000)}{ext.lower()}"


class StorageBackend:
    def put(self, name: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``name`` (``<folder>/<file>``) and return its ref."""
        raise NotImplementedError

    def resolve(self, ref: str) -> Iterator[bytes]:
        raise NotImplementedError

    def public_url(self, ref: str) -> Optional[str]:
        raise NotImplementedError

    def temporary_url(self, ref: str, filename: str, download: bool) -> Optional[str]:
        """A short-lived direct URL, or None when content must be streamed."""
        return None

    def delete(self, ref: str) -> None:
        raise NotImplementedError


class DiskStorage(StorageBackend):
    URL_PREFIX = "/uploads/"

    def __init__(self, root: str):
        self.root = root
        os.makedirs(os.path.join(root, THUMBNAILS), exist_ok=True)
        os.makedirs(os.path.join(root, PDFS), exist_ok=True)

    def _path(self, ref: str) -> str:
        if not ref or not ref.startswith(self.URL_PREFIX):
            raise NotFoundError("File not found")
        relative = ref[len(self.URL_PREFIX):]
        path = os.path.realpath(os.path.join(self.root, relative))
        if not path.startswith(os.path.realpath(self.root) + os.sep):
            raise NotFoundError("File not found")
        return path

    def put(self, name: str, data: bytes, content_type: str) -> str:
        ref = f"{self.URL_PREFIX}{name}"
        path = self._path(ref)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
        return ref

    def resolve(self, ref: str) -> Iterator[bytes]:
        path = self._path(ref)
        if not os.path.isfile(path):
            raise NotFoundError("PDF file not found on server")
        return self._iter_file(path)

    @staticmethod
    def _iter_file(path: str) -> Iterator[bytes]:
        with open(path, "rb") as fh:
            while True:
                chunk = fh.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def public_url(self, ref: str) -> Optional[str]:
        return ref

    def delete(self, ref: str) -> None:
        try:
            os.remove(self._path(ref))
        except FileNotFoundError:
            logger.info(f"Nothing to delete at {ref}")


class R2Storage(StorageBackend):
    URL_PREFIX = "r2://"

    def __init__(self, client, bucket: str, public_base: Optional[str] = None,
                 url_expiry: int = 900):
        self.client = client
        self.bucket = bucket
        self.public_base = public_base.rstrip("/") if public_base else None
        self.url_expiry = url_expiry

    @classmethod
    def from_settings(cls):
        required = [
            settings.r2_account_id,
            settings.r2_access_key_id,
            settings.r2_secret_access_key,
            settings.r2_bucket_name,
        ]
        if not all(required):
            raise ConfigurationError(
                "Missing R2 settings: R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME"
            )

        client = boto3.client(
            "s3",
            endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
            config=Config(
                connect_timeout=settings.storage_timeout_seconds,
                read_timeout=settings.storage_timeout_seconds,
                retries={"max_attempts": 2},
            ),
        )
        return cls(
            client,
            settings.r2_bucket_name,
            public_base=settings.r2_public_base,
            url_expiry=settings.content_url_expiry_seconds,
        )

    def _key(self, ref: str) -> str:
        if not ref or not ref.startswith(self.URL_PREFIX):
            raise NotFoundError("File not found")
        return ref[len(self.URL_PREFIX):]

    def put(self, name: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"R2 upload failed for {name}: {e}")
            raise UpstreamUnavailableError("File storage unavailable") from e
        return f"{self.URL_PREFIX}{name}"

    def resolve(self, ref: str) -> Iterator[bytes]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(ref))
        except ClientError as e:
            if e.response["Error"]["Code"] == "NoSuchKey":
                raise NotFoundError("File not found") from e
            raise UpstreamUnavailableError("File storage unavailable") from e
        except BotoCoreError as e:
            raise UpstreamUnavailableError("File storage unavailable") from e
        return response["Body"].iter_chunks(CHUNK_SIZE)

    def _presign(self, key: str, disposition: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if disposition:
            params["ResponseContentDisposition"] = disposition
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=self.url_expiry,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamUnavailableError("File storage unavailable") from e

    def public_url(self, ref: str) -> Optional[str]:
        key = self._key(ref)
        if self.public_base:
            return f"{self.public_base}/{key}"
        return self._presign(key)

    def temporary_url(self, ref: str, filename: str, download: bool) -> Optional[str]:
        return self._presign(self._key(ref), content_disposition(filename, download))

    def delete(self, ref: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=self._key(ref))
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"R2 delete failed for {ref}: {e}")


def content_disposition(filename: str, download: bool) -> str:
    if not download:
        return "inline"
    cleaned = filename.replace('"', "").replace("\r", "").replace("\n", "")
    return f'attachment; filename="{cleaned}"'


@lru_cache(maxsize=1)
def get_storage() -> StorageBackend:
    backend = settings.storage_backend.lower()
    if backend == "disk":
        return DiskStorage(settings.upload_dir)
    if backend == "r2":
        return R2Storage.from_settings()
    raise ConfigurationError(f"Unknown STORAGE_BACKEND '{settings.storage_backend}'")
