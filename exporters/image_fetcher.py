"""Image fetcher for downloading embedded blog images into the local image directory."""

import logging
import mimetypes
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urljoin

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from models import ExportSettings

from .markdown_exporter import WriteFailureError

# Preferred extensions; mimetypes alone is ambiguous for some types (jpe/jpeg/jpg)
CONTENT_TYPE_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/pjpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/bmp': 'bmp',
    'image/webp': 'webp',
    'image/svg+xml': 'svg',
    'image/tiff': 'tif',
    'image/x-icon': 'ico',
    'image/vnd.microsoft.icon': 'ico',
}


class ImageFetchError(Exception):
    """Base exception for image download errors."""
    pass


class DownloadFailedError(ImageFetchError):
    """Raised when the image server answers with a non-success status."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"Failed to download image {url}: HTTP status {status_code}")
        self.url = url
        self.status_code = status_code


class UnknownContentTypeError(ImageFetchError):
    """Raised when the response content type cannot be mapped to a file extension."""
    pass


def extension_for_content_type(content_type: Optional[str]) -> Optional[str]:
    """
    Map a Content-Type header value to a file extension (without the dot).

    Parameters such as charset are stripped before lookup.
    """
    if not content_type:
        return None

    mime_type = content_type.split(';')[0].strip().lower()
    if not mime_type:
        return None

    if mime_type in CONTENT_TYPE_EXTENSIONS:
        return CONTENT_TYPE_EXTENSIONS[mime_type]

    guessed = mimetypes.guess_extension(mime_type)
    return guessed.lstrip('.') if guessed else None


class ImageFetcher:
    """
    Downloads embedded images and stores them under sanitized names.

    Each distinct reference is fetched at most once per run; repeated
    references reuse the path written the first time. Existing files from
    earlier runs are overwritten.
    """

    def __init__(
        self,
        settings: ExportSettings,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the image fetcher.

        Args:
            settings: Export settings (base URL, image directory, network options)
            session: Optional pre-configured requests session
            logger: Logger instance
        """
        self.base_url = settings.base_url
        self.images_dir = settings.images_path
        self.timeout = settings.request_timeout
        self.logger = logger or logging.getLogger('blog_markdown_migrator.exporters.image_fetcher')
        self.session = session or self._create_session(settings)

        self._fetched: Dict[str, Path] = {}

        self.stats = {
            'fetched': 0,
            'reused': 0,
            'failed': 0,
            'total_size_bytes': 0
        }

    @staticmethod
    def _create_session(settings: ExportSettings) -> requests.Session:
        """Create a session with retry strategy for transient server errors."""
        session = requests.Session()
        session.verify = settings.verify_ssl
        if not settings.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        retry_strategy = Retry(
            total=settings.max_retries,
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def fetch(self, remote_ref: str, base_name: str) -> Path:
        """
        Download an image and write it as ``<images_dir>/<base_name>.<ext>``.

        The extension comes from the response's Content-Type, never from the URL.

        Args:
            remote_ref: Image reference, relative to the base URL or absolute
            base_name: Sanitized filename without extension

        Returns:
            Path of the written file

        Raises:
            DownloadFailedError: On a non-success HTTP status
            UnknownContentTypeError: If the content type is missing or unknown
            requests.RequestException: On connection errors
            WriteFailureError: If the image file can't be written
        """
        cached = self._fetched.get(remote_ref)
        if cached is not None:
            self.stats['reused'] += 1
            self.logger.debug(f"Image already fetched in this run: {remote_ref} -> {cached}")
            return cached

        url = urljoin(self.base_url, remote_ref)
        self.logger.debug(f"Downloading image {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)

            if not 200 <= response.status_code < 300:
                raise DownloadFailedError(url, response.status_code)

            content_type = response.headers.get('Content-Type')
            if not content_type:
                raise UnknownContentTypeError(f"No Content-Type header in response for {url}")

            extension = extension_for_content_type(content_type)
            if not extension:
                raise UnknownContentTypeError(f"Unknown content type '{content_type}' for {url}")

            self.images_dir.mkdir(parents=True, exist_ok=True)
            output_path = self.images_dir / f"{base_name}.{extension}"
            output_path.write_bytes(response.content)
        except (ImageFetchError, requests.RequestException):
            self.stats['failed'] += 1
            self.logger.warning(f"Failed to download image: {remote_ref}")
            raise
        except OSError as e:
            self.stats['failed'] += 1
            self.logger.warning(f"Failed to store image: {remote_ref}")
            raise WriteFailureError(f"Error writing image {base_name} to {self.images_dir}: {e}") from e

        self._fetched[remote_ref] = output_path
        self.stats['fetched'] += 1
        self.stats['total_size_bytes'] += len(response.content)
        self.logger.info(f"Saved image {output_path.name} ({len(response.content)} bytes)")

        return output_path

    def get_stats(self) -> Dict[str, int]:
        """Get image download statistics."""
        return self.stats.copy()


__all__ = [
    'ImageFetcher',
    'ImageFetchError',
    'DownloadFailedError',
    'UnknownContentTypeError',
    'extension_for_content_type'
]
