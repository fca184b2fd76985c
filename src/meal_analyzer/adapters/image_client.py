"""HTTP client for probing and downloading meal images."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from meal_analyzer.domain.errors import ImageUnreachable
from meal_analyzer.domain.images import FetchedImage, ImageProbe


class ImageClient(Protocol):
    """Interface for remote image access."""

    async def probe(self, url: str, timeout: float) -> ImageProbe:
        """Issue a HEAD request and report status and content type."""

    async def fetch(self, url: str, timeout: float) -> FetchedImage:
        """Download the image bytes."""


@dataclass
class HttpxImageClient(ImageClient):
    """Image client using httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxImageClient":
        """Create an image client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def probe(self, url: str, timeout: float) -> ImageProbe:
        """Check that the URL answers a HEAD request."""
        try:
            response = await self.http_client.head(url, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise ImageUnreachable(
                "Failed to access image URL",
                f"Timed out after {timeout}s",
                timed_out=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise ImageUnreachable("Failed to access image URL", str(exc)) from exc
        return ImageProbe(
            status_code=response.status_code,
            content_type=_content_type(response),
        )

    async def fetch(self, url: str, timeout: float) -> FetchedImage:
        """Download image bytes, failing on transport errors and non-2xx."""
        try:
            response = await self.http_client.get(url, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise ImageUnreachable(
                "Failed to fetch image",
                f"Timed out after {timeout}s",
                timed_out=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise ImageUnreachable("Failed to fetch image", str(exc)) from exc
        if not response.is_success:
            raise ImageUnreachable(
                "Failed to fetch image", f"status {response.status_code}"
            )
        return FetchedImage(
            content=response.content, content_type=_content_type(response)
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _content_type(response: httpx.Response) -> str | None:
    raw = response.headers.get("content-type")
    if not raw:
        return None
    return raw.split(";", maxsplit=1)[0].strip().lower() or None
