"""Models for remote meal images."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageProbe:
    """Result of a lightweight reachability check for an image URL."""

    status_code: int
    content_type: str | None

    @property
    def is_image(self) -> bool:
        """Return false only when the server names a non-image content type."""
        return self.content_type is None or self.content_type.startswith("image/")


@dataclass(frozen=True)
class FetchedImage:
    """Downloaded image bytes."""

    content: bytes
    content_type: str | None
