"""Resolution variants for uploaded images, generated with Pillow."""
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

# name -> (max edge in px, JPEG quality), largest first
VARIANT_SETTINGS: Dict[str, Tuple[int, int]] = {
    "display": (2400, 85),
    "large": (1600, 82),
    "medium": (1200, 80),
    "thumb": (400, 75),
}

PROCESSABLE_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif", "image/avif"}


class ImageProcessingError(Exception):
    pass


@dataclass
class GeneratedVariant:
    content: bytes
    width: int
    height: int
    extension: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ProcessedImage:
    width: int
    height: int
    variants: Dict[str, GeneratedVariant] = field(default_factory=dict)


def is_processable_image(mime: str) -> bool:
    return mime in PROCESSABLE_MIME_TYPES


def fit_inside(width: int, height: int, max_edge: int) -> Tuple[int, int]:
    """Scale (width, height) so the longest edge is max_edge; never enlarges."""
    if width <= max_edge and height <= max_edge:
        return width, height
    if width > height:
        return max_edge, max(1, round(height / width * max_edge))
    return max(1, round(width / height * max_edge)), max_edge


def _encode(img: Image.Image, fmt: str, quality: int) -> bytes:
    buf = io.BytesIO()
    if fmt == "PNG":
        img.save(buf, format="PNG", optimize=True)
    else:
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        img.save(buf, format="JPEG", quality=quality, progressive=True)
    return buf.getvalue()


def process_image(content: bytes) -> ProcessedImage:
    """Read dimensions and build every variant smaller than the original.

    PNG sources stay PNG, everything else is written as JPEG. A variant is only
    produced when the original's longest edge exceeds the variant's max edge.
    """
    try:
        with Image.open(io.BytesIO(content)) as source:
            source.load()
            fmt = "PNG" if source.format == "PNG" else "JPEG"
            img = ImageOps.exif_transpose(source) if fmt == "JPEG" else source.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageProcessingError(f"Could not decode image: {e}") from e

    width, height = img.size
    result = ProcessedImage(width=width, height=height)
    extension = ".png" if fmt == "PNG" else ".jpg"

    for name, (max_edge, quality) in VARIANT_SETTINGS.items():
        if width <= max_edge and height <= max_edge:
            continue
        target = fit_inside(width, height, max_edge)
        resized = img.resize(target, Image.LANCZOS)
        result.variants[name] = GeneratedVariant(
            content=_encode(resized, fmt, quality),
            width=target[0],
            height=target[1],
            extension=extension,
        )
        logger.debug("Generated %s variant %dx%d", name, *target)

    return result


def variant_filename(base_name: str, suffix: str, variant: Optional[str], extension: str) -> str:
    if variant:
        return f"{base_name}-{suffix}-{variant}{extension}"
    return f"{base_name}-{suffix}{extension}"
