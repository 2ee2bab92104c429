"""Image resizing and encoding utilities for the derivatives generator."""

import io
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from PIL import Image, ImageSequence

from .error_handling import image_operation
from .formats import pillow_format

JPEG_QUALITY = 80
WEBP_QUALITY = 80
PNG_COMPRESS_LEVEL = 9
PALETTE_COLORS = 256
DEFAULT_FRAME_DURATION = 100

ANIMATED_FORMATS = frozenset({"GIF", "PNG", "WEBP"})


@dataclass
class EncodedImage:
    """Encoded derivative bytes and their dimensions."""

    body: bytes
    width: int
    height: int
    format: str
    frame_count: int = 1


def calculate_target_size(width: int, height: int, target_width: int) -> Tuple[int, int]:
    """
    Proportional size for ``target_width``, never enlarging.

    Args:
        width: Source width
        height: Source height
        target_width: Requested width

    Returns:
        (width, height) with the height derived from the source aspect ratio
    """
    if width <= target_width:
        return width, height
    new_height = max(1, round(height * target_width / width))
    return target_width, new_height


def encode_params(format_name: str) -> Dict[str, Any]:
    """Pillow save() parameters for an output format."""
    if format_name == "PNG":
        return {"optimize": True, "compress_level": PNG_COMPRESS_LEVEL}
    if format_name == "JPEG":
        return {"quality": JPEG_QUALITY, "optimize": True, "progressive": True}
    if format_name == "WEBP":
        return {"quality": WEBP_QUALITY, "lossless": False}
    if format_name == "GIF":
        return {"optimize": True}
    return {}


def is_animated(img: "Image.Image") -> bool:
    return bool(getattr(img, "is_animated", False)) and getattr(img, "n_frames", 1) > 1


def describe_image(img: "Image.Image") -> Dict[str, Any]:
    """Basic information about a decoded image, for logging."""
    return {
        "width": img.width,
        "height": img.height,
        "format": img.format or "unknown",
        "mode": img.mode,
        "frames": getattr(img, "n_frames", 1),
    }


def _normalize_mode(img: "Image.Image") -> "Image.Image":
    if img.mode in ("RGB", "RGBA"):
        return img
    if img.mode in ("LA", "PA") or "transparency" in img.info:
        return img.convert("RGBA")
    return img.convert("RGB")


def _resize(img: "Image.Image", size: Tuple[int, int]) -> "Image.Image":
    img = _normalize_mode(img)
    if img.size == size:
        return img
    return img.resize(size, Image.Resampling.LANCZOS)


def _prepare_for_format(img: "Image.Image", format_name: str) -> "Image.Image":
    if format_name == "JPEG":
        return img.convert("RGB") if img.mode != "RGB" else img
    if format_name == "PNG":
        # palette reduction
        method = (
            Image.Quantize.FASTOCTREE if img.mode == "RGBA" else Image.Quantize.MEDIANCUT
        )
        return img.quantize(colors=PALETTE_COLORS, method=method)
    return img


@image_operation
def decode_image(image_bytes: bytes) -> "Image.Image":
    """Decode image bytes; fails on truncated or unidentified data."""
    img = Image.open(io.BytesIO(image_bytes))
    img.load()
    return img


@image_operation
def resize_and_encode(
    img: "Image.Image", target_width: int, output_format: str
) -> EncodedImage:
    """
    Resize a decoded image to ``target_width`` and encode it.

    Animation is preserved when the output format supports it; otherwise only
    the first frame is kept.

    Args:
        img: Decoded source image
        target_width: Requested width (never enlarged)
        output_format: Output extension (jpg, jpeg, png, webp, gif)

    Returns:
        EncodedImage with the encoded bytes and resulting size
    """
    format_name = pillow_format(output_format)
    size = calculate_target_size(img.width, img.height, target_width)

    frames: List["Image.Image"] = []
    durations: List[int] = []
    if is_animated(img) and format_name in ANIMATED_FORMATS:
        for frame in ImageSequence.Iterator(img):
            durations.append(
                frame.info.get("duration", img.info.get("duration", DEFAULT_FRAME_DURATION))
            )
            frames.append(_prepare_for_format(_resize(frame.copy(), size), format_name))
    else:
        img.seek(0)
        frames.append(_prepare_for_format(_resize(img, size), format_name))

    params = encode_params(format_name)
    if len(frames) > 1:
        params.update(
            save_all=True,
            append_images=frames[1:],
            duration=durations,
            loop=img.info.get("loop", 0),
        )

    output = io.BytesIO()
    frames[0].save(output, format=format_name, **params)

    return EncodedImage(
        body=output.getvalue(),
        width=size[0],
        height=size[1],
        format=format_name,
        frame_count=len(frames),
    )
