# app/infrastructure/imaging/pillow_transform.py
import io
import logging
import math
from typing import List, Tuple

from PIL import Image, ImageOps

from ...application.ports.image_transform import (
    ImageMetadata,
    ImageTransformer,
    ImageValidation,
    TransformResult,
)
from ...exceptions import TransformError

logger = logging.getLogger(__name__)

# Pillow mode -> colour space name reported in image metadata
COLORSPACES = {
    "1": "b-w",
    "L": "b-w",
    "LA": "b-w",
    "P": "srgb",
    "PA": "srgb",
    "RGB": "srgb",
    "RGBA": "srgb",
    "RGBX": "srgb",
    "CMYK": "cmyk",
    "YCbCr": "ycbcr",
    "LAB": "lab",
    "HSV": "hsv",
    "I": "grey32",
    "I;16": "grey16",
    "I;16B": "grey16",
    "I;16L": "grey16",
    "I;16N": "grey16",
    "F": "grey-float",
}

HIGH_DEPTH_MODES = ("I", "F", "I;16", "I;16B", "I;16L", "I;16N")

# Stretch range when a float band has no finite pixels
NDVI_RANGE = (-1.0, 1.0)
EXTREMA_SAMPLE_EDGE = 1024

MIN_NDVI_EDGE = 100
LARGE_NDVI_EDGE = 10000
LARGE_FILE_BYTES = 50 * 1024 * 1024


class PillowImageTransformer(ImageTransformer):
    """Derives a square thumbnail and a size-capped copy from an uploaded raster.

    Both variants are encoded as JPEG so that sources a browser cannot show
    (16-bit or float TIFF bands) still get a preview. Decode or resize failures
    are reported in ``TransformResult.error`` and never raised.
    """

    def __init__(self, thumbnail_size: int = 300, optimized_max_edge: int = 1200,
                 thumbnail_quality: int = 80, optimized_quality: int = 85) -> None:
        self.thumbnail_size = thumbnail_size
        self.optimized_max_edge = optimized_max_edge
        self.thumbnail_quality = thumbnail_quality
        self.optimized_quality = optimized_quality

    def process(self, data: bytes) -> TransformResult:
        try:
            image = self._decode(data)
        except TransformError as e:
            logger.warning(f"Image transform skipped: {e}")
            return TransformResult(error=str(e))

        with image:
            metadata = self.extract_metadata(image)
            result = TransformResult(
                metadata=metadata,
                validation=validate_ndvi_image(metadata, len(data)),
            )
            errors: List[str] = []

            try:
                display = to_display_mode(image)
            except TransformError as e:
                logger.warning(f"Could not convert image for display: {e}")
                result.error = str(e)
                return result

            try:
                result.thumbnail = self.make_thumbnail(display)
            except TransformError as e:
                logger.warning(f"Failed to generate thumbnail: {e}")
                errors.append(str(e))

            if max(metadata.width, metadata.height) > self.optimized_max_edge:
                quality = 95 if metadata.format == "tiff" else self.optimized_quality
                try:
                    result.optimized = self.make_optimized(display, quality)
                    result.compression_ratio = compression_ratio(len(data), len(result.optimized))
                except TransformError as e:
                    logger.warning(f"Failed to generate optimized image: {e}")
                    errors.append(str(e))

            if errors:
                result.error = "; ".join(errors)
            return result

    def _decode(self, data: bytes) -> Image.Image:
        if not data:
            raise TransformError("Empty image buffer")
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            return image
        except Exception as e:
            raise TransformError(f"Could not decode image: {e}") from e

    def extract_metadata(self, image: Image.Image) -> ImageMetadata:
        bands = image.getbands()
        has_alpha = "A" in bands or (image.mode == "P" and "transparency" in image.info)
        dpi = image.info.get("dpi")
        density = float(dpi[0]) if dpi else None
        return ImageMetadata(
            width=image.width,
            height=image.height,
            format=image.format.lower() if image.format else None,
            colorspace=COLORSPACES.get(image.mode, image.mode.lower()),
            channels=len(bands),
            has_alpha=has_alpha,
            density=density,
        )

    def make_thumbnail(self, image: Image.Image) -> bytes:
        """Cover fit: scale to fill the square, then centre crop."""
        size = (self.thumbnail_size, self.thumbnail_size)
        try:
            thumb = ImageOps.fit(image, size, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
            return encode_jpeg(thumb, self.thumbnail_quality)
        except Exception as e:
            raise TransformError(f"Thumbnail failed: {e}") from e

    def make_optimized(self, image: Image.Image, quality: int) -> bytes:
        """Contain fit: the longest edge becomes the cap, never upscaled."""
        try:
            target = contain_size(image.size, self.optimized_max_edge)
            if target == image.size:
                resized = image
            else:
                resized = image.resize(target, Image.Resampling.LANCZOS)
            return encode_jpeg(resized, quality)
        except Exception as e:
            raise TransformError(f"Optimize failed: {e}") from e


def contain_size(size: Tuple[int, int], max_edge: int) -> Tuple[int, int]:
    width, height = size
    if max(width, height) <= max_edge:
        return width, height
    if width >= height:
        return max_edge, max(1, round(height * max_edge / width))
    return max(1, round(width * max_edge / height)), max_edge


def to_display_mode(image: Image.Image) -> Image.Image:
    """Convert any decodable mode into 8-bit L or RGB."""
    try:
        if image.mode in HIGH_DEPTH_MODES:
            return stretch_to_8bit(image)
        if image.mode == "L":
            return image.copy()
        if "A" in image.getbands() or (image.mode == "P" and "transparency" in image.info):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        return image.convert("RGB")
    except Exception as e:
        raise TransformError(f"Unsupported image mode {image.mode}: {e}") from e


def stretch_to_8bit(image: Image.Image) -> Image.Image:
    # Single band, more than 8 bits: rescale observed range onto 0..255
    if image.mode.startswith("I;16"):
        image = image.convert("I")
    low, high = image.getextrema()
    if not (math.isfinite(low) and math.isfinite(high)):
        low, high = finite_extrema(image)
    scale = 255.0 / (high - low) if high > low else 0.0
    offset = -low * scale
    return image.point(lambda v: v * scale + offset).convert("L")


def finite_extrema(image: Image.Image) -> Tuple[float, float]:
    """Extrema of a float band ignoring NaN/inf nodata, taken from a nearest-neighbour sample."""
    sample = image.resize(contain_size(image.size, EXTREMA_SAMPLE_EDGE), Image.Resampling.NEAREST)
    values = [v for v in sample.getdata() if math.isfinite(v)]
    if not values:
        return NDVI_RANGE
    return min(values), max(values)


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality, optimize=True, progressive=True)
    return buf.getvalue()


def compression_ratio(original_size: int, optimized_size: int) -> float:
    if original_size <= 0:
        return 0.0
    return (original_size - optimized_size) / original_size


def validate_ndvi_image(metadata: ImageMetadata, file_size: int) -> ImageValidation:
    issues: List[str] = []
    recommendations: List[str] = []

    if metadata.format and metadata.format not in ("tiff", "png", "jpeg", "webp"):
        issues.append(f"Unsupported format: {metadata.format}")

    if metadata.width < MIN_NDVI_EDGE or metadata.height < MIN_NDVI_EDGE:
        issues.append("Image dimensions too small for NDVI analysis")
    if metadata.width > LARGE_NDVI_EDGE or metadata.height > LARGE_NDVI_EDGE:
        recommendations.append("Large image detected - consider resizing for faster processing")

    if file_size > LARGE_FILE_BYTES:
        recommendations.append("Large file size - optimization recommended")

    if metadata.channels < 3:
        issues.append("NDVI images typically require at least 3 channels (RGB or multispectral)")

    if metadata.format == "tiff" and not metadata.has_alpha:
        recommendations.append("TIFF format detected - ensure it contains proper band information")
    if metadata.format == "jpeg":
        recommendations.append("JPEG format may lose precision for NDVI analysis - consider TIFF or PNG")

    return ImageValidation(is_valid=not issues, issues=issues, recommendations=recommendations)

