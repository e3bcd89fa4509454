import io

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

from auto_appraisal.errors import PhotoProcessingError

log = structlog.get_logger()

JPEG_QUALITIES = (90, 80, 70, 60, 50, 40)
DOWNSCALE_STEP = 0.8
MIN_DIMENSION = 320


def compress_image(data: bytes, max_dimension: int = 1600, max_bytes: int = int(1.5 * 1024 * 1024)) -> bytes:
    """
    Re-encode an uploaded photo as JPEG no larger than max_dimension on its
    long edge and, where reachable, no larger than max_bytes.

    Quality is lowered first; if the smallest quality is still too big the
    image is scaled down and the quality ladder restarts.
    """
    try:
        with Image.open(io.BytesIO(data)) as src:
            src.load()
            img = ImageOps.exif_transpose(src)
            img = img.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise PhotoProcessingError(f"cannot read image: {e}") from e

    img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    while True:
        for quality in JPEG_QUALITIES:
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality, optimize=True)
            encoded = out.getvalue()
            if len(encoded) <= max_bytes:
                log.debug("photo.compressed", size=len(encoded), quality=quality, width=img.width, height=img.height)
                return encoded
        if max(img.size) <= MIN_DIMENSION:
            # Smallest rendition still over budget; ship it rather than fail the upload
            log.warning("photo.over_budget", size=len(encoded), max_bytes=max_bytes)
            return encoded
        img = img.resize(
            (max(1, int(img.width * DOWNSCALE_STEP)), max(1, int(img.height * DOWNSCALE_STEP))),
            Image.Resampling.LANCZOS,
        )
