"""Main image handling for assets: validation, resize and thumbnail."""

import logging
import os
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.base import ContentFile

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg")
ALLOWED_FORMATS = ("PNG", "JPEG", "MPO")
THUMBNAIL_SIZE = (108, 108)


def validate_asset_image(uploaded_file):
    """Reject anything that is not a PNG or JPEG within the size limit."""
    max_bytes = settings.ASSET_IMAGE_MAX_BYTES
    if uploaded_file.size > max_bytes:
        raise ValidationError(
            f"File size is too big. Max is {max_bytes // (1024 * 1024)}MB."
        )
    ext = os.path.splitext(uploaded_file.name)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("Allowed file types are: PNG, JPG or JPEG.")
    try:
        img = Image.open(uploaded_file)
        img.verify()
    except (UnidentifiedImageError, OSError):
        raise ValidationError("The uploaded file is not a valid image.")
    finally:
        uploaded_file.seek(0)
    if img.format not in ALLOWED_FORMATS:
        raise ValidationError("Allowed file types are: PNG, JPG or JPEG.")


def _to_jpeg_bytes(img, quality):
    if img.mode in ("RGBA", "P", "LA"):
        img = img.convert("RGB")
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def process_asset_image(uploaded_file):
    """Return ``(main, thumbnail)`` JPEG ContentFiles for an upload.

    The main image is scaled down to ``ASSET_IMAGE_WIDTH`` pixels wide with
    its aspect ratio kept; narrower images keep their size.

    Raises ``ValidationError`` when Pillow cannot decode or re-encode it.
    """
    width = settings.ASSET_IMAGE_WIDTH
    try:
        img = Image.open(uploaded_file)
        img = ImageOps.exif_transpose(img)
        if img.width > width:
            height = round(img.height * width / img.width)
            img = img.resize((width, height), Image.LANCZOS)
        main_bytes = _to_jpeg_bytes(img, 85)
        thumb = img.copy()
        thumb.thumbnail(THUMBNAIL_SIZE, Image.LANCZOS)
        thumb_bytes = _to_jpeg_bytes(thumb, 80)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("Could not process image %s: %s", uploaded_file, exc)
        raise ValidationError("The uploaded image could not be processed.")
    finally:
        uploaded_file.seek(0)

    base = os.path.splitext(os.path.basename(uploaded_file.name))[0]
    main = ContentFile(main_bytes, name=f"{base}.jpg")
    thumbnail = ContentFile(thumb_bytes, name=f"thumb_{base}.jpg")
    return main, thumbnail


def store_asset_image(asset, main, thumbnail):
    """Attach processed image files to ``asset`` and save it."""
    try:
        asset.main_image.save(main.name, main, save=False)
        asset.thumbnail_image.save(thumbnail.name, thumbnail, save=False)
    except OSError as exc:
        logger.exception("Could not store image for asset %s", asset.pk)
        raise ValidationError("The image could not be stored.") from exc
    asset.save(update_fields=["main_image", "thumbnail_image", "updated_at"])
    logger.info("Stored main image for asset %s", asset.pk)


def save_asset_image(asset, uploaded_file):
    """Process an upload and store it on ``asset``."""
    main, thumbnail = process_asset_image(uploaded_file)
    store_asset_image(asset, main, thumbnail)
