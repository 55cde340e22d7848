"""
Image Processor Module.

Decodes JPEG/PNG bytes and normalizes them before OCR:
    - EXIF orientation correction
    - RGB conversion (alpha flattened onto white)
    - downscaling of oversized scans
    - optional contrast/sharpness enhancement
"""

import io

from PIL import Image, ImageEnhance, ImageOps, UnidentifiedImageError

from config import get_config
from docintake.utils.logger import get_logger
from docintake.utils.exceptions import OCRError

logger = get_logger(__name__)


class ImageProcessor:
    """
    Normalizes document photos and scans for OCR.

    Attributes:
        max_width: Maximum image width in pixels
        max_height: Maximum image height in pixels
        auto_orient: Whether to apply EXIF orientation
        enhance_contrast: Whether to apply contrast enhancement

    Example:
        >>> processor = ImageProcessor()
        >>> image = processor.load(jpeg_bytes)
    """

    def __init__(self) -> None:
        self.max_width = get_config("image.max_width", 4000)
        self.max_height = get_config("image.max_height", 4000)
        self.auto_orient = get_config("image.auto_orient", True)
        self.enhance_contrast = get_config("image.enhance_contrast", False)

    def load(self, data: bytes) -> Image.Image:
        """
        Decode image bytes and prepare them for OCR.

        Raises:
            OCRError: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Failed to decode image: {e}")
            raise OCRError(f"cannot decode image: {e}") from e

        return self.prepare(image)

    def prepare(self, image: Image.Image) -> Image.Image:
        """
        Apply the normalization steps to an already decoded image.

        Processing steps:
            1. Fix orientation from EXIF data
            2. Convert to RGB
            3. Resize if too large
            4. Enhance contrast (optional)
        """
        if self.auto_orient:
            image = ImageOps.exif_transpose(image)

        image = self._convert_to_rgb(image)
        image = self._resize_if_needed(image)

        if self.enhance_contrast:
            image = ImageEnhance.Contrast(image).enhance(1.2)
            image = ImageEnhance.Sharpness(image).enhance(1.1)

        return image

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        if image.mode == 'RGB':
            return image

        if image.mode == 'RGBA':
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            return background

        return image.convert('RGB')

    def _resize_if_needed(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        if width <= self.max_width and height <= self.max_height:
            return image

        ratio = min(self.max_width / width, self.max_height / height)
        new_size = (int(width * ratio), int(height * ratio))
        logger.debug(f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return image.resize(new_size, Image.LANCZOS)
