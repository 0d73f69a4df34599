"""Grid compositing of several chart rasters into one image."""

from __future__ import annotations

import io
import logging
import math
from typing import Optional, Sequence, Tuple, Union

from PIL import Image

from ..config import EXPORT_CELL_HEIGHT, EXPORT_CELL_WIDTH, EXPORT_PADDING

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, Image.Image]


def compute_grid(count: int) -> Tuple[int, int]:
    """(columns, rows) for ``count`` cells: as square as possible, filled row-major."""
    if count <= 0:
        raise ValueError("at least one image is required to build a grid")
    columns = math.ceil(math.sqrt(count))
    rows = math.ceil(count / columns)
    return columns, rows


def cell_origin(
    index: int,
    columns: int,
    cell_width: int = EXPORT_CELL_WIDTH,
    cell_height: int = EXPORT_CELL_HEIGHT,
    padding: int = EXPORT_PADDING,
) -> Tuple[int, int]:
    column = index % columns
    row = index // columns
    return column * (cell_width + padding), row * (cell_height + padding)


def canvas_size(
    columns: int,
    rows: int,
    cell_width: int = EXPORT_CELL_WIDTH,
    cell_height: int = EXPORT_CELL_HEIGHT,
    padding: int = EXPORT_PADDING,
) -> Tuple[int, int]:
    return (
        columns * cell_width + (columns - 1) * padding,
        rows * cell_height + (rows - 1) * padding,
    )


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    image = Image.open(io.BytesIO(source))
    image.load()
    return image


def composite_images(
    images: Sequence[ImageSource],
    background: Optional[str] = "#ffffff",
    cell_width: int = EXPORT_CELL_WIDTH,
    cell_height: int = EXPORT_CELL_HEIGHT,
    padding: int = EXPORT_PADDING,
) -> Image.Image:
    """Arrange ``images`` on a grid canvas, each scaled to one cell.

    ``background`` of None leaves the canvas fully transparent.
    """
    columns, rows = compute_grid(len(images))
    width, height = canvas_size(columns, rows, cell_width, cell_height, padding)

    if background is None:
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    else:
        canvas = Image.new("RGBA", (width, height), background)

    for index, source in enumerate(images):
        tile = _open(source).convert("RGBA")
        if tile.size != (cell_width, cell_height):
            tile = tile.resize((cell_width, cell_height), Image.Resampling.LANCZOS)
        canvas.alpha_composite(tile, dest=cell_origin(index, columns, cell_width, cell_height, padding))

    logger.debug("[export] composited %d images into %dx%d grid (%dx%d px)", len(images), columns, rows, width, height)
    return canvas


def image_to_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
