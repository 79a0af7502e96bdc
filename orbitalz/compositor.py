import io
from typing import List, Sequence, Tuple

from PIL import Image

from orbitalz.errors import DimensionMismatchError
from orbitalz.selector import Selection


def composite(
    selections: Sequence[Selection],
) -> Tuple[Image.Image, List[Tuple[str, str]]]:
    """Stack the selected layers, bottom to top, with "over" alpha blending.

    The first selection is the background and fixes the canvas size. Every
    layer size is checked before the canvas is touched.

    Args:
        selections: One selection per group, sorted by rank

    Returns:
        The composite RGBA image and the ordered (group, trait) pairs

    Raises:
        DimensionMismatchError: A layer does not match the background size
    """
    if not selections:
        raise ValueError("Nothing to composite")

    background = selections[0]
    size = background.image.size
    for selection in selections[1:]:
        if selection.image.size != size:
            raise DimensionMismatchError(
                selection.group, selection.trait, size, selection.image.size
            )

    # Fresh canvas per call, layer images stay untouched
    canvas = background.image.copy()
    for selection in selections[1:]:
        canvas.alpha_composite(selection.image)

    traits = [(selection.group, selection.trait) for selection in selections]
    return canvas, traits


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
