import io

import pytest
from PIL import Image

from orbitalz.compositor import composite, encode_png
from orbitalz.errors import DimensionMismatchError
from orbitalz.selector import Selection

from conftest import solid


def select(group, trait, image):
    return Selection(group=group, trait=trait, image=image)


def gradient(size=(16, 16)):
    image = Image.new("RGBA", size)
    image.putdata(
        [(x * 15, y * 15, (x + y) * 7, 255) for y in range(size[1]) for x in range(size[0])]
    )
    return image


def test_single_opaque_background_is_unchanged():
    background = gradient()

    image, traits = composite([select("Background", "gradient", background)])

    assert image.tobytes() == background.tobytes()
    assert image.size == background.size
    assert traits == [("Background", "gradient")]


def test_transparent_layers_are_no_ops():
    background = gradient()
    clear = Image.new("RGBA", background.size, (255, 255, 255, 0))
    selections = [select("Background", "gradient", background)] + [
        select(group, "clear", clear) for group in ["Orbital", "Eyes", "Nose"]
    ]

    image, _ = composite(selections)

    assert image.tobytes() == background.tobytes()


def test_opaque_layer_replaces_pixels():
    hat = Image.new("RGBA", (100, 100), (0, 0, 0, 0))
    hat.paste((255, 0, 0, 255), (0, 0, 20, 20))

    image, traits = composite(
        [select("Background", "blue", solid()), select("Hat", "red", hat)]
    )

    assert image.getpixel((5, 5)) == (255, 0, 0, 255)
    assert image.getpixel((50, 50)) == (0, 0, 255, 255)
    assert traits == [("Background", "blue"), ("Hat", "red")]


def test_half_transparent_layer_blends_over():
    red = solid(color=(255, 0, 0, 128))

    image, _ = composite(
        [select("Background", "blue", solid()), select("Eyes", "red", red)]
    )

    r, g, b, a = image.getpixel((0, 0))
    assert a == 255
    assert r == pytest.approx(128, abs=1)
    assert g == 0
    assert b == pytest.approx(127, abs=1)


def test_layers_stack_in_given_order():
    green = solid(color=(0, 255, 0, 255))
    red = solid(color=(255, 0, 0, 255))

    image, traits = composite(
        [
            select("Background", "blue", solid()),
            select("Eyes", "green", green),
            select("Hat", "red", red),
        ]
    )

    assert image.getpixel((0, 0)) == (255, 0, 0, 255)
    assert [group for group, _ in traits] == ["Background", "Eyes", "Hat"]


def test_dimension_mismatch():
    background = solid()
    hat = solid(size=(50, 50), color=(255, 0, 0, 255))

    with pytest.raises(DimensionMismatchError) as exc_info:
        composite([select("Background", "blue", background), select("Hat", "red", hat)])

    error = exc_info.value
    assert error.group == "Hat"
    assert error.trait == "red"
    assert error.expected == (100, 100)
    assert error.actual == (50, 50)
    assert "Hat/red" in str(error)
    assert background.getpixel((0, 0)) == (0, 0, 255, 255)


def test_inputs_are_not_modified():
    background = solid()
    hat = solid(color=(255, 0, 0, 255))
    before = background.tobytes()

    image, _ = composite([select("Background", "blue", background), select("Hat", "red", hat)])

    assert image is not background
    assert background.tobytes() == before


def test_empty_selection():
    with pytest.raises(ValueError):
        composite([])


def test_encode_png():
    data = encode_png(gradient())

    assert data.startswith(b"\x89PNG")
    with Image.open(io.BytesIO(data)) as decoded:
        assert decoded.mode == "RGBA"
        assert decoded.tobytes() == gradient().tobytes()
