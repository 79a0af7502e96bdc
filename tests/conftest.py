import pathlib

import numpy as np
import pytest
from PIL import Image

from orbitalz.layers import LayerGroup, LayerOption

ORDER = ["Background", "Orbital", "Eyes", "Nose", "Mouth", "Hat"]


def solid(size=(100, 100), color=(0, 0, 255, 255)):
    return Image.new("RGBA", size, color)


def write_layer(root: pathlib.Path, group: str, trait: str, image=None, ext="png"):
    group_dir = root / group
    group_dir.mkdir(parents=True, exist_ok=True)
    path = group_dir / f"{trait}.{ext}"
    (image if image is not None else solid()).save(path)
    return path


def make_group(name, count=1, weights=None, rank=None, size=(4, 4)):
    weights = weights or [1.0] * count
    options = tuple(
        LayerOption(name=f"{name.lower()}_{idx}", image=solid(size), weight=weight)
        for idx, weight in enumerate(weights)
    )
    return LayerGroup(rank=rank, name=name, options=options)


@pytest.fixture
def layers_dir(tmp_path):
    """A full layer tree: two traits per group, transparent above the background."""
    root = tmp_path / "orbitalz-layers"
    write_layer(root, "Background", "blue", solid(color=(0, 0, 255, 255)))
    write_layer(root, "Background", "green", solid(color=(0, 255, 0, 255)))
    for group in ORDER[1:]:
        for idx, color in enumerate([(255, 0, 0, 128), (255, 255, 0, 255)]):
            image = solid(color=(0, 0, 0, 0))
            image.paste(color, (10 * idx, 10 * idx, 10 * idx + 20, 10 * idx + 20))
            write_layer(root, group, f"{group.lower()}_{idx}", image)
    return root


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
