from dataclasses import dataclass, field
from typing import List

import numpy as np
from PIL import Image

from orbitalz.layers import Catalog, LayerGroup


@dataclass(frozen=True)
class Selection:
    """The trait drawn for one layer group."""

    group: str
    trait: str
    image: Image.Image = field(repr=False)


def cumulative_weights(group: LayerGroup) -> np.ndarray:
    return np.cumsum(np.asarray(group.weights, dtype=float))


def select_option(group: LayerGroup, rng: np.random.Generator) -> Selection:
    """Draw one option of ``group`` with probability proportional to its weight.

    A uniform value in [0, total) is located on the cumulative weights; the
    first option whose cumulative weight exceeds the draw wins.
    """
    assert group.options, f"Layer group {group.name} has no options"

    cum_weights = cumulative_weights(group)
    draw = rng.random() * cum_weights[-1]
    idx = int(np.searchsorted(cum_weights, draw, side="right"))
    option = group.options[idx]
    return Selection(group=group.name, trait=option.name, image=option.image)


def select_layers(catalog: Catalog, rng: np.random.Generator) -> List[Selection]:
    """Draw one trait per group, bottom to top."""
    return [select_option(group, rng) for group in catalog.groups]


def get_trait_indices(
    random_matrix: np.ndarray, cum_weights_list: List[np.ndarray]
) -> np.ndarray:
    """Convert a random matrix to trait indices using inverse transform sampling.

    Uses normalized cumulative weights as CDFs for each layer dimension.
    np.searchsorted with side='right' performs inverse CDF sampling.

    Args:
        random_matrix: Random values (num_samples, num_layers) in [0,1)
        cum_weights_list: Cumulative weights for each layer

    Returns:
        Matrix of trait indices (num_samples, num_layers)
    """
    num_samples, num_layers = random_matrix.shape
    indices = np.zeros((num_samples, num_layers), dtype=int)

    for layer_idx in range(num_layers):
        rand_vals = random_matrix[:, layer_idx]
        cum_weights = cum_weights_list[layer_idx]
        cdf = cum_weights / cum_weights[-1]
        indices[:, layer_idx] = np.searchsorted(cdf, rand_vals, side="right")

    return indices
