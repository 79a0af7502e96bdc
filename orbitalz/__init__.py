"""Generative layer compositing for orbitalz collectibles."""

from orbitalz.errors import (
    CatalogError,
    DimensionMismatchError,
    NftGenError,
    OrderingError,
)
from orbitalz.layers import (
    Catalog,
    LayerGroup,
    LayerOption,
    load_catalog,
    load_layer_groups,
    order_layer_groups,
)
from orbitalz.selector import Selection, select_layers, select_option
from orbitalz.compositor import composite, encode_png
from orbitalz.nft import Generation, generate

__all__ = [
    "Catalog",
    "CatalogError",
    "DimensionMismatchError",
    "Generation",
    "LayerGroup",
    "LayerOption",
    "NftGenError",
    "OrderingError",
    "Selection",
    "composite",
    "encode_png",
    "generate",
    "load_catalog",
    "load_layer_groups",
    "order_layer_groups",
    "select_layers",
    "select_option",
]
