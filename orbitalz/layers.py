import logging
import math
import os
import pathlib
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from orbitalz.errors import CatalogError, OrderingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerOption:
    """One selectable trait image of a layer group."""

    name: str
    image: Image.Image = field(repr=False)
    weight: float = 1.0
    path: Optional[pathlib.Path] = None

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size


@dataclass(frozen=True, order=True)
class LayerGroup:
    """Options sharing one z-order slot. Groups sort by rank only."""

    rank: Optional[int] = field(default=None)
    name: str = field(default="", compare=False)
    options: Tuple[LayerOption, ...] = field(default=(), compare=False, repr=False)

    @property
    def trait_names(self) -> List[str]:
        return [option.name for option in self.options]

    @property
    def weights(self) -> List[float]:
        return [option.weight for option in self.options]


@dataclass(frozen=True)
class Catalog:
    """Ranked layer groups, loaded once and shared read-only by every generation."""

    groups: Tuple[LayerGroup, ...]

    @property
    def order(self) -> List[str]:
        return [group.name for group in self.groups]

    def __iter__(self):
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)


def _normalize(name: str) -> str:
    return name.strip().casefold()


def _image_extensions() -> set:
    return {ext.lower() for ext in Image.registered_extensions()}


def _is_layer_file(path: pathlib.Path, extensions: set) -> bool:
    return (
        path.is_file()
        and not path.name.startswith(".")
        and path.suffix.lower() in extensions
    )


def _open_layer(path: pathlib.Path) -> Image.Image:
    """Decode a layer file into an RGBA image."""
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise CatalogError(f"Cannot decode layer image {path}: {exc}") from exc


def _to_weights(values, group: str) -> List[float]:
    try:
        return [float(value) for value in values]
    except (TypeError, ValueError) as exc:
        raise CatalogError(f"Rarity weights for {group} must be numbers: {exc}") from exc


def _process_rarity_weights(rarity_config, group: str, traits: List[str]) -> List[float]:
    """Process different rarity weight configurations."""
    if rarity_config is None:
        weights = [1.0] * len(traits)
    elif isinstance(rarity_config, dict):
        unknown = sorted(set(rarity_config) - set(traits))
        if unknown:
            raise CatalogError(
                f"Rarity weights for {group} name unknown traits: {', '.join(unknown)}"
            )
        weights = _to_weights([rarity_config.get(trait, 1.0) for trait in traits], group)
    elif isinstance(rarity_config, (list, tuple)):
        if len(rarity_config) != len(traits):
            raise CatalogError(
                f"Rarity weights length ({len(rarity_config)}) "
                f"doesn't match traits length ({len(traits)}) for {group}"
            )
        weights = _to_weights(rarity_config, group)
    else:
        raise CatalogError(f"Invalid rarity weights for {group}: {rarity_config!r}")

    if any(not math.isfinite(weight) or weight < 0 for weight in weights):
        raise CatalogError(f"Rarity weights for {group} must be finite and >= 0")
    if sum(weights) <= 0:
        raise CatalogError(f"Rarity weights for {group} sum to zero")
    return weights


def _load_group(
    group_path: pathlib.Path, name: str, rarity_config, extensions: set
) -> LayerGroup:
    try:
        trait_paths = sorted(
            (path for path in group_path.iterdir() if _is_layer_file(path, extensions)),
            key=lambda path: path.name,
        )
    except OSError as exc:
        raise CatalogError(f"Cannot scan layer directory {group_path}: {exc}") from exc
    if not trait_paths:
        raise CatalogError(f"Layer directory has no images: {group_path}")

    traits = [path.stem for path in trait_paths]
    duplicates = sorted({trait for trait in traits if traits.count(trait) > 1})
    if duplicates:
        raise CatalogError(
            f"Duplicate trait names in {group_path}: {', '.join(duplicates)}"
        )

    weights = _process_rarity_weights(rarity_config, name, traits)
    options = tuple(
        LayerOption(name=trait, image=_open_layer(path), weight=weight, path=path)
        for trait, path, weight in zip(traits, trait_paths, weights)
    )
    logger.debug("Loaded %d traits for layer %s", len(options), name)
    return LayerGroup(name=name, options=options)


def load_layer_groups(
    root,
    expected_names: Sequence[str],
    rarity_weights: Optional[Dict[str, object]] = None,
) -> List[LayerGroup]:
    """Discover one layer group per expected directory under ``root``.

    Args:
        root: Directory holding one subdirectory per layer group
        expected_names: Group names that must be present
        rarity_weights: Optional per-group weight policy, see ``config.LAYERS``

    Returns:
        Unranked layer groups in directory order

    Raises:
        CatalogError: Missing, empty or ambiguous group directory, unreadable
            root, undecodable image or invalid weights
    """
    root = pathlib.Path(root)
    rarity_weights = rarity_weights or {}
    if not root.is_dir():
        raise CatalogError(f"Layer directory not found: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise CatalogError(f"Layer directory is not readable: {root}")

    expected = set(expected_names)
    unknown_weights = sorted(set(rarity_weights) - expected)
    if unknown_weights:
        raise CatalogError(
            f"Rarity weights configured for unknown layers: {', '.join(unknown_weights)}"
        )

    try:
        subdirs = sorted(
            (path for path in root.iterdir() if path.is_dir()), key=lambda p: p.name
        )
    except OSError as exc:
        raise CatalogError(f"Cannot scan layer directory {root}: {exc}") from exc

    by_normalized: Dict[str, List[pathlib.Path]] = {}
    for path in subdirs:
        by_normalized.setdefault(_normalize(path.name), []).append(path)

    extensions = _image_extensions()
    groups = []
    for path in subdirs:
        if path.name not in expected:
            logger.debug("Skipping unconfigured directory %s", path)
            continue
        clashes = by_normalized[_normalize(path.name)]
        if len(clashes) > 1:
            raise CatalogError(
                f"Ambiguous layer directories for {path.name}: "
                f"{', '.join(p.name for p in clashes)}"
            )
        groups.append(
            _load_group(path, path.name, rarity_weights.get(path.name), extensions)
        )

    found = {group.name for group in groups}
    missing = [name for name in expected_names if name not in found]
    if missing:
        raise CatalogError(
            f"Layer directories not found in {root}: {', '.join(missing)}"
        )
    return groups


def order_layer_groups(
    groups: Sequence[LayerGroup], order: Sequence[str]
) -> Tuple[LayerGroup, ...]:
    """Rank groups by their position in ``order`` and sort them bottom to top.

    Raises:
        OrderingError: Duplicate names in ``order``, a group missing from
            ``order`` or a name in ``order`` without a group
    """
    order = list(order)
    duplicates = sorted({name for name in order if order.count(name) > 1})
    if duplicates:
        raise OrderingError(f"Duplicate layer names in order: {', '.join(duplicates)}")

    names = [group.name for group in groups]
    repeated = sorted({name for name in names if names.count(name) > 1})
    if repeated:
        raise OrderingError(f"Duplicate layer groups: {', '.join(repeated)}")

    unlisted = [name for name in names if name not in order]
    if unlisted:
        raise OrderingError(
            f"Layer groups missing from order: {', '.join(unlisted)}"
        )
    unmatched = [name for name in order if name not in names]
    if unmatched:
        raise OrderingError(
            f"Layer order names without a group: {', '.join(unmatched)}"
        )

    ranked = [replace(group, rank=order.index(group.name)) for group in groups]
    return tuple(sorted(ranked))


def load_catalog(
    root, order: Sequence[str], rarity_weights: Optional[Dict[str, object]] = None
) -> Catalog:
    """Load and rank every layer group named in ``order``."""
    logger.debug("Parsing layer groups in %s", root)
    groups = load_layer_groups(root, order, rarity_weights)
    logger.debug("Sorting layer groups according to order: %s", ", ".join(order))
    return Catalog(groups=order_layer_groups(groups, order))


def get_total_combinations(groups) -> int:
    """Get total number of distinct possible combinations."""
    total = 1
    for group in groups:
        total = total * len(group.options)
    return total
