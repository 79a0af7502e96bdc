import logging
import pathlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from PIL import Image
from progressbar import progressbar
from scipy.stats import qmc

from orbitalz import config
from orbitalz.compositor import composite, encode_png
from orbitalz.layers import Catalog, get_total_combinations, load_catalog
from orbitalz.selector import (
    Selection,
    cumulative_weights,
    get_trait_indices,
    select_layers,
)

logger = logging.getLogger(__name__)


@dataclass
class Generation:
    """A composite image and the trait drawn for each layer group."""

    image: Image.Image = field(repr=False)
    traits: List[Tuple[str, str]]

    def to_png(self) -> bytes:
        return encode_png(self.image)


def generate(catalog: Catalog, rng: np.random.Generator) -> Generation:
    """Generate one composite from a shared catalog.

    Args:
        catalog: Ranked layer groups, never mutated
        rng: Random source for the trait draws

    Returns:
        The composite image with its ordered (group, trait) record
    """
    image, traits = composite(select_layers(catalog, rng))
    return Generation(image=image, traits=traits)


def generate_trait_sets(
    catalog: Catalog, count: int, rng: np.random.Generator
) -> np.ndarray:
    """Draw trait indices for a whole edition with a Halton sequence.

    The low-discrepancy sequence spreads the edition evenly over each
    group's weight distribution. Duplicates are kept.

    Returns:
        Matrix of trait indices (count, num_layers)
    """
    sampler = qmc.Halton(d=len(catalog), seed=rng)
    random_matrix = sampler.random(n=count)
    cum_weights_list = [cumulative_weights(group) for group in catalog.groups]
    return get_trait_indices(random_matrix, cum_weights_list)


def _selections_for(catalog: Catalog, trait_indices: np.ndarray) -> List[Selection]:
    selections = []
    for group, trait_idx in zip(catalog.groups, trait_indices):
        option = group.options[trait_idx]
        selections.append(
            Selection(group=group.name, trait=option.name, image=option.image)
        )
    return selections


def generate_images(
    catalog: Catalog,
    edition: str,
    count: int,
    output_path: pathlib.Path,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """Generate an edition of images and return its metadata DataFrame.

    Args:
        catalog: Ranked layer groups
        edition: Edition name for output directory
        count: Number of images to generate
        output_path: Root directory of all editions
        rng: Random source seeding the Halton sequence

    Returns:
        DataFrame with one trait column per layer group
    """
    if count < 1:
        raise ValueError(f"Edition size must be positive, got {count}")

    rarity_data = {group.name: [] for group in catalog.groups}

    images_dir = pathlib.Path(output_path) / f"edition_{edition}" / "images"
    images_dir.mkdir(parents=True, exist_ok=True)

    zfill_width = len(str(count - 1))

    all_trait_indices = generate_trait_sets(catalog, count, rng)

    for idx in progressbar(range(count)):
        image_name = f"{idx:0{zfill_width}d}.png"
        image, traits = composite(_selections_for(catalog, all_trait_indices[idx]))
        image.save(images_dir / image_name)

        for group, trait in traits:
            rarity_data[group].append(trait)

    logger.info("Generated %d images in %s", count, images_dir)
    return pd.DataFrame(rarity_data, columns=[group.name for group in catalog.groups])


def rarity_stats(catalog: Catalog, metadata_df: pd.DataFrame) -> pd.DataFrame:
    """Compare actual trait frequencies of an edition with their target weights.

    Returns:
        One row per (layer, trait) with target, actual and absolute difference
    """
    rows = []
    for group in catalog.groups:
        if group.name not in metadata_df.columns:
            continue

        weights = np.asarray(group.weights, dtype=float)
        targets = weights / weights.sum()
        actual = _get_actual_distribution(metadata_df[group.name], group.trait_names)

        for trait, target in zip(group.trait_names, targets):
            rows.append(
                {
                    "layer": group.name,
                    "trait": trait,
                    "target": float(target),
                    "actual": actual[trait],
                    "diff": abs(actual[trait] - float(target)),
                }
            )

    return pd.DataFrame(rows, columns=["layer", "trait", "target", "actual", "diff"])


def _get_actual_distribution(series: pd.Series, expected_traits: List[str]) -> dict:
    """Calculate actual trait distribution from metadata."""
    total_samples = len(series)
    counts = series.value_counts()
    return {
        trait: (int(counts.get(trait, 0)) / total_samples if total_samples else 0.0)
        for trait in expected_traits
    }


def print_rarity_stats(stats: pd.DataFrame) -> None:
    """Display rarity statistics per layer."""
    for layer, rows in stats.groupby("layer", sort=False):
        print(f"\n{layer.upper()}:")
        for row in rows.itertuples(index=False):
            print(
                f"    {row.trait}: {row.actual:.4f} "
                f"(target: {row.target:.4f}, diff: {row.diff:.4f})"
            )
        print(f"  Max difference: {rows['diff'].max():.4f}")


def setup_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format=config.LOG_FORMAT,
    )


def main() -> None:
    """Edition generation workflow."""
    setup_logging()

    print("Checking assets...")
    catalog = load_catalog(config.LAYERS_DIR, config.LAYERS_ORDER, config.RARITY_WEIGHTS)
    print("Assets validated successfully!\n")

    total_combinations = get_total_combinations(catalog)
    print(f"You can create up to {total_combinations} distinct orbitalz\n")

    num_images = int(input("How many orbitalz would you like to create? "))
    edition_name = input("What would you like to call this edition?: ").strip()

    print("Starting generation...")
    rng = np.random.default_rng()
    metadata_df = generate_images(
        catalog, edition_name, num_images, config.OUTPUT_PATH, rng
    )

    print("Saving metadata...")
    metadata_path = config.OUTPUT_PATH / f"edition_{edition_name}" / "metadata.csv"
    metadata_df.to_csv(metadata_path)

    print("\n=== Rarity Statistics ===")
    print_rarity_stats(rarity_stats(catalog, metadata_df))

    print("Task complete!")
    print("\nNext step: Run 'python -m orbitalz.metadata' to write per-image trait records")


if __name__ == "__main__":
    main()
