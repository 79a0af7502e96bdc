import io
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
import pytest
from PIL import Image

from orbitalz.layers import load_catalog
from orbitalz.nft import (
    Generation,
    generate,
    generate_images,
    generate_trait_sets,
    rarity_stats,
)

from conftest import ORDER


@pytest.fixture
def catalog(layers_dir):
    return load_catalog(layers_dir, ORDER)


class TestGenerate:
    def test_one_trait_per_group(self, catalog, rng):
        generation = generate(catalog, rng)

        assert isinstance(generation, Generation)
        assert [group for group, _ in generation.traits] == ORDER
        assert generation.image.size == (100, 100)
        assert generation.image.mode == "RGBA"

    def test_same_seed_is_reproducible(self, catalog):
        first = generate(catalog, np.random.default_rng(99))
        second = generate(catalog, np.random.default_rng(99))

        assert first.traits == second.traits
        assert first.image.tobytes() == second.image.tobytes()
        assert first.to_png() == second.to_png()

    def test_repeated_runs_are_reproducible(self, catalog):
        def run(seed):
            rng = np.random.default_rng(seed)
            return [generate(catalog, rng).traits for _ in range(10)]

        assert run(5) == run(5)

    def test_catalog_is_untouched(self, catalog, rng):
        snapshot = [
            [option.image.tobytes() for option in group.options] for group in catalog
        ]
        for _ in range(5):
            generate(catalog, rng)
        assert snapshot == [
            [option.image.tobytes() for option in group.options] for group in catalog
        ]

    def test_concurrent_generations(self, catalog):
        seeds = list(range(8))
        expected = [generate(catalog, np.random.default_rng(s)).traits for s in seeds]

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(
                pool.map(lambda s: generate(catalog, np.random.default_rng(s)).traits, seeds)
            )

        assert results == expected

    def test_png_round_trip(self, catalog, rng):
        generation = generate(catalog, rng)
        data = generation.to_png()

        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.tobytes() == generation.image.tobytes()


class TestEdition:
    def test_trait_sets_shape(self, catalog, rng):
        indices = generate_trait_sets(catalog, 16, rng)

        assert indices.shape == (16, len(ORDER))
        assert indices.min() >= 0
        assert indices.max() <= 1

    def test_generate_images(self, catalog, rng, tmp_path):
        metadata_df = generate_images(catalog, "test", 12, tmp_path, rng)

        images_dir = tmp_path / "edition_test" / "images"
        files = sorted(path.name for path in images_dir.iterdir())
        assert files == [f"{idx:02d}.png" for idx in range(12)]
        assert list(metadata_df.columns) == ORDER
        assert len(metadata_df) == 12

        with Image.open(images_dir / "00.png") as image:
            assert image.size == (100, 100)

    def test_rejects_empty_edition(self, catalog, rng, tmp_path):
        with pytest.raises(ValueError):
            generate_images(catalog, "empty", 0, tmp_path, rng)


def test_rarity_stats(catalog):
    metadata_df = pd.DataFrame(
        {name: [group.trait_names[0]] * 3 + [group.trait_names[1]] for name, group in zip(ORDER, catalog)}
    )

    stats = rarity_stats(catalog, metadata_df)

    assert len(stats) == 2 * len(ORDER)
    background = stats[stats["layer"] == "Background"].set_index("trait")
    assert background.loc["blue", "target"] == pytest.approx(0.5)
    assert background.loc["blue", "actual"] == pytest.approx(0.75)
    assert background.loc["green", "diff"] == pytest.approx(0.25)
