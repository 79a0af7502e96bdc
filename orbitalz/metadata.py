import json
import pathlib
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd
from progressbar import progressbar

from orbitalz import config
from orbitalz.nft import Generation


def trait_record(traits: Iterable[Tuple[str, str]]) -> List[Dict[str, str]]:
    """Ordered (layer, trait) pairs as JSON-ready dicts."""
    return [{"layer": layer, "trait": trait} for layer, trait in traits]


def generation_record(
    generation: Generation, image_name: Optional[str] = None
) -> Dict[str, Any]:
    """Bookkeeping record of a single on-demand generation."""
    return {"image": image_name, "traits": trait_record(generation.traits)}


def load_metadata(edition_path: pathlib.Path) -> pd.DataFrame:
    """Load an edition's metadata.csv, one trait column per layer."""
    metadata_path = pathlib.Path(edition_path) / "metadata.csv"
    df = pd.read_csv(metadata_path, index_col=0, dtype=str, keep_default_na=False)
    df.index = df.index.astype(int)
    return df


def generate_json_metadata(
    edition_path: pathlib.Path, metadata_df: pd.DataFrame
) -> pathlib.Path:
    """Write one JSON trait record per edition image into ``metadata/``."""
    metadata_dir = pathlib.Path(edition_path) / "metadata"
    metadata_dir.mkdir(exist_ok=True)

    zfill_width = len(str(len(metadata_df) - 1))

    print(f"Writing trait records for {len(metadata_df)} images...")

    for idx, row in progressbar(metadata_df.iterrows(), max_value=len(metadata_df)):
        image_name = f"{idx:0{zfill_width}d}.png"
        record = {
            "image": f"images/{image_name}",
            "traits": trait_record(row.items()),
        }

        json_file = metadata_dir / f"{idx:0{zfill_width}d}.json"
        with open(json_file, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, ensure_ascii=False)

    return metadata_dir


def main() -> None:
    """Write trait records for an existing edition."""
    edition_name = input("Edition name to write trait records for: ").strip()
    edition_path = config.OUTPUT_PATH / f"edition_{edition_name}"

    metadata_df = load_metadata(edition_path)
    metadata_dir = generate_json_metadata(edition_path, metadata_df)

    print(f"Trait records written to {metadata_dir}")


if __name__ == "__main__":
    main()
