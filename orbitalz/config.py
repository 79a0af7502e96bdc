import os
import pathlib

from dotenv import load_dotenv

load_dotenv()

# Layer configuration, bottom to top: (directory, rarity_weights)
# rarity_weights is None (uniform), a list aligned with the sorted trait files,
# or a {trait: weight} dict where unlisted traits weigh 1.
LAYERS = [
    ("Background", None),
    ("Orbital", None),
    ("Eyes", None),
    ("Nose", None),
    ("Mouth", None),
    ("Hat", None),
]

LAYERS_ORDER = [directory for directory, _ in LAYERS]
RARITY_WEIGHTS = {
    directory: weights for directory, weights in LAYERS if weights is not None
}

LAYERS_DIR = pathlib.Path(os.getenv("ORBITALZ_LAYERS_DIR", "orbitalz-layers"))
OUTPUT_PATH = pathlib.Path(os.getenv("ORBITALZ_OUTPUT_PATH", "output"))
LOG_LEVEL = os.getenv("ORBITALZ_LOG_LEVEL", "info")

S3_BUCKET = os.getenv("ORBITALZ_S3_BUCKET", "orbi-bot")
# Local root the bucket keys are mirrored under
S3_DEST = pathlib.Path(os.getenv("ORBITALZ_S3_DEST", "."))
DOWNLOAD_LAYERS = os.getenv("ORBITALZ_DOWNLOAD_LAYERS", "").lower() in ("1", "true", "yes")

TRIGGER_WORDS = ("orbi", "@orbitalz_bot")
# Messages older than this are backlog and never answered
MESSAGE_CUTOFF = os.getenv("ORBITALZ_MESSAGE_CUTOFF", "2022-06-13T16:56:51Z")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
