"""Chat trigger handling.

The chat transport delivers message text here and attaches whatever bytes
come back to its reply. ``main`` runs the same handler over lines read
from stdin and saves the replies as files.
"""

import logging
import pathlib
import sys
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

import numpy as np

from orbitalz import config
from orbitalz.layers import Catalog, load_catalog
from orbitalz.nft import generate, setup_logging
from orbitalz.storage import download_layers

logger = logging.getLogger(__name__)


def bot_mentioned(text: str, trigger_words: Iterable[str] = config.TRIGGER_WORDS) -> bool:
    """True if any whitespace separated word of ``text`` is a trigger word."""
    triggers = {word.lower() for word in trigger_words}
    return any(word in triggers for word in text.lower().split())


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return as_utc(value)


class Orbi:
    """Answers trigger messages with a freshly generated composite."""

    def __init__(
        self,
        catalog: Catalog,
        rng: Optional[np.random.Generator] = None,
        trigger_words: Iterable[str] = config.TRIGGER_WORDS,
        not_before: Optional[Union[str, datetime]] = config.MESSAGE_CUTOFF,
    ):
        self.catalog = catalog
        self.rng = rng if rng is not None else np.random.default_rng()
        self.trigger_words = tuple(trigger_words)
        self.not_before = parse_timestamp(not_before) if not_before else None

    def is_backlog(self, sent_at: Optional[datetime]) -> bool:
        if sent_at is None or self.not_before is None:
            return False
        return as_utc(sent_at) < self.not_before

    def handle_message(
        self, text: str, sent_at: Optional[datetime] = None
    ) -> Optional[bytes]:
        """Return PNG bytes to send back, or None when the message is ignored."""
        if self.is_backlog(sent_at):
            logger.debug("Ignoring message sent at %s", sent_at)
            return None
        if not text or not bot_mentioned(text, self.trigger_words):
            return None

        logger.info("Generating orbital")
        # Fresh child generator per request
        request_rng = self.rng.spawn(1)[0]
        try:
            generation = generate(self.catalog, request_rng)
        except Exception:
            logger.exception("Generation failed")
            raise

        logger.info(
            "Sending orbitalz: %s",
            ", ".join(f"{group}={trait}" for group, trait in generation.traits),
        )
        return generation.to_png()


def serve(orbi: Orbi, messages: Iterable[str], output_dir: pathlib.Path) -> List[pathlib.Path]:
    """Answer each incoming message, saving every reply image under ``output_dir``."""
    output_dir = pathlib.Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    replies = []
    for text in messages:
        data = orbi.handle_message(text.strip(), sent_at=datetime.now(timezone.utc))
        if data is None:
            continue
        reply_path = output_dir / f"orbi_{len(replies):04d}.png"
        reply_path.write_bytes(data)
        print(f"Sent {reply_path}")
        replies.append(reply_path)
    return replies


def main(messages: Optional[Iterable[str]] = None) -> None:
    """Load the layers once, then answer messages read line by line from stdin."""
    setup_logging()

    if config.DOWNLOAD_LAYERS:
        logger.info("Downloading layers from %s", config.S3_BUCKET)
        download_layers(config.S3_BUCKET, config.S3_DEST)

    logger.debug("Parsing layer groups")
    catalog = load_catalog(config.LAYERS_DIR, config.LAYERS_ORDER, config.RARITY_WEIGHTS)

    logger.info("Starting Orbi...")
    orbi = Orbi(catalog)
    serve(orbi, messages if messages is not None else sys.stdin, config.OUTPUT_PATH / "orbi")


if __name__ == "__main__":
    main()
