"""Fetch the layer directory tree from S3 before the catalog is loaded."""

import logging
import pathlib
from typing import List

import boto3

from orbitalz import config

logger = logging.getLogger(__name__)


def get_client():
    """S3 client using the standard AWS environment credentials."""
    return boto3.client("s3")


def download_layers(
    bucket: str = config.S3_BUCKET, dest=".", prefix: str = "", client=None
) -> List[pathlib.Path]:
    """Mirror every object of ``bucket`` under ``dest``, keeping key paths.

    Args:
        bucket: Bucket holding the layer tree
        dest: Local root the keys are written under
        prefix: Only download keys starting with this prefix
        client: boto3 S3 client, created from the environment when omitted

    Returns:
        Paths of the downloaded files
    """
    client = client or get_client()
    dest = pathlib.Path(dest).resolve()
    downloaded = []

    paginator = client.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        for obj in page.get("Contents", []):
            key = obj["Key"]
            if key.endswith("/"):
                continue

            target = (dest / key).resolve()
            if dest not in target.parents:
                raise ValueError(f"Refusing to write object outside {dest}: {key}")

            target.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Downloading %s", key)
            try:
                client.download_file(bucket, key, str(target))
            except Exception as e:
                logger.error("Failed to download %s from %s: %s", key, bucket, e)
                raise
            downloaded.append(target)

    logger.info("Downloaded %d layer files from %s", len(downloaded), bucket)
    return downloaded
