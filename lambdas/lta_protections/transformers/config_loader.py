"""Vocabulary configuration loader.

The built-in vocabulary tables cover every code the registration system
currently issues. When it starts issuing new codes, the tables can be
extended without a deployment by pointing the service at a JSON document in
S3:

    {
        "protection_types": ["Unknown", "FP2016", ..., " FP2014", "NewType"],
        "protection_statuses": ["Unknown", "Open", ..., "Rejected"]
    }

An override must repeat every existing entry in its existing position and may
only append new names; codes are persisted by callers and are never
reassigned.

Usage:
    from lta_protections.transformers.config_loader import get_vocabularies

    vocabularies = get_vocabularies()  # loaded once per container
    transformer = ApplicationRequestTransformer(vocabularies)
"""

import json
import os
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import ClientError

from lta_protections.transformers.vocabulary import (
    DEFAULT_VOCABULARIES,
    Vocabularies,
    VocabularyTable,
)

# Module-level S3 client for Lambda warm starts
_s3_client: Any = None


def get_s3_client() -> Any:
    """Get or create S3 client (reused across invocations).

    Returns:
        boto3 S3 client instance
    """
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client("s3")
    return _s3_client


@lru_cache(maxsize=10)
def load_config_from_s3(bucket: str, key: str) -> dict[str, Any]:
    """Load and cache a vocabulary configuration document from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key (e.g., "lta-protections/vocabularies.json")

    Returns:
        Parsed configuration dictionary

    Raises:
        ValueError: If config file not found or invalid JSON
    """
    try:
        s3 = get_s3_client()
        response = s3.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read().decode("utf-8")
        return json.loads(content)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        if error_code in ("NoSuchKey", "404"):
            raise ValueError(
                f"Vocabulary configuration not found: s3://{bucket}/{key}"
            ) from e
        raise ValueError(
            f"Failed to load vocabulary configuration from s3://{bucket}/{key}: {e}"
        ) from e
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Invalid JSON in vocabulary configuration s3://{bucket}/{key}: {e}"
        ) from e


def extend_table(base: VocabularyTable, names: Any) -> VocabularyTable:
    """Build a table from an override list, keeping every existing code.

    Args:
        base: The built-in table
        names: Override entries from configuration

    Returns:
        A new VocabularyTable with the override entries

    Raises:
        ValueError: If names is not a list of strings, or if it drops,
                    reorders or replaces any existing entry
    """
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ValueError(f"Vocabulary '{base.name}' override must be a list of strings")

    existing = list(base.entries)
    if names[: len(existing)] != existing:
        raise ValueError(
            f"Vocabulary '{base.name}' override must keep existing entries "
            f"in their original positions and only append new ones"
        )
    return VocabularyTable(name=base.name, entries=tuple(names))


def vocabularies_from_config(config: dict[str, Any]) -> Vocabularies:
    """Build Vocabularies from a configuration dictionary.

    Tables missing from config keep their built-in entries.
    """
    protection_types = DEFAULT_VOCABULARIES.protection_types
    protection_statuses = DEFAULT_VOCABULARIES.protection_statuses

    if "protection_types" in config:
        protection_types = extend_table(protection_types, config["protection_types"])
    if "protection_statuses" in config:
        protection_statuses = extend_table(
            protection_statuses, config["protection_statuses"]
        )

    return Vocabularies(
        protection_types=protection_types,
        protection_statuses=protection_statuses,
    )


def resolve_vocabularies(
    s3_path: str | None = None, bucket: str | None = None
) -> Vocabularies:
    """Resolve the vocabulary tables to use.

    Resolution order:
    1. If an S3 path is given (or VOCABULARY_CONFIG_S3_PATH is set), load the
       override from the bucket (or CONFIG_BUCKET)
    2. Otherwise use the built-in tables

    Raises:
        ValueError: If an S3 path is configured without a bucket, or if the
                   override document is missing, invalid or reassigns codes
    """
    s3_path = s3_path or os.environ.get("VOCABULARY_CONFIG_S3_PATH")
    if not s3_path:
        return DEFAULT_VOCABULARIES

    bucket = bucket or os.environ.get("CONFIG_BUCKET")
    if not bucket:
        raise ValueError(
            "CONFIG_BUCKET environment variable not set. "
            "Cannot load vocabulary configuration from S3."
        )

    return vocabularies_from_config(load_config_from_s3(bucket, s3_path))


@lru_cache(maxsize=1)
def get_vocabularies() -> Vocabularies:
    """Return the process-wide vocabularies, resolving them on first use."""
    return resolve_vocabularies()


def clear_config_cache() -> None:
    """Clear cached configuration so the next call reloads it.

    Useful for testing or when configurations need to be reloaded.
    """
    load_config_from_s3.cache_clear()
    get_vocabularies.cache_clear()
