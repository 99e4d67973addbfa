"""Shared utility helpers."""

from precache_build.utils.atomic import write_json_atomically, write_parquet_atomically, write_text_atomically
from precache_build.utils.time_utils import now_utc

__all__ = [
    "write_json_atomically",
    "write_parquet_atomically",
    "write_text_atomically",
    "now_utc",
]
