"""Upstream service clients."""

from .api import (
    ERegulationsClient,
    ProcedureSource,
    flatten_procedures,
    normalize_base_url,
    search_cache_key,
    unwrap_collection,
)

__all__ = [
    "ERegulationsClient",
    "ProcedureSource",
    "flatten_procedures",
    "normalize_base_url",
    "search_cache_key",
    "unwrap_collection",
]
