import json
from typing import Any, Mapping, Optional


def query_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Canonical cache key for a query.

    Keys are built from the endpoint and the full parameter set, with keys
    sorted so parameter order never matters. None-valued parameters are
    treated as absent, matching how they are (not) sent on the wire.
    """
    cleaned = {str(k): v for k, v in (params or {}).items() if v is not None}
    encoded = json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)
    return f"{endpoint}?{encoded}"
