"""Embedding serialization for persistence."""

import json
from typing import Optional, Sequence


def serialize_embedding(vector: Sequence[float]) -> str:
    """Serialize an embedding vector to its stored JSON form.

    Args:
        vector: Embedding values

    Returns:
        JSON array string
    """
    return json.dumps([float(value) for value in vector])


def deserialize_embedding(data: Optional[str]) -> list[float]:
    """Deserialize a stored embedding back into a vector.

    An empty or missing value yields an empty vector, which compares as
    zero similarity against any query.

    Args:
        data: JSON array string

    Returns:
        Embedding values

    Raises:
        ValueError: If the stored value is not a JSON array of numbers
    """
    if not data:
        return []
    value = json.loads(data)
    if not isinstance(value, list):
        raise ValueError(f"Stored embedding must be a JSON array, got {type(value).__name__}")
    vector = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"Stored embedding contains a non-numeric value: {item!r}")
        vector.append(float(item))
    return vector
