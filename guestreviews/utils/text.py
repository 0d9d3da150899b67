import math
import re
from typing import Dict, Optional

_NON_SLUG = re.compile(r'[^a-z0-9]+')


def slugify(value: str) -> str:
    s = _NON_SLUG.sub('-', value.lower().strip())
    return s.strip('-')


def _parse_number(value: str) -> Optional[float]:
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def safe_json_record(value) -> Optional[Dict[str, Optional[float]]]:
    """Coerce a stored categories blob back into a name -> score mapping.

    Numbers and nulls are kept, numeric strings are parsed (unparseable ones
    become None), anything else is dropped. Returns None when nothing is left.
    """
    if not value or not isinstance(value, dict):
        return None
    record = {}
    for key, v in value.items():
        if isinstance(v, bool):
            continue
        if v is None or isinstance(v, (int, float)):
            record[str(key)] = v
        elif isinstance(v, str):
            record[str(key)] = _parse_number(v)
    return record or None
