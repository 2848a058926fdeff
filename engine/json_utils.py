import json
from dataclasses import asdict, is_dataclass


def _default(value):
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def safe_json(value):
    """Round-trip ``value`` through JSON so only plain types remain."""
    return json.loads(safe_json_dumps(value))


def safe_json_dumps(value, **kwargs):
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(value, default=_default, **kwargs)
