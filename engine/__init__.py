from .errors import SearchError
from .paths import EnginePaths

__all__ = [
    "EnginePaths",
    "SearchError",
]
