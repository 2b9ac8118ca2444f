__version__ = "0.1.0"

from polygon_paths.adapters.polygon_adapter import PolygonAdapter
from polygon_paths.core import BaseAdapter, PolygonPathsError

__all__ = [
    "__version__",
    "BaseAdapter",
    "PolygonAdapter",
    "PolygonPathsError",
]
