from polygon_paths.core.adapters.BaseAdapter import BaseAdapter
from polygon_paths.core.errors import PolygonPathsError

__all__ = [
    "BaseAdapter",
    "PolygonPathsError",
]
