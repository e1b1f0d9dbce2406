"""Primary ray generation.

``u`` runs 0..1 from the left edge to the right edge and ``v`` runs 0..1
from the bottom edge to the top edge of the viewport.
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "get_camera_info",
    "get_camera_origin",
    "get_ray",
    "get_ray_jittered",
    "setup_camera",
]
