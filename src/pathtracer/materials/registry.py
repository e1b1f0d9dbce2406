"""Shared bookkeeping for the per-kind material registries.

Each material kind keeps its parameters in its own fixed-size Taichi fields.
A ``SlotCounter`` hands out the next free index into those fields and
refuses once they are full; the ``check_*`` helpers validate parameters
before anything is written.
"""

from collections.abc import Sequence

import taichi as ti


class SlotCounter:
    """Fill level of one fixed-capacity registry.

    The count lives in a 0-d Taichi field so kernels could read it too.
    """

    def __init__(self, kind: str, capacity: int):
        self.kind = kind
        self.capacity = capacity
        self.count = ti.field(dtype=ti.i32, shape=())

    def __len__(self) -> int:
        return int(self.count[None])

    def reset(self) -> None:
        self.count[None] = 0

    def claim(self) -> int:
        """Reserve the next slot.

        Raises:
            RuntimeError: If every slot is taken.
        """
        slot = len(self)
        if slot >= self.capacity:
            raise RuntimeError(
                f"Maximum number of {self.kind} materials ({self.capacity}) exceeded"
            )
        self.count[None] = slot + 1
        return slot


def check_fraction(value: float, name: str) -> float:
    """Return value as a float, or raise ValueError if it is outside [0, 1]."""
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1]")
    return value


def check_color(color: Sequence[float], name: str = "albedo") -> tuple[float, float, float]:
    """Validate an RGB reflectance.

    Raises:
        ValueError: If color does not have 3 components or one is outside [0, 1].
    """
    if len(color) != 3:
        raise ValueError(f"{name} must have exactly 3 components, got {len(color)}")
    return tuple(check_fraction(c, f"{name}[{i}]") for i, c in enumerate(color))
