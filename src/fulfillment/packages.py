"""Package breakdown — how a cart's physical units are boxed for shipping.

Units are counted physically (quantity x seedlings per sale unit). While
units remain, the best-fitting box is chosen: the smallest box whose
quantity range contains the remainder, else the largest box when the
remainder exceeds every box, else the smallest box that can hold it.
Each box takes as many units as it can.
"""

from collections import Counter
from dataclasses import dataclass


@dataclass(frozen=True)
class BoxConfig:
    name: str
    min_quantity: int
    max_quantity: int
    empty_weight: float
    length: float
    width: float
    height: float
    is_default: bool = False


@dataclass(frozen=True)
class PackedBox:
    name: str
    item_count: int
    weight_lbs: float
    length: float
    width: float
    height: float


@dataclass(frozen=True)
class PackageBreakdown:
    packages: tuple[PackedBox, ...]
    total_items: int
    total_weight: float
    summary: str

    @property
    def total_packages(self) -> int:
        return len(self.packages)


DEFAULT_BOXES = (
    BoxConfig("Small Box", 1, 12, 0.5, 12, 9, 6),
    BoxConfig("Large Box", 13, 24, 1.0, 18, 12, 8, is_default=True),
)

NO_PACKAGES = "No package configuration available"


def physical_units(lines) -> int:
    return sum(line.quantity * (line.seedlings_per_unit or 1) for line in lines)


def _choose_box(quantity: int, boxes) -> BoxConfig:
    by_capacity = sorted(boxes, key=lambda b: b.max_quantity, reverse=True)
    largest = by_capacity[0]

    fits = sorted(
        (b for b in boxes if b.min_quantity <= quantity <= b.max_quantity),
        key=lambda b: b.max_quantity,
    )
    if fits:
        return fits[0]
    if quantity > largest.max_quantity:
        return largest

    fitting = next((b for b in reversed(by_capacity) if quantity <= b.max_quantity), None)
    return fitting or next((b for b in boxes if b.is_default), largest)


def calculate_packages(total_units: int, weight_per_unit: float = 0.5, boxes=DEFAULT_BOXES) -> PackageBreakdown:
    boxes = tuple(boxes)
    if not boxes or total_units <= 0:
        return PackageBreakdown(packages=(), total_items=0, total_weight=0.0, summary=NO_PACKAGES)

    packed = []
    remaining = total_units
    while remaining > 0:
        box = _choose_box(remaining, boxes)
        count = min(remaining, box.max_quantity)
        packed.append(
            PackedBox(
                name=box.name,
                item_count=count,
                weight_lbs=round(box.empty_weight + count * weight_per_unit, 2),
                length=box.length,
                width=box.width,
                height=box.height,
            )
        )
        remaining -= count

    if len(packed) == 1:
        summary = f"Ships in: 1 {packed[0].name} ({total_units} items)"
    else:
        counts = Counter(p.name for p in packed)
        parts = " + ".join(f"{n} {name}" if n > 1 else name for name, n in counts.items())
        summary = f"Ships in: {len(packed)} packages ({parts}) — {total_units} items"

    return PackageBreakdown(
        packages=tuple(packed),
        total_items=total_units,
        total_weight=round(sum(p.weight_lbs for p in packed), 2),
        summary=summary,
    )
