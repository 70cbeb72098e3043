"""
RatioAllocator Domain Service

Distributes cut fabric layers across garment sizes according to a weight
ratio. Rounding is floor-per-size with the whole remainder placed on the last
size, so results are deterministic and nothing is dropped.
"""

from collections.abc import Sequence

from ...shared.base import DomainService
from ...shared.exceptions import InvalidRatioError
from ..value_objects.cutting import ColorBatch, FabricRoll, SizeAllocation, SizeRatio


class RatioAllocator(DomainService):
    """Turns a size ratio and a layer count into per-size quantities."""

    @staticmethod
    def validate(ratio: SizeRatio, total_layers: int) -> None:
        """
        Raises:
            InvalidRatioError: If the ratio or layer count is unusable
        """
        if not ratio.sizes:
            raise InvalidRatioError("Ratio has no sizes")
        if len(ratio.weights) != len(ratio.sizes):
            raise InvalidRatioError(
                f"{len(ratio.weights)} weights for {len(ratio.sizes)} sizes",
                len(ratio.weights),
            )
        if len(set(ratio.sizes)) != len(ratio.sizes):
            raise InvalidRatioError("Size labels must be unique", ",".join(ratio.sizes))
        for size, weight in zip(ratio.sizes, ratio.weights):
            if weight <= 0:
                raise InvalidRatioError(
                    f"Weight for size {size} must be positive", weight
                )
        if total_layers < 0:
            raise InvalidRatioError("Total layers cannot be negative", total_layers)

    @classmethod
    def allocate(cls, ratio: SizeRatio, total_layers: int) -> list[SizeAllocation]:
        """
        Allocate ``total_layers`` across the ratio's sizes.

        Example: weights 1:2:2:1 over L, XL, 2XL, 3XL with 60 layers gives
        10, 20, 20, 10.

        Raises:
            InvalidRatioError: If the ratio or layer count is unusable
        """
        cls.validate(ratio, total_layers)

        weight_sum = ratio.total_weight
        quantities = [total_layers * w // weight_sum for w in ratio.weights]
        quantities[-1] += total_layers - sum(quantities)

        return [
            SizeAllocation(size=size, ratio_weight=weight, allocated_quantity=qty)
            for size, weight, qty in zip(ratio.sizes, ratio.weights, quantities)
        ]

    @classmethod
    def allocate_rolls(
        cls, rolls: Sequence[FabricRoll], ratio: SizeRatio
    ) -> list[ColorBatch]:
        """
        Group rolls by color and allocate each color's layers.

        Colors keep the order in which they first appear in ``rolls``.

        Raises:
            InvalidRatioError: If the ratio is unusable
        """
        cls.validate(ratio, 0)

        by_color: dict[str, list[FabricRoll]] = {}
        for roll in rolls:
            by_color.setdefault(roll.color, []).append(roll)

        batches = []
        for color, color_rolls in by_color.items():
            total_layers = sum(roll.layer_count for roll in color_rolls)
            batches.append(
                ColorBatch(
                    color=color,
                    roll_ids=tuple(roll.id for roll in color_rolls),
                    total_layers=total_layers,
                    allocations=tuple(cls.allocate(ratio, total_layers)),
                )
            )
        return batches
