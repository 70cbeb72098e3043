"""
BundleChunker Domain Service

Splits per-size quantities into production bundles no larger than the
configured bundle size.
"""

from collections.abc import Sequence

from ...shared.base import DomainService
from ...shared.exceptions import ValidationError
from ..entities.bundle import WHOLE_GARMENT, ProductionBundle
from ..value_objects.cutting import GarmentPart, SizeAllocation


class BundleChunker(DomainService):
    """Creates draft bundles from size allocations."""

    def __init__(self, max_bundle_size: int) -> None:
        if max_bundle_size < 1:
            raise ValidationError(
                "max_bundle_size", max_bundle_size, "must be at least 1"
            )
        self.max_bundle_size = max_bundle_size

    @staticmethod
    def chunk(quantity: int, max_bundle_size: int) -> list[int]:
        """
        Split ``quantity`` into full bundles plus one remainder bundle.

        62 with a bundle size of 25 gives [25, 25, 12]. Zero gives [].
        """
        if max_bundle_size < 1:
            raise ValidationError(
                "max_bundle_size", max_bundle_size, "must be at least 1"
            )
        if quantity < 0:
            raise ValidationError("quantity", quantity, "cannot be negative")
        full, remainder = divmod(quantity, max_bundle_size)
        sizes = [max_bundle_size] * full
        if remainder:
            sizes.append(remainder)
        return sizes

    @staticmethod
    def bundle_number(
        lot_id: str, color: str, size: str, part_ref: str, sequence: int
    ) -> str:
        part = "-".join(part_ref.split())
        return f"{lot_id}-{color}-{size}-{part}-{sequence:03d}"

    def create_bundles(
        self,
        allocations: Sequence[SizeAllocation],
        *,
        lot_id: str,
        color: str,
        parts: Sequence[GarmentPart] = (),
        template_id: str | None = None,
    ) -> list[ProductionBundle]:
        """
        Create draft bundles for every (size, part) combination.

        Without parts the bundles carry whole garments. With parts, each
        part's quantity is the size allocation times its quantity per garment.
        Sequences restart at 1 for each (size, part).
        """
        targets: list[tuple[str, int]] = (
            [(part.name, part.quantity_per_garment) for part in parts]
            if parts
            else [(WHOLE_GARMENT, 1)]
        )

        bundles: list[ProductionBundle] = []
        for allocation in allocations:
            for part_ref, per_garment in targets:
                quantity = allocation.allocated_quantity * per_garment
                for sequence, size in enumerate(
                    self.chunk(quantity, self.max_bundle_size), start=1
                ):
                    bundles.append(
                        ProductionBundle(
                            bundle_number=self.bundle_number(
                                lot_id, color, allocation.size, part_ref, sequence
                            ),
                            lot_id=lot_id,
                            color=color,
                            size=allocation.size,
                            part_ref=part_ref,
                            quantity=size,
                            sequence=sequence,
                            template_id=template_id,
                        )
                    )
        return bundles
