"""Cutting-room value objects: rolls, size ratios and their allocations."""

import re
from uuid import UUID, uuid4

from pydantic import Field, field_validator, model_validator

from ...shared.base import ValueObject
from ...shared.exceptions import InvalidRatioError

_SIZE_WEIGHT = re.compile(r"^\s*([^:\s]+)\s*:\s*(-?\d+)\s*$")


class FabricRoll(ValueObject):
    """A recorded fabric roll. Input only, never mutated by the engine."""

    id: UUID = Field(default_factory=uuid4)
    roll_number: str = ""
    color: str = Field(min_length=1)
    weight: float = Field(default=0.0, ge=0)
    layer_count: int = Field(ge=0)

    @field_validator("color")
    @classmethod
    def normalise_color(cls, v: str) -> str:
        return v.strip()


class GarmentPart(ValueObject):
    """A cut part of a garment (front panel, sleeve, neck rib...)."""

    name: str = Field(min_length=1, max_length=100)
    quantity_per_garment: int = Field(default=1, ge=1)
    cutting_time_per_piece: float = Field(default=0.0, ge=0)


class SizeRatio(ValueObject):
    """
    Ordered size labels with their positive integer weights.

    Construction does not validate weights so that the allocator can report
    every malformed ratio as an InvalidRatioError.
    """

    sizes: tuple[str, ...]
    weights: tuple[int, ...]

    @property
    def total_weight(self) -> int:
        return sum(self.weights)

    @classmethod
    def parse(cls, text: str, sizes: list[str] | None = None) -> "SizeRatio":
        """
        Parse a ratio string.

        Accepts either labelled pairs (``"L:1, XL:2, 2XL:2"``) or bare
        weights (``"1:2:2:1"``) combined with an explicit size list.

        Raises:
            InvalidRatioError: If the text cannot be parsed
        """
        text = text.strip()
        if not text:
            raise InvalidRatioError("Ratio text is empty", text)

        if sizes is None:
            labels: list[str] = []
            weights: list[int] = []
            for chunk in text.split(","):
                match = _SIZE_WEIGHT.match(chunk)
                if not match:
                    raise InvalidRatioError(
                        f"Cannot parse ratio entry '{chunk.strip()}' "
                        "(bare weights need a size list)",
                        text,
                    )
                labels.append(match.group(1))
                weights.append(int(match.group(2)))
            return cls(sizes=tuple(labels), weights=tuple(weights))

        try:
            bare = [int(part) for part in text.split(":")]
        except ValueError as e:
            raise InvalidRatioError(f"Ratio weights must be integers: {text}", text) from e
        return cls(sizes=tuple(sizes), weights=tuple(bare))


class SizeAllocation(ValueObject):
    """Quantity of garments allocated to one size."""

    size: str
    ratio_weight: int = Field(ge=1)
    allocated_quantity: int = Field(ge=0)


class ColorBatch(ValueObject):
    """All rolls of one color together with their per-size allocation."""

    color: str
    roll_ids: tuple[UUID, ...] = ()
    total_layers: int = Field(ge=0)
    allocations: tuple[SizeAllocation, ...] = ()

    @property
    def total_garments(self) -> int:
        return sum(a.allocated_quantity for a in self.allocations)

    @model_validator(mode="after")
    def allocations_cover_layers(self) -> "ColorBatch":
        if self.allocations and self.total_garments != self.total_layers:
            raise ValueError(
                f"Allocations for {self.color} sum to {self.total_garments}, "
                f"expected {self.total_layers}"
            )
        return self
