"""Garment template value objects, read-only to the engine."""

from decimal import Decimal

from pydantic import Field, field_validator

from ...shared.base import ValueObject
from .cutting import GarmentPart
from .enums import SkillLevel


class OperationDefinition(ValueObject):
    """One sewing step as authored in a garment template."""

    name: str = Field(min_length=1, max_length=100)
    machine_type: str = Field(min_length=1)
    required_skill: SkillLevel = SkillLevel.BEGINNER
    price_per_piece: Decimal = Field(ge=0, decimal_places=4)
    smv_minutes: float = Field(default=0.0, ge=0)
    # Indices into GarmentTemplate.operations
    prerequisites: tuple[int, ...] = ()
    is_optional: bool = False

    @field_validator("machine_type")
    @classmethod
    def normalise_machine_type(cls, v: str) -> str:
        return v.strip().lower()


class GarmentTemplate(ValueObject):
    """Sewing template: ordered operations plus the parts cut for the garment."""

    id: str = Field(min_length=1)
    code: str = ""
    name: str = ""
    operations: tuple[OperationDefinition, ...] = ()
    parts: tuple[GarmentPart, ...] = ()
