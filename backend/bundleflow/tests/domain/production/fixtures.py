"""
Test fixtures and factories for production domain objects.

Provides garment templates, operator snapshots and ready-to-use bundles for
unit and application tests.
"""

from decimal import Decimal

from bundleflow.domain.production.entities.bundle import ProductionBundle
from bundleflow.domain.production.entities.operator import OperatorProfile
from bundleflow.domain.production.services import (
    LifecycleStateMachine,
    OperationGraphBuilder,
)
from bundleflow.domain.production.value_objects import (
    GarmentPart,
    GarmentTemplate,
    OperationDefinition,
    OperatorStatus,
    SkillLevel,
)


class TemplateFactory:
    """Factory for garment templates."""

    @staticmethod
    def t_shirt(template_id: str = "TPL-TSHIRT", parts: tuple = ()) -> GarmentTemplate:
        """
        Basic t-shirt flow.

        0 shoulder_join -> 1 neck_rib, 2 sleeve_attach
        2 sleeve_attach -> 3 side_seam
        1, 3 -> 4 hem -> 5 care_label (optional)
        """
        return GarmentTemplate(
            id=template_id,
            code="TS-01",
            name="Basic T-Shirt",
            operations=(
                OperationDefinition(
                    name="shoulder_join",
                    machine_type="overlock",
                    required_skill=SkillLevel.INTERMEDIATE,
                    price_per_piece=Decimal("0.50"),
                    smv_minutes=0.4,
                ),
                OperationDefinition(
                    name="neck_rib",
                    machine_type="overlock",
                    required_skill=SkillLevel.INTERMEDIATE,
                    price_per_piece=Decimal("0.60"),
                    smv_minutes=0.5,
                    prerequisites=(0,),
                ),
                OperationDefinition(
                    name="sleeve_attach",
                    machine_type="overlock",
                    required_skill=SkillLevel.ADVANCED,
                    price_per_piece=Decimal("0.80"),
                    smv_minutes=0.7,
                    prerequisites=(0,),
                ),
                OperationDefinition(
                    name="side_seam",
                    machine_type="overlock",
                    required_skill=SkillLevel.INTERMEDIATE,
                    price_per_piece=Decimal("0.70"),
                    smv_minutes=0.6,
                    prerequisites=(2,),
                ),
                OperationDefinition(
                    name="hem",
                    machine_type="flatlock",
                    required_skill=SkillLevel.BEGINNER,
                    price_per_piece=Decimal("0.40"),
                    smv_minutes=0.3,
                    prerequisites=(1, 3),
                ),
                OperationDefinition(
                    name="care_label",
                    machine_type="single_needle",
                    price_per_piece=Decimal("0.10"),
                    smv_minutes=0.1,
                    prerequisites=(4,),
                    is_optional=True,
                ),
            ),
            parts=parts,
        )

    @staticmethod
    def linear(
        count: int = 3,
        machine_type: str = "overlock",
        price_per_piece: Decimal = Decimal("2.50"),
        template_id: str = "TPL-LINEAR",
    ) -> GarmentTemplate:
        """A chain of ``count`` operations, each depending on the previous one."""
        return GarmentTemplate(
            id=template_id,
            operations=tuple(
                OperationDefinition(
                    name=f"step_{index + 1}",
                    machine_type=machine_type,
                    price_per_piece=price_per_piece,
                    smv_minutes=1.0,
                    prerequisites=(index - 1,) if index else (),
                )
                for index in range(count)
            ),
        )

    @staticmethod
    def optional_only(count: int = 2, template_id: str = "TPL-OPTIONAL") -> GarmentTemplate:
        """Independent optional operations, e.g. labels and tags."""
        return GarmentTemplate(
            id=template_id,
            operations=tuple(
                OperationDefinition(
                    name=f"tag_{index + 1}",
                    machine_type="tagging",
                    price_per_piece=Decimal("0.10"),
                    is_optional=True,
                )
                for index in range(count)
            ),
        )

    @staticmethod
    def with_parts() -> GarmentTemplate:
        return TemplateFactory.t_shirt(
            template_id="TPL-TSHIRT-PARTS",
            parts=(
                GarmentPart(name="front", quantity_per_garment=1),
                GarmentPart(name="sleeve", quantity_per_garment=2),
            ),
        )


class OperatorFactory:
    """Factory for operator snapshots."""

    @staticmethod
    def create_operator(
        operator_id: str = "OP-001",
        machine_types: tuple[str, ...] = ("overlock",),
        skill_level: SkillLevel = SkillLevel.ADVANCED,
        efficiency: float = 105.0,
        quality_score: float = 92.0,
        current_workload: int = 0,
        max_concurrent_work: int | None = None,
        status: OperatorStatus = OperatorStatus.AVAILABLE,
        assigned_color: str | None = None,
    ) -> OperatorProfile:
        return OperatorProfile(
            id=operator_id,
            name=f"Operator {operator_id}",
            machine_types=machine_types,
            skill_level=skill_level,
            efficiency=efficiency,
            quality_score=quality_score,
            current_workload=current_workload,
            max_concurrent_work=max_concurrent_work,
            status=status,
            assigned_color=assigned_color,
        )

    @staticmethod
    def sewing_line() -> list[OperatorProfile]:
        """Operators covering every machine type of the t-shirt template."""
        return [
            OperatorFactory.create_operator("OP-OVL-1", ("overlock",), SkillLevel.EXPERT),
            OperatorFactory.create_operator(
                "OP-OVL-2", ("overlock",), SkillLevel.INTERMEDIATE, efficiency=95.0
            ),
            OperatorFactory.create_operator(
                "OP-FLT-1", ("flatlock",), SkillLevel.INTERMEDIATE
            ),
            OperatorFactory.create_operator(
                "OP-SNL-1", ("single_needle",), SkillLevel.BEGINNER
            ),
        ]


class BundleFactory:
    """Factory for bundles with their operation graph already built."""

    @staticmethod
    def create_bundle(
        template: GarmentTemplate | None = None,
        quantity: int = 20,
        color: str = "Navy",
        size: str = "L",
        release: bool = True,
    ) -> ProductionBundle:
        template = template or TemplateFactory.t_shirt()
        bundle = ProductionBundle(
            bundle_number=f"LOT-1-{color}-{size}-garment-001",
            lot_id="LOT-1",
            color=color,
            size=size,
            quantity=quantity,
        )
        OperationGraphBuilder().build(bundle, template)
        if release:
            LifecycleStateMachine().release_to_floor(bundle)
        bundle.clear_domain_events()
        return bundle

    @staticmethod
    def operation(bundle: ProductionBundle, name: str):
        """Look up a bundle operation by name."""
        return next(op for op in bundle.operations if op.name == name)
