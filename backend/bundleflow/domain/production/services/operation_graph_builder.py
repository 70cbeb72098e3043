"""
OperationGraphBuilder Domain Service

Instantiates a garment template's operation list on a bundle. Template
prerequisites are indices into the operation list; on the bundle they become
ids of sibling operations.
"""

from ...shared.base import DomainService
from ...shared.exceptions import CyclicDependencyError, TemplateGraphError
from ..entities.bundle import BundleOperation, ProductionBundle
from ..value_objects.enums import OperationStatus
from ..value_objects.template import GarmentTemplate

_WHITE, _GREY, _BLACK = 0, 1, 2


class OperationGraphBuilder(DomainService):
    """Builds the dependency-ordered operations of a bundle."""

    @staticmethod
    def validate_template(template: GarmentTemplate) -> None:
        """
        Check that a template describes a usable operation DAG.

        Raises:
            TemplateGraphError: Empty template, out-of-range or self reference
            CyclicDependencyError: If prerequisites form a cycle
        """
        count = len(template.operations)
        if count == 0:
            raise TemplateGraphError("Template has no operations", template.id)

        for index, definition in enumerate(template.operations):
            for prerequisite in definition.prerequisites:
                if prerequisite == index:
                    raise TemplateGraphError(
                        f"Operation {index} ({definition.name}) depends on itself",
                        template.id,
                        {"operation_index": index},
                    )
                if not 0 <= prerequisite < count:
                    raise TemplateGraphError(
                        f"Operation {index} ({definition.name}) references "
                        f"unknown prerequisite {prerequisite}",
                        template.id,
                        {"operation_index": index, "prerequisite": prerequisite},
                    )

        cycle = OperationGraphBuilder.find_cycle(
            [list(d.prerequisites) for d in template.operations]
        )
        if cycle:
            raise CyclicDependencyError(cycle, template.id)

    @staticmethod
    def find_cycle(prerequisites: list[list[int]]) -> list[int] | None:
        """
        Depth-first search for a cycle in an index graph.

        Returns the cycle as a closed path (first index repeated at the end),
        or None when the graph is acyclic.
        """
        color = [_WHITE] * len(prerequisites)
        path: list[int] = []

        def visit(node: int) -> list[int] | None:
            color[node] = _GREY
            path.append(node)
            for nxt in prerequisites[node]:
                if color[nxt] == _GREY:
                    return path[path.index(nxt) :] + [nxt]
                if color[nxt] == _WHITE:
                    found = visit(nxt)
                    if found:
                        return found
            path.pop()
            color[node] = _BLACK
            return None

        for start in range(len(prerequisites)):
            if color[start] == _WHITE:
                found = visit(start)
                if found:
                    return found
        return None

    def build(
        self, bundle: ProductionBundle, template: GarmentTemplate
    ) -> list[BundleOperation]:
        """
        Create one operation per template entry and attach them to ``bundle``.

        Operations without prerequisites start READY, the rest WAITING.
        """
        self.validate_template(template)

        operations = [
            BundleOperation(
                bundle_id=bundle.id,
                sequence=index + 1,
                name=definition.name,
                machine_type=definition.machine_type,
                required_skill=definition.required_skill,
                price_per_piece=definition.price_per_piece,
                estimated_minutes=definition.smv_minutes * bundle.quantity,
                is_optional=definition.is_optional,
            )
            for index, definition in enumerate(template.operations)
        ]
        for operation, definition in zip(operations, template.operations):
            operation.dependencies = {
                operations[prerequisite].id for prerequisite in definition.prerequisites
            }
            operation.status = (
                OperationStatus.WAITING
                if operation.dependencies
                else OperationStatus.READY
            )

        bundle.operations = operations
        bundle.template_id = template.id
        return operations
