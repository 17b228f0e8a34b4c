"""Ordered deletion plans with read-back verification.

A plan lists its steps child-to-parent. Executing it runs every step, deletes
the target row, then re-reads the target: a store that silently refuses the
delete (a row policy, a trigger) must surface as DeleteVerificationFailed,
never as success. The whole plan runs in one store transaction, so a failed
verification rolls the dependent deletes back too.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Type

from sqlmodel import SQLModel

from poolift.errors import DeleteVerificationFailed
from poolift.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class PlanStep:
    label: str
    model: Type[SQLModel]
    where: tuple
    # When set, the step detaches rows (UPDATE ... SET patch) instead of deleting them
    patch: Optional[dict[str, Any]] = None


@dataclass
class DeletionPlan:
    entity: str
    model: Type[SQLModel]
    target_id: str
    steps: list[PlanStep] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add(self, label: str, model: Type[SQLModel], *where: Any, patch: Optional[dict] = None) -> None:
        self.steps.append(PlanStep(label, model, where, patch))

    def extend(self, other: "DeletionPlan") -> None:
        """Absorb another plan's steps, its target delete included, ahead of this plan's own."""
        self.steps.extend(other.steps)
        self.add(other.entity, other.model, other.model.id == other.target_id)
        self.warnings.extend(other.warnings)


@dataclass
class DeletionReport:
    entity: str
    id: str
    warnings: list[str]
    affected: dict[str, int]


def execute_plan(plan: DeletionPlan, store: EntityStore) -> DeletionReport:
    affected: dict[str, int] = {}
    with store.atomic():
        for step in plan.steps:
            if step.patch is not None:
                count = store.update(step.model, *step.where, patch=step.patch)
            else:
                count = store.delete(step.model, *step.where)
            affected[step.label] = affected.get(step.label, 0) + count

        affected[plan.entity] = store.delete(plan.model, plan.model.id == plan.target_id)

        if store.exists(plan.model, plan.model.id == plan.target_id):
            logger.error(
                "Delete of %s %s was refused by the store after steps %s",
                plan.entity, plan.target_id, affected,
            )
            raise DeleteVerificationFailed(
                f"Could not delete {plan.entity}: the store kept the row. Check its delete permissions.",
                details={"entity": plan.entity, "id": plan.target_id, "steps": affected},
            )

    logger.info("Deleted %s %s (%s)", plan.entity, plan.target_id, affected)
    return DeletionReport(
        entity=plan.entity,
        id=plan.target_id,
        warnings=plan.warnings,
        affected=affected,
    )
