"""
Workflow definition store.

Resolves the active approval chain for an (organization, entity type)
and publishes new versions. A definition that any request references is
frozen: changing a chain means publishing a new version, which leaves
in-flight requests on the version they captured.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from hr_approvals.config.settings import settings
from hr_approvals.core.exceptions import (
    DefinitionLockedError,
    DefinitionNotFoundError,
    ValidationError,
)
from hr_approvals.models.base import UserRole, WorkflowEntityType
from hr_approvals.models.workflows import WorkflowDefinition
from hr_approvals.repositories.workflows import WorkflowDefinitionRepository
from hr_approvals.schemas.workflows import (
    WorkflowDefinitionCreate,
    WorkflowStep,
    validate_step_sequence,
)
from hr_approvals.services.base import BaseService
from hr_approvals.services.workflows.entity_status_sync import DEFAULT_STATUS_POLICIES, StatusPolicy

StepInput = Union[WorkflowStep, Mapping[str, Any]]


def _field_errors(exc: PydanticValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(location, []).append(error["msg"])
    return errors


def coerce_entity_type(value: Union[WorkflowEntityType, str]) -> WorkflowEntityType:
    """Parse an entity type, raising the typed validation error on unknown values."""
    try:
        return WorkflowEntityType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in WorkflowEntityType)
        raise ValidationError(
            f"Unknown workflow entity type: {value}",
            field_errors={"entity_type": [f"must be one of {allowed}"]},
        ) from None


class WorkflowDefinitionService(BaseService):
    """Read and publish approval chains."""

    def __init__(
        self,
        db_session,
        policies: Optional[Mapping[WorkflowEntityType, StatusPolicy]] = None,
        default_approver_role: Optional[str] = None,
    ):
        super().__init__(db_session)
        self.definitions = WorkflowDefinitionRepository(db_session)
        self.policies = dict(policies if policies is not None else DEFAULT_STATUS_POLICIES)
        self.default_approver_role = UserRole(
            (default_approver_role or settings.DEFAULT_APPROVER_ROLE).lower()
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def get_active_definition(
        self,
        organization_id: str,
        entity_type: WorkflowEntityType,
    ) -> Optional[WorkflowDefinition]:
        """
        The active definition, or None.

        None is not an error: callers fall back to `implicit_steps()`.
        """
        return self.definitions.get_active(organization_id, coerce_entity_type(entity_type))

    def get_definition(self, definition_id: str) -> WorkflowDefinition:
        definition = self.definitions.get_by_id(definition_id)
        if definition is None:
            raise DefinitionNotFoundError(definition_id)
        return definition

    def implicit_steps(self) -> List[WorkflowStep]:
        """Single required step used when no definition is active."""
        return [WorkflowStep(order=1, role=self.default_approver_role, required=True)]

    def resolve_steps(self, definition: Optional[WorkflowDefinition]) -> List[WorkflowStep]:
        """Ordered steps of a definition, or the implicit chain for None."""
        if definition is None:
            return self.implicit_steps()
        steps = [WorkflowStep.model_validate(raw) for raw in definition.steps or []]
        return sorted(steps, key=lambda s: s.order)

    @staticmethod
    def step_at(steps: Iterable[WorkflowStep], order: int) -> Optional[WorkflowStep]:
        for step in steps:
            if step.order == order:
                return step
        return None

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    def publish_definition(
        self,
        organization_id: str,
        entity_type: WorkflowEntityType,
        steps: List[StepInput],
        name: Optional[str] = None,
    ) -> WorkflowDefinition:
        """
        Publish a new active version and retire the previous one.

        Raises:
            ValidationError: Invalid step list, or a chain the entity's status policy does not describe
        """
        try:
            payload = WorkflowDefinitionCreate(
                organization_id=organization_id,
                entity_type=entity_type,
                name=name,
                steps=steps,
            )
        except PydanticValidationError as e:
            raise ValidationError("Invalid workflow definition", field_errors=_field_errors(e)) from e

        self._check_policy_coverage(payload.entity_type, payload.steps)

        with self.transaction():
            previous = self.definitions.get_active(payload.organization_id, payload.entity_type)
            if previous is not None:
                previous.is_active = False
                # Retire before insert so the active-definition index never sees two rows
                self.db.flush()

            definition = WorkflowDefinition(
                organization_id=payload.organization_id,
                entity_type=payload.entity_type,
                name=payload.name,
                version=self.definitions.latest_version(payload.organization_id, payload.entity_type) + 1,
                is_active=True,
                steps=[step.model_dump(mode="json") for step in payload.steps],
            )
            self.definitions.create(definition)

        self._log_operation(
            "Published workflow definition",
            definition.id,
            {"organization_id": organization_id, "entity_type": payload.entity_type.value},
        )
        return definition

    def update_steps(self, definition_id: str, steps: List[StepInput]) -> WorkflowDefinition:
        """
        Replace the steps of a definition no request has referenced yet.

        Raises:
            DefinitionNotFoundError: Unknown definition
            DefinitionLockedError: The definition is referenced by a request
            ValidationError: Invalid step list, or a chain the status policy does not describe
        """
        definition = self.get_definition(definition_id)

        references = self.definitions.count_references(definition_id)
        if references:
            raise DefinitionLockedError(definition_id, references)

        validated = self._validate_steps(steps)
        self._check_policy_coverage(definition.entity_type, validated)

        with self.transaction():
            definition.steps = [step.model_dump(mode="json") for step in validated]

        self._log_operation("Updated workflow definition steps", definition_id)
        return definition

    def deactivate(self, definition_id: str) -> WorkflowDefinition:
        """Retire a definition; new requests fall back to the implicit chain."""
        definition = self.get_definition(definition_id)
        with self.transaction():
            definition.is_active = False
        self._log_operation("Deactivated workflow definition", definition_id)
        return definition

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    def _validate_steps(self, steps: List[StepInput]) -> List[WorkflowStep]:
        try:
            parsed = [WorkflowStep.model_validate(step) for step in steps]
            return validate_step_sequence(parsed)
        except PydanticValidationError as e:
            raise ValidationError("Invalid workflow steps", field_errors=_field_errors(e)) from e
        except ValueError as e:
            raise ValidationError(str(e), field_errors={"steps": [str(e)]}) from e

    def _check_policy_coverage(self, entity_type: WorkflowEntityType, steps: List[WorkflowStep]) -> None:
        policy = self.policies.get(entity_type)
        if policy is None:
            raise ValidationError(
                f"No status policy exists for {entity_type.value}",
                field_errors={"entity_type": ["unsupported entity type"]},
            )
        if not policy.describes(steps):
            chain = " -> ".join(step.role.value for step in steps)
            message = (
                f"{entity_type.value} status policy does not describe the chain {chain}; "
                f"supported: {', '.join(policy.described_chains)}"
            )
            raise ValidationError(message, field_errors={"steps": [message]})
