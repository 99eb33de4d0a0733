"""
RuleService -- auto-assignment rule management.

Responsibility:
    Create, edit and move auto-assignment rules through their lifecycle
    (RULE_WORKFLOW).  Only confirmed, non-archived rules are seen by the
    rule engine.

Invariants enforced:
    - rule_number comes from the sequence counter, so it reflects creation
      order and is unique.
    - A rule's target account must be assignable when the rule is created,
      edited or confirmed.
    - Archived rules cannot be edited; restore them first.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from analytic_kernel.domain.clock import Clock
from analytic_kernel.domain.dtos import RuleDraft, RuleInfo, RuleStatus
from analytic_kernel.domain.workflow import RULE_WORKFLOW
from analytic_kernel.exceptions import InvalidStateTransitionError, RuleNotFoundError
from analytic_kernel.logging_config import get_logger
from analytic_kernel.models.rule import AutoAssignmentRule
from analytic_kernel.services.account_registry import AccountRegistry
from analytic_kernel.services.base import BaseService
from analytic_kernel.services.sequence_service import SequenceService

logger = get_logger("services.rule_service")

_ENTITY = "auto_assignment_rule"


def rule_info(rule: AutoAssignmentRule) -> RuleInfo:
    """Convert ORM AutoAssignmentRule to RuleInfo DTO."""
    return RuleInfo(
        id=rule.id,
        rule_number=rule.rule_number,
        account_id=rule.account_id,
        status=RuleStatus(rule.status),
        is_archived=rule.is_archived,
        partner_id=rule.partner_id,
        partner_tag_id=rule.partner_tag_id,
        product_id=rule.product_id,
        product_category_id=rule.product_category_id,
    )


class RuleService(BaseService[AutoAssignmentRule]):
    """Service for auto-assignment rules. Returns RuleInfo DTOs."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        accounts: AccountRegistry | None = None,
        sequences: SequenceService | None = None,
    ):
        super().__init__(session, clock)
        self._accounts = accounts or AccountRegistry(session, self._clock)
        self._sequences = sequences or SequenceService(session)

    def _get_by_id(self, rule_id: UUID) -> AutoAssignmentRule:
        rule = self.session.get(AutoAssignmentRule, rule_id)
        if rule is None:
            raise RuleNotFoundError(str(rule_id))
        return rule

    def _transition(self, rule: AutoAssignmentRule, action: str, actor_id: UUID) -> None:
        rule.status = RULE_WORKFLOW.apply(_ENTITY, rule.id, rule.status, action)
        rule.is_archived = rule.status == RuleStatus.ARCHIVED.value
        rule.updated_by_id = actor_id
        self._flush(_ENTITY, rule.id)
        logger.info(
            "analytical_rule_status_changed",
            extra={
                "rule_id": str(rule.id),
                "rule_number": rule.rule_number,
                "action": action,
                "status": rule.status,
            },
        )

    def create_rule(self, draft: RuleDraft, actor_id: UUID) -> RuleInfo:
        """
        Create a Draft rule.

        Raises:
            AccountNotFoundError, ArchivedAccountError: Bad target account.
        """
        self._accounts.require_assignable(draft.account_id)
        now = self._clock.now()
        rule = AutoAssignmentRule(
            rule_number=self._sequences.next_value(SequenceService.RULE_NUMBER),
            partner_id=draft.partner_id,
            partner_tag_id=draft.partner_tag_id,
            product_id=draft.product_id,
            product_category_id=draft.product_category_id,
            account_id=draft.account_id,
            status=RuleStatus.DRAFT.value,
            is_archived=False,
            created_by_id=actor_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(rule)
        self.session.flush()

        logger.info(
            "analytical_rule_created",
            extra={
                "rule_id": str(rule.id),
                "rule_number": rule.rule_number,
                "account_id": str(rule.account_id),
            },
        )
        return rule_info(rule)

    def update_rule(self, rule_id: UUID, draft: RuleDraft, actor_id: UUID) -> RuleInfo:
        """
        Replace a rule's matchers and target account.

        Raises:
            InvalidStateTransitionError: The rule is archived.
        """
        rule = self._get_by_id(rule_id)
        if rule.status == RuleStatus.ARCHIVED.value:
            raise InvalidStateTransitionError(_ENTITY, str(rule.id), rule.status, "update")
        self._accounts.require_assignable(draft.account_id)

        rule.partner_id = draft.partner_id
        rule.partner_tag_id = draft.partner_tag_id
        rule.product_id = draft.product_id
        rule.product_category_id = draft.product_category_id
        rule.account_id = draft.account_id
        rule.updated_by_id = actor_id
        self._flush(_ENTITY, rule.id)
        return rule_info(rule)

    def confirm_rule(self, rule_id: UUID, actor_id: UUID) -> RuleInfo:
        """Draft -> Confirmed. Confirming a confirmed rule does nothing."""
        rule = self._get_by_id(rule_id)
        if rule.status == RuleStatus.CONFIRMED.value:
            return rule_info(rule)
        self._accounts.require_assignable(rule.account_id)
        self._transition(rule, "confirm", actor_id)
        return rule_info(rule)

    def archive_rule(self, rule_id: UUID, actor_id: UUID) -> RuleInfo:
        """Archive a rule so the engine stops considering it."""
        rule = self._get_by_id(rule_id)
        if rule.status == RuleStatus.ARCHIVED.value:
            return rule_info(rule)
        self._transition(rule, "archive", actor_id)
        return rule_info(rule)

    def restore_rule(self, rule_id: UUID, actor_id: UUID) -> RuleInfo:
        """Archived -> Draft. Restoring a live rule does nothing."""
        rule = self._get_by_id(rule_id)
        if rule.status != RuleStatus.ARCHIVED.value:
            return rule_info(rule)
        self._transition(rule, "restore", actor_id)
        return rule_info(rule)

    def get_rule(self, rule_id: UUID) -> RuleInfo:
        """
        Get rule by ID.

        Raises:
            RuleNotFoundError: If the rule doesn't exist.
        """
        return rule_info(self._get_by_id(rule_id))

    def list_rules(
        self,
        status: RuleStatus | None = None,
        include_archived: bool = False,
    ) -> list[RuleInfo]:
        """List rules in rule_number order."""
        stmt = select(AutoAssignmentRule)
        if status is not None:
            stmt = stmt.where(AutoAssignmentRule.status == RuleStatus(status).value)
        if not include_archived:
            stmt = stmt.where(AutoAssignmentRule.is_archived == False)  # noqa: E712
        stmt = stmt.order_by(AutoAssignmentRule.rule_number)
        return [rule_info(r) for r in self.session.execute(stmt).scalars().all()]
