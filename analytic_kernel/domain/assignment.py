"""
Auto-assignment rule scoring.

Pure functions: a rule's score depends only on (rule, request).  The rule
engine service loads candidate rules and delegates the choice to
``select_best``.

Weights:
    product match           +3
    partner match           +2
    product category match  +1
    partner tag membership  +1

Each matcher contributes at most once; a matcher left unset never matches.
A rule scoring 0 is never selected.  Among the highest-scoring rules the
one with the lowest ``rule_number`` (earliest created) wins.
"""

from __future__ import annotations

from collections.abc import Iterable

from analytic_kernel.domain.dtos import AssignmentRequest, RuleInfo

PRODUCT_WEIGHT = 3
PARTNER_WEIGHT = 2
CATEGORY_WEIGHT = 1
PARTNER_TAG_WEIGHT = 1


def score_rule(rule: RuleInfo, request: AssignmentRequest) -> int:
    """Return the match score of ``rule`` against ``request``."""
    score = 0
    if rule.product_id is not None and rule.product_id == request.product_id:
        score += PRODUCT_WEIGHT
    if rule.partner_id is not None and rule.partner_id == request.partner_id:
        score += PARTNER_WEIGHT
    if (
        rule.product_category_id is not None
        and rule.product_category_id == request.product_category_id
    ):
        score += CATEGORY_WEIGHT
    if rule.partner_tag_id is not None and rule.partner_tag_id in request.partner_tag_ids:
        score += PARTNER_TAG_WEIGHT
    return score


def select_best(
    rules: Iterable[RuleInfo],
    request: AssignmentRequest,
) -> tuple[RuleInfo, int] | None:
    """Pick the highest-scoring rule, or None when nothing scores above 0."""
    best: tuple[RuleInfo, int] | None = None
    for rule in rules:
        score = score_rule(rule, request)
        if score <= 0:
            continue
        if best is None:
            best = (rule, score)
            continue
        best_rule, best_score = best
        if score > best_score or (
            score == best_score and rule.rule_number < best_rule.rule_number
        ):
            best = (rule, score)
    return best
