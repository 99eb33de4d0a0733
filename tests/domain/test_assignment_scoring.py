"""
Tests for auto-assignment rule scoring (analytic_kernel.domain.assignment).

Validates:
- Matcher weights (product 3, partner 2, category 1, partner tag 1)
- Null matchers never match
- Zero-score rules are never selected
- Ties go to the lowest rule_number
- Score is a pure function of (rule, request)
"""

from uuid import UUID, uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from analytic_kernel.domain.assignment import score_rule, select_best
from analytic_kernel.domain.dtos import (
    AssignmentRequest,
    AssignmentSource,
    RuleInfo,
    RuleStatus,
)

PARTNER = uuid4()
TAG = uuid4()
OTHER_TAG = uuid4()
PRODUCT = uuid4()
CATEGORY = uuid4()
ACCOUNT_A = uuid4()
ACCOUNT_B = uuid4()


def _rule(number: int, account_id: UUID = ACCOUNT_A, **matchers) -> RuleInfo:
    return RuleInfo(
        id=uuid4(),
        rule_number=number,
        account_id=account_id,
        status=RuleStatus.CONFIRMED,
        **matchers,
    )


FULL_REQUEST = AssignmentRequest(
    partner_id=PARTNER,
    partner_tag_ids=frozenset({TAG, OTHER_TAG}),
    product_id=PRODUCT,
    product_category_id=CATEGORY,
    source=AssignmentSource.VENDOR_BILL,
)


class TestScoreRule:
    """Weights and matcher semantics."""

    def test_product_match_scores_three(self):
        assert score_rule(_rule(1, product_id=PRODUCT), FULL_REQUEST) == 3

    def test_partner_match_scores_two(self):
        assert score_rule(_rule(1, partner_id=PARTNER), FULL_REQUEST) == 2

    def test_category_match_scores_one(self):
        assert score_rule(_rule(1, product_category_id=CATEGORY), FULL_REQUEST) == 1

    def test_tag_membership_scores_one(self):
        assert score_rule(_rule(1, partner_tag_id=TAG), FULL_REQUEST) == 1

    def test_all_matchers_add_up(self):
        rule = _rule(
            1,
            product_id=PRODUCT,
            partner_id=PARTNER,
            product_category_id=CATEGORY,
            partner_tag_id=TAG,
        )
        assert score_rule(rule, FULL_REQUEST) == 7

    def test_rule_without_matchers_scores_zero(self):
        assert score_rule(_rule(1), FULL_REQUEST) == 0

    def test_null_request_fields_never_match(self):
        rule = _rule(1, product_id=PRODUCT, partner_id=PARTNER)
        assert score_rule(rule, AssignmentRequest()) == 0

    def test_mismatched_matcher_contributes_nothing(self):
        rule = _rule(1, product_id=uuid4(), partner_id=PARTNER)
        assert score_rule(rule, FULL_REQUEST) == 2

    def test_tag_not_in_set(self):
        assert score_rule(_rule(1, partner_tag_id=uuid4()), FULL_REQUEST) == 0


class TestSelectBest:
    """Winner selection."""

    def test_no_rules_returns_none(self):
        assert select_best([], FULL_REQUEST) is None

    def test_zero_score_rules_discarded(self):
        assert select_best([_rule(1), _rule(2, product_id=uuid4())], FULL_REQUEST) is None

    def test_product_rule_beats_category_rule_regardless_of_order(self):
        category_rule = _rule(1, ACCOUNT_A, product_category_id=CATEGORY)
        product_rule = _rule(2, ACCOUNT_B, product_id=PRODUCT)

        for rules in ([category_rule, product_rule], [product_rule, category_rule]):
            rule, score = select_best(rules, FULL_REQUEST)
            assert rule is product_rule
            assert score == 3

    def test_tie_goes_to_lowest_rule_number(self):
        later = _rule(9, ACCOUNT_B, partner_id=PARTNER)
        earlier = _rule(4, ACCOUNT_A, partner_id=PARTNER)

        rule, _ = select_best([later, earlier], FULL_REQUEST)
        assert rule is earlier

    def test_strictly_higher_score_wins_over_lower_number(self):
        first = _rule(1, ACCOUNT_A, partner_tag_id=TAG)
        second = _rule(2, ACCOUNT_B, partner_id=PARTNER)

        rule, score = select_best([first, second], FULL_REQUEST)
        assert rule is second
        assert score == 2


_maybe_uuid = st.one_of(st.none(), st.sampled_from([PARTNER, TAG, PRODUCT, CATEGORY, OTHER_TAG]))


class TestScoringProperties:
    """Property-based checks."""

    @settings(max_examples=200, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        partner=_maybe_uuid,
        tag=_maybe_uuid,
        product=_maybe_uuid,
        category=_maybe_uuid,
    )
    def test_score_is_pure_and_bounded(self, partner, tag, product, category):
        rule = _rule(
            1,
            partner_id=partner,
            partner_tag_id=tag,
            product_id=product,
            product_category_id=category,
        )
        first = score_rule(rule, FULL_REQUEST)
        second = score_rule(rule, FULL_REQUEST)
        assert first == second
        assert 0 <= first <= 7

    @settings(max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(numbers=st.lists(st.integers(min_value=1, max_value=10_000), min_size=1, max_size=8, unique=True))
    def test_selection_independent_of_input_order(self, numbers):
        rules = [_rule(n, partner_id=PARTNER) for n in numbers]
        forward, _ = select_best(rules, FULL_REQUEST)
        backward, _ = select_best(list(reversed(rules)), FULL_REQUEST)
        assert forward is backward
        assert forward.rule_number == min(numbers)
