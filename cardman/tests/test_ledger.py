"""
Tests for the card ledger rules (pure, no database):
- Visit confirmation (cycle points, milestones, membership)
- Points redemption
- Gift balance use and adjustment
- Bonus discount consumption
- Administrative override
"""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from cardman import ledger
from cardman.exceptions import CardmanError
from cardman.records import ClientRecord, DiscountCard, GiftCard, PointsCard


def fresh(card, card_number="CARD0001", **kwargs):
    return ClientRecord(id="c1", card_number=card_number, card=card, first_name="Ana", **kwargs)


# ═══════════════════════════════════════════════════════════════════
# confirm_visit
# ═══════════════════════════════════════════════════════════════════


class TestConfirmVisitPoints:
    """Visits on points cards."""

    def test_increments_cycle_and_lifetime(self, points_record, now):
        updated, visit = ledger.confirm_visit(points_record, now=now)

        assert updated.card.points == 8
        assert updated.card.visit_points == 68
        assert visit.points_earned == 1
        assert visit.total_points == 8
        assert visit.timestamp == now

    def test_cycle_nine_ten_zero(self):
        """9 -> 10 -> 0, lifetime +2."""
        record = fresh(PointsCard(points=9, visit_points=40))

        record, _ = ledger.confirm_visit(record)
        assert record.card.points == 10

        record, visit = ledger.confirm_visit(record)
        assert record.card.points == 0
        assert record.card.visit_points == 42
        assert visit.total_points == 0

    def test_reset_when_above_limit(self):
        """Admin-edited points above the limit also reset."""
        record = fresh(PointsCard(points=14))
        updated, _ = ledger.confirm_visit(record)
        assert updated.card.points == 0
        assert updated.card.visit_points == 1

    def test_appends_visit_and_sets_last_visit(self, points_record, now):
        later = now + timedelta(hours=2)
        updated, visit = ledger.confirm_visit(points_record, now=later, visit_id="v-new")

        assert updated.visit_count == points_record.visit_count + 1
        assert updated.visit_history[-1] == visit
        assert visit.id == "v-new"
        assert updated.last_visit == later

    def test_generates_visit_id(self, points_record):
        _, first = ledger.confirm_visit(points_record)
        _, second = ledger.confirm_visit(points_record)
        assert first.id and second.id
        assert first.id != second.id

    def test_input_record_unchanged(self, points_record):
        ledger.confirm_visit(points_record)
        assert points_record.card.points == 7
        assert points_record.visit_count == 3


class TestConfirmVisitOtherTypes:
    """Visits on discount and gift cards."""

    def test_discount_card_has_no_points(self, discount_record):
        updated, visit = ledger.confirm_visit(discount_record)

        assert isinstance(updated.card, DiscountCard)
        assert updated.card.discount == 15
        assert visit.points_earned is None
        assert visit.total_points is None

    def test_gift_card_balance_untouched(self, gift_record):
        updated, visit = ledger.confirm_visit(gift_record)

        assert updated.card.balance == Decimal("250.00")
        assert updated.visit_count == 1
        assert visit.points_earned is None


class TestMilestones:
    """Every tenth visit grants the bonus discount."""

    def test_tenth_visit_grants_bonus_points_card(self, make_visits, now):
        record = fresh(PointsCard(points=9), visit_history=make_visits(9, now))

        updated, _ = ledger.confirm_visit(record)

        assert updated.visit_count == 10
        assert updated.card.bonus_discount == 10

    def test_tenth_visit_grants_bonus_discount_card(self, make_visits, now):
        record = fresh(DiscountCard(discount=5), visit_history=make_visits(9, now))
        updated, _ = ledger.confirm_visit(record)
        assert updated.card.bonus_discount == 10

    def test_ninth_visit_no_bonus(self, make_visits, now):
        record = fresh(PointsCard(), visit_history=make_visits(8, now))
        updated, _ = ledger.confirm_visit(record)
        assert updated.card.bonus_discount is None

    def test_gift_card_never_gets_bonus(self, make_visits, now):
        record = fresh(GiftCard(balance=Decimal("10.00")), visit_history=make_visits(9, now))
        updated, _ = ledger.confirm_visit(record)
        assert updated.visit_count == 10
        assert updated.bonus_discount is None
        assert not hasattr(updated.card, "bonus_discount")

    def test_milestone_overwrites_previous_bonus(self, make_visits, now):
        record = fresh(DiscountCard(bonus_discount=5), visit_history=make_visits(19, now))
        updated, _ = ledger.confirm_visit(record)
        assert updated.card.bonus_discount == 10

    def test_non_milestone_keeps_unconsumed_bonus(self, make_visits, now):
        record = fresh(PointsCard(bonus_discount=10), visit_history=make_visits(10, now))
        updated, _ = ledger.confirm_visit(record)
        assert updated.visit_count == 11
        assert updated.card.bonus_discount == 10

    @pytest.mark.parametrize("card", [PointsCard(), DiscountCard(), GiftCard()])
    def test_n_visits_give_n_history_entries(self, card):
        record = fresh(card)
        for n in range(1, 26):
            record, _ = ledger.confirm_visit(record)
            assert record.visit_count == n
            if n % 10 == 0 and not isinstance(card, GiftCard):
                assert record.bonus_discount == 10
                record = ledger.consume_bonus_discount(record)

    def test_is_milestone(self):
        assert ledger.is_milestone(10)
        assert ledger.is_milestone(30)
        assert not ledger.is_milestone(0)
        assert not ledger.is_milestone(11)


class TestMembershipUpgrade:
    """Lifetime visit points promote Standard cards to Gold."""

    def test_upgrade_at_threshold(self, settings):
        settings.CARDMAN = {"GOLD_MEMBERSHIP_THRESHOLD": 3}
        record = fresh(PointsCard(visit_points=2))

        updated, _ = ledger.confirm_visit(record)

        assert updated.card.membership == "Gold"

    def test_below_threshold_stays_standard(self, settings):
        settings.CARDMAN = {"GOLD_MEMBERSHIP_THRESHOLD": 3}
        record = fresh(PointsCard(visit_points=1))
        updated, _ = ledger.confirm_visit(record)
        assert updated.card.membership == "Standard"

    def test_platinum_not_downgraded(self, settings):
        settings.CARDMAN = {"GOLD_MEMBERSHIP_THRESHOLD": 1}
        record = fresh(PointsCard(membership="Platinum"))
        updated, _ = ledger.confirm_visit(record)
        assert updated.card.membership == "Platinum"


# ═══════════════════════════════════════════════════════════════════
# redeem_points
# ═══════════════════════════════════════════════════════════════════


class TestRedeemPoints:
    """Redemption spends cycle points only."""

    def test_redeem(self, points_record):
        updated = ledger.redeem_points(points_record, 5)

        assert updated.card.points == 2
        assert updated == replace(points_record, card=replace(points_record.card, points=2))

    def test_redeem_all(self, points_record):
        assert ledger.redeem_points(points_record, 7).card.points == 0

    def test_insufficient(self, points_record):
        with pytest.raises(CardmanError) as exc:
            ledger.redeem_points(points_record, 8)

        assert exc.value.code == "INSUFFICIENT_FUNDS"
        assert exc.value.data == {"available": 7, "requested": 8}

    @pytest.mark.parametrize("amount", [0, -3, 2.5, 2.0, "3", True, None])
    def test_invalid_amount(self, points_record, amount):
        with pytest.raises(CardmanError) as exc:
            ledger.redeem_points(points_record, amount)
        assert exc.value.code == "INVALID_AMOUNT"

    def test_wrong_type_checked_first(self, gift_record):
        with pytest.raises(CardmanError) as exc:
            ledger.redeem_points(gift_record, -1)

        assert exc.value.code == "WRONG_CARD_TYPE"
        assert exc.value.data["allowed"] == ["points"]

    def test_invalid_amount_checked_before_funds(self):
        record = fresh(PointsCard(points=0))
        with pytest.raises(CardmanError) as exc:
            ledger.redeem_points(record, 0)
        assert exc.value.code == "INVALID_AMOUNT"

    def test_redemption_is_not_a_visit(self, points_record):
        updated = ledger.redeem_points(points_record, 1)
        assert updated.visit_history == points_record.visit_history
        assert updated.card.visit_points == 67
        assert updated.last_visit == points_record.last_visit


# ═══════════════════════════════════════════════════════════════════
# use_balance / adjust_balance
# ═══════════════════════════════════════════════════════════════════


class TestUseBalance:
    """Gift card payments."""

    def test_use(self, gift_record):
        updated = ledger.use_balance(gift_record, Decimal("12.50"))
        assert updated.card.balance == Decimal("237.50")

    def test_use_entire_balance(self, gift_record):
        assert ledger.use_balance(gift_record, 250).card.balance == Decimal("0.00")

    def test_insufficient_keeps_balance(self, gift_record):
        with pytest.raises(CardmanError) as exc:
            ledger.use_balance(gift_record, 300)

        assert exc.value.code == "INSUFFICIENT_FUNDS"
        assert gift_record.card.balance == Decimal("250.00")

    @pytest.mark.parametrize("amount", [Decimal("250.004"), "0.001", 12.345])
    def test_sub_cent_amount_rejected(self, gift_record, amount):
        """Fractions of a cent are not rounded away."""
        with pytest.raises(CardmanError) as exc:
            ledger.use_balance(gift_record, amount)
        assert exc.value.code == "INVALID_AMOUNT"

    def test_trailing_zeros_accepted(self, gift_record):
        assert ledger.use_balance(gift_record, Decimal("1.500")).card.balance == Decimal("248.50")

    @pytest.mark.parametrize("amount,expected", [("10.5", "239.50"), (0.1, "249.90"), (3, "247.00")])
    def test_accepts_numeric_inputs(self, gift_record, amount, expected):
        assert ledger.use_balance(gift_record, amount).card.balance == Decimal(expected)

    @pytest.mark.parametrize("amount", [0, -5, "abc", None, True, "NaN", [1]])
    def test_invalid_amount(self, gift_record, amount):
        with pytest.raises(CardmanError) as exc:
            ledger.use_balance(gift_record, amount)
        assert exc.value.code == "INVALID_AMOUNT"

    def test_wrong_type(self, points_record):
        with pytest.raises(CardmanError) as exc:
            ledger.use_balance(points_record, 1)
        assert exc.value.code == "WRONG_CARD_TYPE"


class TestAdjustBalance:
    """Signed balance adjustments."""

    def test_top_up(self, gift_record):
        assert ledger.adjust_balance(gift_record, 50).card.balance == Decimal("300.00")

    def test_deduction(self, gift_record):
        assert ledger.adjust_balance(gift_record, "-0.99").card.balance == Decimal("249.01")

    def test_deduction_below_zero(self, gift_record):
        with pytest.raises(CardmanError) as exc:
            ledger.adjust_balance(gift_record, -250.01)
        assert exc.value.code == "INSUFFICIENT_FUNDS"

    def test_zero_rejected(self, gift_record):
        with pytest.raises(CardmanError) as exc:
            ledger.adjust_balance(gift_record, 0)
        assert exc.value.code == "INVALID_AMOUNT"

    def test_wrong_type(self, discount_record):
        with pytest.raises(CardmanError) as exc:
            ledger.adjust_balance(discount_record, 10)
        assert exc.value.code == "WRONG_CARD_TYPE"


# ═══════════════════════════════════════════════════════════════════
# consume_bonus_discount
# ═══════════════════════════════════════════════════════════════════


class TestConsumeBonusDiscount:
    """Milestone bonus is single-use."""

    def test_consume(self, discount_record):
        updated = ledger.consume_bonus_discount(discount_record)
        assert updated.card.bonus_discount is None
        assert updated.card.discount == 15

    def test_second_call_fails(self, discount_record):
        once = ledger.consume_bonus_discount(discount_record)
        with pytest.raises(CardmanError) as exc:
            ledger.consume_bonus_discount(once)
        assert exc.value.code == "NO_BONUS_AVAILABLE"

    @pytest.mark.parametrize("bonus", [None, 0])
    def test_no_bonus(self, bonus):
        record = fresh(PointsCard(bonus_discount=bonus))
        with pytest.raises(CardmanError) as exc:
            ledger.consume_bonus_discount(record)
        assert exc.value.code == "NO_BONUS_AVAILABLE"

    def test_gift_card_rejected(self, gift_record):
        with pytest.raises(CardmanError) as exc:
            ledger.consume_bonus_discount(gift_record)

        assert exc.value.code == "WRONG_CARD_TYPE"
        assert exc.value.data["allowed"] == ["points", "discount"]


# ═══════════════════════════════════════════════════════════════════
# admin_override
# ═══════════════════════════════════════════════════════════════════


class TestAdminOverride:
    """Direct admin edits bypass amount validation."""

    def test_personal_fields(self, points_record):
        updated = ledger.admin_override(points_record, email="new@example.com", company="ACME")
        assert updated.email == "new@example.com"
        assert updated.company == "ACME"
        assert updated.card == points_record.card

    def test_same_type_sets_values_without_validation(self, gift_record):
        updated = ledger.admin_override(gift_record, balance="-5")
        assert updated.card.balance == Decimal("-5.00")

    def test_points_to_gift_resets(self, points_record):
        updated = ledger.admin_override(points_record, card_type="gift")

        assert isinstance(updated.card, GiftCard)
        assert updated.card.balance == Decimal("0.00")
        assert updated.membership == "Standard"

    def test_gift_to_points_with_membership(self, gift_record):
        updated = ledger.admin_override(gift_record, card_type="points", membership="Gold", points=3)

        assert updated.card == PointsCard(points=3, visit_points=0, membership="Gold")

    def test_points_to_discount_carries_shared_fields(self):
        record = fresh(PointsCard(points=4, membership="Gold", bonus_discount=10))

        updated = ledger.admin_override(record, card_type="discount")

        assert updated.card == DiscountCard(discount=0, membership="Gold", bonus_discount=10)

    def test_gift_ignores_membership(self, gift_record):
        updated = ledger.admin_override(gift_record, membership="Gold")
        assert updated.membership == "Standard"

    def test_history_and_identity_untouched(self, points_record):
        updated = ledger.admin_override(points_record, card_type="discount", discount=20)

        assert updated.id == points_record.id
        assert updated.card_number == points_record.card_number
        assert updated.visit_history == points_record.visit_history
        assert updated.last_visit == points_record.last_visit

    def test_unknown_field(self, points_record):
        with pytest.raises(CardmanError) as exc:
            ledger.admin_override(points_record, card_number="X", visit_history=())

        assert exc.value.code == "INVALID_FIELD"
        assert exc.value.data["fields"] == ["card_number", "visit_history"]

    def test_unknown_card_type(self, points_record):
        with pytest.raises(CardmanError) as exc:
            ledger.admin_override(points_record, card_type="platinum")

        assert exc.value.code == "WRONG_CARD_TYPE"
        assert exc.value.data == {"card_type": "platinum"}
