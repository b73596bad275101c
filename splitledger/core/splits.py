import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from splitledger.core.exceptions import ConsistencyError, ValidationError
from splitledger.core.money import HUNDRED, ZERO, Money, floor_units, money_sum, split_unit, to_money

logger = logging.getLogger(__name__)


class SplitType(str, enum.Enum):
    EQUAL = "EQUAL"
    PERCENTAGE = "PERCENTAGE"
    EXACT = "EXACT"


@dataclass(frozen=True)
class ComputedSplit:
    user_id: int
    amount: Money
    percentage: Optional[Money] = None


def compute_splits(
    expense_amount: Money,
    payer_id: int,
    policy: SplitType,
    participants: Sequence,
) -> List[ComputedSplit]:
    """
    Divide ``expense_amount`` among ``participants`` according to ``policy``.

    ``participants`` are objects exposing ``user_id`` and, depending on the
    policy, ``percentage`` (PERCENTAGE) or ``amount`` (EXACT).

    Returns one ComputedSplit per participant, ordered by user id, whose
    amounts add up to ``expense_amount`` exactly. Leftover minimal units from
    a non-terminating division go one at a time to the lowest user ids.
    """
    total = to_money(expense_amount)
    policy = SplitType(policy)

    if total <= ZERO:
        raise ValidationError("Expense amount must be positive")
    if not participants:
        raise ValidationError("At least one participant is required")

    user_ids = [p.user_id for p in participants]
    if len(user_ids) != len(set(user_ids)):
        raise ValidationError("Duplicate users found in splits")

    ordered = sorted(participants, key=lambda p: p.user_id)

    if policy == SplitType.EQUAL:
        splits = _equal_split(total, ordered)
    elif policy == SplitType.PERCENTAGE:
        splits = _percentage_split(total, ordered)
    else:
        splits = _exact_split(total, ordered)

    if any(s.amount <= ZERO for s in splits):
        raise ValidationError("Split amounts must be positive")

    computed_total = money_sum(s.amount for s in splits)
    if computed_total != total:
        raise ConsistencyError(
            f"Split amounts total ({computed_total}) does not match expense amount ({total})"
        )

    logger.debug(
        "Computed %s split of %s paid by %s across %d participants",
        policy.value, total, payer_id, len(splits)
    )
    return splits


def _distribute_residual(total: Money, shares: List[Money], unit: Money) -> List[Money]:
    residual = total - money_sum(shares)
    units_left = int(residual / unit)

    if units_left < 0 or units_left > len(shares):
        raise ConsistencyError(f"Residual {residual} cannot be spread over {len(shares)} shares")

    return [share + unit if i < units_left else share for i, share in enumerate(shares)]


def _equal_split(total: Money, participants) -> List[ComputedSplit]:
    unit = split_unit(total)
    floor_share = floor_units(total / len(participants), unit)
    amounts = _distribute_residual(total, [floor_share] * len(participants), unit)

    return [
        ComputedSplit(user_id=p.user_id, amount=amt)
        for p, amt in zip(participants, amounts)
    ]


def _percentage_split(total: Money, participants) -> List[ComputedSplit]:
    percentages = []
    for p in participants:
        if p.percentage is None:
            raise ValidationError("All participants need a percentage for a PERCENTAGE split")
        pct = to_money(p.percentage)
        if pct <= ZERO:
            raise ValidationError("Split percentages must be positive")
        percentages.append(pct)

    pct_total = money_sum(percentages)
    if pct_total != HUNDRED:
        raise ValidationError(f"Split percentages must total 100, got {pct_total}")

    unit = split_unit(total)
    floors = [floor_units(total * pct / HUNDRED, unit) for pct in percentages]
    amounts = _distribute_residual(total, floors, unit)

    return [
        ComputedSplit(user_id=p.user_id, amount=amt, percentage=pct)
        for p, amt, pct in zip(participants, amounts, percentages)
    ]


def _exact_split(total: Money, participants) -> List[ComputedSplit]:
    splits = []
    for p in participants:
        if p.amount is None:
            raise ValidationError("All participants need an amount for an EXACT split")
        amt = to_money(p.amount)
        if amt <= ZERO:
            raise ValidationError("Split amounts must be positive")
        splits.append(ComputedSplit(user_id=p.user_id, amount=amt))

    specified = money_sum(s.amount for s in splits)
    if specified != total:
        raise ValidationError(
            f"Split amounts total ({specified}) must equal expense amount ({total})"
        )
    return splits
