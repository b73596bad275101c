from decimal import Decimal
from typing import Dict, List, Tuple
from collections import deque
from splitledger.core.money import ZERO

def simplify_debts(net_map: Dict[int, Decimal]) -> List[Tuple[int, int, Decimal]]:
    """
    Greedy plan of transfers that zeroes every balance in ``net_map``.

    Positive balance = the user is owed money, negative = the user owes.
    Largest debtor pays largest creditor first; ties go to the lower user id.
    Returns ``(from_user_id, to_user_id, amount)`` tuples.
    """
    creditors = []
    debtors = []

    for uid, bal in net_map.items():
        if bal > ZERO:
            creditors.append([uid, bal])
        elif bal < ZERO:
            debtors.append([uid, -bal])

    creditors.sort(key=lambda x: (-x[1], x[0]))
    debtors.sort(key=lambda x: (-x[1], x[0]))

    creditors = deque(creditors)
    debtors = deque(debtors)

    transfers: List[Tuple[int, int, Decimal]] = []

    while creditors and debtors:
        cred_id, cred_amt = creditors[0]
        debt_id, debt_amt = debtors[0]

        pay_amt = min(cred_amt, debt_amt)

        transfers.append((debt_id, cred_id, pay_amt))

        new_cred = cred_amt - pay_amt
        new_debt = debt_amt - pay_amt

        creditors.popleft()
        debtors.popleft()

        if new_cred > ZERO:
            creditors.appendleft([cred_id, new_cred])
        if new_debt > ZERO:
            debtors.appendleft([debt_id, new_debt])
    return transfers
