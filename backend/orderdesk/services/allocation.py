# Overview: Pure payment-allocation rules (no database access).

"""
Allocation engine

Given a snapshot of outstanding balances, decide how much of a payment
settles which sales orders:

1. Explicit allocations requested by the caller are validated against the
   snapshot in input order, each one decrementing the working balance.
2. Whatever the caller left unallocated is swept across the remaining
   balances oldest order first (created_at, then id).

All amounts are integer cents, so comparisons are exact. The snapshot
dict is owned by one payment transaction and is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..validation import ValidationError


@dataclass
class OutstandingBalance:
    sales_order_id: int
    outstanding_cents: int
    created_at: datetime

    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.sales_order_id)


@dataclass(frozen=True)
class AllocationLine:
    sales_order_id: int
    amount_cents: int


def apply_explicit_allocations(
    requested: Iterable[AllocationLine],
    balances: dict[int, OutstandingBalance],
) -> tuple[list[AllocationLine], int]:
    """
    Validate caller-specified allocations against the balance snapshot.

    Raises ValidationError on the first order that is missing from the
    snapshot or whose remaining balance is smaller than the requested
    amount. Returns (accepted lines in input order, their total).
    """
    accepted: list[AllocationLine] = []
    total = 0
    for line in requested:
        balance = balances.get(line.sales_order_id)
        if balance is None:
            raise ValidationError(
                f"sales order {line.sales_order_id} has no outstanding balance"
            )
        if line.amount_cents > balance.outstanding_cents:
            raise ValidationError(
                f"allocation exceeds outstanding for order {line.sales_order_id}"
            )
        balance.outstanding_cents -= line.amount_cents
        total += line.amount_cents
        accepted.append(line)
    return accepted, total


def auto_allocate(
    remaining_cents: int,
    balances: dict[int, OutstandingBalance],
) -> list[AllocationLine]:
    """
    Oldest-balance-first sweep of an unallocated remainder.

    Any amount left after every candidate is exhausted stays unallocated;
    that is not an error.
    """
    if remaining_cents <= 0:
        return []

    # Dict order is insertion order from the query; impose the total order explicitly.
    candidates = sorted(
        (b for b in balances.values() if b.outstanding_cents > 0),
        key=OutstandingBalance.sort_key,
    )

    lines: list[AllocationLine] = []
    for candidate in candidates:
        if remaining_cents <= 0:
            break
        amount = min(candidate.outstanding_cents, remaining_cents)
        if amount <= 0:
            continue
        candidate.outstanding_cents -= amount
        remaining_cents -= amount
        lines.append(AllocationLine(candidate.sales_order_id, amount))
    return lines
