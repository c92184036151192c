from __future__ import annotations

import pytest

from myjantes.errors import InvalidStatusTransition
from myjantes.models.booking import BookingStatus, check_transition

P, C, D, X = BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.COMPLETED, BookingStatus.CANCELLED


@pytest.mark.parametrize("current,target", [(P, C), (C, D), (P, X), (C, X)])
def test_allowed_transitions(current, target) -> None:
    check_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [(X, P), (X, C), (D, X), (D, P), (P, D), (C, P), (P, P)],
)
def test_rejected_transitions(current, target) -> None:
    with pytest.raises(InvalidStatusTransition):
        check_transition(current, target)


def test_transition_accepts_raw_values() -> None:
    check_transition("pending", BookingStatus.CONFIRMED)
