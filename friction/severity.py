from __future__ import annotations

from app.contracts.friction import FrictionSeverity

_LADDER = (FrictionSeverity.LOW, FrictionSeverity.MEDIUM, FrictionSeverity.HIGH)


def weight_severity(base: FrictionSeverity | str, priority: int) -> FrictionSeverity:
    """
    Shift a judged severity by how much the persona cares about its category.

    priority >= 4 bumps one step up, priority <= 2 one step down, clamped at the ends.
    """
    base = FrictionSeverity(base)
    idx = _LADDER.index(base)
    if priority >= 4 and idx < len(_LADDER) - 1:
        return _LADDER[idx + 1]
    if priority <= 2 and idx > 0:
        return _LADDER[idx - 1]
    return base
