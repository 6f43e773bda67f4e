"""
PIN Quality Policy

A candidate PIN is WEAK if any of these hold:
- its digits step by exactly +1, or exactly -1, across the whole string
- it has a run of 3 or more equal digits, or all its digits are equal
- it is one of a fixed list of well-known PINs

The predicates are pure functions over a digit string. They are used
by the generator on every draw and by the authentication engine on
every PIN change.

Strings of length 0 or 1 are evaluated as written: they count as both
sequential and all-same, so they are weak.
"""

from atm_pin.models.account import PinAssessment, WeaknessReason


DENYLIST = frozenset({
    "1234", "0000", "1111", "1212", "7777", "1004", "2000", "4321", "2580",
})

MAX_RUN_LENGTH = 2


def is_sequential(pin: str) -> bool:
    """True if every step is +1, or every step is -1."""
    ascending = descending = True
    for prev, cur in zip(pin, pin[1:]):
        step = int(cur) - int(prev)
        if step != 1:
            ascending = False
        if step != -1:
            descending = False
    return ascending or descending


def has_too_many_repeats(pin: str) -> bool:
    """True if some digit repeats 3+ times in a row, or all digits are equal."""
    run = 1
    for prev, cur in zip(pin, pin[1:]):
        if cur == prev:
            run += 1
            if run > MAX_RUN_LENGTH:
                return True
        else:
            run = 1
    return len(set(pin)) <= 1


def is_denylisted(pin: str) -> bool:
    # Exact string match: a 6-digit PIN never hits a 4-digit entry
    return pin in DENYLIST


def is_weak(pin: str) -> bool:
    return is_sequential(pin) or has_too_many_repeats(pin) or is_denylisted(pin)


def assess(pin: str) -> PinAssessment:
    """
    Run every check and collect the reasons a PIN is weak.

    Returns an assessment whose `is_weak` agrees with `is_weak(pin)`.
    """
    reasons = []
    if is_sequential(pin):
        reasons.append(WeaknessReason.SEQUENTIAL)
    if has_too_many_repeats(pin):
        reasons.append(WeaknessReason.REPEATED_DIGITS)
    if is_denylisted(pin):
        reasons.append(WeaknessReason.DENYLISTED)
    return PinAssessment(pin_length=len(pin), reasons=reasons)
