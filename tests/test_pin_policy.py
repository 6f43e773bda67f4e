"""Tests for the PIN quality policy."""

import pytest

from atm_pin.models.account import WeaknessReason
from atm_pin.policy import pin_policy
from atm_pin.policy.pin_policy import (
    DENYLIST,
    assess,
    has_too_many_repeats,
    is_denylisted,
    is_sequential,
    is_weak,
)


class TestSequential:
    """Tests for is_sequential."""

    @pytest.mark.parametrize("pin", ["1234", "4321", "0123", "9876", "345678", "654321"])
    def test_sequential_runs(self, pin):
        assert is_sequential(pin) is True

    @pytest.mark.parametrize("pin", ["1357", "1243", "8901", "7890", "5831", "123457"])
    def test_not_sequential(self, pin):
        """Test that only exact +1/-1 steps across the whole PIN count."""
        assert is_sequential(pin) is False

    def test_no_wraparound(self):
        """Test 9 -> 0 is not a +1 step."""
        assert is_sequential("7890") is False


class TestRepeats:
    """Tests for has_too_many_repeats."""

    def test_pair_is_allowed(self):
        assert has_too_many_repeats("1123") is False
        assert has_too_many_repeats("112233") is False

    def test_run_of_three(self):
        assert has_too_many_repeats("1112") is True
        assert has_too_many_repeats("2111") is True
        assert has_too_many_repeats("583338") is True

    def test_all_same(self):
        assert has_too_many_repeats("0000") is True
        assert has_too_many_repeats("999999") is True


class TestDenylist:
    """Tests for is_denylisted."""

    @pytest.mark.parametrize("pin", sorted(DENYLIST))
    def test_every_entry_is_weak(self, pin):
        """Test every denylisted PIN is weak."""
        assert is_denylisted(pin) is True
        assert is_weak(pin) is True

    def test_exact_match_only(self):
        """Test six-digit PINs never collide with four-digit entries."""
        assert is_denylisted("123400") is False
        assert is_denylisted("201004") is False

    def test_denylisted_but_otherwise_fine(self):
        """Test 2580 and 1004 are weak only because of the denylist."""
        for pin in ("2580", "1004", "1212"):
            assert not is_sequential(pin)
            assert not has_too_many_repeats(pin)
            assert is_weak(pin)


class TestIsWeak:
    """Tests for the combined predicate and assess()."""

    @pytest.mark.parametrize("pin", ["5831", "1123", "1357", "472915", "112233"])
    def test_strong_pins(self, pin):
        assert is_weak(pin) is False

    @pytest.mark.parametrize("pin", ["1234", "4321", "1112", "0000", "123456", "777777"])
    def test_weak_pins(self, pin):
        assert is_weak(pin) is True

    def test_assess_collects_every_reason(self):
        """Test 0000 is reported as repeated and denylisted."""
        assessment = assess("0000")
        assert assessment.is_weak
        assert assessment.pin_length == 4
        assert assessment.reasons == [
            WeaknessReason.REPEATED_DIGITS,
            WeaknessReason.DENYLISTED,
        ]

    def test_assess_sequential_and_denylisted(self):
        assert assess("1234").reasons == [
            WeaknessReason.SEQUENTIAL,
            WeaknessReason.DENYLISTED,
        ]

    def test_assess_strong(self):
        assessment = assess("5831")
        assert not assessment.is_weak
        assert assessment.reasons == []

    @pytest.mark.parametrize("pin", ["5831", "1234", "0000", "1112", "2580"])
    def test_assess_agrees_with_is_weak(self, pin):
        assert assess(pin).is_weak == pin_policy.is_weak(pin)


class TestShortInputs:
    """
    Strings shorter than two digits are evaluated as written:
    they are trivially sequential and all-same, so they are weak.
    """

    @pytest.mark.parametrize("pin", ["", "7"])
    def test_short_inputs_are_weak(self, pin):
        assert is_sequential(pin) is True
        assert has_too_many_repeats(pin) is True
        assert is_weak(pin) is True

    def test_two_digits(self):
        """Test two distinct non-adjacent digits pass the pattern checks."""
        assert is_sequential("12") is True
        assert is_sequential("15") is False
        assert has_too_many_repeats("15") is False
        assert has_too_many_repeats("55") is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
