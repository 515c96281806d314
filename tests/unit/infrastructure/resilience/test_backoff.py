import random

import pytest

from pexcli.infrastructure.resilience.backoff import BASE_DELAY_S, MAX_DELAY_S, backoff_delay


@pytest.mark.parametrize("attempt", [0, 1, 2, 3, 5, 10, 63, 64, 1000, 10**9])
def test_delay_is_within_bounds(attempt):
    rng = random.Random(42)
    for _ in range(50):
        delay = backoff_delay(attempt, rng=rng)
        assert 0.0 <= delay <= MAX_DELAY_S


def test_first_attempt_between_base_and_one_and_a_half_base():
    rng = random.Random(7)
    for _ in range(100):
        delay = backoff_delay(0, rng=rng)
        assert BASE_DELAY_S <= delay <= BASE_DELAY_S * 1.5


def test_large_attempt_hits_the_ceiling():
    assert backoff_delay(30, rng=random.Random(1)) == MAX_DELAY_S


def test_negative_attempt_is_treated_as_zero():
    delay = backoff_delay(-5, rng=random.Random(3))
    assert BASE_DELAY_S <= delay <= BASE_DELAY_S * 1.5


def test_seeded_generator_is_deterministic():
    first = [backoff_delay(n, rng=random.Random(99)) for n in range(6)]
    second = [backoff_delay(n, rng=random.Random(99)) for n in range(6)]
    assert first == second


def test_jitter_uses_half_of_the_exponential_term(mocker):
    rng = mocker.MagicMock()
    rng.uniform.return_value = 0.0
    assert backoff_delay(2, rng=rng) == pytest.approx(0.4)
    rng.uniform.assert_called_once_with(0, pytest.approx(0.2))
