import random
from typing import Dict, Iterable, List, Optional

OPERATOR_TOKENS = ("IDLE", "MOVEMENT", "SHOOTING", "CALCULATION")
GARBAGE_TOKENS = ("move", "FIRE", "", "42", "CALC")


class SimulatedClock:
    """Deterministic millisecond clock; sleep() advances time instead of blocking."""

    def __init__(self, start_ms=0, step_ms=0):
        self._now = start_ms
        self.step_ms = step_ms  # added to the clock on every read

    def now(self) -> int:
        t = self._now
        self._now += self.step_ms
        return t

    def sleep(self, ms: int, wake=None) -> None:
        # simulated time never blocks, so wake is not consulted
        if ms > 0:
            self._now += ms

    def advance(self, ms: int) -> None:
        self._now += ms


class ScriptedCommandSource:
    def __init__(self, tokens: Iterable[str], fallback="IDLE"):
        self._tokens: List[str] = list(tokens)
        self.fallback = fallback
        self.consumed = 0

    @property
    def remaining(self) -> int:
        return len(self._tokens) - self.consumed

    def next(self) -> str:
        if self.consumed >= len(self._tokens):
            return self.fallback
        token = self._tokens[self.consumed]
        self.consumed += 1
        return token


class RandomCommandSource:
    """
    Synthetic operator: picks weighted activity tokens and, with
    probability p_invalid, types something the machine does not understand.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        weights: Optional[Dict[str, float]] = None,
        p_invalid=0.05,
    ):
        if not 0.0 <= p_invalid <= 1.0:
            raise ValueError("p_invalid must be within [0, 1]")
        self._rng = random.Random(seed)
        self.weights = weights or {
            "IDLE": 0.1,
            "MOVEMENT": 0.5,
            "SHOOTING": 0.15,
            "CALCULATION": 0.25,
        }
        self.p_invalid = p_invalid
        self.issued: List[str] = []

    def next(self) -> str:
        if self._rng.random() < self.p_invalid:
            token = self._rng.choice(GARBAGE_TOKENS)
        else:
            tokens = list(self.weights)
            token = self._rng.choices(tokens, weights=[self.weights[t] for t in tokens], k=1)[0]
        self.issued.append(token)
        return token
