from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional


@dataclass(frozen=True)
class Tsumo:
    """A colour pair waiting in the queue."""

    pivot_color: int
    satellite_color: int


class ColorBag:
    """Draws colours from a shuffled bag holding every colour equally often.

    The first ``opening_pairs`` pairs only use the first ``opening_colors``
    colours, so a fresh board cannot start with an unplayable spread.
    """

    def __init__(
        self,
        num_colors: int,
        rng: random.Random,
        copies_per_color: int = 16,
        opening_pairs: int = 2,
        opening_colors: int = 3,
    ) -> None:
        self.num_colors = int(num_colors)
        self.rng = rng
        self.copies_per_color = int(copies_per_color)
        self.opening_pairs = int(opening_pairs)
        self.opening_colors = max(1, min(int(opening_colors), self.num_colors))
        self._bag: List[int] = []
        self._pairs_drawn = 0

    def _refill(self) -> None:
        self._bag = [c for c in range(1, self.num_colors + 1) for _ in range(self.copies_per_color)]
        self.rng.shuffle(self._bag)

    def _draw_color(self) -> int:
        if not self._bag:
            self._refill()
        return self._bag.pop()

    def draw(self) -> Tsumo:
        if self._pairs_drawn < self.opening_pairs:
            palette = range(1, self.opening_colors + 1)
            pair = Tsumo(self.rng.choice(palette), self.rng.choice(palette))
        else:
            pair = Tsumo(self._draw_color(), self._draw_color())
        self._pairs_drawn += 1
        return pair


class TsumoQueue:
    """Fixed-length queue of upcoming pairs.

    The tail holds the pair of the piece currently in play; ``consume`` drops
    it and refills at the head, so the next pair is always ``items[-2]``.
    """

    def __init__(self, bag: ColorBag, depth: int, preset: Optional[List[Tsumo]] = None) -> None:
        self.bag = bag
        self.depth = int(depth)
        self._items: Deque[Tsumo] = deque()
        self.reset(preset)

    def reset(self, preset: Optional[List[Tsumo]] = None) -> None:
        """Fill the queue; ``preset`` lists pairs in play order and is used first."""
        self._items.clear()
        upcoming = list(preset or [])
        for _ in range(self.depth):
            self._items.appendleft(upcoming.pop(0) if upcoming else self.bag.draw())
        self._pending = upcoming

    def _next_pair(self) -> Tsumo:
        if self._pending:
            return self._pending.pop(0)
        return self.bag.draw()

    def current(self) -> Tsumo:
        return self._items[-1]

    def peek_next(self) -> Optional[Tsumo]:
        if len(self._items) < 2:
            return None
        return self._items[-2]

    def consume(self) -> Tsumo:
        used = self._items.pop()
        self._items.appendleft(self._next_pair())
        return used

    def items(self) -> List[Tsumo]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
