"""High-score table shown alongside the game."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

TABLE_SIZE = 5
LABEL_LENGTH = 3


@dataclass
class HighScoreTable:
    """Best ``size`` (score, label) pairs, highest first."""

    size: int = TABLE_SIZE
    entries: List[Tuple[int, str]] = field(default_factory=list)
    high_score: int = 0

    def qualifies(self, score: int) -> bool:
        if score <= 0:
            return False
        return len(self.entries) < self.size or score > self.entries[-1][0]

    def submit(self, score: int, label: str) -> bool:
        """Record ``score`` under ``label``; returns ``True`` if it was ranked.

        Labels are upper-cased and cut to ``LABEL_LENGTH`` characters.  Equal
        scores keep their arrival order.
        """

        self.high_score = max(self.high_score, score)
        if not self.qualifies(score):
            return False
        label = label.strip().upper()[:LABEL_LENGTH]
        position = len(self.entries)
        for i, (existing, _) in enumerate(self.entries):
            if score > existing:
                position = i
                break
        self.entries.insert(position, (score, label))
        del self.entries[self.size :]
        return True

    def top(self, n: int | None = None) -> List[Tuple[int, str]]:
        return list(self.entries if n is None else self.entries[:n])
