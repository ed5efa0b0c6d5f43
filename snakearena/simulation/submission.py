"""
Leaderboard submission record.

Packages an algorithm's source with its benchmark result using the
leaderboard's field names and limits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from snakearena.simulation.benchmark import BenchmarkResult


MAX_NAME_LENGTH = 50
MAX_CODE_LENGTH = 100_000
MAX_AVG_SCORE = 1_000_000


def count_lines_of_code(source: str) -> int:
    """Lines that are not blank and not comments."""
    count = 0
    for line in source.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            count += 1
    return count


@dataclass
class Submission:
    """One leaderboard entry."""
    name: str
    source_code: str
    lines_of_code: int
    avg_score: int
    max_score: int
    survival_rate: int
    games_played: int

    @classmethod
    def from_benchmark(cls, name: str, source: str, result: BenchmarkResult) -> Submission:
        """Build a submission; averages are rounded for display."""
        return cls(
            name=name.strip(),
            source_code=source,
            lines_of_code=count_lines_of_code(source),
            avg_score=round(result.avg_score),
            max_score=result.max_score,
            survival_rate=round(result.survival_rate),
            games_played=result.num_games,
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.name:
            errors.append("name must not be empty")
        if len(self.name) > MAX_NAME_LENGTH:
            errors.append(f"name must be at most {MAX_NAME_LENGTH} characters, got {len(self.name)}")
        if not self.source_code:
            errors.append("code must not be empty")
        if len(self.source_code) > MAX_CODE_LENGTH:
            errors.append(f"code must be at most {MAX_CODE_LENGTH} characters, got {len(self.source_code)}")
        if not (0 <= self.avg_score <= MAX_AVG_SCORE):
            errors.append(f"avg_score must be in [0, {MAX_AVG_SCORE}], got {self.avg_score}")
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Leaderboard payload."""
        return {
            "name": self.name,
            "code": self.source_code,
            "linesOfCode": self.lines_of_code,
            "avgScore": self.avg_score,
            "maxScore": self.max_score,
            "survivalRate": self.survival_rate,
            "gamesPlayed": self.games_played,
        }
