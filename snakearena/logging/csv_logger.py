"""
CSV Logger for Snake Arena.

Writes one row per benchmark game to a CSV file.
Supports incremental appending (writes header on first row, then appends).
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional

from snakearena.simulation.benchmark import GameResult


GAME_COLUMNS = [
    "game_index",
    "seed",
    "score",
    "frames",
    "length",
    "reason",
    "reason_detail",
    "survived",
]


class CSVLogger:
    """
    Logs per-game results to a CSV file.

    Usage:
        logger = CSVLogger("runs/my_run/games.csv")
        logger.log_game(game_result)      # append one row
        logger.log_all(result.games)      # write all rows at once

    Attributes:
        file_path: Path to the CSV file.
        columns: Ordered list of column names.
    """

    def __init__(
        self,
        file_path: str | Path,
        columns: Optional[list[str]] = None,
    ):
        self.file_path = Path(file_path)
        self.columns = columns or list(GAME_COLUMNS)
        self._header_written = False

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def _ensure_header(self) -> None:
        if self._header_written:
            return

        if self.file_path.exists() and self.file_path.stat().st_size > 0:
            self._header_written = True
            return

        with open(self.file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns, extrasaction="ignore")
            writer.writeheader()

        self._header_written = True

    def log_row(self, row: dict) -> None:
        """Append a single row."""
        self._ensure_header()

        with open(self.file_path, "a", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns, extrasaction="ignore")
            writer.writerow(row)

    def log_game(self, game: GameResult) -> None:
        self.log_row(game.to_row())

    def log_all(self, games: list[GameResult]) -> None:
        """
        Write all game rows at once (overwrites existing file).

        Args:
            games: Results in game order.
        """
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns, extrasaction="ignore")
            writer.writeheader()
            for game in games:
                writer.writerow(game.to_row())

        self._header_written = True

    def read_back(self) -> list[dict]:
        """Read back all rows (values as strings)."""
        if not self.file_path.exists():
            return []

        with open(self.file_path, "r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            return list(reader)
