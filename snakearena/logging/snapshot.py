"""
Replay recorder for Snake Arena.

Records game snapshots frame by frame and saves them as JSON replays,
one file per game, for later playback in the results viewer.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from snakearena.core.types import Snapshot


class ReplayRecorder:
    """
    Records and stores per-game replays.

    Each replay is saved to: {output_dir}/replays/game_{N:04d}.json

    Usage:
        recorder = ReplayRecorder(run_dir, every_n_ticks=5)
        recorder.attach(game, game_index)   # hooks game.on_tick
        game.run_to_completion()
        recorder.save(game_index)

    Attributes:
        output_dir: Base output directory for the run.
        every_n_ticks: Keep every n-th frame (the final frame is always kept).
    """

    def __init__(self, output_dir: str | Path, every_n_ticks: int = 1):
        self.output_dir = Path(output_dir)
        self.replay_dir = self.output_dir / "replays"
        self.replay_dir.mkdir(parents=True, exist_ok=True)
        self.every_n_ticks = max(1, every_n_ticks)
        self._frames: dict[int, list[dict]] = {}
        self._seeds: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def attach(self, game, game_index: int) -> None:
        """Record the game's initial state and every tick from now on."""
        self._frames[game_index] = [game.get_state().to_dict()]
        self._seeds[game_index] = game.seed

        def on_tick(snapshot: Snapshot, _game) -> None:
            self.record(game_index, snapshot)

        game.on_tick = on_tick

    def record(self, game_index: int, snapshot: Snapshot) -> None:
        frames = self._frames.setdefault(game_index, [])
        if snapshot.is_over or snapshot.frame % self.every_n_ticks == 0:
            frames.append(snapshot.to_dict())

    def frames(self, game_index: int) -> list[dict]:
        return list(self._frames.get(game_index, []))

    def is_recording(self, game_index: int) -> bool:
        """Whether the game was attached and not yet saved."""
        return game_index in self._frames

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def _path(self, game_index: int) -> Path:
        return self.replay_dir / f"game_{game_index:04d}.json"

    def save(self, game_index: int, extra: Optional[dict] = None) -> Path:
        """
        Write a recorded game to disk and drop it from memory.

        Args:
            game_index: Game to save.
            extra: Optional metadata merged into the replay.

        Returns:
            Path to the saved replay file.
        """
        replay = {
            "game_index": game_index,
            "seed": self._seeds.get(game_index),
            "every_n_ticks": self.every_n_ticks,
            "frames": self._frames.pop(game_index, []),
        }
        if extra:
            replay.update(extra)

        file_path = self._path(game_index)
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(replay, f, ensure_ascii=False)

        self._seeds.pop(game_index, None)
        return file_path

    def load(self, game_index: int) -> dict:
        """
        Load a saved replay.

        Raises:
            FileNotFoundError: If the replay doesn't exist.
        """
        file_path = self._path(game_index)
        if not file_path.exists():
            raise FileNotFoundError(f"Replay not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def list_replays(self) -> list[int]:
        """Sorted game indices with a saved replay."""
        indices = []
        for p in self.replay_dir.glob("game_*.json"):
            try:
                indices.append(int(p.stem.split("_")[1]))
            except (IndexError, ValueError):
                continue
        return sorted(indices)

