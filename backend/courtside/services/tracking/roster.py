from collections.abc import Mapping
from typing import Dict, Iterator, Tuple


class Roster(Mapping):
    """Read-only player id -> team name mapping for one game."""

    def __init__(self, teams: Tuple[str, str], players: Dict[int, str]):
        self.teams = tuple(teams)
        self._players = dict(players)

    def __getitem__(self, player_id: int) -> str:
        return self._players[player_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def opponent_of(self, team: str) -> str:
        first, second = self.teams
        return second if team == first else first

    def __repr__(self):
        return f'Roster(teams={self.teams!r}, players={len(self._players)})'
