"""Type hints used in Table Tennis Championship."""

from typing import List, Literal, Tuple

# Lifecycle / phase literals
Status = Literal["created", "groups", "knockout", "completed"]
Phase = Literal["groups", "knockout"]
Division = Literal["main", "second"]
SourceType = Literal["group", "knockout"]

# Which side of a set or match
Side = Literal["player1", "player2"]

# Plain score lines for quick construction, e.g. [(11, 9), (11, 7), (11, 5)]
ScoreLines = List[Tuple[int, int]]
