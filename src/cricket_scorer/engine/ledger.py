"""Ball ledger and undo.

The ledger is the single source of truth for a match: an ordered list of
entries with strictly increasing sequence numbers. Match state is always
``replay()`` of the ledger.
"""

from typing import List, Optional, Sequence

from ..schemas.deliveries import AcceptedBall
from ..schemas.matches import MatchCreate
from ..schemas.state import MatchState
from .errors import NothingToUndo, UndoNotPermitted
from .state_machine import apply_entry, new_match


class BallLedger:
    """Ordered ledger entries of one match."""

    def __init__(self, match_id: int, setup: MatchCreate, entries: Optional[Sequence] = None):
        self.match_id = match_id
        self.setup = setup
        self.entries: List = list(entries or [])

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def last_sequence(self) -> int:
        return self.entries[-1].sequence if self.entries else 0

    def stamp(self, entry):
        """Assign the next sequence number to a new entry."""
        entry.sequence = self.last_sequence + 1
        return entry

    def append(self, entry) -> None:
        if entry.sequence <= self.last_sequence:
            raise ValueError(
                f"Ledger for match {self.match_id} is at sequence {self.last_sequence}, got {entry.sequence}"
            )
        self.entries.append(entry)

    def deliveries(self, innings_number: Optional[int] = None) -> List[AcceptedBall]:
        return [
            entry.ball for entry in self.entries
            if entry.kind == "delivery" and (innings_number is None or entry.innings_number == innings_number)
        ]

    def last_delivery_index(self, innings_number: int) -> Optional[int]:
        for index in range(len(self.entries) - 1, -1, -1):
            entry = self.entries[index]
            if entry.kind == "delivery" and entry.innings_number == innings_number:
                return index
        return None

    def without_last_delivery(self, innings_number: int) -> List:
        """Entries left after removing the innings' last delivery and everything after it.

        Only the most recent delivery of the match may be removed; a delivery
        in a later innings makes the request invalid.
        """
        index = self.last_delivery_index(innings_number)
        if index is None:
            raise NothingToUndo(self.match_id, innings_number)
        later = [e for e in self.entries[index + 1:] if e.kind == "delivery"]
        if later:
            raise UndoNotPermitted(
                f"Innings {later[0].innings_number} of match {self.match_id} has deliveries after "
                f"innings {innings_number}'s last ball; only the latest delivery can be undone"
            )
        return self.entries[:index]

    def truncate(self, length: int) -> List:
        """Drop every entry from position ``length`` on and return them."""
        removed = self.entries[length:]
        del self.entries[length:]
        return removed

    def replay(self, entries: Optional[Sequence] = None) -> MatchState:
        """Fold entries (default: the whole ledger) over the initial match state."""
        state = new_match(self.match_id, self.setup)
        for entry in self.entries if entries is None else entries:
            apply_entry(state, entry)
        return state

    def recent_balls(self, innings_number: int, count: int) -> List[AcceptedBall]:
        if count <= 0:
            return []
        return self.deliveries(innings_number)[-count:]
