from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

HandClass = str  # 'AA', 'AKs', 'AKo'
Cell = Tuple[int, int]

RANKS: Tuple[str, ...] = ('A', 'K', 'Q', 'J', 'T', '9', '8', '7', '6', '5', '4', '3', '2')

PAIR = 'pair'
SUITED = 'suited'
OFFSUIT = 'offsuit'

_COMBOS: Dict[str, int] = {PAIR: 6, SUITED: 4, OFFSUIT: 12}


def build_table(ranks: Sequence[str] = RANKS) -> Tuple[Tuple[HandClass, ...], ...]:
    """Builds the 13x13 hand table, ranks ordered highest to lowest.

    Diagonal cells are pairs, the upper triangle holds suited hands and the lower
    triangle offsuit hands. Offsuit names always start with the stronger rank
    (the lower index), so cell (1, 0) is 'AKo' and never 'KAo'.
    """
    rows: List[Tuple[HandClass, ...]] = []
    for i, r1 in enumerate(ranks):
        row: List[HandClass] = []
        for j, r2 in enumerate(ranks):
            if i == j:
                row.append(f"{r1}{r1}")
            elif i < j:
                row.append(f"{r1}{r2}s")
            else:
                row.append(f"{r2}{r1}o")
        rows.append(tuple(row))
    return tuple(rows)


HANDS = build_table()
ALL_HANDS: Tuple[HandClass, ...] = tuple(h for row in HANDS for h in row)
_CELLS: Dict[HandClass, Cell] = {h: (r, c) for r, row in enumerate(HANDS) for c, h in enumerate(row)}


def hand_kind(hand: str) -> Optional[str]:
    """Classifies an identifier by shape; None when it is not shaped like a hand."""
    if len(hand) == 2 and hand[0] == hand[1]:
        return PAIR
    if len(hand) == 3 and hand[0] != hand[1]:
        if hand.endswith('s'):
            return SUITED
        if hand.endswith('o'):
            return OFFSUIT
    return None


def combinations_of(hand: str) -> int:
    """Number of two-card deals behind a hand class: 6 pair, 4 suited, 12 offsuit."""
    kind = hand_kind(hand)
    if kind is None:
        return 0
    return _COMBOS[kind]


def total_combinations(table: Iterable[Iterable[HandClass]] = HANDS) -> int:
    return sum(combinations_of(h) for row in table for h in row)


def is_hand(hand: object) -> bool:
    return isinstance(hand, str) and hand in _CELLS


def cell_of(hand: HandClass) -> Optional[Cell]:
    return _CELLS.get(hand)


def pretty(assignment: Optional[Mapping[HandClass, str]] = None, width: int = 4) -> str:
    """Text rendering of the matrix; assigned cells show the first letter of the action id."""
    marks = assignment or {}
    lines: List[str] = []
    for row in HANDS:
        cells: List[str] = []
        for hand in row:
            action_id = marks.get(hand)
            if action_id:
                cells.append(f"{hand}:{action_id[0].upper()}".ljust(width + 2))
            else:
                cells.append(hand.ljust(width + 2))
        lines.append("".join(cells).rstrip())
    return "\n".join(lines)
