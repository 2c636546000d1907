from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from .hands import HANDS, HandClass, is_hand

logger = logging.getLogger(__name__)

SELECT = 'select'
DESELECT = 'deselect'
RELEASE_EVENTS = ('mouseup', 'touchend', 'touchcancel')

MutationCallback = Callable[[HandClass, str], None]
ReleaseListener = Callable[[str], None]


def toggle_mode(assignment: Mapping[HandClass, str], hand: HandClass, active_action_id: str) -> str:
    """Pressing a cell that already carries the active action clears it; anything else paints it."""
    return DESELECT if assignment.get(hand) == active_action_id else SELECT


def apply_mutation(
    assignment: Mapping[HandClass, str],
    hand: HandClass,
    mode: str,
    active_action_id: str,
) -> Dict[HandClass, str]:
    """Returns the mapping after one (hand, mode) mutation.

    Deselect only clears the active action; a cell owned by another action is
    left untouched.
    """
    out = dict(assignment)
    if not is_hand(hand):
        return out
    if mode == SELECT:
        out[hand] = active_action_id
    elif mode == DESELECT and out.get(hand) == active_action_id:
        del out[hand]
    return out


@dataclass
class SelectionSession:
    """Bookkeeping of one press-to-release gesture."""
    mode: str
    origin: HandClass
    last_hand_entered: HandClass
    last_hand_mutated: Optional[HandClass]
    dragged: bool = False  # entered a cell other than the origin


@dataclass(frozen=True)
class GridGeometry:
    """Screen placement of the rendered 13x13 cells, used to hit-test touch moves."""
    left: float = 0.0
    top: float = 0.0
    cell_size: float = 40.0
    gap: float = 0.0

    def cell_rect(self, row: int, col: int) -> Tuple[float, float, float, float]:
        pitch = self.cell_size + self.gap
        x0 = self.left + col * pitch
        y0 = self.top + row * pitch
        return x0, y0, x0 + self.cell_size, y0 + self.cell_size

    def hit_test(self, x: float, y: float) -> Optional[HandClass]:
        pitch = self.cell_size + self.gap
        if pitch <= 0:
            return None
        col = int(math.floor((x - self.left) / pitch))
        row = int(math.floor((y - self.top) / pitch))
        if not (0 <= row < len(HANDS) and 0 <= col < len(HANDS[row])):
            return None
        x0, y0, x1, y1 = self.cell_rect(row, col)
        # points inside a gap belong to no cell
        if x >= x1 or y >= y1 or x < x0 or y < y0:
            return None
        return HANDS[row][col]


class ReleaseHub:
    """Window-level pointer/touch release notifications.

    Listeners registered here see every mouse-up, touch-end and touch-cancel,
    including those that happen outside the matrix.
    """

    def __init__(self) -> None:
        self._listeners: List[ReleaseListener] = []

    def add_listener(self, listener: ReleaseListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ReleaseListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, event_type: str) -> None:
        if event_type not in RELEASE_EVENTS:
            return
        for listener in list(self._listeners):
            listener(event_type)


class SelectionEngine:
    """Turns press/enter/release/click input into (hand, mode) mutations.

    The engine is Idle until a press starts a drag. The drag mode is decided once
    at press time and every newly entered cell receives that mode. Inputs that
    make no sense in the current state, or name unknown hands, are ignored.
    """

    def __init__(self, on_mutation: MutationCallback, geometry: Optional[GridGeometry] = None) -> None:
        self._on_mutation = on_mutation
        self.geometry = geometry or GridGeometry()
        self.assignment: Mapping[HandClass, str] = {}
        self.active_action_id = ''
        self.read_only = False
        self.disabled = False
        self.session: Optional[SelectionSession] = None
        # finished gesture whose trailing click has not arrived yet
        self._settled: Optional[SelectionSession] = None

    # ---------- props ----------

    def update(
        self,
        assignment: Mapping[HandClass, str],
        active_action_id: str,
        read_only: bool = False,
        disabled: bool = False,
    ) -> None:
        """Takes the current render inputs from the owning store."""
        self.assignment = assignment
        self.active_action_id = active_action_id
        self.read_only = bool(read_only)
        self.disabled = bool(disabled)
        if not self.interactive:
            self._reset()

    @property
    def interactive(self) -> bool:
        return not (self.read_only or self.disabled)

    @property
    def state(self) -> str:
        return 'dragging' if self.session is not None else 'idle'

    @property
    def mode(self) -> Optional[str]:
        return self.session.mode if self.session is not None else None

    # ---------- transitions ----------

    def press(self, hand: HandClass) -> None:
        if not self.interactive or not is_hand(hand):
            return
        if self.session is not None:
            logger.debug("press on %s while dragging; closing previous drag", hand)
            self.release()
        mode = toggle_mode(self.assignment, hand, self.active_action_id)
        self.session = SelectionSession(mode=mode, origin=hand, last_hand_entered=hand, last_hand_mutated=hand)
        self._settled = None
        logger.debug("drag start on %s (%s)", hand, mode)
        self._emit(hand, mode)

    def enter(self, hand: HandClass) -> None:
        if self.session is None:
            # the pointer moved on, so no click for the last gesture will follow
            self._settled = None
            return
        if not self.interactive or not is_hand(hand):
            return
        s = self.session
        s.last_hand_entered = hand
        if hand != s.origin:
            s.dragged = True
        if hand == s.last_hand_mutated:
            return
        s.last_hand_mutated = hand
        self._emit(hand, s.mode)

    def release(self) -> None:
        if self.session is None:
            return
        logger.debug("drag end at %s", self.session.last_hand_entered)
        self._settled = self.session
        self.session = None

    def click(self, hand: HandClass) -> None:
        if not self.interactive or not is_hand(hand):
            return
        gesture = self.session or self._settled
        self._settled = None
        if gesture is not None and gesture.origin == hand:
            # a drag already painted its cells; a plain press already emitted
            return
        self._emit(hand, toggle_mode(self.assignment, hand, self.active_action_id))

    def touch_move(self, x: float, y: float) -> None:
        if self.session is None or not self.interactive:
            return
        hand = self.geometry.hit_test(x, y)
        if hand is not None:
            self.enter(hand)

    def handle_release_event(self, event_type: str) -> None:
        self.release()

    # ---------- lifecycle ----------

    @contextmanager
    def mounted(self, hub: ReleaseHub) -> Iterator['SelectionEngine']:
        """Keeps the global release listener registered for the mount lifetime."""
        hub.add_listener(self.handle_release_event)
        try:
            yield self
        finally:
            hub.remove_listener(self.handle_release_event)
            self._reset()

    def _reset(self) -> None:
        self.session = None
        self._settled = None

    def _emit(self, hand: HandClass, mode: str) -> None:
        self._on_mutation(hand, mode)
