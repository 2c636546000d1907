from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from .actions import FOLD_ID, CellStyle, resolve_style
from .hands import HANDS, HandClass, combinations_of
from .selection import RELEASE_EVENTS, GridGeometry, ReleaseHub, SelectionEngine
from .store import RangeStore

PRESS_EVENTS = ('mousedown', 'touchstart')
ENTER_EVENTS = ('mouseenter',)


class HandMatrix:
    """Headless 13x13 matrix bound to one range of a store.

    Every render re-reads the range's hand map and the action list from the
    store; mutations produced by the selection engine are written back to the
    store straight away.
    """

    def __init__(
        self,
        store: RangeStore,
        range_id: str,
        active_action_id: Optional[str] = None,
        read_only: bool = False,
        background: bool = False,
        geometry: Optional[GridGeometry] = None,
    ) -> None:
        self.store = store
        self.range_id = range_id
        if active_action_id is None:
            active_action_id = store.actions[0].id if store.actions else FOLD_ID
        self.active_action_id = active_action_id
        self.read_only = read_only
        self.background = background  # non-interactive preview
        self.engine = SelectionEngine(self._on_mutation, geometry)
        self._hub: Optional[ReleaseHub] = None
        self.render()

    def render(self) -> None:
        hands = self.store.range(self.range_id).hands
        self.engine.update(hands, self.active_action_id, read_only=self.read_only, disabled=self.background)

    def set_active_action(self, action_id: str) -> None:
        self.active_action_id = action_id
        self.render()

    def set_mode(self, read_only: Optional[bool] = None, background: Optional[bool] = None) -> None:
        if read_only is not None:
            self.read_only = read_only
        if background is not None:
            self.background = background
        self.render()

    @contextmanager
    def mounted(self, hub: ReleaseHub) -> Iterator['HandMatrix']:
        with self.engine.mounted(hub):
            self._hub = hub
            try:
                yield self
            finally:
                self._hub = None

    def _on_mutation(self, hand: HandClass, mode: str) -> None:
        self.store.apply_mutation(self.range_id, hand, mode, self.active_action_id)
        self.render()

    # ---------- input ----------

    def dispatch(self, event_type: str, hand: Optional[str] = None, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        """Feeds one raw input event to the engine; False for unknown event types or events missing their cell/point."""
        self.render()
        if event_type in RELEASE_EVENTS:
            if self._hub is not None:
                self._hub.dispatch(event_type)
            else:
                self.engine.release()
        elif event_type in PRESS_EVENTS + ENTER_EVENTS + ('click',):
            if hand is None:
                return False
            if event_type in PRESS_EVENTS:
                self.engine.press(str(hand))
            elif event_type in ENTER_EVENTS:
                self.engine.enter(str(hand))
            else:
                self.engine.click(str(hand))
        elif event_type == 'touchmove':
            if x is None or y is None:
                return False
            self.engine.touch_move(float(x), float(y))
        else:
            return False
        return True

    # ---------- output ----------

    def style_of(self, hand: HandClass) -> CellStyle:
        return resolve_style(hand, self.store.range(self.range_id).hands, self.store.actions)

    def rows(self) -> List[List[Dict[str, Any]]]:
        hands = self.store.range(self.range_id).hands
        out: List[List[Dict[str, Any]]] = []
        for row in HANDS:
            cells: List[Dict[str, Any]] = []
            for hand in row:
                style = resolve_style(hand, hands, self.store.actions)
                cells.append({
                    "hand": hand,
                    "combos": combinations_of(hand),
                    "action": hands.get(hand),
                    "style": style.to_json(),
                    "css": style.css(),
                })
            out.append(cells)
        return out
