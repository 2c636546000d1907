from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

FOLD_ID = 'fold'
FOLD_COLOR = '#6b7280'
NEUTRAL_COLOR = '#ffffff'

SIMPLE = 'simple'
WEIGHTED = 'weighted'

FONT_COLORS = ('white', 'black')
DEFAULT_FONT_COLOR = 'white'
DEFAULT_FONT_SIZE = 12
WEIGHTED_TEXT_COLOR = 'white'
ADAPTIVE = 'adaptive'


class ActionError(ValueError):
    """Raised when an action-button collection is not usable by the matrix."""


@dataclass(frozen=True)
class SimpleAction:
    """A user-defined action with one solid color and its font rules."""
    id: str
    name: str
    color: str
    is_font_adaptive: bool = True
    font_size: Optional[int] = None  # only used when is_font_adaptive is False
    font_color: str = DEFAULT_FONT_COLOR
    type: str = field(default=SIMPLE, init=False)


@dataclass(frozen=True)
class WeightedAction:
    """A blend of two other actions; weight is the percentage given to action1."""
    id: str
    name: str
    action1_id: str
    action2_id: str
    weight: int
    type: str = field(default=WEIGHTED, init=False)


ActionButton = Union[SimpleAction, WeightedAction]

DEFAULT_ACTIONS: Tuple[ActionButton, ...] = (
    SimpleAction(id='raise', name='Raise', color='#8b5cf6', is_font_adaptive=True, font_size=DEFAULT_FONT_SIZE),
)


@dataclass(frozen=True)
class CellStyle:
    """Render descriptor of one matrix cell.

    kind is 'empty', 'solid' or 'split'. For 'split' cells the fill is two
    segments, `color` on the left up to `split` percent and `color2` on the right.
    font_size is ADAPTIVE or a pixel size.
    """
    kind: str
    color: Optional[str] = None
    color2: Optional[str] = None
    split: Optional[int] = None
    text_color: Optional[str] = None
    font_size: Union[int, str] = ADAPTIVE

    def css(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        if self.kind == 'solid':
            out['background-color'] = str(self.color)
        elif self.kind == 'split':
            out['background'] = (
                f"linear-gradient(to right, {self.color} {self.split}%, {self.color2} {self.split}%)"
            )
            out['border'] = 'none'
        if self.text_color:
            out['color'] = self.text_color
        if self.font_size != ADAPTIVE:
            out['font-size'] = f"{self.font_size}px"
        return out

    def to_json(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "color": self.color,
            "color2": self.color2,
            "split": self.split,
            "textColor": self.text_color,
            "fontSize": self.font_size,
        }


EMPTY_STYLE = CellStyle(kind='empty')


def find_action(action_id: Optional[str], actions: Iterable[ActionButton]) -> Optional[ActionButton]:
    if not action_id:
        return None
    for action in actions:
        if action.id == action_id:
            return action
    return None


def color_of(action_id: str, actions: Iterable[ActionButton]) -> str:
    """Fill color for an action id used as one side of a weighted blend."""
    if action_id == FOLD_ID:
        return FOLD_COLOR
    action = find_action(action_id, actions)
    if isinstance(action, SimpleAction):
        return action.color
    # weighted buttons never serve as a blend side
    return NEUTRAL_COLOR


def resolve_style(hand: str, assignment: Mapping[str, str], actions: Sequence[ActionButton]) -> CellStyle:
    """Computes how a hand cell is painted from its assigned action."""
    action = find_action(assignment.get(hand), actions)
    if action is None:
        return EMPTY_STYLE
    if isinstance(action, SimpleAction):
        font_size: Union[int, str] = ADAPTIVE
        if not action.is_font_adaptive and action.font_size:
            font_size = int(action.font_size)
        return CellStyle(
            kind='solid',
            color=action.color,
            text_color=action.font_color or DEFAULT_FONT_COLOR,
            font_size=font_size,
        )
    if isinstance(action, WeightedAction):
        return CellStyle(
            kind='split',
            color=color_of(action.action1_id, actions),
            color2=color_of(action.action2_id, actions),
            split=_clamp_weight(action.weight),
            text_color=WEIGHTED_TEXT_COLOR,
        )
    return EMPTY_STYLE


def _clamp_weight(weight: Any) -> int:
    try:
        w = int(weight)
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, w))


# ---------- JSON records ----------

def action_to_json(action: ActionButton) -> Dict[str, Any]:
    if isinstance(action, WeightedAction):
        return {
            "type": WEIGHTED,
            "id": action.id,
            "name": action.name,
            "action1Id": action.action1_id,
            "action2Id": action.action2_id,
            "weight": action.weight,
        }
    out: Dict[str, Any] = {
        "type": SIMPLE,
        "id": action.id,
        "name": action.name,
        "color": action.color,
        "isFontAdaptive": action.is_font_adaptive,
        "fontColor": action.font_color,
    }
    if action.font_size is not None:
        out["fontSize"] = action.font_size
    return out


def action_from_json(obj: Mapping[str, Any]) -> ActionButton:
    """Parses one stored action record.

    Records written before weighted buttons existed carry no 'type'; they are
    read as simple buttons with adaptive white text and a 12px fallback size.
    """
    kind = obj.get("type")
    if kind is None:
        return SimpleAction(
            id=str(obj["id"]),
            name=str(obj.get("name", "")),
            color=str(obj.get("color", NEUTRAL_COLOR)),
            is_font_adaptive=True,
            font_size=DEFAULT_FONT_SIZE,
            font_color=DEFAULT_FONT_COLOR,
        )
    if kind == SIMPLE:
        font_size = obj.get("fontSize")
        return SimpleAction(
            id=str(obj["id"]),
            name=str(obj.get("name", "")),
            color=str(obj.get("color", NEUTRAL_COLOR)),
            is_font_adaptive=bool(obj.get("isFontAdaptive", True)),
            font_size=int(font_size) if font_size is not None else None,
            font_color=str(obj.get("fontColor") or DEFAULT_FONT_COLOR),
        )
    if kind == WEIGHTED:
        return WeightedAction(
            id=str(obj["id"]),
            name=str(obj.get("name", "")),
            action1_id=str(obj["action1Id"]),
            action2_id=str(obj["action2Id"]),
            weight=int(obj.get("weight", 50)),
        )
    raise ActionError(f"unknown action type: {kind!r}")


def actions_from_json(items: Iterable[Mapping[str, Any]]) -> List[ActionButton]:
    return [action_from_json(it) for it in items]


def validate_actions(actions: Sequence[ActionButton], check_references: bool = True) -> None:
    """Checks a collection before it is handed to the matrix.

    Ids must be unique and must not use the reserved fold id, simple buttons need
    a known font color, and weighted buttons need a weight in [0, 100] and two
    references that resolve to fold or a simple button of the collection.
    Reference checks can be skipped for stored data, which renders dangling
    references with the neutral color instead.
    """
    seen: Set[str] = set()
    for action in actions:
        if not action.id:
            raise ActionError("action id must not be empty")
        if action.id == FOLD_ID:
            raise ActionError("'fold' is reserved and cannot be stored as an action")
        if action.id in seen:
            raise ActionError(f"duplicate action id: {action.id}")
        seen.add(action.id)
    simple_ids = {a.id for a in actions if isinstance(a, SimpleAction)}
    for action in actions:
        if isinstance(action, SimpleAction):
            if action.font_color not in FONT_COLORS:
                raise ActionError(f"{action.id}: font color must be one of {FONT_COLORS}")
            continue
        if not 0 <= action.weight <= 100:
            raise ActionError(f"{action.id}: weight must be within 0..100")
        if not check_references:
            continue
        for ref in (action.action1_id, action.action2_id):
            if ref != FOLD_ID and ref not in simple_ids:
                raise ActionError(f"{action.id}: unresolved action reference {ref!r}")


def dangling_references(actions: Sequence[ActionButton]) -> List[Tuple[str, str]]:
    """(weighted id, missing id) pairs; these cells render with the neutral color."""
    simple_ids = {a.id for a in actions if isinstance(a, SimpleAction)}
    out: List[Tuple[str, str]] = []
    for action in actions:
        if not isinstance(action, WeightedAction):
            continue
        for ref in (action.action1_id, action.action2_id):
            if ref != FOLD_ID and ref not in simple_ids:
                out.append((action.id, ref))
    return out
