from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .actions import ActionButton, WeightedAction, find_action
from .hands import ALL_HANDS, HandClass, combinations_of, total_combinations

UNASSIGNED = 'unassigned'


def combos_by_action(hands: Mapping[HandClass, str]) -> Dict[str, int]:
    """Combination count per assigned action id, plus the unassigned remainder."""
    out: Dict[str, int] = {}
    assigned = 0
    for hand in ALL_HANDS:
        action_id = hands.get(hand)
        if not action_id:
            continue
        n = combinations_of(hand)
        out[action_id] = out.get(action_id, 0) + n
        assigned += n
    out[UNASSIGNED] = total_combinations() - assigned
    return out


def blended_combos(hands: Mapping[HandClass, str], actions: Sequence[ActionButton]) -> Dict[str, float]:
    """Like combos_by_action, but weighted buttons split their combos between both sides."""
    out: Dict[str, float] = {}
    for action_id, n in combos_by_action(hands).items():
        action = find_action(action_id, actions)
        if isinstance(action, WeightedAction):
            share = max(0, min(100, action.weight)) / 100.0
            out[action.action1_id] = out.get(action.action1_id, 0.0) + n * share
            out[action.action2_id] = out.get(action.action2_id, 0.0) + n * (1.0 - share)
        else:
            out[action_id] = out.get(action_id, 0.0) + n
    return out


def range_percentages(hands: Mapping[HandClass, str], actions: Sequence[ActionButton]) -> Dict[str, float]:
    """Percent of all 1326 combos per action, rounded to one decimal."""
    total = total_combinations()
    return {k: round(v * 100.0 / total, 1) for k, v in blended_combos(hands, actions).items()}


# ---------- training statistics ----------

def session_accuracy(correct: int, total: int) -> str:
    if total == 0:
        return '0.0'
    return f"{correct * 100.0 / total:.1f}"


def format_session_duration(ms: int) -> str:
    minutes = int(ms) // 60000
    seconds = (int(ms) % 60000) // 1000
    return f"{minutes}:{seconds:02d}"


def format_long_duration(ms: int) -> str:
    total_seconds = int(ms) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    parts: List[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if seconds > 0 or total_seconds == 0:
        parts.append(f"{seconds}s")
    return ' '.join(parts)


def training_history(stats: Iterable[Mapping[str, Any]], training_id: str) -> List[Mapping[str, Any]]:
    """Sessions of one training, newest first."""
    rows = [s for s in stats if s.get("trainingId") == training_id]
    return sorted(rows, key=lambda s: int(s.get("timestamp", 0)), reverse=True)


def training_summary(stats: Iterable[Mapping[str, Any]], training_id: str) -> Optional[Dict[str, Any]]:
    """Aggregate accuracy, hands played and average session time; None before the first session."""
    rows = training_history(stats, training_id)
    if not rows:
        return None
    sessions = len(rows)
    hands = sum(int(s.get("totalQuestions", 0)) for s in rows)
    correct = sum(int(s.get("correctAnswers", 0)) for s in rows)
    total_time = sum(int(s.get("duration", 0)) for s in rows)
    return {
        "accuracy": session_accuracy(correct, hands),
        "hands": hands,
        "time": format_session_duration(total_time // sessions),
        "sessions": sessions,
    }


def describe_training(training: Mapping[str, Any]) -> Optional[str]:
    subtype = training.get("subtype")
    if subtype == 'all-hands':
        return 'All hands'
    if subtype == 'border-check':
        # older records have no expansion level
        level = training.get("borderExpansionLevel")
        return f"Range border (+{level if level is not None else 0})"
    return None
