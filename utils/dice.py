import random, re
from typing import Any, List, Mapping, Optional, Tuple

__all__ = ["roll_dice", "parse_dice_notation", "substitute_roll_data", "DiceRoller"]

_DIE_RE = re.compile(r"^(\d*)d(\d+)$", re.I)
_TERM_RE = re.compile(r"([+-]?)\s*(\d*d\d+|\d+)", re.I)
_DATA_REF_RE = re.compile(r"@([A-Za-z_][\w.]*)")

def parse_dice_notation(expr: str) -> Tuple[int, int]:
    expr = str(expr).strip()
    m = _DIE_RE.match(expr)
    if not m:
        raise ValueError(f"Unsupported dice expression: {expr}")
    n = int(m.group(1)) if m.group(1) else 1
    s = int(m.group(2))
    if s <= 0:
        raise ValueError(f"Unsupported dice expression: {expr}")
    return n, s

def roll_dice(expr: str, force: Optional[int] = None, rng: Optional[random.Random] = None) -> Tuple[int, List[int]]:
    """Roll a single term: "NdS" or a flat integer."""
    rng = rng or random
    expr = str(expr).strip()
    if _DIE_RE.match(expr):
        n, s = parse_dice_notation(expr)
        if force is not None:
            # Force per-die result (clamped to [1..s])
            r = max(1, min(int(force), s))
            rolls = [r for _ in range(n)]
        else:
            rolls = [rng.randint(1, s) for _ in range(n)]
        return sum(rolls), rolls
    total = int(expr)
    return total, []

def substitute_roll_data(formula: str, data: Mapping[str, Any]) -> str:
    """Replace @path.to.key references with values from the roll data; unknown keys become 0."""
    def _lookup(m: re.Match) -> str:
        cur: Any = data
        for part in m.group(1).split('.'):
            if isinstance(cur, Mapping) and part in cur:
                cur = cur[part]
            else:
                return "0"
        if isinstance(cur, bool) or cur is None or isinstance(cur, Mapping):
            return "0"
        return str(cur)
    return _DATA_REF_RE.sub(_lookup, str(formula))

class DiceRoller:
    """Evaluates sums of dice and flat terms, e.g. "1d8+2" or "2d6 - 1 + 1d4"."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random(seed)

    def roll(self, formula: str) -> Tuple[int, List[int]]:
        text = str(formula or "").strip().replace("+-", "-").replace("--", "+")
        if not text:
            raise ValueError("Empty dice formula")
        pos = 0
        total = 0
        rolls: List[int] = []
        for m in _TERM_RE.finditer(text):
            gap = text[pos:m.start()].strip()
            if gap:
                raise ValueError(f"Unsupported dice formula: {formula}")
            if pos > 0 and not m.group(1):
                raise ValueError(f"Unsupported dice formula: {formula}")
            subtotal, term_rolls = roll_dice(m.group(2), rng=self._rng)
            total += -subtotal if m.group(1) == '-' else subtotal
            rolls.extend(term_rolls)
            pos = m.end()
        if pos == 0 or text[pos:].strip():
            raise ValueError(f"Unsupported dice formula: {formula}")
        return total, rolls
