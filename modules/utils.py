from typing import Any, Dict

from models.card import RollResult

# Ability score modifiers (3-18 scale)

def get_modifier(score: int) -> int:
    if score <= 3: return -3
    if score <= 5: return -2
    if score <= 8: return -1
    if score <= 12: return 0
    if score <= 15: return 1
    if score <= 17: return 2
    return 3

def ability_modifier(abilities: Dict[str, Any], key: str) -> int:
    try:
        v = abilities.get(key, abilities.get(key.lower(), 10))
        if isinstance(v, dict):
            return int(v.get('mod', get_modifier(int(v.get('value', 10)))))
        return get_modifier(int(v))
    except (TypeError, ValueError):
        return 0

# ---- Saving throws ----

SAVE_INFO = {
    "death": {"name": "Death / Poison", "emoji": "💀"},
    "wands": {"name": "Wands", "emoji": "🪄"},
    "paralysis": {"name": "Paralysis / Petrify", "emoji": "🗿"},
    "breath": {"name": "Breath Attacks", "emoji": "🐉"},
    "spells": {"name": "Spells / Rods / Staves", "emoji": "✨"},
}

def save_name(code: str) -> str:
    return str(SAVE_INFO.get(str(code).lower(), {}).get('name') or str(code).title())

def save_emoji(code: str) -> str:
    return str(SAVE_INFO.get(str(code).lower(), {}).get('emoji') or "")

# ---- Display ----

def format_roll(result: RollResult) -> str:
    """Chat line for a roll, e.g. `1d8+2` => [5] = **7**. Flat formulas omit the dice list."""
    if result.rolls:
        return f"`{result.formula}` => {result.rolls} = **{result.total}**"
    return f"`{result.formula}` = **{result.total}**"
