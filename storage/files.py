import os, json, asyncio, logging, tempfile
from typing import Any, Dict, List, Optional

from core.config import ACTORS_FOLDER, CARDS_FOLDER, SCENES_FOLDER
from models.actor import Actor, Scene
from models.card import Message

__all__ = [
    "async_list_json_files",
    "async_load_json",
    "async_save_json",
    "async_delete_json",
    "async_load_actors",
    "async_load_scenes",
    "async_load_cards",
    "async_save_card",
]

logger = logging.getLogger('osebot')

async def _run_blocking(func, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

def _safe_name(name: str) -> str:
    return "".join(c for c in name if c.isalnum() or c in ("_", "-", " ")).strip()

def _json_path(folder: str, name: str) -> str:
    return os.path.join(folder, f"{_safe_name(name)}.json")

async def async_list_json_files(folder: str) -> List[str]:
    def _list():
        if not os.path.isdir(folder):
            return []
        return sorted(f[:-5] for f in os.listdir(folder) if f.lower().endswith(".json"))
    return await _run_blocking(_list)

async def async_load_json(folder: str, name: str) -> Optional[Dict[str, Any]]:
    path = _json_path(folder, name)
    if not os.path.exists(path):
        return None
    def _load():
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    try:
        return await _run_blocking(_load)
    except json.JSONDecodeError:
        return None

async def async_save_json(folder: str, name: str, data: Dict[str, Any]) -> None:
    path = _json_path(folder, name)
    def _save():
        os.makedirs(folder, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=folder, prefix=".tmp_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
    await _run_blocking(_save)

async def async_delete_json(folder: str, name: str) -> None:
    path = _json_path(folder, name)
    def _delete():
        if os.path.exists(path):
            os.remove(path)
    await _run_blocking(_delete)

async def async_load_actors(folder: str = ACTORS_FOLDER) -> List[Actor]:
    out: List[Actor] = []
    for name in await async_list_json_files(folder):
        raw = await async_load_json(folder, name)
        if raw is None:
            logger.warning('Skipping unreadable actor file %s.json', name)
            continue
        raw.setdefault("_id", name)
        out.append(Actor.from_dict(raw))
    return out

async def async_load_scenes(folder: str = SCENES_FOLDER) -> List[Scene]:
    out: List[Scene] = []
    for name in await async_list_json_files(folder):
        raw = await async_load_json(folder, name)
        if raw is None:
            logger.warning('Skipping unreadable scene file %s.json', name)
            continue
        raw.setdefault("_id", name)
        out.append(Scene.from_dict(raw))
    return out

async def async_load_cards(folder: str = CARDS_FOLDER) -> List[Message]:
    """Stored card messages, oldest first."""
    out: List[Message] = []
    for name in await async_list_json_files(folder):
        raw = await async_load_json(folder, name)
        if raw is None or not raw.get("card"):
            logger.warning('Skipping unreadable card file %s.json', name)
            continue
        raw.setdefault("_id", name)
        try:
            out.append(Message.from_dict(raw))
        except (KeyError, ValueError) as e:
            logger.warning('Skipping invalid card file %s.json: %s', name, e)
    out.sort(key=lambda m: float(m.extra.get("created", 0)))
    return out

async def async_save_card(message: Message, folder: str = CARDS_FOLDER) -> None:
    await async_save_json(folder, message.id, message.to_dict())
