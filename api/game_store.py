"""In-memory game store with per-game read-modify-write. Replace with DB later if needed."""

import threading
from typing import Callable

from pueblo.state import Game

# game_id -> latest committed game
_store: dict[str, Game] = {}
_locks: dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


def _lock_for(game_id: str) -> threading.Lock:
    with _registry_lock:
        return _locks.setdefault(game_id, threading.Lock())


def create(game: Game) -> None:
    with _lock_for(game.id):
        if game.id in _store:
            raise KeyError(f"game {game.id} already exists")
        _store[game.id] = game


def get(game_id: str) -> Game | None:
    return _store.get(game_id)


def update(game_id: str, fn: Callable[[Game], Game]) -> Game:
    """One read, one conditional write, under the game's lock.

    fn gets the current game and returns the next one. If fn raises, or returns
    the very same object, nothing is written.
    """
    with _lock_for(game_id):
        current = _store.get(game_id)
        if current is None:
            raise KeyError(game_id)
        new = fn(current)
        if new is not current:
            _store[game_id] = new
        return new


def delete(game_id: str) -> None:
    with _lock_for(game_id):
        _store.pop(game_id, None)
    with _registry_lock:
        _locks.pop(game_id, None)


def list_games() -> list[str]:
    return list(_store.keys())
