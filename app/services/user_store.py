"""
Registre des utilisateurs persisté dans un seul document JSON `{"users": [...]}`.

- Les utilisateurs restent triés par id (clé numérique du suffixe), ce qui
  rend la recherche dichotomique correcte même au-delà de user_999.
- Chaque mutation est une transaction lecture-modification-écriture sous
  verrou exclusif (verrou de process + flock), écrite de façon atomique.
"""
import bisect
import fcntl
import json
import logging
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from app.core.errors import ConflictError, NotFoundError, StorageError
from app.models.history import ArtifactKind
from app.models.user import User

logger = logging.getLogger(__name__)

USER_ID_PREFIX = "user"
USER_ID_WIDTH = 3

_PATH_LOCKS: Dict[str, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _process_lock(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(key, threading.RLock())


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ---------- ids & recherche ----------

def id_sort_key(user_id: str) -> Tuple[str, int]:
    prefix, _, num = user_id.rpartition("_")
    if num.isdigit():
        return prefix, int(num)
    return user_id, -1


def format_user_id(n: int) -> str:
    # au-delà de 999 le suffixe s'élargit simplement (user_1000)
    return f"{USER_ID_PREFIX}_{n:0{USER_ID_WIDTH}d}"


def next_user_id(users: List[Dict[str, Any]]) -> str:
    if not users:
        return format_user_id(1)
    _, last = id_sort_key(users[-1]["id"])
    return format_user_id(max(last, 0) + 1)


def binary_search(users: List[Dict[str, Any]], user_id: str) -> int:
    """Index de user_id dans une liste triée par id_sort_key, ou -1."""
    target = id_sort_key(user_id)
    left, right = 0, len(users) - 1
    while left <= right:
        mid = (left + right) // 2
        mid_key = id_sort_key(users[mid]["id"])
        if mid_key == target:
            return mid if users[mid]["id"] == user_id else -1
        if mid_key < target:
            left = mid + 1
        else:
            right = mid - 1
    return -1


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user["id"],
        "username": user["username"],
        "email": user["email"],
        "profilePicture": user.get("profilePicture", ""),
    }


class UserStore:
    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = _process_lock(self.path)

    # ---------- I/O ----------

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"users": []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Lecture impossible de %s: %s", self.path, e)
            raise StorageError(f"Users file unreadable: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("users"), list):
            raise StorageError("Users file invalid: expected {\"users\": [...]}")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp = self.path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)  # atomic on POSIX
        except OSError as e:
            logger.error("Écriture impossible de %s: %s", self.path, e)
            raise StorageError(f"Users file not writable: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """
        Verrou exclusif le temps d'un cycle lecture → mutation → écriture.
        Si le bloc lève, rien n'est écrit.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Storage directory unavailable: {e}") from e

        with self._lock:
            with open(self.path.with_suffix(".lock"), "a") as lf:
                fcntl.flock(lf, fcntl.LOCK_EX)
                try:
                    data = self.read()
                    yield data
                    self._write(data)
                finally:
                    fcntl.flock(lf, fcntl.LOCK_UN)

    # ---------- utilisateurs ----------

    def allocate_id(self) -> str:
        return next_user_id(self.read()["users"])

    def find_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        users = self.read()["users"]
        idx = binary_search(users, user_id)
        return users[idx] if idx >= 0 else None

    def find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return next((u for u in self.read()["users"] if u.get("username") == username), None)

    def append(self, user: Dict[str, Any]) -> Dict[str, Any]:
        with self.transaction() as data:
            self._insert_sorted(data["users"], user)
        return user

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        profile_picture: str = "",
    ) -> Dict[str, Any]:
        """Vérifie l'unicité, alloue l'id et insère, dans une seule transaction."""
        with self.transaction() as data:
            users = data["users"]
            if any(u.get("username") == username or u.get("email") == email for u in users):
                raise ConflictError("User already exists")

            user = User(
                id=next_user_id(users),
                username=username,
                email=email,
                password=password_hash,
                createdAt=utcnow_iso(),
                profilePicture=profile_picture or "",
            ).model_dump()
            self._insert_sorted(users, user)

        logger.info("Utilisateur créé: %s", user["id"])
        return user

    @staticmethod
    def _insert_sorted(users: List[Dict[str, Any]], user: Dict[str, Any]) -> None:
        if binary_search(users, user["id"]) >= 0:
            raise ConflictError(f"User id already exists: {user['id']}")
        bisect.insort(users, user, key=lambda u: id_sort_key(u["id"]))

    def _locate(self, users: List[Dict[str, Any]], user_id: str) -> Dict[str, Any]:
        idx = binary_search(users, user_id)
        if idx < 0:
            raise NotFoundError("User not found")
        return users[idx]

    # ---------- artefacts ----------

    def list_artifacts(self, user_id: str, kind: ArtifactKind) -> List[Dict[str, Any]]:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return list(user.get(kind.value) or [])

    def add_artifact(self, user_id: str, kind: ArtifactKind, artifact: Dict[str, Any]) -> Dict[str, Any]:
        """Ajoute en tête de liste (plus récent d'abord). Attribue id/createdAt si absents."""
        with self.transaction() as data:
            user = self._locate(data["users"], user_id)
            items = user.setdefault(kind.value, [])

            stored = dict(artifact)
            existing = {a.get("id") for a in items}
            if not stored.get("id") or stored["id"] in existing:
                stored["id"] = _unique_artifact_id(kind.id_prefix, existing)
            stored.setdefault("createdAt", utcnow_iso())
            items.insert(0, stored)

        logger.info("Artefact %s ajouté à %s (%s)", stored["id"], user_id, kind.value)
        return stored

    def remove_artifact(self, user_id: str, kind: ArtifactKind, artifact_id: str) -> bool:
        with self.transaction() as data:
            user = self._locate(data["users"], user_id)
            items = user.get(kind.value) or []
            kept = [a for a in items if a.get("id") != artifact_id]
            user[kind.value] = kept

        removed = len(kept) != len(items)
        if removed:
            logger.info("Artefact %s supprimé de %s (%s)", artifact_id, user_id, kind.value)
        return removed


def _unique_artifact_id(prefix: str, existing: set) -> str:
    ms = int(time.time() * 1000)
    while f"{prefix}_{ms}" in existing:
        ms += 1
    return f"{prefix}_{ms}"
