"""
Session Service - Durable Session Snapshots

Saves, loads, lists and resumes conversation snapshots on disk:
- One directory per run: <sessions_dir>/<run_id>/session.json
- Writes go to session.json.tmp first and are renamed into place, so a
  crash never leaves a half-written session.json behind
- Loading never raises: a missing or unreadable file is "no session"

An explicit resume request that cannot be satisfied is the one fatal case
(SessionNotFoundError); the CLI host turns it into an exit code.
"""

import json
import logging
import math
import os
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import SESSION_FILE_NAME, SESSIONS_DIR
from core.messages import Message, ToolCallRecord

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


class SessionNotFoundError(Exception):
    """An explicit resume request matched no loadable session."""


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class SessionSnapshot:
    """
    Durable, resumable state of one conversation.

    Attributes:
        run_id: Identifier of the run (directory name on disk)
        created_at: Creation time, epoch milliseconds
        working_dir: Directory the agent was working in
        model: Model identifier used for the conversation
        conversation: Full message history
        tool_calls: Tool calls made during the most recent turn
    """
    run_id: str
    created_at: float
    working_dir: str
    model: str
    conversation: List[Message] = field(default_factory=list)
    tool_calls: List[ToolCallRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "createdAt": self.created_at,
            "workingDir": self.working_dir,
            "model": self.model,
            "conversation": [message.to_dict() for message in self.conversation],
            "toolCalls": [record.to_dict() for record in self.tool_calls],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSnapshot":
        """
        Build a snapshot from its JSON form.

        Raises:
            ValueError, KeyError, TypeError: If the data has the wrong shape
        """
        if not isinstance(data, dict) or not isinstance(data.get("runId"), str):
            raise ValueError("Session data must be an object with a string runId")

        return cls(
            run_id=data["runId"],
            created_at=data.get("createdAt"),
            working_dir=data.get("workingDir", ""),
            model=data.get("model", ""),
            conversation=[Message.from_dict(m) for m in data.get("conversation") or []],
            tool_calls=[ToolCallRecord.from_dict(t) for t in data.get("toolCalls") or []],
        )


def generate_run_id() -> str:
    return str(uuid.uuid4())


def new_session(working_dir: Optional[str] = None, model: str = "") -> SessionSnapshot:
    """Create a fresh snapshot with a new run id."""
    return SessionSnapshot(
        run_id=generate_run_id(),
        created_at=time.time() * 1000,
        working_dir=working_dir or os.getcwd(),
        model=model,
    )


# ============================================================================
# SESSION STORE
# ============================================================================

class SessionStore:
    """
    File-backed session persistence.

    Each run id has at most one writer; no cross-process locking is done.

    Args:
        base_dir: Directory holding one subdirectory per run
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else SESSIONS_DIR

    def session_path(self, run_id: str) -> Path:
        return self.base_dir / run_id / SESSION_FILE_NAME

    @staticmethod
    def _is_safe_run_id(run_id: Any) -> bool:
        return (
            isinstance(run_id, str)
            and run_id not in ("", ".", "..")
            and "/" not in run_id
            and "\\" not in run_id
        )

    def save(self, run_id: str, snapshot: SessionSnapshot) -> Path:
        """
        Atomically write a snapshot.

        Returns:
            Path of the written session file

        Raises:
            ValueError: If the run id cannot be used as a directory name
            OSError: If the file cannot be written
        """
        if not self._is_safe_run_id(run_id):
            raise ValueError(f"Invalid run id: {run_id!r}")

        run_dir = self.base_dir / run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        final_path = run_dir / SESSION_FILE_NAME
        temp_path = run_dir / (SESSION_FILE_NAME + TEMP_SUFFIX)
        payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)

        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, final_path)

        logger.debug(f"💾 Saved session {run_id} ({len(snapshot.conversation)} messages)")
        return final_path

    def load(self, run_id: str) -> Optional[SessionSnapshot]:
        """
        Load a snapshot.

        Returns:
            The snapshot, or None if it is missing, unreadable or malformed
        """
        if not self._is_safe_run_id(run_id):
            return None

        session_path = self.session_path(run_id)
        if not session_path.is_file():
            return None

        try:
            with open(session_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return SessionSnapshot.from_dict(data)
        # RecursionError: pathologically nested JSON
        except (OSError, ValueError, KeyError, TypeError, RecursionError) as e:
            logger.warning(f"⚠️  Ignoring unreadable session {run_id}: {e}")
            return None

    def list(self) -> List[str]:
        """Run ids that have a valid, readable snapshot, sorted."""
        if not self.base_dir.is_dir():
            return []

        try:
            candidates = sorted(entry.name for entry in self.base_dir.iterdir() if entry.is_dir())
        except OSError as e:
            logger.warning(f"⚠️  Could not list sessions in {self.base_dir}: {e}")
            return []

        return [run_id for run_id in candidates if self.load(run_id) is not None]

    @staticmethod
    def _created_at_ms(created_at: Any) -> Optional[float]:
        """createdAt as a finite float, or None if it cannot be used for ordering."""
        if not isinstance(created_at, (int, float)) or isinstance(created_at, bool):
            return None
        try:
            value = float(created_at)
        except OverflowError:
            return None
        return value if math.isfinite(value) else None

    def find_latest(self) -> Optional[str]:
        """
        Run id of the most recently created session.

        Sessions without a usable createdAt are ranked by the file's
        modification time instead.
        """
        latest_id: Optional[str] = None
        latest_time = -1.0

        for run_id in self.list():
            snapshot = self.load(run_id)
            created_at = snapshot.created_at if snapshot else None

            sort_time = self._created_at_ms(created_at)
            if sort_time is None:
                try:
                    sort_time = self.session_path(run_id).stat().st_mtime * 1000
                except OSError:
                    sort_time = -1.0

            if sort_time > latest_time:
                latest_time = sort_time
                latest_id = run_id

        return latest_id


# ============================================================================
# RESUME
# ============================================================================

def resume_session(store: SessionStore, run_id: Optional[str] = None) -> SessionSnapshot:
    """
    Resolve an explicit resume request.

    Args:
        store: Session store to search
        run_id: Run to resume; None means the latest run

    Returns:
        The loaded snapshot

    Raises:
        SessionNotFoundError: No run exists, or the named run cannot be loaded
    """
    selected = run_id if run_id else store.find_latest()
    if not selected:
        raise SessionNotFoundError("No saved sessions found to resume.")

    snapshot = store.load(selected)
    if snapshot is None:
        raise SessionNotFoundError(f"Failed to load session for run_id {selected}.")

    logger.info(f"📂 Resumed session {snapshot.run_id} ({len(snapshot.conversation)} messages)")
    return snapshot
