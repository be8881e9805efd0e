"""Session identity: which namespace directory a caller's seeds belong to.

Every entry point (CLI, hooks, batch jobs) must derive the same key from the
same inputs, so the derivation itself is the pure ``resolve_session_id``.
The helpers around it only gather inputs from the environment.

Priority:
    1. explicit override (``SEEDBOX_SESSION_ID`` / ``--session-id``)
    2. host-assigned conversation id (hook env vars, then legacy file)
    3. project hash: first 12 hex chars of MD5(working directory)
    4. ``"unknown"``
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN_SESSION = "unknown"
PROJECT_HASH_LENGTH = 12

# Set by SessionStart hooks; first non-empty wins.
HOST_SESSION_ENV_VARS = ("CC_DICE_SESSION_ID", "CC_REFLECTION_SESSION_ID")

_SESSION_ID_RE = re.compile(r"[A-Za-z0-9._-]{1,128}")


def is_valid_session_id(value: str | None) -> bool:
    """True if value is usable as a namespace directory name."""
    return bool(value) and _SESSION_ID_RE.fullmatch(value) is not None


def project_hash(cwd: str | None) -> str | None:
    """12-char MD5 prefix of the working directory path."""
    if not cwd:
        return None
    return hashlib.md5(cwd.encode("utf-8")).hexdigest()[:PROJECT_HASH_LENGTH]


def resolve_session_id(
    override: str | None,
    host_session_id: str | None,
    cwd: str | None,
) -> str:
    """Pick the namespace key from the given inputs. Never raises."""
    if is_valid_session_id(override):
        return override
    if override:
        logger.debug("Ignoring invalid session override %r", override)

    if is_valid_session_id(host_session_id):
        return host_session_id
    if host_session_id:
        logger.debug("Ignoring invalid host session id %r", host_session_id)

    return project_hash(cwd) or UNKNOWN_SESSION


def current_cwd() -> str | None:
    """Logical working directory: $PWD if set, else os.getcwd()."""
    pwd = os.environ.get("PWD")
    if pwd:
        return pwd
    try:
        return os.getcwd()
    except OSError:
        return None


def host_session_id(base_dir: Path | None, cwd: str | None) -> str | None:
    """Host-assigned conversation id from hook env vars or the legacy file."""
    for var in HOST_SESSION_ENV_VARS:
        value = os.environ.get(var)
        if value:
            return value

    phash = project_hash(cwd)
    if base_dir is None or phash is None:
        return None
    session_file = base_dir / "sessions" / phash / "current"
    try:
        value = session_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return value or None


@dataclass(frozen=True)
class Identity:
    """Resolved identity for one invocation."""

    session_id: str
    project_hash: str | None
    source: str


def current_identity(base_dir: Path | None = None, override: str | None = None) -> Identity:
    """Gather identity inputs from the environment and resolve them."""
    cwd = current_cwd()
    if override is None:
        override = os.environ.get("SEEDBOX_SESSION_ID")
    host_id = host_session_id(base_dir, cwd)
    session_id = resolve_session_id(override, host_id, cwd)

    if is_valid_session_id(override) and session_id == override:
        source = "override"
    elif is_valid_session_id(host_id) and session_id == host_id:
        source = "host"
    elif session_id == UNKNOWN_SESSION:
        source = "unknown"
    else:
        source = "project"
    return Identity(session_id=session_id, project_hash=project_hash(cwd), source=source)
