"""SessionStart hook entry point — export the host conversation id.

Usage (SessionStart hook):
    python -m seedbox.hooks.session_start

Reads the hook payload (``{"session_id": "..."}``) from stdin and appends
``export CC_REFLECTION_SESSION_ID="<id>"`` to the file named by
``$CLAUDE_ENV_FILE``, so later commands in the session resolve the same
namespace. Never fails the host session: errors are logged and dropped.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_VAR = "CC_REFLECTION_SESSION_ID"
_HOOK_SESSION_ID_RE = re.compile(r"[A-Za-z0-9-]{1,128}")


def register_session(payload: str, env_file: str | None) -> bool:
    """Append the export line for the payload's session id. Returns True if written."""
    if not env_file:
        return False
    data = json.loads(payload)
    session_id = data.get("session_id") if isinstance(data, dict) else None
    if not isinstance(session_id, str) or not _HOOK_SESSION_ID_RE.fullmatch(session_id):
        logger.debug("No usable session_id in hook payload")
        return False
    with Path(env_file).open("a", encoding="utf-8") as f:
        f.write(f'export {ENV_VAR}="{session_id}"\n')
    return True


def main() -> None:
    try:
        register_session(sys.stdin.read(), os.environ.get("CLAUDE_ENV_FILE"))
    except (OSError, ValueError) as e:
        logger.warning("Session registration skipped: %s", e)


if __name__ == "__main__":
    main()
