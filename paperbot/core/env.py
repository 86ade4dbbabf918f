from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def load_local_environment() -> None:
    """Load environment variables (e.g. PAPERBOT_LOG_LEVEL) from a .env file.

    Looks for <project_root>/.env first, then ~/.paperbot/.env. Values in the
    file override variables already set. The resolved path is exposed via
    PAPERBOT_ENV_PATH for diagnostics.
    """
    project_root = Path(__file__).resolve().parents[2]
    candidates = [project_root / ".env", Path.home() / ".paperbot" / ".env"]

    for env_path in candidates:
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=True)
            os.environ["PAPERBOT_ENV_PATH"] = str(env_path)
            return

    # Nothing loaded; still report the intended canonical path
    os.environ.setdefault("PAPERBOT_ENV_PATH", str(candidates[0]))
