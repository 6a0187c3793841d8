from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "TIMELINE_HOME"
APP_ENV_SETTINGS = "TIMELINE_SETTINGS"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains timeline/, tests/, config/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for the timeline engine.
    Override with TIMELINE_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".timeline").resolve()


def config_dir() -> Path:
    return app_home() / "config"


def settings_path() -> Path:
    """
    Canonical settings file path.

    Resolution order:
    1. TIMELINE_SETTINGS env var (explicit override)
    2. ~/.timeline/config/timeline.yaml (default)
    """
    if os.environ.get(APP_ENV_SETTINGS):
        return Path(os.environ[APP_ENV_SETTINGS]).expanduser().resolve()
    return config_dir() / "timeline.yaml"
