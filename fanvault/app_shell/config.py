import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from fanvault.rules.models import Rules

logger = logging.getLogger(__name__)

DEV_SECRET_KEY = "dev-secret-unsafe"


class Settings:
    """Runtime locations and secrets, read from the environment."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(env.get("FANVAULT_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "fanvault.db")
        self.blob_dir = self.data_dir / "blobs"
        self.rules_path = Path(env.get("FANVAULT_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.secret_key = env.get("FANVAULT_SECRET_KEY", DEV_SECRET_KEY)

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.blob_dir.mkdir(parents=True, exist_ok=True)


def missing_env(rules: Rules, environ: Mapping[str, str] | None = None) -> list[str]:
    env = os.environ if environ is None else environ
    return [name for name in rules.ops.required_env if name not in env]


def validate_ops_rules(rules: Rules, settings: Settings) -> None:
    """
    Validate operational requirements before startup. Exits on failure.
    """
    missing = missing_env(rules)
    if missing:
        logger.critical("Missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)

    if settings.secret_key == DEV_SECRET_KEY:
        logger.warning("FANVAULT_SECRET_KEY is not set; using the development key")

    logger.info("Configuration validated.")
