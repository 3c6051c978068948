"""Fail when the migration history has diverged into more than one head."""

from __future__ import annotations

import sys
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory

REPO_ROOT = Path(__file__).resolve().parents[1]


def load_alembic_config(repo_root: Path = REPO_ROOT) -> Config:
  config = Config(str(repo_root / "alembic.ini"))
  # Absolute script path so the check works from any working directory.
  config.set_main_option("script_location", str(repo_root / "alembic"))
  return config


def find_heads(config: Config) -> list[str]:
  return list(ScriptDirectory.from_config(config).get_heads())


def check_single_head(config: Config | None = None) -> int:
  heads = find_heads(config or load_alembic_config())
  if len(heads) != 1:
    print(f"ERROR: expected one migration head, found {len(heads)}: {', '.join(heads) or '(none)'}")
    print("Rebase the newer migration onto the current head before merging.")
    return 1

  print(f"OK: single migration head {heads[0]}.")
  return 0


if __name__ == "__main__":
  sys.exit(check_single_head())
