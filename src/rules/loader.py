import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import StudyTimeRules

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILENAME = "study_time_rules.yaml"
RULES_PATH_ENV = "STUDY_TIME_RULES_PATH"


def _find_project_root() -> Path:
    """Find project root by looking for marker files."""
    current = Path.cwd()

    for parent in [current, *current.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent

    return current


def resolve_rules_path(path: Path | str | None = None) -> Path:
    """Explicit path first, then the environment, then the project root."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(RULES_PATH_ENV)
    if env_path:
        return Path(env_path)
    return _find_project_root() / DEFAULT_RULES_FILENAME


def parse_rules(content: str) -> StudyTimeRules:
    """
    Parse and validate rules from YAML text.
    Raises ValueError on invalid YAML or schema.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a mapping at the top level")

    try:
        return StudyTimeRules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: Path | str | None = None) -> StudyTimeRules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    rules_path = resolve_rules_path(path)
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules file not found at: {rules_path}")

    with open(rules_path) as f:
        rules = parse_rules(f.read())

    logger.info("Loaded study time rules %s from %s", rules.project.rules_version, rules_path)
    return rules
