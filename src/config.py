"""Validation thresholds and runtime settings."""

from dataclasses import dataclass, field, fields
import os
from pathlib import Path

from dotenv import load_dotenv


# Lifespan limits
MAX_LIFESPAN_YEARS = 120  # Age at death above this is rejected
MAX_LIVING_AGE_YEARS = 110  # Living persons older than this are flagged

# Parent/child birth gap, in years
MIN_PARENT_AGE_YEARS = 10  # Below this the relationship is rejected
COMFORTABLE_PARENT_AGE_YEARS = 14  # Between the minimum and this, flagged
ELDERLY_PARENT_AGE_YEARS = 60  # Between this and the maximum, flagged for verification
MAX_PARENT_AGE_YEARS = 70  # Above this, flagged

# Siblings
SIBLING_CLOSE_BIRTH_DAYS = 270  # Roughly nine months
MAX_SIBLING_GAP_YEARS = 30

# Marriage
MIN_MARRIAGE_AGE_YEARS = 14

# Dates before this year are flagged as unlikely to be documented
EARLIEST_RELIABLE_YEAR = 1400


@dataclass(frozen=True)
class ChronologyThresholds:
    max_lifespan_years: float = MAX_LIFESPAN_YEARS
    max_living_age_years: float = MAX_LIVING_AGE_YEARS
    min_parent_age_years: float = MIN_PARENT_AGE_YEARS
    comfortable_parent_age_years: float = COMFORTABLE_PARENT_AGE_YEARS
    elderly_parent_age_years: float = ELDERLY_PARENT_AGE_YEARS
    max_parent_age_years: float = MAX_PARENT_AGE_YEARS
    sibling_close_birth_days: int = SIBLING_CLOSE_BIRTH_DAYS
    max_sibling_gap_years: float = MAX_SIBLING_GAP_YEARS
    min_marriage_age_years: float = MIN_MARRIAGE_AGE_YEARS
    earliest_reliable_year: int = EARLIEST_RELIABLE_YEAR

    def __post_init__(self):
        if self.min_parent_age_years > self.comfortable_parent_age_years:
            raise ValueError("min_parent_age_years cannot exceed comfortable_parent_age_years")
        if self.elderly_parent_age_years > self.max_parent_age_years:
            raise ValueError("elderly_parent_age_years cannot exceed max_parent_age_years")
        if self.max_living_age_years > self.max_lifespan_years:
            raise ValueError("max_living_age_years cannot exceed max_lifespan_years")


DEFAULT_THRESHOLDS = ChronologyThresholds()


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("family_tree.db")
    log_level: str = "INFO"
    thresholds: ChronologyThresholds = field(default_factory=ChronologyThresholds)


def _thresholds_from_env(environ) -> ChronologyThresholds:
    overrides = {}
    for f in fields(ChronologyThresholds):
        raw = environ.get(f"FAMTREE_{f.name.upper()}")
        if raw is None or raw == "":
            continue
        try:
            overrides[f.name] = int(raw) if f.type in (int, "int") else float(raw)
        except ValueError as exc:
            raise ValueError(f"FAMTREE_{f.name.upper()} must be numeric, got {raw!r}") from exc
    return ChronologyThresholds(**overrides)


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from the environment.

    A `.env` file (or `env_file`) is read first; variables already set in the
    process environment win. Recognized variables:

    - FAMTREE_DB_PATH
    - FAMTREE_LOG_LEVEL
    - FAMTREE_<THRESHOLD_NAME>, e.g. FAMTREE_MIN_PARENT_AGE_YEARS
    """
    load_dotenv(env_file)
    environ = os.environ

    return Settings(
        db_path=Path(environ.get("FAMTREE_DB_PATH", "family_tree.db")),
        log_level=environ.get("FAMTREE_LOG_LEVEL", "INFO").upper(),
        thresholds=_thresholds_from_env(environ),
    )
