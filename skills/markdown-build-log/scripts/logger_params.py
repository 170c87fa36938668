"""Logger configuration: .env defaults plus the ``key=value;...`` parameter string."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from pathlib import Path

from dotenv import dotenv_values

from logger_errors import InvalidVerbosityError, LoggerError

SKILL_DIR = Path(__file__).resolve().parent.parent

DEFAULTS: dict[str, str] = {
    "BUILD_LOG_FILE": "build.log.md",
    "BUILD_LOG_VERBOSITY": "normal",
    "BUILD_LOG_FORMATS": "md",
    "BUILD_LOG_TOC_TARGETS": "earliest",
}

SUPPORTED_FORMATS = ("md", "html")


class Verbosity(IntEnum):
    QUIET = 0
    MINIMAL = 1
    NORMAL = 2
    DETAILED = 3
    DIAGNOSTIC = 4


_VERBOSITY_NAMES: dict[str, Verbosity] = {
    "QUIET": Verbosity.QUIET,
    "Q": Verbosity.QUIET,
    "MINIMAL": Verbosity.MINIMAL,
    "M": Verbosity.MINIMAL,
    "NORMAL": Verbosity.NORMAL,
    "N": Verbosity.NORMAL,
    "DETAILED": Verbosity.DETAILED,
    "D": Verbosity.DETAILED,
    "DIAGNOSTIC": Verbosity.DIAGNOSTIC,
    "DIAG": Verbosity.DIAGNOSTIC,
}


class TargetNamesPolicy(str, Enum):
    """Which requested-target list a re-entered project shows in the TOC."""

    EARLIEST = "earliest"
    LATEST = "latest"
    UNION = "union"


@dataclass(frozen=True)
class LoggerConfig:
    log_file: Path = Path("build.log.md")
    verbosity: Verbosity = Verbosity.NORMAL
    formats: tuple[str, ...] = ("md",)
    target_names_policy: TargetNamesPolicy = TargetNamesPolicy.EARLIEST
    # Every well-formed entry, keyed by its normalized (trimmed, upper-cased) name.
    extra: dict[str, str] = field(default_factory=dict)

    def is_verbosity_at_least(self, level: Verbosity) -> bool:
        return self.verbosity >= level

    def get_parameter(self, name: str) -> str | None:
        return self.extra.get(normalize_key(name))


def normalize_key(name: str) -> str:
    """Parameter names are case-insensitive: they are stored trimmed and upper-cased."""
    return name.strip().upper()


def parse_verbosity(level: str) -> Verbosity:
    try:
        return _VERBOSITY_NAMES[level.strip().upper()]
    except KeyError:
        raise InvalidVerbosityError(level) from None


def parse_formats(raw: str) -> tuple[str, ...]:
    formats = [f.strip().lower() for f in raw.split(",") if f.strip()]
    unknown = [f for f in formats if f not in SUPPORTED_FORMATS]
    if unknown:
        raise LoggerError(f"Unsupported output format(s): {', '.join(unknown)}")
    return tuple(dict.fromkeys(formats)) or ("md",)


def parse_target_names_policy(raw: str) -> TargetNamesPolicy:
    try:
        return TargetNamesPolicy(raw.strip().lower())
    except ValueError:
        raise LoggerError(f"Unknown TOC target policy: {raw}") from None


def expand_path(val: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(val)))


def load_env(skill_dir: Path | None = None) -> dict[str, str]:
    env: dict[str, str] = {}
    env_path = (skill_dir or SKILL_DIR) / ".env"
    if env_path.exists():
        env.update({k: v for k, v in dotenv_values(env_path).items() if v is not None})
    for key, default in DEFAULTS.items():
        if not env.get(key):
            env[key] = default
    return env


def split_parameters(parameters: str | None) -> dict[str, str]:
    """Split ``name1=val1;name2=val2`` into a normalized-key dict.

    Entries missing ``=``, or with an empty name or value, are skipped.
    A later entry for the same name replaces an earlier one.
    """
    bag: dict[str, str] = {}
    if not parameters:
        return bag
    for entry in parameters.split(";"):
        if "=" not in entry:
            continue
        name, value = entry.split("=", 1)
        key = normalize_key(name)
        value = value.strip()
        if not key or not value:
            continue
        bag[key] = value
    return bag


def parse_parameters(parameters: str | None, env: dict[str, str] | None = None) -> LoggerConfig:
    """Build a LoggerConfig from .env defaults overridden by the parameter string."""
    env = load_env() if env is None else env
    config = LoggerConfig(
        log_file=expand_path(env.get("BUILD_LOG_FILE") or DEFAULTS["BUILD_LOG_FILE"]),
        verbosity=parse_verbosity(env.get("BUILD_LOG_VERBOSITY") or DEFAULTS["BUILD_LOG_VERBOSITY"]),
        formats=parse_formats(env.get("BUILD_LOG_FORMATS") or DEFAULTS["BUILD_LOG_FORMATS"]),
        target_names_policy=parse_target_names_policy(
            env.get("BUILD_LOG_TOC_TARGETS") or DEFAULTS["BUILD_LOG_TOC_TARGETS"]
        ),
    )

    bag = split_parameters(parameters)
    for key, value in bag.items():
        if key in ("LOGFILE", "L"):
            config = replace(config, log_file=expand_path(value))
        elif key in ("VERBOSITY", "V"):
            config = replace(config, verbosity=parse_verbosity(value))
        elif key in ("FORMATS", "F"):
            config = replace(config, formats=parse_formats(value))
        elif key == "TOCTARGETS":
            config = replace(config, target_names_policy=parse_target_names_policy(value))
    return replace(config, extra=bag)
