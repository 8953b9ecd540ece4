"""Configuration loading.

Usage:
    options = load("page-lint.yaml")               # raises ConfigError on bad config
    options = defaults()                           # no file, environment overrides only
    options = Options.from_mapping({"html": False})
    generate_template("page-lint.yaml")            # writes example file to disk
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from page_lint.validator import DEFAULT_VALIDATOR_URL

BROWSERS = ("chromium", "firefox", "webkit")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Options dataclass
# ---------------------------------------------------------------------------

@dataclass
class Options:
    html: bool = True
    validator_url: str = DEFAULT_VALIDATOR_URL
    validator_timeout: int = 30
    settle_delay: float = 2.0
    url_settle_delay: float = 1.0
    browser: str = "chromium"
    headless: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "Options":
        """Build options from a flat mapping. Unknown keys are ignored."""
        raw = raw or {}
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in raw.items() if k in known})


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def defaults() -> Options:
    """Return default options with the PAGE_LINT_VALIDATOR_URL override applied."""
    return Options.from_mapping({"validator_url": _env_validator_url() or DEFAULT_VALIDATOR_URL})


def load(config_path: str = "page-lint.yaml") -> Options:
    """Load options from a YAML file.

    The environment variable PAGE_LINT_VALIDATOR_URL overrides the file value.

    Raises:
        ConfigError: if the file is missing, malformed, or names an
                     unsupported browser.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `page-lint init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    validator = raw.get("validator") or {}
    timing = raw.get("timing") or {}
    browser = raw.get("browser") or {}

    flat: dict[str, Any] = {
        "html":              raw.get("html"),
        "validator_url":     _env_validator_url() or validator.get("url"),
        "validator_timeout": validator.get("timeout"),
        "settle_delay":      timing.get("settle_delay"),
        "url_settle_delay":  timing.get("url_settle_delay"),
        "browser":           browser.get("name"),
        "headless":          browser.get("headless"),
    }
    options = Options.from_mapping({k: v for k, v in flat.items() if v is not None})
    _validate(options)
    return options


def _env_validator_url() -> str | None:
    return os.environ.get("PAGE_LINT_VALIDATOR_URL")


def _validate(options: Options) -> None:
    if options.browser not in BROWSERS:
        raise ConfigError(
            f"Unsupported browser '{options.browser}'. Choose one of: {', '.join(BROWSERS)}"
        )


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
# Validate each visited document with the Nu Html Checker
html: true

validator:
  url: "https://validator.w3.org/nu/"   # or a local checker, e.g. http://localhost:8888/
  timeout: 30

timing:
  settle_delay: 2          # seconds to wait after network idle
  url_settle_delay: 1      # seconds before reading the page URL of a finished request

browser:
  name: chromium           # chromium, firefox or webkit
  headless: true
"""


def generate_template(output_path: str = "page-lint.yaml") -> None:
    """Write a template page-lint.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
