# webauto/repository.py
"""
@file repository.py
@brief YAML locator map (object map) with JSON Schema validation.

Example:

    app:
      default_timeout: 15
      polling_interval: 0.25
      artifacts_dir: artifacts
    elements:
      header.login_link:
        primary: "a.ico-login"
        secondary: "#login-link"
        xpath: "//a[text()='Log in']"
        stability: High
      search.box:
        locators:
          - id: small-searchterms
          - css: "input[name='q']"
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jsonschema import Draft202012Validator

from .config import TimeConfig
from .exceptions import ConfigError
from .locators import Locator, LocatorSet, XPATH

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "locators.schema.json")

_APP_TIMING_KEYS = ("default_timeout", "polling_interval", "page_load_timeout", "script_timeout")


@dataclass(frozen=True)
class AppConfig:
    base_url: Optional[str] = None
    default_timeout: float = 15.0
    polling_interval: float = 0.25
    page_load_timeout: float = 30.0
    script_timeout: float = 20.0
    artifacts_dir: str = "artifacts"
    preset: str = "default"
    loading_indicators: Optional[Tuple[str, ...]] = None
    counter_scripts: Optional[Tuple[str, ...]] = None


def _load_schema() -> Dict[str, Any]:
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


class Repository:
    """
    Loads a locator map YAML. Provides the app config and LocatorSets by name.
    """

    _validator: Optional[Draft202012Validator] = None

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self._init(self._load_yaml(self.path))

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], source: str = "<mapping>") -> Repository:
        repo = cls.__new__(cls)
        repo.path = source
        repo._init(data)
        return repo

    def _init(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise ConfigError("Locator map YAML must be a mapping at root.")
        self._validate(data)
        self._raw_app: Dict[str, Any] = data.get("app") or {}
        self._app = self._parse_app_config(self._raw_app)
        self._elements: Dict[str, Dict[str, Any]] = data.get("elements") or {}
        self._cache: Dict[str, LocatorSet] = {}

    @staticmethod
    def _load_yaml(path: str) -> Any:
        if not os.path.exists(path):
            raise ConfigError(f"Locator map YAML not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    @classmethod
    def validator(cls) -> Draft202012Validator:
        if cls._validator is None:
            cls._validator = Draft202012Validator(_load_schema())
        return cls._validator

    @classmethod
    def problems(cls, data: Any) -> List[str]:
        """Every schema violation in data, formatted as 'path: message'."""
        errors = sorted(cls.validator().iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
        problems = []
        for e in errors:
            where = ".".join(str(p) for p in e.absolute_path) or "<root>"
            problems.append(f"{where}: {e.message}")
        return problems

    def _validate(self, data: Dict[str, Any]) -> None:
        problems = self.problems(data)
        if problems:
            lines = [f"Locator map validation failed ({self.path}):"]
            lines.extend(f"- {p}" for p in problems)
            raise ConfigError("\n".join(lines))

    @staticmethod
    def _parse_app_config(d: Dict[str, Any]) -> AppConfig:
        indicators = d.get("loading_indicators")
        counters = d.get("counter_scripts")
        return AppConfig(
            base_url=d.get("base_url"),
            default_timeout=float(d.get("default_timeout", 15.0)),
            polling_interval=float(d.get("polling_interval", 0.25)),
            page_load_timeout=float(d.get("page_load_timeout", 30.0)),
            script_timeout=float(d.get("script_timeout", 20.0)),
            artifacts_dir=str(d.get("artifacts_dir", "artifacts")),
            preset=str(d.get("preset", "default")),
            loading_indicators=tuple(indicators) if indicators is not None else None,
            counter_scripts=tuple(counters) if counters is not None else None,
        )

    @property
    def app(self) -> AppConfig:
        return self._app

    def time_config(self, overrides: Optional[Dict[str, Any]] = None) -> TimeConfig:
        """TimeConfig for this map: preset, then overrides, then explicit app timings."""
        app_defaults = {k: self._raw_app[k] for k in _APP_TIMING_KEYS if k in self._raw_app}
        return TimeConfig.build_from(
            preset=self._app.preset,
            overrides=overrides,
            app_defaults=app_defaults,
        )

    def get_element_spec(self, name: str) -> Dict[str, Any]:
        if name not in self._elements:
            raise ConfigError(f"Unknown element: {name}")
        return self._elements[name]

    def get(self, name: str) -> LocatorSet:
        """LocatorSet for an element, in primary -> secondary -> xpath order."""
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        spec = self.get_element_spec(name)
        try:
            if "locators" in spec:
                locators = [
                    Locator(strategy, query)
                    for entry in spec["locators"]
                    for strategy, query in entry.items()
                ]
            else:
                locators = [Locator.parse(spec["primary"])]
                if spec.get("secondary"):
                    locators.append(Locator.parse(spec["secondary"]))
                if spec.get("xpath"):
                    locators.append(Locator(XPATH, spec["xpath"]))
        except ValueError as e:
            raise ConfigError(f"elements.{name}: {e}") from e

        locator_set = LocatorSet(tuple(locators), name=name, stability=spec.get("stability", "Unknown"))
        self._cache[name] = locator_set
        return locator_set

    def has(self, name: str) -> bool:
        return name in self._elements

    def stability(self, name: str) -> str:
        return self.get_element_spec(name).get("stability", "Unknown")

    def list_elements(self) -> List[str]:
        return sorted(self._elements.keys())
