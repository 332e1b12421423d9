# tests/test_repository.py
"""
Tests for YAML locator maps.
"""

import textwrap

import pytest

from webauto.exceptions import ConfigError
from webauto.locators import CSS, ID, XPATH, Locator
from webauto.repository import Repository

MAP = """
app:
  base_url: https://shop.test
  default_timeout: 7
  polling_interval: 0.1
  page_load_timeout: 40
  artifacts_dir: out
elements:
  header.login_link:
    primary: "a.ico-login"
    secondary: "#login-link"
    xpath: "//a[text()='Log in']"
    stability: High
  search.box:
    locators:
      - id: small-searchterms
      - css: "input.search-box-text"
  footer.logo:
    primary: "img.logo"
    xpath: "//footer//img"
"""


def _write(tmp_path, text, name="elements.yaml"):
    path = tmp_path / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return str(path)


class TestLoading:
    """Reading and validating locator maps."""

    def test_loads_app_section(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        assert repo.app.base_url == "https://shop.test"
        assert repo.app.default_timeout == 7.0
        assert repo.app.artifacts_dir == "out"
        assert repo.app.loading_indicators is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            Repository(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            Repository(_write(tmp_path, "elements: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            Repository(_write(tmp_path, "- a\n- b\n"))

    def test_schema_errors_are_all_reported(self, tmp_path):
        text = """
        app:
          default_timeout: -1
          preset: turbo
        elements:
          bad.one:
            secondary: "#x"
        """
        with pytest.raises(ConfigError) as exc_info:
            Repository(_write(tmp_path, text))
        message = str(exc_info.value)
        assert "app.default_timeout" in message
        assert "app.preset" in message
        assert "elements.bad.one" in message

    def test_elements_required(self):
        assert Repository.problems({"app": {}})

    def test_locator_entries_take_one_strategy(self):
        data = {"elements": {"x": {"locators": [{"id": "a", "css": "b"}]}}}
        assert Repository.problems(data)


class TestElements:
    """Building LocatorSets from element entries."""

    def test_primary_secondary_xpath_order(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        locators = repo.get("header.login_link")

        assert list(locators) == [
            Locator(CSS, "a.ico-login"),
            Locator(ID, "login-link"),
            Locator(XPATH, "//a[text()='Log in']"),
        ]
        assert locators.name == "header.login_link"
        assert locators.stability == "High"

    def test_xpath_without_secondary(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        assert [loc.strategy for loc in repo.get("footer.logo")] == [CSS, XPATH]

    def test_locators_list(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        assert list(repo.get("search.box")) == [
            Locator(ID, "small-searchterms"),
            Locator(CSS, "input.search-box-text"),
        ]
        assert repo.stability("search.box") == "Unknown"

    def test_get_is_cached(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        assert repo.get("search.box") is repo.get("search.box")

    def test_unknown_element(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        with pytest.raises(ConfigError, match="Unknown element"):
            repo.get("nope")
        assert not repo.has("nope")

    def test_list_elements_sorted(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        assert repo.list_elements() == ["footer.logo", "header.login_link", "search.box"]


class TestTimeConfig:
    """app timings feed the run configuration."""

    def test_app_timings_apply(self, tmp_path):
        cfg = Repository(_write(tmp_path, MAP)).time_config()
        assert cfg.visibility_wait.timeout == 7.0
        assert cfg.visibility_wait.interval == 0.1
        assert cfg.settle_wait.timeout == 7.0
        assert cfg.page_load.timeout == 40.0
        assert cfg.script.timeout == 20.0

    def test_absent_app_keys_keep_preset(self):
        repo = Repository.from_mapping({"app": {"preset": "fast"}, "elements": {"x": {"primary": "#x"}}})
        cfg = repo.time_config()
        assert cfg.visibility_wait.timeout == 8.0
        assert cfg.not_found_backoff == 0.1

    def test_app_timings_win_over_overrides(self, tmp_path):
        repo = Repository(_write(tmp_path, MAP))
        cfg = repo.time_config(overrides={"visibility_wait": {"timeout": 99}, "soft_wait": {"timeout": 1}})
        assert cfg.visibility_wait.timeout == 7.0
        assert cfg.soft_wait.timeout == 1
