import pytest

from css_theme_resolver import ConfigurationError, ExternalDefaultsOptions, ResolveOptions, ThemeCategory
from css_theme_resolver.config import (
    ENV_BASE_PATH,
    ENV_INCLUDE_DEFAULTS,
    ENV_MAX_IMPORT_DEPTH,
    ENV_RESOLVE_IMPORTS,
    load_config_file,
    load_options,
    resolve_setting,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (ENV_RESOLVE_IMPORTS, ENV_INCLUDE_DEFAULTS, ENV_MAX_IMPORT_DEPTH, ENV_BASE_PATH):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config_file(tmp_path):
    def _write(content):
        path = tmp_path / "theme_resolver.yaml"
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


def test_defaults():
    options = load_options()
    assert options.resolve_imports is True
    assert options.include_external_defaults is False
    assert options.max_import_depth == 10
    assert options.base_path is None
    assert options.skip_import_prefixes == ["tailwindcss"]
    assert options.defaults_options() is None


def test_resolve_setting_precedence(monkeypatch):
    monkeypatch.setenv("TEST_THEME_KEY", "env")
    assert resolve_setting("arg", "TEST_THEME_KEY", {"k": "config"}, "k", "default") == "arg"
    assert resolve_setting(None, "TEST_THEME_KEY", {"k": "config"}, "k", "default") == "env"
    assert resolve_setting(None, "MISSING_THEME_KEY", {"k": "config"}, "k", "default") == "config"
    assert resolve_setting(None, None, {}, "k", "default") == "default"


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv(ENV_RESOLVE_IMPORTS, "false")
    monkeypatch.setenv(ENV_INCLUDE_DEFAULTS, "yes")
    monkeypatch.setenv(ENV_MAX_IMPORT_DEPTH, "3")
    monkeypatch.setenv(ENV_BASE_PATH, "/srv/app")

    options = load_options()

    assert options.resolve_imports is False
    assert options.include_external_defaults is True
    assert options.max_import_depth == 3
    assert options.base_path == "/srv/app"


def test_yaml_file(config_file):
    path = config_file("""
theme_resolver:
  max_import_depth: 4
  include_external_defaults:
    colors: false
  skip_import_prefixes:
    - "@acme/"
  overrides:
    dark:
      colors.primary.500: "#000"
""")
    options = load_options(path)

    assert options.max_import_depth == 4
    assert options.skip_import_prefixes == ["@acme/"]
    assert options.overrides == {"dark": {"colors.primary.500": "#000"}}
    toggles = options.defaults_options()
    assert isinstance(toggles, ExternalDefaultsOptions)
    assert ThemeCategory.COLORS not in toggles.enabled_categories()
    assert ThemeCategory.SPACING in toggles.enabled_categories()


def test_precedence_kwargs_env_yaml(monkeypatch, config_file):
    path = config_file("max_import_depth: 4\nresolve_imports: false\n")
    monkeypatch.setenv(ENV_MAX_IMPORT_DEPTH, "6")

    assert load_options(path).max_import_depth == 6
    assert load_options(path).resolve_imports is False
    assert load_options(path, max_import_depth=8).max_import_depth == 8
    assert load_options(path, resolve_imports=True).resolve_imports is True


def test_invalid_env_value(monkeypatch):
    monkeypatch.setenv(ENV_RESOLVE_IMPORTS, "maybe")
    with pytest.raises(ConfigurationError) as exc_info:
        load_options()
    assert exc_info.value.code == "CONFIGURATION_ERROR"


def test_negative_depth_rejected():
    with pytest.raises(ConfigurationError):
        load_options(max_import_depth=-1)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config_file(str(tmp_path / "nope.yaml"))


def test_malformed_yaml(config_file):
    with pytest.raises(ConfigurationError):
        load_config_file(config_file("theme_resolver: [unclosed"))


def test_non_mapping_yaml(config_file):
    with pytest.raises(ConfigurationError):
        load_config_file(config_file("- just\n- a list\n"))


def test_options_model_direct():
    options = ResolveOptions(include_external_defaults=True)
    assert options.defaults_options() == ExternalDefaultsOptions()
    assert len(options.defaults_options().enabled_categories()) == len(ThemeCategory)
