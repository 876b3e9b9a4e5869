import pytest

from css_theme_resolver import clear_external_defaults_cache


@pytest.fixture
def write_css(tmp_path):
    """Write a stylesheet under tmp_path and return its absolute path."""
    def _write(relative, content):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture(autouse=True)
def _fresh_defaults_cache():
    clear_external_defaults_cache()
    yield
    clear_external_defaults_cache()
