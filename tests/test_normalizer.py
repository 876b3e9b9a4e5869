import pytest

from css_theme_resolver import (
    CssTokenReader,
    Exclusion,
    Flat,
    FontSize,
    Scale,
    Theme,
    ThemeCategory,
    ThemeNormalizer,
    apply_exclusions,
    theme_to_declarations,
)
from css_theme_resolver.normalizer import build_aliases, parse_variable_name
from css_theme_resolver.variables import build_variable_maps


@pytest.fixture
def normalize():
    reader = CssTokenReader()
    normalizer = ThemeNormalizer()

    def _normalize(css, resolve=False):
        document = reader.parse(css)
        variables = build_variable_maps(document.declarations) if resolve else None
        aliases = build_aliases(document.declarations)
        return normalizer.normalize(document, variables, aliases)
    return _normalize


class TestParseVariableName:
    @pytest.mark.parametrize("name, category, key", [
        ("--color-red-500", ThemeCategory.COLORS, "red-500"),
        ("--font-weight-bold", ThemeCategory.FONT_WEIGHT, "bold"),
        ("--font-sans", ThemeCategory.FONTS, "sans"),
        ("--text-shadow-sm", ThemeCategory.TEXT_SHADOWS, "sm"),
        ("--text-xl", ThemeCategory.FONT_SIZE, "xl"),
        ("--inset-shadow-xs", ThemeCategory.INSET_SHADOWS, "xs"),
        ("--drop-shadow-md", ThemeCategory.DROP_SHADOWS, "md"),
        ("--animate-spin", ThemeCategory.ANIMATIONS, "spin"),
        ("--breakpoint-md", ThemeCategory.BREAKPOINTS, "md"),
        ("--container-lg", ThemeCategory.CONTAINERS, "lg"),
        ("--default-font-family", ThemeCategory.DEFAULTS, "font-family"),
    ])
    def test_namespaces(self, name, category, key):
        parsed = parse_variable_name(name)
        assert parsed.category is category
        assert parsed.key == key
        assert parsed.deprecation is None

    def test_unknown_namespace(self):
        assert parse_variable_name("--background") is None
        assert parse_variable_name("--sidebar-ring") is None

    def test_singular_variable(self):
        parsed = parse_variable_name("--spacing")
        assert parsed.category is ThemeCategory.SPACING
        assert parsed.key == "base"
        assert parsed.deprecation.replacement == "--spacing-base"


class TestColors:
    def test_scale_and_flat(self, normalize):
        theme = normalize("""
            @theme {
                --color-red-50: #fef2f2;
                --color-red-500: #ef4444;
                --color-light-blue-500: #0ea5e9;
                --color-brand-500-hover: #123456;
                --color-primary-foreground: white;
            }
        """).default

        assert theme.colors["red"] == Scale({"50": "#fef2f2", "500": "#ef4444"})
        assert theme.colors["lightBlue"] == Scale({"500": "#0ea5e9"})
        assert theme.colors["brand"] == Scale({"500-hover": "#123456"})
        assert theme.colors["primaryForeground"] == Flat("white")

    def test_last_declared_form_wins(self, normalize):
        as_scale = normalize("@theme { --color-red: red; --color-red-500: #ef4444; }").default
        assert as_scale.colors["red"] == Scale({"500": "#ef4444"})

        as_flat = normalize("@theme { --color-red-500: #ef4444; --color-red: red; }").default
        assert as_flat.colors["red"] == Flat("red")


class TestCategories:
    def test_simple_buckets(self, normalize):
        theme = normalize("""
            @theme {
                --spacing-4: 1rem;
                --font-sans: ui-sans-serif;
                --font-weight-bold: 700;
                --tracking-wide: 0.025em;
                --leading-tight: 1.25;
                --radius-lg: 0.5rem;
                --shadow-sm: 0 1px 2px black;
                --blur-md: 12px;
                --ease-in: cubic-bezier(0.4, 0, 1, 1);
                --aspect-video: 16 / 9;
                --perspective-near: 300px;
                --animate-spin: spin 1s linear infinite;
                --unknown-token: 1;
            }
        """).default

        assert theme.spacing == {"4": "1rem"}
        assert theme.fonts == {"sans": "ui-sans-serif"}
        assert theme.font_weight == {"bold": "700"}
        assert theme.tracking == {"wide": "0.025em"}
        assert theme.leading == {"tight": "1.25"}
        assert theme.radius == {"lg": "0.5rem"}
        assert theme.shadows == {"sm": "0 1px 2px black"}
        assert theme.blur == {"md": "12px"}
        assert theme.ease == {"in": "cubic-bezier(0.4, 0, 1, 1)"}
        assert theme.aspect == {"video": "16 / 9"}
        assert theme.perspective == {"near": "300px"}
        assert theme.animations == {"spin": "spin 1s linear infinite"}

    def test_font_size_line_height(self, normalize):
        theme = normalize("""
            @theme {
                --text-sm--line-height: 1.25rem;
                --text-sm: 0.875rem;
                --text-xl: 1.25rem;
                --text-xl--line-height: 1.75rem;
                --text-base: 1rem;
            }
        """).default

        assert theme.font_size["sm"] == FontSize("0.875rem", "1.25rem")
        assert theme.font_size["xl"] == FontSize("1.25rem", "1.75rem")
        assert theme.font_size["base"] == FontSize("1rem")

    def test_defaults_are_camel_cased(self, normalize):
        theme = normalize("@theme { --default-font-family: var(--font-sans); }").default
        assert theme.defaults == {"fontFamily": "var(--font-sans)"}

    def test_singular_variables_warn(self, normalize):
        result = normalize("@theme { --spacing: 0.25rem; --radius: 0.5rem; --spacing-4: 1rem; }")
        assert result.default.spacing == {"base": "0.25rem", "4": "1rem"}
        assert result.default.radius == {"default": "0.5rem"}
        assert [w.variable for w in result.warnings] == ["--spacing", "--radius"]

    def test_keyframes_land_in_default(self, normalize):
        result = normalize(".dark { --color-x: red; }\n@keyframes spin { to { opacity: 1; } }")
        assert set(result.variants["default"].keyframes) == {"spin"}
        assert result.variants["dark"].keyframes == {}


class TestVariants:
    def test_variants_are_separate(self, normalize):
        result = normalize("""
            @theme { --color-primary: blue; }
            .dark { --color-primary: navy; }
            [data-theme="ocean"] { --color-primary: teal; }
        """)
        assert set(result.variants) == {"default", "dark", "ocean"}
        assert result.variants["dark"].colors == {"primary": Flat("navy")}

    def test_aliases_follow_raw_variables(self, normalize):
        result = normalize("""
            :root { --background: white; }
            .dark { --background: black; }
            @theme inline { --color-background: var(--background); }
        """, resolve=True)
        assert result.default.colors["background"] == Flat("white")
        assert result.variants["dark"].colors["background"] == Flat("black")

    def test_values_left_verbatim_without_variables(self, normalize):
        result = normalize("@theme { --color-primary: var(--brand); --color-x: not a color; }")
        assert result.default.colors["primary"] == Flat("var(--brand)")
        assert result.default.colors["x"] == Flat("not a color")


class TestExclusions:
    def test_initial_clears_earlier_keys(self, normalize):
        result = normalize("""
            @theme {
                --color-red-500: red;
                --spacing-4: 1rem;
                --color-*: initial;
                --color-blue-500: blue;
            }
        """)
        assert result.default.colors == {"blue": Scale({"500": "blue"})}
        assert result.default.spacing == {"4": "1rem"}
        assert result.exclusions["default"] == [Exclusion(ThemeCategory.COLORS, "*")]

    def test_initial_forms(self):
        theme = Theme.from_dict({
            "colors": {"red": {"500": "r5", "600": "r6"}, "blue": {"500": "b5"}, "white": "#fff"},
            "spacing": {"4": "1rem", "8": "2rem"},
            "fontWeight": {"bold": "700"},
        })

        assert "red" not in apply_exclusions(theme, [Exclusion(ThemeCategory.COLORS, "red-*")]).colors
        assert apply_exclusions(theme, [Exclusion(ThemeCategory.COLORS, "red-500")]).colors["red"] == Scale({"600": "r6"})
        assert "white" not in apply_exclusions(theme, [Exclusion(ThemeCategory.COLORS, "white")]).colors
        assert apply_exclusions(theme, [Exclusion(ThemeCategory.SPACING, "4")]).spacing == {"8": "2rem"}
        assert apply_exclusions(theme, [Exclusion(None)]).is_empty()

        # input untouched
        assert theme.colors["red"] == Scale({"500": "r5", "600": "r6"})

    def test_prefix_reset_covers_compound_keys(self, normalize):
        result = normalize("""
            @theme {
                --color-lime-dark: #0f0;
                --color-lime-500: #0a0;
                --color-red-500: red;
                --color-lime-*: initial;
            }
        """)
        assert result.default.colors == {"red": Scale({"500": "red"})}
        assert result.exclusions["default"] == [Exclusion(ThemeCategory.COLORS, "lime-*")]

    def test_prefix_exclusion_over_camel_cased_defaults(self):
        defaults = Theme.from_dict({
            "colors": {"lime": {"500": "#0a0"}, "limeDark": "#0f0", "primaryForeground": "white", "red": "r"},
        })

        filtered = apply_exclusions(defaults, [Exclusion(ThemeCategory.COLORS, "lime-*")])
        assert filtered.colors == {"primaryForeground": Flat("white"), "red": Flat("r")}

        filtered = apply_exclusions(defaults, [Exclusion(ThemeCategory.COLORS, "primary-*")])
        assert "primaryForeground" not in filtered.colors

    def test_reset_everything(self, normalize):
        result = normalize("@theme { --spacing-4: 1rem; --*: initial; --radius-lg: 8px; }")
        assert result.default.spacing == {}
        assert result.default.radius == {"lg": "8px"}
        assert result.exclusions["default"] == [Exclusion(None, "*")]


def test_theme_to_declarations():
    theme = Theme.from_dict({
        "colors": {"lightBlue": {"500": "#0ea5e9"}, "primaryForeground": "white"},
        "fontSize": {"xl": {"size": "1.25rem", "lineHeight": "1.75rem"}},
        "defaults": {"fontFamily": "sans"},
        "spacing": {"4": "1rem"},
        "keyframes": {"spin": "@keyframes spin {}"},
    })
    values = {d.name: d.value for d in theme_to_declarations(theme)}
    assert values == {
        "--color-light-blue-500": "#0ea5e9",
        "--color-primary-foreground": "white",
        "--text-xl": "1.25rem",
        "--text-xl--line-height": "1.75rem",
        "--default-font-family": "sans",
        "--spacing-4": "1rem",
    }
