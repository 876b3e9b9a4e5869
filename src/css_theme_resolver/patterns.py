import re

PATTERNS = {
    # --x: var(--x)
    "SELF_REFERENCE": re.compile(r'^var\(\s*(--[\w-]+)\s*\)$'),

    # red-500, brand-500-hover, gray-2.5
    "SCALE_STEP": re.compile(r'^(?P<token>[A-Za-z][\w-]*?)-(?P<step>\d+(?:\.\d+)?(?:-[A-Za-z][\w-]*)?)$'),

    # xl--line-height
    "FONT_SIZE_LINE_HEIGHT": re.compile(r'^(.+)--line-height$'),

    "KEBAB": re.compile(r'-([a-z0-9])'),

    # Selector parts that name a variant
    "DATA_THEME": re.compile(r'\[data-theme\s*=\s*[\'"]?([^\'"\]]+)[\'"]?\]'),
    "DATA_ATTR": re.compile(r'\[data-[\w-]+\s*=\s*[\'"]?([^\'"\]]+)[\'"]?\]'),
    "CLASS_NAME": re.compile(r'\.([A-Za-z][\w-]*)'),
    "COLOR_SCHEME": re.compile(r'prefers-color-scheme\s*:\s*(\w+)'),
    "COMBINATOR": re.compile(r'[\s>+~]'),

    # Import targets that never point at a local file
    "REMOTE_IMPORT": re.compile(r'^(?:[a-z][a-z0-9+.-]*:|//)', re.IGNORECASE),
}


def kebab_to_camel(value: str) -> str:
    """primary-foreground -> primaryForeground"""
    return PATTERNS["KEBAB"].sub(lambda m: m.group(1).upper(), value)


def variant_to_camel(variant_name: str) -> str:
    """theme-ocean.dark -> themeOceanDark"""
    parts = [kebab_to_camel(part) for part in variant_name.split('.') if part]
    if not parts:
        return ""
    return parts[0] + "".join(part[:1].upper() + part[1:] for part in parts[1:])
