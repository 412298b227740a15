"""CSS to inline-style merging."""

import logging

import cssutils
from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

log = logging.getLogger(__name__)

# cssutils reports every unknown property through its own logger
cssutils.log.setLevel(logging.CRITICAL)


def parse_declarations(style: str) -> list[tuple[str, str]]:
    """Split a style attribute into (property, value) pairs.

    Property names are lower-cased. Semicolons inside strings and url()
    values stay part of their value; declarations cssutils cannot parse are
    dropped.
    """
    declarations = []
    for prop in cssutils.parseStyle(style, validate=False).getProperties(all=True):
        value = prop.value
        if prop.priority:
            value = f"{value} !important"
        declarations.append((prop.name.lower(), value))
    return declarations


def serialize_declarations(declarations: list[tuple[str, str]]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in declarations)


def _collect_matches(soup: BeautifulSoup, css_text: str) -> list[tuple[Tag, list[tuple]]]:
    sheet = cssutils.parseString(css_text, validate=False)

    matches: dict[int, tuple[Tag, list[tuple]]] = {}
    order = 0
    for rule in sheet:
        if rule.type != rule.STYLE_RULE:
            continue
        properties = [
            (prop.name.lower(), prop.value, prop.priority == "important")
            for prop in rule.style.getProperties(all=True)
        ]
        if not properties:
            continue

        for selector in rule.selectorList:
            try:
                elements = soup.select(selector.selectorText)
            except (SelectorSyntaxError, NotImplementedError, ValueError):
                log.debug("Skipping unsupported selector %s", selector.selectorText)
                continue

            for element in elements:
                _, entries = matches.setdefault(id(element), (element, []))
                for name, value, important in properties:
                    entries.append((important, selector.specificity, order, name, value))
                    order += 1

    return list(matches.values())


def inline_stylesheet(soup: BeautifulSoup, css_text: str) -> None:
    """Write the rules of *css_text* into the style attributes of *soup*.

    Only elements matched by a selector are touched. At-rules and selectors
    the selector engine cannot evaluate contribute nothing. Declarations
    already present on an element beat stylesheet rules unless the rule is
    marked !important.
    """
    if not css_text.strip():
        return

    for element, entries in _collect_matches(soup, css_text):
        merged: dict[str, str] = {}
        important: set[str] = set()
        for is_important, _, _, name, value in sorted(entries, key=lambda e: e[:3]):
            merged[name] = value
            if is_important:
                important.add(name)

        for name, value in parse_declarations(element.get("style", "")):
            if name not in important:
                merged[name] = value

        element["style"] = serialize_declarations(list(merged.items()))
