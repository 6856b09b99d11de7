"""
Plura Compiler — Style Normalizer

The editor stores styles as an ordered property → string map in React
CSSProperties naming. Each consumer needs them in its own shape:

  inline_css      preview HTML           "color: red; padding: 4px"
  jsx_style       web target (JSX)       {{"color": "red"}}
  native_style    mobile target          {"color": "red", "padding": 4}
  style_metadata  service target         inert JSON for a comment

Only the mobile conversion filters anything. Unsupported properties are
dropped one at a time and logged; they never fail the page or take their
siblings with them.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Mobile support tables
# ---------------------------------------------------------------------------

MOBILE_STYLE_PROPERTIES: set[str] = {
    # Box
    "width",
    "height",
    "minWidth",
    "minHeight",
    "maxWidth",
    "maxHeight",
    "aspectRatio",
    "margin",
    "marginTop",
    "marginRight",
    "marginBottom",
    "marginLeft",
    "marginHorizontal",
    "marginVertical",
    "padding",
    "paddingTop",
    "paddingRight",
    "paddingBottom",
    "paddingLeft",
    "paddingHorizontal",
    "paddingVertical",
    # Layout
    "display",
    "position",
    "top",
    "right",
    "bottom",
    "left",
    "zIndex",
    "overflow",
    "flex",
    "flexDirection",
    "flexWrap",
    "flexGrow",
    "flexShrink",
    "flexBasis",
    "justifyContent",
    "alignItems",
    "alignSelf",
    "alignContent",
    "gap",
    "rowGap",
    "columnGap",
    # Colour and border
    "backgroundColor",
    "color",
    "opacity",
    "borderWidth",
    "borderTopWidth",
    "borderRightWidth",
    "borderBottomWidth",
    "borderLeftWidth",
    "borderColor",
    "borderStyle",
    "borderRadius",
    "borderTopLeftRadius",
    "borderTopRightRadius",
    "borderBottomLeftRadius",
    "borderBottomRightRadius",
    # Text
    "fontSize",
    "fontWeight",
    "fontFamily",
    "fontStyle",
    "lineHeight",
    "letterSpacing",
    "textAlign",
    "textDecorationLine",
    "textTransform",
}

# Properties the native layout engine accepts only with some values
MOBILE_VALUE_RESTRICTIONS: dict[str, set[str]] = {
    "display": {"flex", "none"},
    "position": {"absolute", "relative"},
    "overflow": {"visible", "hidden", "scroll"},
    "borderStyle": {"solid", "dotted", "dashed"},
    "textAlign": {"auto", "left", "right", "center", "justify"},
}

# Properties whose numeric-looking values must stay strings
_STRING_VALUED: set[str] = {"fontWeight", "fontFamily", "color", "backgroundColor", "borderColor"}

_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")
_PX_LENGTH = re.compile(r"^(-?\d+(\.\d+)?)px$")


# ---------------------------------------------------------------------------
# Web / preview
# ---------------------------------------------------------------------------


def inline_css(styles: dict[str, str]) -> str:
    """Join property/value pairs into an inline style attribute value."""
    return "; ".join(f"{prop}: {value}" for prop, value in styles.items())


def jsx_style(styles: dict[str, str]) -> str:
    """JSX style expression body with property names left as given."""
    if not styles:
        return "{}"
    pairs = ", ".join(f"{_js(prop)}: {_js(value)}" for prop, value in styles.items())
    return "{ " + pairs + " }"


# ---------------------------------------------------------------------------
# Mobile
# ---------------------------------------------------------------------------


def native_style(styles: dict[str, str]) -> dict[str, Any]:
    """
    Convert editor styles into a React Native style object.

    kebab-case names are camelCased, unsupported properties and values are
    dropped, px lengths and bare numbers become numbers.
    """
    result: dict[str, Any] = {}
    for prop, value in styles.items():
        name = camel_case(prop)
        if name not in MOBILE_STYLE_PROPERTIES:
            logger.debug("native_style: dropping unsupported property %r", prop)
            continue
        text = str(value).strip()
        allowed = MOBILE_VALUE_RESTRICTIONS.get(name)
        if allowed is not None and text not in allowed:
            logger.debug("native_style: dropping %r, unsupported value %r", prop, text)
            continue
        result[name] = _native_value(name, text)
    return result


def style_literal(native: dict[str, Any]) -> str:
    """Render a native style dict as a JS object literal (keys unquoted)."""
    if not native:
        return "{}"
    pairs = ", ".join(f"{name}: {_js(value)}" for name, value in native.items())
    return "{ " + pairs + " }"


def camel_case(prop: str) -> str:
    """'background-color' → 'backgroundColor'. camelCase input is unchanged."""
    parts = [part for part in prop.split("-") if part]
    if "-" not in prop or not parts:
        return prop
    head, *rest = parts
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _native_value(name: str, text: str) -> Any:
    if name in _STRING_VALUED:
        return text
    match = _PX_LENGTH.match(text)
    if match:
        text = match.group(1)
    if _NUMBER.match(text):
        number = float(text)
        return int(number) if number.is_integer() else number
    return text


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def style_metadata(styles: dict[str, str]) -> str:
    """Compact JSON of the style map, in the editor's property order."""
    return json.dumps(styles, ensure_ascii=False, separators=(", ", ": "))


def _js(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)
