"""
Color-value translator shared by every color hook.

Supported encodings
-------------------
``#RRGGBB`` / ``RRGGBB``     hex, with or without the hash
``#RGB``                      CSS shorthand
``#AARRGGBB`` / ``0xAARRGGBB`` Android ARGB hex (alpha is dropped)
``r, g, b``                   integer tuple, as used inside ``rgb()``
``-14805916``                 signed 32-bit ARGB decimal (Java ``int`` colors)
``0.118 / 0.078 / 0.392``     normalized float RGB (storyboards, ``UIColor``)

The canonical form is upper-case ``#RRGGBB``.  :func:`normalize_hex_color`
maps every hex encoding to it and is idempotent.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import fs
import logger as log

_HEX_DIGITS = re.compile(r"^[0-9A-Fa-f]+$")


# ══════════════════════════════════════════════════════════════════════════════
# Normalisation
# ══════════════════════════════════════════════════════════════════════════════

def normalize_hex_color(value: Optional[str], default: Optional[str] = None) -> Optional[str]:
    """
    Return *value* as ``#RRGGBB`` (upper-case), or *default* if it is not a
    recognisable hex color.

    >>> normalize_hex_color("0xFF1e1464")
    '#1E1464'
    >>> normalize_hex_color("abc")
    '#AABBCC'
    """
    if value is None:
        return default
    raw = value.strip()
    if raw[:2].lower() == "0x":
        raw = raw[2:]
    raw = raw.lstrip("#")
    if not raw or not _HEX_DIGITS.match(raw):
        return default
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    elif len(raw) == 8:
        raw = raw[2:]                 # AARRGGBB → RRGGBB
    elif len(raw) != 6:
        return default
    return "#" + raw.upper()


def validate_hex_color(value: Optional[str]) -> bool:
    return normalize_hex_color(value) is not None


def _require(hex_color: str) -> str:
    normalized = normalize_hex_color(hex_color)
    if normalized is None:
        raise ValueError(f"not a hex color: {hex_color!r}")
    return normalized


# ══════════════════════════════════════════════════════════════════════════════
# Conversions
# ══════════════════════════════════════════════════════════════════════════════

def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    h = _require(hex_color)
    return int(h[1:3], 16), int(h[3:5], 16), int(h[5:7], 16)


def hex_to_rgb_float(hex_color: str) -> tuple[float, float, float]:
    r, g, b = hex_to_rgb(hex_color)
    return r / 255.0, g / 255.0, b / 255.0


def hex_to_argb(hex_color: str) -> int:
    """Opaque ARGB as a signed 32-bit int, e.g. ``#1E1464`` → ``-14805916``."""
    r, g, b = hex_to_rgb(hex_color)
    value = (0xFF << 24) | (r << 16) | (g << 8) | b
    return value - 0x100000000 if value & 0x80000000 else value


def argb_to_rgb(argb: int) -> tuple[int, int, int]:
    value = argb & 0xFFFFFFFF
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def argb_to_hex(argb: int) -> str:
    return "#{:02X}{:02X}{:02X}".format(*argb_to_rgb(argb))


def rgb_string(hex_color: str) -> str:
    """``#1E1464`` → ``"30, 20, 100"``"""
    return "{}, {}, {}".format(*hex_to_rgb(hex_color))


# ── native literals ────────────────────────────────────────────────────────

def storyboard_color_attrs(hex_color: str) -> dict:
    """Attributes of an sRGB ``<color key="backgroundColor" …/>`` element."""
    r, g, b = hex_to_rgb_float(hex_color)
    return {
        "key":              "backgroundColor",
        "red":              f"{r:.3f}",
        "green":            f"{g:.3f}",
        "blue":             f"{b:.3f}",
        "alpha":            "1",
        "colorSpace":       "custom",
        "customColorSpace": "sRGB",
    }


def uicolor_objc(hex_color: str) -> str:
    r, g, b = hex_to_rgb_float(hex_color)
    return f"[UIColor colorWithRed:{r:.3f} green:{g:.3f} blue:{b:.3f} alpha:1.0]"


def uicolor_swift(hex_color: str) -> str:
    r, g, b = hex_to_rgb_float(hex_color)
    return f"UIColor(red: {r:.3f}, green: {g:.3f}, blue: {b:.3f}, alpha: 1.0)"


# ══════════════════════════════════════════════════════════════════════════════
# Variation replacement
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ColorVariation:
    """One textual encoding of the old color and its replacement."""
    kind:    str            # "hex" | "rgb" | "argb_decimal"
    old:     str
    new:     str
    pattern: "re.Pattern[str]"


def generate_color_variations(old_color: str, new_color: str) -> list[ColorVariation]:
    """
    Build the replacement table for *old_color* → *new_color*.

    Returns an empty list when either color is invalid or both are equal.
    Hex matching is case-insensitive and swallows any run of ``#`` in front
    of the old value, so ``##1E1464`` collapses to a single ``#``.
    """
    old = normalize_hex_color(old_color)
    new = normalize_hex_color(new_color)
    if old is None or new is None or old == new:
        return []

    old_hex, new_hex = old[1:], new[1:]
    old_r, old_g, old_b = hex_to_rgb(old)
    old_argb, new_argb = hex_to_argb(old), hex_to_argb(new)

    return [
        ColorVariation(
            kind="hex",
            old=old,
            new=new,
            pattern=re.compile(
                rf"(?<![\w#])(#*){old_hex}(?![0-9A-Za-z_])", re.IGNORECASE
            ),
        ),
        ColorVariation(
            kind="rgb",
            old=rgb_string(old),
            new=rgb_string(new),
            pattern=re.compile(rf"(?<!\d){old_r}\s*,\s*{old_g}\s*,\s*{old_b}(?![\d.])"),
        ),
        ColorVariation(
            kind="argb_decimal",
            old=str(old_argb),
            new=str(new_argb),
            pattern=re.compile(rf"(?<![\w.-]){re.escape(str(old_argb))}(?![\d.])"),
        ),
    ]


def _hex_replacement(new_hex: str):
    def _sub(match: "re.Match[str]") -> str:
        hashes, body = match.group(1), match.group(0)[len(match.group(1)):]
        value = new_hex.lower() if body == body.lower() and body != body.upper() else new_hex
        return ("#" if hashes else "") + value
    return _sub


def replace_color_variations(text: str, variations: list[ColorVariation]) -> tuple[str, int]:
    """Apply every variation to *text*. Returns ``(new_text, replacements)``."""
    total = 0
    for variation in variations:
        if variation.kind == "hex":
            repl = _hex_replacement(variation.new[1:])
        else:
            repl = variation.new
        text, n = variation.pattern.subn(repl, text)
        total += n
    return text, total


def replace_colors_in_file(path: Path, variations: list[ColorVariation]) -> int:
    """
    Rewrite *path* in place. Returns the replacement count, 0 when nothing
    matched (file untouched) and -1 when the file could not be processed.
    """
    try:
        original = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return 0
    except OSError as exc:
        log.error(f"   cannot read {path}: {exc}")
        return -1

    updated, count = replace_color_variations(original, variations)
    if count == 0:
        return 0
    try:
        fs.write_if_changed(path, original, updated)
    except OSError as exc:
        log.error(f"   cannot write {path}: {exc}")
        return -1
    return count
