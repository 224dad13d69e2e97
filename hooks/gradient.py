"""
Native gradient splash screens.

``SPLASH_GRADIENT`` holds a CSS gradient, e.g.::

    linear-gradient(64.28deg, #001833 0%, #004390 100%)
    radial-gradient(circle, rgb(0, 24, 51), #004390)

It is rendered with Pillow into bitmaps the platforms can show before the
webview exists:

android   ``drawable-<dpi>/gradient_splash.png`` plus a resolution independent
          ``drawable/splash_gradient_bg.xml`` shape
ios       ``LaunchImage.imageset`` (1x/2x/3x) referenced by an ``imageView``
          in the launch storyboard

Angles follow CSS: ``0deg`` points up, ``90deg`` to the right, and the
gradient line spans the whole box so the corners hit the first and last
stop exactly.  Radial gradients are centered circles reaching the farthest
corner.
"""
from __future__ import annotations

import io
import json
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image

import config as cfg
import fs
import logger as log
from hooks import colors
from hooks.hooks import HookContext, HookResult
from hooks.preferences import load_preferences
from hooks.resources import ANDROID, XmlResource
from hooks.splash import STORYBOARD_NAMES

GRADIENT_PREF = "SPLASH_GRADIENT"

ANDROID_SPLASH_PNG = "gradient_splash.png"
ANDROID_GRADIENT_XML = "splash_gradient_bg.xml"
ANDROID_SPLASH_SIZES: tuple[tuple[str, int, int], ...] = (
    ("drawable-mdpi",    270,  480),
    ("drawable-hdpi",    405,  720),
    ("drawable-xhdpi",   540,  960),
    ("drawable-xxhdpi",  810,  1440),
    ("drawable-xxxhdpi", 1080, 1920),
)

LAUNCH_IMAGE = "LaunchImage"
IOS_LAUNCH_POINTS = (414, 896)
IOS_LAUNCH_SCALES = (1, 2, 3)

_KEYWORD_ANGLES = {
    "top": 0.0, "right": 90.0, "bottom": 180.0, "left": 270.0,
    "top right": 45.0, "right top": 45.0,
    "bottom right": 135.0, "right bottom": 135.0,
    "bottom left": 225.0, "left bottom": 225.0,
    "top left": 315.0, "left top": 315.0,
}
_ANGLE_UNITS = {"deg": 1.0, "grad": 0.9, "rad": 180.0 / math.pi, "turn": 360.0}

_GRADIENT = re.compile(r"^\s*(linear|radial)-gradient\s*\((.*)\)\s*;?\s*$", re.I | re.S)
_ANGLE = re.compile(r"^(-?\d+(?:\.\d+)?|-?\.\d+)\s*(deg|grad|rad|turn)?$", re.I)
_STOP = re.compile(r"^(.+?)(?:\s+(-?\d+(?:\.\d+)?)%)?$", re.S)
_RGB = re.compile(r"^rgba?\(\s*(\d+)\s*[,\s]\s*(\d+)\s*[,\s]\s*(\d+)\s*(?:[,/]\s*[\d.]+%?\s*)?\)$", re.I)


class GradientError(ValueError):
    """The preference is not a supported CSS gradient."""


@dataclass(frozen=True)
class ColorStop:
    color:    str      # canonical #RRGGBB
    position: float    # 0.0 – 1.0


@dataclass(frozen=True)
class Gradient:
    kind:  str                  # "linear" | "radial"
    angle: float                # degrees, CSS convention; unused for radial
    stops: tuple[ColorStop, ...]

    @property
    def start_color(self) -> str:
        return self.stops[0].color

    @property
    def end_color(self) -> str:
        return self.stops[-1].color


# ══════════════════════════════════════════════════════════════════════════════
# Parsing
# ══════════════════════════════════════════════════════════════════════════════

def split_arguments(text: str) -> list[str]:
    """Split on commas that are not inside parentheses (``rgb(…)`` stops)."""
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    parts.append(current.strip())
    return [p for p in parts if p]


def parse_angle(text: str) -> Optional[float]:
    """Degrees in ``[0, 360)`` for ``45deg`` / ``0.25turn`` / ``to right``; None otherwise."""
    raw = " ".join(text.lower().split())
    if raw.startswith("to "):
        return _KEYWORD_ANGLES.get(raw[3:])
    match = _ANGLE.match(raw)
    if match is None:
        return None
    return (float(match.group(1)) * _ANGLE_UNITS[match.group(2) or "deg"]) % 360


def parse_color(text: str) -> Optional[str]:
    raw = text.strip()
    match = _RGB.match(raw)
    if match:
        rgb = [min(255, int(v)) for v in match.groups()]
        return "#{:02X}{:02X}{:02X}".format(*rgb)
    if not raw.startswith("#"):
        return None
    digits = raw[1:]
    if len(digits) == 8:          # CSS #RRGGBBAA
        digits = digits[:6]
    elif len(digits) == 4:        # CSS #RGBA
        digits = digits[:3]
    return colors.normalize_hex_color("#" + digits)


def _parse_stop(text: str) -> Optional[tuple[str, Optional[float]]]:
    match = _STOP.match(text.strip())
    if match is None:
        return None
    color = parse_color(match.group(1))
    if color is None:
        return None
    position = float(match.group(2)) / 100 if match.group(2) is not None else None
    return color, position


def resolve_positions(positions: list[Optional[float]]) -> list[float]:
    """
    CSS stop placement: first/last default to 0 and 1, unplaced stops are
    spread evenly between their placed neighbours, and a stop never sits
    before the one preceding it.
    """
    resolved = list(positions)
    if resolved[0] is None:
        resolved[0] = 0.0
    if resolved[-1] is None:
        resolved[-1] = 1.0
    floor = resolved[0]
    for i, pos in enumerate(resolved):
        if pos is not None:
            floor = max(floor, pos)
            resolved[i] = floor
    i = 1
    while i < len(resolved):
        if resolved[i] is not None:
            i += 1
            continue
        end = i
        while resolved[end] is None:
            end += 1
        start_pos, end_pos = resolved[i - 1], resolved[end]
        span = end - (i - 1)
        for k in range(i, end):
            resolved[k] = start_pos + (end_pos - start_pos) * (k - (i - 1)) / span
        i = end + 1
    return [min(1.0, max(0.0, p)) for p in resolved]


def parse_gradient(text: Optional[str]) -> Gradient:
    """Parse a CSS ``linear-gradient()`` / ``radial-gradient()``. Raises ``GradientError``."""
    match = _GRADIENT.match(text or "")
    if match is None:
        raise GradientError(f"not a linear-/radial-gradient: {text!r}")
    kind = match.group(1).lower()
    args = split_arguments(match.group(2))

    angle = 180.0
    if args and _parse_stop(args[0]) is None:
        head = args.pop(0)
        if kind == "linear":
            parsed = parse_angle(head)
            if parsed is None:
                raise GradientError(f"unsupported gradient direction {head!r}")
            angle = parsed
        # radial shape / size / position descriptors are not rendered

    stops = []
    for arg in args:
        stop = _parse_stop(arg)
        if stop is None:
            raise GradientError(f"unsupported color stop {arg!r}")
        stops.append(stop)
    if len(stops) < 2:
        raise GradientError("a gradient needs at least two color stops")

    positions = resolve_positions([pos for _, pos in stops])
    return Gradient(
        kind  = kind,
        angle = angle,
        stops = tuple(ColorStop(color, pos) for (color, _), pos in zip(stops, positions)),
    )


# ══════════════════════════════════════════════════════════════════════════════
# Rendering
# ══════════════════════════════════════════════════════════════════════════════

def color_at(gradient: Gradient, t: float) -> tuple[int, int, int]:
    """Color of the gradient line at *t* (0–1), interpolated in sRGB."""
    stops = gradient.stops
    if t <= stops[0].position:
        return colors.hex_to_rgb(stops[0].color)
    for left, right in zip(stops, stops[1:]):
        if t <= right.position:
            span = right.position - left.position
            if span <= 0:
                return colors.hex_to_rgb(right.color)
            f = (t - left.position) / span
            a, b = colors.hex_to_rgb(left.color), colors.hex_to_rgb(right.color)
            return tuple(int(round(x + (y - x) * f)) for x, y in zip(a, b))
    return colors.hex_to_rgb(stops[-1].color)


def _radial_map(width: int, height: int) -> Image.Image:
    # smooth enough to compute at <= 256px and scale up
    scale = min(1.0, 256 / max(width, height))
    w, h = max(1, round(width * scale)), max(1, round(height * scale))
    cx, cy = w / 2, h / 2
    reach = math.hypot(cx, cy)
    small = Image.new("L", (w, h))
    small.putdata([
        min(255, int(round(255 * math.hypot(x + 0.5 - cx, y + 0.5 - cy) / reach)))
        for y in range(h) for x in range(w)
    ])
    if (w, h) == (width, height):
        return small
    return small.resize((width, height), Image.Resampling.BILINEAR)


def _position_map(gradient: Gradient, width: int, height: int) -> Image.Image:
    """L image whose value is 255 × the gradient position of each pixel."""
    if gradient.kind == "radial":
        return _radial_map(width, height)
    # linear_gradient(): value = row index, mapped onto the gradient line
    cx, cy = width / 2, height / 2
    rad = math.radians(gradient.angle)
    s, c = math.sin(rad), math.cos(rad)
    length = abs(width * s) + abs(height * c)
    d, e = 255 * s / length, -255 * c / length
    data = (0, 0, 128, d, e, 0.5 + 255 * (0.5 + (-cx * s + cy * c) / length))
    return Image.linear_gradient("L").transform((width, height), Image.Transform.AFFINE, data,
                                                resample=Image.Resampling.BILINEAR)


def render_gradient(gradient: Gradient, width: int, height: int) -> Image.Image:
    ramp = [color_at(gradient, i / 255) for i in range(256)]
    positions = _position_map(gradient, width, height)
    bands = [positions.point([rgb[channel] for rgb in ramp]) for channel in range(3)]
    return Image.merge("RGB", bands)


def png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def _write_if_new(path: Path, data: bytes) -> bool:
    if path.exists() and path.read_bytes() == data:
        return False
    fs.write_bytes(path, data)
    return True


# ══════════════════════════════════════════════════════════════════════════════
# Android
# ══════════════════════════════════════════════════════════════════════════════

def android_angle(css_angle: float) -> int:
    """CSS direction → ``<gradient android:angle>`` (counter-clockwise from "to right", multiple of 45)."""
    return int(round(((90 - css_angle) % 360) / 45)) * 45 % 360


def gradient_shape_xml(path: Path, gradient: Gradient) -> str:
    res = XmlResource.create(path, "shape")
    res.root.set(f"{ANDROID}shape", "rectangle")
    attrs = {
        f"{ANDROID}type":       gradient.kind,
        f"{ANDROID}startColor": gradient.start_color,
        f"{ANDROID}endColor":   gradient.end_color,
    }
    if len(gradient.stops) > 2:
        attrs[f"{ANDROID}centerColor"] = gradient.stops[len(gradient.stops) // 2].color
    if gradient.kind == "radial":
        attrs[f"{ANDROID}gradientRadius"] = "100%p"
    else:
        attrs[f"{ANDROID}angle"] = str(android_angle(gradient.angle))
    ET.SubElement(res.root, "gradient", attrs)
    return res.as_text()


def android_targets(res_dir: Path) -> list[tuple[str, int, int]]:
    """Density folders present in the project; the largest one when none exists."""
    present = [entry for entry in ANDROID_SPLASH_SIZES if (res_dir / entry[0]).is_dir()]
    return present or [ANDROID_SPLASH_SIZES[-1]]


def generate_android_gradient(root: Path, gradient: Gradient) -> list[Path]:
    res_dir = cfg.android_res_dir(root)
    changed: list[Path] = []
    for folder, width, height in android_targets(res_dir):
        target = res_dir / folder / ANDROID_SPLASH_PNG
        if _write_if_new(target, png_bytes(render_gradient(gradient, width, height))):
            changed.append(target)
            log.info(f"   {folder}/{ANDROID_SPLASH_PNG}  {width}×{height}")
    shape = res_dir / "drawable" / ANDROID_GRADIENT_XML
    if fs.write_if_changed(shape, fs.read_text(shape), gradient_shape_xml(shape, gradient)):
        changed.append(shape)
        log.info(f"   drawable/{ANDROID_GRADIENT_XML}")
    return changed


# ══════════════════════════════════════════════════════════════════════════════
# iOS
# ══════════════════════════════════════════════════════════════════════════════

def launch_imageset_dir(root: Path) -> Optional[Path]:
    catalog = cfg.ios_asset_catalog(root)
    return None if catalog is None else catalog / f"{LAUNCH_IMAGE}.imageset"


def _launch_filename(scale: int) -> str:
    return f"{LAUNCH_IMAGE}.png" if scale == 1 else f"{LAUNCH_IMAGE}@{scale}x.png"


def generate_launch_images(imageset: Path, gradient: Gradient) -> list[Path]:
    width, height = IOS_LAUNCH_POINTS
    changed: list[Path] = []
    for scale in IOS_LAUNCH_SCALES:
        target = imageset / _launch_filename(scale)
        image = render_gradient(gradient, width * scale, height * scale)
        if _write_if_new(target, png_bytes(image)):
            changed.append(target)
            log.info(f"   {imageset.name}/{target.name}  {width * scale}×{height * scale}")
    contents = {
        "images": [
            {"idiom": "universal", "filename": _launch_filename(scale), "scale": f"{scale}x"}
            for scale in IOS_LAUNCH_SCALES
        ],
        "info": {"version": 1, "author": "xcode"},
    }
    contents_path = imageset / "Contents.json"
    text = json.dumps(contents, indent=2) + "\n"
    if fs.write_if_changed(contents_path, fs.read_text(contents_path), text):
        changed.append(contents_path)
    return changed


def attach_launch_image(path: Path) -> bool:
    """
    Show ``LaunchImage`` full-screen in a launch storyboard: an existing
    ``imageView`` is repointed, otherwise one is added to the root view.
    """
    res = XmlResource.load(path)
    image_views = list(res.root.iter("imageView"))
    if image_views:
        for image_view in image_views:
            res.set_attr(image_view, "image", LAUNCH_IMAGE)
    else:
        view = next((v for v in res.root.iter("view") if v.get("key") == "view"), None)
        if view is None:
            log.warn(f"   {path.name}: no root view, launch image not attached")
            return False
        subviews = view.find("subviews")
        if subviews is None:
            subviews = ET.Element("subviews")
            view.insert(0, subviews)
        width, height = IOS_LAUNCH_POINTS
        image_view = ET.SubElement(subviews, "imageView", {
            "userInteractionEnabled": "NO",
            "contentMode":            "scaleAspectFill",
            "image":                  LAUNCH_IMAGE,
            "id":                     "gradient-launch-image",
        })
        ET.SubElement(image_view, "rect", {
            "key": "frame", "x": "0.0", "y": "0.0", "width": f"{width}", "height": f"{height}",
        })
        ET.SubElement(image_view, "autoresizingMask", {
            "key": "autoresizingMask", "widthSizable": "YES", "heightSizable": "YES",
        })
        res.modified = True

    resources = res.root.find("resources")
    if resources is None:
        resources = ET.SubElement(res.root, "resources")
    if not [i for i in resources.findall("image") if i.get("name") == LAUNCH_IMAGE]:
        width, height = IOS_LAUNCH_POINTS
        ET.SubElement(resources, "image", {"name": LAUNCH_IMAGE, "width": f"{width}", "height": f"{height}"})
        res.modified = True
    return res.save()


def generate_ios_gradient(root: Path, gradient: Gradient) -> list[Path]:
    imageset = launch_imageset_dir(root)
    if imageset is None:
        log.warn("   no iOS app folder found")
        return []
    changed = generate_launch_images(imageset, gradient)
    for storyboard in fs.find_all_files(cfg.ios_dir(root), STORYBOARD_NAMES, max_depth=4, match="exact"):
        if attach_launch_image(storyboard):
            changed.append(storyboard)
            log.info(f"   {storyboard.name} → {LAUNCH_IMAGE}")
    return changed


# ══════════════════════════════════════════════════════════════════════════════
# generate_gradient_splash  (before_compile)
# ══════════════════════════════════════════════════════════════════════════════

def generate_gradient_splash(ctx: HookContext) -> HookResult:
    prefs = load_preferences(ctx)
    raw = prefs.get(GRADIENT_PREF)
    if not raw:
        return HookResult.skip(f"{GRADIENT_PREF} not set")
    try:
        gradient = parse_gradient(raw)
    except GradientError as exc:
        return HookResult.fail(f"{GRADIENT_PREF}: {exc}")

    targets = [p for p in ctx.platforms if p in ("android", "ios")]
    if not targets:
        return HookResult.skip("no android / ios platform targeted")

    log.section("Native gradient splash")
    log.info(f"   {gradient.kind} {gradient.angle:g}deg, "
             + " → ".join(f"{s.color} {s.position:.0%}" for s in gradient.stops))

    changed: list[Path] = []
    errors: list[str] = []
    for platform in targets:
        try:
            if platform == "android":
                if not cfg.android_dir(ctx.project_root).is_dir():
                    log.warn("   android platform folder not found")
                    continue
                changed += generate_android_gradient(ctx.project_root, gradient)
            else:
                changed += generate_ios_gradient(ctx.project_root, gradient)
        except (OSError, ET.ParseError) as exc:
            log.error(f"   {platform}: {exc}")
            errors.append(platform)

    if errors:
        return HookResult.fail(f"gradient splash incomplete for {', '.join(errors)}", changed)
    return HookResult(changed=changed, message=f"{len(changed)} gradient splash file(s) written")
