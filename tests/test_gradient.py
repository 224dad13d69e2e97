"""
Tests for the CSS gradient parser, the Pillow renderer and the native
gradient splash hook.
"""

import json
import xml.etree.ElementTree as ET

import pytest
from PIL import Image

from conftest import android_main

from hooks.gradient import (
    ANDROID_GRADIENT_XML,
    ANDROID_SPLASH_PNG,
    ColorStop,
    GradientError,
    android_angle,
    attach_launch_image,
    color_at,
    generate_gradient_splash,
    parse_angle,
    parse_gradient,
    render_gradient,
    resolve_positions,
    split_arguments,
)
from hooks.resources import ANDROID

SPLASH_GRADIENT = "linear-gradient(180deg, #001833 0%, #004390 100%)"


def _close(actual, expected, tolerance=8):
    return all(abs(a - e) <= tolerance for a, e in zip(actual, expected))


class TestParseGradient:
    def test_angle_and_stops(self):
        gradient = parse_gradient("linear-gradient(64.28deg, #001833 0%, #004390 100%)")
        assert gradient.kind == "linear"
        assert gradient.angle == pytest.approx(64.28)
        assert gradient.stops == (ColorStop("#001833", 0.0), ColorStop("#004390", 1.0))

    def test_keywords_rgb_and_css_alpha(self):
        gradient = parse_gradient("linear-gradient(to right, rgb(255, 0, 0), #00f 50%, #00ff0080)")
        assert gradient.angle == 90
        assert [s.color for s in gradient.stops] == ["#FF0000", "#0000FF", "#00FF00"]
        assert [s.position for s in gradient.stops] == [0.0, 0.5, 1.0]

    def test_default_direction_is_to_bottom(self):
        assert parse_gradient("linear-gradient(#fff, #000)").angle == 180

    def test_radial_shape_is_ignored(self):
        gradient = parse_gradient("radial-gradient(circle at center, #ffffff, #000000);")
        assert gradient.kind == "radial"
        assert len(gradient.stops) == 2

    @pytest.mark.parametrize("value", [
        None,
        "",
        "#001833",
        "url(splash.png)",
        "linear-gradient(#fff)",
        "linear-gradient(45deg, blue, red)",
        "linear-gradient(sideways, #fff, #000)",
    ])
    def test_rejected(self, value):
        with pytest.raises(GradientError):
            parse_gradient(value)

    def test_split_keeps_rgb_together(self):
        assert split_arguments("45deg, rgb(1, 2, 3) 10%, #fff") == ["45deg", "rgb(1, 2, 3) 10%", "#fff"]


class TestAngles:
    @pytest.mark.parametrize("text, expected", [
        ("45deg", 45), ("0.25turn", 90), ("100grad", 90), ("-90deg", 270),
        ("3.14159265rad", 180), ("to top left", 315), ("to  bottom", 180),
    ])
    def test_parse_angle(self, text, expected):
        assert parse_angle(text) == pytest.approx(expected)

    def test_unknown_angle(self):
        assert parse_angle("sideways") is None

    @pytest.mark.parametrize("css, android", [(180, 270), (90, 0), (0, 90), (270, 180), (64.28, 45)])
    def test_android_angle(self, css, android):
        assert android_angle(css) == android


class TestPositions:
    def test_unplaced_stops_are_spread(self):
        assert resolve_positions([None, None, None, 1.0]) == pytest.approx([0, 1 / 3, 2 / 3, 1])

    def test_stops_never_go_backwards(self):
        assert resolve_positions([0.5, 0.2, None]) == [0.5, 0.5, 1.0]

    def test_color_at(self):
        gradient = parse_gradient("linear-gradient(#000000, #ffffff)")
        assert color_at(gradient, 0) == (0, 0, 0)
        assert color_at(gradient, 0.5) == (128, 128, 128)
        assert color_at(gradient, 1) == (255, 255, 255)


class TestRender:
    def test_top_to_bottom(self):
        image = render_gradient(parse_gradient("linear-gradient(180deg, #000000, #ffffff)"), 40, 100)
        assert image.size == (40, 100)
        assert image.mode == "RGB"
        assert _close(image.getpixel((20, 0)), (0, 0, 0), 10)
        assert _close(image.getpixel((20, 99)), (255, 255, 255), 10)
        assert _close(image.getpixel((20, 50)), (128, 128, 128))
        assert _close(image.getpixel((0, 50)), image.getpixel((39, 50)), 1)

    def test_left_to_right(self):
        image = render_gradient(parse_gradient("linear-gradient(to right, #ff0000, #0000ff)"), 100, 20)
        assert _close(image.getpixel((0, 10)), (255, 0, 0), 10)
        assert _close(image.getpixel((99, 10)), (0, 0, 255), 10)

    def test_radial(self):
        image = render_gradient(parse_gradient("radial-gradient(circle, #ffffff, #000000)"), 60, 60)
        assert _close(image.getpixel((30, 30)), (255, 255, 255), 15)
        assert _close(image.getpixel((0, 0)), (0, 0, 0), 15)


class TestGenerateGradientSplashAndroid:
    def test_png_and_shape(self, android_project, make_config, context):
        make_config({"SPLASH_GRADIENT": SPLASH_GRADIENT})
        result = generate_gradient_splash(context(android_project, "android"))

        res = android_main(android_project) / "res"
        png = res / "drawable-xxxhdpi" / ANDROID_SPLASH_PNG
        shape = res / "drawable" / ANDROID_GRADIENT_XML
        assert result.success
        assert set(result.changed) == {png, shape}
        with Image.open(png) as image:
            assert image.size == (1080, 1920)
            assert _close(image.convert("RGB").getpixel((540, 0)), (0, 24, 51))

        gradient = ET.parse(str(shape)).getroot().find("gradient")
        assert gradient.get(f"{ANDROID}angle") == "270"
        assert gradient.get(f"{ANDROID}startColor") == "#001833"
        assert gradient.get(f"{ANDROID}endColor") == "#004390"

    def test_existing_density_folders_only(self, android_project, make_config, context):
        res = android_main(android_project) / "res"
        (res / "drawable-mdpi").mkdir()
        (res / "drawable-hdpi").mkdir()
        make_config({"SPLASH_GRADIENT": SPLASH_GRADIENT})

        generate_gradient_splash(context(android_project, "android"))

        assert (res / "drawable-mdpi" / ANDROID_SPLASH_PNG).exists()
        assert (res / "drawable-hdpi" / ANDROID_SPLASH_PNG).exists()
        assert not (res / "drawable-xxxhdpi").exists()
        with Image.open(res / "drawable-hdpi" / ANDROID_SPLASH_PNG) as image:
            assert image.size == (405, 720)

    def test_second_run_changes_nothing(self, android_project, make_config, context):
        make_config({"SPLASH_GRADIENT": SPLASH_GRADIENT})
        generate_gradient_splash(context(android_project, "android"))
        result = generate_gradient_splash(context(android_project, "android"))
        assert result.success
        assert result.changed == []

    def test_invalid_gradient_fails(self, android_project, make_config, context):
        make_config({"SPLASH_GRADIENT": "url(splash.png)"})
        result = generate_gradient_splash(context(android_project, "android"))
        assert not result.success
        assert not (android_main(android_project) / "res" / "drawable-xxxhdpi").exists()

    def test_unset_is_skipped(self, android_project, make_config, context):
        make_config()
        assert generate_gradient_splash(context(android_project, "android")).skipped


class TestGenerateGradientSplashIos:
    def test_launch_images_and_storyboard(self, ios_project, make_config, context):
        make_config({"SPLASH_GRADIENT": SPLASH_GRADIENT})
        result = generate_gradient_splash(context(ios_project, "ios"))

        app = ios_project / "platforms" / "ios" / "Demo"
        imageset = app / "Images.xcassets" / "LaunchImage.imageset"
        assert result.success
        contents = json.loads((imageset / "Contents.json").read_text())
        filenames = [image["filename"] for image in contents["images"]]
        assert filenames == ["LaunchImage.png", "LaunchImage@2x.png", "LaunchImage@3x.png"]
        with Image.open(imageset / "LaunchImage@2x.png") as image:
            assert image.size == (828, 1792)

        storyboard = ET.parse(str(app / "CDVLaunchScreen.storyboard")).getroot()
        image_views = list(storyboard.iter("imageView"))
        assert [iv.get("image") for iv in image_views] == ["LaunchImage"]
        assert storyboard.find("resources/image").get("name") == "LaunchImage"
        assert storyboard.find(".//view/color") is not None

        assert generate_gradient_splash(context(ios_project, "ios")).changed == []

    def test_assets_catalog_is_preferred(self, ios_project, make_config, context):
        assets = ios_project / "platforms" / "ios" / "Demo" / "Assets.xcassets"
        assets.mkdir()
        make_config({"SPLASH_GRADIENT": SPLASH_GRADIENT})
        generate_gradient_splash(context(ios_project, "ios"))
        assert (assets / "LaunchImage.imageset" / "LaunchImage.png").exists()

    def test_existing_image_view_is_repointed(self, tmp_path):
        path = tmp_path / "LaunchScreen.storyboard"
        path.write_text(
            '<document><scenes><scene><objects><viewController><view key="view">'
            '<subviews><imageView image="LaunchStoryboard" id="a"/></subviews>'
            "</view></viewController></objects></scene></scenes></document>",
            encoding="utf-8",
        )
        assert attach_launch_image(path)
        root = ET.parse(str(path)).getroot()
        assert [iv.get("image") for iv in root.iter("imageView")] == ["LaunchImage"]
        assert not attach_launch_image(path)
