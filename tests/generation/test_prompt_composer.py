"""
Tests for the prompt composer.
"""

import pytest

from genass.generation.prompt_composer import (
    PromptComposer,
    STYLE_GUIDELINES,
    COMPOSITION_GUIDELINES,
    COLOR_PALETTES,
    DEFAULT_STYLE,
    DEFAULT_COMPOSITION,
    DEFAULT_COLORS,
)


class TestPromptComposer:
    """
    Tests for the PromptComposer class.
    """

    def setup_method(self):
        self.composer = PromptComposer(negative_prompt="blurry, watermark")

    def test_sections_appear_in_order(self, make_need):
        need = make_need(type="icon", suggested_prompt="A minimal gear icon", usage=("toolbar",))

        prompt = self.composer.compose(need)

        markers = [
            "A minimal gear icon.",
            "STYLE:",
            "COMPOSITION:",
            "COLORS:",
            "QUALITY:",
            "AVOID: blurry, watermark.",
            "TECHNICAL SPECS:",
            "FORMAT: Transparent background",
            "USAGE CONTEXT:",
            "DESIGN PRINCIPLES:",
        ]
        positions = [prompt.index(marker) for marker in markers]
        assert positions == sorted(positions)
        assert prompt.startswith("A minimal gear icon.")
        assert prompt.endswith("create thumb-stopping appeal.")

    def test_uses_type_guidance(self, make_need):
        prompt = self.composer.compose(make_need(type="banner", width=1200, height=400, aspect_ratio="3:1"))

        assert STYLE_GUIDELINES["banner"] in prompt
        assert COMPOSITION_GUIDELINES["banner"] in prompt
        assert COLOR_PALETTES["banner"] in prompt

    def test_technical_specs_mention_exact_size_and_ratio(self, make_need):
        prompt = self.composer.compose(make_need(type="banner", width=1200, height=400, aspect_ratio="3:1"))

        assert "TECHNICAL SPECS: 1200x400px, 3:1 aspect ratio, optimized for digital displays." in prompt

    def test_technical_specs_without_ratio(self, make_need):
        prompt = self.composer.compose(make_need(width=64, height=32, aspect_ratio=""))

        assert "TECHNICAL SPECS: 64x32px, optimized for digital displays." in prompt

    @pytest.mark.parametrize("asset_type", ["icon", "logo"])
    def test_transparency_clause_for_icons_and_logos(self, make_need, asset_type):
        assert "FORMAT: Transparent background" in self.composer.compose(make_need(type=asset_type))

    @pytest.mark.parametrize("asset_type", ["banner", "illustration", "background", "social-media", "ui-element"])
    def test_no_transparency_clause_for_other_types(self, make_need, asset_type):
        assert "FORMAT:" not in self.composer.compose(make_need(type=asset_type))

    def test_usage_clause_only_when_usage_given(self, make_need):
        with_usage = self.composer.compose(make_need(usage=("navbar", "favicon")))
        without_usage = self.composer.compose(make_need())

        assert "USAGE CONTEXT: Designed for navbar, favicon." in with_usage
        assert "USAGE CONTEXT" not in without_usage

    def test_unknown_type_falls_back_to_generic_guidance(self, make_need):
        prompt = self.composer.compose(make_need(type="mascot"))

        assert f"STYLE: {DEFAULT_STYLE}" in prompt
        assert f"COMPOSITION: {DEFAULT_COMPOSITION}" in prompt
        assert f"COLORS: {DEFAULT_COLORS}" in prompt

    def test_description_used_when_no_suggested_prompt(self, make_need):
        prompt = self.composer.compose(make_need(description="Shopping cart"))

        assert prompt.startswith("Shopping cart.")

    def test_compose_is_deterministic(self, make_need):
        need = make_need(type="logo", suggested_prompt="Fox logo", usage=("header",))

        assert self.composer.compose(need) == self.composer.compose(need)

    def test_default_negative_prompt(self, make_need):
        prompt = PromptComposer().compose(make_need())

        assert "AVOID: blurry, low quality, pixelated, watermark" in prompt
