"""
Prompt composition for asset generation.

This module expands the terse prompt attached to an asset need into a
structured generation prompt: style, composition and color guidance for the
asset type, quality terms, negative constraints, exact technical specs and
usage context. Composition is deterministic: the same need always yields the
same prompt, so retries of one asset reuse an identical prompt.
"""

from typing import Optional

from genass.core.constants import DEFAULT_NEGATIVE_PROMPT, TRANSPARENT_ASSET_TYPES
from genass.core.logging_config import get_logger
from genass.generation.models import AssetNeed

# Initialize logger
logger = get_logger(__name__)

STYLE_GUIDELINES = {
    "icon": "Modern flat design with subtle depth through shadows or gradients. Use geometric precision with 2-4px stroke weight. Maintain 20% padding around icon boundaries. Center composition with clear focal point.",
    "logo": "Professional vector aesthetic with scalable elements. Use golden ratio proportions (1.618:1). Create balanced negative space. Design for horizontal and vertical layouts. Ensure legibility at 16px minimum size.",
    "banner": "Eye-catching hero composition with rule of thirds. Create clear visual hierarchy: primary message (largest), secondary info (medium), CTA (prominent). Use directional flow (left-to-right, Z-pattern). Add subtle parallax depth.",
    "illustration": "Contemporary flat illustration style with cohesive visual language. Use consistent line weights (2-3px). Apply limited color palette (3-5 colors max). Create depth through layering and overlapping shapes.",
    "background": "Subtle, non-distracting patterns that enhance foreground content. Use low-opacity elements (10-20%). Create gentle movement through organic shapes. Maintain visual breathing room.",
    "social-media": "Platform-optimized composition with safe zones (avoid text near edges). Place key elements in upper-left quadrant (first point of attention). Use bold typography (minimum 24px). Create thumb-stopping visual contrast.",
    "ui-element": "Clean component design following atomic design principles. Use 8px grid system. Maintain consistent border-radius (4px, 8px, or 16px). Provide clear interactive states (default, hover, active, disabled).",
}

COMPOSITION_GUIDELINES = {
    "icon": "Centered composition with optical balance. Use grid-based alignment. Maintain consistent visual weight.",
    "logo": "Balanced layout with golden ratio proportions. Ensure wordmark-icon harmony. Create memorable silhouette.",
    "banner": "Rule of thirds composition. Create focal point with size/color contrast. Establish clear reading hierarchy.",
    "illustration": "Dynamic but balanced composition. Use overlapping layers for depth. Guide eye flow with directional elements.",
    "background": "Seamless tile-able pattern or full-bleed gradient. Subtle directional flow. Maintain visual harmony.",
    "social-media": "Platform-optimized framing. Text-safe zones. Attention-grabbing focal point in upper third.",
    "ui-element": "Consistent spacing (8px grid). Clear affordance through visual cues. Proper state differentiation.",
}

COLOR_PALETTES = {
    "icon": "Use modern, vibrant colors from Material Design 3 or iOS design guidelines. Consider monochromatic schemes for simplicity or accent colors for emphasis.",
    "logo": "Apply professional brand color palettes: primary brand color with complementary accent. Follow 60-30-10 color rule. Consider psychological impact of colors.",
    "banner": "Use eye-catching gradient overlays or bold color blocks. Trending: subtle glassmorphism, vibrant gradients (purple-to-pink, blue-to-cyan), or high-contrast duotones.",
    "illustration": "Contemporary illustration colors: pastel palettes for softness, or saturated colors for energy. Trending: earthy tones, neon accents, or retro color schemes.",
    "background": "Subtle gradients or geometric patterns in muted tones. Trending: soft mesh gradients, abstract shapes, or minimalist textures in neutral colors.",
    "social-media": "Bold, attention-grabbing colors optimized for social platforms. Use platform-specific color psychology (Instagram: warm/vibrant, LinkedIn: professional/blue, Twitter: energetic).",
    "ui-element": "Follow modern UI color systems: neutral base with semantic colors (success green, error red, warning amber). Ensure WCAG AA accessibility contrast ratios.",
}

DEFAULT_STYLE = "Modern professional design style"
DEFAULT_COMPOSITION = "Balanced, professional composition"
DEFAULT_COLORS = "Use professional, harmonious color scheme"

QUALITY_TERMS = [
    "ultra high quality",
    "professional grade",
    "crisp details",
    "sharp edges",
    "clean execution",
    "polished finish",
    "production-ready",
]

TRANSPARENCY_CLAUSE = (
    "FORMAT: Transparent background (PNG/RGBA). Scalable vector-style appearance. "
    "Test at 16px, 32px, 64px, and 256px sizes."
)

DESIGN_PRINCIPLES_CLAUSE = (
    "DESIGN PRINCIPLES: Follow modern minimalism, maintain visual hierarchy, "
    "ensure accessibility (WCAG AA), create thumb-stopping appeal."
)


class PromptComposer:
    """
    Expands asset needs into structured generation prompts.
    """

    def __init__(self, negative_prompt: Optional[str] = None):
        """
        Initialize the prompt composer.

        Args:
            negative_prompt: Comma separated things the model must avoid.
        """
        self.negative_prompt = negative_prompt or DEFAULT_NEGATIVE_PROMPT

    def compose(self, need: AssetNeed) -> str:
        """
        Compose the generation prompt for an asset need.

        Args:
            need (AssetNeed): The asset need to describe

        Returns:
            str: The composed prompt
        """
        base = (need.suggested_prompt or need.description).strip().rstrip(".")

        style = STYLE_GUIDELINES.get(need.type, DEFAULT_STYLE)
        composition = COMPOSITION_GUIDELINES.get(need.type, DEFAULT_COMPOSITION)
        colors = COLOR_PALETTES.get(need.type, DEFAULT_COLORS)

        sections = [
            f"{base}.",
            f"STYLE: {style}",
            f"COMPOSITION: {composition}",
            f"COLORS: {colors}",
            f"QUALITY: {', '.join(QUALITY_TERMS)}. AVOID: {self.negative_prompt}.",
            self._technical_specs(need),
        ]

        if need.type in TRANSPARENT_ASSET_TYPES:
            sections.append(TRANSPARENCY_CLAUSE)

        if need.usage:
            sections.append(
                f"USAGE CONTEXT: Designed for {', '.join(need.usage)}. "
                f"Ensure visual consistency across all use cases."
            )

        sections.append(DESIGN_PRINCIPLES_CLAUSE)

        prompt = "\n\n".join(sections)
        logger.debug(f"Composed prompt for {need.type} '{need.description}': {prompt[:200]}...")
        return prompt

    def _technical_specs(self, need: AssetNeed) -> str:
        dimensions = need.dimensions
        specs = f"TECHNICAL SPECS: {dimensions.width}x{dimensions.height}px"
        if dimensions.aspect_ratio:
            specs += f", {dimensions.aspect_ratio} aspect ratio"
        return specs + ", optimized for digital displays."
