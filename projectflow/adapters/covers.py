"""Cover illustrations built from a prompt-to-image URL service."""

from __future__ import annotations

import random
import re
from urllib.parse import quote

from ..workflow.interface import CoverResult

BASE_STYLE = (
    "minimalist 3d icon, clay render, soft lighting, vibrant colors, "
    "high quality, no text, clean background"
)

CATEGORY_THEMES: dict[str, str] = {
    "robotics": "cute futuristic robot component, electronic circuit board",
    "coding": "holographic computer screen, code brackets, glowing binary streams",
    "game_design": "retro arcade joystick, pixel art heart, game controller",
    "multimedia": "cinema camera, film reel, spotlight, microphone",
    "branding": "pantone color swatches, fountain pen, vector shapes, lightbulb",
    "engineering": "gears, blueprints, wrench, mechanical parts",
    "general": "lightbulb, rocket ship, beaker, pencil, creativity",
}


def build_cover_prompt(title: str, category: str) -> str:
    theme = CATEGORY_THEMES.get(category, CATEGORY_THEMES["general"])
    safe_title = re.sub(r"[^a-zA-Z0-9 ]", "", title).strip()
    return f"cute 3d isometric render of {safe_title} mixed with {theme}, {BASE_STYLE}"


class PromptUrlCoverGenerator:
    """CoverGenerator for services that render an image straight from a URL.

    The URL is the image; nothing is fetched here.
    """

    def __init__(
        self,
        base_url: str = "https://image.pollinations.ai/prompt/",
        size: int = 1024,
        rng: random.Random | None = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.size = size
        self._rng = rng or random.Random()

    async def generate(self, title: str, category: str, description: str) -> CoverResult:
        if not re.sub(r"[^a-zA-Z0-9]", "", title or ""):
            return CoverResult(success=False, error="Please enter a project title first.")
        prompt = build_cover_prompt(title, category)
        seed = self._rng.randrange(10000)
        url = (
            f"{self.base_url}{quote(prompt, safe='')}"
            f"?nologo=true&seed={seed}&width={self.size}&height={self.size}"
        )
        return CoverResult(success=True, url=url)
