from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from wallter.errors import InvalidColorError
from wallter.palettes.theme import Palette, build_palette, build_palette_from_bytes

logger = logging.getLogger(__name__)

PALETTE_DIR = Path(__file__).parent / "data"

_SEPARATORS = re.compile(r"[,\s]+")

_palette_cache: dict | None = None


def _load_all() -> dict:
    """Load all preset JSON files from the data directory."""
    global _palette_cache
    if _palette_cache is not None:
        return _palette_cache

    palettes = {}
    for path in sorted(PALETTE_DIR.glob("*.json")):
        with open(path) as f:
            data = json.load(f)
        slug = data["slug"]
        palettes[slug] = data
    logger.debug("Loaded %d theme presets from %s", len(palettes), PALETTE_DIR)
    _palette_cache = palettes
    return palettes


def get_preset(slug: str) -> dict | None:
    """Get a single preset by slug. Returns None if not found."""
    return _load_all().get(slug.lower())


def get_preset_palette(slug: str) -> Palette | None:
    preset = get_preset(slug)
    if preset is None:
        return None
    return build_palette(preset["colors"])


def preset_slugs() -> list[str]:
    return list(_load_all())


def list_presets() -> list[dict]:
    """Return all presets in API response format."""
    result = []
    for data in _load_all().values():
        palette = build_palette(data["colors"])
        result.append({
            "slug": data["slug"],
            "name": data["name"],
            "colors": len(palette),
            "hex": palette.hex(),
            "tags": data.get("tags", []),
        })
    return result


def parse_theme(text: str) -> Palette:
    """Resolve a theme argument into a palette.

    A preset slug (any case) selects that preset. Anything else is read as
    a list of hex colors separated by commas and/or whitespace, each with
    an optional leading '#', e.g. "#282a36, #f8f8f2 ff5555".

    Raises:
        InvalidColorError: if a token is not valid hex or is not exactly
            three bytes long.
    """
    preset = get_preset_palette(text.strip())
    if preset is not None:
        return preset

    raw = bytearray()
    for token in _SEPARATORS.split(text):
        token = token.lstrip("#").strip()
        if not token:
            continue
        try:
            decoded = bytes.fromhex(token)
        except ValueError as e:
            raise InvalidColorError(f"Failed to parse hex color code: {e}") from e
        if len(decoded) != 3:
            raise InvalidColorError("RGB color tuple must have three components")
        raw.extend(decoded)

    return build_palette_from_bytes(raw)
