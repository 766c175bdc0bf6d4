from dataclasses import dataclass
from pathlib import Path

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from docbatch.logging.logger import Log
from docbatch.rendering.exceptions import FontLoadError
from docbatch.rendering.glyphs import is_pictographic, visible_text

STANDARD_TEXT_FONT = "Helvetica"
STANDARD_TITLE_FONT = "Helvetica-Bold"


@dataclass(frozen=True)
class FontSet:
    """Registered font names used by the renderer."""

    text: str = STANDARD_TEXT_FONT
    title: str = STANDARD_TITLE_FONT
    pictograph: str = STANDARD_TEXT_FONT
    footer: str = STANDARD_TEXT_FONT

    def face_for(self, pictographic: bool, base: str) -> str:
        return self.pictograph if pictographic else base

    def cluster_width(self, cluster: str, size: float, base: str) -> float:
        """Width of a single grapheme cluster, without re-segmenting it."""
        drawn = visible_text(cluster)
        if not drawn:
            return 0.0
        face = self.face_for(is_pictographic(ord(drawn[0])), base)
        return pdfmetrics.stringWidth(drawn, face, size)


def register_font(path: str) -> str:
    """Register a TrueType file with reportlab and return its font name.

    Raises:
        FontLoadError: if the file is missing or not a usable TrueType font.
    """
    font_path = Path(path)
    name = f"DocBatch-{font_path.stem}"
    if name in pdfmetrics.getRegisteredFontNames():
        return name
    try:
        pdfmetrics.registerFont(TTFont(name, str(font_path)))
    except Exception as exc:
        raise FontLoadError(f"Failed to load font {font_path}: {exc}") from exc
    Log.info(f"Registered font {name} from {font_path}")
    return name


def load_font_set(
    text_font_path: str | None = None,
    pictograph_font_path: str | None = None,
) -> FontSet:
    """Build the font set, falling back to Helvetica for unset faces."""
    if text_font_path:
        text = register_font(text_font_path)
        title = text
    else:
        text, title = STANDARD_TEXT_FONT, STANDARD_TITLE_FONT
    pictograph = register_font(pictograph_font_path) if pictograph_font_path else text
    return FontSet(text=text, title=title, pictograph=pictograph)
