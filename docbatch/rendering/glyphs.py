"""Grapheme segmentation and pictographic run classification.

Text is segmented into grapheme clusters with ICU so that variation
selectors, zero-width joiners, skin-tone modifiers and flag pairs stay
attached to their base character. A cluster is pictographic when its first
code point falls in one of the enumerated ranges below; this is a table
lookup, not full emoji property support.
"""

from dataclasses import dataclass

import icu  # type: ignore[import-untyped]

PICTOGRAPHIC_RANGES: tuple[tuple[int, int], ...] = (
    (0x1F600, 0x1F64F),  # emoticons
    (0x1F300, 0x1F5FF),  # misc symbols and pictographs
    (0x1F680, 0x1F6FF),  # transport and map
    (0x1F1E0, 0x1F1FF),  # regional indicators
    (0x1F900, 0x1F9FF),  # supplemental symbols and pictographs
    (0x1FA00, 0x1FA6F),  # chess symbols
    (0x1FA70, 0x1FAFF),  # symbols and pictographs extended-A
    (0x2600, 0x26FF),  # misc symbols
    (0x2700, 0x27BF),  # dingbats
    (0x231A, 0x231B),
    (0x23E9, 0x23F3),
    (0x23F8, 0x23FA),
    (0x25AA, 0x25AB),
    (0x25B6, 0x25C0),
    (0x25FB, 0x25FE),
    (0x2934, 0x2935),
    (0x2B05, 0x2B07),
    (0x2B1B, 0x2B1C),
    (0x2B50, 0x2B50),
    (0x2B55, 0x2B55),
    (0x3030, 0x3030),
    (0x303D, 0x303D),
)

# Variation selectors and ZWJ modify the preceding character; never drawn.
_INVISIBLE_MODIFIERS = frozenset([0x200D, *range(0xFE00, 0xFE10)])


@dataclass(frozen=True)
class GlyphRun:
    text: str
    pictographic: bool


def is_pictographic(code_point: int) -> bool:
    return any(start <= code_point <= end for start, end in PICTOGRAPHIC_RANGES)


def graphemes(text: str) -> list[str]:
    """Split *text* into grapheme clusters."""
    if not text:
        return []
    iterator = icu.BreakIterator.createCharacterInstance(icu.Locale.getRoot())
    iterator.setText(text)
    # ICU boundaries are UTF-16 code unit offsets.
    encoded = text.encode("utf-16-le")
    boundaries = [iterator.first()]
    for boundary in iterator:
        boundaries.append(boundary)
    return [
        encoded[start * 2 : end * 2].decode("utf-16-le")
        for start, end in zip(boundaries, boundaries[1:])
    ]


def visible_text(cluster: str) -> str:
    """Drop variation selectors and joiners, which take no width."""
    return "".join(ch for ch in cluster if ord(ch) not in _INVISIBLE_MODIFIERS)


def split_runs(text: str) -> list[GlyphRun]:
    """Group adjacent clusters of the same class into runs."""
    runs: list[GlyphRun] = []
    current = ""
    current_is_pictographic = False
    for cluster in graphemes(text):
        drawn = visible_text(cluster)
        if not drawn:
            continue
        pictographic = is_pictographic(ord(drawn[0]))
        if current and pictographic != current_is_pictographic:
            runs.append(GlyphRun(current, current_is_pictographic))
            current = ""
        if not current:
            current_is_pictographic = pictographic
        current += drawn
    if current:
        runs.append(GlyphRun(current, current_is_pictographic))
    return runs
