import re
from collections.abc import Callable

from docbatch.rendering.glyphs import graphemes

DEFAULT_FILENAME = "Captured_Document"
MAX_FILENAME_LENGTH = 200

_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_WHITESPACE_RUN = re.compile(r"\s+")


def wrap_paragraph(
    paragraph: str,
    measure: Callable[[str], float],
    max_width: float,
) -> list[str]:
    """Wrap one paragraph cluster by cluster against *max_width*.

    Word boundaries are ignored: scripts without spaces between words wrap
    the same way as Latin text. A cluster wider than the line on its own
    still gets a line of its own.
    """
    lines: list[str] = []
    current = ""
    width = 0.0
    for cluster in graphemes(paragraph):
        cluster_width = measure(cluster)
        if current and width + cluster_width > max_width:
            lines.append(current)
            current, width = cluster, cluster_width
        else:
            current += cluster
            width += cluster_width
    if current:
        lines.append(current)
    return lines


def wrap_text(
    text: str,
    measure: Callable[[str], float],
    max_width: float,
) -> list[str]:
    """Wrap text paragraph by paragraph. Blank paragraphs become empty lines."""
    lines: list[str] = []
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", "    ")
    for paragraph in normalized.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        lines.extend(wrap_paragraph(paragraph, measure, max_width))
    return lines


def build_filename(
    title: str,
    extension: str = ".pdf",
    max_length: int = MAX_FILENAME_LENGTH,
    default: str = DEFAULT_FILENAME,
) -> str:
    """Derive a file-system safe name from a document title."""
    sanitized = _ILLEGAL_FILENAME_CHARS.sub("", title)
    sanitized = _WHITESPACE_RUN.sub(" ", sanitized).strip()
    name = sanitized[:max_length].strip() or default
    if name.lower().endswith(extension.lower()):
        return name
    return f"{name}{extension}"
