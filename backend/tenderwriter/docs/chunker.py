"""Document chunker - deterministic overlapping text splitting."""

import re

_SENTENCE_END = re.compile(r"[.!?][\"')\]]?\s+")


def chunk_text(
    text: str,
    *,
    max_chars: int = 1000,
    overlap: int = 200,
) -> list[str]:
    """Split text into ordered, overlapping chunks.

    Pure function with no I/O or randomness. Each chunk after the first
    starts with the last ``overlap`` characters of the previous chunk, so
    cross-boundary context is preserved for embedding.

    Args:
        text: Raw document text to chunk
        max_chars: Maximum characters per chunk (default 1000)
        overlap: Characters carried over from the previous chunk (default 200)

    Returns:
        List of chunk strings where:
        - every chunk is ≤ max_chars
        - chunk[i][-overlap:] == chunk[i + 1][:overlap]
        - chunks[0] + "".join(c[overlap:] for c in chunks[1:]) == text

    Strategy:
        1. Each chunk takes at most max_chars (first) or max_chars - overlap
           (later) new characters
        2. Cut at the last paragraph break in that window
        3. Otherwise at the last sentence end
        4. Otherwise at the last whitespace
        5. Otherwise hard-cut at the window size
        6. Cuts never fall in the first half of the window, so chunks stay
           reasonably sized and the first chunk is never shorter than overlap

    Raises:
        ValueError: If max_chars <= 0, overlap < 0 or overlap >= max_chars
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    if overlap < 0 or overlap >= max_chars:
        raise ValueError("overlap must be in [0, max_chars)")

    if not text:
        return []

    chunks: list[str] = []
    start = 0
    length = len(text)

    while start < length:
        first = not chunks
        budget = max_chars if first else max_chars - overlap
        remaining = length - start

        if remaining <= budget:
            cut = length
        else:
            window = text[start : start + budget]
            min_cut = max(budget // 2, 1)
            if first:
                # The next chunk borrows `overlap` chars from this one
                min_cut = min(budget, max(min_cut, overlap))
            cut = start + _find_cut(window, min_cut)

        prefix_start = start if first else start - overlap
        chunks.append(text[prefix_start:cut])
        start = cut

    return chunks


def _find_cut(window: str, min_cut: int) -> int:
    """Pick a cut offset in (0, len(window)] preferring semantic boundaries."""
    para = window.rfind("\n\n")
    if para != -1 and para + 2 >= min_cut:
        return para + 2

    sentence_ends = [m.end() for m in _SENTENCE_END.finditer(window)]
    if sentence_ends and sentence_ends[-1] >= min_cut:
        return sentence_ends[-1]

    space = max(window.rfind(" "), window.rfind("\n"), window.rfind("\t"))
    if space != -1 and space + 1 >= min_cut:
        return space + 1

    return len(window)


def reassemble(chunks: list[str], *, overlap: int = 200) -> str:
    """Rebuild the original text by trimming the overlap from later chunks."""
    if not chunks:
        return ""
    return chunks[0] + "".join(chunk[overlap:] for chunk in chunks[1:])
