"""Lexical relevance ranking of document chunks against a user question.

Cheap heuristic: a chunk scores one point per distinct question token found in it.
No embeddings, no term weighting.
"""

import re
import unicodedata
from collections.abc import Iterable

from app.core.chunking import Chunk

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

MIN_TOKEN_LENGTH = 3


def normalize(text: str) -> str:
    """Lowercase, strip diacritics, and reduce everything but [a-z0-9] to single spaces."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", _NON_ALNUM_RE.sub(" ", stripped)).strip()


# Portuguese function words; normalized so they compare against normalized tokens
STOP_WORDS: frozenset[str] = frozenset(
    normalize(w)
    for w in (
        "a", "o", "os", "as", "de", "do", "da", "dos", "das", "e", "em", "no", "na", "nos", "nas",
        "um", "uma", "uns", "umas", "para", "por", "com", "sem", "que", "se", "ao", "à", "às",
        "é", "ser", "como", "mais", "menos", "já", "não", "sim", "sua", "seu", "suas", "seus",
        "sobre", "entre", "até", "desde", "quando", "onde", "qual", "quais", "quanto", "quantos",
    )
)


def tokenize(query: str) -> list[str]:
    """Distinct query tokens, in order of first appearance."""
    tokens: list[str] = []
    for token in normalize(query).split(" "):
        if len(token) < MIN_TOKEN_LENGTH or token in STOP_WORDS or token in tokens:
            continue
        tokens.append(token)
    return tokens


def score_chunk(chunk_text: str, terms: list[str]) -> int:
    """Number of ``terms`` occurring as substrings of the normalized chunk."""
    if not terms:
        return 0
    haystack = normalize(chunk_text)
    return sum(1 for term in terms if term in haystack)


def select_chunks(
    chunks: Iterable[Chunk],
    query: str,
    max_chunks: int = 6,
    max_chars: int = 9000,
    min_score: int = 1,
) -> list[Chunk]:
    """
    Pick the chunks most relevant to ``query`` under count and character budgets.

    Chunks are ranked by descending score; ties keep document order. A chunk that would
    overflow ``max_chars`` is skipped and smaller, lower-ranked chunks are still considered.
    If nothing qualifies, the start of the first chunk (cut to ``max_chars``) is returned so
    an attached document never yields empty grounding.

    Args:
        chunks: Candidate chunks (any iterable, consumed once)
        query: User question
        max_chunks: Maximum chunks to return
        max_chars: Maximum cumulative characters of returned chunks
        min_score: Minimum score for a chunk to be eligible

    Returns:
        Selected chunks in rank order
    """
    candidates = list(chunks)
    terms = tokenize(query)

    ranked = sorted(
        ((score_chunk(c.text, terms), c) for c in candidates),
        key=lambda pair: -pair[0],
    )

    picked: list[Chunk] = []
    used = 0
    for score, chunk in ranked:
        if len(picked) >= max_chunks or score < min_score:
            break
        if used + len(chunk.text) > max_chars:
            continue
        picked.append(chunk)
        used += len(chunk.text)

    if not picked and candidates and max_chunks > 0:
        first = candidates[0]
        picked.append(Chunk(text=first.text[:max_chars], index=first.index, start=first.start))

    return picked
