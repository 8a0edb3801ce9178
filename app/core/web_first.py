"""Detects questions whose answer should be checked against official web sources."""

import re
import unicodedata

# Normative terms whose values change over time (already accent-free, lowercase)
WEB_FIRST_TRIGGERS: tuple[str, ...] = (
    "valor", "valores", "limite", "teto", "faixa",
    "percentual", "porcentagem", "aliquota", "indice",
    "atualizado", "vigente", "hoje", "ultima atualizacao", "novo decreto",
    "prazo", "prazos", "quantos dias", "dias", "data limite",
    "art.", "artigo", "inciso", "paragrafo",
    "lei", "decreto", "portaria", "instrucao normativa", "in ",
    "dispensa", "inexigibilidade", "aditivo", "reajuste", "repactuacao",
    "14.133", "14133", "licitacao", "contrato administrativo",
)

_NUMERIC_SIGNALS = (
    re.compile(r"\br\$\s*\d"),
    re.compile(r"\b\d+\s*%"),
    re.compile(r"\b\d+\s*dias?\b"),
    re.compile(r"\b\d{1,3}\.\d{3}\b"),
)

SHORT_QUESTION_MAX_CHARS = 80


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def should_force_web_first(user_text: str) -> bool:
    """
    Whether the question should be verified on the web before answering.

    True for any of: a normative trigger term, a numeric signal (R$ amounts,
    percentages, day counts, thousands separators), or a short "qual/quais" question.
    """
    raw = (user_text or "").strip()
    if not raw:
        return False

    t = _strip_accents(raw).lower()

    if any(trigger in t for trigger in WEB_FIRST_TRIGGERS):
        return True

    if any(pattern.search(t) for pattern in _NUMERIC_SIGNALS):
        return True

    return len(t) <= SHORT_QUESTION_MAX_CHARS and (
        t.startswith("qual") or t.startswith("quais") or "?" in t
    )
