"""Tests for lexical chunk selection."""

from app.core.chunking import Chunk, segment
from app.core.relevance import normalize, score_chunk, select_chunks, tokenize


def _chunks(*texts):
    return [Chunk(text=t, index=i, start=i * 100) for i, t in enumerate(texts)]


class TestNormalize:
    def test_lowercases_and_strips_diacritics(self):
        assert normalize("Licitação PÚBLICA") == "licitacao publica"

    def test_punctuation_becomes_space(self):
        assert normalize("art. 75, §1º-inciso II") == "art 75 1 inciso ii"

    def test_collapses_whitespace(self):
        assert normalize("  a \n\t b  ") == "a b"


class TestTokenize:
    def test_drops_short_tokens_and_stop_words(self):
        assert tokenize("Qual o prazo de entrega?") == ["prazo", "entrega"]

    def test_distinct_in_first_appearance_order(self):
        assert tokenize("contrato aditivo contrato") == ["contrato", "aditivo"]

    def test_accented_stop_words_are_dropped(self):
        assert tokenize("não até já") == []

    def test_empty_query(self):
        assert tokenize("") == []


class TestScoreChunk:
    def test_counts_distinct_terms_once(self):
        assert score_chunk("prazo prazo prazo de entrega", ["prazo", "entrega"]) == 2

    def test_substring_match_after_normalization(self):
        assert score_chunk("Os PRAZOS contratuais", ["prazo"]) == 1

    def test_no_terms_scores_zero(self):
        assert score_chunk("qualquer coisa", []) == 0


class TestSelectChunks:
    def test_prazo_question_selects_chunk_with_phrase(self):
        """'qual o prazo?' reaches the chunk saying 'prazo de 30 dias'."""
        text = (
            "Do objeto. A contratação de serviços de limpeza urbana. " * 30
            + "Da entrega. O prazo de 30 dias conta da assinatura do contrato. "
            + "Das penalidades. Multa moratória aplicável ao contratado. " * 30
        )
        chunks = list(segment(text, chunk_size=400, overlap=50, max_chunks=100))

        selected = select_chunks(chunks, "qual o prazo?")

        assert any("prazo de 30 dias" in c.text for c in selected)

    def test_ranks_by_score_then_document_order(self):
        chunks = _chunks(
            "nada relevante aqui",
            "prazo",
            "prazo e entrega",
            "entrega",
        )

        selected = select_chunks(chunks, "prazo entrega", max_chunks=3)

        assert [c.index for c in selected] == [2, 1, 3]

    def test_respects_max_chunks(self):
        chunks = _chunks(*["prazo"] * 10)

        assert len(select_chunks(chunks, "prazo", max_chunks=4)) == 4

    def test_skips_chunk_that_would_overflow_budget(self):
        chunks = _chunks(
            "prazo entrega " + "x" * 80,
            "prazo " + "y" * 200,
            "prazo curto",
        )

        selected = select_chunks(chunks, "prazo entrega", max_chunks=6, max_chars=120)

        assert [c.index for c in selected] == [0, 2]
        assert sum(len(c.text) for c in selected) <= 120

    def test_min_score_filters(self):
        chunks = _chunks("prazo", "prazo entrega")

        selected = select_chunks(chunks, "prazo entrega", min_score=2)

        assert [c.index for c in selected] == [1]

    def test_fallback_when_nothing_matches(self):
        chunks = _chunks("a" * 50, "b" * 50)

        selected = select_chunks(chunks, "orçamento", max_chars=20)

        assert selected == [Chunk(text="a" * 20, index=0, start=0)]

    def test_fallback_for_stop_word_only_query(self):
        chunks = _chunks("conteúdo qualquer", "outro")

        selected = select_chunks(chunks, "qual o de que")

        assert len(selected) == 1
        assert selected[0].index == 0

    def test_empty_candidates(self):
        assert select_chunks([], "prazo") == []

    def test_zero_max_chunks_returns_nothing(self):
        assert select_chunks(_chunks("prazo"), "prazo", max_chunks=0) == []

    def test_is_deterministic(self):
        chunks = _chunks("prazo entrega", "entrega", "prazo", "multa prazo")

        first = select_chunks(chunks, "prazo entrega multa", max_chunks=3, max_chars=40)
        second = select_chunks(chunks, "prazo entrega multa", max_chunks=3, max_chars=40)

        assert first == second

    def test_accepts_lazy_sequence(self):
        sequence = segment("prazo " * 100, chunk_size=60, overlap=10, max_chunks=5)

        selected = select_chunks(sequence, "prazo", max_chunks=2)

        assert [c.index for c in selected] == [0, 1]
