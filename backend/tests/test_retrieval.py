"""Tests for the retrieval core: segmentation, chunking, scoring, ranking and citations."""
import math
from unittest.mock import patch

import pytest

from pdfchat.exceptions import IndexIntegrityError
from pdfchat.models.document import Chunk, Document, Page, ScoredChunk
from pdfchat.services.chunker import chunk_text, find_break_offset
from pdfchat.services.citations import extract_citations
from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.lexical_scorer import query_terms, raw_score, score, stem, tokenize
from pdfchat.services.page_segmenter import segment_pages
from pdfchat.services.retrieval_ranker import RankingThresholds, RetrievalRanker


def make_document(contents, document_id="doc"):
    """Build a one-page document whose chunks carry the given contents."""
    chunks = [
        Chunk(content=content, page_number=1, chunk_index=i)
        for i, content in enumerate(contents)
    ]
    return Document(
        document_id=document_id,
        pages=[Page(page_number=1, content=" ".join(contents) or "page")],
        chunks=chunks,
    )


def fixed_scores(scores_by_content):
    """Replacement for the lexical scorer returning canned similarities."""
    return lambda query, content: scores_by_content[content]


class TestPageSegmenter:
    """Tests for page segmentation."""

    def test_splits_on_form_feed_and_renumbers_retained_pages(self):
        """Test that short pages are dropped and numbering has no gaps."""
        body_a = "Introduction to the annual report and its main findings."
        body_b = "Financial statements for the year with notes on revenue."
        raw = "\f".join(["Cover", body_a, "   ", body_b])

        pages = segment_pages(raw, declared_page_count=4)

        assert [page.page_number for page in pages] == [1, 2]
        assert pages[0].content == body_a
        assert pages[1].content == body_b

    def test_logical_pagination_lands_on_paragraph_breaks(self):
        """Test the fallback for text without page-break markers."""
        paragraph = "Lorem ipsum dolor sit amet. " * 20 + "\n\n"
        text = paragraph * 8

        pages = segment_pages(text, declared_page_count=3)

        assert [page.page_number for page in pages] == [1, 2, 3]
        for page in pages:
            assert page.content.startswith("Lorem")
            assert page.content.endswith("amet.")
        assert sum(page.content.count("Lorem") for page in pages) == 160

    def test_paragraph_break_within_window_extends_page(self):
        """Test that a break 240 characters past the cut extends the page to it."""
        first = "word " * 348
        second = "next " * 200
        text = first + "\n\n" + second

        pages = segment_pages(text, declared_page_count=2)

        assert [page.content for page in pages] == [first.strip(), second.strip()]

    def test_paragraph_break_beyond_window_is_ignored(self):
        """Test that a break 260 characters past the cut leaves a hard cut."""
        first = "word " * 352
        text = first + "\n\n" + "next " * 200

        pages = segment_pages(text, declared_page_count=2)

        assert len(pages) == 2
        assert pages[0].content == ("word " * 300).strip()
        assert pages[1].content.startswith("word")

    def test_logical_pages_do_not_overlap(self):
        """Test that the next page starts where the extended page ended."""
        first = "word " * 348
        second = "next " * 200
        pages = segment_pages(first + "\n\n" + second, declared_page_count=2)

        assert "next" not in pages[0].content
        assert "word" not in pages[1].content
        assert sum(len(page.content.split()) for page in pages) == 548

    def test_empty_input_yields_no_pages(self):
        """Test that blank text is "no content", not an error."""
        assert segment_pages("", declared_page_count=1) == []
        assert segment_pages("  \n\n \t ", declared_page_count=5) == []

    def test_zero_declared_pages_is_treated_as_one(self):
        """Test that a missing page count does not break pagination."""
        text = "A sentence that is long enough to be kept as a page of its own."
        pages = segment_pages(text, declared_page_count=0)
        assert len(pages) == 1
        assert pages[0].page_number == 1

    def test_page_numbers_strictly_increase_from_one(self):
        """Test page numbering on a longer logical document."""
        text = ("Some words forming a sentence. " * 30 + "\n\n") * 20
        pages = segment_pages(text, declared_page_count=7)
        assert [page.page_number for page in pages] == list(range(1, len(pages) + 1))


class TestChunker:
    """Tests for boundary-aware chunking."""

    def test_paragraph_break_preferred_over_sentence_end(self):
        """Test that the cut lands on the paragraph break, not inside "Gamma"."""
        text = "Alpha Beta.\n\nGamma Delta Epsilon."

        offset = find_break_offset(text, 10)

        assert offset == 1
        assert text[:10 + offset] == "Alpha Beta."
        assert text[10 + offset:].lstrip().startswith("Gamma")

    def test_short_fragments_are_not_emitted(self):
        """Test that windows of 100 characters or fewer are dropped."""
        assert chunk_text("Alpha Beta.\n\nGamma Delta Epsilon.", chunk_size=10, overlap=3) == []
        assert chunk_text("") == []

    def test_chunk_ends_on_paragraph(self):
        """Test that a window is extended to the next paragraph break."""
        first = ("The quick brown fox jumps over the lazy dog. " * 3).strip()
        second = "Gamma delta epsilon zeta eta theta iota kappa lambda mu. " * 3
        text = first + "\n\n" + second

        chunks = chunk_text(text, chunk_size=120, overlap=20)

        assert chunks[0] == first

    def test_hard_cut_without_any_boundary(self):
        """Test that text without whitespace is cut at the window size."""
        text = "x" * 250
        chunks = chunk_text(text, chunk_size=120, overlap=10)
        assert chunks[0] == "x" * 120

    def test_boundary_must_start_within_window(self):
        """Test that a break 150 or more characters past the cut is not used."""
        eligible = "a" * 100 + "b" * 149 + " " + "c" * 100
        too_far = "a" * 100 + "b" * 160 + " " + "c" * 100

        assert find_break_offset(eligible, 100) == 149
        assert find_break_offset(too_far, 100) == 0

    def test_hard_cut_when_boundary_outside_window(self):
        """Test chunking falls back to the window size past the eligible range."""
        text = "x" * 120 + "y" * 160 + " " + "z" * 200

        chunks = chunk_text(text, chunk_size=120, overlap=20)

        assert chunks[0] == "x" * 120

    def test_every_chunk_exceeds_length_floor(self):
        """Test the minimum chunk length on realistic text."""
        text = ("Revenue grew in every region, driven by new contracts; margins held. " * 40 + "\n\n") * 5

        chunks = chunk_text(text, chunk_size=500, overlap=100)

        assert chunks
        assert all(len(chunk) > 100 for chunk in chunks)
        assert all(chunk == chunk.strip() for chunk in chunks)

    def test_final_window_is_emitted_once(self):
        """Test that chunking stops after the window reaching the end of the text."""
        text = "word " * 300

        chunks = chunk_text(text, chunk_size=1000, overlap=300)

        assert len(chunks) == 2
        assert chunks[1][:50] in chunks[0]

    def test_deterministic(self):
        """Test that identical input yields identical chunks."""
        text = "One sentence here. Another one, with a clause; and more.\n\n" * 60
        assert chunk_text(text, 400, 120) == chunk_text(text, 400, 120)

    @pytest.mark.parametrize(
        "chunk_size,overlap",
        [(0, 0), (-5, 0), (100, -1), (100, 100), (100, 150)],
    )
    def test_invalid_parameters(self, chunk_size, overlap):
        """Test that windows that could never advance are rejected."""
        with pytest.raises(ValueError):
            chunk_text("some text", chunk_size=chunk_size, overlap=overlap)


class TestLexicalScorer:
    """Tests for lexical relevance scoring."""

    def test_empty_inputs_score_zero(self):
        """Test that empty query or text scores 0."""
        assert score("", "anything at all") == 0
        assert score("machine learning", "") == 0
        assert raw_score("", "") == 0

    def test_query_without_terms_scores_zero(self):
        """Test that stopwords and short words are ignored."""
        assert query_terms("What is it to be?") == []
        assert score("What is it to be?", "What is it to be? It is what it is.") == 0

    def test_tokenize_keeps_empty_edge_tokens(self):
        """Test that punctuation at either end leaves an empty token."""
        assert tokenize("(Hello), world!") == ["", "hello", "world", ""]
        assert tokenize("plain words") == ["plain", "words"]

    def test_tokenize_splits_on_non_ascii_letters(self):
        """Test that accented letters act as separators."""
        assert tokenize("Café crème") == ["caf", "cr", "me"]
        # phrase 100 + exact "caf" 15 + coverage 30 + density 1/4*150, over sqrt(4)
        assert score("café", "Un café crème") == pytest.approx(182.5 / 2)

    def test_stem_strips_one_suffix(self):
        """Test the suffix heuristic."""
        assert stem("learned") == "learn"
        assert stem("quickly") == "quick"
        assert stem("boxes") == "box"
        assert stem("running") == "runn"
        assert stem("photosynthesis") == "photosynthesi"

    def test_stem_match_counts_only_different_surface_forms(self):
        """Test stem matches on a tiny text."""
        assert raw_score("learning", "He learned a lot") == pytest.approx(5.0)
        assert score("learning", "He learned a lot") == pytest.approx(2.5)

    def test_partial_match(self):
        """Test that a longer token containing the term counts twice."""
        # "prices" contains "price"; its stem "pric" differs, "oil" is absent
        assert raw_score("oil price", "Prices rose.") == pytest.approx(2.0)
        assert score("oil price", "Prices rose.") == pytest.approx(2.0 / math.sqrt(3))

    def test_full_score_breakdown(self):
        """Test every scoring rule against a hand-computed total."""
        text = "Revenue growth was strong. Revenue rose."
        # phrase 100 + revenue 2x15 + growth 15 + proximity 20*(1-8/50)
        # + coverage 30 + density 2/7*150 (trailing "." leaves a 7th token)
        expected_raw = 100 + 30 + 15 + 16.8 + 30 + 2 / 7 * 150

        assert raw_score("revenue growth", text) == pytest.approx(expected_raw)
        assert score("revenue growth", text) == pytest.approx(expected_raw / math.sqrt(7))

    def test_punctuation_terminated_text(self):
        """Test the token count on a longer sentence ending in a period."""
        text = "Revenue growth was strong across regions. Revenue rose again this year."
        # 11 words plus the empty token after the final period
        expected_raw = 100 + 30 + 15 + 16.8 + 30 + 2 / 12 * 150

        assert score("revenue growth", text) == pytest.approx(expected_raw / math.sqrt(12))
        assert score("revenue growth", text) == pytest.approx(62.585, abs=1e-3)

    def test_far_proximity_band(self):
        """Test the bonus for terms between 50 and 200 characters apart."""
        text = "Solar " + "energy " * 14 + "panels"
        # exact 15 + 15, proximity 8*(1-104/200), coverage 30, density 2/16*150
        expected_raw = 15 + 15 + 3.84 + 30 + 18.75

        assert raw_score("solar panels", text) == pytest.approx(expected_raw)

    def test_proximity_ends_at_two_hundred_characters(self):
        """Test the last rewarded distance and the first unrewarded one."""
        just_inside = "Solar " + "x" * 192 + " panels"
        at_limit = "Solar " + "x" * 193 + " panels"
        # exact 15 + 15, coverage 30, density 2/3*150
        base = 15 + 15 + 30 + 100

        assert raw_score("solar panels", just_inside) == pytest.approx(base + 0.04)
        assert raw_score("solar panels", at_limit) == pytest.approx(base)

    def test_exact_phrase_adds_at_least_one_hundred(self):
        """Test the phrase bonus against the same words far apart."""
        filler = "the quick brown fox jumps over the lazy dog " * 6
        with_phrase = "machine learning " + filler
        far_apart = "machine " + filler + "learning"

        difference = raw_score("machine learning", with_phrase) - raw_score("machine learning", far_apart)

        assert difference >= 100
        assert score("machine learning", with_phrase) > score("machine learning", far_apart)

    def test_case_insensitive(self):
        """Test that case does not change the score."""
        text = "Neural Networks learn representations."
        assert score("NEURAL networks", text) == score("neural networks", text.lower())

    def test_non_negative_and_deterministic(self):
        """Test repeatability and sign of scores."""
        text = "Interest rates rose sharply while inflation eased across the quarter."
        first = score("interest rates inflation", text)
        assert first > 0
        assert score("interest rates inflation", text) == first
        assert score("unrelated gardening", text) >= 0


class TestRetrievalRanker:
    """Tests for ranking, thresholding and the confidence gate."""

    def test_single_strong_chunk_is_kept(self):
        """Test threshold max(1.2, 2.0 * 0.6) keeps only the 2.0 chunk."""
        document = make_document(["a", "b", "c", "d"])
        scores = {"a": 0.0, "b": 2.0, "c": 0.0, "d": 0.0}

        with patch("pdfchat.services.retrieval_ranker.score", fixed_scores(scores)):
            ranked = RetrievalRanker().rank_document("query", document)

        assert [item.content for item in ranked] == ["b"]
        assert ranked[0].similarity == 2.0

    def test_dynamic_threshold_is_relative_to_top_score(self):
        """Test that chunks under 60% of the top score are dropped."""
        document = make_document(["a", "b", "c"])
        scores = {"a": 5.0, "b": 10.0, "c": 7.0}

        with patch("pdfchat.services.retrieval_ranker.score", fixed_scores(scores)):
            ranked = RetrievalRanker().rank_document("query", document)

        assert [item.content for item in ranked] == ["b", "c"]

    def test_low_mean_similarity_returns_nothing(self):
        """Test the confidence gate nulling out passing chunks."""
        document = make_document(["a", "b", "c"])
        scores = {"a": 0.9, "b": 0.8, "c": 0.7}
        thresholds = RankingThresholds(score_floor=0.5, relative_cutoff=0.6, min_mean_similarity=1.0)

        with patch("pdfchat.services.retrieval_ranker.score", fixed_scores(scores)):
            ranked = RetrievalRanker(thresholds=thresholds).rank_document("query", document)

        assert ranked == []

    def test_default_gate_never_drops_surviving_chunks(self):
        """Test that with default thresholds kept chunks already average at least 1.2."""
        document = make_document(["a", "b", "c"])
        scores = {"a": 1.2, "b": 0.0, "c": 1.3}

        with patch("pdfchat.services.retrieval_ranker.score", fixed_scores(scores)):
            ranked = RetrievalRanker().rank_document("query", document)

        assert [item.content for item in ranked] == ["c", "a"]
        thresholds = RankingThresholds()
        for top_score in (0.0, 1.5, 2.0, 10.0):
            assert thresholds.dynamic_threshold(top_score) >= thresholds.min_mean_similarity

    def test_top_k_caps_results(self):
        """Test that at most top_k chunks are returned."""
        contents = [f"c{i}" for i in range(6)]
        scores = {content: 5.0 - i * 0.1 for i, content in enumerate(contents)}
        document = make_document(contents)

        with patch("pdfchat.services.retrieval_ranker.score", fixed_scores(scores)):
            ranked = RetrievalRanker().rank_document("query", document, top_k=2)

        assert [item.content for item in ranked] == ["c0", "c1"]

    def test_ties_keep_document_order(self):
        """Test stable ordering of equal similarities."""
        document = make_document(["first", "second", "third"])
        scores = {"first": 3.0, "second": 3.0, "third": 3.0}

        with patch("pdfchat.services.retrieval_ranker.score", fixed_scores(scores)):
            ranked = RetrievalRanker().rank_document("query", document)

        assert [item.chunk_index for item in ranked] == [0, 1, 2]

    def test_document_without_chunks(self):
        """Test empty-in-empty-out for a document with no chunks."""
        document = Document(document_id="empty")
        assert RetrievalRanker().rank_document("anything", document) == []

    def test_query_without_terms(self, sample_document):
        """Test that a stopword-only query ranks nothing."""
        assert RetrievalRanker().rank_document("what is it?", sample_document) == []

    def test_rank_by_document_id(self, document_index):
        """Test lookup through the index, including a missing id."""
        ranker = RetrievalRanker(document_index=document_index)

        ranked = ranker.rank("How does photosynthesis release oxygen?", "test-doc-1")

        assert [item.page_number for item in ranked] == [2]
        assert ranked[0].similarity > 1.5
        assert ranker.rank("photosynthesis", "missing-doc") == []

    def test_results_sorted_descending(self, sample_document):
        """Test ordering of a multi-chunk result."""
        thresholds = RankingThresholds(score_floor=0.0, relative_cutoff=0.0, min_mean_similarity=0.0)
        ranked = RetrievalRanker(thresholds=thresholds).rank_document(
            "photosynthesis castle railway", sample_document
        )
        similarities = [item.similarity for item in ranked]
        assert similarities == sorted(similarities, reverse=True)

    def test_parallel_scoring_matches_sequential(self, sample_document):
        """Test that fanning out to worker processes does not change the ranking."""
        query = "photosynthesis oxygen castle"
        thresholds = RankingThresholds(score_floor=0.0, relative_cutoff=0.0, min_mean_similarity=0.0)

        sequential = RetrievalRanker(thresholds=thresholds).rank_document(query, sample_document)
        parallel = RetrievalRanker(
            thresholds=thresholds, max_workers=2, parallel_min_chunks=1
        ).rank_document(query, sample_document)

        assert parallel == sequential


class TestDocumentIndex:
    """Tests for the in-memory document index."""

    def test_put_get_size(self, sample_document):
        """Test basic keyed storage."""
        index = DocumentIndex()
        assert index.size() == 0
        assert index.get("test-doc-1") is None

        index.put("test-doc-1", sample_document)

        assert index.get("test-doc-1") is sample_document
        assert index.size() == 1
        assert index.document_ids() == ["test-doc-1"]

    def test_put_rejects_mismatched_id(self, sample_document):
        """Test that a document cannot be stored under another id."""
        index = DocumentIndex()
        with pytest.raises(IndexIntegrityError):
            index.put("other-id", sample_document)
        assert index.size() == 0

    def test_least_recently_used_document_is_evicted(self):
        """Test the capacity policy."""
        index = DocumentIndex(max_documents=2)
        for document_id in ("a", "b"):
            index.put(document_id, Document(document_id=document_id))
        index.get("a")
        index.put("c", Document(document_id="c"))

        assert index.document_ids() == ["a", "c"]
        assert index.get("b") is None

    def test_remove(self, sample_document):
        """Test explicit removal."""
        index = DocumentIndex()
        index.put("test-doc-1", sample_document)
        assert index.remove("test-doc-1") is True
        assert index.remove("test-doc-1") is False
        assert index.size() == 0

    def test_negative_capacity_rejected(self):
        """Test capacity validation."""
        with pytest.raises(ValueError):
            DocumentIndex(max_documents=-1)


class TestDocumentModel:
    """Tests for document invariants."""

    def test_chunk_must_reference_existing_page(self):
        """Test that a dangling page reference fails fast."""
        with pytest.raises(IndexIntegrityError):
            Document(
                document_id="broken",
                pages=[Page(page_number=1, content="only page")],
                chunks=[Chunk(content="orphan", page_number=3, chunk_index=0)],
            )

    def test_pages_and_chunks_are_immutable_tuples(self, sample_document):
        """Test that list inputs are frozen into tuples."""
        assert isinstance(sample_document.pages, tuple)
        assert isinstance(sample_document.chunks, tuple)


class TestCitations:
    """Tests for citation selection."""

    @staticmethod
    def scored(page_number, similarity, chunk_index=0):
        chunk = Chunk(content="text", page_number=page_number, chunk_index=chunk_index)
        return ScoredChunk(chunk=chunk, similarity=similarity)

    def test_significant_chunks_only(self):
        """Test that only chunks above 1.5 are cited, sorted and unique."""
        ranked = [self.scored(7, 4.0), self.scored(2, 3.0), self.scored(7, 2.0, 1), self.scored(1, 1.4)]
        assert extract_citations(ranked) == [2, 7]

    def test_fallback_to_top_five(self):
        """Test the fallback when no chunk is significant."""
        ranked = [self.scored(page, 1.3) for page in (6, 5, 4, 3, 2, 1)]
        assert extract_citations(ranked) == [2, 3, 4, 5, 6]

    def test_empty_ranking(self):
        """Test that no ranked chunks means no citations."""
        assert extract_citations([]) == []
