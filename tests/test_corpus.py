"""Tests for corpus parsing and model building."""

import os
import tempfile

import pytest

from graphone.config import get_config
from graphone.corpus import (
    CorpusModelBuilder,
    build_model,
    is_header,
    load_corpus,
    parse_record,
)
from graphone.errors import InvalidStateError, MalformedRecordError


class TestRecordParsing:
    """Test cases for parsing single corpus lines."""

    def test_parse_record(self):
        """Test parsing a record with a terminator."""
        record = parse_record("wh-a-t t 0 ah 1 // ")

        assert record.word == "wh-a-t"
        assert record.graphemes == ("wh", "a", "t")
        assert record.alignments == (("t", 0), ("ah", 1))

    def test_parse_record_lowercases(self):
        """Graphemes and phones are lower-cased."""
        record = parse_record("WH-A-T W 0 AH 1 T 2")

        assert record.graphemes == ("wh", "a", "t")
        assert record.alignments == (("w", 0), ("ah", 1), ("t", 2))

    def test_terminator_stops_phone_list(self):
        """Tokens after the terminator are ignored."""
        record = parse_record("a-b x 0 // y 1")

        assert record.alignments == (("x", 0),)

    def test_header_detection(self):
        """Header lines carry no space."""
        assert is_header("aa+1")
        assert not is_header("c-a-t k 0 ae 1 t 2")

    @pytest.mark.parametrize("line", [
        "a-b x y",
        "a-b x 5",
        "a-b x -1",
        "a-b x 0 y",
    ])
    def test_malformed_records(self, line):
        """Bad indices and odd phone/index lists are fatal."""
        with pytest.raises(MalformedRecordError):
            parse_record(line)

    def test_malformed_record_line_number(self):
        """Errors raised while reading a stream carry the line number."""
        builder = CorpusModelBuilder()

        with pytest.raises(MalformedRecordError) as excinfo:
            builder.feed(["header", "c-a-t k 0 ae 1 t 2", "c-a-t k zero"])

        assert excinfo.value.line_number == 3
        assert "line 3" in str(excinfo.value)


class TestCorpusModelBuilder:
    """Test cases for model building."""

    def test_emission_and_transition_edges(self):
        """Aligned graphemes map to their phones and phones chain together."""
        model = build_model(["wh-a-t t 0 ah 1 // "])

        assert model.emission.get_edge_weight("wh", "t") > 0
        assert model.emission.get_edge_weight("a", "ah") > 0
        assert model.emission.get_edge_weight("w", "t") is None
        assert model.transitions.get_edge_weight("t", "ah") > 0

    def test_silent_grapheme(self):
        """Graphemes without a phone map to the empty phone."""
        model = build_model(["m-a-k-e m 0 ey 1 k 2 //"])

        assert model.emission.get_edge_weight("e", "") == pytest.approx(1.0)
        # Adjacency is kept between the previous grapheme and the silent one.
        assert model.transitions.get_edge_weight("k", "e") is not None

    def test_empty_phone_always_present(self):
        """The empty phone is a node even when no grapheme is silent."""
        model = build_model(["c-a-t k 0 ae 1 t 2"])

        assert model.emission.contains_node("")
        assert model.transitions.contains_node("")

    def test_headers_and_terminator(self, corpus_lines):
        """Headers are skipped and reading stops at the terminator."""
        builder = CorpusModelBuilder()
        num_records = builder.feed(corpus_lines)

        assert num_records == 4
        assert not builder.emission.contains_node("d")
        assert not builder.emission.contains_node("aa+1")

    def test_custom_terminator(self):
        """The terminator sentinel is configurable."""
        config = get_config({'corpus': {'terminator': 'END'}})
        builder = CorpusModelBuilder(config)

        assert builder.feed(["c-a-t k 0 ae 1 t 2", "END", "b-a-t b 0 ae 1 t 2"]) == 1

    def test_normalized_probabilities(self, model):
        """Every node with outgoing edges has weights summing to one."""
        for graph in (model.emission, model.transitions):
            for node in graph.nodes():
                children = graph.children_of(node)
                if children:
                    total = sum(graph.get_edge_weight(node, c) for c in children)
                    assert total == pytest.approx(1.0)

    def test_emission_probabilities(self, model):
        """Test P(phone | grapheme) for a grapheme with several phones."""
        assert model.emission.get_edge_weight("a", "ae") == pytest.approx(0.5)
        assert model.emission.get_edge_weight("a", "aa") == pytest.approx(0.25)
        assert model.emission.get_edge_weight("a", "ey") == pytest.approx(0.25)

    def test_transition_probabilities(self, model):
        """Test P(next | previous) including grapheme adjacency edges."""
        assert model.transitions.get_edge_weight("k", "ae") == pytest.approx(1 / 3)
        assert model.transitions.get_edge_weight("k", "aa") == pytest.approx(1 / 3)
        assert model.transitions.get_edge_weight("k", "e") == pytest.approx(1 / 3)
        assert model.transitions.get_edge_weight("ae", "t") == pytest.approx(1.0)

    def test_unigram_counts(self, model):
        """Test grapheme and phoneme counts."""
        assert model.phoneme_counts["k"] == 3
        assert model.phoneme_counts["ae"] == 2
        assert "" not in model.phoneme_counts
        assert model.grapheme_counts["a"] == 4
        assert "e" not in model.grapheme_counts

    def test_phoneme_prior(self, model):
        """The prior is the normalized phoneme count."""
        prior = model.phoneme_prior()

        assert prior["k"] == pytest.approx(3 / 12)
        assert sum(prior.values()) == pytest.approx(1.0)

    def test_empty_corpus_prior(self):
        """An empty corpus has an empty prior."""
        model = build_model([])

        assert model.phoneme_prior() == {}
        assert model.graphemes() == []

    def test_grapheme_vocabulary(self, model):
        """Test the sorted grapheme vocabulary."""
        assert model.graphemes() == ["a", "b", "c", "k", "m", "r", "t"]

    def test_build_twice(self):
        """A builder builds exactly one model."""
        builder = CorpusModelBuilder()
        builder.feed(["c-a-t k 0 ae 1 t 2"])
        builder.build()

        with pytest.raises(InvalidStateError):
            builder.build()
        with pytest.raises(InvalidStateError):
            builder.add_line("b-a-t b 0 ae 1 t 2")

    def test_summary(self, model):
        """Test model summary counts."""
        summary = model.summary()

        assert summary['graphemes'] == 7
        assert summary['phonemes'] == 8
        assert summary['emission_edges'] > 0

    def test_load_corpus(self, corpus_file):
        """Test loading a corpus from a file."""
        model = load_corpus(corpus_file)

        assert model.emission.get_edge_weight("c", "k") == pytest.approx(1.0)

    def test_load_corpus_malformed(self):
        """Malformed corpus files are not partially loaded."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
            f.write("c-a-t k 0 ae 1 t\n")
            temp_file = f.name

        try:
            with pytest.raises(MalformedRecordError):
                load_corpus(temp_file)
        finally:
            os.unlink(temp_file)

    def test_counts_are_read_only(self, model):
        """The built model's unigram counts cannot be modified."""
        with pytest.raises(TypeError):
            model.grapheme_counts["a"] = 0
        with pytest.raises(TypeError):
            model.phoneme_counts["zz"] = 1
