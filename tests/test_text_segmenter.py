"""Tests for the sentence segmentation cascade."""

import pytest

from voice_relay.services.text_segmenter import (
    Sentence,
    SentenceSegmenter,
    split_into_sentences,
    split_long_text,
    split_on_newlines,
    split_on_punctuation,
    whole_text,
)

LONG_UNPUNCTUATED = (
    "this reply has no terminal punctuation at all  it keeps going for quite a while "
    "and then Another clause begins with a capital letter and Runs on further still"
)


class TestCascade:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_blank_input(self, text):
        assert split_into_sentences(text) == []
        assert SentenceSegmenter().segment(text) == []

    def test_single_sentence(self):
        assert split_into_sentences("Hello there.") == ["Hello there."]

    def test_newlines_without_punctuation(self):
        assert split_into_sentences("Line one\nLine two") == ["Line one", "Line two"]

    def test_long_text_heuristic(self):
        assert len(LONG_UNPUNCTUATED) > 100
        sentences = split_into_sentences(LONG_UNPUNCTUATED)
        assert len(sentences) > 1
        assert sentences[0] == "this reply has no terminal punctuation at all"
        assert sentences[-1].startswith("Runs on")

    def test_short_unpunctuated_text_is_one_sentence(self):
        assert split_into_sentences("  just a few words here  ") == ["just a few words here"]

    def test_long_text_without_boundaries_is_one_sentence(self):
        text = "word " * 40
        assert len(text.strip()) > 100
        assert split_into_sentences(text) == [text.strip()]

    def test_punctuation_beats_newlines(self):
        assert split_into_sentences("First line.\nSecond line!") == [
            "First line.",
            "Second line!",
        ]

    def test_devanagari_terminators(self):
        assert split_into_sentences("नमस्ते। आप कैसे हैं? सब ठीक॥") == [
            "नमस्ते।",
            "आप कैसे हैं?",
            "सब ठीक॥",
        ]

    def test_runs_of_terminators_stay_together(self):
        assert split_into_sentences("Really?! Yes... Fine.") == ["Really?!", "Yes...", "Fine."]

    def test_leading_terminators_join_the_first_sentence(self):
        assert split_into_sentences("...Okay. Sure.") == ["...Okay.", "Sure."]

    def test_detached_punctuation_joins_the_previous_sentence(self):
        assert split_into_sentences("Hello. ! Bye. ?!") == ["Hello. !", "Bye. ?!"]

    def test_punctuation_only_reply_is_one_piece(self):
        assert split_into_sentences("?!") == ["?!"]

    def test_text_after_last_terminator_is_kept(self):
        assert split_into_sentences("Done. and then some") == ["Done.", "and then some"]

    def test_sentences_rejoin_to_input(self):
        text = "... One fish.  Two fish! !\nRed fish?  Blue fish"
        sentences = split_into_sentences(text)
        cursor = 0
        for sentence in sentences:
            found = text.index(sentence, cursor)
            assert text[cursor:found].strip() == ""
            cursor = found + len(sentence)
        assert text[cursor:].strip() == ""


class TestStrategies:
    def test_punctuation_without_terminators(self):
        assert split_on_punctuation("no stops here") is None

    def test_newlines_single_piece(self):
        assert split_on_newlines("one line\n\n   ") is None

    def test_long_text_threshold(self):
        assert split_long_text("Short  Text") is None

    def test_whole_text(self):
        assert whole_text("anything") == ["anything"]
        assert whole_text("") is None

    def test_custom_cascade(self):
        segmenter = SentenceSegmenter([lambda text: None, whole_text])
        assert segmenter.split("A. B.") == ["A. B."]


class TestSentence:
    def test_indexes_are_one_based_and_short_sentences_keep_them(self):
        sentences = SentenceSegmenter().segment("Hi. A. Hello.")
        assert sentences == [
            Sentence(index=1, text="Hi."),
            Sentence(index=2, text="A."),
            Sentence(index=3, text="Hello."),
        ]
        assert [s.index for s in sentences if s.is_speakable(min_chars=3)] == [1, 3]

    @pytest.mark.parametrize("text", ["...", "?!", " . ", "।॥"])
    def test_punctuation_only_is_not_speakable(self, text):
        assert not Sentence(1, text).is_speakable()

    def test_devanagari_is_speakable(self):
        assert Sentence(1, "हाँ।").is_speakable()

    def test_min_chars(self):
        assert Sentence(1, "Hi").is_speakable()
        assert not Sentence(1, "Hi").is_speakable(min_chars=3)
