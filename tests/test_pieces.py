"""Label parsing and piece vocabulary."""

import pytest

from chess_overlay.models.pieces import fen_char, is_king_label, parse_label, piece_priority


class TestParseLabel:

    @pytest.mark.parametrize("label, expected", [
        ("w-king", ("w", "k")),
        ("white-king", ("w", "k")),
        ("b-queen-v2", ("b", "q")),
        ("black_knight", ("b", "n")),
        ("W-Rook", ("w", "r")),
        ("b-b", ("b", "b")),
        ("w-p", ("w", "p")),
        ("queen-white", ("w", "q")),
    ])
    def test_known_encodings(self, label, expected):
        assert parse_label(label) == expected

    def test_colour_token_is_not_read_as_bishop(self):
        assert parse_label("b-king") == ("b", "k")

    def test_full_word_preferred_over_letter(self):
        # "k" appears as a stray token, but the word "pawn" wins
        assert parse_label("w-k-pawn") == ("w", "p")

    @pytest.mark.parametrize("label", ["", "board", "white", "king", "x-queen", "w-dragon"])
    def test_unparseable_returns_none(self, label):
        assert parse_label(label) is None


class TestHelpers:

    def test_fen_char_case(self):
        assert fen_char("w", "q") == "Q"
        assert fen_char("b", "q") == "q"

    def test_king_label(self):
        assert is_king_label("black-king")
        assert not is_king_label("black-queen")
        assert not is_king_label("garbage")

    def test_priority_order(self):
        assert piece_priority("k") > piece_priority("q") > piece_priority("r")
        assert piece_priority("r") > piece_priority("b") == piece_priority("n")
        assert piece_priority("n") > piece_priority("p")
