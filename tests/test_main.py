"""Command-line entry points that need no model weights."""

import pytest

from chess_overlay.main import build_parser, main


class TestValidateCommand:

    def test_valid(self, capsys):
        assert main(["validate", "4k3/8/8/8/8/8/8/4K3 w - - 0 1"]) == 0
        assert capsys.readouterr().out.strip() == "OK"

    def test_invalid(self, capsys):
        assert main(["validate", "8/8/8/8/8/8/8/4K3 w - - 0 1"]) == 1
        out = capsys.readouterr().out
        assert out.strip() == "INVALID: Missing king(s): white=true, black=false"

    def test_warnings_printed(self, capsys):
        assert main(["validate", "4k3/8/8/8/8/8/8/K3K3"]) == 0
        assert "warning: White king count = 2" in capsys.readouterr().out


class TestOverlayCommand:

    def test_identity_view(self, capsys):
        code = main([
            "overlay", "--move", "e2e4",
            "--crop-rect", "100,50,600,600",
            "--source", "1000x500", "--view", "1000x500",
        ])
        assert code == 0
        assert capsys.readouterr().out.strip() == "(437.5, 537.5) -> (437.5, 387.5)"

    def test_malformed_move(self, capsys):
        code = main([
            "overlay", "--move", "e9e4",
            "--crop-rect", "0,0,800,800",
            "--source", "800x800", "--view", "400x400",
        ])
        assert code == 1
        assert "Malformed move" in capsys.readouterr().out

    def test_bad_size_argument(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([
                "overlay", "--move", "e2e4", "--crop-rect", "0,0,1,1",
                "--source", "big", "--view", "1x1",
            ])


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "recognize" in capsys.readouterr().out


def test_unreadable_image(tmp_path):
    missing = tmp_path / "nope.jpg"
    code = main([
        "recognize", "--image", str(missing),
        "--board-model", "board.pt", "--piece-model", "pieces.pt",
    ])
    assert code == 1
