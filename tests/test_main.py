import pytest

from megamaluca.main import parse_args, play, save_image


def test_parse_args():
    args = parse_args(["1", "2", "3", "4", "5", "6", "--chaos", "apocalyptic", "--no-audio"])
    assert args.numbers == [1, 2, 3, 4, 5, 6]
    assert args.chaos == "apocalyptic"
    assert args.no_audio
    assert not args.interactive


def test_parse_args_needs_six_numbers():
    with pytest.raises(SystemExit):
        parse_args(["1", "2", "3"])


async def test_play_without_api_key(settings, tmp_path, capsys):
    args = parse_args(["5", "12", "23", "34", "45", "58", "--no-audio",
                       "--output-dir", str(tmp_path)])

    assert await play(args, settings) == 0

    out = capsys.readouterr().out
    assert "Seu Bilhete: 05 12 23 34 45 58" in out
    assert "Mestre do Caos" in out
    # No key, so no winner image either way
    assert list(tmp_path.iterdir()) == []


async def test_play_rejects_unknown_chaos(settings, capsys):
    args = parse_args(["1", "2", "3", "4", "5", "6", "--chaos", "mild", "--no-audio"])
    assert await play(args, settings) == 2
    assert "mild" in capsys.readouterr().err


async def test_play_rejects_duplicate_numbers(settings):
    args = parse_args(["1", "1", "2", "3", "4", "5", "--no-audio"])
    assert await play(args, settings) == 2


async def test_play_rejects_out_of_range(settings):
    args = parse_args(["1", "2", "3", "4", "5", "61", "--no-audio"])
    assert await play(args, settings) == 2


def test_save_image(tmp_path):
    path = save_image(b"png", tmp_path / "out")
    assert path.read_bytes() == b"png"
    assert path.suffix == ".png"
