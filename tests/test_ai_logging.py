import json

from megamaluca.ai.logging import AILogger


def test_text_generation_written(tmp_path):
    ai_logger = AILogger(tmp_path)
    entry_id = ai_logger.log_text_generation(
        category="commentary",
        prompt="p",
        response="Errou feio, errou rude!",
        model="gemini-3-flash-preview",
        metadata={"level": "WILD"},
    )

    assert entry_id
    files = list(tmp_path.glob("*/text/commentary_*.json"))
    assert len(files) == 1
    entry = json.loads(files[0].read_text(encoding="utf-8"))
    assert entry["id"] == entry_id
    assert entry["response"] == "Errou feio, errou rude!"
    assert entry["metadata"] == {"level": "WILD"}


def test_image_generation_written(tmp_path):
    ai_logger = AILogger(tmp_path)
    entry_id = ai_logger.log_image_generation("celebration", b"png", prompt="p", model="m")

    images = list(tmp_path.glob("*/images/celebration_*.png"))
    assert len(images) == 1
    assert images[0].read_bytes() == b"png"

    meta = json.loads(next(tmp_path.glob("*/metadata/*_meta.json")).read_text(encoding="utf-8"))
    assert meta["id"] == entry_id
    assert meta["image_file"] == images[0].name


def test_write_failure_returns_empty_id(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    ai_logger = AILogger(blocker)
    assert ai_logger.log_text_generation("commentary", "p", "r", "m") == ""
