import json
import logging

from utils.config import AudioConfig, load_config, save_config


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(str(tmp_path / "nope.json")) == AudioConfig()
    assert load_config(None) == AudioConfig()


def test_round_trip(tmp_path):
    path = tmp_path / "audio.json"
    cfg = AudioConfig(sample_rate=44100, output_device=3, noise_gate=0.05)
    save_config(cfg, str(path))

    data = json.loads(path.read_text())
    assert data["audio"]["sample_rate"] == 44100
    assert load_config(str(path)) == cfg


def test_unknown_keys_are_ignored_with_warning(tmp_path, caplog):
    path = tmp_path / "audio.json"
    path.write_text(json.dumps({"audio": {"blocksize": 1024, "colour": "red"}}))

    with caplog.at_level(logging.WARNING, logger="utils.config"):
        cfg = load_config(str(path))

    assert cfg.blocksize == 1024
    assert not hasattr(cfg, "colour")
    assert "colour" in caplog.text
