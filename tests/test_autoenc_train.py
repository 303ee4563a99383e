import os

import pytest

from aenet import autoenc_train
from aenet.checkpoint import read_checkpoint
from aenet.config import BatchPolicy, PixelMode, TrainConfig
from aenet.errors import ConfigurationError

from conftest import zeros_and_ones


def test_defaults():
    config = autoenc_train.build_config(autoenc_train.parse_args(["--no-tensorboard"]))
    assert config.epochs == 5
    assert config.dataset == "train"
    assert config.dtype == "float64"
    assert config.batch_size == 100
    assert config.learning_rate == 0.01
    assert config.batch_policy is BatchPolicy.DROP
    assert config.pixel_mode is PixelMode.LINEAR
    assert config.tb_logdir is None


def test_flags():
    args = autoenc_train.parse_args(["-bs", "8", "--dtype", "float32", "--batch-policy", "pad",
                                     "--legacy-pixels", "--logdir", "runs/x"])
    config = autoenc_train.build_config(args)
    assert config.batch_size == 8
    assert config.dtype == "float32"
    assert config.batch_policy is BatchPolicy.PAD
    assert config.pixel_mode is PixelMode.LEGACY
    assert config.tb_logdir == "runs/x"


def test_unknown_dtype_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="float16"):
        TrainConfig(dtype="float16")


def test_unknown_dtype_exits_non_zero(monkeypatch):
    def unreachable(*args, **kwargs):
        raise AssertionError("data must not be loaded")

    monkeypatch.setattr(autoenc_train, "load_mnist", unreachable)
    assert autoenc_train.main(["--dtype", "float16", "--no-tensorboard"]) == 1


def test_full_run(tmp_path, monkeypatch):
    splits = []

    def fake_load(split, data_path, dtype, download=True):
        splits.append(split)
        return zeros_and_ones(4 if split == "train" else 2, dtype)

    monkeypatch.setattr(autoenc_train, "load_mnist", fake_load)
    status = autoenc_train.main([
        "--epochs", "1", "-bs", "2", "--no-tensorboard",
        "--training-dir", str(tmp_path / "training"),
        "--images-dir", str(tmp_path / "images"),
        "--backup-path", str(tmp_path / "backup"),
        "--graph-dir", str(tmp_path / "graphs"),
    ])

    assert status == 0
    assert splits == ["train", "test"]
    assert os.listdir(tmp_path / "training") == ["0 - 0 - 0 training.jpg"]
    assert len(os.listdir(tmp_path / "images")) == 4
    assert sorted(os.listdir(tmp_path / "graphs")) == [
        "simple_graph.txt", "simple_graph_2.txt", "simple_graph_3.txt"]
    names = [name for name, _ in read_checkpoint(str(tmp_path / "backup" / "backup.pt"))]
    assert names == ["w0", "w1", "w2", "w3"]


@pytest.mark.parametrize("field", ["epochs", "batch_size", "log_interval"])
@pytest.mark.parametrize("value", [0, -1])
def test_non_positive_counts_are_configuration_errors(field, value):
    with pytest.raises(ConfigurationError):
        TrainConfig(**{field: value})


def test_zero_log_interval_exits_non_zero(monkeypatch):
    def unreachable(*args, **kwargs):
        raise AssertionError("data must not be loaded")

    monkeypatch.setattr(autoenc_train, "load_mnist", unreachable)
    assert autoenc_train.main(["--log-interval", "0", "--no-tensorboard"]) == 1
