import os

import pytest
import torch

from aenet.checkpoint import CHECKPOINT_VERSION, read_checkpoint, save_checkpoint
from aenet.errors import PersistenceError
from aenet.model import AutoEncoder


def test_round_trip_is_bit_identical(tmp_path):
    model = AutoEncoder()
    path = save_checkpoint(model, str(tmp_path / "backup"))

    restored = read_checkpoint(path)
    assert [name for name, _ in restored] == ["w0", "w1", "w2", "w3"]
    for (_, value), w in zip(restored, model.learnables()):
        assert value.dtype == w.dtype
        assert value.shape == w.shape
        assert torch.equal(value, w.detach())


def test_unwritable_location_is_fatal(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    with pytest.raises(PersistenceError, match="Unable to create"):
        save_checkpoint(AutoEncoder(), str(blocker))


def test_encode_failure_is_reported(tmp_path, monkeypatch):
    def broken(obj, f):
        raise RuntimeError("cannot pickle")

    monkeypatch.setattr(torch, "save", broken)
    with pytest.raises(PersistenceError, match="Unable to encode"):
        save_checkpoint(AutoEncoder(), str(tmp_path))


def test_unknown_version_is_rejected(tmp_path):
    path = str(tmp_path / "old.pt")
    torch.save({"version": CHECKPOINT_VERSION + 1, "learnables": []}, path)
    with pytest.raises(PersistenceError, match="Unsupported"):
        read_checkpoint(path)


def test_failed_encode_leaves_no_file_behind(tmp_path, monkeypatch):
    def half_written(obj, f):
        f.write(b"PK\x03\x04")
        raise RuntimeError("disk full")

    monkeypatch.setattr(torch, "save", half_written)
    with pytest.raises(PersistenceError):
        save_checkpoint(AutoEncoder(), str(tmp_path))
    assert os.listdir(tmp_path) == []


def test_failed_save_keeps_previous_checkpoint(tmp_path, monkeypatch):
    model = AutoEncoder()
    path = save_checkpoint(model, str(tmp_path))

    def broken(obj, f):
        raise RuntimeError("disk full")

    monkeypatch.setattr(torch, "save", broken)
    with pytest.raises(PersistenceError):
        save_checkpoint(model, str(tmp_path))
    monkeypatch.undo()
    assert [name for name, _ in read_checkpoint(path)] == ["w0", "w1", "w2", "w3"]


def test_non_checkpoint_payload_is_rejected(tmp_path):
    path = str(tmp_path / "list.pt")
    torch.save([torch.zeros(2)], path)
    with pytest.raises(PersistenceError, match="does not hold"):
        read_checkpoint(path)


def test_unsafe_pickle_is_rejected(tmp_path):
    path = str(tmp_path / "object.pt")
    torch.save({"version": CHECKPOINT_VERSION, "learnables": [], "extra": Exception("x")}, path)
    with pytest.raises(PersistenceError, match="Unable to read"):
        read_checkpoint(path)
