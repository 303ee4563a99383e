import pytest
import torch

from aenet.config import NUM_FEATURES, TrainConfig, seeding


@pytest.fixture(autouse=True)
def seeded():
    seeding(123)


def zeros_and_ones(n: int, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """Deterministic dataset: even rows all zeros, odd rows all ones."""
    rows = [torch.full((NUM_FEATURES,), float(i % 2), dtype=dtype) for i in range(n)]
    return torch.stack(rows)


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        params = dict(
            epochs=1,
            batch_size=4,
            training_dir=str(tmp_path / "training"),
            images_dir=str(tmp_path / "images"),
            backup_path=str(tmp_path / "backup"),
            log_interval=1,
        )
        params.update(overrides)
        return TrainConfig(**params)
    return _make
