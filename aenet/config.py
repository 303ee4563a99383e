import os
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
import torch

from aenet.errors import ConfigurationError

NUM_FEATURES = 28*28

DTYPES = {
    "float64": torch.float64,
    "float32": torch.float32,
}


class BatchPolicy(Enum):
    DROP = "drop"        # only the full windows
    PAD = "pad"          # trailing window padded by repeating its last example
    PARTIAL = "partial"  # trailing window run at its own size


class PixelMode(Enum):
    LINEAR = "linear"
    LEGACY = "legacy"


def parse_dtype(name: str) -> torch.dtype:
    try:
        return DTYPES[name]
    except KeyError:
        raise ConfigurationError("Unknown dtype: {}".format(name)) from None


def parse_batch_policy(name: str) -> BatchPolicy:
    try:
        return BatchPolicy(name)
    except ValueError:
        raise ConfigurationError("Unknown batch policy: {}".format(name)) from None


@dataclass(frozen=True)
class TrainConfig:
    epochs: int = 5
    dataset: str = "train"
    dtype: str = "float64"
    batch_size: int = 100
    learning_rate: float = 0.01
    batch_policy: BatchPolicy = BatchPolicy.DROP
    pixel_mode: PixelMode = PixelMode.LINEAR
    seed: int = 123

    data_path: str = "./mnist/"
    training_dir: str = "training"
    images_dir: str = "images"
    backup_path: str = "./backup/"
    graph_dir: Optional[str] = None

    log_interval: int = 100
    tb_logdir: Optional[str] = None

    def __post_init__(self):
        # fail before any tensor is allocated
        parse_dtype(self.dtype)
        if self.dataset not in ("train", "test"):
            raise ConfigurationError("Unknown dataset: {}".format(self.dataset))
        if self.epochs <= 0:
            raise ConfigurationError("epochs must be positive, got {}".format(self.epochs))
        if self.batch_size <= 0:
            raise ConfigurationError("batch size must be positive, got {}".format(self.batch_size))
        if self.log_interval <= 0:
            raise ConfigurationError("log interval must be positive, got {}".format(self.log_interval))
        if not isinstance(self.batch_policy, BatchPolicy):
            raise ConfigurationError("batch_policy must be a BatchPolicy, got {!r}".format(self.batch_policy))
        if not isinstance(self.pixel_mode, PixelMode):
            raise ConfigurationError("pixel_mode must be a PixelMode, got {!r}".format(self.pixel_mode))

    @property
    def torch_dtype(self) -> torch.dtype:
        return parse_dtype(self.dtype)


#Set seed for reproducibility
def seeding(seed: int) -> None:
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    torch.cuda.manual_seed(seed)
    torch.backends.cudnn.deterministic = True
