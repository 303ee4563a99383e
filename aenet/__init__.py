from aenet.checkpoint import read_checkpoint, save_checkpoint
from aenet.config import BatchPolicy, PixelMode, TrainConfig
from aenet.errors import (AenetError, BatchReshapeError, ConfigurationError, ExecutionError,
                          GraphConstructionError, PersistenceError)
from aenet.evaluate import Evaluator
from aenet.model import AutoEncoder
from aenet.train import Trainer

__version__ = "0.1.0"
