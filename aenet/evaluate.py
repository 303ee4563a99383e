import os
from typing import List, NamedTuple, Optional

import torch
from torch.utils.tensorboard import SummaryWriter

from aenet.config import TrainConfig
from aenet.data import Batcher
from aenet.errors import ExecutionError, GraphConstructionError
from aenet.model import AutoEncoder
from aenet.pixels import save_row


class EvalResult(NamedTuple):
    mean_loss: float
    batches: int
    examples: int
    images: List[str]


class Evaluator:
    """Forward-only pass over the held-out split."""

    def __init__(self, model: AutoEncoder, config: TrainConfig, writer: Optional[SummaryWriter] = None):
        self.model = model
        self.config = config
        self.writer = writer

    def _image_path(self, batch_idx: int, j: int, kind: str) -> str:
        return os.path.join(self.config.images_dir, "{} - {} {}.jpg".format(batch_idx, j, kind))

    def run(self, inputs: torch.Tensor) -> EvalResult:
        batcher = Batcher(inputs, self.config.batch_size, self.config.batch_policy)
        mode = self.config.pixel_mode

        self.model.eval() #tell the model it is being evaluated
        test_loss = 0.0
        examples = 0
        images = []
        with torch.no_grad():
            for batch in batcher:
                x_batch = batch.x.to(self.model.dtype)
                try:
                    pred = self.model.reconstruct(x_batch)
                except GraphConstructionError:
                    raise
                except RuntimeError as err:
                    raise ExecutionError("Failed at epoch test, batch {}".format(batch.index)) from err

                # padding rows never count towards the held-out loss
                rows = batch.rows
                loss = self.model.reconstruction_loss(x_batch[:rows], pred[:rows])
                test_loss += loss.item() * rows
                examples += rows

                for j in range(rows):
                    images.append(save_row(x_batch[j], self._image_path(batch.index, j, "input"), mode))
                for j in range(rows):
                    images.append(save_row(pred[j], self._image_path(batch.index, j, "output"), mode))

        mean_loss = test_loss / examples if examples else float("nan")
        print('Epoch Test | cost {}'.format(mean_loss))
        if self.writer is not None and examples:
            self.writer.add_scalar('Loss/test', mean_loss, 0)
            self.writer.flush()
        return EvalResult(mean_loss, len(batcher), examples, images)
