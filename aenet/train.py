import os
from typing import List, NamedTuple, Optional, Tuple

import torch
from torch.utils.tensorboard import SummaryWriter

from aenet.config import TrainConfig
from aenet.data import Batcher
from aenet.errors import ConfigurationError, ExecutionError, GraphConstructionError
from aenet.model import AutoEncoder
from aenet.pixels import save_row


class EpochResult(NamedTuple):
    epoch: int
    last_loss: Optional[float]
    mean_loss: float
    batches: int


class LossTracker:
    """Running mean of batch losses, plus the most recent one."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.total = 0.0
        self.count = 0
        self.last = None

    def update(self, loss: float) -> None:
        self.total += loss
        self.count += 1
        self.last = loss

    @property
    def mean(self) -> float:
        if self.count == 0:
            return float("nan")
        return self.total / self.count


class Trainer:
    def __init__(self, model: AutoEncoder, config: TrainConfig, writer: Optional[SummaryWriter] = None):
        self.model = model
        self.config = config

        if config.torch_dtype != model.dtype:
            raise ConfigurationError("Model dtype {} does not match configured dtype {}".format(
                model.dtype, config.dtype))
        # Shape errors are fatal and must surface before anything is allocated
        # for training.
        model.check_graph(config.batch_size)

        self.optimizer = torch.optim.Adam(model.learnables(), lr=config.learning_rate)
        self.tracker = LossTracker()
        self.snapshots: List[str] = []

        self._owns_writer = writer is None and config.tb_logdir is not None
        if self._owns_writer:
            writer = SummaryWriter(config.tb_logdir)
        self.writer = writer

    def _scale_gradients(self) -> None:
        # Adam sees the gradient divided by the batch size, as if the cost
        # had been summed per example and averaged again.
        for w in self.model.learnables():
            if w.grad is not None:
                w.grad.div_(self.config.batch_size)

    def train_step(self, x: torch.Tensor, epoch: int) -> Tuple[float, torch.Tensor]:
        """One forward+gradient pass and one optimizer step over the learnables."""
        x = x.to(self.model.dtype)
        self.optimizer.zero_grad()
        try:
            loss, pred = self.model(x)
            loss.backward()
        except GraphConstructionError:
            raise
        except RuntimeError as err:
            raise ExecutionError("Failed at epoch {}".format(epoch)) from err

        self._scale_gradients()
        self.optimizer.step()
        # no gradient may leak into the next batch
        self.optimizer.zero_grad()
        return loss.item(), pred.detach()

    def snapshot(self, pred: torch.Tensor, batch_idx: int, epoch: int) -> List[str]:
        paths = []
        for j in range(1):
            path = os.path.join(self.config.training_dir, "{} - {} - {} training.jpg".format(j, batch_idx, epoch))
            paths.append(save_row(pred[j], path, self.config.pixel_mode))
        self.snapshots.extend(paths)
        return paths

    def train_epoch(self, batcher: Batcher, epoch: int) -> EpochResult:
        self.model.train() #tell the model it is a training round
        self.tracker.reset()
        for i, batch in enumerate(batcher):
            loss, pred = self.train_step(batch.x, epoch)
            self.tracker.update(loss)

            if i == 0:
                self.snapshot(pred, batch.index, epoch)
            if i % self.config.log_interval == 0:
                print('Train Epoch: {} [{}/{} ({:.0f}%)]\tLoss: {:.6f}'.format(
                    epoch, batch.start, batcher.num_examples,
                    100.*i/len(batcher), loss
                ))

        result = EpochResult(epoch, self.tracker.last, self.tracker.mean, self.tracker.count)
        print("Epoch {} | cost {} | last batch {}".format(epoch, result.mean_loss, result.last_loss))
        if self.writer is not None and result.batches > 0:
            self.writer.add_scalar('Loss/train', result.mean_loss, epoch)
            self.writer.add_scalar('Loss/train_last', result.last_loss, epoch)
            self.writer.flush()
        return result

    def train(self, inputs: torch.Tensor) -> List[EpochResult]:
        batcher = Batcher(inputs, self.config.batch_size, self.config.batch_policy)
        print("Batches {}".format(len(batcher)))

        results = []
        for epoch in range(self.config.epochs):
            results.append(self.train_epoch(batcher, epoch))
        return results

    def close(self) -> None:
        if self._owns_writer and self.writer is not None:
            self.writer.close()
