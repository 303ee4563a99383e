from typing import Iterator, List, NamedTuple, Tuple

import torch
from torchvision import datasets

from aenet.config import NUM_FEATURES, BatchPolicy
from aenet.errors import BatchReshapeError, ConfigurationError


def load_mnist(split: str, data_path: str, dtype: torch.dtype = torch.float64, download: bool = True) -> torch.Tensor:
    """
    Load one MNIST split as an (N, 784) tensor of intensities in [0,1].

    Labels are read by torchvision along with the images and dropped here.
    """
    if split not in ("train", "test"):
        raise ConfigurationError("Unknown dataset: {}".format(split))
    dataset = datasets.MNIST(root=data_path, train=(split == "train"), download=download)
    # MNIST data consists of 28 by 28 black and white images, flattened to
    # 784 different pixels
    return dataset.data.reshape(-1, NUM_FEATURES).to(dtype) / 255.0


def batch_windows(num_examples: int, batch_size: int,
                  policy: BatchPolicy = BatchPolicy.DROP) -> List[Tuple[int, int, int]]:
    """
    Return ``(b, start, end)`` for every window visited in one pass.

    The full windows ``[b*S, (b+1)*S)`` for ``b < N // S`` always come first.
    The trailing partial window is only added by the PAD and PARTIAL policies.
    """
    windows = []
    batches = num_examples // batch_size
    for b in range(batches):
        start = b * batch_size
        end = start + batch_size
        if start >= num_examples:
            break
        if end > num_examples:
            end = num_examples
        windows.append((b, start, end))
    if policy is not BatchPolicy.DROP and batches * batch_size < num_examples:
        windows.append((batches, batches * batch_size, num_examples))
    return windows


class Batch(NamedTuple):
    index: int
    start: int
    end: int
    x: torch.Tensor

    @property
    def rows(self) -> int:
        # examples taken from the dataset, padding excluded
        return self.end - self.start


class Batcher:
    def __init__(self, inputs: torch.Tensor, batch_size: int, policy: BatchPolicy = BatchPolicy.DROP):
        self.inputs = inputs
        self.batch_size = batch_size
        self.policy = policy
        self.windows = batch_windows(inputs.shape[0], batch_size, policy)

    def __len__(self) -> int:
        return len(self.windows)

    @property
    def num_examples(self) -> int:
        return self.inputs.shape[0]

    def shape_batch(self, x_val: torch.Tensor) -> torch.Tensor:
        rows = x_val.shape[0]
        if rows == self.batch_size or self.policy is BatchPolicy.DROP:
            try:
                return x_val.reshape(self.batch_size, NUM_FEATURES)
            except RuntimeError as err:
                raise BatchReshapeError("Unable to reshape {} rows to ({}, {})".format(
                    rows, self.batch_size, NUM_FEATURES)) from err
        if self.policy is BatchPolicy.PAD:
            pad = x_val[-1:].expand(self.batch_size - rows, -1)
            return torch.cat([x_val, pad], dim=0)
        return x_val.reshape(rows, NUM_FEATURES)

    def __iter__(self) -> Iterator[Batch]:
        for b, start, end in self.windows:
            yield Batch(b, start, end, self.shape_batch(self.inputs[start:end]))
