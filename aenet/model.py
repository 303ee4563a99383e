from typing import List, Sequence, Tuple

import torch
import torch.nn as nn

from aenet.config import NUM_FEATURES
from aenet.errors import GraphConstructionError

# in -> hidden -> bottleneck -> hidden -> out
LAYER_SIZES = (NUM_FEATURES, 128, 64, 128, NUM_FEATURES)

GRAPH_STAGES = ("inputs", "forward", "loss")


class AutoEncoder(nn.Module):
    def __init__(self, dtype: torch.dtype = torch.float64, sizes: Sequence[int] = LAYER_SIZES, gain: float = 1.0):
        super().__init__()
        self.sizes = tuple(sizes)
        self.dtype = dtype

        # Bias-free weights, one per layer. Registration order is the
        # checkpoint order.
        for i, (fan_in, fan_out) in enumerate(zip(self.sizes[:-1], self.sizes[1:])):
            w = nn.Parameter(torch.empty(fan_in, fan_out, dtype=dtype))
            nn.init.xavier_uniform_(w, gain=gain)
            self.register_parameter("w{}".format(i), w)

        self.criterion = nn.MSELoss()

    def learnables(self) -> List[nn.Parameter]:
        return [getattr(self, "w{}".format(i)) for i in range(len(self.sizes) - 1)]

    def learnable_names(self) -> List[str]:
        return ["w{}".format(i) for i in range(len(self.sizes) - 1)]

    def check_graph(self, batch_size: int) -> Tuple[int, int]:
        """
        Walk the multiply chain for an input of shape (batch_size, in) and
        return the output shape. Nothing is computed.

        Raises:
            GraphConstructionError: two consecutive operands disagree on their
            inner dimension, or the output cannot be compared to the input.
        """
        shape = (batch_size, self.sizes[0])
        for i, w in enumerate(self.learnables()):
            if w.dim() != 2:
                raise GraphConstructionError("w{} must be a matrix, got shape {}".format(i, tuple(w.shape)))
            if shape[1] != w.shape[0]:
                raise GraphConstructionError("Unable to multiply l{0} and w{0}: {1} x {2}".format(
                    i, shape, tuple(w.shape)))
            shape = (shape[0], w.shape[1])
        if shape[1] != self.sizes[0]:
            raise GraphConstructionError("Reconstruction shape {} does not match input width {}".format(
                shape, self.sizes[0]))
        return shape

    def reconstruct(self, x: torch.Tensor) -> torch.Tensor:
        l = x
        for i, w in enumerate(self.learnables()):
            try:
                dot = torch.matmul(l, w)
            except RuntimeError as err:
                raise GraphConstructionError("Unable to multiply l{0} and w{0}".format(i)) from err
            l = torch.sigmoid(dot)
        return l

    def reconstruction_loss(self, target: torch.Tensor, output: torch.Tensor) -> torch.Tensor:
        return self.criterion(output, target)

    def forward(self, x: torch.Tensor):
        decoded = self.reconstruct(x)
        loss = self.reconstruction_loss(x, decoded)     # Compute loss
        return loss, decoded

    def describe_graph(self, stage: str, batch_size: int) -> str:
        """Text listing of the graph nodes declared up to ``stage``."""
        if stage not in GRAPH_STAGES:
            raise ValueError("Unknown graph stage: {}".format(stage))
        dtype = str(self.dtype).replace("torch.", "")
        width = self.sizes[0]
        nodes = [
            ("x", (batch_size, width), "input"),
            ("y", (batch_size, width), "input"),
        ]
        if stage in ("forward", "loss"):
            shape = (batch_size, width)
            for i, w in enumerate(self.learnables()):
                nodes.append(("w{}".format(i), tuple(w.shape), "learnable"))
                shape = (shape[0], w.shape[1])
                nodes.append(("l{}dot".format(i), shape, "l{0} x w{0}".format(i)))
                nodes.append(("l{}".format(i + 1), shape, "sigmoid(l{}dot)".format(i)))
        if stage == "loss":
            nodes.append(("diff", (batch_size, width), "y - l{}".format(len(self.sizes) - 1)))
            nodes.append(("losses", (batch_size, width), "square(diff)"))
            nodes.append(("cost", (), "mean(losses)"))

        lines = ["graph {} ({} nodes)".format(stage, len(nodes))]
        for name, shape, op in nodes:
            lines.append("{}\t{}\t{}\t{}".format(name, shape, dtype, op))
        return "\n".join(lines) + "\n"

    def write_graph(self, path: str, stage: str, batch_size: int) -> str:
        with open(path, "w") as f:
            f.write(self.describe_graph(stage, batch_size))
        return path
