import os
import pickle
from typing import List, Tuple

import torch

from aenet.errors import PersistenceError
from aenet.model import AutoEncoder

# Bump whenever the order or the set of learnables changes.
CHECKPOINT_VERSION = 1


def save_checkpoint(model: AutoEncoder, backup_path: str, filename: str = "backup.pt") -> str:
    """
    Save the learnables, in learnable order, to ``backup_path/filename``.

    Raises:
        PersistenceError: the file cannot be created or a value cannot be
        serialized.
    """
    path = os.path.join(backup_path, filename)
    # written next to the target and moved into place once complete
    partial = path + ".partial"
    learnables = [(name, w.detach().cpu().clone())
                  for name, w in zip(model.learnable_names(), model.learnables())]
    try:
        if backup_path and not os.path.exists(backup_path):
            os.makedirs(backup_path)
        f = open(partial, "wb")
    except OSError as err:
        raise PersistenceError("Unable to create checkpoint {}".format(path)) from err

    try:
        with f:
            torch.save({"version": CHECKPOINT_VERSION, "learnables": learnables}, f)
        os.replace(partial, path)
    except Exception as err:
        if os.path.exists(partial):
            os.remove(partial)
        raise PersistenceError("Unable to encode learnables into {}".format(path)) from err
    return path


def read_checkpoint(path: str) -> List[Tuple[str, torch.Tensor]]:
    """Decode a checkpoint into its ordered ``(name, tensor)`` pairs."""
    try:
        payload = torch.load(path, weights_only=True)
    except (OSError, RuntimeError, pickle.UnpicklingError) as err:
        raise PersistenceError("Unable to read checkpoint {}".format(path)) from err

    if not isinstance(payload, dict) or "learnables" not in payload:
        raise PersistenceError("{} does not hold a learnables checkpoint".format(path))
    version = payload.get("version")
    if version != CHECKPOINT_VERSION:
        raise PersistenceError("Unsupported checkpoint version {} in {}".format(version, path))
    return [(name, tensor) for name, tensor in payload["learnables"]]
