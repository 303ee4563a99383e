import argparse
import os
import sys
from datetime import datetime
from typing import List, Optional

from termcolor import colored

from aenet.checkpoint import save_checkpoint
from aenet.config import PixelMode, TrainConfig, parse_batch_policy, seeding
from aenet.data import load_mnist
from aenet.errors import AenetError
from aenet.evaluate import Evaluator
from aenet.model import AutoEncoder
from aenet.train import Trainer


def add_user_args(parser: argparse.ArgumentParser) -> None:
    """
    Add user-defined arguments.

    Args:
        parser (argparse.ArgumentParser): argument parser
    """

    parser.add_argument(
        "--epochs",
        type=int,
        default=5,
        metavar="N",
        help="number of epochs to train for (default: 5)",
    )
    parser.add_argument(
        "--dataset",
        type=str,
        default="train",
        help="which dataset to train on, \"train\" or \"test\" (default: train)",
    )
    parser.add_argument(
        "--dtype",
        type=str,
        default="float64",
        help="which dtype to use, float64 or float32 (default: float64)",
    )
    parser.add_argument(
        "-bs",
        "--batch-size",
        type=int,
        default=100,
        metavar="N",
        help="input batch size for training and testing (default: 100)",
    )
    parser.add_argument(
        "--learning-rate",
        type=float,
        default=0.01,
        metavar="LR",
        help="learning rate (default: 0.01)",
    )
    parser.add_argument(
        "--batch-policy",
        type=str,
        default="drop",
        help="what to do with a trailing partial batch: drop, pad or partial (default: drop)",
    )
    parser.add_argument(
        "--legacy-pixels",
        action="store_true",
        help="render images with the wrap-around pixel mapping of earlier releases",
    )
    parser.add_argument("--seed", type=int, default=123, metavar="N", help="random seed (default: 123)")
    parser.add_argument("--data-path", type=str, default="./mnist/", help="Download location for MNIST data")
    parser.add_argument("--training-dir", type=str, default="training", help="Save location for training snapshots")
    parser.add_argument("--images-dir", type=str, default="images", help="Save location for test images")
    parser.add_argument("--backup-path", type=str, default="./backup/", help="Save location for the checkpoint")
    parser.add_argument("--graph-dir", type=str, default=".", help="Save location for graph descriptions")
    parser.add_argument("--log-interval", type=int, default=100, metavar="N", help="batches between progress lines")
    parser.add_argument("--logdir", type=str, default=None, help="TensorBoard run directory")
    parser.add_argument("--no-tensorboard", action="store_true", help="Do not write TensorBoard scalars")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train a fully-connected autoencoder on MNIST")
    add_user_args(parser)
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> TrainConfig:
    tb_logdir = None
    if not args.no_tensorboard:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        tb_logdir = args.logdir or 'runs/aenet_trainer_{}'.format(timestamp)

    return TrainConfig(
        epochs=args.epochs,
        dataset=args.dataset,
        dtype=args.dtype,
        batch_size=args.batch_size,
        learning_rate=args.learning_rate,
        batch_policy=parse_batch_policy(args.batch_policy),
        pixel_mode=PixelMode.LEGACY if args.legacy_pixels else PixelMode.LINEAR,
        seed=args.seed,
        data_path=args.data_path,
        training_dir=args.training_dir,
        images_dir=args.images_dir,
        backup_path=args.backup_path,
        graph_dir=args.graph_dir,
        log_interval=args.log_interval,
        tb_logdir=tb_logdir,
    )


def run(config: TrainConfig) -> None:
    seeding(config.seed)
    dtype = config.torch_dtype

    # load our data set
    inputs = load_mnist(config.dataset, config.data_path, dtype)

    model = AutoEncoder(dtype=dtype)
    if config.graph_dir is not None:
        os.makedirs(config.graph_dir, exist_ok=True)
        model.write_graph(os.path.join(config.graph_dir, "simple_graph.txt"), "inputs", config.batch_size)

    trainer = Trainer(model, config)
    if config.graph_dir is not None:
        model.write_graph(os.path.join(config.graph_dir, "simple_graph_2.txt"), "forward", config.batch_size)
        model.write_graph(os.path.join(config.graph_dir, "simple_graph_3.txt"), "loss", config.batch_size)

    try:
        results = trainer.train(inputs)

        path = save_checkpoint(model, config.backup_path)
        print("Saved learnables to {}".format(path))

        print("Run Tests")
        # load our test set
        test_inputs = load_mnist("test", config.data_path, dtype)
        evaluation = Evaluator(model, config, writer=trainer.writer).run(test_inputs)
    finally:
        trainer.close()

    if results:
        print("Final train cost {} | test cost {}".format(results[-1].mean_loss, evaluation.mean_loss))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
        print("Using dtype {}, batch size {}, {} epochs".format(config.dtype, config.batch_size, config.epochs))
        run(config)
    except AenetError as err:
        print(colored("[ERROR] {}".format(err), "red"), file=sys.stderr)
        if err.__cause__ is not None:
            print(colored("  caused by: {}".format(err.__cause__), "red"), file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
