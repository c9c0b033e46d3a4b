"""Factory for creating PyTorch optimizers from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import torch
import torch.optim as torch_optim
from torch.optim import Optimizer

SUPPORTED_TORCH_OPTIMIZERS = ("sgd", "adam", "lbfgs")


@dataclass(frozen=True)
class OptimConfig:
    """
    Configuration for a torch.optim optimizer.

    Fields an optimizer does not use are ignored.

    Args:
        name: "sgd", "adam" or "lbfgs".
        lr: Learning rate. Must be positive.
        weight_decay: L2 penalty for SGD and Adam.
        momentum: Momentum factor for SGD.
        betas: Adam betas; None means (0.9, 0.999).
        max_iter: Inner iterations per LBFGS step.
        history_size: LBFGS history size.
        line_search_fn: "strong_wolfe" or None (LBFGS only).
    """

    name: str
    lr: float
    weight_decay: float = 0.0
    momentum: float = 0.0
    betas: tuple[float, float] | None = None
    max_iter: int = 20
    history_size: int = 100
    line_search_fn: str | None = None


def create_optimizer(config: OptimConfig, params: Iterable[torch.Tensor]) -> Optimizer:
    """
    Build the torch.optim optimizer described by ``config``.

    Raises:
        ValueError: If the name is not supported or the learning rate is
            not positive.
    """
    if config.lr <= 0.0:
        raise ValueError("Learning rate must be positive.")

    name = config.name.lower()
    if name == "sgd":
        return torch_optim.SGD(
            params, lr=config.lr, momentum=config.momentum, weight_decay=config.weight_decay
        )
    if name == "adam":
        return torch_optim.Adam(
            params,
            lr=config.lr,
            betas=config.betas or (0.9, 0.999),
            weight_decay=config.weight_decay,
        )
    if name == "lbfgs":
        return torch_optim.LBFGS(
            params,
            lr=config.lr,
            max_iter=config.max_iter,
            history_size=config.history_size,
            line_search_fn=config.line_search_fn,
        )
    raise ValueError(
        f"Unsupported optimizer name '{config.name}'. "
        f"Supported names: {list(SUPPORTED_TORCH_OPTIMIZERS)}"
    )
