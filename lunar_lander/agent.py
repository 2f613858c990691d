"""
Policy network and genome operators.

Responsibilities:
- PolicyNetwork model definition (torch nn.Module, tanh after every layer)
- genome as a flat value vector: copy out, load in, mutate, reinitialize
- formula export so a trained policy can be read or hard-coded
- preset policy recorded from a trained suicide-burn run
"""
from typing import Optional, Sequence

import torch
import torch.nn as nn

from . import config as C


def set_torch_stability():
    # Tiny matmuls; intra-op threads only add contention next to the worker pool
    torch.set_num_threads(1)
    torch.set_num_interop_threads(1)


def random_uniform(shape, magnitude: float, generator: Optional[torch.Generator] = None) -> torch.Tensor:
    return (torch.rand(shape, generator=generator, dtype=torch.float64) * 2.0 - 1.0) * magnitude


def mutate_genome(genome: torch.Tensor, probability: float, magnitude: float,
                  generator: Optional[torch.Generator] = None) -> torch.Tensor:
    """Return a new genome where each gene, with `probability`, is nudged by U(-magnitude, magnitude)."""
    mask = torch.rand(genome.shape, generator=generator, dtype=torch.float64) < probability
    noise = random_uniform(genome.shape, magnitude, generator)
    return torch.where(mask, genome + noise, genome)


class PolicyNetwork(nn.Module):
    def __init__(self, input_size: int, hidden_neurons: int = C.HIDDEN_NEURONS,
                 generator: Optional[torch.Generator] = None):
        super().__init__()
        if input_size < 1:
            raise C.ConfigError("No inputs to the neural network. Please enable at least one observation channel.")
        if hidden_neurons < 0:
            raise C.ConfigError(f"Hidden neurons must be 0 or higher (got {hidden_neurons})")

        # no hidden neurons?! a single tanh(w.x + b) still lands
        widths = [input_size, hidden_neurons, 1] if hidden_neurons > 0 else [input_size, 1]
        self.widths = tuple(widths)
        self.layers = nn.ModuleList(
            nn.Linear(n_in, n_out, dtype=torch.float64) for n_in, n_out in zip(widths, widths[1:])
        )
        self.requires_grad_(False)
        self.reinitialize_(generator)

    @property
    def input_size(self) -> int:
        return self.widths[0]

    @property
    def genome_size(self) -> int:
        return sum(p.numel() for p in self.parameters())

    def forward(self, x):
        for layer in self.layers:
            x = torch.tanh(layer(x))
        return x

    def evaluate(self, observation) -> float:
        """Control intent in [-1, 1] for one observation vector."""
        with torch.inference_mode():
            x = torch.as_tensor(observation, dtype=torch.float64)
            return float(self(x)[0])

    # ---------- genome ----------
    def genome(self) -> torch.Tensor:
        """Flat copy of every weight then bias, layer by layer. Never aliases the parameters."""
        return torch.cat([p.detach().reshape(-1) for p in self.parameters()]).clone()

    def load_genome(self, genome: torch.Tensor) -> None:
        if genome.numel() != self.genome_size:
            raise ValueError(f"Genome has {genome.numel()} genes, network {self.widths} needs {self.genome_size}")
        offset = 0
        with torch.no_grad():
            for p in self.parameters():
                n = p.numel()
                p.copy_(genome[offset:offset + n].view_as(p))
                offset += n

    def reinitialize_(self, generator: Optional[torch.Generator] = None) -> None:
        self.load_genome(random_uniform((self.genome_size,), C.INIT_WEIGHT_RANGE, generator))

    def mutate_(self, probability: float = C.MUTATION_PROBABILITY, magnitude: float = C.MUTATION_MAGNITUDE,
                generator: Optional[torch.Generator] = None) -> None:
        self.load_genome(mutate_genome(self.genome(), probability, magnitude, generator))

    def copy_into(self, other: "PolicyNetwork") -> None:
        if other.widths != self.widths:
            raise ValueError(f"Cannot copy a {self.widths} network into a {other.widths} network")
        other.load_genome(self.genome())

    # ---------- formula ----------
    def export_formula(self, input_names: Optional[Sequence[str]] = None) -> str:
        """
        Nested tanh expression computing the same value as evaluate().

        input_names defaults to input[0], input[1], ... so the string can be
        eval'd with `tanh` and `input` bound.
        """
        terms = list(input_names) if input_names is not None else [f"input[{i}]" for i in range(self.input_size)]
        if len(terms) != self.input_size:
            raise ValueError(f"Expected {self.input_size} input names, got {len(terms)}")

        for layer in self.layers:
            w = layer.weight.tolist()
            b = layer.bias.tolist()
            terms = [
                "tanh(" + " + ".join([f"({wi!r} * {t})" for wi, t in zip(row, terms)] + [repr(bias)]) + ")"
                for row, bias in zip(w, b)
            ]
        return terms[0]


# Trained with min burn altitude 48 miles; lands at ~0.4 mph with ~630 lb to spare.
SUICIDE_BURN_WEIGHTS = (0.6117000070225913, 0.8819500360259553, 0.8117000050842762, 0.5297500137239695)
SUICIDE_BURN_BIAS = 0.48855000972980633


def suicide_burn_policy() -> PolicyNetwork:
    """Hard-coded policy for all four inputs and no hidden layer."""
    net = PolicyNetwork(4, hidden_neurons=0)
    net.load_genome(torch.tensor(SUICIDE_BURN_WEIGHTS + (SUICIDE_BURN_BIAS,), dtype=torch.float64))
    return net
