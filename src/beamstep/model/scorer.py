"""Interface between the decode step advancer and the sequence model."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import torch

Tensor = torch.Tensor
DecoderStates = tuple[Tensor, ...]


@dataclass(frozen=True)
class DecoderInput:
    """Decoder input for one step.

    Attributes:
        tokens_B: Last emitted token of each hypothesis, shape (B,).
        features: One id vector of shape (B,) per auxiliary feature, possibly empty.
    """

    tokens_B: Tensor
    features: tuple[Tensor, ...] = ()

    @property
    def n_features(self) -> int:
        return len(self.features)


@runtime_checkable
class ScorerAdapter(Protocol):
    """What the advancer needs from a sequence model.

    ``forward_one`` advances the recurrent state by one token, ``generate``
    maps the resulting output to log-scores (vocabulary first, then one
    distribution per auxiliary feature) and ``mask_padding`` restricts the
    next attention computations to valid source positions.
    """

    vocab_size: int
    feature_sizes: tuple[int, ...]
    last_attention: Tensor | None

    def forward_one(
        self,
        step_input: DecoderInput,
        dec_states: DecoderStates,
        context_BCD: Tensor,
        prev_out_BD: Tensor | None,
    ) -> tuple[Tensor, DecoderStates]: ...

    def generate(self, out_BD: Tensor) -> Sequence[Tensor]: ...

    def mask_padding(self, source_sizes_B: Tensor, source_length: int) -> None: ...
