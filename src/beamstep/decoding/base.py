from abc import ABC, abstractmethod

import torch

from beamstep.decoding.beam import Beam

Tensor = torch.Tensor


class Advancer(ABC):
    """Policy plugged into a beam search: how to start, advance, score,
    finish and prune hypotheses.

    A search driver calls ``update`` then ``expand`` once per step, selects
    candidates from the returned scores, and asks ``is_complete`` and
    ``filter`` about the resulting hypotheses.
    """

    @property
    @abstractmethod
    def end_idx(self) -> int:
        """Token that finishes a hypothesis; finished rows are padded with it."""

    @abstractmethod
    def init_beam(self) -> Beam:
        """Returns the beam every search starts from."""

    @abstractmethod
    def update(self, beam: Beam) -> None:
        """Advances the beam state given its last tokens."""

    @abstractmethod
    def expand(self, beam: Beam) -> Tensor:
        """Returns the (B, V) log-scores of every possible next token."""

    @abstractmethod
    def is_complete(self, beam: Beam) -> Tensor:
        """Returns a (B,) boolean tensor marking finished hypotheses."""

    def filter(self, beam: Beam) -> Tensor:
        """Returns a (B,) boolean tensor marking hypotheses to prune."""
        return torch.zeros(beam.size, dtype=torch.bool, device=beam.tokens()[-1].device)
