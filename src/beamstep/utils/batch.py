from collections.abc import Sequence
from dataclasses import dataclass

import torch

Tensor = torch.Tensor


def pad(seq: list[int], max_length: int, pad_index: int) -> list[int]:
    """Right-pads a sequence of token indices to ``max_length``.

    Args:
        seq: Sequence to pad.
        max_length: Length of the padded sequence.
        pad_index: Index of the padding token.

    Returns:
        A new padded list.
    """
    return list(seq) + [pad_index] * (max_length - len(seq))


@dataclass
class Batch:
    """A batch of source sequences decoded together.

    Attributes:
        src_BC: Right-padded source token indices of shape (B, C).
        source_sizes: Number of valid positions for each sequence, shape (B,).
        source_length: Length C of the longest source sequence.
    """

    src_BC: Tensor
    source_sizes: Tensor
    source_length: int

    @property
    def size(self) -> int:
        return int(self.src_BC.size(0))

    def to(self, device: torch.device) -> "Batch":
        return Batch(
            src_BC=self.src_BC.to(device),
            source_sizes=self.source_sizes.to(device),
            source_length=self.source_length,
        )

    @classmethod
    def from_sequences(cls, sequences: Sequence[Sequence[int]], pad_idx: int) -> "Batch":
        """Builds a batch from lists of source token indices.

        Args:
            sequences: One list of token indices per sequence.
            pad_idx: Padding token index.

        Returns:
            The padded batch.

        Raises:
            ValueError: If any sequence is empty.
        """
        for i, seq in enumerate(sequences):
            if len(seq) == 0:
                raise ValueError(f"Source sequence {i} is empty")

        source_length = max((len(seq) for seq in sequences), default=0)
        padded = [pad(list(seq), source_length, pad_idx) for seq in sequences]
        src_BC = torch.tensor(padded, dtype=torch.long).view(len(sequences), source_length)
        source_sizes = torch.tensor([len(seq) for seq in sequences], dtype=torch.long)
        return cls(src_BC=src_BC, source_sizes=source_sizes, source_length=source_length)
