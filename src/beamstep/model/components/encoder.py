from typing import Literal

import torch
import torch.nn as nn
from torch.nn.utils.rnn import pack_padded_sequence, pad_packed_sequence

Tensor = torch.Tensor


def split_layers(hidden_NBD: Tensor | tuple[Tensor, Tensor]) -> tuple[Tensor, ...]:
    """Turns the final hidden state of an ``nn.LSTM``/``nn.GRU`` into a tuple
    of batch-first tensors, one per layer (``h`` then ``c`` for LSTMs).
    """
    if isinstance(hidden_NBD, tuple):
        h_NBD, c_NBD = hidden_NBD
        states: list[Tensor] = []
        for h_BD, c_BD in zip(h_NBD, c_NBD, strict=True):
            states.extend([h_BD, c_BD])
        return tuple(states)
    return tuple(hidden_NBD)


class RNNEncoder(nn.Module):
    """Recurrent source encoder.

    Shape suffixes convention:
        B: batch size
        C: the length of the input on which conditioning is done
        D: model dimension
        N: number of layers
    """

    def __init__(
        self,
        vocab_dim: int,
        emb_dim: int,
        hid_dim: int,
        n_layers: int,
        rnn_type: Literal["lstm", "gru"],
        dropout: float,
        pad_idx: int,
    ) -> None:
        """Initializes the RNNEncoder.

        Args:
            vocab_dim: The source vocabulary size.
            emb_dim: The embedding size.
            hid_dim: The hidden dimension size.
            n_layers: The number of recurrent layers.
            rnn_type: The recurrent cell type.
            dropout: The dropout rate between layers.
            pad_idx: The padding token index.
        """
        super().__init__()
        self.hid_dim = hid_dim
        self.n_layers = n_layers
        self.rnn_type = rnn_type
        self.tok_embedding = nn.Embedding(vocab_dim, emb_dim, padding_idx=pad_idx)
        rnn_cls = nn.LSTM if rnn_type == "lstm" else nn.GRU
        self.rnn = rnn_cls(
            input_size=emb_dim,
            hidden_size=hid_dim,
            num_layers=n_layers,
            dropout=dropout if n_layers > 1 else 0.0,
            batch_first=True,
        )

    def forward(self, src_BC: Tensor, source_sizes_B: Tensor) -> tuple[Tensor, tuple[Tensor, ...]]:
        """Forward pass of the RNNEncoder.

        Args:
            src_BC: Right-padded source indices of shape (B, C).
            source_sizes_B: Valid length of each source sequence, shape (B,).

        Returns:
            The context of shape (B, C, D) and the initial decoder states.
        """
        B, C = src_BC.shape
        n_states = self.n_layers * (2 if self.rnn_type == "lstm" else 1)
        if B == 0:
            context_BCD = src_BC.new_zeros((0, C, self.hid_dim), dtype=torch.float)
            return context_BCD, tuple(context_BCD.new_zeros((0, self.hid_dim)) for _ in range(n_states))

        emb_BCD = self.tok_embedding(src_BC)
        packed = pack_padded_sequence(emb_BCD, source_sizes_B.cpu(), batch_first=True, enforce_sorted=False)
        packed_out, hidden = self.rnn(packed)
        context_BCD, _ = pad_packed_sequence(packed_out, batch_first=True, total_length=C)
        return context_BCD, split_layers(hidden)
