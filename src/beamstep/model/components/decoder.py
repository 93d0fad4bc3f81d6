from collections.abc import Sequence
from typing import Literal

import torch
import torch.nn as nn

from beamstep.model.components.attention import GlobalAttention
from beamstep.model.scorer import DecoderInput, DecoderStates

Tensor = torch.Tensor


class Generator(nn.Module):
    """Output head producing log-scores for the vocabulary and for each
    auxiliary feature.

    Shape suffixes convention:
        B: batch size
        D: model dimension
        V: vocabulary size
    """

    def __init__(self, hid_dim: int, vocab_dim: int, feature_vocab_dims: Sequence[int] = ()) -> None:
        super().__init__()
        self.heads = nn.ModuleList([nn.Linear(hid_dim, dim) for dim in [vocab_dim, *feature_vocab_dims]])

    def forward(self, out_BD: Tensor) -> list[Tensor]:
        return [torch.log_softmax(head(out_BD), dim=-1) for head in self.heads]


class RNNDecoder(nn.Module):
    """Attentional recurrent decoder advanced one token at a time.

    Each step embeds the previous token and its auxiliary features, optionally
    concatenates the previous attentional output (input feeding), runs the
    stacked cells and attends over the encoder context.

    Shape suffixes convention:
        B: batch size
        C: the length of the input on which conditioning is done
        D: model dimension
        V: vocabulary size
    """

    def __init__(
        self,
        vocab_dim: int,
        emb_dim: int,
        hid_dim: int,
        n_layers: int,
        rnn_type: Literal["lstm", "gru"],
        attn_type: Literal["dot", "general"],
        dropout: float,
        pad_idx: int,
        feature_vocab_dims: Sequence[int] = (),
        feature_emb_dim: int = 8,
        input_feed: bool = True,
    ) -> None:
        """Initializes the RNNDecoder.

        Args:
            vocab_dim: The target vocabulary size.
            emb_dim: The word embedding size.
            hid_dim: The hidden dimension size.
            n_layers: The number of stacked cells.
            rnn_type: The recurrent cell type.
            attn_type: The attention scoring function.
            dropout: The dropout rate.
            pad_idx: The padding token index.
            feature_vocab_dims: The vocabulary size of each auxiliary feature.
            feature_emb_dim: The embedding size of each auxiliary feature.
            input_feed: Whether to feed the previous output with the next input.
        """
        super().__init__()
        self.vocab_size = vocab_dim
        self.feature_sizes = tuple(feature_vocab_dims)
        self.hid_dim = hid_dim
        self.rnn_type = rnn_type
        self.input_feed = input_feed

        self.tok_embedding = nn.Embedding(vocab_dim, emb_dim, padding_idx=pad_idx)
        self.feature_embeddings = nn.ModuleList([nn.Embedding(dim, feature_emb_dim) for dim in self.feature_sizes])

        input_dim = emb_dim + feature_emb_dim * len(self.feature_sizes) + (hid_dim if input_feed else 0)
        cell_cls = nn.LSTMCell if rnn_type == "lstm" else nn.GRUCell
        self.cells = nn.ModuleList(
            [cell_cls(input_dim if i == 0 else hid_dim, hid_dim) for i in range(n_layers)]
        )
        self.attention = GlobalAttention(hid_dim, attn_type)
        self.generator = Generator(hid_dim, vocab_dim, self.feature_sizes)
        self.dropout = nn.Dropout(dropout)

        self.last_attention: Tensor | None = None
        self._mask_BC: Tensor | None = None

    def mask_padding(self, source_sizes_B: Tensor, source_length: int) -> None:
        """Restricts the following attention steps to positions below each
        sequence's source size."""
        positions_C = torch.arange(source_length, device=source_sizes_B.device)
        self._mask_BC = positions_C.unsqueeze(0) < source_sizes_B.unsqueeze(1)

    def _embed(self, step_input: DecoderInput) -> Tensor:
        emb = [self.tok_embedding(step_input.tokens_B)]
        for embedding, feature_B in zip(self.feature_embeddings, step_input.features, strict=True):
            emb.append(embedding(feature_B))
        return torch.cat(emb, dim=-1)

    def forward(
        self,
        step_input: DecoderInput,
        dec_states: DecoderStates,
        context_BCD: Tensor,
        prev_out_BD: Tensor | None = None,
    ) -> tuple[Tensor, DecoderStates]:
        """Advances the decoder by one token.

        Args:
            step_input: The previous tokens and their auxiliary features.
            dec_states: Batch-first recurrent states, (h, c) per layer for
                LSTMs and h per layer for GRUs.
            context_BCD: The encoder output of shape (B, C, D).
            prev_out_BD: The previous attentional output, None on the first step.

        Returns:
            The attentional output of shape (B, D) and the new recurrent states.
        """
        input_BD = self._embed(step_input)
        if self.input_feed:
            if prev_out_BD is None:
                prev_out_BD = input_BD.new_zeros((input_BD.size(0), self.hid_dim))
            input_BD = torch.cat([input_BD, prev_out_BD], dim=-1)

        new_states: list[Tensor] = []
        for i, cell in enumerate(self.cells):
            if self.rnn_type == "lstm":
                h_BD, c_BD = cell(input_BD, (dec_states[2 * i], dec_states[2 * i + 1]))
                new_states.extend([h_BD, c_BD])
            else:
                h_BD = cell(input_BD, dec_states[i])
                new_states.append(h_BD)
            input_BD = self.dropout(h_BD)

        mask_BC = self._mask_BC
        if mask_BC is not None and mask_BC.shape != context_BCD.shape[:2]:
            raise ValueError(
                f"Padding mask of shape {tuple(mask_BC.shape)} does not match context {tuple(context_BCD.shape[:2])}"
            )
        out_BD, attn_BC = self.attention(h_BD, context_BCD, mask_BC)
        self.last_attention = attn_BC
        return self.dropout(out_BD), tuple(new_states)

    def forward_one(
        self,
        step_input: DecoderInput,
        dec_states: DecoderStates,
        context_BCD: Tensor,
        prev_out_BD: Tensor | None,
    ) -> tuple[Tensor, DecoderStates]:
        return self(step_input, dec_states, context_BCD, prev_out_BD)

    def generate(self, out_BD: Tensor) -> list[Tensor]:
        return self.generator(out_BD)
