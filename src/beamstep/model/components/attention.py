from typing import Literal

import torch
import torch.nn as nn

Tensor = torch.Tensor


class GlobalAttention(nn.Module):
    """
    Luong-style global attention over the encoder context.

    Shape suffixes convention:
        B: batch size
        C: the length of the input on which conditioning is done
        D: model dimension

    Args:
        hid_dim: The hidden dimension size.
        attn_type: Scoring function, 'dot' or 'general'.
    """

    def __init__(self, hid_dim: int, attn_type: Literal["dot", "general"] = "general"):
        super().__init__()
        self.attn_type = attn_type
        self.linear_in = nn.Linear(hid_dim, hid_dim, bias=False) if attn_type == "general" else None
        self.linear_out = nn.Linear(hid_dim * 2, hid_dim, bias=False)

    def forward(
        self,
        input_BD: Tensor,
        context_BCD: Tensor,
        mask_BC: Tensor | None = None,
    ) -> tuple[Tensor, Tensor]:
        """
        Args:
            input_BD: The decoder hidden state of shape (B, D).
            context_BCD: The encoder output of shape (B, C, D).
            mask_BC: Boolean mask of shape (B, C), True on valid source positions.

        Returns:
            The attentional hidden state of shape (B, D) and the attention
            distribution of shape (B, C).
        """
        query_BD = self.linear_in(input_BD) if self.linear_in is not None else input_BD
        scores_BC = torch.bmm(context_BCD, query_BD.unsqueeze(2)).squeeze(2)
        if mask_BC is not None:
            scores_BC = scores_BC.masked_fill(~mask_BC, float("-inf"))
        attn_BC = torch.softmax(scores_BC, dim=-1)
        weighted_BD = torch.bmm(attn_BC.unsqueeze(1), context_BCD).squeeze(1)
        output_BD = torch.tanh(self.linear_out(torch.cat([weighted_BD, input_BD], dim=-1)))
        return output_BD, attn_BC
