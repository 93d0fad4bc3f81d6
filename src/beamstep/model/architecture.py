# Shape suffixes convention inspired by
# https://medium.com/@NoamShazeer/shape-suffixes-good-coding-style-f836e72e24fd

# B: batch size
# C: the length of the input on which conditioning is done
# D: model dimension (sometimes called d_model or embedding_dim)
# V: vocabulary size


import torch
import torch.nn as nn

from beamstep.model.components.decoder import RNNDecoder
from beamstep.model.components.encoder import RNNEncoder
from beamstep.utils.batch import Batch

Tensor = torch.Tensor


class Seq2Seq(nn.Module):
    def __init__(
        self,
        encoder: RNNEncoder,
        decoder: RNNDecoder,
    ):
        super().__init__()

        self.encoder = encoder
        self.decoder = decoder

    def encode(self, batch: Batch) -> tuple[Tensor, tuple[Tensor, ...]]:
        """
        Returns the encoder context (B, C, D) and the initial decoder states.
        """
        return self.encoder(batch.src_BC.long(), batch.source_sizes)

    def forward(self, batch: Batch) -> tuple[Tensor, tuple[Tensor, ...]]:
        return self.encode(batch)
