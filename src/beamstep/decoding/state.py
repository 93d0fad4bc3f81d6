from dataclasses import dataclass, replace

import torch

Tensor = torch.Tensor


@dataclass(frozen=True)
class StepState:
    """Everything the advancer needs to compute the next decoding step.

    Every tensor is batch-first so that hypotheses can be reordered with a
    single ``index_select``. A new state is built on each update; states are
    never modified in place.

    Attributes:
        dec_states: Recurrent decoder states.
        dec_out: Last decoder output (B, D), None before the first update.
        context: Encoder output (B, C, D), shared and read only.
        attention: Last attention distribution (B, C), None until produced.
        features: Auxiliary feature predictions (one (B,) vector per feature)
            for the next update. None between an update and the next expand.
        source_sizes: Valid source length of each sequence (B,).
        step: Time step counter, starting at 1.
    """

    dec_states: tuple[Tensor, ...]
    dec_out: Tensor | None
    context: Tensor
    attention: Tensor | None
    features: tuple[Tensor, ...] | None
    source_sizes: Tensor
    step: int = 1

    @property
    def batch_size(self) -> int:
        return int(self.source_sizes.size(0))

    def index_select(self, idx_W: Tensor) -> "StepState":
        """Returns the state of the hypotheses selected by ``idx_W``."""

        def select(t: Tensor | None) -> Tensor | None:
            return None if t is None else t.index_select(0, idx_W)

        return replace(
            self,
            dec_states=tuple(t.index_select(0, idx_W) for t in self.dec_states),
            dec_out=select(self.dec_out),
            context=self.context.index_select(0, idx_W),
            attention=select(self.attention),
            features=None if self.features is None else tuple(f.index_select(0, idx_W) for f in self.features),
            source_sizes=self.source_sizes.index_select(0, idx_W),
        )
