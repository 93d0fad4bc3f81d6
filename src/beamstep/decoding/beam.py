import torch

from beamstep.decoding.state import StepState

Tensor = torch.Tensor


class Beam:
    """Token history, cumulative scores and step state of a set of hypotheses.

    Row ``w`` of every tensor describes the same hypothesis. The step state is
    stored as given and only reordered, never inspected.
    """

    def __init__(self, tokens: list[Tensor], state: StepState, scores: Tensor | None = None) -> None:
        self._tokens = tokens
        self._state = state
        size = tokens[0].size(0)
        self.scores = scores if scores is not None else torch.zeros(size, device=tokens[0].device)

    def __repr__(self) -> str:
        return f"Beam(size={self.size}, length={len(self._tokens)})"

    @property
    def size(self) -> int:
        return int(self._tokens[0].size(0))

    def tokens(self) -> list[Tensor]:
        return self._tokens

    def state(self) -> StepState:
        return self._state

    def set_state(self, state: StepState) -> None:
        self._state = state

    def history(self) -> Tensor:
        """Token history as a (W, L) tensor."""
        return torch.stack(self._tokens, dim=1)

    def repeat_interleave(self, repeats: int) -> "Beam":
        """Copies every hypothesis ``repeats`` times, keeping copies adjacent."""
        idx_W = torch.arange(self.size, device=self.scores.device).repeat_interleave(repeats)
        return self.select(idx_W)

    def select(self, idx_W: Tensor) -> "Beam":
        return Beam(
            tokens=[t.index_select(0, idx_W) for t in self._tokens],
            state=self._state.index_select(idx_W),
            scores=self.scores.index_select(0, idx_W),
        )

    def next(self, backptr_W: Tensor, token_W: Tensor, scores_W: Tensor) -> "Beam":
        """Builds the beam of the next step.

        Args:
            backptr_W: Row of the current beam each new hypothesis extends.
            token_W: Token appended to each new hypothesis.
            scores_W: Cumulative score of each new hypothesis.
        """
        beam = self.select(backptr_W)
        beam._tokens.append(token_W)
        beam.scores = scores_W
        return beam
