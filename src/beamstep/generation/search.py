"""
Shape suffixes convention inspired by
https://medium.com/@NoamShazeer/shape-suffixes-good-coding-style-f836e72e24fd

B: batch size
S: beam size
W: B*S (W for Window, all hypotheses of the batch)
V: vocabulary size
L: length of the token history, BOS included
"""

import itertools
from collections.abc import Iterable
from dataclasses import dataclass, field

import torch
from tqdm import tqdm

from beamstep.decoding.base import Advancer
from beamstep.decoding.beam import Beam
from beamstep.utils.logging_config import logger

Tensor = torch.Tensor


@dataclass
class Hypothesis:
    """A finished hypothesis.

    Attributes:
        tokens: Generated token indices, BOS and final EOS excluded.
        score: Cumulative log-score.
        norm_score: Score divided by ``length ** length_norm``, used for ranking.
        features: Predicted auxiliary feature ids, one list per feature, aligned with ``tokens``.
    """

    tokens: list[int]
    score: float
    norm_score: float
    features: list[list[int]] = field(default_factory=list)


SearchOutput = list[list[Hypothesis]]


class BeamSearch:
    def __init__(
        self,
        advancer: Advancer,
        beam_size: int,
        n_best: int = 1,
        length_norm: float = 0.5,
        max_steps: int | None = None,
    ):
        if beam_size < 1:
            raise ValueError(f"{beam_size=} must be at least 1")
        if not 1 <= n_best <= beam_size:
            raise ValueError(f"{n_best=} must be between 1 and {beam_size=}")
        self.advancer = advancer
        self.beam_size = beam_size
        self.end_idx = advancer.end_idx
        self.n_best = n_best
        self.length_norm = length_norm
        self.max_steps = max_steps

    def __repr__(self) -> str:
        return f"BeamSearch(beam_size={self.beam_size}, n_best={self.n_best}, length_norm={self.length_norm})"

    def search(self, progress_bar: bool = False) -> SearchOutput:
        """Runs the advancer until every hypothesis is complete or pruned.

        Only the first beam of each sequence is expanded on the first step.
        Complete hypotheses are carried over with their score fixed by
        extending them with ``end_idx`` at no cost; pruned hypotheses get a
        score of -inf and are dropped from the output.

        Returns:
            For each sequence, up to ``n_best`` hypotheses sorted by normalized score.
        """
        beam = self.advancer.init_beam()
        B = beam.size
        S = self.beam_size
        if B == 0:
            return []

        logger.info(f"Decoding {B} sequences with beam size {S}")
        beam = beam.repeat_interleave(S)
        device = beam.scores.device

        scores_BS = torch.full((B, S), float("-inf"), device=device)
        scores_BS[:, 0] = 0.0
        beam.scores = scores_BS.view(-1)

        finished_W = torch.zeros(B * S, dtype=torch.bool, device=device)
        lengths_W = torch.zeros(B * S, dtype=torch.long, device=device)
        batch_offsets_B1 = torch.arange(B, device=device).unsqueeze(1) * S
        feature_history: list[tuple[Tensor, ...]] = []

        steps = range(1, self.max_steps + 1) if self.max_steps is not None else itertools.count(1)
        pbar: Iterable[int] = tqdm(steps, desc="Beam search", dynamic_ncols=True) if progress_bar else steps

        with torch.no_grad():
            for _step in pbar:
                self.advancer.update(beam)
                scores_WV = self.advancer.expand(beam)
                V = scores_WV.size(1)

                scores_WV = scores_WV.masked_fill(finished_W.unsqueeze(1), float("-inf"))
                scores_WV[finished_W, self.end_idx] = 0.0
                cand_scores_BSV = (beam.scores.unsqueeze(1) + scores_WV).view(B, S * V)

                top_scores_BS, top_idxs_BS = torch.topk(cand_scores_BSV, S, dim=-1)
                backptr_W = (top_idxs_BS // V + batch_offsets_B1).view(-1)
                token_W = (top_idxs_BS % V).view(-1)

                was_finished_W = finished_W.index_select(0, backptr_W)
                lengths_W = lengths_W.index_select(0, backptr_W) + (~was_finished_W).long()
                feature_history = [tuple(f.index_select(0, backptr_W) for f in fs) for fs in feature_history]

                beam = beam.next(backptr_W, token_W, top_scores_BS.view(-1))
                features = beam.state().features
                if features:
                    feature_history.append(features)

                complete_W = self.advancer.is_complete(beam)
                pruned_W = self.advancer.filter(beam) & ~was_finished_W
                beam.scores = beam.scores.masked_fill(pruned_W, float("-inf"))
                finished_W = was_finished_W | complete_W | pruned_W

                if progress_bar:
                    pbar.set_postfix({"Finished": f"{int(finished_W.sum())}/{B * S}"})
                if finished_W.all():
                    break

        return self._collect(beam, lengths_W, feature_history)

    def _collect(self, beam: Beam, lengths_W: Tensor, feature_history: list[tuple[Tensor, ...]]) -> SearchOutput:
        S = self.beam_size
        B = beam.size // S
        history_WL = beam.history().cpu()
        scores_W = beam.scores.cpu()
        lengths_W = lengths_W.cpu()
        features_FWL = [torch.stack(fs, dim=1).cpu() for fs in zip(*feature_history, strict=True)]

        outputs_BS_nt: SearchOutput = []
        for b in range(B):
            hyps = []
            for w in range(b * S, (b + 1) * S):
                score = scores_W[w].item()
                if score == float("-inf"):
                    continue
                length = int(lengths_W[w])
                tokens = history_WL[w, 1 : length + 1].tolist()
                if tokens and tokens[-1] == self.end_idx:
                    tokens = tokens[:-1]
                features = [f_WL[w, : len(tokens)].tolist() for f_WL in features_FWL]
                norm_score = score / (max(length, 1) ** self.length_norm)
                hyps.append(Hypothesis(tokens=tokens, score=score, norm_score=norm_score, features=features))

            hyps.sort(key=lambda h: h.norm_score, reverse=True)
            outputs_BS_nt.append(hyps[: self.n_best])
        return outputs_BS_nt
