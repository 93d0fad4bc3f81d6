"""
Shape suffixes convention inspired by
https://medium.com/@NoamShazeer/shape-suffixes-good-coding-style-f836e72e24fd

B: batch size (number of live hypotheses)
C: the length of the source on which conditioning is done
D: model dimension
V: vocabulary size
L: number of tokens in the history, BOS included
"""

from dataclasses import replace

import torch

from beamstep.decoding.base import Advancer
from beamstep.decoding.beam import Beam
from beamstep.decoding.config import AdvancerConfig, FeatureDictionary
from beamstep.decoding.state import StepState
from beamstep.model.scorer import DecoderInput, ScorerAdapter
from beamstep.utils.batch import Batch
from beamstep.utils.logging_config import logger

Tensor = torch.Tensor


class DecoderAdvancer(Advancer):
    """Advances an attentional decoder one step at a time.

    A hypothesis is complete once it emits EOS or once the generated length
    reaches ``max_sent_length``; the length cap finishes the whole beam at
    once. Empty hypotheses and hypotheses with more than ``max_num_unks``
    unknown tokens are pruned.

    Auxiliary feature predictions are the arg-max of each feature head after
    ``expand`` and become the decoder input of the next ``update``.
    """

    def __init__(
        self,
        scorer: ScorerAdapter,
        batch: Batch,
        dec_states: tuple[Tensor, ...],
        context_BCD: Tensor,
        config: AdvancerConfig,
        feature_dicts: FeatureDictionary | None = None,
    ) -> None:
        """
        Args:
            scorer: The decoder producing next-step scores.
            batch: The source batch being decoded.
            dec_states: Initial batch-first decoder states.
            context_BCD: The encoder output of shape (B, C, D).
            config: Decoding options.
            feature_dicts: Auxiliary feature vocabularies; None means no features.

        Raises:
            ValueError: If the feature dictionary disagrees with the scorer, or
                the states do not match the batch size.
        """
        self.scorer = scorer
        self.batch = batch
        self.dec_states = dec_states
        self.context_BCD = context_BCD
        self.config = config
        self.feature_dicts = feature_dicts if feature_dicts is not None else FeatureDictionary()
        self.special = config.special_tokens
        self._validate()

    def __repr__(self) -> str:
        return (
            f"DecoderAdvancer(max_sent_length={self.config.max_sent_length}, "
            f"max_num_unks={self.config.max_num_unks}, n_features={self.n_features})"
        )

    @property
    def end_idx(self) -> int:
        return self.special.eos

    @property
    def n_features(self) -> int:
        return self.feature_dicts.n_features

    def _validate(self) -> None:
        reserved = max(self.special.pad, self.special.unk, self.special.bos, self.special.eos)
        if self.scorer.vocab_size <= reserved:
            raise ValueError(
                f"Scorer vocabulary of size {self.scorer.vocab_size} cannot hold special token index {reserved}"
            )

        scorer_sizes = tuple(self.scorer.feature_sizes)
        if self.n_features != len(scorer_sizes):
            raise ValueError(
                f"Feature dictionary has {self.n_features} features but the scorer expects {len(scorer_sizes)}"
            )
        if self.feature_dicts.sizes != scorer_sizes:
            raise ValueError(f"Feature vocabulary sizes {self.feature_dicts.sizes} do not match scorer {scorer_sizes}")
        for j, size in enumerate(scorer_sizes):
            if size <= self.special.eos:
                raise ValueError(f"Feature {j} vocabulary of size {size} cannot hold EOS index {self.special.eos}")

        B = self.batch.size
        if self.context_BCD.size(0) != B:
            raise ValueError(f"Context batch dimension {self.context_BCD.size(0)} does not match batch size {B}")
        if self.context_BCD.size(1) != self.batch.source_length:
            raise ValueError(
                f"Context length {self.context_BCD.size(1)} does not match source length {self.batch.source_length}"
            )
        for i, state in enumerate(self.dec_states):
            if state.size(0) != B:
                raise ValueError(f"Decoder state {i} batch dimension {state.size(0)} does not match batch size {B}")

    def _fill(self, size: int, value: int) -> Tensor:
        return torch.full((size,), value, dtype=torch.long, device=self.context_BCD.device)

    def init_beam(self) -> Beam:
        """Returns the initial beam: BOS for every sequence, EOS as the
        placeholder of every auxiliary feature."""
        B = self.batch.size
        tokens_B = self._fill(B, self.special.bos)
        features = tuple(self._fill(B, self.special.eos) for _ in range(self.n_features))
        state = StepState(
            dec_states=self.dec_states,
            dec_out=None,
            context=self.context_BCD,
            attention=None,
            features=features,
            source_sizes=self.batch.source_sizes.to(self.context_BCD.device),
            step=1,
        )
        return Beam([tokens_B], state)

    def update(self, beam: Beam) -> None:
        """Feeds the last tokens (and predicted features) to the decoder and
        stores the resulting state in the beam."""
        state = beam.state()
        token_B = beam.tokens()[-1]
        B = state.batch_size

        features = state.features
        if features is None:
            features = tuple(self._fill(B, self.special.eos) for _ in range(self.n_features))

        if B == 0:
            dec_out_BD = state.context.new_zeros((0, state.context.size(-1)))
            beam.set_state(replace(state, dec_out=dec_out_BD, features=None, step=state.step + 1))
            return

        self.scorer.mask_padding(state.source_sizes, self.batch.source_length)
        dec_out_BD, dec_states = self.scorer.forward_one(
            DecoderInput(token_B, features), state.dec_states, state.context, state.dec_out
        )
        logger.debug(f"Decoder advanced to step {state.step + 1} for {B} hypotheses")

        beam.set_state(
            StepState(
                dec_states=dec_states,
                dec_out=dec_out_BD,
                context=state.context,
                attention=self.scorer.last_attention,
                features=None,
                source_sizes=state.source_sizes,
                step=state.step + 1,
            )
        )

    def expand(self, beam: Beam) -> Tensor:
        """Returns the (B, V) log-scores of the next token and stores the
        arg-max of each feature head in the beam state.

        Raises:
            RuntimeError: If the beam has not been updated yet.
        """
        state = beam.state()
        if state.dec_out is None:
            raise RuntimeError("expand() called before update(): the beam has no decoder output")

        B = state.dec_out.size(0)
        if B == 0:
            features = tuple(self._fill(0, self.special.eos) for _ in range(self.n_features))
            beam.set_state(replace(state, features=features))
            return state.dec_out.new_zeros((0, self.scorer.vocab_size))

        out = list(self.scorer.generate(state.dec_out))
        scores_BV = out[0]
        features = tuple(feat_BV.argmax(dim=-1).view(-1) for feat_BV in out[1:])
        beam.set_state(replace(state, features=features))
        return scores_BV

    def is_complete(self, beam: Beam) -> Tensor:
        """Marks hypotheses ending with EOS, or all of them once the generated
        length reaches ``max_sent_length``."""
        tokens = beam.tokens()
        seq_length = len(tokens) - 1
        complete_B = tokens[-1].eq(self.special.eos)
        if seq_length >= self.config.max_sent_length:
            complete_B = torch.ones_like(complete_B)
        return complete_B

    def filter(self, beam: Beam) -> Tensor:
        """Marks empty hypotheses and hypotheses with too many unknown tokens."""
        tokens = beam.tokens()
        num_unks_B = torch.stack(tokens, dim=1).eq(self.special.unk).sum(dim=1)
        unsatisfied_B = num_unks_B.gt(self.config.max_num_unks)
        if len(tokens) == 2:
            unsatisfied_B = unsatisfied_B | tokens[1].eq(self.special.eos)
        return unsatisfied_B
