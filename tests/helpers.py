"""
Test doubles and builders shared by the decoding tests.
"""

from collections.abc import Sequence

import torch

from beamstep.decoding import AdvancerConfig, Beam, DecoderAdvancer, FeatureDictionary, SpecialTokens
from beamstep.model import ScorerConfig
from beamstep.model.scorer import DecoderInput
from beamstep.utils.batch import Batch

SPECIAL = SpecialTokens(pad=0, unk=1, bos=2, eos=3)
PAD, UNK, BOS, EOS = SPECIAL.pad, SPECIAL.unk, SPECIAL.bos, SPECIAL.eos
A, B_TOK = 4, 5
VOCAB_SIZE = 6


class ScriptedScorer:
    """Scorer whose arg-max at step ``t`` for batch item ``i`` is ``scripts[i][t - 1]``.

    The recurrent state carries the step position and the batch item of every
    row, so the script follows hypotheses through beam reordering. Auxiliary
    feature ``j`` predicts ``min(position + EOS + j, size - 1)``.
    """

    def __init__(
        self,
        scripts: Sequence[Sequence[int]],
        vocab_size: int = VOCAB_SIZE,
        feature_sizes: Sequence[int] = (),
    ) -> None:
        self.scripts = [list(s) for s in scripts]
        self.vocab_size = vocab_size
        self.feature_sizes = tuple(feature_sizes)
        self.last_attention: torch.Tensor | None = None
        self.inputs: list[DecoderInput] = []
        self.masks: list[tuple[torch.Tensor, int]] = []

    def initial_states(self) -> tuple[torch.Tensor, torch.Tensor]:
        B = len(self.scripts)
        return torch.zeros(B), torch.arange(B, dtype=torch.float)

    def forward_one(self, step_input, dec_states, context_BCD, prev_out_BD):
        self.inputs.append(step_input)
        position_W, item_W = dec_states
        position_W = position_W + 1
        W, C = context_BCD.shape[:2]
        self.last_attention = torch.full((W, C), 1.0 / max(C, 1))
        return torch.stack([position_W, item_W], dim=1), (position_W, item_W)

    def generate(self, out_W2):
        W = out_W2.size(0)
        logits_WV = torch.full((W, self.vocab_size), -1e4)
        feature_logits = [torch.full((W, size), -1e4) for size in self.feature_sizes]
        for w in range(W):
            position, item = int(out_W2[w, 0]), int(out_W2[w, 1])
            script = self.scripts[item]
            logits_WV[w, script[min(position, len(script)) - 1]] = 0.0
            for j, size in enumerate(self.feature_sizes):
                feature_logits[j][w, min(position + EOS + j, size - 1)] = 0.0
        return [torch.log_softmax(logits, dim=-1) for logits in [logits_WV, *feature_logits]]

    def mask_padding(self, source_sizes_B, source_length):
        self.masks.append((source_sizes_B.clone(), source_length))


def make_feature_dicts(sizes: Sequence[int]) -> FeatureDictionary | None:
    if not sizes:
        return None
    return FeatureDictionary([[f"f{j}_{i}" for i in range(size)] for j, size in enumerate(sizes)])


def make_scripted_advancer(
    scripts: Sequence[Sequence[int]],
    max_sent_length: int = 50,
    max_num_unks: int = 10,
    feature_sizes: Sequence[int] = (),
    source_sizes: Sequence[int] | None = None,
) -> tuple[DecoderAdvancer, ScriptedScorer]:
    scorer = ScriptedScorer(scripts, feature_sizes=feature_sizes)
    sizes = source_sizes if source_sizes is not None else [3] * len(scripts)
    batch = Batch.from_sequences([[A] * n for n in sizes], PAD)
    context_BCD = torch.zeros(batch.size, batch.source_length, 4)
    config = AdvancerConfig(max_sent_length=max_sent_length, max_num_unks=max_num_unks, special_tokens=SPECIAL)
    advancer = DecoderAdvancer(
        scorer=scorer,
        batch=batch,
        dec_states=scorer.initial_states(),
        context_BCD=context_BCD,
        config=config,
        feature_dicts=make_feature_dicts(feature_sizes),
    )
    return advancer, scorer


def beam_with_history(advancer: DecoderAdvancer, history: Sequence[Sequence[int]]) -> Beam:
    """Beam whose token history is ``history`` (one list of B ids per step, BOS first)."""
    beam = advancer.init_beam()
    tokens = [torch.tensor(step, dtype=torch.long) for step in history]
    return Beam(tokens, beam.state())


def greedy_step(advancer: DecoderAdvancer, beam: Beam) -> Beam:
    """One update/expand cycle keeping the arg-max token of every row."""
    advancer.update(beam)
    scores_BV = advancer.expand(beam)
    token_B = scores_BV.argmax(dim=-1)
    idx_B = torch.arange(beam.size)
    return beam.next(idx_B, token_B, beam.scores + scores_BV.max(dim=-1).values)


def tiny_scorer_config(**overrides) -> ScorerConfig:
    params = dict(
        src_vocab_dim=12,
        trg_vocab_dim=12,
        emb_dim=8,
        feature_emb_dim=4,
        hid_dim=16,
        n_layers=2,
        rnn_type="lstm",
        attn_type="general",
        dropout=0.0,
        pad_idx=PAD,
    )
    params.update(overrides)
    return ScorerConfig(**params)

