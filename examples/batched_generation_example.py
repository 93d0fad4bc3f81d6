"""
Example script demonstrating batched beam-search decoding.

A randomly initialised model is built from a preset, so the output tokens are
meaningless; the point is to show how the advancer, the beam search and the
auxiliary feature predictions fit together.
"""

from beamstep import AdvancerConfig, FeatureDictionary, SpecialTokens, translate_batch
from beamstep.model import ModelFactory

model = ModelFactory.from_preset("tagged_gru", device="cpu").create_model()

special_tokens = SpecialTokens(pad=0, unk=1, bos=2, eos=3)
config = AdvancerConfig(max_sent_length=12, max_num_unks=1, special_tokens=special_tokens)
feature_dicts = FeatureDictionary(
    [
        [f"pos{i}" for i in range(12)],
        [f"case{i}" for i in range(8)],
    ]
)

sources = [
    [4, 9, 17, 5],
    [6, 6, 21],
    [30, 11, 8, 8, 12, 5],
]

results = translate_batch(
    model=model,
    sequences=sources,
    config=config,
    beam_size=5,
    n_best=3,
    feature_dicts=feature_dicts,
    show_progress=True,
)

for i, (source, hyps) in enumerate(zip(sources, results, strict=True)):
    print(f"\nSource {i + 1}: {source}")
    print(f"Kept {len(hyps)} hypotheses:")
    for j, hyp in enumerate(hyps, 1):
        tags = [feature_dicts.lookup(0, idx) for idx in hyp.features[0]]
        print(f"  Hypothesis {j} ({hyp.norm_score:.3f}): {hyp.tokens} {tags}")
