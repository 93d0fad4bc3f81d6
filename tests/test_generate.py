"""
End-to-end decoding with a small randomly initialised model.
"""

import pytest
import torch

from beamstep import AdvancerConfig, FeatureDictionary, create_advancer, load_model, prepare_batch, translate_batch
from helpers import BOS, SPECIAL, greedy_step, tiny_scorer_config


@pytest.mark.parametrize("rnn_type", ["lstm", "gru"])
def test_translate_batch(tiny_model_factory, source_sequences, rnn_type):
    model = tiny_model_factory(rnn_type=rnn_type)
    config = AdvancerConfig(max_sent_length=6, special_tokens=SPECIAL)

    results = translate_batch(model, source_sequences, config, beam_size=4, n_best=2)

    assert len(results) == len(source_sequences)
    for hyps in results:
        assert len(hyps) == 2
        assert hyps[0].norm_score >= hyps[1].norm_score
        for hyp in hyps:
            assert 1 <= len(hyp.tokens) <= 6
            assert all(0 <= tok < 12 for tok in hyp.tokens)
            assert hyp.features == []


def test_translate_batch_with_features(tiny_model_factory, source_sequences):
    model = tiny_model_factory(feature_vocab_dims=[7, 9])
    config = AdvancerConfig(max_sent_length=5, special_tokens=SPECIAL)
    feature_dicts = FeatureDictionary([[f"a{i}" for i in range(7)], [f"b{i}" for i in range(9)]])

    results = translate_batch(model, source_sequences, config, beam_size=3, feature_dicts=feature_dicts)

    for hyps in results:
        hyp = hyps[0]
        assert len(hyp.features) == 2
        assert all(len(f) == len(hyp.tokens) for f in hyp.features)
        assert all(0 <= i < 7 for i in hyp.features[0])
        assert all(0 <= i < 9 for i in hyp.features[1])
        assert feature_dicts.lookup(0, hyp.features[0][0]).startswith("a")


def test_translate_empty_batch(tiny_model_factory):
    model = tiny_model_factory()
    assert translate_batch(model, [], AdvancerConfig(special_tokens=SPECIAL)) == []


def test_greedy_steps_with_model(tiny_model_factory, source_sequences):
    model = tiny_model_factory(feature_vocab_dims=[7])
    batch = prepare_batch(source_sequences, SPECIAL.pad, torch.device("cpu"))
    feature_dicts = FeatureDictionary([[str(i) for i in range(7)]])
    advancer = create_advancer(model, batch, AdvancerConfig(max_sent_length=3, special_tokens=SPECIAL), feature_dicts)

    beam = advancer.init_beam()
    assert beam.tokens()[0].tolist() == [BOS] * 3

    with torch.no_grad():
        for step in range(2, 5):
            beam = greedy_step(advancer, beam)
            assert beam.state().step == step
            assert beam.state().dec_out.shape == (3, 16)
            assert beam.state().attention.shape == (3, 5)

    assert advancer.is_complete(beam).all()


def test_load_model_from_files(tmp_path, source_sequences):
    cfg = tiny_scorer_config()
    cfg.save(tmp_path / "scorer.yaml")
    torch.manual_seed(0)
    saved = load_model(tmp_path / "scorer.yaml", force_device="cpu")
    torch.save(saved.state_dict(), tmp_path / "model.pt")

    model = load_model(tmp_path / "scorer.yaml", tmp_path / "model.pt", force_device="cpu")
    config = AdvancerConfig(max_sent_length=4, special_tokens=SPECIAL)

    assert not model.training
    assert translate_batch(model, source_sequences, config, beam_size=2) == translate_batch(
        saved, source_sequences, config, beam_size=2
    )


def test_features_mismatch_rejected(tiny_model_factory, source_sequences):
    model = tiny_model_factory(feature_vocab_dims=[7])
    batch = prepare_batch(source_sequences, SPECIAL.pad, torch.device("cpu"))

    with pytest.raises(ValueError):
        create_advancer(model, batch, AdvancerConfig(special_tokens=SPECIAL))
