import torch

from helpers import A, B_TOK, BOS, EOS, make_scripted_advancer


def test_select_reorders_history_and_state():
    advancer, _ = make_scripted_advancer([[A, EOS], [B_TOK, EOS]], source_sizes=[3, 1])
    beam = advancer.init_beam()
    advancer.update(beam)
    advancer.expand(beam)

    token_B = torch.tensor([A, B_TOK])
    beam = beam.next(torch.tensor([1, 0]), token_B, torch.tensor([-1.0, -2.0]))

    assert beam.history().tolist() == [[BOS, A], [BOS, B_TOK]]
    assert beam.scores.tolist() == [-1.0, -2.0]
    state = beam.state()
    assert state.source_sizes.tolist() == [1, 3]
    assert state.dec_states[1].tolist() == [1.0, 0.0]
    assert state.dec_out[:, 1].tolist() == [1.0, 0.0]


def test_repeat_interleave():
    advancer, _ = make_scripted_advancer([[A], [B_TOK]], source_sizes=[2, 1])
    beam = advancer.init_beam().repeat_interleave(3)

    assert beam.size == 6
    assert beam.state().source_sizes.tolist() == [2, 2, 2, 1, 1, 1]
    assert beam.state().context.size(0) == 6
    assert beam.state().batch_size == 6
    assert beam.state().dec_out is None
    assert repr(beam) == "Beam(size=6, length=1)"


def test_set_state_replaces_state():
    advancer, _ = make_scripted_advancer([[A]])
    beam = advancer.init_beam()
    other = make_scripted_advancer([[A]])[0].init_beam().state()

    beam.set_state(other)
    assert beam.state() is other
