from collections.abc import Sequence
from pathlib import Path

import torch

from beamstep.decoding.advancer import DecoderAdvancer
from beamstep.decoding.config import AdvancerConfig, FeatureDictionary
from beamstep.generation.search import BeamSearch, SearchOutput
from beamstep.model.architecture import Seq2Seq
from beamstep.model.factory import ModelFactory
from beamstep.utils.batch import Batch


def load_model(config_path: Path, ckpt_path: Path | None = None, force_device: str | None = None) -> Seq2Seq:
    """Build a model from its yaml configuration, optionally loading weights.

    Args:
        config_path: Path to the model configuration file
        ckpt_path: Path to a state dict saved with ``torch.save``
        force_device: Device to place the model on, best available if None
    """
    factory = ModelFactory.from_config_file(config_path, device=force_device)
    model = factory.create_model()
    if ckpt_path is not None:
        model = ModelFactory.load_checkpoint(model, ckpt_path, factory.device)
    return model


def prepare_batch(sequences: Sequence[Sequence[int]], pad_idx: int, device: torch.device) -> Batch:
    """Pad source token indices into a batch placed on ``device``."""
    return Batch.from_sequences(sequences, pad_idx).to(device)


def create_advancer(
    model: Seq2Seq,
    batch: Batch,
    config: AdvancerConfig,
    feature_dicts: FeatureDictionary | None = None,
) -> DecoderAdvancer:
    """Encode the batch and create the step advancer for its decoding."""
    with torch.no_grad():
        context_BCD, dec_states = model.encode(batch)
    return DecoderAdvancer(
        scorer=model.decoder,
        batch=batch,
        dec_states=dec_states,
        context_BCD=context_BCD,
        config=config,
        feature_dicts=feature_dicts,
    )


def translate_batch(
    model: Seq2Seq,
    sequences: Sequence[Sequence[int]],
    config: AdvancerConfig,
    beam_size: int = 5,
    n_best: int = 1,
    feature_dicts: FeatureDictionary | None = None,
    length_norm: float = 0.5,
    show_progress: bool = False,
) -> SearchOutput:
    """Decode source sequences with beam search.

    Args:
        model: The encoder/decoder model
        sequences: Source token indices, one list per sequence
        config: Decoding options and special token indices
        beam_size: Beam size for the beam search
        n_best: Number of hypotheses returned per sequence
        feature_dicts: Vocabularies of the auxiliary target features, if any
        length_norm: Exponent of the length penalty used to rank hypotheses
        show_progress: Whether to display a progress bar

    Returns:
        For each sequence, its best hypotheses sorted by normalized score.
    """
    device = next(model.parameters()).device
    batch = prepare_batch(sequences, config.special_tokens.pad, device)
    advancer = create_advancer(model, batch, config, feature_dicts)
    beam_obj = BeamSearch(
        advancer=advancer,
        beam_size=beam_size,
        n_best=n_best,
        length_norm=length_norm,
    )
    return beam_obj.search(progress_bar=show_progress)
