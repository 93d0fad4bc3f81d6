"""beamstep - per-step control of batched beam-search decoding."""

from beamstep.decoding import (
    Advancer,
    AdvancerConfig,
    Beam,
    DecoderAdvancer,
    FeatureDictionary,
    SpecialTokens,
    StepState,
)
from beamstep.generate import create_advancer, load_model, prepare_batch, translate_batch
from beamstep.generation.search import BeamSearch, Hypothesis
from beamstep.utils.logging_config import setup_logging

setup_logging()

__all__ = [
    "Advancer",
    "AdvancerConfig",
    "Beam",
    "BeamSearch",
    "DecoderAdvancer",
    "FeatureDictionary",
    "Hypothesis",
    "SpecialTokens",
    "StepState",
    "create_advancer",
    "load_model",
    "prepare_batch",
    "translate_batch",
]
