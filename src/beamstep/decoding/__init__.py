from beamstep.decoding.advancer import DecoderAdvancer
from beamstep.decoding.base import Advancer
from beamstep.decoding.beam import Beam
from beamstep.decoding.config import AdvancerConfig, FeatureDictionary, SpecialTokens
from beamstep.decoding.state import StepState

__all__ = [
    "Advancer",
    "AdvancerConfig",
    "Beam",
    "DecoderAdvancer",
    "FeatureDictionary",
    "SpecialTokens",
    "StepState",
]
