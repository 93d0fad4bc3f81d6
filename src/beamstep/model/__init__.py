from beamstep.model.architecture import Seq2Seq
from beamstep.model.config import ScorerConfig
from beamstep.model.factory import ModelFactory
from beamstep.model.scorer import DecoderInput, ScorerAdapter

__all__ = [
    "DecoderInput",
    "ModelFactory",
    "ScorerAdapter",
    "ScorerConfig",
    "Seq2Seq",
]
