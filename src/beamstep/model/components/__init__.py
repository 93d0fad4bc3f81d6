from beamstep.model.components.attention import GlobalAttention
from beamstep.model.components.decoder import Generator, RNNDecoder
from beamstep.model.components.encoder import RNNEncoder

__all__ = [
    "GlobalAttention",
    "Generator",
    "RNNDecoder",
    "RNNEncoder",
]
