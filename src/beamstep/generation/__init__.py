from beamstep.generation.search import BeamSearch, Hypothesis, SearchOutput

__all__ = ["BeamSearch", "Hypothesis", "SearchOutput"]
