from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class SpecialTokens:
    """Reserved token indices, fixed for the life of a decode run.

    Attributes:
        pad: Padding token index.
        unk: Unknown-word token index.
        bos: Beginning-of-sequence token index.
        eos: End-of-sequence token index.
    """

    pad: int = 0
    unk: int = 1
    bos: int = 2
    eos: int = 3

    def __post_init__(self) -> None:
        ids = [self.pad, self.unk, self.bos, self.eos]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Special token indices must be distinct, got {self}")
        if min(ids) < 0:
            raise ValueError(f"Special token indices must be non-negative, got {self}")


@dataclass(frozen=True)
class FeatureDictionary:
    """Vocabularies of the auxiliary target features, one label list per feature.

    Labels are indexed by id, so every vocabulary shares the special token
    indices of the main vocabulary.
    """

    vocabularies: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "vocabularies", tuple(tuple(v) for v in self.vocabularies))

    @property
    def n_features(self) -> int:
        return len(self.vocabularies)

    @property
    def sizes(self) -> tuple[int, ...]:
        return tuple(len(v) for v in self.vocabularies)

    def lookup(self, feature: int, idx: int) -> str:
        return self.vocabularies[feature][idx]

    @classmethod
    def load(cls, path: Path) -> "FeatureDictionary":
        """Load feature vocabularies from a yaml file holding a list of label lists."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(data or [])


@dataclass
class AdvancerConfig:
    """Decoding options of the step advancer.

    Attributes:
        max_sent_length: Maximum number of generated tokens per sequence.
        max_num_unks: Maximum number of unknown tokens a hypothesis may contain.
        special_tokens: Reserved token indices.
    """

    max_sent_length: int = 250
    max_num_unks: int = 10**9
    special_tokens: SpecialTokens = field(default_factory=SpecialTokens)

    def __post_init__(self) -> None:
        if isinstance(self.special_tokens, dict):
            self.special_tokens = SpecialTokens(**self.special_tokens)
        if self.max_sent_length < 1:
            raise ValueError(f"{self.max_sent_length=} must be at least 1")
        if self.max_num_unks < 0:
            raise ValueError(f"{self.max_num_unks=} must be non-negative")

    def save(self, path: Path) -> None:
        """Save config to YAML file.

        Args:
            path: Path to save config file
        """
        with open(path, "w") as f:
            yaml.safe_dump(asdict(self), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: Path) -> "AdvancerConfig":
        """Load config from YAML file.

        Args:
            path: Path to config file

        Returns:
            Loaded config object
        """
        with open(path) as f:
            config_dict = yaml.safe_load(f)
        return cls(**config_dict)
