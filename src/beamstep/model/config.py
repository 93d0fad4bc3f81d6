from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Literal

import yaml


@dataclass
class ScorerConfig:
    """Configuration for the encoder/decoder pair used as a scorer.

    Attributes:
        src_vocab_dim: Source vocabulary size.
        trg_vocab_dim: Target vocabulary size.
        feature_vocab_dims: Vocabulary size of each auxiliary target feature.
        emb_dim: Word embedding size.
        feature_emb_dim: Embedding size of each auxiliary feature.
        hid_dim: Hidden dimension of the recurrent layers.
        n_layers: Number of stacked recurrent layers.
        rnn_type: Recurrent cell type ('lstm' or 'gru').
        attn_type: Global attention scoring ('dot' or 'general').
        dropout: Dropout probability between layers.
        input_feed: Whether the previous output is fed with the next input.
        pad_idx: Padding token index.
    """

    src_vocab_dim: int
    trg_vocab_dim: int
    feature_vocab_dims: list[int] = field(default_factory=list)
    emb_dim: int = 64
    feature_emb_dim: int = 8
    hid_dim: int = 128
    n_layers: int = 1
    rnn_type: Literal["lstm", "gru"] = "lstm"
    attn_type: Literal["dot", "general"] = "general"
    dropout: float = 0.0
    input_feed: bool = True
    pad_idx: int = 0

    def __post_init__(self) -> None:
        if self.n_layers < 1:
            raise ValueError(f"{self.n_layers=} must be at least 1")
        if self.rnn_type not in ["lstm", "gru"]:
            raise ValueError(f"{self.rnn_type=} must be either 'lstm' or 'gru'")
        if self.attn_type not in ["dot", "general"]:
            raise ValueError(f"{self.attn_type=} must be either 'dot' or 'general'")
        if not 0.0 <= self.dropout < 1.0:
            raise ValueError(f"{self.dropout=} must be in [0, 1)")
        if any(dim < 1 for dim in self.feature_vocab_dims):
            raise ValueError(f"{self.feature_vocab_dims=} must all be positive")

    def save(self, path: Path) -> None:
        """Save config to yaml file.

        Args:
            path: Path to save the config to.
        """
        with open(path, "w") as f:
            yaml.dump(asdict(self), f, sort_keys=False, default_flow_style=False)

    @classmethod
    def load(cls, path: Path) -> "ScorerConfig":
        """Load config from yaml file.

        Args:
            path: Path to load the config from.

        Returns:
            Loaded config.
        """
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(**data)
