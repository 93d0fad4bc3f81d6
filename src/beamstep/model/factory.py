from importlib import resources
from pathlib import Path

import torch
import torch.nn as nn
from torch import device as torch_device

from beamstep.model.architecture import Seq2Seq
from beamstep.model.components.decoder import RNNDecoder
from beamstep.model.components.encoder import RNNEncoder
from beamstep.model.config import ScorerConfig
from beamstep.utils.logging_config import logger

PRESETS = ("base_lstm", "tagged_gru", "tiny_lstm")


class ModelFactory:
    """Factory class for creating and configuring models."""

    def __init__(
        self,
        config: ScorerConfig,
        device: str | None = None,
        allow_mps: bool = False,
    ) -> None:
        """Initializes the ModelFactory.

        Args:
            config: The model configuration.
            device: Optional device specification. If None, the best available device is used.
            allow_mps: Whether to allow MPS device usage.
        """
        self.config = config
        self.device = self.determine_device(device, allow_mps)

    @staticmethod
    def determine_device(device: str | None = None, allow_mps: bool = False) -> torch_device:
        """Determines the appropriate device for model placement.

        Args:
            device: Optional device specification.

        Returns:
            The determined torch.device.
        """
        if device is None:
            if torch.cuda.is_available():
                device = "cuda"
            elif allow_mps and torch.backends.mps.is_available():
                device = "mps"
            else:
                device = "cpu"
        return torch.device(device)

    @staticmethod
    def _count_parameters(model: nn.Module) -> int:
        return sum(p.numel() for p in model.parameters() if p.requires_grad)

    def create_model(self) -> Seq2Seq:
        """Creates a Seq2Seq model from the configuration, in eval mode.

        Returns:
            The configured Seq2Seq model.
        """
        cfg = self.config
        encoder = RNNEncoder(
            vocab_dim=cfg.src_vocab_dim,
            emb_dim=cfg.emb_dim,
            hid_dim=cfg.hid_dim,
            n_layers=cfg.n_layers,
            rnn_type=cfg.rnn_type,
            dropout=cfg.dropout,
            pad_idx=cfg.pad_idx,
        )
        decoder = RNNDecoder(
            vocab_dim=cfg.trg_vocab_dim,
            emb_dim=cfg.emb_dim,
            hid_dim=cfg.hid_dim,
            n_layers=cfg.n_layers,
            rnn_type=cfg.rnn_type,
            attn_type=cfg.attn_type,
            dropout=cfg.dropout,
            pad_idx=cfg.pad_idx,
            feature_vocab_dims=cfg.feature_vocab_dims,
            feature_emb_dim=cfg.feature_emb_dim,
            input_feed=cfg.input_feed,
        )
        model = Seq2Seq(encoder=encoder, decoder=decoder)
        model.to(self.device)
        model.eval()

        logger.info(f"The model has {self._count_parameters(model):,} trainable parameters")
        return model

    @classmethod
    def from_config_file(cls, config_path: str | Path, device: str | None = None) -> "ModelFactory":
        """Creates a ModelFactory instance from a configuration file.

        Args:
            config_path: Path to the configuration file.
            device: Optional device specification.

        Returns:
            The configured ModelFactory instance.
        """
        config = ScorerConfig.load(Path(config_path))
        return cls(config=config, device=device)

    @classmethod
    def from_preset(cls, preset_name: str, device: str | None = None) -> "ModelFactory":
        """Loads a preset configuration by name.

        Args:
            preset_name: The name of the preset configuration.
            device: Optional device specification.

        Returns:
            The configured ModelFactory instance.

        Raises:
            ValueError: If the preset is not found.
        """
        config_file = resources.files("beamstep.model.default_configs") / f"{preset_name}.yaml"
        if not config_file.is_file():
            raise ValueError(f"Preset '{preset_name}' not found. Available presets: {', '.join(PRESETS)}")
        with resources.as_file(config_file) as config_path:
            return cls.from_config_file(config_path, device)

    @staticmethod
    def load_checkpoint(model: Seq2Seq, ckpt_path: Path, device: torch.device) -> Seq2Seq:
        ckpt_torch = torch.load(ckpt_path, map_location=device)
        model.load_state_dict(ckpt_torch)
        model.to(device)
        model.eval()
        return model
