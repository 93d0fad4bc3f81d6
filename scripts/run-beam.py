from pathlib import Path

from beamstep import AdvancerConfig, load_model, translate_batch


def run_beam(config_path: Path, ckpt_path: Path | None, advancer_config_path: Path) -> None:
    model = load_model(config_path, ckpt_path)
    config = AdvancerConfig.load(advancer_config_path)

    sources = [[4, 5, 6, 7], [8, 9], [10, 11, 12]]
    results = translate_batch(model, sources, config, beam_size=5, n_best=3, show_progress=True)

    with open("beam-hypotheses.txt", "w") as f:
        for source, hyps in zip(sources, results, strict=True):
            f.write(f"Source: {source}\n")
            for hyp in hyps:
                f.write(f"{hyp.norm_score:.4f}\t{' '.join(map(str, hyp.tokens))}\n")


if __name__ == "__main__":
    run_beam(
        config_path=Path("data/configs/scorer.yaml"),
        ckpt_path=None,
        advancer_config_path=Path("data/configs/advancer.yaml"),
    )
