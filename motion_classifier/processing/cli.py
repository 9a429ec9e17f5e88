import argparse
import dataclasses
import logging
import sys
from pathlib import Path

import pandas as pd

from ..config import settings
from ..exceptions import MotionClassifierError
from ..inference.classifier import TorchScriptClassifier, select_top_prediction
from ..inference.formatter import format_label, format_message, should_persist
from ..motion_config import CHANNELS, get_motion_config, load_motion_config
from ..utils.logging_config import setup_logging
from .csv_io import read_combined_csv
from .normalizer import load_ranges, write_ranges
from .pipeline import PreprocessingPipeline

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preprocess (and optionally classify) a combined sensor CSV")
    parser.add_argument("--csv", required=True, help="Combined CSV with acc_z, acc_y, acc_x, gyro_z, gyro_y, gyro_x columns.")
    parser.add_argument("--output", default=None, help="Optional path for the normalized window as CSV.")
    parser.add_argument("--config", default=None, help="Optional motion_config.toml path.")
    parser.add_argument("--ranges", default=None, help="Optional normalization_ranges.json overriding the configured ranges.")
    parser.add_argument("--classify", action="store_true", help="Run the TorchScript classifier on the window.")
    parser.add_argument("--model", default=str(settings.model_path), help="TorchScript model path.")
    parser.add_argument("--labels", default=str(settings.labels_path), help="label_encoder.json path.")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(log_level=args.log_level, log_path=None, log_format="text")

    try:
        cfg = load_motion_config(Path(args.config)) if args.config else get_motion_config()
        if args.ranges:
            cfg = dataclasses.replace(cfg, normalization=load_ranges(Path(args.ranges)))
    except MotionClassifierError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    pipeline = PreprocessingPipeline(cfg)
    try:
        prepared = pipeline.prepare(read_combined_csv(Path(args.csv)))
    except MotionClassifierError as exc:
        logger.error("CSV processing failed: %s", exc)
        return 1
    logger.info("Prepared window: %d samples from %s", prepared.samples, args.csv)

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(prepared.normalized, columns=list(CHANNELS)).to_csv(out, index=False, float_format="%.8f")
        ranges_path = write_ranges(cfg.normalization, out.parent)
        logger.info("Normalized window written to %s (ranges: %s)", out, ranges_path)

    if args.classify:
        classifier = TorchScriptClassifier(Path(args.model), Path(args.labels))
        if not classifier.initialize():
            logger.error("Model initialization failed")
            return 2
        try:
            top = select_top_prediction(classifier.classify(prepared.normalized))
        except MotionClassifierError as exc:
            logger.error("Prediction error: %s", exc)
            return 3
        finally:
            classifier.cleanup()
        print(format_message(format_label(top.label), top.score))
        if not should_persist(top.score, cfg.prediction.confidence_threshold):
            logger.info("Confidence %.3f below threshold %.2f", top.score, cfg.prediction.confidence_threshold)
    return 0


if __name__ == "__main__":
    sys.exit(main())
