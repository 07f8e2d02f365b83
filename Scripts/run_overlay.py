import argparse
import logging
import signal
import sys
from pathlib import Path

from yolo_overlay import OverlaySettings, PipelineDriver, load_overlay_settings, load_pipeline
from yolo_overlay.capture import OpenCVFrameSource
from yolo_overlay.display import FanoutSink, FileSink, LatestResultSink, OpenCVWindowSink
from yolo_overlay.logging_utils import setup_logging


logger = logging.getLogger("run_overlay")


def build_settings(args: argparse.Namespace) -> OverlaySettings:
    settings = load_overlay_settings(Path(args.config)) if args.config else OverlaySettings()

    # CLI flags override the config file only when given.
    overrides = {}
    if args.model is not None:
        overrides["model_path"] = args.model
    if args.labels is not None:
        overrides["labels_path"] = args.labels
    if args.imgsz is not None:
        overrides["input_width"] = int(args.imgsz)
        overrides["input_height"] = int(args.imgsz)
    if args.conf is not None:
        overrides["confidence_threshold"] = float(args.conf)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    if args.target is not None:
        overrides["target_label"] = args.target or None
    if args.thickness is not None:
        overrides["line_thickness"] = int(args.thickness)
    if args.interval is not None:
        overrides["cycle_interval_s"] = float(args.interval)
    if args.per_class_nms:
        overrides["class_agnostic_nms"] = False
    return settings.with_overrides(**overrides)


def main() -> int:
    parser = argparse.ArgumentParser(description="Periodically detect objects and publish a box overlay + report.")
    parser.add_argument("--config", default=None, help="Optional JSON overlay settings file.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    src.add_argument("--rtsp", default=None, help="RTSP stream URL.")
    parser.add_argument("--model", default=None, help="Path to a YOLO ONNX model.")
    parser.add_argument("--labels", default=None, help="Label file (metadata.yaml names mapping or one per line).")
    parser.add_argument("--imgsz", type=int, default=None, help="Model input size (square), e.g. 640.")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument("--target", default=None, help='Label to outline (e.g. "person"); empty string outlines all.')
    parser.add_argument("--thickness", type=int, default=None, help="Box line thickness in pixels.")
    parser.add_argument("--interval", type=float, default=None, help="Seconds to wait between cycles.")
    parser.add_argument("--per-class-nms", action="store_true", help="Only suppress overlapping boxes of the same class.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window with the composited overlay.")
    parser.add_argument("--out-dir", default=None, help="Write overlay.png / preview.jpg / report.txt each cycle.")
    parser.add_argument("--max-cycles", type=int, default=0, help="Stop after N cycles (0 = run until interrupted).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--log-file", default=None, help="Optional log file path.")
    args = parser.parse_args()

    setup_logging(args.log_level, args.log_file)

    if args.max_cycles < 0:
        raise ValueError("--max-cycles must be >= 0")

    settings = build_settings(args)
    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline, engine = load_pipeline(settings, onnx_providers=onnx_providers)

    webcam = args.webcam
    if args.video is None and args.rtsp is None and webcam is None:
        webcam = 0

    sinks = [LatestResultSink()]
    window = OpenCVWindowSink() if args.show else None
    if window is not None:
        sinks.append(window)
    if args.out_dir:
        sinks.append(FileSink(args.out_dir))

    source = OpenCVFrameSource.open(video=args.video, webcam=webcam, rtsp=args.rtsp)
    driver = PipelineDriver(source, engine, pipeline, FanoutSink(sinks), settings)

    def _request_stop(signum, frame):
        logger.info("signal %d received, stopping after the current cycle", signum)
        driver.stop()

    signal.signal(signal.SIGINT, _request_stop)

    try:
        published = driver.run(max_cycles=args.max_cycles or None)
    finally:
        source.close()
        engine.close()
        if window is not None:
            window.close()

    logger.info("published %d overlay(s)", published)
    return 0


if __name__ == "__main__":
    sys.exit(main())
