"""
Presence monitor: real-time person detection with presence durations.

Reads frames from a camera, video file or still image, runs a YOLO-style
ONNX detector on each frame, suppresses overlapping boxes, tracks how long
each detected person has been present and absent, and draws the boxes.

Usage:
    python src/main.py --config config/config.yaml --display
    python src/main.py --image samples/people.jpg --output out.jpg

Arguments:
    --config: Path to configuration file
    --source: Override source.device_id (camera index, file path or URL)
    --image: Run a single detection pass over a still image
    --output: Where to write the annotated image in --image mode
    --display: Enable visual display for debugging
    --web: Serve the reporting API (overrides web.enabled)
"""

import os
import sys
import argparse
import logging
from typing import Dict, Any, Tuple, Optional

import cv2
import yaml

from models.errors import InferenceError, ResourceExhaustionError
from ops.logging import setup_logging
from pipeline.engine import create_driver_from_config
from web.app import start_server_thread
from web.state import ReportingState

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_ABSENCE_MODES = ('since_last_seen', 'incremental')
VALID_IDENTITIES = ('index', 'iou')


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    config_dir = os.path.dirname(config_path)
    try:
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['source', 'model', 'suppression', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Source
    source = config.get('source') or {}
    backend = source.get('backend', 'opencv')
    if backend not in ('opencv', 'image'):
        return False, "source.backend must be one of: opencv, image"
    if backend == 'image' and not source.get('image_path'):
        return False, "source.image_path is required when source.backend is 'image'"
    device_id = source.get('device_id', 0)
    if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
        return False, "source.device_id must be an integer (index) or string (path/URL)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "source.device_id integer must be non-negative"
    if 'resolution' in source and source['resolution'] is not None:
        res = source['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "source.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "source.resolution values must be positive integers"
    if 'fps' in source and source['fps'] is not None:
        if not isinstance(source['fps'], int) or source['fps'] <= 0:
            return False, "source.fps must be a positive integer"

    # Model
    model = config.get('model') or {}
    if not isinstance(model.get('path'), str) or not model.get('path'):
        return False, "model.path is required"
    if 'labels_path' in model and not isinstance(model['labels_path'], str):
        return False, "model.labels_path must be a string"
    shape = model.get('input_shape')
    if shape is not None:
        if not isinstance(shape, list) or len(shape) != 4:
            return False, "model.input_shape must be a list of [batch, height, width, channels]"
        if not all(isinstance(x, int) and x > 0 for x in shape):
            return False, "model.input_shape values must be positive integers"
    if model.get('input_layout', 'nchw') not in ('nchw', 'nhwc'):
        return False, "model.input_layout must be one of: nchw, nhwc"

    # Suppression
    suppression = config.get('suppression') or {}
    mos = suppression.get('max_output_size', 500)
    if not isinstance(mos, int) or isinstance(mos, bool) or mos < 0:
        return False, "suppression.max_output_size must be a non-negative integer"
    for key in ('iou_threshold', 'score_threshold'):
        if key in suppression:
            value = suppression[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"suppression.{key} must be between 0 and 1"

    # Presence (optional)
    presence = config.get('presence') or {}
    if presence.get('absence_mode', 'since_last_seen') not in VALID_ABSENCE_MODES:
        return False, f"presence.absence_mode must be one of: {', '.join(VALID_ABSENCE_MODES)}"
    if presence.get('identity', 'index') not in VALID_IDENTITIES:
        return False, f"presence.identity must be one of: {', '.join(VALID_IDENTITIES)}"
    if 'iou_match_threshold' in presence:
        thr = presence['iou_match_threshold']
        if not _is_number(thr) or not (0 < thr <= 1):
            return False, "presence.iou_match_threshold must be between 0 and 1"
    evict = presence.get('evict_after_ms')
    if evict is not None and (not _is_number(evict) or evict <= 0):
        return False, "presence.evict_after_ms must be a positive number"

    # Driver (optional)
    driver = config.get('driver') or {}
    if 'refresh_hz' in driver and (not _is_number(driver['refresh_hz']) or driver['refresh_hz'] < 0):
        return False, "driver.refresh_hz must be a non-negative number"
    if 'max_consecutive_failures' in driver:
        mcf = driver['max_consecutive_failures']
        if not isinstance(mcf, int) or mcf <= 0:
            return False, "driver.max_consecutive_failures must be a positive integer"
    budget = driver.get('memory_budget_mb')
    if budget is not None and (not _is_number(budget) or budget <= 0):
        return False, "driver.memory_budget_mb must be a positive number"

    # Web (optional)
    web = config.get('web') or {}
    if 'port' in web:
        if not isinstance(web['port'], int) or not (0 < web['port'] < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    if not isinstance(config['log_path'], str) or not config['log_path']:
        return False, "log_path must be a non-empty string"
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def _apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> None:
    if args.source is not None:
        source = config.setdefault('source', {})
        source['backend'] = 'opencv'
        source['device_id'] = int(args.source) if args.source.isdigit() else args.source
    if args.image is not None:
        source = config.setdefault('source', {})
        source['backend'] = 'image'
        source['image_path'] = args.image
    if args.web:
        config.setdefault('web', {})['enabled'] = True


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Presence Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='Camera index, video file or stream URL (overrides config)')
    parser.add_argument('--image', type=str, default=None,
                        help='Detect once on a still image')
    parser.add_argument('--output', type=str, default=None,
                        help='Write the annotated image here (with --image)')
    parser.add_argument('--display', action='store_true',
                        help='Enable visual display')
    parser.add_argument('--web', action='store_true',
                        help='Serve the reporting API')
    args = parser.parse_args()

    config = load_config(args.config)
    _apply_overrides(config, args)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Presence Monitor")

    web_state = ReportingState()
    web_cfg = config.get('web') or {}
    if web_cfg.get('enabled', False):
        start_server_thread(web_state, web_cfg.get('host', '0.0.0.0'), int(web_cfg.get('port', 8000)))

    try:
        driver = create_driver_from_config(
            config=config,
            web_state=web_state,
            display=args.display,
            image_path=args.image,
        )
    except (FileNotFoundError, ValueError, InferenceError) as e:
        logging.error(f"Failed to initialize: {e}")
        sys.exit(1)

    image_mode = (config.get('source') or {}).get('backend') == 'image'
    try:
        if image_mode:
            report = driver.run_once()
            if report is not None:
                for det in report.detections:
                    logging.info(
                        f"{det['class_name']} - {det['confidence'] * 100:.1f}% at "
                        f"{[round(v) for v in det['box']]}"
                    )
            if args.output and driver.surface is not None:
                cv2.imwrite(args.output, driver.surface)
                logging.info(f"Annotated image written to {args.output}")
            if args.display and driver.surface is not None:
                cv2.imshow("Presence Monitor", driver.surface)
                cv2.waitKey(0)
                cv2.destroyAllWindows()
        else:
            driver.run()
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except ResourceExhaustionError as e:
        logging.error(f"Stopping on fatal error: {e}")
        sys.exit(1)
    finally:
        logging.info("Presence Monitor stopped")


if __name__ == "__main__":
    main()
