# main.py
"""
Hand gesture detection on a single photo.

Pipeline:
    Image -> HandGesturePipeline -> gesture label + hand skeleton

Features:
    - Prints the gesture label (and, optionally, all class confidences)
    - Renders the photo aspect-fit into a viewport with the skeleton on top
    - Optional previews: foreground score map and hand mask

Requirements:
    - Keras model files for the segmentation, pose and gesture networks
      (adjust the paths below or pass them on the command line)
"""

import argparse
import sys
from typing import Tuple

import cv2

from hand_gesture import HandGesturePipeline, PipelineConfig, NoHandDetectedError, HandGestureError
from hand_gesture.components import LetterboxResizer
from hand_gesture.networks import KerasSegmentationNetwork, KerasPoseNetwork, KerasGestureNetwork
from hand_gesture.visualization import draw_skeleton, draw_label

# ---------------------- CONFIG ----------------------

SEGNET_PATH = "handsegnet.keras"
POSENET_PATH = "posenet.keras"
GESTURENET_PATH = "gesturenet.keras"

VIEWPORT_SIZE = (640, 480)    # display (width, height)
WINDOW_NAME = "Hand Gesture Detection"


# ---------------------- UTILS ----------------------


def parse_size(value: str) -> Tuple[int, int]:
    """Parse 'WIDTHxHEIGHT'."""
    try:
        width, height = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("Viewport dimensions must be positive")
    return width, height


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("image", help="Path to the photo")
    parser.add_argument("--segnet", default=SEGNET_PATH, help="Segmentation model path")
    parser.add_argument("--posenet", default=POSENET_PATH, help="Pose model path")
    parser.add_argument("--gesturenet", default=GESTURENET_PATH, help="Gesture model path")
    parser.add_argument("--class-names", nargs="+", default=None, help="Gesture labels in model order")
    parser.add_argument("--viewport", type=parse_size, default=VIEWPORT_SIZE, help="Display size WxH")
    parser.add_argument("--output", default=None, help="Save the annotated view to this path")
    parser.add_argument("--show", action="store_true", help="Show result windows")
    parser.add_argument("--all-confidences", action="store_true", help="Print every class confidence")
    parser.add_argument("--workers", type=int, default=1, help="Compute worker threads")
    parser.add_argument("--verbose", action="store_true", help="Print per-stage timings")
    return parser.parse_args(argv)


# ---------------------- MAIN ----------------------


def run(args: argparse.Namespace) -> int:
    image_bgr = cv2.imread(args.image)
    if image_bgr is None:
        print(f"❌ ERROR: Could not read image: {args.image}")
        return 1
    image_rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)

    config = PipelineConfig(num_workers=args.workers, verbose=args.verbose)
    gesture_network = KerasGestureNetwork(args.gesturenet, class_names=args.class_names)

    pipeline = HandGesturePipeline(
        segmentation_network=KerasSegmentationNetwork(args.segnet),
        pose_network=KerasPoseNetwork(args.posenet),
        gesture_network=gesture_network,
        config=config
    )

    with pipeline:
        try:
            result = pipeline.prediction(image_rgb, viewport_size=args.viewport)
        except NoHandDetectedError:
            print("⚠️  No hand found in the image")
            return 2
        except HandGestureError as e:
            print(f"❌ ERROR: {e}")
            return 1

    print(f"Gesture: {result.gesture_label}")
    if args.all_confidences:
        features = pipeline.feature_encoder.encode(result.crop_keypoints)
        for name, conf in gesture_network.predict_confidences(features).items():
            print(f"  {name:<10} {conf:.3f}")

    view = LetterboxResizer(canvas_size=args.viewport).resize(image_bgr)
    view = draw_skeleton(view, result.viewport_keypoints)
    view = draw_label(view, result.gesture_label)

    if args.output:
        cv2.imwrite(args.output, view)
        print(f"Saved annotated view to {args.output}")

    if args.show:
        cv2.imshow(WINDOW_NAME, view)
        cv2.imshow("Hand Foreground Scoremap", result.fg_scoremap_image)
        cv2.imshow("Hand Mask", result.hand_mask_image)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    sys.exit(run(parse_args()))
