import cv2
import numpy as np
from functools import partial
from typing import Optional, Tuple

from ..compute import ComputeContext
from ..exceptions import InvalidInputError


# ---------------------- KERNELS ----------------------
# Each kernel works on a band of rows and writes into its first argument.


def _softmax_kernel(out: np.ndarray, background: np.ndarray, foreground: np.ndarray) -> None:
    """Two-class softmax, foreground probability."""
    peak = np.maximum(background, foreground)
    e_bg = np.exp(background - peak)
    e_fg = np.exp(foreground - peak)
    np.divide(e_fg, e_bg + e_fg, out=out)


def _min_max_kernel(band: np.ndarray) -> Tuple[float, float]:
    return float(band.min()), float(band.max())


def _combine_min_max(a: Tuple[float, float], b: Tuple[float, float]) -> Tuple[float, float]:
    return min(a[0], b[0]), max(a[1], b[1])


def _replace_extremes_kernel(out: np.ndarray, source: np.ndarray, p_min: float, p_max: float) -> None:
    """Exact maximum -> 1, exact minimum -> 0, everything else untouched."""
    np.copyto(out, source)
    out[source == np.float32(p_max)] = 1.0
    # Minimum last: a flat map has no foreground
    out[source == np.float32(p_min)] = 0.0


def _round_kernel(out: np.ndarray, source: np.ndarray) -> None:
    """Round halves away from zero, clamped to {0, 1}."""
    np.floor(source + np.float32(0.5), out=out)
    np.clip(out, 0.0, 1.0, out=out)


def _dilate_kernel(rows: np.ndarray, element: np.ndarray, weight: float) -> np.ndarray:
    """Grey dilation over a flat window with a uniform weight subtracted."""
    dilated = cv2.dilate(rows, element, borderType=cv2.BORDER_CONSTANT, borderValue=0)
    np.subtract(dilated, np.float32(weight), out=dilated)
    np.maximum(dilated, 0.0, out=dilated)
    return dilated


def _multiply_kernel(out: np.ndarray, a: np.ndarray, b: np.ndarray) -> None:
    np.multiply(a, b, out=out)


# ---------------------- PROCESSOR ----------------------


class SegmentationPostProcessor:
    """
    Turns the two raw score maps of the segmentation network into a binary hand mask.

    Passes, all run through the compute context:
        1. softmax over (background, foreground) -> probability P
        2. global min / max of P
        3. replace exact extremes (max -> 1, min -> 0)
        4. round to {0, 1}; this map is the fixed anchor
        5. N times: dilate the running map, multiply by the anchor

    Buffer use mirrors a three-texture layout: buffer 0 holds the running
    map, buffer 1 the dilation scratch and buffer 2 the probability and then
    the anchor.
    """

    def __init__(
            self,
            context: ComputeContext,
            dilation_iterations: int = 32,
            dilation_kernel_size: int = 21,
            debug_mode: bool = False
    ):
        """
        Initialize the post-processor.

        Args:
            context: Compute context whose buffers match the score map shape
            dilation_iterations: Dilate + multiply passes (hole filling strength)
            dilation_kernel_size: Edge of the square structuring element (odd)
            debug_mode: If True, print pass statistics
        """
        if dilation_kernel_size < 1 or dilation_kernel_size % 2 == 0:
            raise ValueError("dilation_kernel_size must be a positive odd number")
        if dilation_iterations < 0:
            raise ValueError("dilation_iterations must be >= 0")

        self.context = context
        self.dilation_iterations = dilation_iterations
        self.dilation_kernel_size = dilation_kernel_size
        self.debug_mode = debug_mode

        self._element = np.ones((dilation_kernel_size, dilation_kernel_size), dtype=np.uint8)
        self._weight = 1.0 / (dilation_kernel_size * dilation_kernel_size)

    def _prepare(self, score_map: np.ndarray, name: str) -> np.ndarray:
        if not isinstance(score_map, np.ndarray):
            raise InvalidInputError(f"{name} score map must be a numpy array")
        if score_map.ndim == 3:
            score_map = np.squeeze(score_map)
        if score_map.shape != self.context.shape:
            raise InvalidInputError(
                f"{name} score map has shape {score_map.shape}, expected {self.context.shape}"
            )
        return np.ascontiguousarray(score_map, dtype=np.float32)

    def process(
            self,
            background: np.ndarray,
            foreground: np.ndarray,
            iterations: Optional[int] = None
    ) -> np.ndarray:
        """
        Run the full post-processing.

        The caller is expected to hold context.session() when running
        inside a pipeline invocation; the session lock is not re-entered here.

        Args:
            background: Background logits (H, W)
            foreground: Foreground logits (H, W)
            iterations: Override for the number of dilate passes

        Returns:
            New float32 (H, W) mask with values in {0, 1}

        Raises:
            InvalidInputError: If the score maps are malformed
            ComputeUnavailableError: If the compute context fails
        """
        bg = self._prepare(background, "Background")
        fg = self._prepare(foreground, "Foreground")
        iterations = self.dilation_iterations if iterations is None else iterations

        ctx = self.context
        running, scratch, anchor = ctx.buffer(0), ctx.buffer(1), ctx.buffer(2)

        ctx.dispatch(_softmax_kernel, anchor, bg, fg)
        p_min, p_max = ctx.reduce(_min_max_kernel, anchor, _combine_min_max)

        ctx.dispatch(
            partial(_replace_extremes_kernel, p_min=p_min, p_max=p_max),
            running, anchor
        )
        ctx.dispatch(_round_kernel, anchor, running)

        dilate = partial(_dilate_kernel, element=self._element, weight=self._weight)
        halo = self.dilation_kernel_size // 2

        def step(_k: int) -> None:
            ctx.dispatch_window(dilate, scratch, running, halo)
            ctx.dispatch(_multiply_kernel, running, scratch, anchor)

        ctx.iterate(step, iterations)

        mask = ((running > 0) & (anchor > 0)).astype(np.float32)

        if self.debug_mode:
            print(f"  → P range [{p_min:.4f}, {p_max:.4f}], "
                  f"anchor {int(anchor.sum())} px, mask {int(mask.sum())} px "
                  f"after {iterations} passes")

        return mask
