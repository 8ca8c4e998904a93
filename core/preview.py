"""
Liquid Glass — Software Preview
Evaluates a FilterGraph on a numpy frame, for previews and tests.

Images are float32 premultiplied RGBA in [0, 1], one user unit per pixel.
Colour operations (color matrix, component transfer) run on
unpremultiplied values, like an SVG renderer with sRGB filter interpolation.
Pixels sampled from outside the frame are transparent black.
"""

import math

import cv2
import numpy as np

from core.encode import decode_data_url
from core.graph import (
    FilterGraph,
    FeImage,
    FeDisplacementMap,
    FeColorMatrix,
    FeGaussianBlur,
    FeComponentTransfer,
    FeBlend,
    FeComposite,
    SOURCE_GRAPHIC,
    SOURCE_ALPHA,
)
from core.safety import FilterGraphError

_CHANNEL_INDEX = {"R": 0, "G": 1, "B": 2, "A": 3}


# ---------------------------------------------------------------------------
# Pixel helpers
# ---------------------------------------------------------------------------

def to_premultiplied(frame: np.ndarray) -> np.ndarray:
    """uint8 RGB/RGBA -> float32 premultiplied RGBA."""
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3|4) frame, got shape {frame.shape}")
    f = frame.astype(np.float32) / 255.0
    if f.shape[2] == 3:
        f = np.concatenate([f, np.ones(f.shape[:2] + (1,), dtype=np.float32)], axis=2)
    f[:, :, :3] *= f[:, :, 3:4]
    return f


def unpremultiply(img: np.ndarray) -> np.ndarray:
    out = img.copy()
    a = img[:, :, 3:4]
    np.divide(img[:, :, :3], a, out=out[:, :, :3], where=a > 0)
    out[:, :, :3] = np.where(a > 0, out[:, :, :3], 0.0)
    return out


def premultiply(img: np.ndarray) -> np.ndarray:
    out = img.copy()
    out[:, :, :3] *= out[:, :, 3:4]
    return out


def to_uint8(img: np.ndarray) -> np.ndarray:
    """Premultiplied float RGBA -> straight uint8 RGBA."""
    straight = unpremultiply(np.clip(img, 0.0, 1.0))
    return np.rint(np.clip(straight, 0.0, 1.0) * 255).astype(np.uint8)


def saturate_matrix(s: float) -> np.ndarray:
    """4x5 feColorMatrix type="saturate" matrix."""
    m = np.zeros((4, 5), dtype=np.float32)
    m[0, :3] = (0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s)
    m[1, :3] = (0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s)
    m[2, :3] = (0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s)
    m[3, 3] = 1.0
    return m


# ---------------------------------------------------------------------------
# Primitive evaluators
# ---------------------------------------------------------------------------

def _image(node: FeImage, shape, resolve_href, cache) -> np.ndarray:
    h, w = shape
    out = np.zeros((h, w, 4), dtype=np.float32)
    tw, th = int(round(node.width)), int(round(node.height))
    if tw <= 0 or th <= 0:
        return out
    if node.href not in cache:
        cache[node.href] = resolve_href(node.href)
    rgba = cache[node.href]
    if rgba.shape[1] != tw or rgba.shape[0] != th:
        rgba = cv2.resize(rgba, (tw, th), interpolation=cv2.INTER_LINEAR)
    img = to_premultiplied(rgba)

    x0, y0 = int(round(node.x)), int(round(node.y))
    sx0, sy0 = max(0, -x0), max(0, -y0)
    dx0, dy0 = max(0, x0), max(0, y0)
    cw = min(tw - sx0, w - dx0)
    ch = min(th - sy0, h - dy0)
    if cw > 0 and ch > 0:
        out[dy0:dy0 + ch, dx0:dx0 + cw] = img[sy0:sy0 + ch, sx0:sx0 + cw]
    return out


def _displace(src: np.ndarray, disp: np.ndarray, node: FeDisplacementMap) -> np.ndarray:
    h, w = src.shape[:2]
    straight = unpremultiply(disp)
    xc = straight[:, :, _CHANNEL_INDEX[node.x_channel]]
    yc = straight[:, :, _CHANNEL_INDEX[node.y_channel]]
    grid_x, grid_y = np.meshgrid(np.arange(w, dtype=np.float32), np.arange(h, dtype=np.float32))
    map_x = (grid_x + node.scale * (xc - 0.5)).astype(np.float32)
    map_y = (grid_y + node.scale * (yc - 0.5)).astype(np.float32)
    return cv2.remap(np.ascontiguousarray(src), map_x, map_y, cv2.INTER_LINEAR,
                     borderMode=cv2.BORDER_CONSTANT, borderValue=(0, 0, 0, 0))


def _color_matrix(src: np.ndarray, node: FeColorMatrix) -> np.ndarray:
    if node.type == "saturate":
        m = saturate_matrix(float(node.values))
    else:
        m = np.asarray(node.values, dtype=np.float32).reshape(4, 5)
    straight = unpremultiply(src)
    out = straight @ m[:, :4].T + m[:, 4]
    return premultiply(np.clip(out, 0.0, 1.0).astype(np.float32))


def _blur(src: np.ndarray, sigma: float) -> np.ndarray:
    if sigma <= 0:
        return src.copy()
    pad = int(math.ceil(3 * sigma))
    padded = np.pad(src, ((pad, pad), (pad, pad), (0, 0)))
    blurred = cv2.GaussianBlur(padded, (0, 0), sigmaX=sigma, sigmaY=sigma)
    return np.ascontiguousarray(blurred[pad:-pad, pad:-pad])


def _component_transfer(src: np.ndarray, node: FeComponentTransfer) -> np.ndarray:
    straight = unpremultiply(src)
    for func in node.funcs:
        idx = _CHANNEL_INDEX[func.channel]
        straight[:, :, idx] = np.clip(straight[:, :, idx] * func.slope + func.intercept, 0.0, 1.0)
    return premultiply(straight)


def _blend(top: np.ndarray, bottom: np.ndarray, mode: str) -> np.ndarray:
    cs, a_s = top[:, :, :3], top[:, :, 3:4]
    cb, a_b = bottom[:, :, :3], bottom[:, :, 3:4]
    if mode == "normal":
        color = cs + cb * (1.0 - a_s)
    elif mode == "screen":
        color = cs + cb - cs * cb
    elif mode == "multiply":
        color = cs * (1.0 - a_b) + cb * (1.0 - a_s) + cs * cb
    else:
        raise FilterGraphError(f"Preview does not support blend mode '{mode}'")
    alpha = a_s + a_b - a_s * a_b
    return np.concatenate([color, alpha], axis=2)


def _composite(top: np.ndarray, bottom: np.ndarray, operator: str) -> np.ndarray:
    a_b = bottom[:, :, 3:4]
    if operator == "in":
        return top * a_b
    if operator == "out":
        return top * (1.0 - a_b)
    if operator == "over":
        return top + bottom * (1.0 - top[:, :, 3:4])
    raise FilterGraphError(f"Preview does not support composite operator '{operator}'")


# ---------------------------------------------------------------------------
# Graph evaluation
# ---------------------------------------------------------------------------

def evaluate_graph(graph: FilterGraph, frame: np.ndarray,
                   resolve_href=decode_data_url) -> dict:
    """Evaluate every node of a graph.

    Args:
        graph: Validated FilterGraph.
        frame: (H, W, 3|4) uint8 source graphic.
        resolve_href: href -> uint8 RGBA array (defaults to data-URL decoding).

    Returns:
        {result_name: premultiplied float RGBA}, plus the source tokens and
        the terminal node's output under the key None.
    """
    source = to_premultiplied(frame)
    alpha_only = np.zeros_like(source)
    alpha_only[:, :, 3] = source[:, :, 3]
    results = {SOURCE_GRAPHIC: source, SOURCE_ALPHA: alpha_only}
    shape = source.shape[:2]
    hrefs = {}
    last = source

    for node in graph:
        if isinstance(node, FeImage):
            last = _image(node, shape, resolve_href, hrefs)
        elif isinstance(node, FeDisplacementMap):
            last = _displace(results[node.in1], results[node.in2], node)
        elif isinstance(node, FeColorMatrix):
            last = _color_matrix(results[node.in1], node)
        elif isinstance(node, FeGaussianBlur):
            last = _blur(results[node.in1], node.std_deviation)
        elif isinstance(node, FeComponentTransfer):
            last = _component_transfer(results[node.in1], node)
        elif isinstance(node, FeBlend):
            last = _blend(results[node.in1], results[node.in2], node.mode)
        elif isinstance(node, FeComposite):
            last = _composite(results[node.in1], results[node.in2], node.operator)
        else:
            raise FilterGraphError(f"Preview cannot evaluate {node.TAG}")
        if node.result is not None:
            results[node.result] = last

    results[None] = last
    return results


def render_graph(graph: FilterGraph, frame: np.ndarray,
                 resolve_href=decode_data_url) -> np.ndarray:
    """Apply a filter graph to a frame. Returns (H, W, 4) uint8 RGBA."""
    return to_uint8(evaluate_graph(graph, frame, resolve_href)[None])
