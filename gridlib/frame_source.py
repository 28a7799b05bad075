"""
Frame sources: animated GIF to 0/1 frames, JSON frame files, and the
scale/pad transforms applied to a sequence before it is played.
"""

import json

import cv2
import numpy as np
from PIL import Image, ImageSequence

LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)


def fit_within(rgba, width, height):
    """Shrink an RGBA array so it fits in width x height, keeping aspect."""
    h, w = rgba.shape[:2]
    if w <= width and h <= height:
        return rgba
    scale = min(width / w, height / h)
    nw, nh = max(1, int(round(w * scale))), max(1, int(round(h * scale)))
    return cv2.resize(rgba, (nw, nh), interpolation=cv2.INTER_AREA)


def threshold_rgba(rgba, threshold):
    """Luminance weighted by alpha, compared against threshold."""
    rgb = rgba[..., :3].astype(np.float32)
    alpha = rgba[..., 3].astype(np.float32) / 255.0
    intensity = (rgb @ LUMA_WEIGHTS) * alpha
    return (intensity > threshold).astype(np.uint8)


def gif_to_frames(gif_path, width, height, threshold=128):
    """
    Convert an animated GIF into a list of binary frames.

    Args:
        gif_path: path of the GIF file
        width, height: maximum size of the output frames
        threshold: intensity (0-255) above which a pixel becomes 1

    Returns:
        list of uint8 numpy arrays, all of the same shape
    """
    images = []
    with Image.open(gif_path) as gif:
        for frame in ImageSequence.Iterator(gif):
            images.append(np.array(frame.convert('RGBA')))

    if not images:
        return []

    max_width = min(max(img.shape[1] for img in images), width)
    max_height = min(max(img.shape[0] for img in images), height)

    frames = []
    for img in images:
        fitted = fit_within(img, width, height)
        canvas = np.zeros((max_height, max_width, 4), dtype=np.uint8)
        h, w = fitted.shape[:2]
        y0 = (max_height - h) // 2
        x0 = (max_width - w) // 2
        canvas[y0:y0 + h, x0:x0 + w] = fitted
        frames.append(threshold_rgba(canvas, threshold))
    return frames


def upscale(frame, factor):
    """Repeat every cell factor times in both directions."""
    if factor < 1:
        raise ValueError(f"scale factor must be a positive integer, got {factor}")
    arr = np.asarray(frame)
    return np.repeat(np.repeat(arr, factor, axis=0), factor, axis=1)


def pad(frame, pad_x=0, pad_y=0):
    """Surround a frame with pad_x empty columns and pad_y empty rows on each side."""
    if pad_x < 0 or pad_y < 0:
        raise ValueError("padding must not be negative")
    return np.pad(np.asarray(frame), ((pad_y, pad_y), (pad_x, pad_x)), constant_values=0)


def prepare_frames(frames, scale=None, pad_x=0, pad_y=0):
    if not scale and not pad_x and not pad_y:
        return list(frames)
    prepared = []
    for frame in frames:
        arr = np.asarray(frame)
        if scale:
            arr = upscale(arr, scale)
        if pad_x or pad_y:
            arr = pad(arr, pad_x, pad_y)
        prepared.append(arr)
    return prepared


def write_frames(frames, output_path):
    """Write frames to a JSON file as nested lists of 0/1."""
    data = {'frames': [np.asarray(frame).astype(int).tolist() for frame in frames]}
    with open(output_path, 'w') as f:
        json.dump(data, f)
    print(f"Binary frames written to {output_path}")


def load_frames(path):
    """Read frames written by write_frames (a bare list of frames is accepted too)."""
    with open(path, 'r') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('frames')
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of frames")
    return [np.array(frame) for frame in data]
