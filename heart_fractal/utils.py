# heart_fractal/utils.py
import numpy as np


def clamp_channels(values) -> np.ndarray:
    """Clip to [0, 255] and cast to uint8. NaN becomes 0."""
    values = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(values, 0, 255).astype(np.uint8)
