from __future__ import annotations

import numpy as np


def erode_template(template: np.ndarray, observed: np.ndarray) -> bool:
    """
    Make template pixels transparent where they disagree with an observed crop.

    ``template`` is an (H, W, 4) RGBA array modified in place, ``observed``
    the captured region the landmark matched on (at least the template size,
    RGB or RGBA). Returns whether any pixel was cleared.
    """
    if template.ndim != 3 or template.shape[2] != 4:
        raise ValueError("template must be an (H, W, 4) RGBA image")
    height, width = template.shape[:2]
    if observed.shape[0] < height or observed.shape[1] < width:
        raise ValueError("observed region is smaller than the template")

    crop = observed[:height, :width, :3]
    differs = np.any(template[:, :, :3] != crop, axis=2) & (template[:, :, 3] != 0)
    if not differs.any():
        return False
    template[differs] = 0
    return True
