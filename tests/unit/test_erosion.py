from __future__ import annotations

import numpy as np
import pytest

from pixloc.matching import Landmark, erode_template


def test_erode_clears_disagreeing_pixels() -> None:
    template = np.zeros((2, 3, 4), dtype=np.uint8)
    template[..., :3] = 50
    template[..., 3] = 255
    observed = np.full((4, 5, 3), 50, dtype=np.uint8)
    observed[1, 2] = (0, 0, 0)

    assert erode_template(template, observed)
    assert template[1, 2, 3] == 0
    assert len(Landmark.from_image(template)) == 5
    assert not erode_template(template, observed)


def test_erode_requires_large_enough_region() -> None:
    template = np.zeros((3, 3, 4), dtype=np.uint8)

    with pytest.raises(ValueError):
        erode_template(template, np.zeros((2, 3, 3), dtype=np.uint8))
