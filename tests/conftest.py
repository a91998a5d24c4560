import matplotlib

matplotlib.use('Agg')

import numpy as np
import pytest


@pytest.fixture
def full_frame():
    return np.full((16, 16, 16), 7, dtype=np.int32)


@pytest.fixture
def empty_frame():
    return np.zeros((16, 16, 16), dtype=np.int32)


@pytest.fixture
def line_frame():
    frame = np.zeros((16, 16, 16), dtype=np.int32)
    frame[:, 3, 5] = 4
    return frame


@pytest.fixture
def slab_frame():
    frame = np.zeros((16, 16, 16), dtype=np.int32)
    frame[7, :, :] = 3
    return frame


@pytest.fixture
def random_frame():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 4, size=(12, 9, 7)).astype(np.int32)
