import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def sequential_matrix():
    """1..12 filled column by column into 3 rows."""
    return np.arange(1, 13, dtype=float).reshape((3, 4), order="F")


@pytest.fixture
def proportional_blocks():
    """Columns a,b roughly proportional and columns c,d roughly proportional."""
    rng = np.random.RandomState(0)
    n = 50
    a = np.arange(1, n + 1, dtype=float)
    c = a[::-1].copy()
    return pd.DataFrame({
        "a": a,
        "b": a * rng.normal(10, 0.1, n),
        "c": c,
        "d": c * rng.normal(10, 1.0, n),
    }, index=["sample_{}".format(i) for i in range(n)])


@pytest.fixture
def random_compositions():
    """Unrelated positive components."""
    rng = np.random.RandomState(42)
    return pd.DataFrame(
        rng.lognormal(mean=2.0, sigma=0.75, size=(30, 6)),
        columns=["otu_{}".format(j) for j in range(6)],
    )
