import numpy as np
import pytest

from bump_covers import (
    BoxDomain,
    CoveringConfig,
    build_bump_covering,
    circle_space,
    euclidean_space,
    normalize,
)


@pytest.fixture(scope="session")
def line():
    return euclidean_space(1)


@pytest.fixture(scope="session")
def plane():
    return euclidean_space(2)


@pytest.fixture(scope="session")
def unit_interval():
    return BoxDomain(0.0, 1.0, spacing=0.05)


@pytest.fixture(scope="session")
def interval_covering(line, unit_interval):
    return build_bump_covering(line, unit_interval, max_radius=0.3)


@pytest.fixture(scope="session")
def interval_partition(interval_covering):
    return normalize(interval_covering)


@pytest.fixture(scope="session")
def square_covering(plane):
    domain = BoxDomain([0.0, 0.0], [1.0, 1.0], spacing=0.1)
    return build_bump_covering(plane, domain, config=CoveringConfig(max_radius=0.4))


@pytest.fixture(scope="session")
def circle_covering():
    S1 = circle_space()
    domain = BoxDomain(0.0, 2.0 * np.pi - 0.05, spacing=0.05)
    return build_bump_covering(S1, domain, max_radius=0.5)


@pytest.fixture()
def half_line_covering(line):
    return build_bump_covering(line, BoxDomain(0.0, np.inf, spacing=0.1), max_radius=0.5)


@pytest.fixture()
def rng():
    return np.random.default_rng(0)
