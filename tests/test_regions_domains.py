import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from bump_covers import (
    BoxDomain,
    ClosedBall,
    EmptySet,
    FiniteDomain,
    FunctionSet,
    InvalidDomain,
    OpenBall,
    OpenBox,
    WholeSpace,
    circle_space,
    euclidean_space,
)


def test_open_ball_margin_and_contains():
    B = OpenBall(center=[0.0], radius=1.0)
    X = np.array([0.0, 0.5, 1.0, 2.0])
    assert_allclose(B.margin(X), [1.0, 0.5, 0.0, -1.0])
    assert_array_equal(B.contains(X), [True, True, False, False])


def test_open_box_margin():
    box = OpenBox(lower=[0.0, 0.0], upper=[1.0, 2.0])
    assert_allclose(box.margin(np.array([[0.5, 1.0], [0.1, 1.9], [2.0, 1.0]])), [0.5, 0.1, -1.0])
    with pytest.raises(ValueError):
        box.margin(np.zeros((1, 3)))


def test_intersection_takes_smallest_margin():
    both = OpenBall(center=[0.0], radius=1.0) & OpenBox(lower=[0.5], upper=[np.inf])
    assert_allclose(both.margin(np.array([0.75, 0.9])), [0.25, 0.1])
    triple = both & WholeSpace()
    assert len(triple.parts) == 3
    assert_allclose(triple.margin(np.array([0.75])), [0.25])


def test_trivial_sets():
    X = np.zeros((3, 2))
    assert np.all(WholeSpace().contains(X))
    assert not np.any(EmptySet().contains(X))


def test_function_set_checks_shape():
    ok = FunctionSet(lambda X: 1.0 - np.abs(X[:, 0]))
    assert_array_equal(ok.contains(np.array([0.0, 2.0])), [True, False])
    bad = FunctionSet(lambda X: np.ones(X.shape[0] + 1))
    with pytest.raises(ValueError):
        bad.margin(np.array([0.0]))


def test_closed_ball_inside_open_ball():
    V = ClosedBall(center=np.array([0.1]), radius=0.5)
    assert V.inside(OpenBall(center=[0.0], radius=0.7))
    assert not V.inside(OpenBall(center=[0.0], radius=0.6))
    assert_array_equal(V.contains(np.array([0.6, 0.61])), [True, False])


def test_finite_domain():
    space = euclidean_space(1)
    D = FiniteDomain([0.0, 1.0, 3.0])
    D.validate(space)
    assert D.net_spacing == 0.0
    assert D.extent(space) == 3.0
    assert_array_equal(D.contains(np.array([1.0, 2.0]), space), [True, False])
    assert_allclose(D.net(space, 0.5, 3.0)[:, 0], [1.0, 3.0])
    assert FiniteDomain(np.zeros((0, 1))).extent(space) == -np.inf
    with pytest.raises(InvalidDomain):
        FiniteDomain(np.zeros((2, 2))).validate(space)


def test_box_domain_validation():
    space = euclidean_space(1)
    with pytest.raises(ValueError):
        BoxDomain(1.0, 0.0)
    with pytest.raises(ValueError):
        BoxDomain(0.0, 1.0, spacing=0.0)
    with pytest.raises(InvalidDomain):
        BoxDomain(0.0, 1.0, closed=False).validate(space)
    with pytest.raises(InvalidDomain):
        BoxDomain([0.0, 0.0], [1.0, 1.0]).validate(space)
    with pytest.raises(InvalidDomain):
        BoxDomain(0.0, np.inf).validate(circle_space())


def test_box_net_is_dense(rng):
    space = euclidean_space(2)
    box = BoxDomain([0.0, -1.0], [1.3, 0.45], spacing=0.2)
    net = box.net(space, -np.inf, np.inf)
    assert np.all(box.contains(net, space))
    X = np.column_stack([rng.uniform(0.0, 1.3, 500), rng.uniform(-1.0, 0.45, 500)])
    d = space.distance(net, X).min(axis=0)
    assert np.all(d <= box.net_spacing + 1e-12)


def test_box_net_corners_included():
    space = euclidean_space(1)
    net = BoxDomain(0.0, 1.05, spacing=0.1).net(space, -np.inf, np.inf)[:, 0]
    assert net.min() == 0.0
    assert net.max() == 1.05


def test_unbounded_box_nets_by_band():
    space = euclidean_space(1)
    box = BoxDomain(0.0, np.inf, spacing=0.5)
    assert not box.bounded
    assert box.extent(space) == np.inf
    band = box.net(space, 2.0, 3.0)[:, 0]
    assert_allclose(band, [2.5, 3.0])
    whole_line = BoxDomain(-np.inf, np.inf, spacing=1.0)
    assert_allclose(np.sort(whole_line.net(space, -np.inf, 2.0)[:, 0]), [-2.0, -1.0, 0.0, 1.0, 2.0])


def test_box_net_guard():
    space = euclidean_space(3)
    box = BoxDomain([0.0] * 3, [1000.0] * 3, spacing=0.1)
    with pytest.raises(ValueError):
        box.net(space, -np.inf, np.inf)
