import numpy as np
import pytest
from numpy.testing import assert_allclose

from bump_covers import (
    AmbientSpace,
    BoxDomain,
    NotShrinkable,
    OpenBall,
    ShrinkingRefiner,
    euclidean_space,
    shrink_cover,
)


def test_two_ball_example():
    space = euclidean_space(1)
    S = np.array([0.0, 0.25, 0.5, 0.75, 1.0])
    cover = [OpenBall(center=[0.0], radius=0.7), OpenBall(center=[1.0], radius=0.7)]
    V = shrink_cover(space, S, cover)
    assert_allclose([v.radius for v in V], [0.25, 0.5])


def test_shrunk_sets_cover_and_fit(rng):
    space = euclidean_space(2)
    S = rng.uniform(0.0, 1.0, size=(300, 2))
    centers = np.array([[x, y] for x in (0.0, 0.5, 1.0) for y in (0.0, 0.5, 1.0)])
    cover = [OpenBall(center=c, radius=0.45) for c in centers]
    V = shrink_cover(space, S, cover)

    for v, b in zip(V, cover):
        assert v.inside(b)
    inside = np.zeros(S.shape[0], dtype=bool)
    for v in V:
        inside |= v.contains(S)
    assert np.all(inside)


def test_shrink_cover_of_domain_uses_net_margin():
    space = euclidean_space(1)
    D = BoxDomain(0.0, 1.0, spacing=0.1)
    cover = [OpenBall(center=[0.0], radius=0.7), OpenBall(center=[1.0], radius=0.7)]
    V = shrink_cover(space, D, cover)
    X = np.linspace(0.0, 1.0, 1000)
    inside = V[0].contains(X) | V[1].contains(X)
    assert np.all(inside)


def test_redundant_member_shrinks_to_its_center():
    space = euclidean_space(1)
    S = np.array([0.0, 0.5, 1.0])
    cover = [OpenBall(center=[0.5], radius=0.2), OpenBall(center=[0.5], radius=1.0)]
    V = shrink_cover(space, S, cover)
    assert V[0].radius == 0.0
    assert V[1].radius == 0.5


def test_uncovered_set_is_rejected():
    space = euclidean_space(1)
    with pytest.raises(ValueError):
        shrink_cover(space, np.array([0.0, 2.0]), [OpenBall(center=[0.0], radius=1.0)])
    with pytest.raises(ValueError):
        shrink_cover(space, np.array([0.0]), [])
    assert shrink_cover(space, np.zeros((0, 1)), []) == []


def test_non_normal_space_is_not_shrinkable():
    space = AmbientSpace(dim=1, normal=False)
    with pytest.raises(NotShrinkable):
        ShrinkingRefiner(space)
    with pytest.raises(NotShrinkable):
        shrink_cover(space, np.array([0.0]), [OpenBall(center=[0.0], radius=1.0)])


def test_refiner_tracks_processed_members():
    space = euclidean_space(1)
    refiner = ShrinkingRefiner(space, margin=0.0)
    net = np.array([[0.0], [1.0]])
    idx = np.array([0, 1])
    C = np.array([[0.0], [1.0]])
    R = np.array([0.6, 0.6])
    refiner.shrink_next(C[0], 0.6, net, idx, C, R)
    refiner.shrink_next(C[1], 0.6, net, idx, C, R)
    assert refiner.n_shrunk == 2
    assert_allclose(refiner.shrunk_radii, [0.0, 0.0])


def test_refiner_shrink_needs_a_fresh_refiner():
    space = euclidean_space(1)
    refiner = ShrinkingRefiner(space)
    cover = [OpenBall(center=[0.0], radius=0.7), OpenBall(center=[1.0], radius=0.7)]
    V = refiner.shrink(np.array([0.0, 0.25, 0.5, 0.75, 1.0]), cover)
    assert_allclose([v.radius for v in V], [0.25, 0.5])
    with pytest.raises(ValueError):
        refiner.shrink(np.array([0.0]), cover)
