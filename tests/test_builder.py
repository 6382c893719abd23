import logging

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from bump_covers import (
    AmbientSpace,
    BoxDomain,
    CoveringBuilder,
    CoveringConfig,
    DegenerateNeighborhood,
    EmptySet,
    FiniteDomain,
    InvalidDomain,
    NoCoveringPossible,
    NotShrinkable,
    OpenBall,
    OpenBox,
    RadialBumpFactory,
    build_bump_covering,
    euclidean_space,
)


def test_config_checks():
    assert CoveringConfig(max_radius=0.25).width == 0.5
    assert CoveringConfig(stage_width=3.0).width == 3.0
    with pytest.raises(ValueError):
        CoveringConfig(max_radius=0.0)
    with pytest.raises(ValueError):
        CoveringConfig(plateau_fraction=0.7, support_fraction=0.6)
    with pytest.raises(ValueError):
        CoveringConfig(stage_width=-1.0)


def test_interval_covering_is_finite(interval_covering):
    assert interval_covering.is_finite
    assert len(interval_covering) == interval_covering.n_materialized > 1
    assert len(list(interval_covering)) == len(interval_covering)


def test_members_satisfy_local_invariants(interval_covering):
    for m in interval_covering:
        assert np.isfinite(m.radius)
        assert 0.0 < m.inner_radius < m.radius <= 0.3
        assert float(m(m.center.reshape(1, -1))[0]) == 1.0
        assert m.neighborhood.margin(m.center.reshape(1, -1))[0] > m.radius
    assert np.all(interval_covering.check_centers())


def test_every_domain_point_is_covered(interval_covering):
    X = np.linspace(0.0, 1.0, 2001)
    assert np.all(interval_covering.check_coverage(X))


def test_local_finiteness(interval_covering):
    n = len(interval_covering)
    for x in np.linspace(-0.5, 1.5, 21):
        F = interval_covering.local_indices(np.array([x]), eps=0.05)
        assert len(F) < n
        for i in range(n):
            if i in F:
                continue
            probe = x + np.linspace(-0.05, 0.05, 11)
            assert np.all(interval_covering[i](probe) == 0.0)


def test_active_indices_match_weights(interval_covering):
    x = np.array([0.37])
    active = interval_covering.active_indices(x)
    assert active == sorted(active)
    for i, m in enumerate(interval_covering):
        assert (i in active) == bool(m(x)[0] != 0.0)
    with pytest.raises(ValueError):
        interval_covering.active_indices(np.array([0.1, 0.2]))


def test_subordinate_to_pointwise_neighborhoods(line, unit_interval):
    cov = build_bump_covering(line, unit_interval, lambda x: OpenBall(center=x, radius=0.2), max_radius=0.3)
    for m in cov:
        assert m.radius < 0.2
        assert m.neighborhood.margin(m.center.reshape(1, -1))[0] > m.radius
    assert np.all(cov.check_coverage(np.linspace(0.0, 1.0, 501)))


def test_subordinate_to_constant_open_set(line, unit_interval):
    U = OpenBox(lower=[-0.05], upper=[1.5])
    cov = build_bump_covering(line, unit_interval, U, max_radius=0.3)
    for m in cov:
        assert U.margin(m.center.reshape(1, -1))[0] > m.radius
    assert np.all(cov.check_coverage(np.linspace(0.0, 1.0, 501)))


def test_square_covering(square_covering, rng):
    X = rng.uniform(0.0, 1.0, size=(2000, 2))
    assert np.all(square_covering.check_coverage(X))
    assert all(m.radius <= 0.4 for m in square_covering)


def test_circle_covering_wraps(circle_covering):
    assert circle_covering.space.compact
    X = np.linspace(0.0, 2.0 * np.pi - 0.05, 400)
    assert np.all(circle_covering.check_coverage(X))


def test_finite_domain(line):
    pts = np.array([0.0, 0.05, 3.0, 7.5])
    cov = build_bump_covering(line, FiniteDomain(pts), max_radius=1.0)
    assert cov.is_finite
    assert np.all(cov.check_coverage(pts))
    assert len(cov) == 3


def test_empty_domain_gives_empty_covering(line):
    cov = build_bump_covering(line, FiniteDomain(np.zeros((0, 1))))
    assert cov.is_finite
    assert len(cov) == 0
    idx, W = cov.weight_matrix(np.linspace(-1.0, 1.0, 5))
    assert idx.size == 0
    assert W.shape == (0, 5)


def test_lazy_covering_of_half_line(half_line_covering):
    cov = half_line_covering
    assert not cov.is_finite
    assert cov.n_materialized == 0
    with pytest.raises(TypeError):
        len(cov)
    X = np.array([0.0, 4.99, 20.3])
    assert np.all(cov.check_coverage(X))
    n = cov.n_materialized
    assert 0 < n < 100
    assert all(m.radius <= 0.5 for m in cov.members)

    cov.check_coverage(np.array([1.0]))
    assert cov.n_materialized == n

    assert cov[n + 5].center[0] > 20.0
    first = [m for _, m in zip(range(3), cov)]
    assert len(first) == 3
    assert first[0] is cov[0]


def test_lazy_covering_of_whole_line(line):
    cov = build_bump_covering(line, BoxDomain(-np.inf, np.inf, spacing=0.2), max_radius=0.75)
    X = np.array([-9.1, -0.3, 0.0, 6.6])
    assert np.all(cov.check_coverage(X))
    assert np.all(cov.check_centers())


def test_lazy_local_indices_are_finite(half_line_covering):
    F = half_line_covering.local_indices(np.array([10.0]), eps=0.5)
    assert 0 < len(F) < half_line_covering.n_materialized
    for i in F:
        m = half_line_covering[i]
        assert abs(m.center[0] - 10.0) < m.radius + 0.5


def test_not_locally_compact_space_fails_without_result(unit_interval):
    space = AmbientSpace(dim=1, locally_compact=False, name="Q")
    with pytest.raises(NoCoveringPossible, match="locally_compact"):
        CoveringBuilder(space).build(unit_interval)


def test_not_sigma_compact_space_fails(unit_interval):
    with pytest.raises(NoCoveringPossible):
        build_bump_covering(AmbientSpace(dim=1, sigma_compact=False), unit_interval)


def test_non_normal_space_is_not_shrinkable(unit_interval):
    with pytest.raises(NotShrinkable):
        build_bump_covering(AmbientSpace(dim=1, normal=False), unit_interval)


def test_invalid_domains(line):
    with pytest.raises(InvalidDomain):
        build_bump_covering(line, BoxDomain(0.0, 1.0, closed=False))
    with pytest.raises(InvalidDomain):
        build_bump_covering(line, np.linspace(0.0, 1.0, 5))
    with pytest.raises(InvalidDomain):
        build_bump_covering(euclidean_space(2), BoxDomain(0.0, 1.0))


def test_empty_neighborhood_is_degenerate(line, unit_interval):
    with pytest.raises(DegenerateNeighborhood) as info:
        build_bump_covering(line, unit_interval, EmptySet())
    assert_array_equal(info.value.point, [0.0])
    assert info.value.radius == -np.inf


def test_neighborhood_below_net_resolution_is_degenerate(line, unit_interval):
    with pytest.raises(DegenerateNeighborhood) as info:
        build_bump_covering(line, unit_interval, lambda x: OpenBall(center=x, radius=0.02))
    assert 0.0 < info.value.radius <= unit_interval.net_spacing


def test_neighborhood_shrinking_to_nothing_is_degenerate(line, unit_interval):
    with pytest.raises(DegenerateNeighborhood):
        build_bump_covering(line, unit_interval, OpenBox(lower=[-1.0], upper=[0.5]))


def test_config_and_kwargs_are_exclusive(line, unit_interval):
    with pytest.raises(TypeError):
        build_bump_covering(line, unit_interval, config=CoveringConfig(), max_radius=0.5)


def test_custom_factory_profile(line, unit_interval):
    factory = RadialBumpFactory(metric=line.metric, profile="linear")
    cov = CoveringBuilder(line, factory=factory, config=CoveringConfig(max_radius=0.3)).build(unit_interval)
    assert np.all(cov.check_coverage(np.linspace(0.0, 1.0, 301)))


def test_builder_logs_result(line, unit_interval, caplog):
    with caplog.at_level(logging.INFO, logger="bump_covers"):
        build_bump_covering(line, unit_interval, max_radius=0.3)
    assert "Built BumpCovering" in caplog.text


def test_records_rebuild_the_same_weights(interval_covering, line):
    recs = interval_covering.to_records()
    assert [r["index"] for r in recs] == list(range(len(interval_covering)))
    factory = RadialBumpFactory(metric=line.metric)
    rebuilt = type(interval_covering).from_records(recs[::-1], factory, domain=interval_covering.domain, space=line)
    X = np.linspace(-0.2, 1.2, 141)
    _, W0 = interval_covering.weight_matrix(X)
    _, W1 = rebuilt.weight_matrix(X)
    np.testing.assert_allclose(W1, W0)


def test_records_of_lazy_covering_need_a_count(half_line_covering):
    with pytest.raises(ValueError):
        half_line_covering.to_records()
    assert len(half_line_covering.to_records(n=4)) == 4


def test_nerve_edges_are_canonical(interval_covering):
    X = np.linspace(0.0, 1.0, 501)
    edges = interval_covering.nerve_edges(X)
    assert edges
    assert all(i < j for i, j in edges)
    tris = interval_covering.nerve_triangles(X)
    assert all(i < j < k for i, j, k in tris)


def test_open_cover_arrays_are_reused_between_members(half_line_covering):
    stream = half_line_covering._stream
    half_line_covering.check_coverage(np.array([3.0]))
    centers, radii, stages = stream._open_arrays()
    assert centers.shape == (stream.n_open, 1)
    assert radii.shape == stages.shape == (stream.n_open,)
    assert stream._open_arrays()[0] is centers

    n_open = stream.n_open
    while stream.n_open == n_open:
        half_line_covering[half_line_covering.n_materialized]
    assert stream._open_arrays()[0].shape[0] == stream.n_open
