import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from bump_covers import (
    BumpMember,
    DegenerateNeighborhood,
    EmptySet,
    OpenBall,
    OpenBox,
    RadialBumpFactory,
    RadialWeight,
    make_bump_factory,
)
from bump_covers.bumps import PROFILES


@pytest.mark.parametrize("profile", sorted(PROFILES))
def test_profiles_are_monotone_transitions(profile):
    f = PROFILES[profile]
    t = np.linspace(0.0, 1.0, 201)
    v = f(t)
    assert_allclose([v[0], v[-1]], [1.0, 0.0], atol=1e-12)
    assert np.all(np.diff(v) <= 1e-12)


def test_profile_values():
    t = np.array([0.25, 0.5])
    assert_allclose(PROFILES["linear"](t), [0.75, 0.5])
    assert_allclose(PROFILES["smooth"](np.array([0.5])), [0.5])
    assert_allclose(PROFILES["c2"](np.array([0.5])), [0.1875])


@pytest.mark.parametrize("profile", ["linear", "c2", "smooth"])
def test_radial_weight_plateau_and_support(profile):
    w = RadialWeight(center=np.array([0.0, 0.0]), inner_radius=0.2, radius=0.5, profile=profile)
    X = np.array([[0.0, 0.0], [0.2, 0.0], [0.0, 0.35], [0.5, 0.0], [0.4, 0.4]])
    v = w(X)
    assert_array_equal(v[:2], [1.0, 1.0])
    assert 0.0 < v[2] < 1.0
    assert_array_equal(v[3:], [0.0, 0.0])


def test_member_checks_weight_shape():
    m = BumpMember(center=[0.0], weight=lambda X: np.ones(X.shape[0] + 1))
    with pytest.raises(ValueError):
        m(np.array([0.0, 1.0]))
    assert not m.bounded


def test_make_fits_inside_target():
    factory = RadialBumpFactory(profile="linear")
    target = OpenBox(lower=[-1.0], upper=[0.5])
    m = factory.make(np.array([0.0]), target)
    assert m.radius == pytest.approx(0.95 * 0.5)
    assert m.inner_radius == pytest.approx(0.5 * m.radius)
    assert float(m(np.array([0.0]))[0]) == 1.0
    assert target.margin(m.center.reshape(1, -1))[0] > m.radius
    assert m.neighborhood is target


def test_exists_radius_reports_empty_targets():
    factory = RadialBumpFactory()
    assert factory.exists_radius(np.array([2.0]), OpenBall(center=[0.0], radius=1.0)) == pytest.approx(-1.0)
    assert factory.exists_radius(np.array([0.0]), EmptySet()) == -np.inf


def test_make_rejects_empty_and_unbounded_targets():
    factory = RadialBumpFactory()
    with pytest.raises(DegenerateNeighborhood) as info:
        factory.make(np.array([0.3]), EmptySet())
    assert_allclose(info.value.point, [0.3])
    assert info.value.radius == -np.inf
    from bump_covers import WholeSpace
    with pytest.raises(DegenerateNeighborhood):
        factory.make(np.array([0.0]), WholeSpace())


def test_restrict_radius_only_shrinks():
    factory = RadialBumpFactory(profile="c2")
    m = factory.make(np.array([0.0]), OpenBall(center=[0.0], radius=1.0))
    small = factory.restrict_radius(m, 0.5)
    assert small.radius == 0.5
    assert small.inner_radius == pytest.approx(m.inner_radius * 0.5 / m.radius)
    X = np.linspace(-1.0, 1.0, 101)
    assert np.all((small(X) == 0) | (m(X) > 0))
    custom = factory.restrict_radius(m, 0.5, inner_radius=0.4)
    assert custom.inner_radius == 0.4
    with pytest.raises(ValueError):
        factory.restrict_radius(m, 2.0)
    with pytest.raises(ValueError):
        factory.restrict_radius(m, 0.0)


def test_admissibility_predicate_rejects_members():
    factory = RadialBumpFactory(admissible=lambda m: m.radius < 0.1)
    with pytest.raises(DegenerateNeighborhood):
        factory.make(np.array([0.0]), OpenBall(center=[0.0], radius=1.0))
    ok = factory.make(np.array([0.0]), OpenBall(center=[0.0], radius=0.05))
    assert ok.radius < 0.1


def test_factory_parameter_checks():
    with pytest.raises(ValueError):
        RadialBumpFactory(fill=1.0)
    with pytest.raises(ValueError):
        RadialBumpFactory(inner_fraction=1.0)
    with pytest.raises(ValueError):
        RadialBumpFactory(profile="gaussian")


def test_make_bump_factory_aliases():
    assert make_bump_factory("wendland").profile == "c2"
    assert make_bump_factory("hat").profile == "linear"
    assert make_bump_factory("C_INF").profile == "smooth"
    with pytest.raises(ValueError):
        make_bump_factory("nope")
