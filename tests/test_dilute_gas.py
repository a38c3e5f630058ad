import pytest
import numpy as np
import jax
import jax.numpy as jnp
import jaxscaling as jxs

from scipy.optimize._numdiff import approx_derivative
from utilities import WATER_SIGMA, WATER_EPSILON, WATER_MOLAR_MASS, direct_params

P = jxs.TransportProperty


@pytest.fixture(scope="module")
def argon():
    return jxs.CoolPropEOS("Argon")


def test_correspondence_principle():
    Tc, pc = 150.687, 4.863e6
    sigma, epsilon = jxs.correspondence_principle(Tc, pc)
    assert float(epsilon) == pytest.approx(0.7915 * Tc, rel=1e-14)
    assert float(sigma) == pytest.approx(2.3551e-10 * (Tc / (pc / 101325.0)) ** (1 / 3), rel=1e-14)
    assert 3.3e-10 < float(sigma) < 3.6e-10


def test_collision_integrals_textbook():
    # Tabulated Lennard-Jones values (Hirschfelder, Curtiss and Bird)
    assert float(jxs.collision_integral_22(1.0)) == pytest.approx(1.587, rel=5e-3)
    assert float(jxs.collision_integral_11(1.0)) == pytest.approx(1.440, rel=5e-3)
    assert float(jxs.collision_integral_22(10.0)) == pytest.approx(0.8244, rel=5e-3)


def test_water_vapor_viscosity():
    eta = jxs.property_CE(P.VISCOSITY, 373.15, WATER_MOLAR_MASS, WATER_SIGMA, WATER_EPSILON)
    assert float(eta) == pytest.approx(1.32e-5, rel=2e-2)


def test_diffusion_inverse_density():
    D1 = jxs.property_CE(P.SELF_DIFFUSION, 300.0, 0.04, 3.4e-10, 120.0, rho=1.0)
    D2 = jxs.property_CE(P.SELF_DIFFUSION, 300.0, 0.04, 3.4e-10, 120.0, rho=40.0)
    assert float(D1 / D2) == pytest.approx(40.0, rel=1e-12)


def test_virial_entropy_coefficient_sign(argon):
    T = np.array([100.0, 200.0, 400.0, 800.0])
    B = argon.virial_entropy_coefficient(T)
    assert B.shape == T.shape
    assert np.all(B > 0)


@pytest.mark.parametrize("T", [100.0, 150.0, 250.0])
def test_virial_jvp_against_finite_differences(argon, T):
    grad = jax.grad(lambda TT: jxs.virial_entropy_coefficient(argon, TT, None))(T)
    fd = approx_derivative(lambda x: argon.virial_entropy_coefficient(x), np.array([T]), method="3-point")
    np.testing.assert_allclose(float(grad), fd.ravel()[0], rtol=1e-4, atol=1e-14)


@pytest.mark.parametrize("prop", list(P), ids=[p.value for p in P])
def test_dilute_plus_property_jit(argon, prop):
    T = jnp.linspace(100.0, 1000.0, 7)
    eager = jxs.property_CE_plus(prop, argon, T, 3.4e-10, 120.0)
    jitted = jax.jit(lambda TT: jxs.property_CE_plus(prop, argon, TT, 3.4e-10, 120.0))(T)
    assert np.all(np.isfinite(eager)) and np.all(eager > 0)
    np.testing.assert_allclose(jitted, eager, rtol=1e-12)


def test_wilke_identical_components():
    values = jnp.array([2.0e-5, 2.0e-5])
    mixed = jxs.wilke_mixing(values, jnp.array([0.04, 0.04]), jnp.array([0.3, 0.7]))
    assert float(mixed) == pytest.approx(2.0e-5, rel=1e-14)


def test_mix_rules():
    values = jnp.array([1.0, 3.0])
    z = jnp.array([1.0, 3.0])
    visc = direct_params(P.VISCOSITY, np.zeros((5, 2)), molar_mass=[0.016, 0.030])
    cond = direct_params(P.THERMAL_CONDUCTIVITY, np.zeros((5, 2)), molar_mass=[0.016, 0.030])
    assert float(jxs.mix_CE(cond.base, values, z)) == pytest.approx(2.5, rel=1e-14)
    expected = jxs.wilke_mixing(values, visc.base.molar_mass, z / 4.0)
    assert float(jxs.mix_CE(visc.base, values, z)) == pytest.approx(float(expected), rel=1e-14)
    single = direct_params(P.VISCOSITY, np.zeros((5, 1)))
    assert float(jxs.mix_CE(single.base, jnp.array([1.7]), jnp.ones(1))) == 1.7
