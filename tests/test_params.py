import pytest
import numpy as np
import jaxscaling as jxs

from utilities import direct_params

P = jxs.TransportProperty


@pytest.fixture(scope="module")
def water():
    return jxs.CoolPropEOS("Water")


# ------------------------------------------------------------------------------------ #
# Shape validation
# ------------------------------------------------------------------------------------ #

def test_alpha0():
    np.testing.assert_array_equal(jxs.framework.alpha0_framework(P.VISCOSITY), np.zeros((5, 1)))
    np.testing.assert_array_equal(jxs.framework.alpha0_framework(P.INF_DIFFUSION), np.zeros((5, 1)))
    expected = np.zeros((5, 1))
    expected[0, 0] = 1.0
    np.testing.assert_array_equal(jxs.framework.alpha0_framework(P.THERMAL_CONDUCTIVITY), expected)


@pytest.mark.parametrize("shape", [(4, 1), (6, 1), (5,), (5, 2)], ids=str)
def test_direct_construction_invalid_alpha(shape):
    alpha = np.zeros(shape)
    with pytest.raises(jxs.ConfigurationError):
        jxs.FrameworkParams(
            alpha,
            np.ones(1),
            np.array([3.4e-10]),
            np.array([120.0]),
            np.array([0.2]),
            jxs.BaseParam(P.VISCOSITY, [0.04]),
        )


def test_direct_construction_invalid_lengths():
    with pytest.raises(jxs.ConfigurationError):
        jxs.FrameworkParams(
            np.zeros((5, 2)),
            np.ones(2),
            np.array([3.4e-10]),
            np.array([120.0, 130.0]),
            np.array([0.2, 0.3]),
            jxs.BaseParam(P.VISCOSITY, [0.04, 0.03]),
        )


@pytest.mark.parametrize("shape", [(4, 1), (5, 2)], ids=str)
def test_from_eos_invalid_alpha(water, shape):
    with pytest.raises(jxs.ConfigurationError):
        jxs.FrameworkParams.from_eos(P.VISCOSITY, water, np.zeros(shape))


def test_from_eos_published_parameters(water):
    alpha = np.array([[0.0], [0.1], [0.2], [0.3], [0.4]])
    param = jxs.FrameworkParams.from_eos(
        P.VISCOSITY, water, alpha, sigma=2.640e-10, epsilon=809.1, molar_mass=18.015e-3
    )
    assert param.prop is P.VISCOSITY
    np.testing.assert_array_equal(param.alpha, alpha)
    np.testing.assert_allclose(param.sigma, [2.640e-10])
    np.testing.assert_allclose(param.epsilon, [809.1])
    np.testing.assert_allclose(param.base.molar_mass, [18.015e-3])
    assert param.y0_plus_min.shape == (1,)
    assert float(param.y0_plus_min[0]) > 0


# ------------------------------------------------------------------------------------ #
# Dilute-gas reference initialisation
# ------------------------------------------------------------------------------------ #

def test_inf_diffusion_requires_pair(water):
    # Pure solvent without solute
    with pytest.raises(jxs.ConfigurationError):
        jxs.init_framework_model(water, P.INF_DIFFUSION)


def test_inf_diffusion_three_components():
    eos = jxs.CoolPropEOS("Methane&Ethane&Propane")
    with pytest.raises(jxs.ConfigurationError):
        jxs.init_framework_model(eos, P.INF_DIFFUSION)


def test_reference_minimum(water):
    sigma, epsilon, y0_plus_min = jxs.init_framework_model(water, P.VISCOSITY)
    Tc, pc = water.critical_point()
    sigma_cp, epsilon_cp = jxs.correspondence_principle(Tc, pc)
    np.testing.assert_allclose(sigma, [float(sigma_cp)], rtol=1e-14)
    np.testing.assert_allclose(epsilon, [float(epsilon_cp)], rtol=1e-14)

    # The stored value is the minimum over temperature
    T = np.linspace(0.5, 3.0, 40) * Tc
    values = jxs.property_CE_plus(P.VISCOSITY, water, T, sigma[0], epsilon[0])
    assert y0_plus_min[0] <= float(np.min(values)) * (1 + 1e-8)


def test_inf_diffusion_pair_parameters():
    solvent = jxs.CoolPropEOS("Methane")
    solute = jxs.CoolPropEOS("Ethane")
    sigma, epsilon, y0_plus_min = jxs.init_framework_model(solvent, P.INF_DIFFUSION, solute=solute)
    crit = [solvent.critical_point(), solute.critical_point()]
    s_cp, e_cp = jxs.correspondence_principle([c[0] for c in crit], [c[1] for c in crit])
    assert sigma.shape == epsilon.shape == y0_plus_min.shape == (1,)
    assert sigma[0] == pytest.approx(float(np.mean(s_cp)), rel=1e-14)
    assert epsilon[0] == pytest.approx(float(np.sqrt(e_cp[0] * e_cp[1])), rel=1e-14)


# ------------------------------------------------------------------------------------ #
# Binary diffusion merge
# ------------------------------------------------------------------------------------ #

@pytest.mark.parametrize("i", [0, 1])
def test_merge_diffusion_params(i):
    alpha_self = np.arange(10, dtype=float).reshape(5, 2)
    alpha_inf = -np.arange(10, dtype=float).reshape(5, 2) - 1.0
    param_self = direct_params(
        P.SELF_DIFFUSION,
        alpha_self,
        sigma=[3.0e-10, 3.1e-10],
        epsilon=[100.0, 110.0],
        y0_plus_min=[0.1, 0.2],
        molar_mass=[0.016, 0.030],
    )
    param_inf = direct_params(
        P.INF_DIFFUSION,
        alpha_inf,
        sigma=[4.0e-10, 4.1e-10],
        epsilon=[200.0, 210.0],
        y0_plus_min=[0.3, 0.4],
        molar_mass=[0.017, 0.031],
    )
    merged = jxs.merge_diffusion_params(param_self, param_inf, i)
    j = 1 - i

    assert merged.prop is P.SELF_DIFFUSION
    np.testing.assert_array_equal(merged.alpha[:, i], alpha_self[:, i])
    np.testing.assert_array_equal(merged.alpha[:, j], alpha_inf[:, j])
    for name in ("sigma", "epsilon", "y0_plus_min"):
        assert merged_value(merged, name, i) == merged_value(param_self, name, i)
        assert merged_value(merged, name, j) == merged_value(param_inf, name, j)
    assert float(merged.base.molar_mass[i]) == float(param_self.base.molar_mass[i])
    assert float(merged.base.molar_mass[j]) == float(param_inf.base.molar_mass[j])

    # Inputs are not modified
    np.testing.assert_array_equal(param_self.alpha, alpha_self)


def merged_value(param, name, i):
    return float(getattr(param, name)[i])


def test_reference_minimum_without_minimum():
    # The plus-scaled dilute-gas viscosity of ethane keeps decreasing with
    # temperature, so the search has no minimum to converge to
    with pytest.raises(jxs.ConvergenceError, match="T/Tc"):
        jxs.init_framework_model(jxs.CoolPropEOS("Ethane"), P.VISCOSITY)
