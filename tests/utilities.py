import numpy as np
import CoolProp.CoolProp as CP
import jaxscaling as jxs


# Published Lennard-Jones parameters of water
WATER_SIGMA = 2.640e-10
WATER_EPSILON = 809.1
WATER_MOLAR_MASS = 18.015e-3


def direct_params(prop, alpha, sigma=3.4e-10, epsilon=120.0, y0_plus_min=0.2, molar_mass=0.04):
    """
    Build a parameter set from all fields without touching an equation of state.

    Scalars are broadcast to the number of columns of `alpha`.
    """
    alpha = np.asarray(alpha, dtype=float)
    n = alpha.shape[1] if alpha.ndim == 2 else 1
    broadcast = lambda v: np.broadcast_to(np.asarray(v, dtype=float), (n,)).copy()
    return jxs.FrameworkParams(
        alpha,
        np.ones(n),
        broadcast(sigma),
        broadcast(epsilon),
        broadcast(y0_plus_min),
        jxs.BaseParam(prop, broadcast(molar_mass)),
    )


def reference_states(eos):
    """Single-phase (p, T) states of argon covering gas, liquid and supercritical fluid."""
    states = [
        (1e5, 300.0),
        (1e7, 300.0),
        (5e7, 300.0),
        (1e5, 200.0),
        (2e7, 200.0),
        (1e6, 100.0),
        (1e7, 100.0),
        (5e7, 100.0),
    ]
    p = np.array([s[0] for s in states])
    T = np.array([s[1] for s in states])
    rho = eos.molar_density(p, T)
    return p, T, rho


def coolprop_viscosity(fluid, p, T):
    """Reference viscosity [Pa s] from the CoolProp transport models."""
    return np.array([CP.PropsSI("V", "P", float(pp), "T", float(TT), fluid) for pp, TT in zip(p, T)])


def assert_relative_error(value, reference, tolerance, label=""):
    """Raise an informative AssertionError if the relative error exceeds `tolerance`."""
    value = np.asarray(value, dtype=float)
    reference = np.asarray(reference, dtype=float)
    rel_err = np.abs(value - reference) / np.abs(reference)
    if np.any(rel_err > tolerance):
        raise AssertionError(
            f"Inconsistency in {label}\n"
            f"  ref = {reference}\n"
            f"  new = {value}\n"
            f"  max rel_err = {np.max(rel_err):.2e} (tolerance {tolerance:.1e})"
        )
