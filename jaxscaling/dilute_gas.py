import jax.numpy as jnp

from .base import mean_molar_mass, plus_scaling_factor
from .constants import ATMOSPHERE, AVOGADRO_CONSTANT, BOLTZMANN_CONSTANT, GAS_CONSTANT
from .eos import as_composition, composition_key, virial_entropy_coefficient
from .properties import TransportProperty, as_property


# ----------------------------------------------------------------------------- #
# Lennard-Jones parameters and collision integrals
# ----------------------------------------------------------------------------- #

def correspondence_principle(Tc, pc):
    """
    Lennard-Jones size and energy parameters from the critical point.

    Method of Tee, Gotoh and Stewart (1966) for a vanishing acentric factor:

        epsilon / k_B = 0.7915 * Tc
        sigma = 2.3551 * (Tc / pc[atm])**(1/3)  [Angstrom]

    Parameters
    ----------
    Tc : float or array_like
        Critical temperature [K].
    pc : float or array_like
        Critical pressure [Pa].

    Returns
    -------
    tuple
        sigma [m] and epsilon / k_B [K].
    """
    Tc = jnp.asarray(Tc, dtype=jnp.float64)
    pc_atm = jnp.asarray(pc, dtype=jnp.float64) / ATMOSPHERE
    sigma = 2.3551e-10 * (Tc / pc_atm) ** (1 / 3)
    epsilon = 0.7915 * Tc
    return sigma, epsilon


def collision_integral_22(T_star):
    """Reduced collision integral Omega(2,2)* (Neufeld et al., 1972)."""
    return (
        1.16145 * T_star ** (-0.14874)
        + 0.52487 * jnp.exp(-0.77320 * T_star)
        + 2.16178 * jnp.exp(-2.43787 * T_star)
    )


def collision_integral_11(T_star):
    """Reduced collision integral Omega(1,1)* (Neufeld et al., 1972)."""
    return (
        1.06036 / T_star**0.15610
        + 0.19300 * jnp.exp(-0.47635 * T_star)
        + 1.03587 * jnp.exp(-1.52996 * T_star)
        + 1.76474 * jnp.exp(-3.89411 * T_star)
    )


# ----------------------------------------------------------------------------- #
# Chapman-Enskog transport properties
# ----------------------------------------------------------------------------- #

def property_CE(prop, T, molar_mass, sigma, epsilon, rho=1.0):
    r"""
    First-order Chapman-Enskog transport property of a Lennard-Jones gas.

    .. list-table::
        :widths: 40 60
        :header-rows: 1

        * - Property
          - Expression
        * - Viscosity
          - :math:`\frac{5}{16} \frac{\sqrt{m k_B T / \pi}}{\sigma^2 \Omega^{(2,2)*}}`
        * - Thermal conductivity
          - :math:`\frac{75}{64} k_B \frac{\sqrt{k_B T / (\pi m)}}{\sigma^2 \Omega^{(2,2)*}}`
        * - Diffusion coefficient
          - :math:`\frac{3}{8} \frac{\sqrt{k_B T / (\pi m)}}{\rho_N \sigma^2 \Omega^{(1,1)*}}`

    The thermal conductivity is the monatomic (translational) contribution.
    Diffusion coefficients scale with the inverse density and are evaluated at
    molar density `rho` [mol/m3].
    """
    prop = as_property(prop)
    m = molar_mass / AVOGADRO_CONSTANT
    kT = BOLTZMANN_CONSTANT * T
    T_star = T / epsilon
    if prop is TransportProperty.VISCOSITY:
        return 5 / 16 * jnp.sqrt(m * kT / jnp.pi) / (sigma**2 * collision_integral_22(T_star))
    elif prop is TransportProperty.THERMAL_CONDUCTIVITY:
        return (
            75 / 64 * BOLTZMANN_CONSTANT * jnp.sqrt(kT / (jnp.pi * m))
            / (sigma**2 * collision_integral_22(T_star))
        )
    rho_N = rho * AVOGADRO_CONSTANT
    return 3 / 8 * jnp.sqrt(kT / (jnp.pi * m)) / (rho_N * sigma**2 * collision_integral_11(T_star))


def _dilute_entropy(eos, T, z):
    """Configurational molar entropy at unit molar density in the dilute-gas limit."""
    return -GAS_CONSTANT * virial_entropy_coefficient(eos, T, composition_key(z))


def property_CE_plus(prop, eos, T, sigma, epsilon, z=None, molar_mass=None):
    """
    Dilute-gas limit of the plus-scaled transport property.

    The Chapman-Enskog value is plus-scaled at unit molar density with the
    configurational entropy -R (B + T dB/dT), which is the exact zero-density
    limit because all density dependencies cancel.

    Parameters
    ----------
    prop : TransportProperty
        Transport property.
    eos : CoolPropEOS
        Equation of state providing the second virial coefficient.
    T : float or array_like
        Temperature [K].
    sigma, epsilon : float
        Lennard-Jones size [m] and energy [K] parameters.
    z : array_like, optional
        Composition (pure fluid if omitted).
    molar_mass : float, optional
        Molar mass [kg/mol], by default the mole-fraction average of `eos`.
    """
    prop = as_property(prop)
    if molar_mass is None:
        zc = as_composition(z, len(eos))
        molar_mass = jnp.sum(jnp.asarray(eos.molar_mass) * zc) / jnp.sum(zc)
    Y0 = property_CE(prop, T, molar_mass, sigma, epsilon, rho=1.0)
    s = _dilute_entropy(eos, T, z)
    return Y0 * plus_scaling_factor(prop, T, 1.0, s, molar_mass)


def property_CE_plus_MS(base, eos, T, sigma, epsilon, z):
    """
    Dilute-gas limit of the plus-scaled Maxwell-Stefan diffusion coefficient.

    The kinetic term uses the pair molar mass 2 M1 M2 / (M1 + M2) of the binary
    while the plus scaling uses the mixture molar mass at composition `z`.
    """
    M1, M2 = base.molar_mass[0], base.molar_mass[1]
    M_pair = 2 * M1 * M2 / (M1 + M2)
    M_mix = mean_molar_mass(base, z)
    D0 = property_CE(TransportProperty.INF_DIFFUSION, T, M_pair, sigma, epsilon, rho=1.0)
    s = _dilute_entropy(eos, T, z)
    return D0 * plus_scaling_factor(TransportProperty.INF_DIFFUSION, T, 1.0, s, M_mix)


# ----------------------------------------------------------------------------- #
# Mixing rules
# ----------------------------------------------------------------------------- #

def wilke_mixing(values, molar_mass, z):
    r"""
    Wilke's mixing rule.

    .. math::
        Y_\mathrm{mix} = \sum_i \frac{z_i Y_i}{\sum_j z_j \phi_{ij}}, \qquad
        \phi_{ij} = \frac{\left[1 + (Y_i/Y_j)^{1/2} (M_j/M_i)^{1/4}\right]^2}
                         {\left[8 (1 + M_i/M_j)\right]^{1/2}}

    `values` holds the component values along the first axis; trailing axes
    are broadcast.
    """
    Y = jnp.asarray(values)
    extra = (1,) * (Y.ndim - 1)
    M = jnp.asarray(molar_mass).reshape((-1,) + extra)
    z = jnp.asarray(z).reshape((-1,) + extra)
    Yi, Yj = Y[:, None], Y[None, :]
    Mi, Mj = M[:, None], M[None, :]
    phi = (1.0 + jnp.sqrt(Yi / Yj) * (Mj / Mi) ** 0.25) ** 2 / jnp.sqrt(8.0 * (1.0 + Mi / Mj))
    denominator = jnp.sum(z[None, :] * phi, axis=1)
    return jnp.sum(z * Y / denominator, axis=0)


def mix_CE(base, values, z):
    """
    Mix per-component dilute-gas values at composition `z`.

    Wilke's rule for viscosity, mole-fraction average for the other properties.
    A single component is returned unchanged.
    """
    values = jnp.asarray(values)
    if values.shape[0] == 1:
        return values[0]
    z = jnp.asarray(z)
    z = z / jnp.sum(z)
    if base.prop is TransportProperty.VISCOSITY:
        return wilke_mixing(values, base.molar_mass, z)
    return jnp.tensordot(z, values, axes=1)
