import jax.numpy as jnp
import equinox as eqx

from typing import NamedTuple

from .constants import AVOGADRO_CONSTANT, BOLTZMANN_CONSTANT, GAS_CONSTANT
from .properties import TransportProperty, as_property


class Reference(NamedTuple):
    doi: str = ""
    short: str = ""


class BaseParam(eqx.Module):
    """
    Property identity, molar masses and fit bookkeeping of a parameter set.

    Attributes
    ----------
    prop : TransportProperty
        Transport property the parameter set describes.
    molar_mass : jnp.ndarray
        Molar mass of each component [kg/mol].
    n_data : int
        Number of data points used to fit the parameters (0 if not fitted).
    references : tuple of Reference
        Literature references of the fitted data, without duplicates.
    """

    prop: TransportProperty = eqx.field(static=True)
    molar_mass: jnp.ndarray
    n_data: int = eqx.field(static=True, default=0)
    references: tuple = eqx.field(static=True, default=())

    def __init__(self, prop, molar_mass, data=None):
        self.prop = as_property(prop)
        self.molar_mass = jnp.atleast_1d(jnp.asarray(molar_mass, dtype=jnp.float64))
        if data is None:
            self.n_data = 0
            self.references = ()
        else:
            self.n_data = data.n_data
            self.references = tuple(dict.fromkeys(data.ref))


def mean_molar_mass(base, z):
    """Mole-fraction averaged molar mass [kg/mol]."""
    z = jnp.asarray(z)
    return jnp.sum(base.molar_mass * z) / jnp.sum(z)


def plus_scaling_factor(prop, T, rho, s, molar_mass):
    r"""
    Factor converting a transport property into its plus-scaled form.

    The plus scaling is a Rosenfeld-type scaling with macroscopic reference values
    multiplied by :math:`(-s_\mathrm{conf}/R)^{2/3}`, which keeps the scaled
    property finite in the dilute-gas limit:

    .. math::
        Y^+ = \frac{Y}{Y_\mathrm{R}} \left(\frac{-s_\mathrm{conf}}{R}\right)^{2/3}

    with the reference values

    .. list-table::
        :widths: 40 60
        :header-rows: 1

        * - Property
          - :math:`Y_\mathrm{R}`
        * - Viscosity
          - :math:`\rho_N^{2/3} \sqrt{m k_B T}`
        * - Thermal conductivity
          - :math:`\rho_N^{2/3} k_B \sqrt{k_B T / m}`
        * - Diffusion coefficients
          - :math:`\rho_N^{-1/3} \sqrt{k_B T / m}`

    Parameters
    ----------
    prop : TransportProperty
        Transport property.
    T : float or array_like
        Temperature [K].
    rho : float or array_like
        Molar density [mol/m3].
    s : float or array_like
        Configurational molar entropy [J/(mol K)].
    molar_mass : float
        Molar mass [kg/mol].

    Returns
    -------
    jnp.ndarray
        Factor :math:`(-s/R)^{2/3} / Y_\mathrm{R}`.
    """
    m = molar_mass / AVOGADRO_CONSTANT
    rho_N = rho * AVOGADRO_CONSTANT
    kT = BOLTZMANN_CONSTANT * T
    if prop.is_diffusion:
        Y_ref = rho_N ** (-1 / 3) * jnp.sqrt(kT / m)
    elif prop is TransportProperty.VISCOSITY:
        Y_ref = rho_N ** (2 / 3) * jnp.sqrt(m * kT)
    else:
        Y_ref = rho_N ** (2 / 3) * BOLTZMANN_CONSTANT * jnp.sqrt(kT / m)
    return (-s / GAS_CONSTANT) ** (2 / 3) / Y_ref


def plus_scaling(base, Y, T, rho, s, z=None, inv=False):
    """
    Apply (``inv=False``) or undo (``inv=True``) the plus scaling of `Y`.

    The molar mass is the mole-fraction average of ``base.molar_mass`` at
    composition `z` (pure fluid if omitted).
    """
    z = jnp.ones(1) if z is None else jnp.atleast_1d(jnp.asarray(z))
    k = -1 if inv else 1
    factor = plus_scaling_factor(base.prop, T, rho, s, mean_molar_mass(base, z))
    return Y * factor**k
