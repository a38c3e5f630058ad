import numpy as np
import jax
import jax.numpy as jnp
import CoolProp.CoolProp as CP

from functools import partial

from .constants import GAS_CONSTANT
from .exceptions import ConfigurationError


# Phase hints accepted by the density solver
PHASE_INDEX = {
    "unknown": CP.iphase_not_imposed,
    "liquid": CP.iphase_liquid,
    "gas": CP.iphase_gas,
    "supercritical": CP.iphase_supercritical,
    "supercritical_liquid": CP.iphase_supercritical_liquid,
    "supercritical_gas": CP.iphase_supercritical_gas,
}

# Density used to evaluate the zero-density limit, relative to the reducing density
DILUTE_DELTA = 1e-8


class CoolPropEOS:
    r"""
    Equation of state backed by a CoolProp ``AbstractState``.

    This is the thermodynamic collaborator of the entropy scaling models. It wraps
    a pure fluid or a mixture and exposes the small set of quantities the models
    need: component information, critical points, the molar density from pressure
    and temperature, the configurational (residual) entropy and its dilute-gas
    limit.

    The configurational entropy is evaluated from the residual Helmholtz energy
    :math:`\alpha^r(\delta, \tau)`:

    .. math::
        \frac{s_\mathrm{conf}}{R} = \tau \, \alpha^r_{\tau} - \alpha^r

    and its zero-density limit defines the virial entropy coefficient

    .. math::
        -\lim_{\rho \to 0} \frac{s_\mathrm{conf}}{R \rho}
        = B + T \frac{\mathrm{d}B}{\mathrm{d}T}
        = \frac{\alpha^r_{\delta} - \tau \, \alpha^r_{\delta\tau}}{\rho_r}

    Parameters
    ----------
    components : str or sequence of str
        CoolProp fluid name(s).
    backend : str, optional
        CoolProp backend, by default "HEOS".
    """

    def __init__(self, components, backend="HEOS"):
        if isinstance(components, str):
            components = components.split("&")
        self.components = tuple(components)
        self.backend = backend
        self.abstract_state = CP.AbstractState(backend, "&".join(self.components))
        self.molar_mass = np.array(
            [CP.AbstractState(backend, name).molar_mass() for name in self.components]
        )
        self.segment_number = np.ones(len(self.components))
        self._pure_models = None

    def __len__(self):
        return len(self.components)

    def __repr__(self):
        return f"CoolPropEOS({'&'.join(self.components)!r}, backend={self.backend!r})"

    def split(self):
        """Return one pure-component equation of state per component."""
        if len(self) == 1:
            return [self]
        if self._pure_models is None:
            self._pure_models = [CoolPropEOS(name, self.backend) for name in self.components]
        return list(self._pure_models)

    def critical_point(self):
        """Return the critical temperature [K] and pressure [Pa] of a pure fluid."""
        if len(self) != 1:
            raise ConfigurationError(
                f"Critical point requested for a mixture of {len(self)} components."
            )
        AS = self.abstract_state
        return AS.T_critical(), AS.p_critical()

    def _set_composition(self, z):
        if len(self) == 1:
            return
        if z is None:
            raise ConfigurationError(f"Composition required for mixture {self!r}.")
        z = np.asarray(z, dtype=float).ravel()
        if z.size != len(self):
            raise ConfigurationError(
                f"Composition has {z.size} entries, but {self!r} has {len(self)} components."
            )
        self.abstract_state.set_mole_fractions(list(z / z.sum()))

    def molar_density(self, p, T, z=None, phase="unknown"):
        """
        Molar density [mol/m3] at pressure `p` [Pa] and temperature `T` [K].

        Accepts scalars or arrays (evaluated elementwise). The optional `phase`
        hint is imposed on CoolProp to select the liquid or vapor root.
        """
        if phase not in PHASE_INDEX:
            raise ConfigurationError(
                f"Unknown phase hint '{phase}'. Valid options: {list(PHASE_INDEX)}"
            )
        AS = self.abstract_state
        self._set_composition(z)
        p, T = np.broadcast_arrays(np.asarray(p, dtype=float), np.asarray(T, dtype=float))
        rho = np.empty(p.shape)
        try:
            AS.specify_phase(PHASE_INDEX[phase])
            for i in np.ndindex(p.shape):
                AS.update(CP.PT_INPUTS, float(p[i]), float(T[i]))
                rho[i] = AS.rhomolar()
        finally:
            AS.unspecify_phase()
        return rho[()] if rho.ndim == 0 else rho

    def entropy_conf(self, rho, T, z=None):
        """Configurational (residual) molar entropy [J/(mol K)] at molar density `rho` and `T`."""
        AS = self.abstract_state
        self._set_composition(z)
        rho, T = np.broadcast_arrays(np.asarray(rho, dtype=float), np.asarray(T, dtype=float))
        s = np.empty(rho.shape)
        for i in np.ndindex(rho.shape):
            AS.update(CP.DmolarT_INPUTS, float(rho[i]), float(T[i]))
            tau = AS.T_reducing() / float(T[i])
            s[i] = GAS_CONSTANT * (tau * AS.dalphar_dTau() - AS.alphar())
        return s[()] if s.ndim == 0 else s

    def virial_entropy_coefficient(self, T, z=None):
        """Zero-density limit of -s_conf / (R rho), i.e. B + T dB/dT [m3/mol]."""
        AS = self.abstract_state
        self._set_composition(z)
        T = np.asarray(T, dtype=float)
        out = np.empty(T.shape)
        try:
            AS.specify_phase(CP.iphase_gas)
            for i in np.ndindex(T.shape):
                rho_r = AS.rhomolar_reducing()
                AS.update(CP.DmolarT_INPUTS, DILUTE_DELTA * rho_r, float(T[i]))
                tau = AS.T_reducing() / float(T[i])
                out[i] = (AS.dalphar_dDelta() - tau * AS.d2alphar_dDelta_dTau()) / rho_r
        finally:
            AS.unspecify_phase()
        return out


# ----------------------------------------------------------------------------- #
# JAX-callable wrapper around the host-side CoolProp evaluation
# ----------------------------------------------------------------------------- #

def _host_virial(eos, T, z):
    """Host-side evaluation returning a float64 array shaped like `T`."""
    return np.asarray(eos.virial_entropy_coefficient(np.asarray(T), z), dtype=np.float64)


def _virial_callback(eos, T, z):
    template = jax.ShapeDtypeStruct(jnp.shape(T), jnp.float64)
    return jax.pure_callback(
        lambda TT: _host_virial(eos, TT, z), template, T, vmap_method="broadcast_all"
    )


@partial(jax.custom_jvp, nondiff_argnums=(0, 2))
def virial_entropy_coefficient(eos, T, z):
    """
    JAX-callable virial entropy coefficient B + T dB/dT of `eos` at temperature `T`.

    Internally calls CoolProp through a host callback, so it can be used inside
    jit-compiled code. A custom JVP rule provides central finite-difference
    derivatives with respect to `T`. The composition `z` must be hashable
    (tuple of floats or None).
    """
    T = jnp.asarray(T, dtype=jnp.float64)
    return _virial_callback(eos, T, z)


@virial_entropy_coefficient.defjvp
def _virial_entropy_coefficient_jvp(eos, z, primals, tangents):
    (T,) = primals
    (T_dot,) = tangents
    T = jnp.asarray(T, dtype=jnp.float64)
    eps = 1e-6 * (jnp.abs(T) + 1.0)
    base = _virial_callback(eos, T, z)
    plus = _virial_callback(eos, T + eps, z)
    minus = _virial_callback(eos, T - eps, z)
    return base, (plus - minus) / (2.0 * eps) * T_dot


def as_composition(z, n_components=1):
    """Return the composition as a float64 array, defaulting to a pure fluid."""
    if z is None:
        if n_components != 1:
            raise ConfigurationError(
                f"Composition required for a mixture of {n_components} components."
            )
        return jnp.ones(1)
    z = jnp.atleast_1d(jnp.asarray(z, dtype=jnp.float64))
    if z.shape[0] != n_components:
        raise ConfigurationError(
            f"Composition has {z.shape[0]} entries, expected {n_components}."
        )
    return z


def composition_key(z):
    """Hashable version of a composition for the host callback."""
    if z is None:
        return None
    return tuple(float(v) for v in np.asarray(z).ravel())
