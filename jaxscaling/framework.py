import logging
import numpy as np
import jax
import jax.numpy as jnp
import equinox as eqx
import optimistix as optx

from .base import BaseParam, plus_scaling
from .constants import GAS_CONSTANT
from .data import FitOptions, collect_data
from .dilute_gas import (
    correspondence_principle,
    mix_CE,
    property_CE_plus,
    property_CE_plus_MS,
)
from .eos import as_composition
from .exceptions import ConfigurationError, ConvergenceError, MissingParametersError
from .properties import DENOMINATOR_CONSTANTS, FIT_ORDER, TransportProperty, as_property

logger = logging.getLogger(__name__)

N_COEFFICIENTS = 5

CITATION = (
    "Entropy Scaling Framework:\n---\n"
    "(1) Schmitt, S.; Hasse, H.; Stephan, S. Entropy Scaling Framework for "
    "Transport Properties Using Molecular-Based Equations of State. Journal of "
    "Molecular Liquids 2024, 395, 123811. DOI: "
    "https://doi.org/10.1016/j.molliq.2023.123811"
)


def _as_float_array(x):
    return jnp.asarray(x, dtype=jnp.float64)


def _as_float_vector(x):
    return jnp.atleast_1d(jnp.asarray(x, dtype=jnp.float64))


# ----------------------------------------------------------------------------- #
# Parameter set
# ----------------------------------------------------------------------------- #

class FrameworkParams(eqx.Module):
    r"""
    Parameters of the entropy scaling Framework model for one transport property.

    Attributes
    ----------
    alpha : jnp.ndarray
        Coefficient matrix of shape (5, N). Rows: constant, :math:`\ln(1+s)`,
        :math:`s`, :math:`s^2` and :math:`s^3` terms; one column per component.
    m : jnp.ndarray
        Segment number of each component.
    sigma : jnp.ndarray
        Lennard-Jones size parameter of each component [m].
    epsilon : jnp.ndarray
        Lennard-Jones energy parameter of each component [K].
    y0_plus_min : jnp.ndarray
        Minimum over temperature of the plus-scaled dilute-gas property.
    base : BaseParam
        Property identity, molar masses and fit bookkeeping.
    """

    alpha: jnp.ndarray = eqx.field(converter=_as_float_array)
    m: jnp.ndarray = eqx.field(converter=_as_float_vector)
    sigma: jnp.ndarray = eqx.field(converter=_as_float_vector)
    epsilon: jnp.ndarray = eqx.field(converter=_as_float_vector)
    y0_plus_min: jnp.ndarray = eqx.field(converter=_as_float_vector)
    base: BaseParam

    def __check_init__(self):
        check_alpha(self.alpha, self.m.shape[0])
        for name in ("sigma", "epsilon", "y0_plus_min"):
            size = getattr(self, name).shape[0]
            if size != self.m.shape[0]:
                raise ConfigurationError(
                    f"Parameter '{name}' has {size} entries, expected {self.m.shape[0]}."
                )

    @property
    def prop(self):
        return self.base.prop

    @classmethod
    def from_eos(
        cls, prop, eos, alpha, solute=None, sigma=None, epsilon=None, molar_mass=None
    ):
        """
        Parameter set for known coefficients `alpha` and equation of state `eos`.

        The Lennard-Jones parameters follow from the correspondence principle
        unless `sigma` and `epsilon` are given (one value per pure component).
        `molar_mass` overrides the molar masses of `eos`.

        Raises
        ------
        ConfigurationError
            If `alpha` does not have 5 rows and one column per component.
        """
        prop = as_property(prop)
        alpha = jnp.asarray(alpha, dtype=jnp.float64)
        check_alpha(alpha, len(eos))
        sigma, epsilon, y0_plus_min = init_framework_model(
            eos, prop, solute=solute, sigma=sigma, epsilon=epsilon
        )
        molar_mass = eos.molar_mass if molar_mass is None else molar_mass
        return cls(alpha, eos.segment_number, sigma, epsilon, y0_plus_min, BaseParam(prop, molar_mass))

    @classmethod
    def for_fitting(cls, prop, eos, data, solute=None, rtol=1e-8, atol=1e-8, max_steps=256):
        """Parameter set with initial coefficients, ready to be fitted to `data`."""
        prop = as_property(prop)
        sigma, epsilon, y0_plus_min = init_framework_model(
            eos, prop, solute=solute, rtol=rtol, atol=atol, max_steps=max_steps
        )
        base = BaseParam(prop, eos.molar_mass, data)
        return cls(alpha0_framework(prop), eos.segment_number, sigma, epsilon, y0_plus_min, base)


def check_alpha(alpha, n_components):
    """Validate the shape of a coefficient matrix."""
    shape = jnp.shape(alpha)
    if len(shape) != 2 or shape[0] != N_COEFFICIENTS:
        raise ConfigurationError(f"Parameter array 'alpha' must have {N_COEFFICIENTS} rows.")
    if shape[1] != n_components:
        raise ConfigurationError(
            f"Parameter array 'alpha' has {shape[1]} columns, but the EOS model has "
            f"{n_components} components."
        )


def alpha0_framework(prop):
    """Initial coefficients: zeros, with a unit constant for thermal conductivity."""
    alpha = jnp.zeros((N_COEFFICIENTS, 1))
    if as_property(prop).fits_logarithm:
        return alpha
    return alpha.at[0, 0].set(1.0)


# ----------------------------------------------------------------------------- #
# Dilute-gas reference initialisation
# ----------------------------------------------------------------------------- #

def init_framework_model(
    eos, prop, solute=None, sigma=None, epsilon=None, rtol=1e-8, atol=1e-8, max_steps=256
):
    """
    Lennard-Jones parameters and reference minima of the dilute-gas property.

    Steps:

    1. Split `eos` into pure components and append the `solute` model, if any.
    2. Compute the Lennard-Jones parameters from the critical points with the
       correspondence principle (unless given).
    3. For the infinite-dilution diffusion coefficient, replace the parameters of
       all components by the solvent/solute pair values (arithmetic mean of
       sigma, geometric mean of epsilon).
    4. For each component, minimise the plus-scaled dilute-gas property over the
       reduced temperature T/Tc, starting from 2.

    Returns
    -------
    tuple
        sigma [m], epsilon [K] and the reference minima, one value per component.

    Raises
    ------
    ConfigurationError
        If the infinite-dilution diffusion coefficient is requested without
        exactly one solvent and one solute component.
    ConvergenceError
        If a minimisation does not converge.
    """
    prop = as_property(prop)
    eos_pure = eos.split() + ([] if solute is None else solute.split())
    n = len(eos)
    if prop is TransportProperty.INF_DIFFUSION and len(eos_pure) != 2:
        raise ConfigurationError("Solvent and solute must each contain one component.")

    crit = [model.critical_point() for model in eos_pure]
    Tc = np.array([c[0] for c in crit])
    pc = np.array([c[1] for c in crit])
    sigma_cp, epsilon_cp = correspondence_principle(Tc, pc)
    sigma = np.asarray(sigma_cp if sigma is None else sigma, dtype=float).ravel()
    epsilon = np.asarray(epsilon_cp if epsilon is None else epsilon, dtype=float).ravel()

    if prop is TransportProperty.INF_DIFFUSION:
        sigma = np.full(n, np.mean(sigma))
        epsilon = np.full(n, np.sqrt(np.prod(epsilon)))

    y0_plus_min = np.empty(n)
    for i in range(n):
        y0_plus_min[i] = minimise_dilute_property(
            prop, eos_pure[i], Tc[i], sigma[i], epsilon[i], rtol=rtol, atol=atol, max_steps=max_steps
        )
    return sigma[:n], epsilon[:n], y0_plus_min


def minimise_dilute_property(prop, eos, Tc, sigma, epsilon, rtol=1e-8, atol=1e-8, max_steps=256):
    """Minimum over temperature of the plus-scaled dilute-gas property of a pure fluid."""

    def objective(x, args):
        return property_CE_plus(prop, eos, x[0] * Tc, sigma, epsilon)

    solver = optx.BFGS(rtol=rtol, atol=atol)
    sol = optx.minimise(objective, solver, jnp.array([2.0]), max_steps=max_steps, throw=False)
    success = sol.result == optx.RESULTS.successful
    if not success:
        raise ConvergenceError(
            f"Minimisation of the dilute-gas {prop} of {eos!r} did not converge "
            f"after {int(sol.stats['num_steps'])} steps (last reduced temperature "
            f"T/Tc = {float(sol.value[0]):.6g}). A very large value means the "
            f"property has no minimum over temperature."
        )
    return float(objective(sol.value, None))


# ----------------------------------------------------------------------------- #
# Scaling correlation and reduced-property mapping
# ----------------------------------------------------------------------------- #

def scaling_model(param, s, x=None):
    """Framework correlation of the scaled property against the reduced entropy `s`."""
    g = DENOMINATOR_CONSTANTS[param.prop]
    return generic_scaling_model(param, s, jnp.ones(1) if x is None else x, g)


def generic_scaling_model(param, s, x, g):
    r"""
    Rational correlation

    .. math::
        Y^\star(s) = \frac{a_0 + a_1 \ln(1+s) + a_2 s + a_3 s^2 + a_4 s^3}
                          {1 + g_1 \ln(1+s) + g_2 s}

    with the composition-weighted coefficients :math:`a = \alpha x`.
    """
    a = param.alpha @ jnp.atleast_1d(jnp.asarray(x, dtype=jnp.float64))
    s = jnp.asarray(s)
    log_s = jnp.log1p(s)
    numerator = a[0] + a[1] * log_s + a[2] * s + a[3] * s**2 + a[4] * s**3
    denominator = 1.0 + g[0] * log_s + g[1] * s
    return numerator / denominator


def reduced_entropy(param, s, z=None):
    """Reduced entropy -s / (R sum(m z)) (dimensionless, non-negative for stable states)."""
    z = jnp.ones(1) if z is None else jnp.atleast_1d(jnp.asarray(z))
    return -s / GAS_CONSTANT / jnp.sum(param.m * z)


def sigmoid_weight(s, s_x=0.5, kappa=20.0):
    """Logistic weight 1 / (1 + exp(kappa (s - s_x))) of the dilute-gas reference."""
    return jax.nn.sigmoid(-kappa * (s - s_x))


def dilute_gas_reference(param, eos, T, z=None):
    """Plus-scaled dilute-gas property Y0+ of the parameter set at `T` and `z`."""
    if len(eos) == 1:
        return property_CE_plus(param.prop, eos, T, param.sigma[0], param.epsilon[0])
    zc = as_composition(z, len(eos))
    if param.prop is TransportProperty.INF_DIFFUSION:
        return property_CE_plus_MS(param.base, eos, T, param.sigma[0], param.epsilon[0], zc)
    values = jnp.stack(
        [
            property_CE_plus(param.prop, pure, T, param.sigma[i], param.epsilon[i])
            for i, pure in enumerate(eos.split())
        ]
    )
    return mix_CE(param.base, values, zc)


def scaling(param, eos, Y, T, rho, s, z=None, inv=False):
    r"""
    Convert between a transport property and its entropy-scaled form.

    .. math::
        Y^\star = \left(\frac{W}{Y_0^+} + \frac{1 - W}{Y_{0,\min}^+}\right)^k Y^+,
        \qquad W = \frac{1}{1 + \exp(20 (s^\star - 0.5))}

    with :math:`k = 1` for ``inv=False`` (property to scaled property) and
    :math:`k = -1` for ``inv=True`` (scaled property to property). Both
    directions are exact inverses at the same state.

    Parameters
    ----------
    param : FrameworkParams
        Parameter set.
    eos : CoolPropEOS
        Equation of state.
    Y : float or array_like
        Property (``inv=False``) or scaled property (``inv=True``).
    T : float or array_like
        Temperature [K].
    rho : float or array_like
        Molar density [mol/m3].
    s : float or array_like
        Configurational molar entropy [J/(mol K)].
    z : array_like, optional
        Composition (pure fluid if omitted).
    inv : bool, optional
        Direction of the conversion.
    """
    k = -1 if inv else 1
    zc = as_composition(z, len(eos))
    s_star = reduced_entropy(param, s, zc)
    y0_plus = dilute_gas_reference(param, eos, T, z)
    y0_plus_min = mix_CE(param.base, param.y0_plus_min, zc)
    W = sigmoid_weight(s_star)
    return (W / y0_plus + (1.0 - W) / y0_plus_min) ** k * plus_scaling(
        param.base, Y, T, rho, s, zc, inv=inv
    )


# ----------------------------------------------------------------------------- #
# Binary diffusion merge
# ----------------------------------------------------------------------------- #

def merge_diffusion_params(param_self, param_inf, i):
    """
    Self-diffusion parameters of component `i` in a mixture.

    Column `i` is taken from the pure self-diffusion set, all other columns
    (coefficients, Lennard-Jones parameters, reference minima and molar masses)
    from the infinite-dilution set.
    """
    n = param_self.alpha.shape[1]
    others = np.array([j for j in range(n) if j != i], dtype=int)

    def merged(a, b):
        return a.at[..., others].set(b[..., others])

    return eqx.tree_at(
        lambda p: (p.alpha, p.sigma, p.epsilon, p.y0_plus_min, p.base.molar_mass),
        param_self,
        (
            merged(param_self.alpha, param_inf.alpha),
            merged(param_self.sigma, param_inf.sigma),
            merged(param_self.epsilon, param_inf.epsilon),
            merged(param_self.y0_plus_min, param_inf.y0_plus_min),
            merged(param_self.base.molar_mass, param_inf.base.molar_mass),
        ),
    )


# ----------------------------------------------------------------------------- #
# Model container and fitting driver
# ----------------------------------------------------------------------------- #

class FrameworkModel(eqx.Module):
    """
    Entropy scaling Framework model.

    Holds one parameter set per transport property, bound to a shared equation of
    state. If several sets are registered for one property, the first one is used.
    """

    eos: object = eqx.field(static=True)
    components: tuple = eqx.field(static=True)
    params: tuple

    def __init__(self, eos, params):
        self.eos = eos
        self.components = tuple(eos.components)
        self.params = tuple(params)
        seen = set()
        for param in self.params:
            if param.prop in seen:
                logger.info("Multiple parameters for %s. The first one will be used.", param.prop)
            seen.add(param.prop)

    def __len__(self):
        return len(self.eos)

    def get(self, prop):
        """Return the parameter set of `prop`, or None if the model has none."""
        prop = as_property(prop)
        for param in self.params:
            if param.prop is prop:
                return param
        logger.info("No parameters for %s.", prop)
        return None

    def __getitem__(self, prop):
        param = self.get(prop)
        if param is None:
            raise MissingParametersError(f"No parameters for {as_property(prop)}.")
        return param

    def __contains__(self, prop):
        prop = as_property(prop)
        return any(param.prop is prop for param in self.params)

    @classmethod
    def from_coefficients(cls, eos, coefficients, solute=None):
        """
        Model from known coefficient matrices.

        Parameters
        ----------
        eos : CoolPropEOS
            Equation of state.
        coefficients : dict
            Map from transport property to a (5, N) coefficient matrix.
        solute : CoolPropEOS, optional
            Solute model, required for infinite-dilution diffusion of a pure solvent.
        """
        params = []
        for prop, alpha in coefficients.items():
            prop = as_property(prop)
            solute_ = solute if prop is TransportProperty.INF_DIFFUSION else None
            params.append(FrameworkParams.from_eos(prop, eos, alpha, solute=solute_))
        return cls(eos, params)

    @classmethod
    def fit(cls, eos, datasets, options=None, solute=None):
        """
        Fit a model of a pure fluid to experimental data.

        For every transport property with data, the free coefficients (all
        except the constant one unless ``options.what_fit`` says otherwise) are
        fitted by nonlinear least squares to the scaled data.

        Parameters
        ----------
        eos : CoolPropEOS
            Equation of state of the pure fluid.
        datasets : list of TransportPropertyData
            Experimental data. Missing densities are computed from `eos` on
            copies; the datasets are not modified.
        options : FitOptions, optional
            Fitting options.
        solute : CoolPropEOS, optional
            Solute model, required if infinite-dilution diffusion data is given.

        Raises
        ------
        ConfigurationError
            If `eos` has more than one component or a solute model is missing.
        ConvergenceError
            If a least-squares fit or minimisation does not converge.
        """
        if len(eos) != 1:
            raise ConfigurationError("Only one component allowed for fitting.")
        options = FitOptions() if options is None else options
        key = jax.random.PRNGKey(options.seed)

        params = []
        for prop in FIT_ORDER:
            data = collect_data(datasets, prop)
            if data.n_data == 0:
                logger.debug("No data for %s, skipping.", prop)
                continue
            if prop is TransportProperty.INF_DIFFUSION:
                if solute is None:
                    raise ConfigurationError(
                        "Solute EOS model must be provided for diffusion coefficient "
                        "at infinite dilution."
                    )
                solute_ = solute
            else:
                solute_ = None

            what_fit = options.free_rows(prop)
            param = FrameworkParams.for_fitting(
                prop,
                eos,
                data,
                solute=solute_,
                rtol=options.rtol,
                atol=options.atol,
                max_steps=options.max_steps,
            )
            data = data.resolve_density(eos)
            key, subkey = jax.random.split(key)
            alpha = fit_coefficients(param, eos, data, what_fit, subkey, options)
            params.append(eqx.tree_at(lambda p: p.alpha, param, alpha))

        return cls(eos, params)


def fit_coefficients(param, eos, data, what_fit, key, options):
    """
    Least-squares fit of the free coefficient rows of a pure-fluid parameter set.

    The residual is the correlation evaluated at the reduced entropy of each
    point minus the scaled data (its logarithm, except for thermal
    conductivity). Rows not selected by `what_fit` keep their initial values.
    """
    prop = param.prop
    s = jnp.asarray(eos.entropy_conf(data.rho, data.T))
    s_star = reduced_entropy(param, s)
    y_star = scaling(param, eos, jnp.asarray(data.Y), jnp.asarray(data.T), jnp.asarray(data.rho), s)
    if prop.fits_logarithm:
        y_star = jnp.log(y_star)

    alpha0 = alpha0_framework(prop)
    idx = np.flatnonzero(what_fit)
    if idx.size == 0:
        return alpha0

    def residual(p, args):
        xs, ys = args
        alpha = alpha0.at[idx, 0].set(p)
        return scaling_model(eqx.tree_at(lambda q: q.alpha, param, alpha), xs) - ys

    solver = optx.GaussNewton(rtol=options.rtol, atol=options.atol)
    p0 = jax.random.normal(key, (idx.size,), dtype=jnp.float64)
    sol = optx.least_squares(
        residual, solver, p0, args=(s_star, y_star), max_steps=options.max_steps, throw=False
    )
    success = sol.result == optx.RESULTS.successful
    if not success:
        raise ConvergenceError(
            f"Least-squares fit of {prop} did not converge after "
            f"{int(sol.stats['num_steps'])} steps."
        )

    alpha = alpha0.at[idx, 0].set(sol.value)
    rms = float(jnp.sqrt(jnp.mean(residual(sol.value, (s_star, y_star)) ** 2)))
    logger.info(
        "Fitted %s to %d points in %d steps (rms residual %.3e): alpha = %s",
        prop,
        data.n_data,
        int(sol.stats["num_steps"]),
        rms,
        np.asarray(alpha).ravel(),
    )
    return alpha


def cite_model(model):
    """Reference of the Framework model."""
    return CITATION


# ----------------------------------------------------------------------------- #
# Property evaluation
# ----------------------------------------------------------------------------- #

def _evaluate_rhoT(model, param, rho, T, z=None, s=None):
    """Transport property from molar density and temperature with parameter set `param`."""
    zc = as_composition(z, len(model.eos))
    if s is None:
        s = model.eos.entropy_conf(rho, T, z)
    s_star = reduced_entropy(param, s, zc)
    y_star = scaling_model(param, s_star, zc)
    if param.prop.fits_logarithm:
        y_star = jnp.exp(y_star)
    return scaling(param, model.eos, y_star, T, rho, s, z, inv=True)


def viscosity(model, p, T, z=None, phase="unknown"):
    """Viscosity [Pa s] at pressure `p` [Pa], temperature `T` [K] and composition `z`."""
    rho = model.eos.molar_density(p, T, z, phase=phase)
    return viscosity_rhoT(model, rho, T, z)


def viscosity_rhoT(model, rho, T, z=None):
    """Viscosity [Pa s] at molar density `rho` [mol/m3] and temperature `T` [K]."""
    return _evaluate_rhoT(model, model[TransportProperty.VISCOSITY], rho, T, z)


def thermal_conductivity(model, p, T, z=None, phase="unknown"):
    """Thermal conductivity [W/(m K)] at pressure `p` [Pa] and temperature `T` [K]."""
    rho = model.eos.molar_density(p, T, z, phase=phase)
    return thermal_conductivity_rhoT(model, rho, T, z)


def thermal_conductivity_rhoT(model, rho, T, z=None):
    """Thermal conductivity [W/(m K)] at molar density `rho` [mol/m3] and temperature `T` [K]."""
    return _evaluate_rhoT(model, model[TransportProperty.THERMAL_CONDUCTIVITY], rho, T, z)


def self_diffusion_coefficient(model, p, T, z=None, phase="unknown"):
    """
    Self-diffusion coefficient [m2/s] at pressure `p` [Pa] and temperature `T` [K].

    Returns one value per component for a binary mixture.
    """
    rho = model.eos.molar_density(p, T, z, phase=phase)
    return self_diffusion_coefficient_rhoT(model, rho, T, z)


def self_diffusion_coefficient_rhoT(model, rho, T, z=None):
    """
    Self-diffusion coefficient [m2/s] at molar density `rho` [mol/m3] and temperature `T` [K].

    For a binary mixture, the coefficient of component i uses the pure
    self-diffusion parameters of i and the infinite-dilution parameters of the
    other component.
    """
    if len(model.eos) == 1:
        return _evaluate_rhoT(model, model[TransportProperty.SELF_DIFFUSION], rho, T)
    if len(model.eos) != 2:
        raise ConfigurationError(
            f"Self-diffusion coefficients of mixtures require a binary, got {len(model.eos)} components."
        )
    param_self = model[TransportProperty.SELF_DIFFUSION]
    param_inf = model[TransportProperty.INF_DIFFUSION]
    s = model.eos.entropy_conf(rho, T, z)
    D = [
        _evaluate_rhoT(model, merge_diffusion_params(param_self, param_inf, i), rho, T, z, s=s)
        for i in range(len(model.eos))
    ]
    return jnp.stack(D)


def MS_diffusion_coefficient(model, p, T, z, phase="unknown"):
    """Maxwell-Stefan diffusion coefficient [m2/s] at pressure `p` [Pa] and temperature `T` [K]."""
    rho = model.eos.molar_density(p, T, z, phase=phase)
    return MS_diffusion_coefficient_rhoT(model, rho, T, z)


def MS_diffusion_coefficient_rhoT(model, rho, T, z):
    """Maxwell-Stefan diffusion coefficient [m2/s] at molar density `rho` [mol/m3] and `T` [K]."""
    return _evaluate_rhoT(model, model[TransportProperty.INF_DIFFUSION], rho, T, z)
