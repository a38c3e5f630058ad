import logging
import numpy as np
import pandas as pd
import equinox as eqx

from dataclasses import dataclass, field

from .base import Reference
from .eos import PHASE_INDEX
from .exceptions import ConfigurationError, DataShapeError
from .properties import TransportProperty, as_property

logger = logging.getLogger(__name__)

# Coefficient rows fitted when no override is given (the constant row is fixed)
DEFAULT_WHAT_FIT = (False, True, True, True, True)


class TransportPropertyData(eqx.Module):
    """
    Experimental transport property data of a single property.

    Each point holds temperature [K], pressure [Pa], molar density [mol/m3], the
    property value (SI units), a phase label and a literature reference. Either
    pressure or density is known for every point; the missing quantity is NaN and
    can be computed with :meth:`resolve_density`.
    """

    prop: TransportProperty = eqx.field(static=True)
    T: np.ndarray
    p: np.ndarray
    rho: np.ndarray
    Y: np.ndarray
    phase: tuple = eqx.field(static=True)
    ref: tuple = eqx.field(static=True)

    @classmethod
    def from_measurements(
        cls, prop, T, Y, p=None, rho=None, phase="unknown", doi="", short=""
    ):
        """
        Create a dataset from measurement vectors.

        Exactly one of pressure `p` and molar density `rho` must be given.

        Raises
        ------
        DataShapeError
            If both or neither of `p` and `rho` are given, or if the vectors
            have different lengths.
        """
        T = np.atleast_1d(np.asarray(T, dtype=float))
        Y = np.atleast_1d(np.asarray(Y, dtype=float))
        n_data = T.size
        has_p = p is not None and np.size(p) > 0
        has_rho = rho is not None and np.size(rho) > 0
        if has_p == has_rho:
            raise DataShapeError("Either pressure or density must be provided.")
        if has_p:
            p = np.atleast_1d(np.asarray(p, dtype=float))
            rho = np.full(n_data, np.nan)
        else:
            rho = np.atleast_1d(np.asarray(rho, dtype=float))
            p = np.full(n_data, np.nan)
        for name, vec in (("p", p), ("rho", rho), ("Y", Y)):
            if vec.size != n_data:
                raise DataShapeError(
                    f"All vectors must have the same length: len(T) = {n_data}, "
                    f"len({name}) = {vec.size}."
                )
        return cls(
            prop=as_property(prop),
            T=T,
            p=p,
            rho=rho,
            Y=Y,
            phase=(phase,) * n_data,
            ref=(Reference(doi, short),) * n_data,
        )

    @property
    def n_data(self):
        return self.T.size

    def __repr__(self):
        return f"TransportPropertyData({self.prop})\n    {self.n_data} data points."

    def resolve_density(self, eos):
        """
        Return a copy of the dataset with missing densities computed from `eos`.

        The density of each point without one is obtained from its pressure and
        temperature, using its phase label as phase hint when the label is a
        valid hint. The dataset itself is not modified.
        """
        rho = np.array(self.rho, dtype=float)
        missing = np.flatnonzero(np.isnan(rho))
        for k in missing:
            phase = self.phase[k] if self.phase[k] in PHASE_INDEX else "unknown"
            rho[k] = eos.molar_density(self.p[k], self.T[k], phase=phase)
        logger.debug("Computed %d of %d densities for %s.", missing.size, self.n_data, self.prop)
        return eqx.tree_at(lambda d: d.rho, self, rho)

    def to_dataframe(self):
        """Return the data points as a pandas DataFrame."""
        return pd.DataFrame(
            {
                "T": self.T,
                "p": self.p,
                "rho": self.rho,
                "Y": self.Y,
                "phase": list(self.phase),
                "doi": [r.doi for r in self.ref],
                "short": [r.short for r in self.ref],
            }
        )

    @classmethod
    def from_dataframe(cls, prop, df):
        """
        Create a dataset from a DataFrame with columns ``T``, ``Y`` and ``p`` or
        ``rho``. Optional columns: ``phase``, ``doi``, ``short``.
        """
        n_data = len(df)
        nan = np.full(n_data, np.nan)
        p = df["p"].to_numpy(dtype=float) if "p" in df else nan
        rho = df["rho"].to_numpy(dtype=float) if "rho" in df else nan
        if np.any(np.isnan(p) & np.isnan(rho)):
            raise DataShapeError("Either pressure or density must be provided for every point.")
        if "phase" in df:
            phase = tuple(df["phase"].astype(str))
        else:
            phase = ("unknown",) * n_data
        doi = df["doi"].astype(str) if "doi" in df else [""] * n_data
        short = df["short"].astype(str) if "short" in df else [""] * n_data
        return cls(
            prop=as_property(prop),
            T=df["T"].to_numpy(dtype=float),
            p=p,
            rho=rho,
            Y=df["Y"].to_numpy(dtype=float),
            phase=phase,
            ref=tuple(Reference(d, s) for d, s in zip(doi, short)),
        )


def ViscosityData(*args, **kwargs):
    return TransportPropertyData.from_measurements(TransportProperty.VISCOSITY, *args, **kwargs)


def ThermalConductivityData(*args, **kwargs):
    return TransportPropertyData.from_measurements(
        TransportProperty.THERMAL_CONDUCTIVITY, *args, **kwargs
    )


def SelfDiffusionCoefficientData(*args, **kwargs):
    return TransportPropertyData.from_measurements(TransportProperty.SELF_DIFFUSION, *args, **kwargs)


def InfDiffusionCoefficientData(*args, **kwargs):
    return TransportPropertyData.from_measurements(TransportProperty.INF_DIFFUSION, *args, **kwargs)


def filter_datasets(datasets, prop):
    """Return the datasets of property `prop`."""
    prop = as_property(prop)
    return [data for data in datasets if data.prop is prop]


def collect_data(datasets, prop):
    """Concatenate all datasets of property `prop` into a single dataset."""
    prop = as_property(prop)
    selected = filter_datasets(datasets, prop)

    def concat(name):
        arrays = [getattr(data, name) for data in selected]
        return np.concatenate(arrays) if arrays else np.empty(0)

    return TransportPropertyData(
        prop=prop,
        T=concat("T"),
        p=concat("p"),
        rho=concat("rho"),
        Y=concat("Y"),
        phase=tuple(ph for data in selected for ph in data.phase),
        ref=tuple(r for data in selected for r in data.ref),
    )


@dataclass(frozen=True)
class FitOptions:
    """
    Options of the Framework fitting driver.

    Attributes
    ----------
    what_fit : dict
        Map from property to five booleans selecting the fitted coefficient rows.
        Properties without an entry fit all rows except the constant one.
    seed : int
        Seed of the standard-normal initial guess.
    rtol, atol : float
        Tolerances of the least-squares and minimisation solvers.
    max_steps : int
        Maximum number of solver steps.
    """

    what_fit: dict = field(default_factory=dict)
    seed: int = 0
    rtol: float = 1e-8
    atol: float = 1e-8
    max_steps: int = 256

    def free_rows(self, prop):
        """Boolean mask (length 5) of the coefficient rows fitted for `prop`."""
        prop = as_property(prop)
        what_fit = {as_property(k): v for k, v in self.what_fit.items()}
        mask = np.asarray(what_fit.get(prop, DEFAULT_WHAT_FIT), dtype=bool)
        if mask.shape != (5,):
            raise ConfigurationError(f"'what_fit' for {prop} must contain 5 entries, got {mask.size}.")
        return mask
