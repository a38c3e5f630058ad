from enum import Enum


class TransportProperty(Enum):
    """Transport properties supported by the entropy scaling models."""

    VISCOSITY = "viscosity"
    THERMAL_CONDUCTIVITY = "thermal_conductivity"
    SELF_DIFFUSION = "self_diffusion_coefficient"
    INF_DIFFUSION = "infinite_dilution_diffusion_coefficient"

    @property
    def is_diffusion(self):
        return self in (TransportProperty.SELF_DIFFUSION, TransportProperty.INF_DIFFUSION)

    @property
    def fits_logarithm(self):
        """True if the correlation is fitted to the logarithm of the scaled property."""
        return self is not TransportProperty.THERMAL_CONDUCTIVITY

    def __str__(self):
        return self.value


# Order in which the fitting driver visits the properties
FIT_ORDER = (
    TransportProperty.VISCOSITY,
    TransportProperty.THERMAL_CONDUCTIVITY,
    TransportProperty.SELF_DIFFUSION,
    TransportProperty.INF_DIFFUSION,
)

# Universal denominator constants (g1, g2) of the Framework correlation
DENOMINATOR_CONSTANTS = {
    TransportProperty.VISCOSITY: (-1.6386, 1.3923),
    TransportProperty.THERMAL_CONDUCTIVITY: (-1.9107, 1.0725),
    TransportProperty.SELF_DIFFUSION: (0.6632, 9.4714),
    TransportProperty.INF_DIFFUSION: (0.6632, 9.4714),
}

# Property aliases accepted wherever a property tag is expected
PROPERTY_ALIASES = {
    TransportProperty.VISCOSITY: ["mu", "eta"],
    TransportProperty.THERMAL_CONDUCTIVITY: ["k", "lambda", "conductivity"],
    TransportProperty.SELF_DIFFUSION: ["D", "self_diffusion"],
    TransportProperty.INF_DIFFUSION: ["D_inf", "inf_diffusion", "MS_diffusion"],
}

ALIAS_TO_PROPERTY = {}
for _prop, _aliases in PROPERTY_ALIASES.items():
    for _alias in _aliases:
        if _alias in ALIAS_TO_PROPERTY:
            raise ValueError(f"Alias {_alias} defined for multiple properties")
        ALIAS_TO_PROPERTY[_alias] = _prop
    ALIAS_TO_PROPERTY[_prop.value] = _prop


def as_property(prop):
    """Return the :class:`TransportProperty` for a tag, its value or an alias."""
    if isinstance(prop, TransportProperty):
        return prop
    try:
        return ALIAS_TO_PROPERTY[prop]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown transport property: {prop!r}") from None
