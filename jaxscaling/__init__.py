# Highlight exception messages
# https://stackoverflow.com/questions/25109105/how-to-colorize-the-output-of-python-errors-in-the-gnome-terminal/52797444#52797444
try:
    import IPython.core.ultratb
except ImportError:
    # No IPython. Use default exception printing.
    pass
else:
    import sys
    sys.excepthook = IPython.core.ultratb.FormattedTB(call_pdb=False)


import os
os.environ["JAX_PLATFORM_NAME"] = "cpu"
import jax
jax.config.update("jax_enable_x64", True)


from .exceptions import *
from .constants import *
from .properties import *

from .base import BaseParam, Reference, plus_scaling, plus_scaling_factor
from .eos import CoolPropEOS, virial_entropy_coefficient
from .dilute_gas import (
    correspondence_principle,
    collision_integral_11,
    collision_integral_22,
    property_CE,
    property_CE_plus,
    property_CE_plus_MS,
    wilke_mixing,
    mix_CE,
)
from .data import (
    TransportPropertyData,
    ViscosityData,
    ThermalConductivityData,
    SelfDiffusionCoefficientData,
    InfDiffusionCoefficientData,
    FitOptions,
    filter_datasets,
    collect_data,
)
from .framework import (
    FrameworkParams,
    FrameworkModel,
    init_framework_model,
    scaling_model,
    generic_scaling_model,
    reduced_entropy,
    sigmoid_weight,
    scaling,
    merge_diffusion_params,
    cite_model,
    viscosity,
    viscosity_rhoT,
    thermal_conductivity,
    thermal_conductivity_rhoT,
    self_diffusion_coefficient,
    self_diffusion_coefficient_rhoT,
    MS_diffusion_coefficient,
    MS_diffusion_coefficient_rhoT,
)


# Package info
__version__ = "0.1.0"
PACKAGE_NAME = "jaxscaling"
BREAKLINE = 80 * "-"
