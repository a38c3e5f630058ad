# Physical constants (SI, CODATA 2018 exact values)
BOLTZMANN_CONSTANT = 1.380649e-23
AVOGADRO_CONSTANT = 6.02214076e23
GAS_CONSTANT = BOLTZMANN_CONSTANT * AVOGADRO_CONSTANT

# Standard atmosphere in Pa, used by the correspondence principle
ATMOSPHERE = 101_325.0
