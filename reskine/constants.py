"""Package-wide constants.

Masses and energies in GeV, Q² in GeV² (core units).
"""

PACKAGE_VERSION = "0.1.0"

# Particle masses [GeV]
NUCLEON_MASS = 0.9389187
PION_MASS = 0.1395701
MUON_MASS = 0.105658

# PDG codes
PDG_NU_MU = 14
PDG_PROTON = 2212

# Dipole mass squared used by the Q² → QD2 transform [GeV²]
DIPOLE_MASS2 = 0.71

# Numerical controls
A_SMALL_NUM = 1e-6
MIN_Q2_LIMIT = 1e-6
MAX_REJECTION_ITERATIONS = 1000

# Max differential cross-section search
Q2_SCAN_POINTS = 15
Q2_REFINE_DIVISOR = 3

# Selection defaults
DEFAULT_W_CUT = 1.7  # GeV, RES/DIS transition
DEFAULT_SAFETY_FACTOR = 1.25
LOW_ENERGY_SAFETY_FACTOR = 2.0
LOW_ENERGY_THRESHOLD = 0.8  # GeV
DEFAULT_MIN_ENERGY_CACHED = 1.0  # GeV
DEFAULT_CACHE_ENERGY_BIN_WIDTH = 0.05  # GeV
DEFAULT_ENVELOPE_PADDING = 5.0

# Resonance parameters for tags without a specific resonance [GeV]
GENERIC_PEAK_MASS = 1.23
GENERIC_ENVELOPE_MASS = 1.2
GENERIC_ENVELOPE_WIDTH = 0.6
KNOWN_ENVELOPE_WIDTH = 0.220
