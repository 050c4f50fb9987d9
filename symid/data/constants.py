# The variable SYMMETRY_PRECISION controls the tolerance used when comparing
# atomic positions. Two positions are considered identical if their periodic
# cartesian distance is below this value.
SYMMETRY_PRECISION = 1e-2  # unit: angstrom

# If the found symmetry operations do not form a group, the search is rerun
# once with the precision multiplied by this factor.
RELAXED_PRECISION_FACTOR = 2.0

# Two occupancies are compatible if they differ at most by this amount. Only
# used when partial occupancies are not allowed.
OCCUPANCY_TOLERANCE = 1e-2

# Upper bounds for the iterative lattice reductions.
MAX_DELAUNAY_ITERATIONS = 1000
MAX_NIGGLI_ITERATIONS = 1000

# Tolerance for comparing values that are exact rationals, e.g. the
# translations of the tabulated space group operations.
RATIONAL_TOL = 1e-6

# The rotation types in the order used by the point group identification
# table.
ROTATION_TYPES = (-6, -4, -3, -2, -1, 1, 2, 3, 4, 6)
