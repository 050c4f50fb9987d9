"""Static crystallographic tables used by the symmetry search.

Matrices are given as lists of columns: each column is a new basis vector
expressed in the old basis, i.e. (a', b', c') = (a, b, c) P.
"""

# Candidate rotation axes in a Delaunay reduced primitive cell. Only one of v
# and -v is listed. The order defines the preference when the conventional
# axes are chosen.
ROTATION_AXES = (
    (1, 0, 0), (0, 1, 0), (0, 0, 1), (0, 1, 1), (1, 0, 1), (1, 1, 0),
    (0, -1, 1), (-1, 0, 1), (-1, 1, 0), (1, 1, 1), (-1, 1, 1), (1, -1, 1),
    (-1, -1, 1), (0, 1, 2), (2, 0, 1), (1, 2, 0), (0, 2, 1), (1, 0, 2),
    (2, 1, 0), (0, -1, 2), (-2, 0, 1), (-1, 2, 0), (0, -2, 1), (-1, 0, 2),
    (-2, 1, 0), (2, 1, 1), (1, 2, 1), (1, 1, 2), (-2, 1, 1), (1, -2, 1),
    (-1, -1, 2), (-2, -1, 1), (-1, 2, 1), (1, -1, 2), (2, -1, 1),
    (-1, -2, 1), (-1, 1, 2), (3, 1, 2), (2, 3, 1), (1, 2, 3), (3, 2, 1),
    (1, 3, 2), (2, 1, 3), (3, -1, 2), (-2, -3, 1), (-1, 2, 3), (3, -2, 1),
    (-1, -3, 2), (-2, 1, 3), (-3, 1, 2), (2, -3, 1), (-1, -2, 3),
    (-3, 2, 1), (1, -3, 2), (-2, -1, 3), (-3, -1, 2), (-2, 3, 1),
    (1, -2, 3), (-3, -2, 1), (-1, 3, 2), (2, -1, 3), (1, 1, 3), (-1, 1, 3),
    (1, -1, 3), (-1, -1, 3), (1, 3, 1), (-1, 3, 1), (-1, -3, 1), (1, -3, 1),
    (3, 1, 1), (-3, -1, 1), (3, -1, 1), (-3, 1, 1),
)

# The 32 crystallographic point groups. The "table" entry counts the
# rotations of each type in the order (-6, -4, -3, -2, -1, 1, 2, 3, 4, 6).
# The rotation type of the conventional axes is 0 for triclinic groups.
POINT_GROUPS = (
    {"number": 1, "symbol": "1", "schoenflies": "C1", "holohedry": "triclinic", "laue": "-1",
     "table": (0, 0, 0, 0, 0, 1, 0, 0, 0, 0)},
    {"number": 2, "symbol": "-1", "schoenflies": "Ci", "holohedry": "triclinic", "laue": "-1",
     "table": (0, 0, 0, 0, 1, 1, 0, 0, 0, 0)},
    {"number": 3, "symbol": "2", "schoenflies": "C2", "holohedry": "monoclinic", "laue": "2/m",
     "table": (0, 0, 0, 0, 0, 1, 1, 0, 0, 0)},
    {"number": 4, "symbol": "m", "schoenflies": "Cs", "holohedry": "monoclinic", "laue": "2/m",
     "table": (0, 0, 0, 1, 0, 1, 0, 0, 0, 0)},
    {"number": 5, "symbol": "2/m", "schoenflies": "C2h", "holohedry": "monoclinic", "laue": "2/m",
     "table": (0, 0, 0, 1, 1, 1, 1, 0, 0, 0)},
    {"number": 6, "symbol": "222", "schoenflies": "D2", "holohedry": "orthorhombic", "laue": "mmm",
     "table": (0, 0, 0, 0, 0, 1, 3, 0, 0, 0)},
    {"number": 7, "symbol": "mm2", "schoenflies": "C2v", "holohedry": "orthorhombic", "laue": "mmm",
     "table": (0, 0, 0, 2, 0, 1, 1, 0, 0, 0)},
    {"number": 8, "symbol": "mmm", "schoenflies": "D2h", "holohedry": "orthorhombic", "laue": "mmm",
     "table": (0, 0, 0, 3, 1, 1, 3, 0, 0, 0)},
    {"number": 9, "symbol": "4", "schoenflies": "C4", "holohedry": "tetragonal", "laue": "4/m",
     "table": (0, 0, 0, 0, 0, 1, 1, 0, 2, 0)},
    {"number": 10, "symbol": "-4", "schoenflies": "S4", "holohedry": "tetragonal", "laue": "4/m",
     "table": (0, 2, 0, 0, 0, 1, 1, 0, 0, 0)},
    {"number": 11, "symbol": "4/m", "schoenflies": "C4h", "holohedry": "tetragonal", "laue": "4/m",
     "table": (0, 2, 0, 1, 1, 1, 1, 0, 2, 0)},
    {"number": 12, "symbol": "422", "schoenflies": "D4", "holohedry": "tetragonal", "laue": "4/mmm",
     "table": (0, 0, 0, 0, 0, 1, 5, 0, 2, 0)},
    {"number": 13, "symbol": "4mm", "schoenflies": "C4v", "holohedry": "tetragonal", "laue": "4/mmm",
     "table": (0, 0, 0, 4, 0, 1, 1, 0, 2, 0)},
    {"number": 14, "symbol": "-42m", "schoenflies": "D2d", "holohedry": "tetragonal", "laue": "4/mmm",
     "table": (0, 2, 0, 2, 0, 1, 3, 0, 0, 0)},
    {"number": 15, "symbol": "4/mmm", "schoenflies": "D4h", "holohedry": "tetragonal", "laue": "4/mmm",
     "table": (0, 2, 0, 5, 1, 1, 5, 0, 2, 0)},
    {"number": 16, "symbol": "3", "schoenflies": "C3", "holohedry": "trigonal", "laue": "-3",
     "table": (0, 0, 0, 0, 0, 1, 0, 2, 0, 0)},
    {"number": 17, "symbol": "-3", "schoenflies": "C3i", "holohedry": "trigonal", "laue": "-3",
     "table": (0, 0, 2, 0, 1, 1, 0, 2, 0, 0)},
    {"number": 18, "symbol": "32", "schoenflies": "D3", "holohedry": "trigonal", "laue": "-3m",
     "table": (0, 0, 0, 0, 0, 1, 3, 2, 0, 0)},
    {"number": 19, "symbol": "3m", "schoenflies": "C3v", "holohedry": "trigonal", "laue": "-3m",
     "table": (0, 0, 0, 3, 0, 1, 0, 2, 0, 0)},
    {"number": 20, "symbol": "-3m", "schoenflies": "D3d", "holohedry": "trigonal", "laue": "-3m",
     "table": (0, 0, 2, 3, 1, 1, 3, 2, 0, 0)},
    {"number": 21, "symbol": "6", "schoenflies": "C6", "holohedry": "hexagonal", "laue": "6/m",
     "table": (0, 0, 0, 0, 0, 1, 1, 2, 0, 2)},
    {"number": 22, "symbol": "-6", "schoenflies": "C3h", "holohedry": "hexagonal", "laue": "6/m",
     "table": (2, 0, 0, 1, 0, 1, 0, 2, 0, 0)},
    {"number": 23, "symbol": "6/m", "schoenflies": "C6h", "holohedry": "hexagonal", "laue": "6/m",
     "table": (2, 0, 2, 1, 1, 1, 1, 2, 0, 2)},
    {"number": 24, "symbol": "622", "schoenflies": "D6", "holohedry": "hexagonal", "laue": "6/mmm",
     "table": (0, 0, 0, 0, 0, 1, 7, 2, 0, 2)},
    {"number": 25, "symbol": "6mm", "schoenflies": "C6v", "holohedry": "hexagonal", "laue": "6/mmm",
     "table": (0, 0, 0, 6, 0, 1, 1, 2, 0, 2)},
    {"number": 26, "symbol": "-6m2", "schoenflies": "D3h", "holohedry": "hexagonal", "laue": "6/mmm",
     "table": (2, 0, 0, 4, 0, 1, 3, 2, 0, 0)},
    {"number": 27, "symbol": "6/mmm", "schoenflies": "D6h", "holohedry": "hexagonal", "laue": "6/mmm",
     "table": (2, 0, 2, 7, 1, 1, 7, 2, 0, 2)},
    {"number": 28, "symbol": "23", "schoenflies": "T", "holohedry": "cubic", "laue": "m-3",
     "table": (0, 0, 0, 0, 0, 1, 3, 8, 0, 0)},
    {"number": 29, "symbol": "m-3", "schoenflies": "Th", "holohedry": "cubic", "laue": "m-3",
     "table": (0, 0, 8, 3, 1, 1, 3, 8, 0, 0)},
    {"number": 30, "symbol": "432", "schoenflies": "O", "holohedry": "cubic", "laue": "m-3m",
     "table": (0, 0, 0, 0, 0, 1, 9, 8, 6, 0)},
    {"number": 31, "symbol": "-43m", "schoenflies": "Td", "holohedry": "cubic", "laue": "m-3m",
     "table": (0, 6, 0, 6, 0, 1, 3, 8, 0, 0)},
    {"number": 32, "symbol": "m-3m", "schoenflies": "Oh", "holohedry": "cubic", "laue": "m-3m",
     "table": (0, 6, 8, 9, 1, 1, 9, 8, 6, 0)},
)

# Rotation type of the operations that define the conventional axes for each
# Laue class.
LAUE_AXIS_ROTATION_TYPE = {
    "-1": 0,
    "2/m": 2,
    "mmm": 2,
    "4/m": 4,
    "4/mmm": 4,
    "-3": 3,
    "-3m": 3,
    "6/m": 3,
    "6/mmm": 3,
    "m-3": 2,
    "m-3m": 4,
}

# Candidate changes of basis (x' = R x) tried when matching a monoclinic or
# orthorhombic structure against a tabulated setting. Table 2 of
# R. W. Grosse-Kunstleve, Acta Cryst. A55, 383-395 (1999).
MONOCLINIC_CHANGES_OF_BASIS = (
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
    ((-1, 0, -1), (0, 1, 0), (1, 0, 0)),
    ((0, 0, 1), (0, 1, 0), (-1, 0, -1)),
    ((0, 0, 1), (0, -1, 0), (1, 0, 0)),
    ((-1, 0, -1), (0, -1, 0), (0, 0, 1)),
    ((1, 0, 0), (0, -1, 0), (-1, 0, -1)),
)
ORTHORHOMBIC_CHANGES_OF_BASIS = (
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
    ((0, 1, 0), (0, 0, 1), (1, 0, 0)),
    ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
    ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
    ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
    ((0, 0, -1), (0, 1, 0), (1, 0, 0)),
)
CUBIC_CHANGES_OF_BASIS = (
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
    ((0, 0, 1), (0, -1, 0), (1, 0, 0)),
)
IDENTITY_CHANGES_OF_BASIS = (
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
)

# Corrections that bring a centered cell to the setting used by the matcher.
A_TO_C_MONOCLINIC = ((0, 0, 1), (0, -1, 0), (1, 0, 0))
A_TO_C = ((0, 1, 0), (0, 0, 1), (1, 0, 0))
B_TO_C = ((0, 0, 1), (1, 0, 0), (0, 1, 0))
I_TO_C_MONOCLINIC = ((1, 0, 1), (0, 1, 0), (-1, 0, 0))
REVERSE_TO_OBVERSE = ((1, 1, 0), (-1, 0, 0), (0, 0, 1))

# The centering vectors that identify a centered cell, given in the centered
# cell.
CENTERING_VECTORS = {
    "A": ((0, 0.5, 0.5),),
    "B": ((0.5, 0, 0.5),),
    "C": ((0.5, 0.5, 0),),
    "I": ((0.5, 0.5, 0.5),),
    "F": ((0, 0.5, 0.5), (0.5, 0, 0.5), (0.5, 0.5, 0)),
    "R": ((2/3, 1/3, 1/3), (1/3, 2/3, 2/3)),
    "R_reverse": ((1/3, 2/3, 1/3), (2/3, 1/3, 2/3)),
}

# First letter of the Pearson symbol for each crystal system.
CRYSTAL_FAMILY_LETTERS = {
    "triclinic": "a",
    "monoclinic": "m",
    "orthorhombic": "o",
    "tetragonal": "t",
    "trigonal": "h",
    "hexagonal": "h",
    "cubic": "c",
}
