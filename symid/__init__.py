from symid.core.lattice import UnitCell
from symid.core.system import Structure
from symid.symmetry.spacegroupfinder import (
    SpaceGroupFinder,
    SpaceGroupResult,
    find_space_group,
    find_space_group_from_atoms,
)
