from symid.symmetry.operations import ChangeOfBasis, SymmetryOperation, SymmetryOperationSet
from symid.symmetry.pointgroup import PointGroup
from symid.symmetry.spacegroupfinder import SpaceGroupFinder, SpaceGroupResult
