import dataclasses
import logging

import numpy as np

from ase import Atoms

from symid.core.lattice import UnitCell
from symid.core.system import Structure
from symid.data import constants
from symid.data import symmetry_data
from symid.exceptions import GroupNotClosed, SpaceGroupNotFound
from symid.symmetry.asymmetric import get_equivalent_atoms, select_representatives
from symid.symmetry.closure import verify_closure
from symid.symmetry.matcher import match_space_group
from symid.symmetry.operations import ChangeOfBasis, SymmetryOperationSet
from symid.symmetry.pointgroup import construct_conventional_basis
from symid.symmetry.primitive import find_primitive_cell
from symid.symmetry.search import get_lattice_rotations, search_symmetry_operations
import symid.geometry

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SpaceGroupResult:
    """The complete result of a space group determination.

    All the matrices follow the convention (a', b', c') = (a, b, c) P with
    coordinates transforming as x' = P^-1 x.

    Attributes:
        hall_number: Serial number of the matched Hall setting, 1-530.
        space_group_number: The space group number, 1-230.
        international_short: Short Hermann-Mauguin symbol.
        hall_symbol: The Hall symbol of the matched setting.
        choice: Setting choice of the matched setting.
        point_group: Hermann-Mauguin symbol of the point group.
        origin_shift: Origin shift s of the standardized conventional
            coordinates, x_std = R x + s.
        transformation_matrix: The matrix from the input cell to the
            standardized conventional cell.
        rotation_matrix: Cartesian rotation that brings the conventional cell
            into the standard orientation, a along x and b in the xy-plane.
        change_of_basis: The change of basis R used to reach the tabulated
            setting.
        primitive_cell: The Delaunay reduced primitive cell.
        primitive_transformation: Integer matrix from the reduced primitive
            cell to the conventional cell. Its determinant is the number of
            lattice points in the conventional cell.
        conventional_cell: The conventional cell idealized to the metric of
            its crystal system, in the standard orientation.
        operations: All the symmetry operations in the conventional cell.
        atoms: All the atoms in the conventional cell.
        asymmetric_atoms: One atom for each symmetry orbit.
        equivalent_atoms: For each conventional atom the index of the first
            atom of its orbit.
    """
    hall_number: int
    space_group_number: int
    international_short: str
    hall_symbol: str
    choice: str
    point_group: str
    origin_shift: np.ndarray
    transformation_matrix: np.ndarray
    rotation_matrix: np.ndarray
    change_of_basis: ChangeOfBasis
    primitive_cell: UnitCell
    primitive_transformation: np.ndarray
    conventional_cell: UnitCell
    operations: SymmetryOperationSet
    atoms: Structure
    asymmetric_atoms: Structure
    equivalent_atoms: np.ndarray


class SpaceGroupFinder(object):
    """Determines the space group of a periodic structure and the related
    standardized descriptions.

    All the values are calculated on first request and cached.
    """
    def __init__(
            self,
            structure=None,
            symmetry_precision=None,
            allow_partial_occupancies=False,
            occupancy_tol=None):
        """
        Args:
            structure(Structure or ASE.Atoms): The structure to inspect.
            symmetry_precision(float): The maximum cartesian distance in
                angstroms for two positions to be considered identical.
            allow_partial_occupancies(bool): Whether to ignore the occupancies
                when matching atoms.
            occupancy_tol(float): Allowed occupancy difference when partial
                occupancies are not allowed.
        """
        if symmetry_precision is None:
            self.symmetry_precision = constants.SYMMETRY_PRECISION
        else:
            self.symmetry_precision = symmetry_precision
        if occupancy_tol is None:
            self.occupancy_tol = constants.OCCUPANCY_TOLERANCE
        else:
            self.occupancy_tol = occupancy_tol
        self.allow_partial_occupancies = allow_partial_occupancies
        self._original_structure = None

        if structure is not None:
            self.set_structure(structure)

    def set_structure(self, structure):
        """Sets a new structure for analysis.
        """
        self.reset()
        if isinstance(structure, Atoms):
            structure = Structure.from_atoms(structure)
        self._original_structure = structure

    def reset(self):
        """Used to reset all the cached values.
        """
        self._precision = None
        self._primitive_cell = None
        self._lattice_rotations = None
        self._group_table = None
        self._conventional_basis = None
        self._space_group_match = None
        self._conventional_structure = None
        self._equivalent_atoms = None
        self._space_group_result = None

    def get_precision(self):
        """The precision that was finally used, either the given symmetry
        precision or its relaxed value.
        """
        self._find_symmetry()
        return self._precision

    def get_primitive_cell(self):
        """
        Returns:
            PrimitiveCell: The reduced primitive cell of the structure.
        """
        self._find_symmetry()
        return self._primitive_cell

    def get_lattice_rotations(self):
        """
        Returns:
            list of np.ndarray: The rotations of the reduced primitive
            lattice.
        """
        self._find_symmetry()
        return self._lattice_rotations

    def get_group_table(self):
        """
        Returns:
            GroupTable: The verified group of the operations in the reduced
            primitive cell.
        """
        self._find_symmetry()
        return self._group_table

    def get_primitive_symmetry_operations(self):
        """
        Returns:
            SymmetryOperationSet: The operations in the reduced primitive
            cell.
        """
        return self.get_group_table().operations

    def get_conventional_basis(self):
        """
        Returns:
            ConventionalBasis: The conventional basis constructed from the
            rotation axes.
        """
        if self._conventional_basis is not None:
            return self._conventional_basis

        rotations = self.get_primitive_symmetry_operations().rotations
        self._conventional_basis = construct_conventional_basis(
            rotations,
            self.get_primitive_cell().structure.cell,
            self.get_precision())
        return self._conventional_basis

    def get_point_group(self):
        """
        Returns:
            PointGroup: The crystallographic point group.
        """
        return self.get_conventional_basis().point_group

    def get_space_group_match(self):
        """
        Returns:
            SpaceGroupMatch: The matched Hall setting with the change of basis
            and the origin shift.
        """
        if self._space_group_match is not None:
            return self._space_group_match

        basis = self.get_conventional_basis()
        primitive = self.get_primitive_cell().structure
        centering_vectors = basis.get_centering_vectors()
        try:
            operations = self.get_primitive_symmetry_operations().change_basis(basis.transformation)
        except ValueError as e:
            raise SpaceGroupNotFound(
                "The symmetry operations are not compatible with the "
                "conventional cell: {}".format(e),
                value=basis.transformation
            ) from e
        operations = operations.with_centering(centering_vectors)

        self._space_group_match = match_space_group(
            operations,
            centering_vectors,
            primitive.cell.change_basis(basis.transformation),
            basis.point_group,
            self.get_precision(),
            signature=self.get_group_table().get_signature())
        return self._space_group_match

    def get_hall_number(self):
        """
        Returns:
            int: The Hall number.
        """
        return self.get_space_group_match().entry.hall_number

    def get_space_group_number(self):
        """
        Returns:
            int: The space group number.
        """
        return self.get_space_group_match().entry.number

    def get_space_group_international_short(self):
        """
        Returns:
            str: The international space group short symbol.
        """
        return self.get_space_group_match().entry.international_short

    def get_hall_symbol(self):
        """
        Returns:
            str: The Hall symbol.
        """
        return self.get_space_group_match().entry.hall_symbol

    def get_choice(self):
        """
        Returns:
            str: A string specifying the centring, origin and basis vector
            settings.
        """
        return self.get_space_group_match().entry.choice

    def get_crystal_system(self):
        """Get the crystal system. There are seven different crystal systems:
        triclinic, monoclinic, orthorhombic, tetragonal, trigonal, hexagonal
        and cubic.

        Return:
            str: The name of the crystal system.
        """
        return self.get_point_group().holohedry

    def get_bravais_lattice(self):
        """Return Bravais lattice in the Pearson notation, where the first
        lowercase letter indicates the crystal family, and the second
        uppercase letter indicates the centring type. The one-sided centrings
        A, B and C are merged into the letter S.

        Returns:
            str: The Bravais lattice in the Pearson notation.
        """
        family = symmetry_data.CRYSTAL_FAMILY_LETTERS[self.get_crystal_system()]
        centering = self.get_space_group_match().entry.centering
        if centering in ("A", "B", "C"):
            centering = "S"
        return family + centering

    def get_is_chiral(self):
        """Returns a boolean value that tells if this object is chiral or not
        (achiral). A chiral object has symmetry operations that are all proper,
        i.e. their determinant is +1.

        Returns:
            bool: is the object chiral.
        """
        for operation in self.get_primitive_symmetry_operations():
            if operation.determinant == -1:
                return False
        return True

    def get_origin_shift(self):
        return self.get_space_group_match().origin_shift

    def get_change_of_basis(self):
        return self.get_space_group_match().change_of_basis

    def get_conventional_transformation(self):
        """
        Returns:
            np.ndarray: The integer matrix from the reduced primitive cell to
            the standardized conventional cell.
        """
        basis = self.get_conventional_basis()
        change = self.get_change_of_basis()
        return np.dot(basis.transformation, change.transformation)

    def get_transformation_matrix(self):
        """
        Returns:
            np.ndarray: The matrix from the input cell to the standardized
            conventional cell. The entries are integers unless the input cell
            is larger than the conventional cell.
        """
        transformation = np.dot(
            self.get_primitive_cell().transformation,
            self.get_conventional_transformation())
        rounded = np.rint(transformation)
        return np.where(
            np.abs(transformation - rounded) < constants.RATIONAL_TOL,
            rounded,
            transformation)

    def get_symmetry_operations(self):
        """
        Returns:
            SymmetryOperationSet: All the symmetry operations in the
            standardized conventional cell, translations wrapped to [0, 1).
        """
        operations = self.get_space_group_match().operations
        translations = symid.geometry.get_wrapped_positions(
            operations.translations, constants.RATIONAL_TOL)
        return SymmetryOperationSet.from_arrays(operations.rotations, translations)

    def get_conventional_structure(self):
        """The atoms in the standardized conventional cell. The cell is not
        idealized, see get_conventional_cell.

        Returns:
            Structure: The conventional structure.
        """
        if self._conventional_structure is not None:
            return self._conventional_structure

        primitive = self.get_primitive_cell().structure
        basis = self.get_conventional_basis()
        match = self.get_space_group_match()

        conventional = primitive.change_basis(basis.transformation)
        centering_vectors = basis.get_centering_vectors()
        n_copies = len(centering_vectors)
        positions = np.concatenate(
            [conventional.scaled_positions + vector for vector in centering_vectors])
        structure = Structure(
            conventional.cell,
            positions,
            np.tile(conventional.species, n_copies),
            np.tile(conventional.occupancies, n_copies),
        )
        structure = structure.change_basis(
            match.change_of_basis.transformation,
            match.origin_shift).get_wrapped()
        structure = Structure(
            structure.cell,
            structure.scaled_positions,
            structure.species,
            self._get_input_occupancies(structure),
        )

        self._conventional_structure = structure
        return structure

    def _get_input_occupancies(self, conventional):
        """The occupancy of the input atom found at the position of each
        conventional atom. Atoms merged in the primitive cell can differ in
        occupancy when partial occupancies are allowed.
        """
        original = self._original_structure
        transformation = np.dot(
            self.get_primitive_cell().transformation,
            self.get_conventional_transformation())
        shift = self.get_space_group_match().origin_shift
        positions = np.dot(conventional.scaled_positions - shift, transformation.T)

        species = conventional.species
        occupancies = conventional.occupancies
        for i, position in enumerate(positions):
            index = symid.geometry.search_periodic_position(
                position,
                original.scaled_positions,
                original.cell.matrix,
                self.get_precision(),
                original.species == species[i])
            if index is not None:
                occupancies[i] = original.occupancies[index]
        return occupancies

    def get_conventional_cell(self):
        """
        Returns:
            UnitCell: The conventional cell idealized to the metric of the
            crystal system in the standard orientation.
        """
        cell = self.get_conventional_structure().cell
        return get_idealized_cell(cell, self.get_point_group().holohedry)

    def get_rotation_matrix(self):
        """
        Returns:
            np.ndarray: The cartesian rotation R that brings the conventional
            cell into the standard orientation, i.e. each lattice vector v is
            rotated to R v.
        """
        cell = self.get_conventional_structure().cell
        oriented = UnitCell.from_parameters(*cell.abc, *cell.angles)
        return np.dot(cell.inv_matrix, oriented.matrix).T

    def get_equivalent_atoms_conventional(self):
        """
        Returns:
            np.ndarray: For each atom in the conventional structure the index
            of the first atom in the same orbit.
        """
        if self._equivalent_atoms is not None:
            return self._equivalent_atoms
        self._equivalent_atoms = get_equivalent_atoms(
            self.get_conventional_structure(),
            self.get_symmetry_operations(),
            self.get_precision(),
            self.allow_partial_occupancies,
            self.occupancy_tol)
        return self._equivalent_atoms

    def get_asymmetric_unit(self):
        """
        Returns:
            Structure: One atom for each orbit in the conventional structure,
            the one with the lexicographically smallest position.
        """
        asymmetric, _ = select_representatives(
            self.get_conventional_structure(),
            self.get_equivalent_atoms_conventional())
        return asymmetric

    def get_space_group_result(self):
        """
        Returns:
            SpaceGroupResult: All the results collected into one immutable
            record.
        """
        if self._space_group_result is not None:
            return self._space_group_result

        match = self.get_space_group_match()
        conventional_cell = self.get_conventional_cell()
        atoms = self.get_conventional_structure()
        asymmetric = self.get_asymmetric_unit()

        self._space_group_result = SpaceGroupResult(
            hall_number=match.entry.hall_number,
            space_group_number=match.entry.number,
            international_short=match.entry.international_short,
            hall_symbol=match.entry.hall_symbol,
            choice=match.entry.choice,
            point_group=self.get_point_group().symbol,
            origin_shift=_read_only(match.origin_shift),
            transformation_matrix=_read_only(self.get_transformation_matrix()),
            rotation_matrix=_read_only(self.get_rotation_matrix()),
            change_of_basis=match.change_of_basis,
            primitive_cell=self.get_primitive_cell().structure.cell,
            primitive_transformation=_read_only(self.get_conventional_transformation()),
            conventional_cell=conventional_cell,
            operations=self.get_symmetry_operations(),
            atoms=Structure(conventional_cell, atoms.scaled_positions, atoms.species, atoms.occupancies),
            asymmetric_atoms=Structure(
                conventional_cell,
                asymmetric.scaled_positions,
                asymmetric.species,
                asymmetric.occupancies),
            equivalent_atoms=_read_only(self.get_equivalent_atoms_conventional()),
        )
        return self._space_group_result

    def _find_symmetry(self):
        """Runs the primitive cell, operation search and closure check with
        the symmetry precision and, if the operations do not form a group,
        once more with a relaxed precision.
        """
        if self._group_table is not None:
            return
        if self._original_structure is None:
            raise ValueError("No structure has been given for the analysis.")

        precision = self.symmetry_precision
        try:
            self._search(precision)
        except GroupNotClosed as e:
            relaxed = constants.RELAXED_PRECISION_FACTOR*precision
            logger.warning(
                "The symmetry operations did not form a group (%s). Retrying "
                "with the relaxed precision %g.", e, relaxed)
            self._search(relaxed)

    def _search(self, precision):
        primitive = find_primitive_cell(
            self._original_structure,
            precision,
            self.allow_partial_occupancies,
            self.occupancy_tol)
        rotations = get_lattice_rotations(primitive.structure.cell, precision)
        operations = search_symmetry_operations(
            primitive.structure,
            rotations,
            precision,
            self.allow_partial_occupancies,
            self.occupancy_tol)
        table = verify_closure(operations, primitive.structure.cell.matrix, precision)

        self._precision = precision
        self._primitive_cell = primitive
        self._lattice_rotations = rotations
        self._group_table = table


def get_idealized_cell(cell, holohedry):
    """Creates a cell in the standard orientation whose metric follows the
    constraints of the given crystal system exactly.

    Args:
        cell (UnitCell): A conventional cell.
        holohedry (str): The crystal system.

    Returns:
        UnitCell: The idealized cell.
    """
    a, b, c = cell.abc
    alpha, beta, gamma = cell.angles
    if holohedry == "monoclinic":
        alpha = gamma = 90.0
    elif holohedry == "orthorhombic":
        alpha = beta = gamma = 90.0
    elif holohedry == "tetragonal":
        a = b = (a + b)/2
        alpha = beta = gamma = 90.0
    elif holohedry in ("trigonal", "hexagonal"):
        a = b = (a + b)/2
        alpha = beta = 90.0
        gamma = 120.0
    elif holohedry == "cubic":
        a = b = c = (a + b + c)/3
        alpha = beta = gamma = 90.0
    return UnitCell.from_parameters(a, b, c, alpha, beta, gamma)


def find_space_group(
        cell,
        positions,
        types,
        occupancies=None,
        symmetry_precision=None,
        allow_partial_occupancies=False):
    """Determines the space group of a structure.

    Args:
        cell (np.ndarray): Lattice vectors as rows.
        positions (np.ndarray): Fractional positions as rows.
        types (sequence): One species identifier per atom.
        occupancies (sequence): Optional occupancies in (0, 1].
        symmetry_precision (float): The symmetry precision in angstroms.
        allow_partial_occupancies (bool): Whether to ignore the occupancies
            when matching atoms.

    Returns:
        SpaceGroupResult: The result.

    Raises:
        LatticeDegenerate, NoAtomsMatched, GroupNotClosed,
        SpaceGroupNotFound: If the space group can not be determined.
    """
    structure = Structure(cell, positions, types, occupancies)
    finder = SpaceGroupFinder(
        structure,
        symmetry_precision=symmetry_precision,
        allow_partial_occupancies=allow_partial_occupancies)
    return finder.get_space_group_result()


def find_space_group_from_atoms(
        atoms,
        occupancies=None,
        symmetry_precision=None,
        allow_partial_occupancies=False):
    """Determines the space group of an ASE.Atoms object, see
    find_space_group.
    """
    structure = Structure.from_atoms(atoms, occupancies)
    finder = SpaceGroupFinder(
        structure,
        symmetry_precision=symmetry_precision,
        allow_partial_occupancies=allow_partial_occupancies)
    return finder.get_space_group_result()


def _read_only(array):
    array = np.array(array)
    array.setflags(write=False)
    return array
