import pytest
import numpy as np

from symid.core.lattice import UnitCell
from symid.core.reduction import delaunay_reduce
from symid.core.system import Structure
from symid.exceptions import GroupNotClosed, NoAtomsMatched, SpaceGroupNotFound
from symid.geometry import get_integer_determinant
from symid.symmetry.closure import verify_closure
from symid.symmetry.operations import SymmetryOperation, SymmetryOperationSet
from symid.symmetry.pointgroup import (
    PointGroup,
    construct_conventional_basis,
    get_centering,
    get_rotation_type,
)
from symid.symmetry.primitive import find_primitive_cell
from symid.symmetry.search import (
    get_lattice_rotations,
    is_identity_operation,
    iter_symmetry_operations,
    search_symmetry_operations,
)
from conftest import create_si, create_fe, create_sic, create_zno

PRECISION = 0.01


def get_primitive_operations(atoms):
    primitive = find_primitive_cell(Structure.from_atoms(atoms), PRECISION)
    rotations = get_lattice_rotations(primitive.structure.cell, PRECISION)
    operations = search_symmetry_operations(primitive.structure, rotations, PRECISION)
    return primitive, operations


@pytest.mark.parametrize("cell, n_rotations", [
    pytest.param(UnitCell(5*np.identity(3)), 48, id="cubic"),
    pytest.param(UnitCell(create_zno().get_cell()[:]), 24, id="hexagonal"),
    pytest.param(UnitCell(np.diag([3, 3, 5])), 16, id="tetragonal"),
    pytest.param(UnitCell(np.diag([3, 4, 5])), 8, id="orthorhombic"),
    pytest.param(UnitCell.from_parameters(3, 4, 5, 90, 100, 90), 4, id="monoclinic"),
    pytest.param(UnitCell.from_parameters(3, 4, 5, 80, 100, 70), 2, id="triclinic"),
])
def test_lattice_rotations(cell, n_rotations):
    reduced, _ = delaunay_reduce(cell, PRECISION)
    rotations = get_lattice_rotations(reduced, PRECISION)
    assert len(rotations) == n_rotations
    assert np.array_equal(rotations[0], np.identity(3))
    for rotation in rotations:
        assert abs(get_integer_determinant(rotation)) == 1
        rotated = np.dot(rotation.T, np.dot(reduced.metric, rotation))
        assert np.allclose(rotated, reduced.metric, atol=0.1)


@pytest.mark.parametrize("atoms, n_points, n_atoms", [
    pytest.param(create_si(cubic=True), 4, 2, id="diamond"),
    pytest.param(create_si(cubic=False), 1, 2, id="diamond primitive"),
    pytest.param(create_fe(cubic=True), 2, 1, id="BCC"),
    pytest.param(create_zno(), 1, 4, id="wurtzite"),
    pytest.param(create_si(cubic=True).repeat([1, 2, 3]), 24, 2, id="diamond supercell"),
])
def test_primitive_cell(atoms, n_points, n_atoms):
    structure = Structure.from_atoms(atoms)
    primitive = find_primitive_cell(structure, PRECISION)
    assert primitive.n_lattice_points == n_points
    assert len(primitive.structure) == n_atoms
    assert np.isclose(abs(np.linalg.det(primitive.transformation)), 1/n_points)
    assert np.isclose(primitive.structure.cell.volume*n_points, structure.cell.volume)
    assert np.allclose(primitive.translations[0], 0)

    positions = primitive.structure.scaled_positions
    assert np.all(positions >= 0)
    assert np.all(positions < 1)


def test_primitive_cell_empty():
    structure = Structure(np.identity(3), np.zeros((0, 3)), [])
    with pytest.raises(NoAtomsMatched):
        find_primitive_cell(structure)


@pytest.mark.parametrize("atoms, n_operations, point_group", [
    pytest.param(create_si(cubic=False), 48, "m-3m", id="diamond"),
    pytest.param(create_sic(cubic=False), 24, "-43m", id="zinc blende"),
    pytest.param(create_fe(cubic=False), 48, "m-3m", id="BCC"),
    pytest.param(create_zno(), 12, "6mm", id="wurtzite"),
])
def test_symmetry_operations(atoms, n_operations, point_group):
    primitive, operations = get_primitive_operations(atoms)
    assert len(operations) == n_operations
    assert operations[0].is_identity(tol=1e-6)
    assert len(operations.get_rotation_keys()) == n_operations
    assert PointGroup.from_rotations(operations.rotations).symbol == point_group

    # Every operation maps every atom onto an atom of the same species
    structure = primitive.structure
    cell = structure.cell.matrix
    for operation in operations:
        images = operation.apply(structure.scaled_positions)
        for image, species in zip(images, structure.species):
            displacements = structure.scaled_positions - image
            displacements -= np.round(displacements)
            distances = np.linalg.norm(np.dot(displacements, cell), axis=1)
            closest = np.argmin(distances)
            assert distances[closest] <= PRECISION
            assert structure.species[closest] == species


def test_operations_are_generated_lazily():
    primitive = find_primitive_cell(Structure.from_atoms(create_si(cubic=False)), PRECISION)
    rotations = get_lattice_rotations(primitive.structure.cell, PRECISION)
    first = next(iter_symmetry_operations(primitive.structure, rotations, PRECISION))
    assert first.is_identity(tol=1e-6)


def test_identity_operation_in_cartesian_distance():
    """The translation of the identity is compared against the precision as
    a distance in angstroms, not in fractional coordinates.
    """
    cell = 10*np.identity(3)
    shifted = SymmetryOperation(np.identity(3), [0.005, 0, 0])
    assert is_identity_operation(shifted, cell, 0.1)
    assert not is_identity_operation(shifted, cell, 0.01)

    far = SymmetryOperation(np.identity(3), [0.05, 0, 0])
    assert not is_identity_operation(far, cell, 0.1)

    wrapped = SymmetryOperation(np.identity(3), [0.999, 0, 1])
    assert is_identity_operation(wrapped, cell, 0.02)

    inversion = SymmetryOperation(-np.identity(3), np.zeros(3))
    assert not is_identity_operation(inversion, cell, 0.1)


def test_no_atoms_matched():
    """A zinc blende structure has no inversion center, so searching with
    the inversion alone finds nothing.
    """
    structure = Structure.from_atoms(create_sic(cubic=False))
    with pytest.raises(NoAtomsMatched):
        search_symmetry_operations(structure, [-np.identity(3, dtype=int)], PRECISION)

    empty = Structure(np.identity(3), np.zeros((0, 3)), [])
    with pytest.raises(NoAtomsMatched):
        search_symmetry_operations(empty, [np.identity(3, dtype=int)], PRECISION)


def test_closure():
    primitive, operations = get_primitive_operations(create_si(cubic=False))
    cell = primitive.structure.cell.matrix
    table = verify_closure(operations, cell, PRECISION)

    assert table.order == 48
    assert np.array_equal(table.products[0], np.arange(48))
    assert table.inverses[0] == 0
    for i in range(table.order):
        assert table.products[i, table.inverses[i]] == 0
    order, pairs = table.get_signature()
    assert order == 48
    assert len(pairs) == 48


def test_closure_missing_operation():
    primitive, operations = get_primitive_operations(create_si(cubic=False))
    cell = primitive.structure.cell.matrix
    incomplete = SymmetryOperationSet(list(operations)[:-1])
    with pytest.raises(GroupNotClosed):
        verify_closure(incomplete, cell, PRECISION)


def test_closure_duplicate_rotations():
    primitive, operations = get_primitive_operations(create_si(cubic=False))
    cell = primitive.structure.cell.matrix
    doubled = operations.with_centering([[0, 0, 0], [0.5, 0, 0]])
    with pytest.raises(GroupNotClosed):
        verify_closure(doubled, cell, PRECISION)


@pytest.mark.parametrize("rotation, rotation_type", [
    pytest.param(np.identity(3), 1, id="identity"),
    pytest.param(-np.identity(3), -1, id="inversion"),
    pytest.param(np.diag([-1, -1, 1]), 2, id="two-fold"),
    pytest.param(np.diag([1, 1, -1]), -2, id="mirror"),
    pytest.param([[0, 0, 1], [1, 0, 0], [0, 1, 0]], 3, id="three-fold"),
    pytest.param([[0, -1, 0], [1, 0, 0], [0, 0, 1]], 4, id="four-fold"),
    pytest.param([[0, 1, 0], [-1, 0, 0], [0, 0, -1]], -4, id="four-fold rotoinversion"),
    pytest.param([[1, -1, 0], [1, 0, 0], [0, 0, 1]], 6, id="six-fold"),
])
def test_rotation_type(rotation, rotation_type):
    assert get_rotation_type(np.array(rotation, dtype=int)) == rotation_type


def test_rotation_type_invalid():
    with pytest.raises(ValueError):
        get_rotation_type(2*np.identity(3, dtype=int))


def test_point_group_not_found():
    rotations = [np.identity(3, dtype=int), np.array([[0, -1, 0], [1, 0, 0], [0, 0, 1]])]
    with pytest.raises(SpaceGroupNotFound):
        PointGroup.from_rotations(rotations)


def test_point_group_properties():
    point_group = PointGroup.from_number(32)
    assert point_group.symbol == "m-3m"
    assert point_group.order == 48
    assert point_group.holohedry == "cubic"
    assert point_group.is_centrosymmetric
    assert not PointGroup.from_number(31).is_centrosymmetric


@pytest.mark.parametrize("transformation, centering", [
    pytest.param(np.identity(3), "P", id="primitive"),
    pytest.param([[-1, 1, 1], [1, -1, 1], [1, 1, -1]], "F", id="face centered"),
    pytest.param([[0, 1, 1], [1, 0, 1], [1, 1, 0]], "I", id="body centered"),
    pytest.param([[1, 1, 0], [-1, 1, 0], [0, 0, 1]], "C", id="base centered"),
])
def test_centering(transformation, centering):
    assert get_centering(np.array(transformation, dtype=int)) == centering


@pytest.mark.parametrize("atoms, centering, point_group", [
    pytest.param(create_si(cubic=False), "F", "m-3m", id="diamond"),
    pytest.param(create_fe(cubic=False), "I", "m-3m", id="BCC"),
    pytest.param(create_zno(), "P", "6mm", id="wurtzite"),
])
def test_conventional_basis(atoms, centering, point_group):
    primitive, operations = get_primitive_operations(atoms)
    cell = primitive.structure.cell
    basis = construct_conventional_basis(operations.rotations, cell, PRECISION)
    assert basis.centering == centering
    assert basis.point_group.symbol == point_group
    assert basis.n_lattice_points == len(basis.get_centering_vectors())

    conventional = cell.change_basis(basis.transformation)
    if point_group == "m-3m":
        assert np.allclose(conventional.angles, 90)
        assert np.allclose(conventional.lengths, conventional.lengths[0])
    else:
        assert np.allclose(conventional.angles, [90, 90, 120])
