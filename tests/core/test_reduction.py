import pytest
import numpy as np

from symid.core.lattice import UnitCell
from symid.core.reduction import delaunay_reduce, delaunay_reduce_2d, niggli_reduce
from symid.exceptions import LatticeDegenerate
from symid.geometry import get_integer_determinant
from conftest import create_triclinic, create_si, create_zno


skewed_cubic = UnitCell(3*np.array([
    [1, 0, 0],
    [1, 1, 0],
    [1, 1, 1],
]))
generic = UnitCell([
    [4.0, 0.0, 0.0],
    [1.0, 5.0, 0.0],
    [1.5, 0.7, 6.0],
])
triclinic = UnitCell(create_triclinic().get_cell()[:])
fcc = UnitCell(create_si(cubic=False).get_cell()[:])
hexagonal = UnitCell(create_zno().get_cell()[:])


def cosines(cell):
    return np.sort(np.abs(np.cos(np.radians(cell.angles))))


@pytest.mark.parametrize("cell", [
    pytest.param(skewed_cubic, id="skewed cubic"),
    pytest.param(generic, id="generic"),
    pytest.param(triclinic, id="triclinic"),
    pytest.param(fcc, id="fcc primitive"),
    pytest.param(hexagonal, id="hexagonal"),
])
def test_delaunay_properties(cell):
    """The reduction is a unimodular, right-handed change of basis and
    reducing the result again gives an equivalent basis.
    """
    reduced, transformation = delaunay_reduce(cell)
    assert get_integer_determinant(transformation) == 1
    assert np.allclose(reduced.matrix, np.dot(transformation.T, cell.matrix))
    assert np.isclose(reduced.volume, cell.volume)
    assert reduced.determinant > 0

    again, _ = delaunay_reduce(reduced)
    assert np.allclose(np.sort(again.lengths), np.sort(reduced.lengths))
    assert np.allclose(cosines(again), cosines(reduced))


def test_delaunay_skewed_cubic():
    reduced, _ = delaunay_reduce(skewed_cubic)
    assert np.allclose(reduced.lengths, [3, 3, 3])
    assert np.allclose(reduced.angles, [90, 90, 90])


def test_delaunay_reduced_cell_is_kept():
    cubic = UnitCell(np.identity(3))
    _, transformation = delaunay_reduce(cubic)
    assert np.array_equal(transformation, np.identity(3))

    _, transformation = delaunay_reduce(triclinic)
    assert np.array_equal(transformation, np.identity(3))


def test_delaunay_2d():
    cell = UnitCell([
        [3, 0, 0],
        [0, 4, 0],
        [2, 0, 3],
    ])
    reduced, transformation = delaunay_reduce_2d(cell, 1)
    assert np.array_equal(transformation[:, 1], [0, 1, 0])
    assert np.allclose(reduced.lengths, [3, 4, np.sqrt(10)])
    assert get_integer_determinant(transformation) == 1


def test_niggli_triclinic():
    """An acute angle with two right angles is turned obtuse by flipping b
    and c.
    """
    reduced, transformation = niggli_reduce(triclinic)
    assert np.array_equal(transformation, [[1, 0, 0], [0, -1, 0], [0, 0, -1]])
    assert np.allclose(reduced.angles, [90, 90, 110])


def test_niggli_skewed_cubic():
    reduced, transformation = niggli_reduce(skewed_cubic)
    assert get_integer_determinant(transformation) == 1
    assert np.allclose(reduced.lengths, [3, 3, 3])
    assert np.allclose(reduced.angles, [90, 90, 90])


@pytest.mark.parametrize("reduce", [
    pytest.param(delaunay_reduce, id="Delaunay"),
    pytest.param(niggli_reduce, id="Niggli"),
])
def test_degenerate(reduce):
    cell = UnitCell([
        [1, 0, 0],
        [0, 1, 0],
        [1, 1, 0],
    ])
    with pytest.raises(LatticeDegenerate):
        reduce(cell)
