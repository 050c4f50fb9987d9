"""Point group identification and the construction of a conventional basis.

The conventional axes are derived from the rotation axes of the point group
following R. W. Grosse-Kunstleve, Acta Cryst. A55, 383-395 (1999).
"""
import logging

import numpy as np

from symid.core.reduction import delaunay_reduce_2d, niggli_reduce
from symid.data import constants
from symid.data import symmetry_data
from symid.exceptions import SpaceGroupNotFound
import symid.geometry

logger = logging.getLogger(__name__)

_ROTATION_TYPES = {
    (-1, -3): -1,
    (-1, -2): -6,
    (-1, -1): -4,
    (-1, 0): -3,
    (-1, 1): -2,
    (1, -1): 2,
    (1, 0): 3,
    (1, 1): 4,
    (1, 2): 6,
    (1, 3): 1,
}
_AXES = np.array(symmetry_data.ROTATION_AXES, dtype=np.int64)


def get_rotation_type(rotation):
    """The crystallographic type of a rotation: n for an n-fold rotation and
    -n for an n-fold rotoinversion (-1 is the inversion, -2 a mirror).

    Raises:
        ValueError: If the matrix is not a crystallographic rotation.
    """
    rotation = np.asarray(rotation)
    det = symid.geometry.get_integer_determinant(rotation)
    trace = int(np.trace(rotation))
    try:
        return _ROTATION_TYPES[(det, trace)]
    except KeyError:
        raise ValueError(
            "Matrix with determinant {} and trace {} is not a crystallographic "
            "rotation.".format(det, trace)
        )


def get_proper_rotation(rotation):
    """The proper part of a rotation, i.e. the rotation multiplied by its
    determinant.
    """
    return symid.geometry.get_integer_determinant(rotation)*np.asarray(rotation, dtype=np.int64)


def get_rotation_axis(rotation):
    """The first listed axis v with W v = v for the proper part W of the
    given rotation, or None if the rotation is the identity or the inversion.
    """
    proper = get_proper_rotation(rotation)
    if np.array_equal(proper, np.identity(3, dtype=np.int64)):
        return None
    fixed = np.all(np.dot(_AXES, proper.T) == _AXES, axis=1)
    indices = np.where(fixed)[0]
    if len(indices) == 0:
        return None
    return _AXES[indices[0]]


def get_rotation_axis_index(rotation):
    axis = get_rotation_axis(rotation)
    if axis is None:
        return None
    return int(np.where(np.all(_AXES == axis, axis=1))[0][0])


def get_perpendicular_axes(rotation):
    """The listed axes that are perpendicular to the axis of the given proper
    n-fold rotation W, i.e. those with (1 + W + ... + W^(n-1)) v = 0.
    """
    proper = get_proper_rotation(rotation)
    order = abs(get_rotation_type(proper))
    total = np.zeros((3, 3), dtype=np.int64)
    power = np.identity(3, dtype=np.int64)
    for _ in range(order):
        total += power
        power = np.dot(proper, power)
    perpendicular = np.all(np.dot(_AXES, total.T) == 0, axis=1)
    return _AXES[perpendicular]


class PointGroup(object):
    """One of the 32 crystallographic point groups.
    """
    def __init__(self, number, symbol, schoenflies, holohedry, laue, table):
        self.number = number
        self.symbol = symbol
        self.schoenflies = schoenflies
        self.holohedry = holohedry
        self.laue = laue
        self.table = tuple(table)

    @property
    def order(self):
        return sum(self.table)

    @property
    def is_centrosymmetric(self):
        return self.table[constants.ROTATION_TYPES.index(-1)] == 1

    @staticmethod
    def from_number(number):
        return _POINT_GROUPS[number - 1]

    @staticmethod
    def from_rotations(rotations):
        """Identifies the point group from the rotation type histogram of the
        given rotations.

        Raises:
            SpaceGroupNotFound: If the rotations do not form a
                crystallographic point group.
        """
        histogram = [0]*len(constants.ROTATION_TYPES)
        for rotation in rotations:
            histogram[constants.ROTATION_TYPES.index(get_rotation_type(rotation))] += 1
        histogram = tuple(histogram)
        for point_group in _POINT_GROUPS:
            if point_group.table == histogram:
                return point_group
        raise SpaceGroupNotFound(
            "The rotations do not form a crystallographic point group.",
            value=histogram
        )

    def __eq__(self, other):
        return isinstance(other, PointGroup) and self.number == other.number

    def __hash__(self):
        return hash(self.number)

    def __repr__(self):
        return "PointGroup({})".format(self.symbol)


_POINT_GROUPS = tuple(PointGroup(**data) for data in symmetry_data.POINT_GROUPS)


class ConventionalBasis(object):
    """The conventional basis of a structure given in its reduced primitive
    cell.

    Attributes:
        axes (np.ndarray): Integer matrix of the constructed axes (columns)
            before the centering corrections.
        transformation (np.ndarray): Integer matrix M from the reduced
            primitive cell to the conventional cell, (a', b', c') = (a, b, c) M.
            det(M) equals the number of lattice points in the conventional
            cell.
        centering (str): The centering letter of the conventional cell.
        point_group (PointGroup): The point group.
    """
    def __init__(self, axes, transformation, centering, point_group):
        self.axes = axes
        self.transformation = transformation
        self.centering = centering
        self.point_group = point_group

    @property
    def n_lattice_points(self):
        return symid.geometry.get_integer_determinant(self.transformation)

    def get_centering_vectors(self):
        """The lattice points inside the conventional cell, given in the
        conventional cell.
        """
        return get_centering_vectors(self.transformation)


def get_centering_vectors(transformation):
    """The lattice points of the original lattice inside the cell spanned by
    the given integer transformation, in the coordinates of the new cell.
    """
    det = symid.geometry.get_integer_determinant(transformation)
    adjugate = symid.geometry.get_adjugate(transformation)
    if det < 0:
        det, adjugate = -det, -adjugate
    # The primitive vectors in the new basis are the columns of adj(M)/det(M)
    return symid.geometry.get_lattice_points(adjugate.T, det)


def get_centering(transformation):
    """Identifies the centering of the cell spanned by the given integer
    transformation from a primitive cell.

    Returns:
        str: One of 'P', 'A', 'B', 'C', 'I', 'F', 'R' (obverse) or
        'R_reverse', or None if the centering is not a standard one.
    """
    vectors = get_centering_vectors(transformation)[1:]
    if len(vectors) == 0:
        return "P"
    for letter, reference in symmetry_data.CENTERING_VECTORS.items():
        if len(reference) != len(vectors):
            continue
        reference = np.array(reference)
        if all(np.any(np.all(np.abs(symid.geometry.wrap(reference - v)) < 1e-8, axis=1)) for v in vectors):
            return letter
    return None


def construct_conventional_basis(rotations, cell, precision=None):
    """Constructs the conventional basis from the point group operations of
    a structure in its Delaunay reduced primitive cell.

    Args:
        rotations (list of np.ndarray): The rotation parts of the space group
            operations in the reduced primitive cell.
        cell (UnitCell): The reduced primitive cell.
        precision (float): The symmetry precision.

    Returns:
        ConventionalBasis: The conventional basis.

    Raises:
        SpaceGroupNotFound: If no standard conventional basis can be
            constructed.
    """
    if precision is None:
        precision = constants.SYMMETRY_PRECISION
    point_group = PointGroup.from_rotations(rotations)
    axis_type = symmetry_data.LAUE_AXIS_ROTATION_TYPE[point_group.laue]

    if point_group.holohedry == "triclinic":
        axes = np.identity(3, dtype=np.int64)
    elif point_group.holohedry == "monoclinic":
        axes = _get_monoclinic_axes(rotations, cell, axis_type)
    elif point_group.holohedry in ("orthorhombic", "cubic"):
        axes = _get_orthogonal_axes(rotations, axis_type)
    else:
        axes = _get_principal_axes(rotations, cell, axis_type)

    if axes is None:
        raise SpaceGroupNotFound(
            "Could not construct the conventional axes for point group {}.".format(point_group.symbol),
            value=point_group.symbol
        )

    transformation = _correct_centering(axes, point_group, cell, precision)
    centering = get_centering(transformation)
    if centering is None or centering == "R_reverse":
        raise SpaceGroupNotFound(
            "The conventional cell has a non-standard centering.",
            value=transformation
        )

    logger.debug(
        "Point group %s, conventional basis %s with centering %s",
        point_group.symbol, transformation.tolist(), centering)
    return ConventionalBasis(axes, transformation, centering, point_group)


def _get_proper_rotations_of_type(rotations, rotation_type):
    result = []
    for rotation in rotations:
        proper = get_proper_rotation(rotation)
        if get_rotation_type(proper) == rotation_type:
            result.append(proper)
    return result


def _sort_by_length(vectors, cell):
    lengths = np.linalg.norm(np.dot(vectors, cell.matrix), axis=1)
    return vectors[np.argsort(lengths, kind="stable")]


def _get_monoclinic_axes(rotations, cell, axis_type):
    """The unique axis b is the two-fold axis, a and c are the two shortest
    perpendicular lattice vectors, reduced within their plane.
    """
    candidates = _get_proper_rotations_of_type(rotations, axis_type)
    if not candidates:
        return None
    rotation = candidates[0]
    unique_axis = get_rotation_axis(rotation)
    perpendicular = _sort_by_length(get_perpendicular_axes(rotation), cell)
    if unique_axis is None or len(perpendicular) < 2:
        return None

    axes = np.array([perpendicular[0], unique_axis, perpendicular[1]]).T
    if symid.geometry.get_integer_determinant(axes) < 0:
        axes[:, 2] *= -1
    _, reduction = delaunay_reduce_2d(cell.change_basis(axes), 1)
    return np.dot(axes, reduction)


def _get_orthogonal_axes(rotations, axis_type):
    """The three first listed axes of the rotations of the given type.
    """
    indices = set()
    for rotation in _get_proper_rotations_of_type(rotations, axis_type):
        index = get_rotation_axis_index(rotation)
        if index is not None:
            indices.add(index)
    indices = sorted(indices)
    if len(indices) < 3:
        return None

    axes = _AXES[indices[:3]].T.copy()
    det = symid.geometry.get_integer_determinant(axes)
    if det == 0:
        return None
    if det < 0:
        axes[:, [1, 2]] = axes[:, [2, 1]]
    return axes


def _get_principal_axes(rotations, cell, axis_type):
    """The c axis is the axis of the principal rotation W, a is the shortest
    perpendicular lattice vector v and b = W v.
    """
    candidates = _get_proper_rotations_of_type(rotations, axis_type)
    if not candidates:
        return None
    rotation = candidates[0]
    principal_axis = get_rotation_axis(rotation)
    if principal_axis is None:
        return None

    listed = {tuple(axis) for axis in _AXES}
    for vector in _sort_by_length(get_perpendicular_axes(rotation), cell):
        image = np.dot(rotation, vector)
        if tuple(image) not in listed and tuple(-image) not in listed:
            continue
        axes = np.array([vector, image, principal_axis]).T
        det = symid.geometry.get_integer_determinant(axes)
        if 0 < abs(det) < 4:
            if det < 0:
                axes[:, [0, 1]] = axes[:, [1, 0]]
            return axes
    return None


def _correct_centering(axes, point_group, cell, precision):
    """Applies the corrections that bring the constructed axes to the
    settings used by the matcher: C centering for monoclinic cells and for
    A or B centered orthorhombic cells, obverse rhombohedral axes and a
    Niggli reduced triclinic cell.
    """
    centering = get_centering(axes)
    correction = np.identity(3, dtype=np.int64)
    monoclinic = point_group.holohedry == "monoclinic"

    if centering == "A":
        correction = symmetry_data.A_TO_C_MONOCLINIC if monoclinic else symmetry_data.A_TO_C
    elif centering == "B" and not monoclinic:
        correction = symmetry_data.B_TO_C
    elif centering == "I" and monoclinic:
        correction = symmetry_data.I_TO_C_MONOCLINIC
    elif centering == "R_reverse":
        correction = symmetry_data.REVERSE_TO_OBVERSE
    correction = np.array(correction, dtype=np.int64).T

    transformation = np.dot(axes, correction)
    if point_group.holohedry == "triclinic":
        _, niggli = niggli_reduce(cell.change_basis(transformation), precision)
        transformation = np.dot(transformation, niggli)
    return transformation
