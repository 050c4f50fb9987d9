"""Lattice reductions.

Every reduction returns the reduced cell together with the integer
transformation matrix P that relates the bases as (a', b', c') = (a, b, c) P.
The basis vectors are tracked as integer combinations of the original ones
so the transformation is exact even though the decisions are made with
floating point dot products.
"""
import logging

import numpy as np

from symid.core.lattice import UnitCell
from symid.data import constants
from symid.exceptions import LatticeDegenerate
import symid.geometry

logger = logging.getLogger(__name__)


def delaunay_reduce(cell, precision=None):
    """Delaunay reduces the given cell.

    The extended basis b1, b2, b3, b4 = -(b1 + b2 + b3) is reduced until all
    the pairwise dot products are non-positive. The reduced basis is then
    formed from the three shortest non-coplanar vectors of the set
    {b1, b2, b3, b4, b1+b2, b2+b3, b3+b1} so that the determinant is
    positive.

    Args:
        cell (UnitCell): The cell to reduce.
        precision (float): The symmetry precision. Dot products smaller than
            its square are treated as zero.

    Returns:
        (UnitCell, np.ndarray): The reduced cell and the integer
        transformation matrix from the given cell to the reduced one.

    Raises:
        LatticeDegenerate: If the cell has no volume or the reduction does
            not converge.
    """
    if precision is None:
        precision = constants.SYMMETRY_PRECISION
    matrix = cell.matrix
    _check_volume(cell, precision)

    extended = np.array([
        [1, 0, 0],
        [0, 1, 0],
        [0, 0, 1],
        [-1, -1, -1],
    ], dtype=np.int64)
    threshold = precision**2

    for _ in range(constants.MAX_DELAUNAY_ITERATIONS):
        vectors = np.dot(extended, matrix)
        reduced = True
        for i in range(4):
            for j in range(i + 1, 4):
                if np.dot(vectors[i], vectors[j]) > threshold:
                    for k in range(4):
                        if k != i and k != j:
                            extended[k] += extended[i]
                    extended[i] = -extended[i]
                    reduced = False
                    break
            if not reduced:
                break
        if reduced:
            break
    else:
        raise LatticeDegenerate(
            "The Delaunay reduction did not converge.", value=cell.matrix
        )

    candidates = [
        extended[0],
        extended[1],
        extended[2],
        extended[3],
        extended[0] + extended[1],
        extended[1] + extended[2],
        extended[2] + extended[0],
    ]
    lengths = [np.dot(np.dot(c, matrix), np.dot(c, matrix)) for c in candidates]
    order = sorted(range(7), key=lambda i: lengths[i])
    candidates = [candidates[i] for i in order]

    first, second = candidates[0], candidates[1]
    volume_threshold = precision*np.cbrt(cell.volume)**2
    for third in candidates[2:]:
        transformation = np.array([first, second, third]).T
        volume = np.linalg.det(np.dot(transformation.T, matrix))
        if abs(volume) > volume_threshold:
            if volume < 0:
                transformation = -transformation
            break
    else:
        raise LatticeDegenerate(
            "No three non-coplanar vectors found in the Delaunay reduced "
            "basis.", value=cell.matrix
        )

    return cell.change_basis(transformation), transformation


def delaunay_reduce_2d(cell, unique_axis, precision=None):
    """Delaunay reduces the two basis vectors that are perpendicular to
    the given unique axis. The unique axis itself is kept, possibly with a
    flipped sign to keep the determinant positive.

    Args:
        cell (UnitCell): The cell to reduce.
        unique_axis (int): Index of the lattice vector that is kept.
        precision (float): The symmetry precision.

    Returns:
        (UnitCell, np.ndarray): The reduced cell and the integer
        transformation matrix from the given cell to the reduced one.
    """
    if precision is None:
        precision = constants.SYMMETRY_PRECISION
    matrix = cell.matrix
    _check_volume(cell, precision)

    in_plane = [i for i in range(3) if i != unique_axis]
    identity = np.identity(3, dtype=np.int64)
    extended = np.array([
        identity[in_plane[0]],
        identity[in_plane[1]],
        -identity[in_plane[0]] - identity[in_plane[1]],
    ])
    threshold = precision**2

    for _ in range(constants.MAX_DELAUNAY_ITERATIONS):
        vectors = np.dot(extended, matrix)
        reduced = True
        for i in range(3):
            for j in range(i + 1, 3):
                if np.dot(vectors[i], vectors[j]) > threshold:
                    k = 3 - i - j
                    extended[k] += 2*extended[i]
                    extended[i] = -extended[i]
                    reduced = False
                    break
            if not reduced:
                break
        if reduced:
            break
    else:
        raise LatticeDegenerate(
            "The two-dimensional Delaunay reduction did not converge.",
            value=cell.matrix
        )

    candidates = [extended[0], extended[1], extended[2], extended[0] + extended[1]]
    lengths = [np.dot(np.dot(c, matrix), np.dot(c, matrix)) for c in candidates]
    order = sorted(range(4), key=lambda i: lengths[i])
    candidates = [candidates[i] for i in order]

    unique_vector = identity[unique_axis]
    volume_threshold = precision*np.cbrt(cell.volume)**2
    for other in candidates[1:]:
        test = np.array([candidates[0], unique_vector, other])
        if abs(np.linalg.det(np.dot(test, matrix))) > volume_threshold:
            break
    else:
        raise LatticeDegenerate(
            "The two-dimensional Delaunay cell has zero volume.",
            value=cell.matrix
        )

    columns = [None, None, None]
    columns[unique_axis] = unique_vector
    columns[in_plane[0]] = candidates[0]
    columns[in_plane[1]] = other
    transformation = np.array(columns, dtype=np.int64).T
    if np.linalg.det(np.dot(transformation.T, matrix)) < 0:
        transformation[:, unique_axis] *= -1

    return cell.change_basis(transformation), transformation


def niggli_reduce(cell, precision=None):
    """Niggli reduces the given cell.

    Implements the algorithm of I. Krivy and B. Gruber, Acta Cryst. A32,
    297-298 (1976) while keeping track of the change of basis.

    Args:
        cell (UnitCell): The cell to reduce.
        precision (float): The symmetry precision. The comparisons of the
            metric parameters use a tolerance of precision squared.

    Returns:
        (UnitCell, np.ndarray): The reduced cell and the integer
        transformation matrix from the given cell to the reduced one.

    Raises:
        LatticeDegenerate: If the cell has no volume or the reduction does
            not converge.
    """
    if precision is None:
        precision = constants.SYMMETRY_PRECISION
    _check_volume(cell, precision)
    eps = precision**2

    def lt(x, y):
        return x < y - eps

    def gt(x, y):
        return lt(y, x)

    def eq(x, y):
        return not (lt(x, y) or lt(y, x))

    def sign(x):
        return 1 if x > 0 else -1

    g = cell.metric
    A, B, C = g[0, 0], g[1, 1], g[2, 2]
    xi, eta, zeta = 2*g[1, 2], 2*g[0, 2], 2*g[0, 1]
    transformation = np.identity(3, dtype=np.int64)

    for _ in range(constants.MAX_NIGGLI_ITERATIONS):
        # Step 1
        if gt(A, B) or (eq(A, B) and gt(abs(xi), abs(eta))):
            A, B = B, A
            xi, eta = eta, xi
            transformation = np.dot(transformation, [[0, -1, 0], [-1, 0, 0], [0, 0, -1]])

        # Step 2
        if gt(B, C) or (eq(B, C) and gt(abs(eta), abs(zeta))):
            B, C = C, B
            eta, zeta = zeta, eta
            transformation = np.dot(transformation, [[-1, 0, 0], [0, 0, -1], [0, -1, 0]])
            continue

        # Step 3 and 4
        n_positive = sum(1 for x in (xi, eta, zeta) if gt(x, 0))
        n_zero = sum(1 for x in (xi, eta, zeta) if eq(x, 0))
        if n_positive == 3 or (n_zero == 0 and n_positive == 1):
            f = [-1 if lt(x, 0) else 1 for x in (xi, eta, zeta)]
            xi, eta, zeta = abs(xi), abs(eta), abs(zeta)
        else:
            f = [1, 1, 1]
            p = None
            for i, x in enumerate((xi, eta, zeta)):
                if gt(x, 0):
                    f[i] = -1
                elif not lt(x, 0):
                    p = i
            if f[0]*f[1]*f[2] < 0 and p is not None:
                f[p] = -1
            xi, eta, zeta = -abs(xi), -abs(eta), -abs(zeta)
        transformation = np.dot(transformation, np.diag(f))

        # Step 5
        if gt(abs(xi), B) or (eq(xi, B) and lt(2*eta, zeta)) or (eq(xi, -B) and lt(zeta, 0)):
            s = sign(xi)
            C = B + C - xi*s
            eta = eta - zeta*s
            xi = xi - 2*B*s
            transformation = np.dot(transformation, [[1, 0, 0], [0, 1, -s], [0, 0, 1]])
            continue

        # Step 6
        if gt(abs(eta), A) or (eq(eta, A) and lt(2*xi, zeta)) or (eq(eta, -A) and lt(zeta, 0)):
            s = sign(eta)
            C = A + C - eta*s
            xi = xi - zeta*s
            eta = eta - 2*A*s
            transformation = np.dot(transformation, [[1, 0, -s], [0, 1, 0], [0, 0, 1]])
            continue

        # Step 7
        if gt(abs(zeta), A) or (eq(zeta, A) and lt(2*xi, eta)) or (eq(zeta, -A) and lt(eta, 0)):
            s = sign(zeta)
            B = A + B - zeta*s
            xi = xi - eta*s
            zeta = zeta - 2*A*s
            transformation = np.dot(transformation, [[1, -s, 0], [0, 1, 0], [0, 0, 1]])
            continue

        # Step 8
        total = xi + eta + zeta + A + B
        if lt(total, 0) or (eq(total, 0) and gt(2*(A + eta) + zeta, 0)):
            C = A + B + C + xi + eta + zeta
            xi = 2*B + xi + zeta
            eta = 2*A + eta + zeta
            transformation = np.dot(transformation, [[1, 0, 1], [0, 1, 1], [0, 0, 1]])
            continue

        break
    else:
        raise LatticeDegenerate(
            "The Niggli reduction did not converge.", value=cell.matrix
        )

    transformation = np.asarray(transformation, dtype=np.int64)
    if symid.geometry.get_integer_determinant(transformation) != 1:
        raise LatticeDegenerate(
            "The Niggli reduction produced an invalid change of basis.",
            value=transformation
        )
    logger.debug("Niggli reduced cell with change of basis %s", transformation.tolist())
    return cell.change_basis(transformation), transformation


def _check_volume(cell, precision):
    lengths = cell.lengths
    if np.any(lengths < precision) or cell.volume < precision*np.prod(lengths)/np.max(lengths):
        raise LatticeDegenerate(
            "The cell has no volume within the symmetry precision.",
            value=cell.matrix
        )
