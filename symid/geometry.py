"""Geometry primitives shared by the lattice reduction and symmetry search.

All tolerance comparisons made in this package go through the functions in
this module so that the symmetry precision has one consistent meaning: a
cartesian distance in the length unit of the cell.
"""
import numpy as np


def wrap(displacement):
    """Maps fractional displacements to their shortest periodic image by
    subtracting the closest integer from each component.

    Args:
        displacement (np.ndarray): Fractional displacement(s) of any shape.

    Returns:
        np.ndarray: The wrapped displacements with components in
        [-0.5, 0.5].
    """
    displacement = np.asarray(displacement, dtype=np.float64)
    return displacement - np.round(displacement)


def get_wrapped_positions(scaled_pos, precision=1E-5, copy=True):
    """Wrap the given relative positions so that each element in the array
    is within the half-closed interval [0, 1)

    By wrapping values near 1 to 0 we will have a consistent way of
    presenting systems.
    """
    if copy:
        scaled_pos = np.array(scaled_pos, dtype=np.float64)
    scaled_pos %= 1

    abs_zero = np.absolute(scaled_pos)
    abs_unity = np.absolute(abs_zero-1)

    near_zero = np.where(abs_zero < precision)
    near_unity = np.where(abs_unity < precision)

    scaled_pos[near_unity] = 0
    scaled_pos[near_zero] = 0

    return scaled_pos


def get_periodic_distances(positions, target_pos, cell):
    """Cartesian distances between the given relative positions and a target
    position taking into account the periodicity of the system.

    Args:
        positions (np.ndarray): Relative positions as rows.
        target_pos (np.ndarray): The relative position to compare against.
        cell (np.ndarray): Lattice vectors as rows.

    Returns:
        np.ndarray: The distances, one for each row in positions.
    """
    positions = np.atleast_2d(positions)
    displacements = wrap(positions - target_pos)
    return np.linalg.norm(np.dot(displacements, cell), axis=1)


def search_periodic_position(
        target_pos,
        positions,
        cell,
        precision,
        mask=None):
    """Searches a list of positions for a match for the target position taking
    into account the periodicity of the system.

    Args:
        target_pos (1x3 np.array): The relative position to search.
        positions (Nx3 np.array): The relative position where to search.
        cell (3x3 np.array): The cell used to find a threshold accuracy in
            cartesian coordinates.
        precision (float): The maximum cartesian distance that is allowed for
            the atoms to be considered identical.
        mask (np.ndarray): Optional boolean array. Positions where the mask is
            False are never returned.

    Returns:
        If a match is found, returns the index of the match in 'positions'. If
        no match is found, returns None.
    """
    distances = get_periodic_distances(positions, target_pos, cell)
    if mask is not None:
        distances = np.where(mask, distances, np.inf)
    min_index = int(np.argmin(distances))
    if distances[min_index] <= precision:
        return min_index
    return None


def get_integer_determinant(matrix):
    """Exact determinant of an integer 3x3 matrix.
    """
    m = [[int(x) for x in row] for row in np.asarray(matrix)]
    return (
        m[0][0]*(m[1][1]*m[2][2] - m[1][2]*m[2][1])
        - m[0][1]*(m[1][0]*m[2][2] - m[1][2]*m[2][0])
        + m[0][2]*(m[1][0]*m[2][1] - m[1][1]*m[2][0])
    )


def get_adjugate(matrix):
    """Adjugate of an integer 3x3 matrix, i.e. determinant times the inverse.
    """
    m = [[int(x) for x in row] for row in np.asarray(matrix)]
    adjugate = np.zeros((3, 3), dtype=np.int64)
    for i in range(3):
        for j in range(3):
            rows = [r for r in range(3) if r != j]
            cols = [c for c in range(3) if c != i]
            minor = (
                m[rows[0]][cols[0]]*m[rows[1]][cols[1]]
                - m[rows[0]][cols[1]]*m[rows[1]][cols[0]]
            )
            adjugate[i, j] = (-1)**(i + j)*minor
    return adjugate


def get_integer_inverse(matrix):
    """Exact inverse of a unimodular integer 3x3 matrix.

    Raises:
        ValueError: If the determinant is not +1 or -1.
    """
    det = get_integer_determinant(matrix)
    if abs(det) != 1:
        raise ValueError(
            "Matrix with determinant {} has no integer inverse.".format(det)
        )
    return det*get_adjugate(matrix)


def get_lattice_basis(translations, denominator):
    """Returns a basis for the lattice generated by the unit vectors and the
    given fractional translations.

    The translations must be integer multiples of 1/denominator. The basis is
    found exactly with an integer Hermite normal form.

    Args:
        translations (np.ndarray): Fractional translations as rows.
        denominator (int): Common denominator of the translations.

    Returns:
        np.ndarray: Integer 3x3 matrix whose rows divided by the denominator
        are the basis vectors in the original fractional coordinates. The
        basis is upper triangular with positive diagonal.
    """
    rows = [[denominator if i == j else 0 for j in range(3)] for i in range(3)]
    for translation in np.atleast_2d(translations):
        if len(translation) == 0:
            continue
        rows.append([int(x) for x in np.rint(denominator*np.asarray(translation))])

    basis = []
    for col in range(3):
        while True:
            nonzero = [row for row in rows if row[col] != 0]
            if len(nonzero) <= 1:
                break
            nonzero.sort(key=lambda row: abs(row[col]))
            pivot = nonzero[0]
            for row in nonzero[1:]:
                q = row[col] // pivot[col]
                row[:] = [x - q*y for x, y in zip(row, pivot)]
        pivot = nonzero[0]
        rows.remove(pivot)
        if pivot[col] < 0:
            pivot = [-x for x in pivot]
        basis.append(pivot)

    return np.array(basis, dtype=np.int64)


def get_lattice_points(numerator, denominator):
    """Lists the lattice points that lie inside the unit cube of the original
    basis.

    Args:
        numerator (np.ndarray): Integer matrix whose rows divided by the
            denominator are basis vectors of a lattice that contains all the
            integer vectors.
        denominator (int): The common denominator.

    Returns:
        np.ndarray: The points as rows in [0, 1), sorted lexicographically.
    """
    numerator = np.asarray(numerator, dtype=np.int64)
    points = set()
    span = range(denominator)
    for i in span:
        for j in span:
            for k in span:
                point = np.dot([i, j, k], numerator) % denominator
                points.add(tuple(int(x) for x in point))
    result = np.array(sorted(points), dtype=np.float64)/denominator
    return result


def is_identity_metric(metric_rotated, metric_original, precision):
    """Compares two metric tensors within the symmetry precision.

    The lengths must agree within the precision and for every pair of lattice
    vectors the angle difference must satisfy
    sin^2(dtheta) * l_i * l_j <= precision^2 where l_i and l_j are the
    average lengths of the vectors.

    Args:
        metric_rotated (np.ndarray): Metric of the transformed basis.
        metric_original (np.ndarray): Metric of the original basis.
        precision (float): The symmetry precision.

    Returns:
        bool: True if the metrics are equal within the precision.
    """
    lengths_rotated = np.sqrt(np.diag(metric_rotated))
    lengths_original = np.sqrt(np.diag(metric_original))
    if np.any(np.abs(lengths_rotated - lengths_original) > precision):
        return False

    for i, j in ((0, 1), (0, 2), (1, 2)):
        cos_rotated = metric_rotated[i, j]/(lengths_rotated[i]*lengths_rotated[j])
        cos_original = metric_original[i, j]/(lengths_original[i]*lengths_original[j])
        angle_rotated = np.arccos(np.clip(cos_rotated, -1.0, 1.0))
        angle_original = np.arccos(np.clip(cos_original, -1.0, 1.0))
        sin_dtheta2 = np.sin(angle_rotated - angle_original)**2
        length_ave2 = (
            (lengths_rotated[i] + lengths_original[i])
            * (lengths_rotated[j] + lengths_original[j])
        )/4
        if sin_dtheta2*length_ave2 > precision**2:
            return False
    return True
