import numpy as np

from symid.exceptions import GroupNotClosed


class GroupTable(object):
    """The multiplication table of a verified group of symmetry operations.

    Attributes:
        operations (SymmetryOperationSet): The group elements.
        products (np.ndarray): products[i, j] is the index of the element
            operations[i] * operations[j].
        inverses (np.ndarray): inverses[i] is the index of the inverse of
            operations[i].
    """
    def __init__(self, operations, products, inverses):
        self.operations = operations
        self.products = products
        self.inverses = inverses

    @property
    def order(self):
        return len(self.operations)

    def get_signature(self):
        """Invariant of the group used to shortlist the tabulated settings:
        the order and the sorted (determinant, trace) pairs of the rotations.
        """
        pairs = sorted((op.determinant, op.trace) for op in self.operations)
        return self.order, tuple(pairs)


def verify_closure(operations, cell, precision, require_unique_rotations=True):
    """Verifies that the operations form a group.

    Every product of two operations and every inverse must be found in the
    set. Rotations are compared exactly and translations modulo one within
    the precision. By default the rotations must additionally be unique,
    i.e. the operations must describe a primitive cell.

    Args:
        operations (SymmetryOperationSet): The operations to verify.
        cell (np.ndarray): Lattice vectors as rows, used to measure the
            translation differences.
        precision (float): The symmetry precision.
        require_unique_rotations (bool): Whether to reject several
            operations with the same rotation part.

    Returns:
        GroupTable: The multiplication table of the group.

    Raises:
        GroupNotClosed: If a product or inverse is missing.
    """
    n = len(operations)
    if require_unique_rotations and len(operations.get_rotation_keys()) != n:
        raise GroupNotClosed(
            "Several translations were found for the same rotation.", value=n)

    products = np.zeros((n, n), dtype=int)
    for i, first in enumerate(operations):
        for j, second in enumerate(operations):
            index = operations.find(first.compose(second), cell, precision)
            if index is None:
                raise GroupNotClosed(
                    "The product of operations {} and {} is not in the set.".format(i, j),
                    value=(first, second)
                )
            products[i, j] = index

    inverses = np.zeros(n, dtype=int)
    for i, operation in enumerate(operations):
        index = operations.find(operation.inverse(), cell, precision)
        if index is None:
            raise GroupNotClosed(
                "The inverse of operation {} is not in the set.".format(i),
                value=operation
            )
        inverses[i] = index

    return GroupTable(operations, products, inverses)
