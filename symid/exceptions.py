class SymIDError(Exception):
    def __init__(self, message, value=None):
        self.value = value
        Exception.__init__(self, message)


class LatticeDegenerate(SymIDError):
    """Indicates that a lattice reduction did not converge, typically because
    the cell is singular or nearly so.
    """
    pass


class NoAtomsMatched(SymIDError):
    """Indicates that not even the identity operation could be verified for
    the given atoms.
    """
    pass


class GroupNotClosed(SymIDError):
    """The found symmetry operations do not form a group.
    """
    pass


class SpaceGroupNotFound(SymIDError):
    """No Hall setting reproduces the found symmetry operations.
    """
    pass
