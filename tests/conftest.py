import numpy as np
from ase import Atoms
import ase.build
import ase.spacegroup


def create_si(cubic=True):
    system = ase.build.bulk(
        'Si',
        crystalstructure='diamond',
        a=5.430710,
        cubic=cubic,
    )
    return system


def create_fe(cubic=True):
    system = ase.build.bulk(
        'Fe',
        crystalstructure='bcc',
        a=2.834,
        cubic=cubic,
    )
    return system


def create_sic(cubic=True):
    system = ase.build.bulk(
        'SiC',
        crystalstructure='zincblende',
        a=4.329,
        cubic=cubic,
    )
    return system


def create_nacl(cubic=True):
    system = ase.build.bulk(
        'NaCl',
        crystalstructure='rocksalt',
        a=5.64,
        cubic=cubic,
    )
    return system


def create_zno():
    system = ase.build.bulk(
        'ZnO',
        crystalstructure='wurtzite',
        a=3.25,
        c=5.2,
    )
    return system


def create_triclinic():
    """Two atoms related by an inversion through a third one. The lattice
    itself has a two-fold axis along c that the atoms break.
    """
    a, b, c = 4.9, 5.0, 6.0
    gamma = np.radians(70)
    system = Atoms(
        numbers=[1, 2, 2],
        cell=[
            [a, 0, 0],
            [b*np.cos(gamma), b*np.sin(gamma), 0],
            [0, 0, c],
        ],
        scaled_positions=[
            [0, 0, 0],
            [0.2, 0.3, 0.1],
            [-0.2, -0.3, -0.1],
        ],
        pbc=True
    )
    return system


def create_ael_like(primitive=False):
    """An orthorhombic Cmcm framework in the cell of the AEL zeolite
    structure.
    """
    system = ase.spacegroup.crystal(
        ['Al', 'P', 'O'],
        basis=[
            (0.0, 0.13, 0.42),
            (0.17, 0.41, 0.25),
            (0.11, 0.23, 0.07),
        ],
        spacegroup=63,
        cellpar=[33.29, 14.7036, 8.3863, 90, 90, 90],
    )
    if primitive:
        # C centering: a_p = (a - b)/2, b_p = (a + b)/2
        transformation = np.array([
            [0.5, 0.5, 0],
            [-0.5, 0.5, 0],
            [0, 0, 1],
        ])
        system = create_subcell(system, transformation)
    return system


def create_zif5_like():
    """A cubic Ia-3d framework in the cell of the ZIF-5 structure.
    """
    system = ase.spacegroup.crystal(
        ['In', 'Na', 'N'],
        basis=[
            (0.0, 0.0, 0.0),
            (0.375, 0.0, 0.25),
            (0.1, 0.2, 0.3),
        ],
        spacegroup=230,
        cellpar=[21.9619, 21.9619, 21.9619, 90, 90, 90],
    )
    return system


def create_subcell(system, transformation):
    """Returns the atoms inside the smaller cell (a', b', c') = (a, b, c) P.
    Atoms that become periodic copies of each other are removed.
    """
    cell = np.dot(np.transpose(transformation), system.get_cell()[:])
    scaled = np.linalg.solve(cell.T, system.get_positions().T).T
    scaled = np.round(scaled, 8) % 1.0
    scaled = np.round(scaled, 6) % 1.0
    _, indices = np.unique(scaled, axis=0, return_index=True)
    indices = np.sort(indices)
    return Atoms(
        numbers=system.get_atomic_numbers()[indices],
        cell=cell,
        scaled_positions=scaled[indices],
        pbc=True
    )
