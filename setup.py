import sys
from setuptools import setup, find_packages

# Check python version
if sys.version_info[:2] < (3, 7):
    raise RuntimeError("Python version >= 3.7 required.")

if __name__ == "__main__":
    setup(name="symid",
        version="0.1.0",
        description=(
            "SymID is a python package for determining the space group of "
            "periodic atomic structures."
        ),
        long_description=(
            "SymID is a python package for determining the space group of "
            "periodic atomic structures. It finds the symmetry operations "
            "of a structure within a cartesian tolerance, reduces the lattice "
            "to a primitive cell and matches the operations against the 530 "
            "Hall settings of the 230 space groups."
        ),
        license="Apache License 2.0",
        classifiers=[
            "Development Status :: 3 - Alpha",
            "Intended Audience :: Developers",
            "Topic :: Scientific/Engineering :: Physics",
            "License :: OSI Approved :: Apache Software License",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Programming Language :: Python :: 3 :: Only",
        ],
        keywords='atoms structure materials science crystal symmetry space group',
        packages=find_packages(exclude=["tests", "tests.*"]),
        install_requires=[
            "numpy",
            "ase",
            "spglib>=2.5",
        ],
        extras_require={
            "tests": ["pytest"],
        },
        python_requires=">=3.7",
    )
