import os

from setuptools import find_packages, setup

# The version lives in eth2genesis/VERSION.txt, so the package can read it at runtime too.
with open(os.path.join("eth2genesis", "VERSION.txt")) as f:
    version = f.read().strip()

setup(
    name="eth2genesis",
    version=version,
    description="Create genesis states for Ethereum proof-of-stake beacon chains",
    python_requires=">=3.9, <4",
    include_package_data=False,
    packages=find_packages(include=["eth2genesis", "eth2genesis.*"]),
    package_data={
        "eth2genesis": ["VERSION.txt"],
        "eth2genesis.config": ["configs/*.yaml", "presets/*/*.yaml"],
    },
    install_requires=[
        "remerkleable>=0.1.28",
        "py_ecc>=6.0.0",
        "milagro_bls_binding>=1.9.0",
        "py_arkworks_bls12381>=0.3.4",
        "pycryptodome>=3.15.0",
        "ruamel.yaml>=0.17.21",
        "rich>=13.0.0",
        "pathos>=0.3.0",
        "rlp>=3.0.0",
        "trie>=2.0.0",
        "eth-hash[pycryptodome]>=0.5.0",
        "requests>=2.28.0",
        "mnemonic>=0.20",
    ],
    extras_require={
        "test": [
            "pytest>=8.3.3",
        ],
    },
    entry_points={
        "console_scripts": [
            "eth2-genesis=eth2genesis.cli:main",
        ],
    },
)
