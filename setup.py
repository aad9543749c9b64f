#    setup.py
#        Standard installation script
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

#type: ignore

from setuptools import setup, find_packages #type:ignore
import sys
import os

os.chdir(os.path.dirname(os.path.abspath(__file__)))

import himmel

dependencies = [
    'pyelftools==0.32',
]

if sys.version_info < (3,11):
    dependencies.append("typing-extensions==4.12.2")


setup(
    name="himmel",    # Pypi name
    python_requires='>=3.9',
    description='Structural analysis of ELF binaries, DWARF debug symbols and core dumps',
    version=himmel.__version__,
    author=himmel.__author__,
    license=himmel.__license__,

    packages=find_packages(where='.', exclude=["test", "test.*"], include=['himmel', "himmel.*"]),
    package_data = {
        'himmel': ['py.typed'],
    },

    setup_requires=[],
    install_requires=dependencies,
    extras_require={
        'test': ['mypy', 'coverage'],
        'dev': ['mypy', 'ipdb', 'autopep8', 'coverage'],
    },
    entry_points={
        "console_scripts": [
            f"himmel=himmel.__main__:himmel_cli",
        ]
    },
)
