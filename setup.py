#!/usr/bin/env python3
"""
Setup script for yamlkit.

yamlkit is pure Python: the scanner, parser, constructor, representer and
emitter all live in the ``yamlkit`` package and there is nothing to compile.

Install for development with:

    pip install -e .[test]
"""

import os
from setuptools import setup


def read_version():
    """Read __version__ from the package without importing it."""
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'yamlkit', '__init__.py')
    with open(path, encoding='utf-8') as f:
        for line in f:
            if line.startswith('__version__'):
                return line.split('=', 1)[1].strip().strip("'\"")
    raise RuntimeError("unable to find __version__ in %s" % path)


setup(
    name='yamlkit',
    version=read_version(),
    description='YAML loader and dumper in pure Python',
    packages=['yamlkit'],
    python_requires='>=3.8',
    extras_require={
        'test': ['pytest'],
    },
)
