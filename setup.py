#!/usr/bin/env python3
"""
Setup script for yamlbridge.

yamlbridge maps typed Python data (dataclasses, enums, variant class
hierarchies and builtin containers) to and from YAML text. Parsing and
emission are done by PyYAML; yamlbridge drives its event layer.

Install for development with:

    pip install -e .[test]
"""

from setuptools import setup

setup(
    name='yamlbridge',
    version='0.1.0',
    description='Typed YAML serialization and deserialization on top of PyYAML',
    packages=['yamlbridge'],
    package_data={'yamlbridge': ['__init__.pyi']},
    python_requires='>=3.10',
    install_requires=['PyYAML>=6.0'],
    extras_require={'test': ['pytest']},
)
