"""
Setup script del paquete cartbus.

Instala el núcleo de memoria (bus de direcciones y controladores de banco).

Uso:
    pip install -e .
    pip install -e .[test]
"""

from setuptools import setup, find_packages

setup(
    name="cartbus",
    version="0.1.0",
    description="Bus de memoria y controladores de banco (MBC) de una consola portátil de 8 bits",
    packages=find_packages(include=["cartbus", "cartbus.*"]),
    python_requires=">=3.10",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    zip_safe=False,
)
