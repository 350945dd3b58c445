"""
Configuración global de pytest para cartbus

Agrega el directorio raíz al sys.path para poder importar el paquete y main.py
sin instalar.
"""

import sys
from pathlib import Path

import pytest

# Agregar el directorio raíz al sys.path para importar módulos
project_root = Path(__file__).parent.parent.absolute()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from cartbus.memory import AddressBus  # noqa: E402


@pytest.fixture
def bus() -> AddressBus:
    """Bus sin MBC (ROM only), memoria a cero."""
    return AddressBus()


@pytest.fixture
def banked_image() -> bytearray:
    """
    Imagen de 64KB donde cada bloque de 16KB está relleno con un valor distinto.

    Con la fórmula addr + banco * 0x4000, la ventana 0x4000 - 0x7FFF muestra:
    banco 0 -> 0x11, banco 1 -> 0x22, banco 2 -> 0x33.
    """
    image = bytearray(0x10000)
    for block, value in enumerate((0x00, 0x11, 0x22, 0x33)):
        image[block * 0x4000:(block + 1) * 0x4000] = bytes([value]) * 0x4000
    return image
