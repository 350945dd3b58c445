"""
Módulo de gestión de memoria (bus de direcciones)

El AddressBus gestiona el espacio de direcciones de 16 bits (0x0000 a 0xFFFF).
Los BankController (MBC) resuelven qué banco del cartucho se ve en 0x4000 - 0x7FFF.
"""

from .bank_controller import (
    MBC1,
    MBC2,
    MBC3,
    MBC5,
    BankController,
    NoController,
    create_bank_controller,
)
from .bus import AddressBus

__all__ = [
    "AddressBus",
    "BankController",
    "NoController",
    "MBC1",
    "MBC2",
    "MBC3",
    "MBC5",
    "create_bank_controller",
]
