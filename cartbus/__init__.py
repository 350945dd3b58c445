"""
cartbus - Bus de memoria de una consola portátil de 8 bits con cartuchos

Núcleo de memoria: espacio de direcciones de 64KB, controladores de banco (MBC),
ventana de registros I/O, registro IE y transferencia DMA a OAM.
"""

from .memory import AddressBus, BankController, create_bank_controller
from .memory.bus import (
    INT_JOYPAD,
    INT_LCD_STAT,
    INT_SERIAL,
    INT_TIMER,
    INT_VBLANK,
)

__version__ = "0.1.0"

__all__ = [
    "AddressBus",
    "BankController",
    "create_bank_controller",
    "INT_VBLANK",
    "INT_LCD_STAT",
    "INT_TIMER",
    "INT_SERIAL",
    "INT_JOYPAD",
]
