"""
Bank Controllers (MBC) - Controladores de Banco del Cartucho

La ventana 0x4000 - 0x7FFF solo puede mostrar 16KB de ROM a la vez. Los cartuchos
grandes incluyen un chip (MBC, Memory Bank Controller) que interpreta las escrituras
en el rango de ROM 0x0000 - 0x7FFF como comandos:

- 0x0000 - 0x1FFF: RAM Enable (nibble bajo 0xA habilita, cualquier otro deshabilita)
- 0x2000 - 0x3FFF: Número de banco ROM
- 0x4000 - 0x5FFF: Número de banco RAM (o bits altos de ROM en MBC1)
- 0x6000 - 0x7FFF: Selección de modo (solo MBC1)

Variantes soportadas: ROM only (sin controlador), MBC1, MBC2, MBC3 y MBC5.
Cada variante guarda sus propios registros; la MMU solo le pide dos cosas:
resolver el banco efectivo y aplicar escrituras en la zona de control.

Fuente: Pan Docs - Memory Bank Controllers
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Rangos de control (límites superiores exclusivos)
RAM_ENABLE_END = 0x2000
ROM_BANK_END = 0x4000
RAM_BANK_END = 0x6000
MODE_SELECT_END = 0x8000

# MBC5 divide el registro de banco ROM en dos sub-rangos
MBC5_ROM_BANK_LOW_END = 0x3000

# Inicio de la ventana switchable y tamaño de banco
ROM_BANKED_START = 0x4000
ROM_BANK_SIZE = 0x4000  # 16KB

# Nibble que habilita la RAM externa
RAM_ENABLE_NIBBLE = 0x0A


def _ram_enable_value(value: int) -> bool:
    """Convención del hardware: solo el nibble bajo 0xA habilita la RAM."""
    return (value & 0x0F) == RAM_ENABLE_NIBBLE


class BankController:
    """
    Base de todos los controladores de banco.

    Define los registros comunes (banco ROM, banco RAM, RAM enable). Cada variante
    implementa apply_write; resolve devuelve el banco solicitado salvo que la
    variante lo enmascare.
    """

    name = "ROM"

    def __init__(self) -> None:
        self.rom_bank: int = 0
        self.ram_bank: int = 0
        self.ram_enable: bool = False

    def reset(self) -> None:
        """Restaura los registros a su valor de encendido."""
        self.rom_bank = 0
        self.ram_bank = 0
        self.ram_enable = False

    def resolve(self, requested_bank: int) -> int:
        """
        Devuelve el banco efectivo que se lee en 0x4000 - 0x7FFF.

        Args:
            requested_bank: Banco solicitado

        Returns:
            Banco efectivo tras aplicar las reglas de la variante
        """
        return requested_bank

    def apply_write(self, addr: int, value: int, storage: bytearray, bank: int = 0) -> None:
        """
        Procesa una escritura en el rango 0x0000 - 0x7FFF.

        Args:
            addr: Dirección (0x0000 a 0x7FFF)
            value: Valor de 8 bits
            storage: Memoria plana de la MMU
            bank: Banco efectivo mapeado en la ventana switchable
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(rom_bank=0x{self.rom_bank:03X}, "
            f"ram_bank=0x{self.ram_bank:X}, ram_enable={self.ram_enable})"
        )


class NoController(BankController):
    """
    Cartucho sin MBC (ROM only).

    No hay registros de control: la escritura cae directamente en la memoria.
    En la ventana switchable se guarda en la dirección ajustada al banco activo,
    de forma que cada banco conserve sus propios datos.
    """

    name = "ROM"

    def apply_write(self, addr: int, value: int, storage: bytearray, bank: int = 0) -> None:
        if addr >= ROM_BANKED_START:
            addr = addr + bank * ROM_BANK_SIZE
        if addr < len(storage):
            storage[addr] = value


class MBC1(BankController):
    """
    MBC1: hasta 2MB de ROM y 32KB de RAM.

    El registro 0x4000 - 0x5FFF alimenta los bits altos del banco ROM o el
    banco RAM según el modo seleccionado en 0x6000 - 0x7FFF.

    Fuente: Pan Docs - MBC1
    """

    name = "MBC1"

    def __init__(self) -> None:
        super().__init__()
        # True = modo ROM banking (valor de encendido del registro de modo = 0)
        self.mode: bool = True

    def reset(self) -> None:
        super().reset()
        self.mode = True

    def resolve(self, requested_bank: int) -> int:
        if self.mode:
            return requested_bank & 0x1F
        return (requested_bank & 0x03) | (self.ram_bank << 5)

    def apply_write(self, addr: int, value: int, storage: bytearray, bank: int = 0) -> None:
        if addr < RAM_ENABLE_END:
            self.ram_enable = _ram_enable_value(value)
        elif addr < ROM_BANK_END:
            self.rom_bank = (self.rom_bank & 0x60) | (value & 0x1F)
        elif addr < RAM_BANK_END:
            if self.mode:
                self.rom_bank = (self.rom_bank & 0x1F) | ((value & 0x03) << 5)
            else:
                self.ram_bank = value & 0x03
        else:
            self.mode = (value & 0x01) == 0
        logger.debug(f"MBC1: 0x{value:02X} -> 0x{addr:04X} ({self!r}, mode={self.mode})")


class MBC2(BankController):
    """MBC2: banco ROM de 4 bits, RAM interna de 512x4 bits."""

    name = "MBC2"

    def resolve(self, requested_bank: int) -> int:
        return requested_bank & 0x0F

    def apply_write(self, addr: int, value: int, storage: bytearray, bank: int = 0) -> None:
        if addr < RAM_ENABLE_END:
            self.ram_enable = _ram_enable_value(value)
        elif addr < ROM_BANK_END:
            self.rom_bank = value & 0x0F
        else:
            return
        logger.debug(f"MBC2: 0x{value:02X} -> 0x{addr:04X} ({self!r})")


class MBC3(BankController):
    """
    MBC3: banco ROM de 7 bits y 4 bancos de RAM.

    El latch del RTC (0x6000 - 0x7FFF) no se modela.
    """

    name = "MBC3"

    def apply_write(self, addr: int, value: int, storage: bytearray, bank: int = 0) -> None:
        if addr < RAM_ENABLE_END:
            self.ram_enable = _ram_enable_value(value)
        elif addr < ROM_BANK_END:
            self.rom_bank = value & 0x7F
        elif addr < RAM_BANK_END:
            self.ram_bank = value & 0x03
        else:
            return
        logger.debug(f"MBC3: 0x{value:02X} -> 0x{addr:04X} ({self!r})")


class MBC5(BankController):
    """
    MBC5: banco ROM de 9 bits repartido en dos registros y 16 bancos de RAM.

    - 0x2000 - 0x2FFF: 8 bits bajos del banco ROM
    - 0x3000 - 0x3FFF: bit 8 del banco ROM
    """

    name = "MBC5"

    def apply_write(self, addr: int, value: int, storage: bytearray, bank: int = 0) -> None:
        if addr < RAM_ENABLE_END:
            self.ram_enable = _ram_enable_value(value)
        elif addr < MBC5_ROM_BANK_LOW_END:
            self.rom_bank = (self.rom_bank & 0x100) | value
        elif addr < ROM_BANK_END:
            self.rom_bank = (self.rom_bank & 0x0FF) | ((value & 0x01) << 8)
        elif addr < RAM_BANK_END:
            self.ram_bank = value & 0x0F
        else:
            return
        logger.debug(f"MBC5: 0x{value:02X} -> 0x{addr:04X} ({self!r})")


# Etiquetas aceptadas por create_bank_controller (nombre de variante y nombre de hardware)
CONTROLLER_TYPES: dict[str, type[BankController]] = {
    "none": NoController,
    "rom": NoController,
    "type1": MBC1,
    "mbc1": MBC1,
    "type2": MBC2,
    "mbc2": MBC2,
    "type3": MBC3,
    "mbc3": MBC3,
    "type5": MBC5,
    "mbc5": MBC5,
}


def create_bank_controller(tag: str) -> BankController:
    """
    Construye el controlador correspondiente a una etiqueta de variante.

    Args:
        tag: Nombre de la variante ("none", "mbc1", "type1", ...), sin distinguir mayúsculas

    Returns:
        Instancia nueva del controlador

    Raises:
        ValueError: Si la etiqueta no corresponde a ninguna variante conocida
    """
    try:
        controller_cls = CONTROLLER_TYPES[tag.lower()]
    except KeyError:
        raise ValueError(
            f"Controlador de banco desconocido: {tag!r} "
            f"(válidos: {', '.join(sorted(CONTROLLER_TYPES))})"
        ) from None
    return controller_cls()
