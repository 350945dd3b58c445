"""
AddressBus - Bus de direcciones de 16 bits

La consola tiene un espacio de direcciones de 16 bits (0x0000 a 0xFFFF = 65536 bytes).
Todos los componentes (CPU, PPU, Timer...) acceden a la memoria a través de este bus:

- 0x0000 - 0x3FFF: ROM Bank 0 (no cambiable) / zona de control del MBC
- 0x4000 - 0x7FFF: ROM Bank N (switchable, resuelto por el MBC)
- 0x8000 - 0xFEFF: VRAM, External RAM, WRAM, Echo RAM, OAM (sin bancos en esta capa)
- 0xFF00 - 0xFFFE: I/O Ports y HRAM (ventana de 256 registros)
- 0xFFFF: IE (Interrupt Enable Register)

La memoria es un bytearray lineal. Los datos de los bancos ROM viven en el mismo
bytearray: la dirección efectiva en la ventana switchable es addr + banco * 0x4000.

CRÍTICO: La consola usa Little-Endian para valores de 16 bits.

Fuente: Pan Docs - Memory Map
"""

from __future__ import annotations

import logging

from .bank_controller import (
    ROM_BANK_SIZE,
    BankController,
    NoController,
    create_bank_controller,
)

logger = logging.getLogger(__name__)

# Tamaño del espacio de direcciones (16 bits)
MEMORY_SIZE = 0x10000

# Límites de las regiones (superiores exclusivos)
ROM_FIXED_END = 0x4000
ROM_BANKED_END = 0x8000
IO_START = 0xFF00
IO_SIZE = 0x100

# Registros de interrupciones
IO_IF = 0xFF0F  # Interrupt Flag - Flags de interrupciones pendientes
IO_IE = 0xFFFF  # Interrupt Enable - Máscara de interrupciones habilitadas

# Registro DMA (la transferencia se inicia llamando a dma_transfer)
IO_DMA = 0xFF46

# OAM (Object Attribute Memory): destino de la transferencia DMA
OAM_START = 0xFE00
OAM_SIZE = 160  # 40 sprites * 4 bytes

# Valor devuelto cuando el bus está ocupado o no hay nada mapeado
OPEN_BUS = 0xFF

# Tipos de interrupción (bit en IE / IF)
INT_VBLANK = 0x01   # Bit 0
INT_LCD_STAT = 0x02  # Bit 1
INT_TIMER = 0x04    # Bit 2
INT_SERIAL = 0x08   # Bit 3
INT_JOYPAD = 0x10   # Bit 4

INTERRUPT_NAMES: dict[int, str] = {
    INT_VBLANK: "V-Blank",
    INT_LCD_STAT: "LCD STAT",
    INT_TIMER: "Timer",
    INT_SERIAL: "Serial",
    INT_JOYPAD: "Joypad",
}


class AddressBus:
    """
    Bus de direcciones de la consola.

    Decodifica cada acceso según la región, delega la resolución de bancos y las
    escrituras de control al BankController, y modela los registros IE / IF y la
    transferencia DMA a OAM.

    Cada instancia es independiente: no hay estado global, de modo que varias
    máquinas (por ejemplo en tests) pueden coexistir.
    """

    def __init__(
        self,
        controller: str | BankController = "none",
        rom: bytes | bytearray | None = None,
        *,
        dma_bypass: bool = False,
        distinct_interrupt_flags: bool = False,
    ) -> None:
        """
        Inicializa el bus con la memoria a cero.

        Args:
            controller: Etiqueta de variante ("none", "mbc1", ...) o instancia de BankController
            rom: Imagen opcional que se copia en la memoria a partir de 0x0000.
                Si ocupa más de 64KB la memoria crece para que los bancos altos sean alcanzables.
            dma_bypass: Si es True, dma_transfer copia por la ruta interna que ignora
                el flag de transferencia (resultado del hardware real). Por defecto la
                copia se bloquea a sí misma y no tiene efecto.
            distinct_interrupt_flags: Si es True, cada tipo de interrupción activa su
                propio bit en IF. Por defecto todas activan el bit 0.

        Raises:
            ValueError: Si la etiqueta del controlador no es válida
            TypeError: Si controller no es ni etiqueta ni BankController
        """
        if isinstance(controller, str):
            controller = create_bank_controller(controller)
        elif not isinstance(controller, BankController):
            raise TypeError(
                f"controller debe ser str o BankController, no {type(controller).__name__}"
            )
        self._controller: BankController = controller

        size = MEMORY_SIZE
        if rom is not None and len(rom) > size:
            size = len(rom)
        self._storage: bytearray = bytearray(size)

        # Banco seleccionado externamente (solo relevante sin MBC)
        self.active_bank: int = 0

        # Ventana de registros I/O (0xFF00 - 0xFFFE; el índice 0xFF nunca se decodifica)
        self._io_registers: bytearray = bytearray(IO_SIZE)

        self.interrupt_enable: int = 0
        self.transfer_in_progress: bool = False

        self._dma_bypass = dma_bypass
        self._distinct_interrupt_flags = distinct_interrupt_flags

        if rom is not None:
            self.load(0, rom)
            logger.info(
                f"Imagen cargada: {len(rom)} bytes, controlador {self._controller.name}"
            )

    @property
    def controller(self) -> BankController:
        return self._controller

    @property
    def ram_enabled(self) -> bool:
        """Estado de la puerta de RAM externa (su aplicación corresponde a quien lee 0xA000)."""
        return self._controller.ram_enable

    def load(self, offset: int, data: bytes | bytearray) -> None:
        """
        Copia datos en la memoria plana sin pasar por la decodificación.

        Pensado para precargar bancos ROM en offset = banco * 0x4000.

        Args:
            offset: Posición inicial en la memoria plana
            data: Bytes a copiar

        Raises:
            ValueError: Si los datos no caben en la memoria
        """
        end = offset + len(data)
        if offset < 0 or end > len(self._storage):
            raise ValueError(
                f"Los datos (0x{offset:X}-0x{end:X}) no caben en la memoria "
                f"({len(self._storage)} bytes)"
            )
        self._storage[offset:end] = data

    # ========== Acceso a bytes ==========

    def read_byte(self, addr: int) -> int:
        """
        Lee un byte (8 bits) de la dirección especificada.

        Mientras hay una transferencia DMA en curso el bus está ocupado y toda
        lectura devuelve 0xFF.

        Args:
            addr: Dirección de memoria (se enmascara a 16 bits)

        Returns:
            Valor del byte leído (0x00 a 0xFF)
        """
        if self.transfer_in_progress:
            return OPEN_BUS
        return self._read(addr & 0xFFFF)

    def write_byte(self, addr: int, value: int) -> None:
        """
        Escribe un byte (8 bits) en la dirección especificada.

        Las escrituras en 0x0000 - 0x7FFF se envían al controlador de banco, que
        decide si son comandos o si caen en memoria. Mientras hay una transferencia
        DMA en curso la escritura se descarta.

        Args:
            addr: Dirección de memoria (se enmascara a 16 bits)
            value: Valor a escribir (se enmascara a 8 bits)
        """
        addr = addr & 0xFFFF
        value = value & 0xFF
        if self.transfer_in_progress:
            logger.debug(f"Escritura descartada durante DMA: 0x{value:02X} -> 0x{addr:04X}")
            return
        self._write(addr, value)

    def _requested_bank(self) -> int:
        # Sin MBC manda set_bank; con MBC manda su propio registro de banco ROM
        if isinstance(self._controller, NoController):
            return self.active_bank
        return self._controller.rom_bank

    def _effective_bank(self) -> int:
        return self._controller.resolve(self._requested_bank())

    def _read(self, addr: int) -> int:
        if addr < ROM_FIXED_END:
            return self._storage[addr]

        if addr < ROM_BANKED_END:
            effective = addr + self._effective_bank() * ROM_BANK_SIZE
            if effective >= len(self._storage):
                return OPEN_BUS
            return self._storage[effective]

        if addr < IO_START:
            return self._storage[addr]

        if addr < IO_IE:
            return self._io_registers[addr - IO_START]

        return self.interrupt_enable

    def _write(self, addr: int, value: int) -> None:
        if addr < ROM_BANKED_END:
            bank = self._effective_bank() if addr >= ROM_FIXED_END else 0
            self._controller.apply_write(addr, value, self._storage, bank=bank)
            return

        if addr < IO_START:
            self._storage[addr] = value
            return

        if addr < IO_IE:
            self._io_registers[addr - IO_START] = value
            return

        self.interrupt_enable = value

    # ========== Acceso a palabras (Little-Endian) ==========

    def read_word(self, addr: int) -> int:
        """
        Lee una palabra (16 bits) en formato Little-Endian.

        Cada byte se decodifica por separado, así que una palabra puede cruzar dos
        regiones. Si addr es 0xFFFF, el byte alto hace wrap-around a 0x0000.

        Returns:
            (byte[addr+1] << 8) | byte[addr]
        """
        addr = addr & 0xFFFF
        lsb = self.read_byte(addr)
        msb = self.read_byte((addr + 1) & 0xFFFF)
        return (msb << 8) | lsb

    def write_word(self, addr: int, value: int) -> None:
        """
        Escribe una palabra (16 bits) en formato Little-Endian: LSB en addr, MSB en addr+1.

        Cada byte pasa por write_byte completo, por lo que puede afectar a dos regiones.
        """
        addr = addr & 0xFFFF
        value = value & 0xFFFF
        self.write_byte(addr, value & 0xFF)
        self.write_byte((addr + 1) & 0xFFFF, value >> 8)

    # ========== Bancos ==========

    def set_bank(self, bank: int) -> None:
        """
        Selecciona el banco visible en 0x4000 - 0x7FFF.

        Solo tiene efecto sin MBC: un controlador real selecciona su banco con
        escrituras en 0x2000 - 0x3FFF.
        """
        self.active_bank = bank & 0xFF
        if not isinstance(self._controller, NoController):
            logger.debug(
                f"set_bank({self.active_bank}) sin efecto en lectura: "
                f"{self._controller.name} usa su registro de banco ROM"
            )

    # ========== Interrupciones ==========

    def check_interrupt(self, kind: int) -> bool:
        """
        Indica si la interrupción está habilitada en IE (0xFFFF).

        Args:
            kind: Máscara de la interrupción (INT_VBLANK, INT_TIMER, ...)
        """
        return (self.interrupt_enable & kind) != 0

    def trigger_interrupt(self, kind: int) -> None:
        """
        Solicita una interrupción activando su flag en IF (0xFF0F).

        Si la interrupción no está habilitada en IE no ocurre nada. Por defecto
        todos los tipos activan el bit 0 de IF (simplificación heredada); con
        distinct_interrupt_flags cada tipo activa su propio bit.
        """
        if not self.check_interrupt(kind):
            return
        flag_bit = kind if self._distinct_interrupt_flags else INT_VBLANK
        flags = self.read_byte(IO_IF)
        self.write_byte(IO_IF, flags | flag_bit)
        logger.debug(f"Interrupción {INTERRUPT_NAMES.get(kind, hex(kind))}: IF |= 0x{flag_bit:02X}")

    # ========== DMA ==========

    def dma_transfer(self, source_page: int) -> None:
        """
        Transferencia DMA de 160 bytes desde XX00 hasta OAM (0xFE00 - 0xFE9F).

        Una llamada mientras otra está en curso se ignora. La copia usa la ruta
        pública de lectura/escritura, que el propio flag de transferencia bloquea:
        por defecto todas las lecturas devuelven 0xFF y todas las escrituras se
        descartan, así que OAM no cambia. Con dma_bypass la copia se hace por la
        ruta interna y OAM recibe los datos de origen.

        Args:
            source_page: Byte alto de la dirección de origen (0xC0 -> 0xC000)

        Fuente: Pan Docs - OAM DMA Transfer
        """
        if self.transfer_in_progress:
            logger.debug("DMA ya en curso, petición ignorada")
            return

        source_base = (source_page & 0xFF) << 8
        logger.debug(f"DMA: {OAM_SIZE} bytes desde 0x{source_base:04X} a 0x{OAM_START:04X}")

        self.transfer_in_progress = True
        try:
            for i in range(OAM_SIZE):
                source_addr = (source_base + i) & 0xFFFF
                if self._dma_bypass:
                    self._write(OAM_START + i, self._read(source_addr))
                else:
                    self.write_byte(OAM_START + i, self.read_byte(source_addr))
        finally:
            self.transfer_in_progress = False

    # ========== Depuración ==========

    def dump(self, start: int, end: int) -> bytes:
        """Lee el rango [start, end) a través de read_byte."""
        return bytes(self.read_byte(addr) for addr in range(start, end))

    def __repr__(self) -> str:
        return (
            f"AddressBus(controller={self._controller!r}, active_bank={self.active_bank}, "
            f"ie=0x{self.interrupt_enable:02X}, transfer_in_progress={self.transfer_in_progress})"
        )
