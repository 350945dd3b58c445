#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cartbus - Sonda del bus de memoria
Carga una imagen de cartucho, aplica escrituras de control y vuelca rangos en hexadecimal.

Uso:
    python main.py <imagen.gb> [--mbc mbc1] [--write 0x2000=0x02] [--dump 0x4000:0x4040]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from cartbus.memory import AddressBus
from cartbus.memory.bank_controller import CONTROLLER_TYPES

logger = logging.getLogger(__name__)

# Bytes por fila en el volcado
DUMP_ROW_SIZE = 16
DEFAULT_DUMP = (0x4000, 0x4040)


def parse_int(text: str) -> int:
    """Acepta decimal o hexadecimal (0x...)."""
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"número inválido: {text!r}") from None


def parse_write(text: str) -> tuple[int, int]:
    """Parsea ADDR=VAL."""
    addr, sep, value = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"se esperaba ADDR=VAL, no {text!r}")
    return parse_int(addr), parse_int(value)


def parse_range(text: str) -> tuple[int, int]:
    """Parsea START:END (END exclusivo)."""
    start, sep, end = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"se esperaba START:END, no {text!r}")
    start_addr, end_addr = parse_int(start), parse_int(end)
    if not 0 <= start_addr <= end_addr <= 0x10000:
        raise argparse.ArgumentTypeError(f"rango inválido: {text!r}")
    return start_addr, end_addr


def format_dump(bus: AddressBus, start: int, end: int) -> list[str]:
    """Devuelve las filas `ADDR: XX XX ...` del rango [start, end)."""
    lines = []
    for row_start in range(start, end, DUMP_ROW_SIZE):
        row = bus.dump(row_start, min(row_start + DUMP_ROW_SIZE, end))
        lines.append(f"{row_start:04X}: " + " ".join(f"{b:02X}" for b in row))
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="cartbus - Sonda del bus de memoria y controladores de banco"
    )
    parser.add_argument("image", type=str, help="Ruta a la imagen del cartucho")
    parser.add_argument(
        "--mbc",
        choices=sorted(CONTROLLER_TYPES),
        default="none",
        help="Controlador de banco a usar (por defecto: none)",
    )
    parser.add_argument(
        "--write",
        type=parse_write,
        action="append",
        default=[],
        metavar="ADDR=VAL",
        help="Escritura a aplicar con write_byte (repetible, en orden)",
    )
    parser.add_argument(
        "--bank",
        type=parse_int,
        default=None,
        help="Banco a seleccionar con set_bank (solo sin MBC)",
    )
    parser.add_argument(
        "--dump",
        type=parse_range,
        action="append",
        default=[],
        metavar="START:END",
        help="Rango a volcar (repetible; por defecto 0x4000:0x4040)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Activar trazas DEBUG (cambios de banco, DMA, escrituras descartadas)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Activar mensajes INFO",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Función principal de la sonda"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.ERROR,
        format="%(message)s",
        force=True,
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        image = Path(args.image).read_bytes()
    except (FileNotFoundError, IOError) as e:
        logger.error(f"Error al cargar imagen: {e}")
        return 1

    bus = AddressBus(args.mbc, rom=image)

    if args.bank is not None:
        bus.set_bank(args.bank)
    for addr, value in args.write:
        bus.write_byte(addr, value)

    logger.info(repr(bus))

    for start, end in args.dump or [DEFAULT_DUMP]:
        for line in format_dump(bus, start, end):
            print(line)

    return 0


if __name__ == "__main__":
    sys.exit(main())
