#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Carga de archivos para el datapath MIPS
---------------------------------------
- Configuración: líneas "parametro=valor".
- Registros: líneas "indice_decimal:valor_hex" (índices > 31 se ignoran).
- Memoria: líneas "direccion_hex:valor_hex".
- Programa: una instrucción por línea, comentarios con '#'.

Por defecto los errores no son fatales: se registran, la fuente afectada queda
vacía o con lo leído hasta la línea malformada, y se sigue. Con strict=True se
lanza el primer LoadError.

Uso:
    python loader.py config.cfg
"""

from __future__ import annotations

import sys
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

from assembler import AsmError, Assembler, parse_c_integer, strip_line, to_hex8
from datapath import ALU, DataMemory, NUM_REGISTERS, RegisterFile, to_u32

logger = logging.getLogger(__name__)

TRUE_WORDS = ("true", "yes", "1", "on")

# -------------------------
# Errores
# -------------------------
class LoadError(Exception):
    def __init__(self, message: str, path: str, line_no: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.line_no = line_no

    def __str__(self):
        where = f"{self.path}:{self.line_no}" if self.line_no is not None else self.path
        return f"{where}: {self.args[0]}"

class Loaded(NamedTuple):
    """Lo leído de una fuente junto con los errores encontrados (vacío si todo fue bien)."""
    value: Any
    errors: List[LoadError]

    @property
    def ok(self) -> bool:
        return not self.errors

def _report(err: LoadError, errors: Optional[List[LoadError]], strict: bool):
    if strict:
        raise err
    logger.warning("%s", err)
    if errors is not None:
        errors.append(err)

# -------------------------
# Lectura genérica
# -------------------------
def _read_lines(path: str, errors: Optional[List[LoadError]], strict: bool) -> Optional[List[str]]:
    try:
        # bytes no UTF-8 (p.ej. Latin-1 en comentarios) se reemplazan, no abortan la lectura
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read().splitlines()
    except OSError:
        _report(LoadError(f'No se pudo abrir el archivo "{path}"', path), errors, strict)
        return None

def _iter_pairs(path: str, sep: str, errors: Optional[List[LoadError]],
                strict: bool) -> Iterator[Tuple[int, str, str]]:
    """Genera (nº de línea, clave, valor); se detiene en la primera línea malformada."""
    lines = _read_lines(path, errors, strict)
    if lines is None:
        return
    for line_no, raw in enumerate(lines, 1):
        line = strip_line(raw)
        if not line:
            continue
        parts = [p for p in line.split(sep) if p]
        if len(parts) < 2:
            _report(LoadError(f"Entrada malformada en la línea {line_no}", path, line_no), errors, strict)
            return
        yield line_no, parts[0].strip(), parts[1].strip()

# -------------------------
# Configuración
# -------------------------
@dataclass
class Config:
    program_input: str = ""
    memory_contents_input: str = ""
    register_file_input: str = ""
    output_mode: str = ""
    debug_mode: str = ""
    print_memory_contents: str = ""
    output_file: str = ""
    write_to_file: str = ""

    def flag(self, name: str) -> bool:
        return getattr(self, name).strip().lower() in TRUE_WORDS

CONFIG_KEYS = tuple(f.name for f in fields(Config))

def read_config(path: str, errors: Optional[List[LoadError]] = None, strict: bool = False) -> Loaded:
    errors = [] if errors is None else errors
    cfg = Config()
    for line_no, key, value in _iter_pairs(path, '=', errors, strict):
        if key not in CONFIG_KEYS:
            _report(LoadError(f"Parámetro desconocido '{key}' en la línea {line_no}", path, line_no),
                    errors, strict)
            break
        setattr(cfg, key, value)
    return Loaded(cfg, errors)

# -------------------------
# Registros, memoria y programa
# -------------------------
def read_register_file(path: str, errors: Optional[List[LoadError]] = None, strict: bool = False) -> Loaded:
    errors = [] if errors is None else errors
    regs = [0] * NUM_REGISTERS
    for line_no, reg, value in _iter_pairs(path, ':', errors, strict):
        r = parse_c_integer(reg, 10)
        if not 0 <= r < NUM_REGISTERS:
            logger.debug("%s:%d: registro %d ignorado", path, line_no, r)
            continue
        regs[r] = to_u32(parse_c_integer(value, 16))
    return Loaded(regs, errors)

def read_memory_contents(path: str, errors: Optional[List[LoadError]] = None,
                         strict: bool = False) -> Loaded:
    errors = [] if errors is None else errors
    mem: Dict[int, int] = {}
    for _, address, value in _iter_pairs(path, ':', errors, strict):
        mem[to_u32(parse_c_integer(address, 16))] = to_u32(parse_c_integer(value, 16))
    return Loaded(mem, errors)

def read_program(path: str, errors: Optional[List[LoadError]] = None, strict: bool = False) -> Loaded:
    errors = [] if errors is None else errors
    asm = Assembler(strict=strict)
    lines = _read_lines(path, errors, strict)
    if lines is not None:
        try:
            asm.assemble(lines)
        except AsmError as e:
            raise LoadError(str(e), path, asm.line_no) from e
    return Loaded(asm, errors)

# -------------------------
# Máquina cargada
# -------------------------
@dataclass
class Machine:
    config: Config
    program: Assembler
    registers: RegisterFile
    memory: DataMemory
    alus: List[ALU] = field(default_factory=lambda: [ALU(n) for n in range(1, 4)])
    errors: List[LoadError] = field(default_factory=list)

    def listing(self) -> List[str]:
        return [f"{idx:4d}  0x{to_hex8(word)}  {text}" for idx, word, text in self.program.listing()]

    def report(self) -> List[str]:
        out = ["Instruction Memory..."] + self.listing() + [""]
        out += self.registers.dump()
        if self.config.flag("print_memory_contents"):
            out += self.memory.dump()
        return out

def build_machine(cfg: Config, errors: Optional[List[LoadError]] = None, strict: bool = False) -> Machine:
    """Lee memoria, registros y programa (en ese orden) según la configuración ya cargada."""
    errors = [] if errors is None else errors
    memory = read_memory_contents(cfg.memory_contents_input, errors, strict).value
    registers = read_register_file(cfg.register_file_input, errors, strict).value
    program = read_program(cfg.program_input, errors, strict).value
    return Machine(cfg, program, RegisterFile(registers), DataMemory(memory), errors=errors)

def load_machine(config_path: str, strict: bool = False) -> Machine:
    cfg, errors = read_config(config_path, strict=strict)
    return build_machine(cfg, errors, strict)

# -------------------------
# CLI
# -------------------------
def main(argv=None):
    if argv is None: argv = sys.argv
    if len(argv) != 2:
        print("Uso: python loader.py config.cfg")
        return 2
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    cfg, errors = read_config(argv[1])
    if cfg.flag("debug_mode"):
        logging.getLogger().setLevel(logging.DEBUG)
    machine = build_machine(cfg, errors)
    lines = machine.report()

    if cfg.flag("write_to_file") and cfg.output_file:
        with open(cfg.output_file, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines) + "\n")
        print(f"Salida -> {cfg.output_file}")
    else:
        print("\n".join(lines))
    if machine.errors:
        print(f"{len(machine.errors)} errores de carga (ver avisos)")
    return 0

if __name__ == '__main__':
    sys.exit(main())
