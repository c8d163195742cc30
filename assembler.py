#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MIPS Assembler (educational, Python 3)
--------------------------------------
- Traduce líneas de ensamblador MIPS a palabras de máquina de 32 bits.
- Una sola pasada: cada línea no vacía produce exactamente una palabra.
- Mnemónicos soportados (sin distinguir mayúsculas): add, sub, slt, addi, lw, sw, beq, j.
- Dos sintaxis para tipo I: "rt, rs, imm" (addi/beq) y "rt, imm(rs)" (lw/sw).
- Un mnemónico desconocido se codifica como 0x00000000 (o AsmError en modo estricto).

Uso:
    python assembler.py [-v] [--strict] program.asm program.hex program.bin
"""

from __future__ import annotations

import sys
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# -------------------------
# Errores
# -------------------------
class AsmError(Exception):
    pass

# -------------------------
# Utilidades numéricas
# -------------------------
MASK32 = 0xFFFFFFFF
MASK16 = 0xFFFF
MASK26 = 0x03FFFFFF

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

def parse_c_integer(text: str, base: int = 10) -> int:
    """Lee un entero al estilo strtol de C.

    Se ignoran los espacios iniciales, se acepta un signo y, con base 0, el
    prefijo decide la base (0x -> 16, 0 -> 8, si no 10). La lectura se detiene
    en el primer carácter que no es dígito; sin dígitos devuelve 0.
    """
    s = text.lstrip(" \t\n\r\f\v")
    neg = False
    if s[:1] in ("+", "-"):
        neg = s[0] == "-"
        s = s[1:]
    if base in (0, 16) and s[:2].lower() == "0x" and s[2:3] and s[2:3].lower() in DIGITS[:16]:
        base = 16
        s = s[2:]
    elif base == 0:
        base = 8 if s.startswith("0") else 10
    digits = DIGITS[:base]
    val = 0
    for ch in s.lower():
        d = digits.find(ch)
        if d < 0:
            break
        val = val * base + d
    return -val if neg else val

def to_hex8(word: int) -> str:
    return format(word & MASK32, '08x')

def to_bin32(word: int) -> str:
    return format(word & MASK32, '032b')

def format_bin_grouped(word: int) -> str:
    """Muestra la palabra separada por campos según su formato (R/I/J)."""
    def bits(val, hi, lo):
        return (val >> lo) & ((1 << (hi - lo + 1)) - 1)

    word &= MASK32
    op = bits(word, 31, 26)

    # R: op | rs | rt | rd | shamt | funct
    if op == 0:
        return (f"{op:06b} {bits(word, 25, 21):05b} {bits(word, 20, 16):05b} "
                f"{bits(word, 15, 11):05b} {bits(word, 10, 6):05b} {bits(word, 5, 0):06b}")

    # J: op | target
    if op in J_OPCODES:
        return f"{op:06b} {bits(word, 25, 0):026b}"

    # I: op | rs | rt | imm
    return f"{op:06b} {bits(word, 25, 21):05b} {bits(word, 20, 16):05b} {bits(word, 15, 0):016b}"

# -------------------------
# Tabla de mnemónicos: opcode de 6 bits arriba, funct de 6 bits abajo
# -------------------------
FMT_R = "R"
FMT_I = "I"
FMT_J = "J"

OPCODES: Dict[str, Tuple[str, int]] = {
    "add":  (FMT_R, (0x00 << 26) | 32),
    "sub":  (FMT_R, (0x00 << 26) | 34),
    "slt":  (FMT_R, (0x00 << 26) | 42),
    "addi": (FMT_I, (0x08 << 26)),
    "lw":   (FMT_I, (0x23 << 26)),
    "sw":   (FMT_I, (0x2b << 26)),
    "beq":  (FMT_I, (0x04 << 26)),
    "j":    (FMT_J, (0x02 << 26)),
}

J_OPCODES = {0x02}

def match_mnemonic(token: Optional[str]) -> Optional[str]:
    """Devuelve el mnemónico canónico (minúsculas) o None si no se reconoce."""
    if not token:
        return None
    m = token.lower()
    return m if m in OPCODES else None

def instruction_format(token: Optional[str]) -> Optional[str]:
    m = match_mnemonic(token)
    return OPCODES[m][0] if m else None

# -------------------------
# Parsing de líneas
# -------------------------
def strip_line(line: str) -> str:
    """Quita el comentario (#...), los espacios/tabs de los extremos y cambia tabs por espacios."""
    cut = line.find('#')
    if cut >= 0:
        line = line[:cut]
    return line.strip(" \t").replace("\t", " ")

def split_first(text: Optional[str], delims: str) -> Tuple[Optional[str], str]:
    """Como strtok: salta delimitadores, toma un token y consume un delimitador detrás."""
    if not text:
        return None, ""
    i = 0
    while i < len(text) and text[i] in delims:
        i += 1
    j = i
    while j < len(text) and text[j] not in delims:
        j += 1
    if i == j:
        return None, ""
    return text[i:j], text[j + 1:]

def split_tokens(text: Optional[str], delims: str) -> List[str]:
    tokens: List[str] = []
    tok, rest = split_first(text, delims)
    while tok is not None:
        tokens.append(tok)
        tok, rest = split_first(rest, delims)
    return tokens

# -------------------------
# Operandos: registro ($n) o literal hexadecimal
# -------------------------
@dataclass(frozen=True)
class Register:
    value: int

@dataclass(frozen=True)
class Literal:
    value: int

Operand = Union[Register, Literal]

def decode_operand(tok: str) -> Operand:
    pos = tok.find('$')
    if pos >= 0:
        return Register(parse_c_integer(tok[pos + 1:], 10))
    # sin '$' el campo es un literal (p.ej. cantidad de desplazamiento)
    return Literal(parse_c_integer(tok, 16))

# -------------------------
# Decodificadores de campos (sin opcode/funct)
# -------------------------
def decode_r_type(fields: Optional[str]) -> int:
    """rd, rs, rt -> rs[25:21] | rt[20:16] | rd[15:11] | shamt[10:6]."""
    ops = split_tokens(fields, ", ")
    if len(ops) < 3:
        return 0
    first = decode_operand(ops[0])
    rd = sh = 0
    if isinstance(first, Literal):
        sh = first.value
    else:
        rd = first.value
    rs = decode_operand(ops[1]).value
    rt = decode_operand(ops[2]).value
    return ((rs << 21) | (rt << 16) | (rd << 11) | (sh << 6)) & MASK32

def decode_i_type(fields: Optional[str]) -> int:
    """rs[25:21] | rt[20:16] | imm[15:0]; el número de comas decide la sintaxis."""
    if not fields:
        return 0
    rt_tok, rest = split_first(fields, ", ")
    if rt_tok is None:
        return 0
    rt = decode_operand(rt_tok).value

    if fields.count(',') == 2:
        # rt, rs, imm  (imm en decimal, hex u octal)
        ops = split_tokens(rest, ", ")
        if len(ops) < 2:
            return 0
        rs = decode_operand(ops[0]).value
        imm = parse_c_integer(ops[1], 0) & MASK16
    else:
        # rt, imm(rs)  (offset siempre en decimal, con signo)
        ops = split_tokens(rest, ",()")
        if len(ops) < 2:
            return 0
        rs = decode_operand(ops[1]).value
        imm = parse_c_integer(ops[0], 10) & MASK16

    return ((rs << 21) | (rt << 16) | imm) & MASK32

def decode_j_type(fields: Optional[str]) -> int:
    # dirección en hex, alineada a palabra; se pierden los 2 bits bajos
    if not fields:
        return 0
    return (parse_c_integer(fields, 16) >> 2) & MASK26

DECODERS = {
    FMT_R: decode_r_type,
    FMT_I: decode_i_type,
    FMT_J: decode_j_type,
}

# -------------------------
# Traducción de una línea
# -------------------------
def translate(line: str) -> Optional[int]:
    """Palabra de máquina de una línea normalizada, o None si el mnemónico no existe."""
    mnem_tok, fields = split_first(line.replace("\t", " "), " ")
    mnem = match_mnemonic(mnem_tok)
    if mnem is None:
        return None
    fmt, base = OPCODES[mnem]
    return (base | DECODERS[fmt](fields)) & MASK32

def assemble_line(line: str) -> int:
    word = translate(strip_line(line))
    return 0 if word is None else word

# -------------------------
# Ensamblador (una pasada)
# -------------------------
class Assembler:
    def __init__(self, strict: bool = False):
        self.strict = strict
        self.source_lines: List[str] = []
        self.words: List[int] = []
        self.undefined: List[Tuple[int, str]] = []  # (índice de instrucción, texto)
        self.line_no = 0

    @property
    def size(self) -> int:
        return len(self.words)

    def add_line(self, raw: str) -> Optional[int]:
        self.line_no += 1
        line = strip_line(raw)
        if not line:
            return None
        word = translate(line)
        if word is None:
            if self.strict:
                raise AsmError(f"Línea {self.line_no}: instrucción inválida o no soportada: '{line}'")
            logger.warning("Línea %d: mnemónico no reconocido, se codifica como 0: '%s'", self.line_no, line)
            self.undefined.append((len(self.words), line))
            word = 0
        logger.debug("Línea %d: %s -> 0x%s", self.line_no, line, to_hex8(word))
        self.source_lines.append(line)
        self.words.append(word)
        return word

    def assemble(self, lines) -> List[int]:
        for raw in lines:
            self.add_line(raw)
        return self.words

    def listing(self) -> Iterator[Tuple[int, int, str]]:
        for idx, (word, text) in enumerate(zip(self.words, self.source_lines)):
            yield idx, word, text

# -------------------------
# CLI
# -------------------------
def main(argv=None):
    if argv is None: argv = sys.argv
    flags = [a for a in argv[1:] if a.startswith('-')]
    args = [a for a in argv[1:] if not a.startswith('-')]
    if len(args) != 3 or any(f not in ('-v', '--strict') for f in flags):
        print("Uso: python assembler.py [-v] [--strict] program.asm program.hex program.bin")
        return 2
    logging.basicConfig(level=logging.DEBUG if '-v' in flags else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    in_path, hex_path, bin_path = args

    try:
        with open(in_path, 'r', encoding='utf-8', errors='replace') as f:
            src = f.read().splitlines()
    except FileNotFoundError:
        logger.error("Archivo no encontrado: %s", in_path)
        return 1

    asm = Assembler(strict='--strict' in flags)
    try:
        words = asm.assemble(src)
    except AsmError as e:
        logger.error("Error de ensamblado: %s", e)
        return 1

    with open(hex_path, 'w', encoding='utf-8') as fhex, open(bin_path, 'w', encoding='utf-8') as fbin:
        for w in words:
            fhex.write(to_hex8(w) + "\n")
            fbin.write(format_bin_grouped(w) + "\n")

    print(f"Ensambla OK: {len(words)} instrucciones -> {hex_path}, {bin_path}")
    if asm.undefined:
        print(f"  {len(asm.undefined)} instrucciones no reconocidas codificadas como 0")
    return 0

if __name__ == '__main__':
    sys.exit(main())
