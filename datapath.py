# -*- coding: utf-8 -*-
"""
Unidades funcionales del datapath de un ciclo (MIPS educativo)
--------------------------------------------------------------
- ALU: dos entradas, código de control, resultado y bandera zero.
- RegisterFile: 32 registros de 32 bits; write() escribe sin consultar control_write.
- DataMemory: memoria dispersa dirección -> valor; leer una dirección ausente la crea con 0.

Cada unidad se usa igual: el llamador fija las entradas, invoca execute()/write()
y lee las salidas antes de la siguiente invocación.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

MASK32 = 0xFFFFFFFF
NUM_REGISTERS = 32

def to_u32(x: int) -> int:
    return x & MASK32

def box(title: str) -> List[str]:
    bar = " " + "-" * (len(title) + 2) + " "
    return [bar, f"| {title} |", bar]

# -------------------------
# ALU
# -------------------------
ALU_AND = 0
ALU_OR  = 1
ALU_ADD = 2
ALU_SUB = 6
ALU_SLT = 7   # cualquier código no listado también es SLT

class ALU:
    def __init__(self, number: int = 0):
        self.number = number
        self.in_a = 0
        self.in_b = 0
        self.control = 0
        self.result = 0
        self.zero_flag = False

    def execute(self) -> int:
        a, b = to_u32(self.in_a), to_u32(self.in_b)
        if self.control == ALU_AND:
            self.result = a & b
        elif self.control == ALU_OR:
            self.result = a | b
        elif self.control == ALU_ADD:
            self.result = to_u32(a + b)
            # zero solo se activa aquí y en SUB; nunca se limpia
            if self.result == 0:
                self.zero_flag = True
        elif self.control == ALU_SUB:
            self.result = to_u32(a - b)
            if self.result == 0:
                self.zero_flag = True
        else:
            self.result = 1 if a < b else 0
        return self.result

    def dump(self) -> List[str]:
        return box(f"   ALU {self.number}   ") + [
            f"Input A: 0x{to_u32(self.in_a):x}",
            f"Input B: 0x{to_u32(self.in_b):x}",
            f"Control code: 0x{self.control:x}",
            f"Result: 0x{self.result:x}",
            f"Zero flag: 0x{int(self.zero_flag):x}",
            "",
        ]

# -------------------------
# Banco de registros
# -------------------------
class RegisterFile:
    """Banco de 32 registros.

    write() es la habilitación: guarda write_data en write_reg siempre que se
    llama. control_write solo informa al control externo; esta clase no lo lee.
    """

    def __init__(self, initial: Optional[Sequence[int]] = None):
        values = [to_u32(v) for v in (initial or [])][:NUM_REGISTERS]
        self.registers: List[int] = values + [0] * (NUM_REGISTERS - len(values))
        self.read_reg1 = 0
        self.read_reg2 = 0
        self.write_reg = 0
        self.write_data = 0
        self.control_write = False

    def __getitem__(self, index: int) -> int:
        return self.registers[index]

    def __len__(self) -> int:
        return len(self.registers)

    def read(self, index: int) -> int:
        return self.registers[index]

    @property
    def read_data1(self) -> int:
        return self.registers[self.read_reg1]

    @property
    def read_data2(self) -> int:
        return self.registers[self.read_reg2]

    def write(self):
        self.registers[self.write_reg] = to_u32(self.write_data)

    def dump(self) -> List[str]:
        out = box("Register File") + [
            f"Register 1: {self.read_reg1}",
            f"Register 2: {self.read_reg2}",
            f"Write Register: {self.write_reg}",
            f"Write Data: 0x{to_u32(self.write_data):08x}",
            "Register Contents...",
        ]
        out += [f"{i}: 0x{v:08x}" for i, v in enumerate(self.registers)]
        out.append("")
        return out

# -------------------------
# Memoria de datos
# -------------------------
class DataMemory:
    def __init__(self, initial: Optional[Mapping[int, int]] = None):
        self.data: Dict[int, int] = {to_u32(a): to_u32(v) for a, v in (initial or {}).items()}
        self.address = 0
        self.write_data = 0
        self.read_data = 0
        self.control_read = False
        self.control_write = False

    def execute(self):
        addr = to_u32(self.address)
        # lectura tiene prioridad sobre escritura
        if self.control_read:
            self.read_data = self.data.setdefault(addr, 0)
        elif self.control_write:
            self.data[addr] = to_u32(self.write_data)

    def peek(self, address: int) -> int:
        """Lee sin crear la dirección (solo para diagnóstico)."""
        return self.data.get(to_u32(address), 0)

    def __contains__(self, address: int) -> bool:
        return to_u32(address) in self.data

    def dump(self) -> List[str]:
        out = box("Data Memory") + [
            f"Address: 0x{to_u32(self.address):x}",
            f"Read Data: 0x{self.read_data:x}",
            f"Write Data: 0x{to_u32(self.write_data):08x}",
            f"Control Line - MemRead: 0x{int(bool(self.control_read)):x}",
            f"Control Line - MemWrite: 0x{int(bool(self.control_write)):x}",
            "Memory Contents...",
        ]
        out += [f"0x{a:x}:{v:x}" for a, v in sorted(self.data.items())]
        out.append("")
        return out
