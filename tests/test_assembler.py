import os
import tempfile
import unittest

from assembler import (
    AsmError, Assembler, Literal, Register, assemble_line, decode_i_type,
    decode_j_type, decode_operand, decode_r_type, format_bin_grouped,
    instruction_format, main, match_mnemonic, parse_c_integer, strip_line,
    translate,
)


class TestStripLine(unittest.TestCase):
    def test_removes_comment_and_edges(self):
        self.assertEqual(strip_line("  add $1, $2, $3   # suma"), "add $1, $2, $3")
        self.assertEqual(strip_line("\tadd\t$1, $2, $3\t"), "add $1, $2, $3")

    def test_comment_only_is_empty(self):
        self.assertEqual(strip_line("# nada"), "")
        self.assertEqual(strip_line(" \t "), "")

    def test_idempotent(self):
        for raw in ["", "   ", "# x", "ADD\t$1,$2,$3 # y", "  lw $1, 4($2)", "j 400\t\t", "a\t#b#c"]:
            once = strip_line(raw)
            self.assertEqual(strip_line(once), once)


class TestNumbers(unittest.TestCase):
    def test_c_style_prefix_parsing(self):
        self.assertEqual(parse_c_integer("  42abc", 10), 42)
        self.assertEqual(parse_c_integer("-0x10", 0), -16)
        self.assertEqual(parse_c_integer("017", 0), 15)
        self.assertEqual(parse_c_integer("ff", 16), 255)
        self.assertEqual(parse_c_integer("0x1F", 16), 31)

    def test_no_digits_is_zero(self):
        self.assertEqual(parse_c_integer("", 10), 0)
        self.assertEqual(parse_c_integer("zz", 10), 0)
        self.assertEqual(parse_c_integer("0x", 0), 0)


class TestOperands(unittest.TestCase):
    def test_register_and_literal(self):
        self.assertEqual(decode_operand("$7"), Register(7))
        self.assertEqual(decode_operand("$31"), Register(31))
        self.assertEqual(decode_operand("1f"), Literal(31))
        self.assertEqual(decode_operand("0x10"), Literal(16))

    def test_no_range_check(self):
        self.assertEqual(decode_operand("$40").value, 40)


class TestFieldDecoders(unittest.TestCase):
    def test_r_type_fields(self):
        self.assertEqual(decode_r_type("$3, $1, $2"), (1 << 21) | (2 << 16) | (3 << 11))

    def test_r_type_shift_literal_in_destination(self):
        # sin '$' el primer campo es shamt y rd queda en 0
        self.assertEqual(decode_r_type("4, $1, $2"), (1 << 21) | (2 << 16) | (4 << 6))

    def test_r_type_missing_fields(self):
        self.assertEqual(decode_r_type("$3, $1"), 0)
        self.assertEqual(decode_r_type(""), 0)

    def test_i_type_three_fields(self):
        self.assertEqual(decode_i_type("$5, $4, 10"), (4 << 21) | (5 << 16) | 10)
        self.assertEqual(decode_i_type("$1, $0, 0x10"), (1 << 16) | 0x10)
        self.assertEqual(decode_i_type("$1, $0, 010"), (1 << 16) | 8)
        self.assertEqual(decode_i_type("$1, $0, -1"), (1 << 16) | 0xFFFF)

    def test_i_type_offset_form(self):
        self.assertEqual(decode_i_type("$6, 8($7)"), (7 << 21) | (6 << 16) | 8)
        self.assertEqual(decode_i_type("$2, -4($3)"), (3 << 21) | (2 << 16) | 0xFFFC)

    def test_i_type_missing_fields(self):
        self.assertEqual(decode_i_type("$1"), 0)
        self.assertEqual(decode_i_type(""), 0)
        self.assertEqual(decode_i_type("$1, $2,"), 0)

    def test_j_type_word_aligned(self):
        self.assertEqual(decode_j_type("0x400"), 0x100)
        self.assertEqual(decode_j_type("400"), 0x100)
        # los 2 bits bajos se pierden
        self.assertEqual(decode_j_type("403"), 0x100)
        self.assertEqual(decode_j_type("fffffffc"), 0x03FFFFFF)


class TestMnemonics(unittest.TestCase):
    def test_case_insensitive(self):
        self.assertEqual(match_mnemonic("ADDI"), "addi")
        self.assertEqual(match_mnemonic("Sw"), "sw")

    def test_exact_length(self):
        self.assertIsNone(match_mnemonic("swx"))
        self.assertIsNone(match_mnemonic("s"))
        self.assertIsNone(match_mnemonic(""))

    def test_instruction_class(self):
        self.assertEqual([instruction_format(m) for m in ("add", "SLT", "lw", "beq", "J", "nop")],
                         ["R", "R", "I", "I", "J", None])


class TestTranslate(unittest.TestCase):
    def test_reference_words(self):
        self.assertEqual(assemble_line("add $3, $1, $2"), 0x00221820)
        self.assertEqual(assemble_line("addi $5, $4, 10"), 0x2085000A)
        self.assertEqual(assemble_line("sw $6, 8($7)"), 0xACE60008)

    def test_other_mnemonics(self):
        self.assertEqual(assemble_line("sub $3, $1, $2"), 0x00221822)
        self.assertEqual(assemble_line("slt $3, $1, $2"), 0x0022182A)
        self.assertEqual(assemble_line("lw $2, -4($3)"), 0x8C62FFFC)
        self.assertEqual(assemble_line("beq $1, $2, 4"), 0x10410004)
        self.assertEqual(assemble_line("j 0x400"), 0x08000100)

    def test_case_tabs_and_comments(self):
        self.assertEqual(assemble_line("ADD\t$3,$1,$2   # suma"), 0x00221820)

    def test_unknown_mnemonic(self):
        self.assertEqual(assemble_line("foo $1,$2,$3"), 0)
        self.assertIsNone(translate("foo $1,$2,$3"))
        self.assertIsNone(translate(""))

    def test_mnemonic_without_operands(self):
        self.assertEqual(assemble_line("add"), 0x00000020)
        self.assertEqual(assemble_line("lw"), 0x8C000000)


class TestFormatting(unittest.TestCase):
    def test_grouped_by_format(self):
        self.assertEqual(format_bin_grouped(0x00221820), "000000 00001 00010 00011 00000 100000")
        self.assertEqual(format_bin_grouped(0x2085000A), "001000 00100 00101 0000000000001010")
        self.assertEqual(format_bin_grouped(0x08000100), "000010 " + format(0x100, "026b"))


class TestAssembler(unittest.TestCase):
    SOURCE = [
        "# programa de prueba",
        "",
        "add $3, $1, $2",
        "   ",
        "foo $1,$2,$3  # mnemonico invalido",
        "sw $6, 8($7)",
    ]

    def test_parallel_sequences(self):
        asm = Assembler()
        words = asm.assemble(self.SOURCE)
        self.assertEqual(words, [0x00221820, 0, 0xACE60008])
        self.assertEqual(asm.source_lines, ["add $3, $1, $2", "foo $1,$2,$3", "sw $6, 8($7)"])
        self.assertEqual(asm.size, 3)
        self.assertEqual(asm.undefined, [(1, "foo $1,$2,$3")])

    def test_length_matches_non_empty_lines(self):
        asm = Assembler()
        asm.assemble(self.SOURCE)
        self.assertEqual(asm.size, sum(1 for l in self.SOURCE if strip_line(l)))

    def test_listing(self):
        asm = Assembler()
        asm.assemble(["j 400", "add $1, $2, $3"])
        self.assertEqual(list(asm.listing()),
                         [(0, 0x08000100, "j 400"), (1, 0x00430820, "add $1, $2, $3")])

    def test_blank_lines_return_none(self):
        asm = Assembler()
        self.assertIsNone(asm.add_line("   # x"))
        self.assertEqual(asm.size, 0)

    def test_strict_rejects_unknown(self):
        asm = Assembler(strict=True)
        with self.assertRaises(AsmError) as ctx:
            asm.assemble(self.SOURCE)
        self.assertIn("Línea 5", str(ctx.exception))
        self.assertEqual(asm.words, [0x00221820])


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def path(self, name):
        return os.path.join(self.tmp.name, name)

    def test_writes_hex_and_bin(self):
        with open(self.path("p.asm"), "w", encoding="utf-8") as f:
            f.write("add $3, $1, $2\n# comentario\naddi $5, $4, 10\n")
        rc = main(["assembler.py", self.path("p.asm"), self.path("p.hex"), self.path("p.bin")])
        self.assertEqual(rc, 0)
        with open(self.path("p.hex"), encoding="utf-8") as f:
            self.assertEqual(f.read().split(), ["00221820", "2085000a"])
        with open(self.path("p.bin"), encoding="utf-8") as f:
            self.assertEqual(len(f.read().splitlines()), 2)

    def test_latin1_comment_in_source(self):
        with open(self.path("p.asm"), "wb") as f:
            f.write(b"add $3, $1, $2  # suma en espa\xf1ol\n")
        rc = main(["assembler.py", self.path("p.asm"), self.path("p.hex"), self.path("p.bin")])
        self.assertEqual(rc, 0)
        with open(self.path("p.hex"), encoding="utf-8") as f:
            self.assertEqual(f.read().split(), ["00221820"])

    def test_usage_and_missing_file(self):
        self.assertEqual(main(["assembler.py"]), 2)
        self.assertEqual(main(["assembler.py", self.path("no.asm"), self.path("a"), self.path("b")]), 1)

    def test_strict_flag(self):
        with open(self.path("p.asm"), "w", encoding="utf-8") as f:
            f.write("foo $1, $2, $3\n")
        args = [self.path("p.asm"), self.path("p.hex"), self.path("p.bin")]
        self.assertEqual(main(["assembler.py", "--strict"] + args), 1)
        self.assertEqual(main(["assembler.py"] + args), 0)


if __name__ == "__main__":
    unittest.main()
