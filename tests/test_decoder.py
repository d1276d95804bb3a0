"""
Unit tests for the CHIP-8 instruction decoder
"""

import unittest

from chipemu.decoder import Instruction, Kind, decode, disassemble, encode


class TestEncode(unittest.TestCase):
    """Instruction -> opcode"""

    def test_known_encodings(self):
        cases = [
            (Instruction(Kind.CLEAR_DISPLAY), 0x00E0),
            (Instruction(Kind.RETURN), 0x00EE),
            (Instruction(Kind.JUMP, nnn=0x4F1), 0x14F1),
            (Instruction(Kind.CALL, nnn=0x7AB), 0x27AB),
            (Instruction(Kind.SKIP_EQ_CONST, x=0xA, kk=0xC3), 0x3AC3),
            (Instruction(Kind.SKIP_NE_CONST, x=0x1, kk=0x23), 0x4123),
            (Instruction(Kind.SKIP_EQ_REG, x=0xA, y=0xD), 0x5AD0),
            (Instruction(Kind.LOAD_CONST, x=0x7, kk=0xAF), 0x67AF),
            (Instruction(Kind.ADD_CONST, x=0xC, kk=0x42), 0x7C42),
            (Instruction(Kind.ASSIGN, x=0x9, y=0x3), 0x8930),
            (Instruction(Kind.OR, x=0x5, y=0xF), 0x85F1),
            (Instruction(Kind.AND, x=0x5, y=0xF), 0x85F2),
            (Instruction(Kind.XOR, x=0x5, y=0xF), 0x85F3),
            (Instruction(Kind.ADD, x=0x6, y=0x0), 0x8604),
            (Instruction(Kind.SUB, x=0xA, y=0xB), 0x8AB5),
            (Instruction(Kind.SHIFT_RIGHT, x=0x9), 0x8906),
            (Instruction(Kind.SUBN, x=0xA, y=0xB), 0x8AB7),
            (Instruction(Kind.SHIFT_LEFT, x=0x9), 0x890E),
            (Instruction(Kind.SKIP_NE_REG, x=0xA, y=0xB), 0x9AB0),
            (Instruction(Kind.SET_INDEX, nnn=0x123), 0xA123),
            (Instruction(Kind.JUMP_V0, nnn=0x123), 0xB123),
            (Instruction(Kind.RANDOM, x=0xA, kk=0xB4), 0xCAB4),
            (Instruction(Kind.DRAW, x=0xA, y=0xB, n=9), 0xDAB9),
            (Instruction(Kind.SKIP_KEY, x=0x5), 0xE59E),
            (Instruction(Kind.SKIP_NOT_KEY, x=0x5), 0xE5A1),
            (Instruction(Kind.LOAD_DELAY, x=0x5), 0xF507),
            (Instruction(Kind.AWAIT_KEY, x=0x5), 0xF50A),
            (Instruction(Kind.SET_DELAY, x=0x3), 0xF315),
            (Instruction(Kind.SET_SOUND, x=0x3), 0xF318),
            (Instruction(Kind.ADD_INDEX, x=0x5), 0xF51E),
            (Instruction(Kind.LOAD_FONT, x=0x5), 0xF529),
            (Instruction(Kind.STORE_BCD, x=0x7), 0xF733),
            (Instruction(Kind.STORE_REGISTERS, x=0x7), 0xF755),
            (Instruction(Kind.LOAD_REGISTERS, x=0x7), 0xF765),
        ]
        self.assertEqual(len(cases), 34)
        for instruction, opcode in cases:
            with self.subTest(instruction=instruction):
                self.assertEqual(encode(instruction), opcode)
                self.assertEqual(decode(opcode), instruction)

    def test_unknown_encodes_raw_word(self):
        self.assertEqual(encode(Instruction(Kind.UNKNOWN, opcode=0x5AB1)), 0x5AB1)

    def test_operand_out_of_range(self):
        with self.assertRaises(ValueError):
            encode(Instruction(Kind.LOAD_CONST, x=0x10, kk=1))
        with self.assertRaises(ValueError):
            encode(Instruction(Kind.JUMP, nnn=0x1000))
        with self.assertRaises(ValueError):
            encode(Instruction(Kind.DRAW, x=1, y=2, n=-1))


class TestDecode(unittest.TestCase):
    """opcode -> Instruction"""

    def test_round_trip_per_family(self):
        registers = [0x0, 0x3, 0xA, 0xF]
        bytes_ = [0x00, 0x01, 0x7F, 0xFF]
        addresses = [0x000, 0x200, 0xABC, 0xFFF]
        for kind in Kind:
            if kind is Kind.UNKNOWN:
                continue
            for x in registers:
                for y in registers:
                    for i in range(4):
                        ins = self._build(kind, x, y, i, bytes_[i], addresses[i])
                        with self.subTest(instruction=ins):
                            self.assertEqual(decode(encode(ins)), ins)

    @staticmethod
    def _build(kind, x, y, n, kk, nnn):
        opcode_shape = {
            Kind.CLEAR_DISPLAY: {}, Kind.RETURN: {},
            Kind.JUMP: {"nnn": nnn}, Kind.CALL: {"nnn": nnn},
            Kind.SET_INDEX: {"nnn": nnn}, Kind.JUMP_V0: {"nnn": nnn},
            Kind.SKIP_EQ_CONST: {"x": x, "kk": kk}, Kind.SKIP_NE_CONST: {"x": x, "kk": kk},
            Kind.LOAD_CONST: {"x": x, "kk": kk}, Kind.ADD_CONST: {"x": x, "kk": kk},
            Kind.RANDOM: {"x": x, "kk": kk},
            Kind.DRAW: {"x": x, "y": y, "n": n},
        }
        if kind in opcode_shape:
            return Instruction(kind, **opcode_shape[kind])
        if kind in (Kind.SKIP_EQ_REG, Kind.SKIP_NE_REG, Kind.ASSIGN, Kind.OR, Kind.AND,
                    Kind.XOR, Kind.ADD, Kind.SUB, Kind.SUBN):
            return Instruction(kind, x=x, y=y)
        return Instruction(kind, x=x)

    def test_every_opcode_decodes(self):
        for opcode in range(0x10000):
            ins = decode(opcode)
            if ins.kind in (Kind.SHIFT_RIGHT, Kind.SHIFT_LEFT):
                # the y nibble carries no meaning for shifts
                self.assertEqual(encode(ins), opcode & 0xFF0F)
            else:
                self.assertEqual(encode(ins), opcode)

    def test_unknown_opcodes(self):
        for opcode in (0x0000, 0x0123, 0x00E1, 0x5AB1, 0x800F, 0x8AB8, 0x9AB1,
                       0xE000, 0xE59F, 0xF000, 0xF0FF, 0xF566):
            with self.subTest(opcode=hex(opcode)):
                self.assertEqual(decode(opcode), Instruction(Kind.UNKNOWN, opcode=opcode))

    def test_shift_ignores_y(self):
        self.assertEqual(decode(0x8AB6), Instruction(Kind.SHIFT_RIGHT, x=0xA))
        self.assertEqual(decode(0x8ABE), Instruction(Kind.SHIFT_LEFT, x=0xA))

    def test_alu_family_split_on_last_nibble(self):
        kinds = {0x0: Kind.ASSIGN, 0x1: Kind.OR, 0x2: Kind.AND, 0x3: Kind.XOR,
                 0x4: Kind.ADD, 0x5: Kind.SUB, 0x6: Kind.SHIFT_RIGHT,
                 0x7: Kind.SUBN, 0xE: Kind.SHIFT_LEFT}
        for last in range(16):
            with self.subTest(last=last):
                self.assertIs(decode(0x8120 | last).kind, kinds.get(last, Kind.UNKNOWN))

    def test_decode_is_pure(self):
        self.assertIs(decode(0xD125), decode(0xD125))
        self.assertEqual(decode(0xD125), Instruction(Kind.DRAW, x=1, y=2, n=5))


class TestDisassemble(unittest.TestCase):

    def test_mnemonics(self):
        self.assertEqual(disassemble(decode(0x00E0)), "CLS")
        self.assertEqual(disassemble(decode(0x1228)), "JP 0x228")
        self.assertEqual(disassemble(decode(0x6A0F)), "LD VA, 0x0F")
        self.assertEqual(disassemble(decode(0xD235)), "DRW V2, V3, 5")
        self.assertEqual(disassemble(decode(0xF30A)), "LD V3, K")
        self.assertEqual(disassemble(decode(0xF255)), "LD [I], V2")
        self.assertEqual(disassemble(decode(0x0123)), "DW 0x0123")

    def test_every_kind_has_a_mnemonic(self):
        for kind in Kind:
            self.assertIsInstance(disassemble(Instruction(kind)), str)


if __name__ == "__main__":
    unittest.main()
