"""Exceptions raised by the CHIP-8 interpreter"""


class Chip8Error(Exception):
    """Base class for interpreter errors"""


class UnsupportedOpcodeError(Chip8Error):
    """Decode reached a word with no defined behaviour"""

    def __init__(self, opcode: int):
        self.opcode = opcode
        super().__init__(f"unsupported opcode ${opcode:04X}")


class StackOverflowError(Chip8Error):
    """CALL with every stack slot in use"""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"stack overflow calling ${address:03X}")


class StackUnderflowError(Chip8Error):
    """RET with an empty stack"""

    def __init__(self):
        super().__init__("stack underflow on return")


class MemoryAccessError(Chip8Error):
    """Read or write outside the 4K address space"""

    def __init__(self, address: int, length: int = 1):
        self.address = address
        self.length = length
        super().__init__(f"memory access out of range: ${address:04X} (+{length})")


class RomTooLargeError(Chip8Error):
    """Program image does not fit between the load address and top of memory"""

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"ROM is {size} bytes, only {capacity} bytes available")
