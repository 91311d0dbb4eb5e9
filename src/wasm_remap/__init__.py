"""wasm-remap: recover function names for stripped WebAssembly binaries.

Compares a stripped module against a build of the same program that still
carries a ``name`` section, matches functions structurally, and writes the
recovered names back into the stripped module.
"""

__version__ = "0.1.0"

from wasm_remap.binary_loader import (
    DataRegion as DataRegion,
)
from wasm_remap.binary_loader import (
    Function as Function,
)
from wasm_remap.binary_loader import (
    ModuleInfo as ModuleInfo,
)
from wasm_remap.binary_loader import (
    ValueType as ValueType,
)
from wasm_remap.binary_loader import (
    decode_module as decode_module,
)
from wasm_remap.errors import InvalidInputBinary as InvalidInputBinary
from wasm_remap.errors import InvalidOffsetInstruction as InvalidOffsetInstruction
from wasm_remap.errors import InvalidReferenceBinary as InvalidReferenceBinary
from wasm_remap.errors import MissingSection as MissingSection
from wasm_remap.errors import NameSectionEncodeError as NameSectionEncodeError
from wasm_remap.errors import ParseError as ParseError
from wasm_remap.errors import RemapperConfigError as RemapperConfigError
from wasm_remap.errors import RemapperError as RemapperError
from wasm_remap.errors import WasmDecodeError as WasmDecodeError
from wasm_remap.instructions import Instruction as Instruction
from wasm_remap.names import inject_names as inject_names
from wasm_remap.names import read_name_section as read_name_section
from wasm_remap.remapper import RemapOptions as RemapOptions
from wasm_remap.remapper import Remapper as Remapper
from wasm_remap.remapper import RemapperOutput as RemapperOutput
from wasm_remap.remapper import remap as remap
