"""
Mica Primitive Types
====================

Maps the type names that may appear in source to llvmlite IR types.

| Name | IR type | Notes                               |
|------|---------|-------------------------------------|
| void | void    | return types only                   |
| ptr  | i8*     | strings and opaque pointers         |
| bool | i1      | target of true/false literals       |
| i8   | i8      |                                     |
| i32  | i32     |                                     |
| i64  | i64     |                                     |
| i128 | i128    |                                     |
| f32  | float   |                                     |
| f64  | double  |                                     |

Any other name is rejected with "expected valid type".
"""

from typing import Optional

from llvmlite import ir

from mica.errors import UnexpectedTokenError
from mica.source import Span


VOID = ir.VoidType()
I1 = ir.IntType(1)
I8 = ir.IntType(8)
I32 = ir.IntType(32)
I64 = ir.IntType(64)
I128 = ir.IntType(128)
F32 = ir.FloatType()
F64 = ir.DoubleType()
PTR = I8.as_pointer()

PRIMITIVE_TYPES: dict[str, ir.Type] = {
    "void": VOID,
    "ptr": PTR,
    "bool": I1,
    "i8": I8,
    "i32": I32,
    "i64": I64,
    "i128": I128,
    "f32": F32,
    "f64": F64,
}


def resolve_type(name: str, span: Optional[Span] = None) -> ir.Type:
    """
    Look up a primitive type by name.

    Raises:
        UnexpectedTokenError: If ``name`` is not a known type
    """
    try:
        return PRIMITIVE_TYPES[name]
    except KeyError:
        raise UnexpectedTokenError("valid type", name, span) from None


def is_integer(ty: ir.Type) -> bool:
    return isinstance(ty, ir.IntType)


def is_float(ty: ir.Type) -> bool:
    return isinstance(ty, (ir.FloatType, ir.DoubleType))


def type_name(ty: ir.Type) -> str:
    """Source-level name of an IR type, falling back to its IR spelling."""
    for name, candidate in PRIMITIVE_TYPES.items():
        if candidate == ty:
            return name
    return str(ty)
