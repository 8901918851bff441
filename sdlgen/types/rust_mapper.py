"""
C type and expression to Rust code mapper.

Handles pointers, arrays, function pointers, casts and constant
expressions. Anything the mapper doesn't know how to render is a generator
bug and raises EmitError.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional

from ..errors import EmitError
from ..parser.expr import BinaryOp, Cast, FnCall, Parenthesized, SizeOf, UnaryOp, strip_parens
from ..parser.ident import Ident
from ..parser.literal import CharLiteral, FloatLiteral, IntegerLiteral, StringLiteral
from ..parser.primitive import PrimitiveType
from ..parser.types import (
    ArrayType,
    CType,
    FnPointerType,
    InlineAggregate,
    NamedType,
    PointerType,
    PrimitiveTypeRef,
    TaggedType,
)
from .registry import PRIMITIVE_TYPES, TypeKind, TypeRegistry


RUST_KEYWORDS = frozenset({
    "abstract", "as", "async", "await", "become", "box", "break", "const",
    "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
    "final", "fn", "for", "gen", "if", "impl", "in", "let", "loop", "macro",
    "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
    "return", "static", "struct", "super", "trait", "true", "try", "type",
    "typeof", "unsafe", "unsized", "use", "virtual", "where", "while",
    "yield",
})

# `self` and friends can't be raw identifiers
_RENAMED = {"self": "self_", "Self": "Self_", "super": "super_", "crate": "crate_"}

BOOL_TYPE = PRIMITIVE_TYPES[PrimitiveType.BOOL]
STRING_PTR_TYPE = "*const ::core::ffi::c_char"
CSTR_TYPE = "&::core::ffi::CStr"

_COMPARISON_OPS = frozenset({"==", "!=", "<", "<=", ">", ">=", "&&", "||"})

# Integer constant macros expanded to a typed literal instead of a call
INTEGER_CONSTANT_MACROS = {
    "SDL_SINT64_C": PrimitiveType.INT64_T,
    "SDL_UINT64_C": PrimitiveType.UINT64_T,
}


def rust_ident(name: str) -> str:
    """Escape Rust keywords (``type`` -> ``r#type``)."""
    if name in _RENAMED:
        return _RENAMED[name]
    if name in RUST_KEYWORDS:
        return f"r#{name}"
    return name


def _c_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


class RustMapper:
    """
    Maps parsed C types and expressions to Rust source strings.

    Handles:
    - Primitive types (int -> ::core::ffi::c_int)
    - Pointers (const char * -> *const ::core::ffi::c_char)
    - Fixed-size arrays ([T; N])
    - Function pointers (Option<unsafe extern "C" fn(...)>)
    - Constant expressions and their types
    """

    def __init__(self, registry: TypeRegistry, module: str = "", functions: Optional[dict[str, str]] = None):
        """
        Initialize the mapper.

        Args:
            registry: Type registry for named type lookups
            module: Module being emitted (for error messages)
            functions: Macros emitted as ``const fn`` -> return type,
                shared between the modules of a run
        """
        self.registry = registry
        self.module = module
        # constant name -> rust type, for constants already emitted
        self.constants: dict[str, str] = {}
        self.functions: dict[str, str] = functions if functions is not None else {}

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def map_type(self, ty: CType, decl: Optional[str] = None) -> str:
        """
        Map a C type to a Rust type.

        Args:
            ty: Parsed C type
            decl: Declaration the type belongs to (for error messages)

        Returns:
            Rust type expression (e.g., "*mut SDL_Window")
        """
        if isinstance(ty, PrimitiveTypeRef):
            rust = PRIMITIVE_TYPES.get(ty.primitive)
            if rust is None:
                raise EmitError(self.module, decl, f"no Rust type for `{ty.primitive.value}`")
            return rust
        if isinstance(ty, (NamedType, TaggedType)):
            return self.registry.rust_name(ty.name)
        if isinstance(ty, PointerType):
            mutability = "*const" if ty.pointee.is_const else "*mut"
            return f"{mutability} {self.map_type(ty.pointee, decl)}"
        if isinstance(ty, ArrayType):
            return f"[{self.map_type(ty.element, decl)}; {self._array_length(ty, decl)}]"
        if isinstance(ty, FnPointerType):
            return f"::core::option::Option<{self.fn_signature(ty, decl)}>"
        if isinstance(ty, InlineAggregate):
            raise EmitError(self.module, decl, "inline aggregate reached the type mapper")
        raise EmitError(self.module, decl, f"unknown type node {type(ty).__name__}")

    def _array_length(self, ty: ArrayType, decl: Optional[str]) -> str:
        if ty.length is None:
            return "0"
        value = self.evaluate(ty.length)
        if value is not None:
            return str(value)
        return f"{self.expr(ty.length, decl)} as usize"

    def is_newtype(self, ty: CType) -> bool:
        """Check if a type is emitted as a ``#[repr(transparent)]`` newtype."""
        if not isinstance(ty, (NamedType, TaggedType)):
            return False
        info = self.registry.lookup(ty.name)
        return info is not None and info.kind is TypeKind.ENUM

    def fn_signature(self, ty: FnPointerType, decl: Optional[str] = None) -> str:
        """``unsafe extern "C" fn(a: T, ...) -> R``"""
        params = self.fn_params(ty.args, decl)
        return f'unsafe extern "C" fn({params}){self.return_type(ty.return_type, decl)}'

    def fn_params(self, args, decl: Optional[str] = None) -> str:
        params = []
        for i, arg in enumerate(args):
            name = rust_ident(arg.ident.name) if arg.ident is not None else f"arg{i}"
            params.append(f"{name}: {self.map_type(arg.ty, decl)}")
        if args.variadic:
            params.append("...")
        return ", ".join(params)

    def return_type(self, ty: CType, decl: Optional[str] = None) -> str:
        """`` -> T``, or nothing for ``void``."""
        if ty.is_void:
            return ""
        return f" -> {self.map_type(ty, decl)}"

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def expr(
        self,
        expr,
        decl: Optional[str] = None,
        rename: Optional[Callable[[str], Optional[str]]] = None,
    ) -> str:
        """
        Render a C constant expression as Rust.

        Args:
            expr: Parsed expression
            decl: Declaration the expression belongs to (for error messages)
            rename: Optional hook mapping identifiers to replacement code

        Raises:
            EmitError: For expression nodes with no Rust rendering
        """
        def render(e) -> str:
            if isinstance(e, IntegerLiteral):
                if e.base == 16:
                    return f"0x{e.digits}"
                if e.base == 8:
                    return f"0o{e.digits}"
                return e.digits
            if isinstance(e, FloatLiteral):
                text = e.span.text.replace("'", "").rstrip("fFlL")
                return text if any(c in text for c in ".eE") else f"{text}.0"
            if isinstance(e, CharLiteral):
                return f"({e.value} as {PRIMITIVE_TYPES[PrimitiveType.CHAR]})"
            if isinstance(e, StringLiteral):
                return f'c"{e.value}"'
            if isinstance(e, Ident):
                if e.name in ("true", "false"):
                    return e.name
                if e.name == "NULL":
                    return "::core::ptr::null_mut()"
                if rename is not None:
                    replaced = rename(e.name)
                    if replaced is not None:
                        return replaced
                return rust_ident(e.name)
            if isinstance(e, FnCall):
                if e.ident.name in INTEGER_CONSTANT_MACROS and len(e.args) == 1:
                    return self._integer_constant(e, render)
                args = ", ".join(render(a) for a in e.args)
                return f"{rust_ident(e.ident.name)}({args})"
            if isinstance(e, Cast):
                if self.is_newtype(e.ty):
                    # enums are newtype structs, so `as` doesn't apply
                    return f"{self.map_type(e.ty, decl)}({render(e.expr)})"
                return f"({render(e.expr)} as {self.map_type(e.ty, decl)})"
            if isinstance(e, SizeOf):
                if isinstance(e.operand, CType):
                    return f"::core::mem::size_of::<{self.map_type(e.operand, decl)}>()"
                return f"::core::mem::size_of_val(&{render(e.operand)})"
            if isinstance(e, Parenthesized):
                return f"({render(e.inner)})"
            if isinstance(e, UnaryOp):
                operand = render(e.operand)
                if isinstance(e.operand, BinaryOp):
                    operand = f"({operand})"
                if e.op == "+":
                    return operand
                return f"{'!' if e.op == '~' else e.op}{operand}"
            if isinstance(e, BinaryOp):
                # C and Rust disagree on operator precedence; nested
                # binary operands are always parenthesised
                lhs = render(e.lhs)
                rhs = render(e.rhs)
                if isinstance(e.lhs, BinaryOp):
                    lhs = f"({lhs})"
                if isinstance(e.rhs, BinaryOp):
                    rhs = f"({rhs})"
                return f"{lhs} {e.op} {rhs}"
            raise EmitError(self.module, decl, f"can't render expression node {type(e).__name__}")

        return render(expr)

    @staticmethod
    def _integer_constant(call: FnCall, render: Callable) -> str:
        """``SDL_UINT64_C(1)`` -> ``1_u64``"""
        rust = PRIMITIVE_TYPES[INTEGER_CONSTANT_MACROS[call.ident.name]]
        arg = strip_parens(call.args.args[0])
        if isinstance(arg, IntegerLiteral):
            return f"{render(arg)}_{rust.rsplit('::', 1)[1]}"
        return f"({render(arg)} as {rust})"

    def infer_type(self, expr, scope: Optional[dict[str, str]] = None) -> Optional[str]:
        """
        Rust type of a constant expression, or None if it can't be known.

        Casts give their target type, literals their inferred C type,
        identifiers the type from ``scope`` or of an already emitted
        constant, and calls the return type of an emitted macro.
        """
        scope = scope or {}
        if isinstance(expr, Cast):
            return self.map_type(expr.ty)
        if isinstance(expr, (IntegerLiteral, FloatLiteral, CharLiteral)):
            return PRIMITIVE_TYPES.get(expr.primitive_type)
        if isinstance(expr, Ident):
            if expr.name in ("true", "false"):
                return BOOL_TYPE
            if expr.name in scope:
                return scope[expr.name]
            return self.constants.get(expr.name)
        if isinstance(expr, FnCall):
            name = expr.ident.name
            if name in INTEGER_CONSTANT_MACROS:
                return PRIMITIVE_TYPES[INTEGER_CONSTANT_MACROS[name]]
            return self.functions.get(name)
        if isinstance(expr, Parenthesized):
            return self.infer_type(expr.inner, scope)
        if isinstance(expr, SizeOf):
            return PRIMITIVE_TYPES[PrimitiveType.SIZE_T]
        if isinstance(expr, UnaryOp):
            return self.infer_type(expr.operand, scope)
        if isinstance(expr, BinaryOp):
            if expr.op in _COMPARISON_OPS:
                return BOOL_TYPE
            lhs = self.infer_type(expr.lhs, scope)
            if expr.op in ("<<", ">>"):
                return lhs
            rhs = self.infer_type(expr.rhs, scope)
            if lhs == rhs:
                return lhs
            if _is_literal(expr.lhs):
                return rhs
            if _is_literal(expr.rhs):
                return lhs
            return None
        return None

    def infer_params(self, expr, names: list[str], scope: Optional[dict[str, str]] = None) -> dict[str, str]:
        """
        Types for macro parameters from how the body uses them.

        A parameter that is an operand of an arithmetic, bitwise or
        comparison operator takes the type of the other operand. This is
        repeated until no more parameters get a type.

        Args:
            expr: Macro body
            names: Parameters without a type
            scope: Parameters whose type is already known

        Returns:
            The parameters a type was found for
        """
        scope = dict(scope or {})
        pending = set(names)
        pairs = []
        for node in iter_expr(expr):
            if isinstance(node, BinaryOp) and node.op not in ("&&", "||", "<<", ">>"):
                pairs.append((node.lhs, node.rhs))
                pairs.append((node.rhs, node.lhs))

        changed = True
        while pending and changed:
            changed = False
            for operand, other in pairs:
                param = strip_parens(operand)
                if not isinstance(param, Ident) or param.name not in pending:
                    continue
                ty = self.infer_type(other, scope)
                if ty is not None and ty != BOOL_TYPE:
                    scope[param.name] = ty
                    pending.discard(param.name)
                    changed = True
        return {name: scope[name] for name in names if name in scope}

    def unknown_calls(self, expr) -> list[str]:
        """Names of called macros that have no Rust counterpart."""
        missing = []
        for node in iter_expr(expr):
            if not isinstance(node, FnCall):
                continue
            name = node.ident.name
            if name not in INTEGER_CONSTANT_MACROS and name not in self.functions and name not in missing:
                missing.append(name)
        return missing

    def evaluate(self, expr, env: Optional[dict[str, int]] = None) -> Optional[int]:
        """
        Evaluate an integer constant expression.

        Returns None when the expression refers to anything not in ``env``
        or isn't an integer expression.
        """
        env = env or {}

        def ev(e) -> Optional[int]:
            if isinstance(e, (IntegerLiteral, CharLiteral)):
                return e.value
            if isinstance(e, Ident):
                return env.get(e.name)
            if isinstance(e, Parenthesized):
                return ev(e.inner)
            if isinstance(e, FnCall):
                prim = INTEGER_CONSTANT_MACROS.get(e.ident.name)
                if prim is None or len(e.args) != 1:
                    return None
                v = ev(e.args.args[0])
                if v is None:
                    return None
                return v & 0xFFFF_FFFF_FFFF_FFFF if prim is PrimitiveType.UINT64_T else v
            if isinstance(e, Cast):
                if isinstance(e.ty, PrimitiveTypeRef) and e.ty.primitive.is_integer:
                    return ev(e.expr)
                if isinstance(e.ty, NamedType) and self.registry.primitive_of(e.ty.name) is not None:
                    return ev(e.expr)
                return None
            if isinstance(e, UnaryOp):
                v = ev(e.operand)
                if v is None:
                    return None
                return {"-": -v, "+": v, "~": ~v, "!": int(not v)}[e.op]
            if isinstance(e, BinaryOp):
                a = ev(e.lhs)
                b = ev(e.rhs)
                if a is None or b is None:
                    return None
                return _binary(e.op, a, b)
            return None

        return ev(expr)


def iter_expr(expr) -> Iterator:
    """Every node of an expression, outermost first."""
    yield expr
    if isinstance(expr, Cast):
        yield from iter_expr(expr.expr)
    elif isinstance(expr, SizeOf):
        if not isinstance(expr.operand, CType):
            yield from iter_expr(expr.operand)
    elif isinstance(expr, Parenthesized):
        yield from iter_expr(expr.inner)
    elif isinstance(expr, UnaryOp):
        yield from iter_expr(expr.operand)
    elif isinstance(expr, BinaryOp):
        yield from iter_expr(expr.lhs)
        yield from iter_expr(expr.rhs)
    elif isinstance(expr, FnCall):
        for arg in expr.args:
            yield from iter_expr(arg)


def _is_literal(expr) -> bool:
    while isinstance(expr, (Parenthesized, UnaryOp)):
        expr = expr.inner if isinstance(expr, Parenthesized) else expr.operand
    return isinstance(expr, (IntegerLiteral, FloatLiteral, CharLiteral))


def _binary(op: str, a: int, b: int) -> Optional[int]:
    if op in ("/", "%"):
        if b == 0:
            return None
        q = _c_div(a, b)
        return q if op == "/" else a - q * b
    if op in ("<<", ">>"):
        if b < 0:
            return None
        return a << b if op == "<<" else a >> b
    table = {
        "+": lambda: a + b,
        "-": lambda: a - b,
        "*": lambda: a * b,
        "&": lambda: a & b,
        "|": lambda: a | b,
        "^": lambda: a ^ b,
        "==": lambda: int(a == b),
        "!=": lambda: int(a != b),
        "<": lambda: int(a < b),
        "<=": lambda: int(a <= b),
        ">": lambda: int(a > b),
        ">=": lambda: int(a >= b),
        "&&": lambda: int(bool(a) and bool(b)),
        "||": lambda: int(bool(a) or bool(b)),
    }
    fn = table.get(op)
    return fn() if fn is not None else None
