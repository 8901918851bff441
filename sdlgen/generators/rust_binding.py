"""
Rust FFI binding generator.

Generates one ``<module>.rs`` per header with:
- Constants for object-like defines
- Newtype structs for enums, with associated constants and aliases
- Type aliases, structs and unions
- ``unsafe extern "C"`` blocks for function prototypes

plus the top-level ``mod.rs`` that declares every module.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Optional

from ..config import GeneratorConfig
from ..errors import EmitError
from ..model.builder import find_common_ident_prefix, strip_common_ident_prefix
from ..model.conditions import render_cfg, walk_items
from ..model.doc import render_doc
from ..parser.decl import Enum, Function, StructOrUnion, VarDecl
from ..parser.expr import strip_parens
from ..parser.header import ParsedHeader
from ..parser.ident import Ident
from ..parser.items import Block, ExprStmt, FileDoc, MacroCall
from ..parser.literal import IntegerLiteral, StringLiteral
from ..parser.preproc import Define, ExprValue, Include
from ..parser.primitive import PrimitiveType
from ..parser.types import (
    ArrayType,
    CType,
    InlineAggregate,
    NamedType,
    PointerType,
    PrimitiveTypeRef,
    TaggedType,
    TypeDef,
)
from ..types.registry import TypeInfo, TypeKind, TypeRegistry
from ..types.rust_mapper import CSTR_TYPE, STRING_PTR_TYPE, RustMapper, rust_ident
from .base import GeneratedFile, Generator, doc_lines

logger = logging.getLogger("sdlgen.emit")


MODULE_LINTS = (
    "non_camel_case_types",
    "non_upper_case_globals",
    "unused_imports",
    "clippy::approx_constant",
    "clippy::double_parens",
)

TOP_LEVEL_LINTS = (
    "clippy::approx_constant",
    "clippy::double_parens",
    "clippy::too_long_first_doc_paragraph",
    "clippy::unnecessary_cast",
    "non_camel_case_types",
    "non_snake_case",
    "non_upper_case_globals",
    "unused_imports",
    "unused_parens",
    "unused_unsafe",
    "unused_variables",
)

ENUM_DERIVES = "#[derive(Clone, Copy, Default, PartialEq, Eq, PartialOrd, Ord, Hash, Debug)]"
STRUCT_DERIVES = "#[derive(Clone, Copy)]"


def register_header(registry: TypeRegistry, header: ParsedHeader) -> None:
    """Register every named type a header declares."""
    module = header.module

    def register_enum(name: str, enum: Enum) -> None:
        prim = enum.base_type.primitive if isinstance(enum.base_type, PrimitiveTypeRef) else None
        registry.register_type(TypeInfo(name, name, TypeKind.ENUM, module, enum.base_type, prim))

    def register_struct(name: Optional[str], decl: StructOrUnion) -> None:
        if not name:
            return
        kind = TypeKind.STRUCT if decl.has_body else TypeKind.OPAQUE
        registry.register_type(TypeInfo(name, name, kind, module))

    for item, _ in walk_items(header.items):
        if isinstance(item, TypeDef):
            ty = item.ty
            if isinstance(ty, InlineAggregate):
                if isinstance(ty.decl, Enum):
                    register_enum(item.name, ty.decl)
                    if ty.decl.ident is not None:
                        register_enum(ty.decl.ident.name, ty.decl)
                else:
                    register_struct(item.name, ty.decl)
                    register_struct(ty.decl.name, ty.decl)
            elif isinstance(ty, TaggedType) and ty.tag != "enum":
                # completed later if a definition of the tag shows up
                registry.register_type(TypeInfo(ty.name, ty.name, TypeKind.OPAQUE, module))
                if item.name != ty.name:
                    registry.register_type(TypeInfo(item.name, item.name, TypeKind.TYPEDEF, module, ty))
            else:
                kind = TypeKind.GROUP if item.group_kind is not None else TypeKind.TYPEDEF
                registry.register_type(TypeInfo(item.name, item.name, kind, module, ty))
        elif isinstance(item, Enum) and item.ident is not None:
            register_enum(item.ident.name, item)
        elif isinstance(item, StructOrUnion):
            register_struct(item.name, item)


def _replace_inline(ty: CType, name: str) -> CType:
    """Swap an inline aggregate (possibly under pointers/arrays) for a name."""
    if isinstance(ty, InlineAggregate):
        return NamedType(ty.span, Ident.synthetic(name), ty.is_const)
    if isinstance(ty, PointerType):
        return dataclasses.replace(ty, pointee=_replace_inline(ty.pointee, name))
    if isinstance(ty, ArrayType):
        return dataclasses.replace(ty, element=_replace_inline(ty.element, name))
    return ty


def _find_inline(ty: CType) -> Optional[InlineAggregate]:
    while isinstance(ty, (PointerType, ArrayType)):
        ty = ty.pointee if isinstance(ty, PointerType) else ty.element
    return ty if isinstance(ty, InlineAggregate) else None


# =============================================================================
# Module emission
# =============================================================================

class ModuleEmitter:
    """Emits the items of one module in source order."""

    def __init__(self, generator: "RustBindingGenerator", header: ParsedHeader):
        self.generator = generator
        self.header = header
        self.module = header.module
        self.registry = generator.registry
        self.mapper = RustMapper(generator.registry, header.module, generator.const_fns)
        self.int_values: dict[str, int] = {}
        # (name, cfg) of every type emitted so far
        self.emitted_types: set[tuple[str, tuple]] = set()
        self.cfg: tuple = ()
        self.blocks: list[str] = []

    def render(self, doc) -> Optional[str]:
        return render_doc(doc.text if doc is not None else None, self.generator.sym_prefix)

    def emit(self) -> list[str]:
        for item, cfg in walk_items(self.header.items):
            self.cfg = cfg
            attrs = []
            cfg_text = render_cfg(cfg)
            if cfg_text is not None:
                attrs.append(f"#[cfg({cfg_text})]")
            for block in self.emit_item(item):
                self.blocks.append("\n".join(_with_attrs(attrs, block)))
        return self.blocks

    def emit_item(self, item) -> list[list[str]]:
        """Code blocks for one item (each a list of lines)."""
        if isinstance(item, Define):
            return self.emit_define(item)
        if isinstance(item, TypeDef):
            return self.emit_typedef(item)
        if isinstance(item, Enum):
            if item.ident is None:
                return self.emit_anonymous_enum(item)
            return self.emit_enum(item.ident.name, item, item.doc)
        if isinstance(item, StructOrUnion):
            return self.emit_struct(item.name, item, item.doc)
        if isinstance(item, Function):
            return self.emit_function(item)
        if isinstance(item, VarDecl):
            return self.emit_var(item)
        if isinstance(item, (FileDoc, Include)):
            return []
        if isinstance(item, (Block, ExprStmt, MacroCall)):
            logger.debug(f"{self.module}: skipping {type(item).__name__} at line {item.span.line_col()[0]}")
            return []
        logger.debug(f"{self.module}: not emitting {type(item).__name__}")
        return []

    # -------------------------------------------------------------------------
    # Defines
    # -------------------------------------------------------------------------

    def emit_define(self, define: Define) -> list[list[str]]:
        name = define.name
        if not isinstance(define.value, ExprValue):
            logger.debug(f"{self.module}: skipping define `{name}` ({type(define.value).__name__})")
            return []
        if define.is_function_like:
            return self.emit_macro_fn(define)

        expr = define.value.expr
        missing = self.mapper.unknown_calls(expr)
        if missing:
            logger.debug(f"{self.module}: skipping define `{name}`: calls `{missing[0]}`, which has no Rust counterpart")
            return []
        lines = doc_lines(self.render(define.doc))
        if isinstance(expr, StringLiteral):
            if name.startswith(self.generator.hint_prefix):
                lines.append(f'pub const {rust_ident(name)}: {STRING_PTR_TYPE} = c"{expr.value}".as_ptr();')
            else:
                lines.append(f'pub const {rust_ident(name)}: {CSTR_TYPE} = c"{expr.value}";')
            return [lines]

        ty = self.mapper.infer_type(expr)
        if ty is None:
            logger.debug(f"{self.module}: skipping define `{name}`: can't infer its type")
            return []
        value = self.mapper.expr(expr, name)
        self.mapper.constants[name] = ty
        evaluated = self.mapper.evaluate(expr, self.int_values)
        if evaluated is not None:
            self.int_values[name] = evaluated
        lines.append(f"pub const {rust_ident(name)}: {ty} = {value};")
        return [lines]

    def emit_macro_fn(self, define: Define) -> list[list[str]]:
        """A function-like macro with an expression body becomes a ``const fn``."""
        name = define.name
        expr = define.value.expr
        missing = self.mapper.unknown_calls(expr)
        if missing:
            logger.debug(f"{self.module}: skipping macro `{name}`: calls `{missing[0]}`, which has no Rust counterpart")
            return []
        params = self._macro_params(define)
        if params is None:
            logger.debug(f"{self.module}: skipping macro `{name}`: can't infer its parameter types")
            return []
        ret = self.mapper.infer_type(expr, params)
        if ret is None:
            logger.debug(f"{self.module}: skipping macro `{name}`: can't infer its return type")
            return []

        self.mapper.functions[name] = ret
        args = ", ".join(f"{rust_ident(p)}: {ty}" for p, ty in params.items())
        lines = doc_lines(self.render(define.doc))
        lines.append("#[inline(always)]")
        lines.append(f"pub const fn {rust_ident(name)}({args}) -> {ret} {{")
        lines.append(f"    {self.mapper.expr(expr, name)}")
        lines.append("}")
        return [lines]

    def _macro_params(self, define: Define) -> Optional[dict[str, str]]:
        """Rust type of each macro parameter, in order, or None if any is unknown."""
        names = [arg.name for arg in define.args]
        if "..." in names or len(set(names)) != len(names):
            return None
        known = {
            p: self.mapper.map_type(ty, define.name)
            for p, ty in zip(names, define.arg_types)
            if ty is not None
        }
        untyped = [p for p in names if p not in known]
        if untyped:
            known.update(self.mapper.infer_params(define.value.expr, untyped, known))
        if any(p not in known for p in names):
            return None
        return {p: known[p] for p in names}

    def _enum_rename(self, variants: dict[str, str]):
        """Identifier hook for code inside ``Self(...)``."""
        def rename(name: str) -> Optional[str]:
            if name in variants:
                return f"Self::{variants[name]}.0"
            ty = self.mapper.constants.get(name)
            info = self.registry.lookup(ty) if ty is not None else None
            if info is not None and info.kind is TypeKind.ENUM:
                return f"{rust_ident(name)}.0"
            return None

        return rename

    # -------------------------------------------------------------------------
    # Enums
    # -------------------------------------------------------------------------

    def _base_primitive(self, enum: Enum) -> Optional[PrimitiveType]:
        base = enum.base_type
        if isinstance(base, PrimitiveTypeRef):
            return base.primitive
        if isinstance(base, NamedType):
            return self.registry.primitive_of(base.name)
        return None

    def _enum_values(self, enum: Enum, variants: dict[str, str]) -> list[str]:
        """Rust code for each variant value (inside ``Self(...)`` when named)."""
        prim = self._base_primitive(enum)
        value_range = prim.range if prim is not None else None
        rename = self._enum_rename(variants) if variants else None

        values = []
        prev_value: Optional[int] = None
        prev_ref: Optional[str] = None
        for variant in enum.variants:
            if variant.value is None:
                if prev_ref is None:
                    value: Optional[int] = 0
                elif prev_value is not None:
                    value = prev_value + 1
                else:
                    value = None
                code = str(value) if value is not None else f"{prev_ref} + 1"
            else:
                value = self.mapper.evaluate(variant.value, self.int_values)
                in_range = value is not None and (
                    value_range is None or value_range[0] <= value <= value_range[1]
                )
                literal = strip_parens(variant.value)
                if in_range and isinstance(literal, IntegerLiteral):
                    code = self.mapper.expr(literal, variant.name)
                elif in_range:
                    code = str(value)
                else:
                    value = None
                    code = self.mapper.expr(variant.value, variant.name, rename)
            if value is not None:
                self.int_values[variant.name] = value
            values.append(code)
            prev_value = value
            prev_ref = f"Self::{variants[variant.name]}.0" if variants else rust_ident(variant.name)
        return values

    def emit_enum(self, name: str, enum: Enum, doc) -> list[list[str]]:
        if enum.hidden:
            logger.debug(f"{self.module}: skipping hidden enum `{name}`")
            return []
        if (name, self.cfg) in self.emitted_types:
            return []
        self.emitted_types.add((name, self.cfg))

        prefix = find_common_ident_prefix(name, (v.name for v in enum.variants))
        variants = {}
        for v in enum.variants:
            short = strip_common_ident_prefix(v.name, prefix)
            if not short:
                raise EmitError(self.module, v.name, "group value without a short name")
            variants[v.name] = rust_ident(short)
        values = self._enum_values(enum, variants)
        base = self.mapper.map_type(enum.base_type, name)

        lines = doc_lines(self.render(doc))
        lines.append("#[repr(transparent)]")
        lines.append(ENUM_DERIVES)
        lines.append(f"pub struct {name}(pub {base});")
        lines.append("")
        lines.append(f"impl {name} {{")
        for variant, value in zip(enum.variants, values):
            lines.extend("    " + line for line in doc_lines(self.render(variant.doc)))
            lines.append(f"    pub const {variants[variant.name]}: Self = Self({value});")
        lines.append("}")
        blocks = [lines]

        if name.endswith("Flags"):
            blocks.append(_flag_ops(name))

        aliases = []
        for variant in enum.variants:
            aliases.extend(doc_lines(self.render(variant.doc)))
            aliases.append(f"pub const {variant.name}: {name} = {name}::{variants[variant.name]};")
            self.mapper.constants[variant.name] = name
        if aliases:
            blocks.append(aliases)
        return blocks

    def emit_anonymous_enum(self, enum: Enum) -> list[list[str]]:
        base = self.mapper.map_type(enum.base_type)
        values = self._enum_values(enum, {})
        lines = []
        for variant, value in zip(enum.variants, values):
            lines.extend(doc_lines(self.render(variant.doc)))
            lines.append(f"pub const {variant.name}: {base} = {value};")
            self.mapper.constants[variant.name] = base
        return [lines] if lines else []

    # -------------------------------------------------------------------------
    # Typedefs
    # -------------------------------------------------------------------------

    def emit_typedef(self, td: TypeDef) -> list[list[str]]:
        ty = td.ty
        name = td.name
        if isinstance(ty, InlineAggregate):
            decl = ty.decl
            decl_name = decl.ident.name if decl.ident is not None else name
            if isinstance(decl, Enum):
                blocks = self.emit_enum(decl_name, decl, td.doc or decl.doc)
            else:
                blocks = self.emit_struct(decl_name, decl, td.doc or decl.doc)
            if decl_name != name:
                blocks.append([f"pub type {name} = {decl_name};"])
            return blocks

        if isinstance(ty, TaggedType):
            if ty.name == name:
                if ty.tag != "enum" and self.registry.is_opaque(name):
                    return self.emit_opaque(name, td.doc)
                # defined under the same name elsewhere
                return []
            blocks = []
            if ty.tag != "enum" and self.registry.is_opaque(ty.name):
                blocks.extend(self.emit_opaque(ty.name, None))
            blocks.append(doc_lines(self.render(td.doc)) + [f"pub type {name} = {ty.name};"])
            return blocks

        lines = doc_lines(self.render(td.doc))
        lines.append(f"pub type {name} = {self.mapper.map_type(ty, name)};")
        return [lines]

    def emit_opaque(self, name: str, doc) -> list[list[str]]:
        if (name, self.cfg) in self.emitted_types:
            return []
        self.emitted_types.add((name, self.cfg))
        lines = doc_lines(self.render(doc))
        lines.append("#[repr(C)]")
        lines.append(f"pub struct {name} {{")
        lines.append("    _opaque: [::core::primitive::u8; 0],")
        lines.append("}")
        return [lines]

    # -------------------------------------------------------------------------
    # Structs and unions
    # -------------------------------------------------------------------------

    def emit_struct(self, name: Optional[str], decl: StructOrUnion, doc) -> list[list[str]]:
        if name is None:
            logger.debug(f"{self.module}: skipping anonymous {decl.kind}")
            return []
        if not decl.has_body:
            if self.registry.is_opaque(name):
                return self.emit_opaque(name, doc)
            return []
        if (name, self.cfg) in self.emitted_types:
            return []
        self.emitted_types.add((name, self.cfg))

        blocks: list[list[str]] = []
        lines = doc_lines(self.render(doc))
        lines.append("#[repr(C)]")
        lines.append(STRUCT_DERIVES)
        lines.append(f"pub {decl.kind} {name} {{")
        anon = 0
        for f in decl.fields:
            ty = f.ty
            inline = _find_inline(ty)
            if inline is not None:
                anon += 1
                helper = f"{name}__Anon{anon}"
                if isinstance(inline.decl, Enum):
                    blocks.extend(self.emit_enum(helper, inline.decl, inline.decl.doc))
                else:
                    blocks.extend(self.emit_struct(helper, inline.decl, inline.decl.doc))
                ty = _replace_inline(ty, helper)
            lines.extend("    " + line for line in doc_lines(self.render(f.doc)))
            lines.append(f"    pub {rust_ident(f.name)}: {self.mapper.map_type(ty, f'{name}.{f.name}')},")
        lines.append("}")
        blocks.append(lines)
        return blocks

    # -------------------------------------------------------------------------
    # Functions and variables
    # -------------------------------------------------------------------------

    def emit_function(self, fn: Function) -> list[list[str]]:
        if fn.is_inline:
            logger.debug(f"{self.module}: skipping inline function `{fn.name}`")
            return []
        params = self.mapper.fn_params(fn.args, fn.name)
        ret = self.mapper.return_type(fn.return_type, fn.name)
        lines = ['unsafe extern "C" {']
        lines.extend("    " + line for line in doc_lines(self.render(fn.doc)))
        lines.append(f"    pub fn {rust_ident(fn.name)}({params}){ret};")
        lines.append("}")
        return [lines]

    def emit_var(self, var: VarDecl) -> list[list[str]]:
        mutability = "" if var.ty.is_const else "mut "
        lines = ['unsafe extern "C" {']
        lines.extend("    " + line for line in doc_lines(self.render(var.doc)))
        lines.append(f"    pub static {mutability}{rust_ident(var.ident.name)}: {self.mapper.map_type(var.ty, var.ident.name)};")
        lines.append("}")
        return [lines]


def dependency_order(headers: list[ParsedHeader]) -> list[ParsedHeader]:
    """Headers with every dependency before the headers that include it."""
    by_module = {h.module: h for h in headers}
    seen: set[str] = set()
    order: list[ParsedHeader] = []

    def visit(header: ParsedHeader) -> None:
        if header.module in seen:
            return
        seen.add(header.module)
        for dep in header.dependencies:
            if dep in by_module:
                visit(by_module[dep])
        order.append(header)

    for header in headers:
        visit(header)
    return order


def _with_attrs(attrs: list[str], block: list[str]) -> list[str]:
    """Put attributes on every top-level item of a block, after its doc lines."""
    if not attrs:
        return block
    out = []
    at_item_start = True
    for line in block:
        top = bool(line) and not line[0].isspace() and not line.startswith("}")
        if top and at_item_start and not line.startswith("///"):
            out.extend(attrs)
            at_item_start = False
        out.append(line)
        if line == "}" or (top and line.endswith(";")):
            at_item_start = True
    return out


def _flag_ops(name: str) -> list[str]:
    return [
        f"impl ::core::ops::BitOr for {name} {{",
        "    type Output = Self;",
        "",
        "    #[inline(always)]",
        "    fn bitor(self, rhs: Self) -> Self::Output {",
        "        Self(self.0 | rhs.0)",
        "    }",
        "}",
        "",
        f"impl ::core::ops::BitOrAssign for {name} {{",
        "    #[inline(always)]",
        "    fn bitor_assign(&mut self, rhs: Self) {",
        "        self.0 |= rhs.0;",
        "    }",
        "}",
        "",
        f"impl ::core::ops::BitAnd for {name} {{",
        "    type Output = Self;",
        "",
        "    #[inline(always)]",
        "    fn bitand(self, rhs: Self) -> Self::Output {",
        "        Self(self.0 & rhs.0)",
        "    }",
        "}",
    ]


# =============================================================================
# Generator
# =============================================================================

class RustBindingGenerator(Generator):
    """
    Generator for the Rust module tree.

    All headers of a run must be registered before any module is emitted
    so that types from other modules resolve.
    """

    def __init__(self, config: GeneratorConfig, registry: Optional[TypeRegistry] = None):
        super().__init__(config)
        gen = config.generation
        self.registry = registry or TypeRegistry(gen.external_types)
        self.sym_prefix = gen.sym_prefix
        self.hint_prefix = f"{gen.hint_prop_prefix}HINT_"
        # macros emitted as `const fn` -> return type
        self.const_fns: dict[str, str] = {}

    def get_output_dir(self) -> Path:
        return self.config.output_dir_abs

    def generate_module(self, header: ParsedHeader, modules: set[str]) -> GeneratedFile:
        """
        Generate ``<module>.rs`` for one header.

        Args:
            header: Parsed header
            modules: Names of all modules in the run

        Returns:
            Generated file
        """
        items = ModuleEmitter(self, header).emit()
        doc = render_doc(header.file_doc.text if header.file_doc else None, self.sym_prefix)
        content = self.render_template(
            "module.rs.j2",
            lints=MODULE_LINTS,
            doc=doc,
            dependencies=[dep for dep in header.dependencies if dep in modules],
            items=items,
        )
        return GeneratedFile(Path(f"{header.module}.rs"), content, header.path)

    def generate_mod(self, modules: list[str]) -> GeneratedFile:
        content = self.render_template("mod.rs.j2", lints=TOP_LEVEL_LINTS, modules=sorted(modules))
        return GeneratedFile(Path("mod.rs"), content)

    def generate(self, headers: list[ParsedHeader]) -> list[GeneratedFile]:
        """
        Generate every module file and the top-level ``mod.rs``.

        Modules are emitted after the modules they include, so macros
        from a dependency are known when a module calls them.
        """
        headers = sorted(headers, key=lambda h: h.module)
        for header in headers:
            register_header(self.registry, header)

        self.const_fns.clear()
        modules = {h.module for h in headers}
        files = []
        for header in dependency_order(headers):
            logger.debug(f"Emitting module: {header.module}")
            files.append(self.generate_module(header, modules))
        files.append(self.generate_mod(sorted(modules)))
        return sorted(files, key=lambda f: f.path.as_posix())
