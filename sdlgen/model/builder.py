"""
Metadata model builder.

Walks the parsed headers, resolves type references against every module in
the run and collects groups, structs, hints and properties per module.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator, Optional

from ..config import GeneratorConfig
from ..errors import ModelError
from ..parser.decl import Enum, Function, StructOrUnion, VarDecl
from ..parser.expr import BinaryOp, Cast, FnCall, Parenthesized, SizeOf, UnaryOp
from ..parser.header import ParsedHeader
from ..parser.literal import StringLiteral
from ..parser.preproc import Define, ExprValue
from ..parser.types import (
    ArrayType,
    CType,
    FnPointerType,
    InlineAggregate,
    NamedType,
    PointerType,
    TaggedType,
    TypeDef,
)
from .conditions import render_cfg, walk_items
from .doc import render_doc
from .metadata import (
    Availability,
    Field,
    Group,
    GroupKind,
    GroupValue,
    Hint,
    Model,
    ModuleModel,
    Property,
    PropertyType,
    Struct,
)

logger = logging.getLogger("sdlgen.model")


# Groups whose values don't share a useful common prefix
GROUP_PREFIX_OVERRIDES = {
    "SDL_AudioDeviceID": "SDL_AUDIO_DEVICE_",
    "SDL_GlobFlags": "SDL_GLOB_",
}

PROPERTY_TYPE_SUFFIXES = {
    "_POINTER": PropertyType.POINTER,
    "_STRING": PropertyType.STRING,
    "_NUMBER": PropertyType.NUMBER,
    "_FLOAT": PropertyType.FLOAT,
    "_BOOLEAN": PropertyType.BOOLEAN,
}

PROPERTY_TYPE_OVERRIDES = {
    "SDL_PROP_GPU_TEXTURE_CREATE_D3D12_CLEAR_STENCIL_UINT8": PropertyType.NUMBER,
    "SDL_PROP_WINDOW_OPENVR_OVERLAY_ID": PropertyType.NUMBER,
}

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# =============================================================================
# Short names
# =============================================================================

def common_ident_prefix(a: str, b: str) -> str:
    """Longest common prefix of two names, cut back to an underscore."""
    i = 0
    for ca, cb in zip(a, b):
        if ca != cb:
            break
        i += 1
    while i > 0 and a[i - 1] != "_":
        i -= 1
    return a[:i]


def find_common_ident_prefix(group_name: str, names: Iterable[str]) -> str:
    """
    Prefix shared by the value names of a group.

    Fewer than two values share no prefix.
    """
    if group_name in GROUP_PREFIX_OVERRIDES:
        return GROUP_PREFIX_OVERRIDES[group_name]
    names = list(names)
    if len(names) < 2:
        return ""
    prefix = names[0]
    for name in names[1:]:
        prefix = common_ident_prefix(prefix, name)
    return prefix


def strip_common_ident_prefix(name: str, prefix: str) -> str:
    """``SDL_SCALEMODE_2X`` with prefix ``SDL_SCALEMODE_`` -> ``_2X``."""
    if not name.startswith(prefix):
        return name
    stripped = name[len(prefix):]
    if not _IDENT_RE.match(stripped):
        stripped = name[len(name) - len(stripped) - 1:]
    return stripped


def strip_prefix(name: str, prefix: str) -> str:
    return name[len(prefix):] if prefix and name.startswith(prefix) else name


# =============================================================================
# Type references
# =============================================================================

def iter_type_names(ty: CType) -> Iterator[str]:
    """Names of the typedefs and tags a type refers to."""
    if isinstance(ty, (NamedType, TaggedType)):
        yield ty.name
    elif isinstance(ty, PointerType):
        yield from iter_type_names(ty.pointee)
    elif isinstance(ty, ArrayType):
        yield from iter_type_names(ty.element)
    elif isinstance(ty, FnPointerType):
        yield from iter_type_names(ty.return_type)
        for arg in ty.args:
            yield from iter_type_names(arg.ty)
    elif isinstance(ty, InlineAggregate):
        decl = ty.decl
        if isinstance(decl, StructOrUnion) and decl.fields:
            for f in decl.fields:
                yield from iter_type_names(f.ty)


def iter_cast_types(expr) -> Iterator[CType]:
    """Types named by casts and ``sizeof`` inside an expression."""
    if isinstance(expr, Cast):
        yield expr.ty
        yield from iter_cast_types(expr.expr)
    elif isinstance(expr, SizeOf):
        if isinstance(expr.operand, CType):
            yield expr.operand
        else:
            yield from iter_cast_types(expr.operand)
    elif isinstance(expr, Parenthesized):
        yield from iter_cast_types(expr.inner)
    elif isinstance(expr, UnaryOp):
        yield from iter_cast_types(expr.operand)
    elif isinstance(expr, BinaryOp):
        yield from iter_cast_types(expr.lhs)
        yield from iter_cast_types(expr.rhs)
    elif isinstance(expr, FnCall):
        for arg in expr.args:
            yield from iter_cast_types(arg)


def _inline_tags(ty: CType) -> Iterator[str]:
    """Tags declared by inline aggregates nested in a type."""
    while isinstance(ty, (PointerType, ArrayType)):
        ty = ty.pointee if isinstance(ty, PointerType) else ty.element
    if isinstance(ty, InlineAggregate):
        if ty.decl.ident is not None:
            yield ty.decl.ident.name
        if isinstance(ty.decl, StructOrUnion):
            for f in ty.decl.fields or ():
                yield from _inline_tags(f.ty)


class SymbolTable:
    """Type names defined anywhere in the run."""

    def __init__(self, external: Iterable[str] = ()):
        self.names: set[str] = set(external)

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def add(self, name: Optional[str]) -> None:
        if name:
            self.names.add(name)

    def collect(self, header: ParsedHeader) -> None:
        for item, _ in walk_items(header.items):
            if isinstance(item, TypeDef):
                self.add(item.name)
                if isinstance(item.ty, TaggedType):
                    # `typedef struct X X;` declares the tag too
                    self.add(item.ty.name)
                for tag in _inline_tags(item.ty):
                    self.add(tag)
            elif isinstance(item, (Enum, StructOrUnion)) and item.ident is not None:
                self.add(item.ident.name)
                if isinstance(item, StructOrUnion):
                    for f in item.fields or ():
                        for tag in _inline_tags(f.ty):
                            self.add(tag)


# =============================================================================
# Builder
# =============================================================================

class ModelBuilder:
    """
    Build the metadata model from parsed headers.

    Example:
        >>> builder = ModelBuilder(config)
        >>> model = builder.build(headers)
        >>> model["power"].groups[0].name
        'SDL_PowerState'
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        gen = self.config.generation
        self.sym_prefix = gen.sym_prefix
        self.lib_name = gen.lib_name
        self.hint_prefix = f"{gen.hint_prop_prefix}HINT_"
        self.prop_prefix = f"{gen.hint_prop_prefix}PROP_"
        # cfg predicate of the item being added
        self.cfg: Optional[str] = None

    def build(self, headers: list[ParsedHeader]) -> Model:
        """
        Build the model for all headers of a run.

        Raises:
            ModelError: On unresolved types, duplicates or bad metadata
        """
        symbols = SymbolTable(self.config.generation.external_types)
        for header in headers:
            symbols.collect(header)

        model = Model()
        for header in sorted(headers, key=lambda h: h.module):
            if header.module in model.modules:
                raise ModelError(header.module, header.path.name, "duplicate module")
            model.modules[header.module] = self.build_module(header, symbols)
        logger.debug(f"Built model for {len(model)} modules")
        return model

    def build_module(self, header: ParsedHeader, symbols: SymbolTable) -> ModuleModel:
        module = header.module
        mm = ModuleModel(
            module=module,
            doc=self.render(header.file_doc.text if header.file_doc else None),
            dependencies=list(header.dependencies),
        )
        seen_structs: dict[tuple[str, Optional[str]], Struct] = {}

        for item, cfg in walk_items(header.items):
            self.cfg = render_cfg(cfg)
            if isinstance(item, TypeDef):
                self._check_type(module, item.name, item.ty, symbols)
                self._add_typedef(mm, item, seen_structs)
            elif isinstance(item, Enum):
                self._check_type(module, self._enum_name(item), item.base_type, symbols)
                if item.ident is not None:
                    self._add_enum_group(mm, item, item.ident.name)
            elif isinstance(item, StructOrUnion):
                self._add_struct(mm, item, item.name, seen_structs, symbols)
            elif isinstance(item, Function):
                self._check_type(module, item.name, item.return_type, symbols)
                for arg in item.args:
                    self._check_type(module, item.name, arg.ty, symbols)
            elif isinstance(item, VarDecl):
                self._check_type(module, item.ident.name, item.ty, symbols)
            elif isinstance(item, Define):
                self._add_define(mm, item, symbols)

        return mm

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def render(self, text: Optional[str]) -> Optional[str]:
        return render_doc(text, self.sym_prefix)

    def _doc(self, doc, module: str, name: str) -> tuple[Optional[str], Optional[Availability]]:
        rendered = self.render(doc.text if doc is not None else None)
        return rendered, Availability.from_doc(rendered, self.lib_name, module, name)

    @staticmethod
    def _enum_name(enum: Enum) -> str:
        return enum.ident.name if enum.ident is not None else "<anonymous enum>"

    def _check_type(self, module: str, decl: str, ty: CType, symbols: SymbolTable) -> None:
        for name in iter_type_names(ty):
            if name not in symbols:
                raise ModelError(module, decl, f"unresolved type `{name}`")
        if isinstance(ty, InlineAggregate) and isinstance(ty.decl, Enum):
            for variant in ty.decl.variants:
                if variant.value is not None:
                    self._check_expr(module, decl, variant.value, symbols)

    def _check_expr(self, module: str, decl: str, expr, symbols: SymbolTable) -> None:
        for ty in iter_cast_types(expr):
            self._check_type(module, decl, ty, symbols)

    def _add_group(self, mm: ModuleModel, group: Group) -> None:
        if mm.group(group.name) is not None:
            raise ModelError(mm.module, group.name, "duplicate group")
        seen = set()
        for value in group.values:
            if value.short_name in seen:
                raise ModelError(mm.module, value.name, f"duplicate short name `{value.short_name}` in group")
            seen.add(value.short_name)
        mm.groups.append(group)

    def _new_group(self, mm: ModuleModel, kind: GroupKind, name: str, doc, values: list) -> Group:
        group_doc, since = self._doc(doc, mm.module, name)
        prefix = find_common_ident_prefix(name, (v.name for v in values))
        group = Group(
            module=mm.module,
            kind=kind,
            name=name,
            short_name=strip_prefix(name, self.sym_prefix),
            doc=group_doc,
            available_since=since,
        )
        for v in values:
            value_doc, value_since = self._doc(v.doc, mm.module, v.name)
            group.values.append(GroupValue(
                name=v.name,
                short_name=strip_common_ident_prefix(v.name, prefix),
                doc=value_doc,
                available_since=value_since,
            ))
        return group

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def _add_enum_group(self, mm: ModuleModel, enum: Enum, name: str, doc=None) -> None:
        if enum.hidden:
            logger.debug(f"{mm.module}: hidden enum `{name}`")
            return
        kind = GroupKind.FLAGS if name.endswith("Flags") else GroupKind.ENUM
        self._add_group(mm, self._new_group(mm, kind, name, doc or enum.doc, enum.variants))

    def _add_typedef(self, mm: ModuleModel, td: TypeDef, seen_structs: dict) -> None:
        ty = td.ty
        if isinstance(ty, InlineAggregate):
            decl = ty.decl
            if isinstance(decl, Enum):
                if decl.ident is None or decl.ident.name == td.name:
                    self._add_enum_group(mm, decl, td.name, td.doc)
                else:
                    self._add_enum_group(mm, decl, decl.ident.name)
            else:
                self._add_struct(mm, decl, td.name, seen_structs, None, td.doc)
            return

        if isinstance(ty, TaggedType) and ty.tag in ("struct", "union"):
            known = {name for name, _ in seen_structs}
            if ty.name not in known and td.name not in known:
                doc, since = self._doc(td.doc, mm.module, td.name)
                struct = Struct(mm.module, td.name, ty.tag, doc, since, opaque=True, cfg=self.cfg)
                seen_structs[td.name, self.cfg] = struct
                mm.structs.append(struct)
            return

        if td.group_kind is not None:
            self._add_group(mm, self._new_group(mm, td.group_kind, td.name, td.doc, td.associated))

    def _add_struct(
        self,
        mm: ModuleModel,
        decl: StructOrUnion,
        name: Optional[str],
        seen_structs: dict,
        symbols: Optional[SymbolTable],
        doc=None,
    ) -> None:
        if name is None:
            return
        if symbols is not None:
            for f in decl.fields or ():
                self._check_type(mm.module, f"{name}.{f.name}", f.ty, symbols)

        if not decl.has_body:
            if all(known != name for known, _ in seen_structs):
                struct_doc, since = self._doc(doc or decl.doc, mm.module, name)
                struct = Struct(mm.module, name, decl.kind, struct_doc, since, opaque=True, cfg=self.cfg)
                seen_structs[name, self.cfg] = struct
                mm.structs.append(struct)
            return

        struct_doc, since = self._doc(doc or decl.doc, mm.module, name)
        fields = []
        for f in decl.fields:
            field_doc, field_since = self._doc(f.doc, mm.module, f"{name}.{f.name}")
            fields.append(Field(f.name, f.ty.describe(), field_doc, field_since))

        key = (name, self.cfg)
        existing = seen_structs.get(key)
        if existing is None:
            forward = seen_structs.get((name, None))
            if forward is not None and forward.opaque:
                # the first conditional definition completes the forward declaration
                existing = seen_structs.pop((name, None))
                existing.cfg = self.cfg
                seen_structs[key] = existing
        if existing is not None and existing.opaque:
            # a forward declaration completed later in the module
            existing.kind = decl.kind
            existing.fields = fields
            existing.opaque = False
            existing.doc = existing.doc or struct_doc
            existing.available_since = existing.available_since or since
            return
        if existing is not None or self._defined_elsewhere(seen_structs, key):
            raise ModelError(mm.module, name, f"duplicate {decl.kind}")
        struct = Struct(mm.module, name, decl.kind, struct_doc, since, fields, cfg=self.cfg)
        seen_structs[key] = struct
        mm.structs.append(struct)

    @staticmethod
    def _defined_elsewhere(seen_structs: dict, key: tuple[str, Optional[str]]) -> bool:
        """Whether an unconditional definition clashes with a conditional one."""
        name, cfg = key
        for (other, other_cfg), struct in seen_structs.items():
            if other == name and not struct.opaque and (cfg is None or other_cfg is None):
                return True
        return False

    def _add_define(self, mm: ModuleModel, define: Define, symbols: SymbolTable) -> None:
        if define.is_function_like or not isinstance(define.value, ExprValue):
            return
        expr = define.value.expr
        self._check_expr(mm.module, define.name, expr, symbols)
        name = define.name

        if name.startswith(self.hint_prefix) and isinstance(expr, StringLiteral):
            doc, since = self._doc(define.doc, mm.module, name)
            mm.hints.append(Hint(
                module=mm.module,
                name=name,
                short_name=name[len(self.hint_prefix):],
                value=expr.value,
                doc=doc,
                available_since=since,
            ))
        elif name.startswith(self.prop_prefix):
            doc, since = self._doc(define.doc, mm.module, name)
            if not isinstance(expr, StringLiteral):
                raise ModelError(mm.module, name, "property name is not a string")
            mm.properties.append(Property(
                module=mm.module,
                name=name,
                short_name=name[len(self.prop_prefix):],
                value=expr.value,
                ty=self.property_type(mm.module, name),
                doc=doc,
                available_since=since,
            ))

    @staticmethod
    def property_type(module: str, name: str) -> PropertyType:
        """
        Property type from the name suffix.

        Raises:
            ModelError: If neither the suffix nor the override table knows it
        """
        if name in PROPERTY_TYPE_OVERRIDES:
            return PROPERTY_TYPE_OVERRIDES[name]
        for suffix, ty in PROPERTY_TYPE_SUFFIXES.items():
            if name.endswith(suffix):
                return ty
        raise ModelError(module, name, "unknown property type")
