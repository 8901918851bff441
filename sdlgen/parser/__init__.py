"""
SDL header parsing module.
"""

from .base import Expr, ParseContext, Parser
from .span import Source, Span
from .ident import Ident
from .literal import CharLiteral, FloatLiteral, IntegerLiteral, Literal, StringLiteral
from .expr import BinaryOp, CallArgs, Cast, FnCall, Parenthesized, SizeOf, UnaryOp
from .attr import Attribute, Attributes, AttrKind
from .doc_comment import DocComment
from .types import CType, TypeDef, TypeWithIdent
from .decl import Enum, EnumVariant, Function, StructField, StructOrUnion, VarDecl
from .preproc import Define, Include, PreProcBlock
from .items import FileDoc, parse_items
from .patch import PatchResult, PatchRule
from .header import HeaderParser, ParsedHeader, module_name_for

__all__ = [
    "Expr",
    "ParseContext",
    "Parser",
    "Source",
    "Span",
    "Ident",
    "CharLiteral",
    "FloatLiteral",
    "IntegerLiteral",
    "Literal",
    "StringLiteral",
    "BinaryOp",
    "CallArgs",
    "Cast",
    "FnCall",
    "Parenthesized",
    "SizeOf",
    "UnaryOp",
    "Attribute",
    "Attributes",
    "AttrKind",
    "DocComment",
    "CType",
    "TypeDef",
    "TypeWithIdent",
    "Enum",
    "EnumVariant",
    "Function",
    "StructField",
    "StructOrUnion",
    "VarDecl",
    "Define",
    "Include",
    "PreProcBlock",
    "FileDoc",
    "parse_items",
    "PatchResult",
    "PatchRule",
    "HeaderParser",
    "ParsedHeader",
    "module_name_for",
]
