"""
Tests for the Rust binding generator and the type mapper.
"""

import pytest

from sdlgen.errors import EmitError
from sdlgen.generators import RustBindingGenerator
from sdlgen.generators.base import doc_lines, rust_str
from sdlgen.generators.rust_binding import dependency_order
from sdlgen.parser.expr import parse_expr
from sdlgen.parser.header import HeaderParser
from sdlgen.parser.primitive import PrimitiveType
from sdlgen.parser.span import Span
from sdlgen.parser.types import CType, IdentMode, TypeWithIdent
from sdlgen.types.registry import TypeInfo, TypeKind, TypeRegistry
from sdlgen.types.rust_mapper import RustMapper, rust_ident


@pytest.fixture
def generated(config, parsed_headers):
    files = RustBindingGenerator(config).generate(parsed_headers)
    return {f.path.as_posix(): f.content for f in files}


def emit(config, text, name="SDL_foo.h"):
    """Generate a single module from header text."""
    header = HeaderParser(config).parse_source(name, text)
    files = RustBindingGenerator(config).generate([header])
    return {f.path.as_posix(): f.content for f in files}[f"{header.module}.rs"]


@pytest.fixture
def registry():
    return TypeRegistry()


@pytest.fixture
def mapper(registry):
    return RustMapper(registry, "test")


def c_type(ctx, text):
    _, ty = TypeWithIdent.try_parse_type(ctx, Span.of("t.h", text))
    return ty


def c_expr(ctx, text):
    _, e = parse_expr(ctx, Span.of("t.h", text))
    return e


class TestGeneratedTree:
    """Test the files generated for the sample headers."""

    def test_file_list(self, generated):
        assert list(generated) == [
            "init.rs", "joystick.rs", "mod.rs", "power.rs", "stdinc.rs", "video.rs",
        ]

    def test_module_header(self, generated):
        lines = generated["power.rs"].split("\n")
        assert lines[0] == (
            "#![allow(non_camel_case_types, non_upper_case_globals, unused_imports, "
            "clippy::approx_constant, clippy::double_parens)]"
        )
        assert "//! SDL power management routines." in lines
        # dependencies outside the run aren't imported
        assert "use super::stdinc::*;" in lines
        assert "use super::error::*;" not in lines

    def test_enum_newtype(self, generated):
        text = generated["power.rs"]
        assert "/// This enum is available since SDL 3.2.0.\n#[repr(transparent)]\n" in text
        assert "pub struct SDL_PowerState(pub ::core::ffi::c_int);" in text
        assert "impl SDL_PowerState {" in text
        assert "    /// error determining power status\n    pub const ERROR: Self = Self(-1);" in text
        assert "    pub const UNKNOWN: Self = Self(0);" in text
        assert "    pub const CHARGED: Self = Self(4);" in text
        assert "pub const SDL_POWERSTATE_ERROR: SDL_PowerState = SDL_PowerState::ERROR;" in text

    def test_function(self, generated):
        text = generated["power.rs"]
        assert 'unsafe extern "C" {\n    /// Get the current power supply details.' in text
        assert (
            "    pub fn SDL_GetPowerInfo(seconds: *mut ::core::ffi::c_int, "
            "percent: *mut ::core::ffi::c_int) -> SDL_PowerState;"
        ) in text
        assert "    /// - `seconds`: a pointer filled in with the seconds of battery life left." in text

    def test_patched_constants(self, generated):
        text = generated["joystick.rs"]
        assert "pub const SDL_HAT_CENTERED: ::core::primitive::u8 = (0x00 as ::core::primitive::u8);" in text
        assert (
            "pub const SDL_HAT_RIGHTUP: ::core::primitive::u8 = "
            "((SDL_HAT_RIGHT | SDL_HAT_UP) as ::core::primitive::u8);"
        ) in text
        assert "pub const SDL_JOYSTICK_AXIS_MAX: ::core::primitive::i16 = (32767 as ::core::primitive::i16);" in text

    def test_flags_typedef(self, generated):
        text = generated["init.rs"]
        assert "pub type SDL_InitFlags = Uint32;" in text
        assert "pub const SDL_INIT_AUDIO: SDL_InitFlags = (0x00000010 as SDL_InitFlags);" in text
        assert "pub fn SDL_Init(flags: SDL_InitFlags) -> ::core::primitive::bool;" in text

    def test_typedef_cast_constant(self, generated):
        text = generated["stdinc.rs"]
        assert "pub type Uint8 = ::core::primitive::u8;" in text
        assert "pub const SDL_MAX_UINT8: Uint8 = ((0xFF as Uint8));" in text

    def test_opaque_struct(self, generated):
        text = generated["video.rs"]
        assert (
            "#[repr(C)]\n"
            "pub struct SDL_Window {\n"
            "    _opaque: [::core::primitive::u8; 0],\n"
            "}"
        ) in text

    def test_hint_and_property(self, generated):
        text = generated["video.rs"]
        assert (
            "pub const SDL_HINT_VIDEO_ALLOW_SCREENSAVER: *const ::core::ffi::c_char = "
            'c"SDL_VIDEO_ALLOW_SCREENSAVER".as_ptr();'
        ) in text
        assert (
            "/// The title of the window, in UTF-8 encoding.\n"
            'pub const SDL_PROP_WINDOW_CREATE_TITLE_STRING: &::core::ffi::CStr = c"SDL.window.create.title";'
        ) in text

    def test_struct(self, generated):
        text = generated["video.rs"]
        assert "#[derive(Clone, Copy)]\npub struct SDL_DisplayMode {" in text
        assert "    /// the display this mode is associated with\n    pub displayID: Uint32," in text
        assert "    pub refresh_rate: ::core::ffi::c_float," in text

    def test_platform_functions(self, generated):
        text = generated["video.rs"]
        assert (
            '#[cfg(windows)]\nunsafe extern "C" {\n'
            "    pub fn SDL_GetWindowHWND(window: *mut SDL_Window) -> *mut ::core::ffi::c_void;\n}"
        ) in text
        assert '#[cfg(not(windows))]\nunsafe extern "C" {\n    pub fn SDL_NotWindows();\n}' in text

    def test_unconditional_function(self, generated):
        text = generated["video.rs"]
        assert (
            'unsafe extern "C" {\n'
            "    pub fn SDL_CreateWindow(title: *const ::core::ffi::c_char, w: ::core::ffi::c_int, "
            "h: ::core::ffi::c_int, flags: Uint32) -> *mut SDL_Window;\n}"
        ) in text
        assert "#[cfg(windows)]\nunsafe extern \"C\" {\n    pub fn SDL_CreateWindow" not in text

    def test_mod_rs(self, generated):
        text = generated["mod.rs"]
        assert text.startswith("#![allow(\n    clippy::approx_constant,\n")
        for module in ("init", "joystick", "power", "stdinc", "video"):
            assert f"pub mod {module};\n" in text
            assert f"    pub use super::{module}::*;\n" in text
        assert "pub mod error;" not in text

    def test_deterministic(self, config, parsed_headers):
        first = RustBindingGenerator(config).generate(parsed_headers)
        second = RustBindingGenerator(config).generate(list(reversed(parsed_headers)))
        assert [(f.path, f.content) for f in first] == [(f.path, f.content) for f in second]

    def test_files_end_with_newline(self, generated):
        assert all(text.endswith("\n") for text in generated.values())


class TestModuleEmitter:
    """Test emission of individual declarations."""

    def test_enum_values_from_other_variants(self, config):
        text = emit(config, "typedef enum SDL_Foo { SDL_FOO_A = 1, SDL_FOO_B = SDL_FOO_A + 1 } SDL_Foo;\n")
        assert "    pub const A: Self = Self(1);" in text
        assert "    pub const B: Self = Self(2);" in text

    def test_flags_enum_gets_operators(self, config):
        text = emit(config, "typedef enum SDL_FooFlags { SDL_FOO_A = 1, SDL_FOO_B = 2 } SDL_FooFlags;\n")
        assert "impl ::core::ops::BitOr for SDL_FooFlags {" in text
        assert "impl ::core::ops::BitAnd for SDL_FooFlags {" in text

    def test_plain_enum_has_no_operators(self, config):
        text = emit(config, "typedef enum SDL_Foo { SDL_FOO_A, SDL_FOO_B } SDL_Foo;\n")
        assert "BitOr" not in text

    def test_anonymous_enum(self, config):
        text = emit(config, "enum { SDL_X_A, SDL_X_B };\n")
        assert "pub const SDL_X_A: ::core::ffi::c_int = 0;" in text
        assert "pub const SDL_X_B: ::core::ffi::c_int = 1;" in text

    def test_enum_cast_constant(self, config):
        text = emit(config, (
            "typedef enum SDL_Foo { SDL_FOO_A, SDL_FOO_B } SDL_Foo;\n"
            "#define SDL_FOO_DEFAULT ((SDL_Foo)1)\n"
        ))
        assert "pub const SDL_FOO_DEFAULT: SDL_Foo = (SDL_Foo(1));" in text

    def test_keyword_field(self, config):
        text = emit(config, "typedef struct SDL_Foo { int type; } SDL_Foo;\n")
        assert "    pub r#type: ::core::ffi::c_int," in text

    def test_inline_union_field(self, config):
        text = emit(config, "typedef struct SDL_Foo { int kind; union { int a; float b; } u; } SDL_Foo;\n")
        assert "pub union SDL_Foo__Anon1 {" in text
        assert "    pub u: SDL_Foo__Anon1," in text
        assert text.index("pub union SDL_Foo__Anon1") < text.index("pub struct SDL_Foo {")

    def test_platform_specific_struct(self, config):
        text = emit(config, (
            "#ifdef SDL_PLATFORM_WINDOWS\n"
            "typedef struct SDL_Handle { void *win; } SDL_Handle;\n"
            "#else\n"
            "typedef struct SDL_Handle { int fd; } SDL_Handle;\n"
            "#endif\n"
        ))
        windows = text.index("#[cfg(windows)]\n#[repr(C)]")
        other = text.index("#[cfg(not(windows))]\n#[repr(C)]")
        assert windows < other
        assert "    pub win: *mut ::core::ffi::c_void," in text[windows:other]
        assert "    pub fd: ::core::ffi::c_int," in text[other:]
        assert text.count("pub struct SDL_Handle {") == 2

    def test_variadic_and_unnamed_args(self, config):
        text = emit(config, (
            "extern SDL_DECLSPEC void SDLCALL SDL_Log(SDL_PRINTF_FORMAT_STRING const char *fmt, ...) "
            "SDL_PRINTF_VARARG_FUNC(1);\n"
            "extern SDL_DECLSPEC int SDLCALL SDL_Foo(int, float);\n"
        ))
        assert "    pub fn SDL_Log(fmt: *const ::core::ffi::c_char, ...);" in text
        assert "    pub fn SDL_Foo(arg0: ::core::ffi::c_int, arg1: ::core::ffi::c_float) -> ::core::ffi::c_int;" in text

    def test_extern_variable(self, config):
        text = emit(config, "extern const int SDL_foo;\nextern int SDL_bar;\n")
        assert "    pub static SDL_foo: ::core::ffi::c_int;" in text
        assert "    pub static mut SDL_bar: ::core::ffi::c_int;" in text

    def test_skipped_items(self, config):
        text = emit(config, (
            "#define SDL_MAX(x, y) (((x) > (y)) ? (x) : (y))\n"
            "#define SDL_NOTHING do { } while (0)\n"
            "SDL_FORCE_INLINE int SDL_Twice(int x) { return x * 2; }\n"
        ))
        assert "SDL_MAX" not in text
        assert "SDL_NOTHING" not in text
        assert "SDL_Twice" not in text

    def test_function_pointer_typedef(self, config):
        text = emit(config, "typedef void (SDLCALL *SDL_MainThreadCallback)(void *userdata);\n")
        assert (
            "pub type SDL_MainThreadCallback = ::core::option::Option<"
            'unsafe extern "C" fn(userdata: *mut ::core::ffi::c_void)>;'
        ) in text


class TestMacroFunctions:
    """Test function-like macros emitted as ``const fn`` and the constants calling them."""

    def test_integer_constant_macro_expanded(self, config):
        text = emit(config, (
            "#define SDL_UINT64_C(c)  c ## ULL\n"
            "typedef uint64_t Uint64;\n"
            "typedef Uint64 SDL_WindowFlags;\n"
            "#define SDL_WINDOW_FULLSCREEN           SDL_UINT64_C(0x0000000000000001)\n"
            "#define SDL_WINDOW_OPENGL               SDL_UINT64_C(0x0000000000000002)\n"
        ), "SDL_video.h")
        assert (
            "pub const SDL_WINDOW_FULLSCREEN: SDL_WindowFlags = (0x0000000000000001_u64 as SDL_WindowFlags);"
        ) in text
        assert (
            "pub const SDL_WINDOW_OPENGL: SDL_WindowFlags = (0x0000000000000002_u64 as SDL_WindowFlags);"
        ) in text
        assert "SDL_UINT64_C" not in text

    def test_patched_parameter_types(self, config):
        text = emit(config, (
            "typedef uint32_t Uint32;\n"
            "typedef Uint32 SDL_DisplayID;\n"
            "#define SDL_WINDOWPOS_UNDEFINED_MASK    0x1FFF0000u\n"
            "#define SDL_WINDOWPOS_UNDEFINED_DISPLAY(X)  (SDL_WINDOWPOS_UNDEFINED_MASK|(X))\n"
            "#define SDL_WINDOWPOS_UNDEFINED         SDL_WINDOWPOS_UNDEFINED_DISPLAY(0)\n"
        ), "SDL_video.h")
        assert (
            "#[inline(always)]\n"
            "pub const fn SDL_WINDOWPOS_UNDEFINED_DISPLAY(X: SDL_DisplayID) -> ::core::ffi::c_int {\n"
            "    ((SDL_WINDOWPOS_UNDEFINED_MASK | (X)) as ::core::ffi::c_int)\n"
            "}\n"
        ) in text
        assert (
            "pub const SDL_WINDOWPOS_UNDEFINED: ::core::ffi::c_int = SDL_WINDOWPOS_UNDEFINED_DISPLAY(0);"
        ) in text

    def test_inferred_parameter_types(self, config):
        text = emit(config, (
            "#define SDL_FOONUM(major, minor, patch) \\\n"
            "    ((major) * 1000000 + (minor) * 1000 + (patch))\n"
            "#define SDL_FOO_VERSION SDL_FOONUM(3, 2, 0)\n"
        ))
        assert (
            "pub const fn SDL_FOONUM(major: ::core::ffi::c_int, minor: ::core::ffi::c_int, "
            "patch: ::core::ffi::c_int) -> ::core::ffi::c_int {"
        ) in text
        assert "pub const SDL_FOO_VERSION: ::core::ffi::c_int = SDL_FOONUM(3, 2, 0);" in text

    def test_untyped_parameter_skipped(self, config):
        text = emit(config, "#define SDL_SAME(x) (x)\n#define SDL_SAME_ONE SDL_SAME(1)\n")
        assert "SDL_SAME" not in text

    def test_call_to_unknown_macro_skipped(self, config):
        text = emit(config, (
            "#define SDL_FOO_A 1\n"
            "#define SDL_FOO_B SDL_MISSING(2)\n"
            "#define SDL_FOO_C(x) (SDL_MISSING(x) + 1)\n"
        ))
        assert "pub const SDL_FOO_A: ::core::ffi::c_int = 1;" in text
        assert "SDL_FOO_B" not in text
        assert "SDL_FOO_C" not in text
        assert "SDL_MISSING" not in text

    def test_cfg_on_const_fn(self, config):
        text = emit(config, (
            "#ifdef SDL_PLATFORM_WINDOWS\n"
            "#define SDL_TWICE(x) ((x) * 2)\n"
            "#endif\n"
        ))
        assert "#[cfg(windows)]\n#[inline(always)]\npub const fn SDL_TWICE(x: ::core::ffi::c_int)" in text

    def test_macro_from_dependency(self, config):
        parser = HeaderParser(config)
        foo = parser.parse_source("SDL_foo.h", "#define SDL_FOO_NEXT(x) ((x) + 1)\n")
        bar = parser.parse_source("SDL_bar.h", (
            "#include <SDL3/SDL_foo.h>\n"
            "#define SDL_BAR_TWO SDL_FOO_NEXT(1)\n"
        ))
        files = RustBindingGenerator(config).generate([bar, foo])
        text = {f.path.as_posix(): f.content for f in files}["bar.rs"]
        assert "use super::foo::*;" in text
        assert "pub const SDL_BAR_TWO: ::core::ffi::c_int = SDL_FOO_NEXT(1);" in text

    def test_dependency_order(self, config):
        parser = HeaderParser(config)
        a = parser.parse_source("SDL_a.h", "#include <SDL3/SDL_b.h>\n")
        b = parser.parse_source("SDL_b.h", "#include <SDL3/SDL_c.h>\n")
        c = parser.parse_source("SDL_c.h", "#include <SDL3/SDL_a.h>\n")
        d = parser.parse_source("SDL_d.h", "")
        assert [h.module for h in dependency_order([a, d, b, c])] == ["c", "b", "a", "d"]


class TestRustMapper:
    """Test C type and expression mapping."""

    @pytest.mark.parametrize("text,rust", [
        ("int", "::core::ffi::c_int"),
        ("const char *", "*const ::core::ffi::c_char"),
        ("char **", "*mut *mut ::core::ffi::c_char"),
        ("Uint8 *", "*mut Uint8"),
        ("size_t", "::core::primitive::usize"),
    ])
    def test_map_type(self, ctx, mapper, text, rust):
        assert mapper.map_type(c_type(ctx, text)) == rust

    def test_array(self, ctx, mapper):
        _, typed = TypeWithIdent.try_parse(ctx, Span.of("t.h", "Uint8 data[16]"), IdentMode.REQUIRED)
        assert mapper.map_type(typed.ty) == "[Uint8; 16]"

    def test_function_pointer(self, ctx, mapper):
        _, typed = TypeWithIdent.try_parse(
            ctx, Span.of("t.h", "int (SDLCALL *cb)(void *userdata, int n)"), IdentMode.REQUIRED
        )
        assert mapper.map_type(typed.ty) == (
            "::core::option::Option<unsafe extern \"C\" fn("
            "userdata: *mut ::core::ffi::c_void, n: ::core::ffi::c_int) -> ::core::ffi::c_int>"
        )

    def test_unknown_type_node(self, mapper):
        with pytest.raises(EmitError, match="unknown type node"):
            mapper.map_type(object(), "SDL_X")

    @pytest.mark.parametrize("text,rust", [
        ("~0u", "!0"),
        ("017", "0o17"),
        ("0x1F", "0x1F"),
        ("1.5f", "1.5"),
        ("1e3", "1e3"),
        ("'a'", "(97 as ::core::ffi::c_char)"),
        ("1 + 2 * 3", "1 + (2 * 3)"),
        ("(A) - 1", "(A) - 1"),
        ("-(1 + 2)", "-(1 + 2)"),
        ("sizeof(int)", "::core::mem::size_of::<::core::ffi::c_int>()"),
        ("SDL_BUTTON(1)", "SDL_BUTTON(1)"),
        ("NULL", "::core::ptr::null_mut()"),
        ("(Uint32)1", "(1 as Uint32)"),
    ])
    def test_expr(self, ctx, mapper, text, rust):
        assert mapper.expr(c_expr(ctx, text)) == rust

    def test_enum_cast_is_constructor(self, ctx, registry, mapper):
        registry.register_type(TypeInfo("SDL_Foo", "SDL_Foo", TypeKind.ENUM))
        assert mapper.expr(c_expr(ctx, "(SDL_Foo)1")) == "SDL_Foo(1)"

    def test_unrenderable_expression(self, mapper):
        with pytest.raises(EmitError, match="can't render expression node"):
            mapper.expr(object(), "SDL_X")

    @pytest.mark.parametrize("text,value", [
        ("-7 / 2", -3),
        ("-7 % 2", -1),
        ("7 / 2", 3),
        ("1 << 4 | 1", 17),
        ("~0", -1),
        ("(Uint8)0xFF", None),
        ("1 / 0", None),
        ("1 == 1", 1),
    ])
    def test_evaluate(self, ctx, mapper, text, value):
        assert mapper.evaluate(c_expr(ctx, text)) == value

    def test_evaluate_with_env(self, ctx, mapper):
        assert mapper.evaluate(c_expr(ctx, "X + 1"), {"X": 2}) == 3
        assert mapper.evaluate(c_expr(ctx, "Y + 1"), {"X": 2}) is None

    def test_evaluate_through_typedef(self, ctx, registry, mapper):
        registry.register_type(TypeInfo("Uint8", "Uint8", TypeKind.TYPEDEF, aliased=CType.primitive(PrimitiveType.UINT8_T)))
        assert mapper.evaluate(c_expr(ctx, "(Uint8)0xFF")) == 255

    def test_infer_type(self, ctx, mapper):
        assert mapper.infer_type(c_expr(ctx, "1 + 2")) == "::core::ffi::c_int"
        assert mapper.infer_type(c_expr(ctx, "1 == 2")) == "::core::primitive::bool"
        assert mapper.infer_type(c_expr(ctx, "1.0f")) == "::core::ffi::c_float"
        assert mapper.infer_type(c_expr(ctx, "UNKNOWN")) is None

    def test_infer_from_constants(self, ctx, mapper):
        mapper.constants["X"] = "Uint8"
        assert mapper.infer_type(c_expr(ctx, "X + 1")) == "Uint8"
        assert mapper.infer_type(c_expr(ctx, "X << 2")) == "Uint8"

    @pytest.mark.parametrize("text,rust", [
        ("SDL_UINT64_C(0xFF)", "0xFF_u64"),
        ("SDL_SINT64_C(-1)", "(-1 as ::core::primitive::i64)"),
        ("SDL_UINT64_C((7))", "7_u64"),
        ("SDL_UINT64_C(X)", "(X as ::core::primitive::u64)"),
    ])
    def test_integer_constant_macro(self, ctx, mapper, text, rust):
        assert mapper.expr(c_expr(ctx, text)) == rust

    def test_integer_constant_macro_type_and_value(self, ctx, mapper):
        assert mapper.infer_type(c_expr(ctx, "SDL_UINT64_C(1)")) == "::core::primitive::u64"
        assert mapper.infer_type(c_expr(ctx, "SDL_SINT64_C(1) << 3")) == "::core::primitive::i64"
        assert mapper.evaluate(c_expr(ctx, "SDL_UINT64_C(1) << 3")) == 8
        assert mapper.evaluate(c_expr(ctx, "SDL_SINT64_C(-1)")) == -1
        assert mapper.evaluate(c_expr(ctx, "SDL_UINT64_C(-1)")) == 0xFFFF_FFFF_FFFF_FFFF
        assert mapper.evaluate(c_expr(ctx, "SDL_OTHER(1)")) is None

    def test_infer_from_macro_return_type(self, ctx, mapper):
        assert mapper.infer_type(c_expr(ctx, "SDL_BUTTON_MASK(1)")) is None
        mapper.functions["SDL_BUTTON_MASK"] = "SDL_MouseButtonFlags"
        assert mapper.infer_type(c_expr(ctx, "SDL_BUTTON_MASK(1)")) == "SDL_MouseButtonFlags"

    def test_infer_from_scope(self, ctx, mapper):
        assert mapper.infer_type(c_expr(ctx, "(x) + 1"), {"x": "Uint8"}) == "Uint8"
        assert mapper.infer_type(c_expr(ctx, "(x) + 1")) is None

    def test_unknown_calls(self, ctx, mapper):
        mapper.functions["SDL_KNOWN"] = "::core::ffi::c_int"
        expr = c_expr(ctx, "SDL_KNOWN(1) | SDL_UINT64_C(2) | SDL_A(SDL_B(3), SDL_A(4))")
        assert mapper.unknown_calls(expr) == ["SDL_A", "SDL_B"]
        assert mapper.unknown_calls(c_expr(ctx, "1 + X")) == []

    def test_infer_params(self, ctx, mapper):
        expr = c_expr(ctx, "((major) * 1000000 + (minor) * 1000 + (patch))")
        params = mapper.infer_params(expr, ["major", "minor", "patch"])
        assert params == {p: "::core::ffi::c_int" for p in ("major", "minor", "patch")}

    def test_infer_params_from_known(self, ctx, mapper):
        mapper.constants["SDL_MASK"] = "Uint32"
        assert mapper.infer_params(c_expr(ctx, "(SDL_MASK | (X))"), ["X"]) == {"X": "Uint32"}
        assert mapper.infer_params(c_expr(ctx, "((a) == (b))"), ["a"], {"b": "Uint8"}) == {"a": "Uint8"}

    def test_infer_params_unresolved(self, ctx, mapper):
        assert mapper.infer_params(c_expr(ctx, "(x)"), ["x"]) == {}
        # shift amounts don't share the type of the shifted value
        assert mapper.infer_params(c_expr(ctx, "(1u << (x))"), ["x"]) == {}
        assert mapper.infer_params(c_expr(ctx, "((x) == 1) && ((y) == 2)"), ["x", "y"]) == {
            "x": "::core::ffi::c_int", "y": "::core::ffi::c_int",
        }

    @pytest.mark.parametrize("name,rust", [
        ("type", "r#type"),
        ("fn", "r#fn"),
        ("self", "self_"),
        ("w", "w"),
    ])
    def test_rust_ident(self, name, rust):
        assert rust_ident(name) == rust


class TestTypeRegistry:
    """Test named type registration."""

    def test_primitive_chain(self, registry):
        registry.register_type(TypeInfo("Uint8", "Uint8", TypeKind.TYPEDEF, aliased=CType.primitive(PrimitiveType.UINT8_T)))
        registry.register_type(TypeInfo("SDL_Foo", "SDL_Foo", TypeKind.TYPEDEF, aliased=CType.named("Uint8")))
        assert registry.primitive_of("SDL_Foo") is PrimitiveType.UINT8_T
        assert registry.primitive_of("SDL_Unknown") is None

    def test_opaque_does_not_replace_definition(self, registry):
        registry.register_type(TypeInfo("SDL_Foo", "SDL_Foo", TypeKind.STRUCT))
        registry.register_type(TypeInfo("SDL_Foo", "SDL_Foo", TypeKind.OPAQUE))
        assert not registry.is_opaque("SDL_Foo")

    def test_definition_replaces_opaque(self, registry):
        registry.register_type(TypeInfo("SDL_Foo", "SDL_Foo", TypeKind.OPAQUE))
        assert registry.is_opaque("SDL_Foo")
        registry.register_type(TypeInfo("SDL_Foo", "SDL_Foo", TypeKind.STRUCT))
        assert not registry.is_opaque("SDL_Foo")

    def test_external_types(self):
        registry = TypeRegistry(["HWND"])
        assert registry.lookup("HWND").kind is TypeKind.EXTERNAL
        assert registry.rust_name("Other") == "Other"


class TestFilters:
    """Test the template filters."""

    def test_rust_str(self):
        assert rust_str('a "b"\n\\') == '"a \\"b\\"\\n\\\\"'

    def test_doc_lines(self):
        assert doc_lines("a\n\nb") == ["/// a", "///", "/// b"]
        assert doc_lines("x", "//!") == ["//! x"]
        assert doc_lines(None) == []
