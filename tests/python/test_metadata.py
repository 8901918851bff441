"""
Tests for the metadata generator.
"""

import pytest

from sdlgen.errors import EmitError
from sdlgen.generators import MetadataGenerator
from sdlgen.generators.metadata import opt_doc, opt_version
from sdlgen.model.builder import ModelBuilder
from sdlgen.model.metadata import Availability, Field, Group, GroupKind, GroupValue, Model, ModuleModel, Struct


@pytest.fixture
def model(config, parsed_headers):
    return ModelBuilder(config).build(parsed_headers)


@pytest.fixture
def generated(config, model):
    files = MetadataGenerator(config).generate(model)
    return {f.path.as_posix(): f.content for f in files}


class TestFilters:
    """Test the metadata template filters."""

    def test_opt_doc(self):
        assert opt_doc(None) == "None"
        assert opt_doc("a") == 'Some("a\\n")'
        assert opt_doc('say "hi"\nbye') == 'Some("say \\"hi\\"\\nbye\\n")'

    def test_opt_version(self):
        assert opt_version(None) == "None"
        assert opt_version(Availability(3, 2, 0)) == "Some(SDL_VERSIONNUM(3, 2, 0))"


class TestMetadataTree:
    """Test the metadata files for the sample headers."""

    def test_only_modules_with_metadata(self, generated):
        assert list(generated) == ["init.rs", "mod.rs", "power.rs", "video.rs"]

    def test_module_header(self, generated):
        assert generated["power.rs"].startswith(
            "//! Metadata for items in the `crate::power` module\n\nuse super::*;\n"
        )

    def test_group(self, generated):
        text = generated["power.rs"]
        assert "pub const METADATA_SDL_PowerState: Group = Group {" in text
        assert '    module: "power",' in text
        assert "    kind: GroupKind::Enum," in text
        assert '    short_name: "PowerState",' in text
        assert '    doc: Some("The basic state for the system\'s power supply.\\n\\n' in text
        assert "    available_since: Some(SDL_VERSIONNUM(3, 2, 0))," in text
        assert (
            "        GroupValue {\n"
            '            name: "SDL_POWERSTATE_ERROR",\n'
            '            short_name: "ERROR",\n'
            '            doc: Some("error determining power status\\n"),\n'
            "            available_since: None,\n"
            "        },"
        ) in text

    def test_flags_group(self, generated):
        text = generated["init.rs"]
        assert "    kind: GroupKind::Flags," in text
        assert '            short_name: "EVENTS",' in text

    def test_hint(self, generated):
        text = generated["video.rs"]
        assert "pub const METADATA_SDL_HINT_VIDEO_ALLOW_SCREENSAVER: Hint = Hint {" in text
        assert '    short_name: "VIDEO_ALLOW_SCREENSAVER",' in text
        assert "    value: crate::video::SDL_HINT_VIDEO_ALLOW_SCREENSAVER," in text

    def test_properties(self, generated):
        text = generated["video.rs"]
        assert "pub const METADATA_SDL_PROP_WINDOW_CREATE_TITLE_STRING: Property = Property {" in text
        assert "    ty: PropertyType::STRING," in text
        assert "    ty: PropertyType::NUMBER," in text
        assert '    doc: Some("The title of the window, in UTF-8 encoding.\\n"),' in text

    def test_struct(self, generated):
        text = generated["video.rs"]
        assert "pub const METADATA_SDL_DisplayMode: Struct = Struct {" in text
        assert "    kind: StructKind::Struct," in text
        assert '    name: "SDL_DisplayMode",' in text
        assert '    doc: Some("The structure that defines a display mode.\\n"),' in text
        assert (
            "    fields: &[\n"
            "        Field {\n"
            '            name: "displayID",\n'
            '            doc: Some("the display this mode is associated with\\n"),\n'
            "            available_since: None,\n"
            '            ty: "Uint32",\n'
            "        },\n"
        ) in text
        assert '            name: "refresh_rate",' in text

    def test_opaque_struct_has_no_metadata(self, generated):
        assert "METADATA_SDL_Window:" not in generated["video.rs"]
        assert "METADATA_SDL_Window," not in generated["mod.rs"]

    def test_id_group(self, generated):
        text = generated["video.rs"]
        assert "    kind: GroupKind::Id," in text
        assert "    values: &[\n    ],\n" in text

    def test_constants_separated(self, generated):
        text = generated["video.rs"]
        assert "};\n\npub const METADATA_SDL_HINT_VIDEO_ALLOW_SCREENSAVER" in text

    def test_order_groups_structs_hints_properties(self, generated):
        text = generated["video.rs"]
        assert (
            text.index("METADATA_SDL_WindowID")
            < text.index("METADATA_SDL_DisplayMode")
            < text.index("METADATA_SDL_HINT_VIDEO_ALLOW_SCREENSAVER")
            < text.index("METADATA_SDL_PROP_WINDOW_CREATE_TITLE_STRING")
            < text.index("METADATA_SDL_PROP_WINDOW_CREATE_WIDTH_NUMBER")
        )

    def test_mod_rs(self, generated):
        text = generated["mod.rs"]
        assert (
            "use crate::{metadata::{Field, Group, GroupKind, GroupValue, Hint, Property, PropertyType, Struct, StructKind}, "
            "version::SDL_VERSIONNUM};"
        ) in text
        assert "pub mod init;\npub mod power;\npub mod video;\n" in text
        assert "pub mod joystick;" not in text
        assert "    &video::METADATA_SDL_HINT_VIDEO_ALLOW_SCREENSAVER,\n" in text
        assert (
            "    &init::METADATA_SDL_InitFlags,\n"
            "    &power::METADATA_SDL_PowerState,\n"
            "    &video::METADATA_SDL_WindowID,\n"
        ) in text
        assert (
            "/// Metadata for structs and unions in this crate\n"
            "pub const STRUCTS: &[&Struct] = &[\n"
            "    &video::METADATA_SDL_DisplayMode,\n"
            "];\n"
        ) in text

    def test_crate_name(self, config, model):
        config.generation.crate_name = "sdl3_sys"
        files = MetadataGenerator(config).generate(model)
        mod_rs = next(f for f in files if f.path.name == "mod.rs")
        assert "use sdl3_sys::{metadata::" in mod_rs.content

    def test_output_dir(self, config, tmp_path):
        assert MetadataGenerator(config).get_output_dir() == tmp_path / "out" / "metadata"


class TestEmptyModel:
    """Test generation for models without metadata."""

    def test_only_mod_rs(self, config):
        model = Model()
        model.modules["stdinc"] = ModuleModel("stdinc")
        files = MetadataGenerator(config).generate(model)
        assert [f.path.name for f in files] == ["mod.rs"]
        assert "pub const HINTS: &[&Hint] = &[\n];" in files[0].content

    def test_opaque_struct_only(self, config):
        model = Model()
        mm = model.modules["foo"] = ModuleModel("foo")
        mm.structs.append(Struct("foo", "SDL_Foo", "struct", opaque=True))
        files = MetadataGenerator(config).generate(model)
        assert [f.path.name for f in files] == ["mod.rs"]
        assert "pub const STRUCTS: &[&Struct] = &[\n];" in files[0].content

    def test_platform_specific_structs(self, config):
        model = Model()
        mm = model.modules["foo"] = ModuleModel("foo")
        mm.structs.append(Struct("foo", "SDL_Handle", "struct", fields=[Field("win", "void *")], cfg="windows"))
        mm.structs.append(Struct("foo", "SDL_Handle", "union", fields=[Field("fd", "int")], cfg="not(windows)"))
        files = {f.path.name: f.content for f in MetadataGenerator(config).generate(model)}
        text = files["foo.rs"]
        assert "\n#[cfg(windows)]\npub const METADATA_SDL_Handle: Struct = Struct {\n" in text
        assert "\n#[cfg(not(windows))]\npub const METADATA_SDL_Handle: Struct = Struct {\n" in text
        assert "    kind: StructKind::Union," in text
        assert '            ty: "void *",' in text
        assert (
            "    #[cfg(windows)]\n"
            "    &foo::METADATA_SDL_Handle,\n"
            "    #[cfg(not(windows))]\n"
            "    &foo::METADATA_SDL_Handle,\n"
        ) in files["mod.rs"]

    def test_value_without_short_name(self, config):
        mm = ModuleModel("foo")
        group = Group("foo", GroupKind.ENUM, "SDL_Foo", "Foo")
        group.values.append(GroupValue("SDL_FOO_", ""))
        mm.groups.append(group)
        with pytest.raises(EmitError, match="group value without a short name"):
            MetadataGenerator(config).generate_module(mm)
