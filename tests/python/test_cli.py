"""
Tests for configuration loading and the command-line interface.
"""

from pathlib import Path

import pytest

from sdlgen.cli import main
from sdlgen.config import CONFIG_FILENAME, DEFAULT_SKIP_MODULES, ConfigError, GeneratorConfig

CONFIG_TOML = """\
[paths]
headers_dir = "include"
output_dir = "out/generated"
metadata_dir = "out/metadata"
"""


@pytest.fixture
def config_file(tmp_path, header_dir):
    path = tmp_path / CONFIG_FILENAME
    path.write_text(CONFIG_TOML)
    return path


class TestConfig:
    """Test configuration loading."""

    def test_defaults(self, tmp_path):
        config = GeneratorConfig(project_root=tmp_path)
        assert config.headers_dir_abs == tmp_path / "SDL" / "include" / "SDL3"
        assert config.output_dir_abs == tmp_path / "src" / "generated"
        assert config.metadata_dir_abs == tmp_path / "src" / "metadata" / "generated"
        assert config.generation.metadata
        assert config.generation.crate_name == "crate"
        assert config.generation.skip_modules == DEFAULT_SKIP_MODULES

    def test_string_root(self, tmp_path):
        assert GeneratorConfig(project_root=str(tmp_path)).project_root == tmp_path

    def test_from_file(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text(CONFIG_TOML + (
            "\n[generation]\n"
            'crate_name = "sdl3_sys"\n'
            "metadata = false\n"
            'skip_modules = ["test*"]\n'
            'external_types = ["HWND"]\n'
        ))
        config = GeneratorConfig.from_file(path)
        assert config.project_root == tmp_path
        assert config.headers_dir_abs == tmp_path / "include"
        assert config.generation.crate_name == "sdl3_sys"
        assert not config.generation.metadata
        assert config.generation.skip_modules == ["test*"]
        assert config.generation.external_types == ["HWND"]

    def test_absolute_paths_kept(self, tmp_path):
        config = GeneratorConfig(project_root=tmp_path / "elsewhere")
        assert config.resolve_path(tmp_path / "abs") == tmp_path / "abs"

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[paths\n")
        with pytest.raises(ConfigError, match=CONFIG_FILENAME):
            GeneratorConfig.from_file(path)

    def test_find_config_in_parent(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(CONFIG_TOML)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert GeneratorConfig.find_config(nested) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_load_discovers_config(self, tmp_path, monkeypatch):
        (tmp_path / CONFIG_FILENAME).write_text(CONFIG_TOML)
        monkeypatch.chdir(tmp_path)
        config = GeneratorConfig.load()
        assert config.paths.headers_dir == Path("include")

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="config file not found"):
            GeneratorConfig.load(tmp_path / "missing.toml")


class TestCli:
    """Test the sdlgen command."""

    def test_generate(self, config_file, tmp_path, capsys):
        assert main(["--config", str(config_file), "generate"]) == 0
        out = capsys.readouterr().out
        assert "Generated 10 files from 5 headers" in out
        assert (tmp_path / "out" / "generated" / "video.rs").is_file()
        assert (tmp_path / "out" / "metadata" / "mod.rs").is_file()

    def test_check_writes_nothing(self, config_file, tmp_path, capsys):
        assert main(["--config", str(config_file), "check"]) == 0
        assert "Checked 5 headers (10 files would be written)" in capsys.readouterr().out
        assert not (tmp_path / "out").exists()

    def test_list_modules(self, config_file, capsys):
        assert main(["--config", str(config_file), "list-modules"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            f"{'init':<24} SDL_init.h",
            f"{'joystick':<24} SDL_joystick.h",
            f"{'power':<24} SDL_power.h",
            f"{'stdinc':<24} SDL_stdinc.h",
            f"{'video':<24} SDL_video.h",
        ]

    def test_output_overrides(self, config_file, tmp_path):
        out = tmp_path / "custom"
        assert main(["--config", str(config_file), "generate", "-o", str(out), "--no-metadata"]) == 0
        assert (out / "mod.rs").is_file()
        assert not (tmp_path / "out").exists()

    def test_metadata_output_override(self, config_file, tmp_path):
        meta = tmp_path / "meta"
        assert main(["--config", str(config_file), "generate", "--metadata-output", str(meta)]) == 0
        assert (meta / "power.rs").is_file()

    def test_missing_header_dir(self, config_file, tmp_path, capsys):
        missing = tmp_path / "nothing"
        assert main(["--config", str(config_file), "generate", "-i", str(missing)]) == 1
        assert "Header directory not found" in capsys.readouterr().err

    def test_no_headers(self, config_file, tmp_path, capsys):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(["--config", str(config_file), "generate", "-i", str(empty)]) == 1
        assert "No header files found." in capsys.readouterr().out
        assert not (tmp_path / "out").exists()

    def test_parse_error_reported(self, config_file, header_dir, tmp_path, capsys):
        (header_dir / "SDL_broken.h").write_text('#define SDL_BROKEN "abc\n')
        assert main(["--config", str(config_file), "generate"]) == 1
        err = capsys.readouterr().err
        assert "SDL_broken.h:1:" in err
        assert "error: unterminated string literal" in err
        assert not (tmp_path / "out").exists()

    def test_model_error_reported(self, config_file, header_dir, capsys):
        (header_dir / "SDL_foo.h").write_text("extern SDL_DECLSPEC void SDLCALL SDL_Foo(SDL_Missing *m);\n")
        assert main(["--config", str(config_file), "check"]) == 1
        assert "error: foo: `SDL_Foo`: unresolved type `SDL_Missing`" in capsys.readouterr().err

    def test_missing_config(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.toml"), "list-modules"]) == 1
        assert "error: config file not found" in capsys.readouterr().err

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])
