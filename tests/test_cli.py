"""Tests for the ngormgen command line."""

import json

from ngorm.cli import create_parser, main


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Should default to the current directory and no overrides."""
        args = create_parser().parse_args([])
        assert args.paths == []
        assert args.type_names is None
        assert args.stdout is False

    def test_flags(self):
        """Should parse every generator flag."""
        args = create_parser().parse_args(
            ["--type", "A,B", "-o", "out.py", "--trim-prefix", "X", "--line-comment", "src"]
        )
        assert args.type_names == "A,B"
        assert args.output == "out.py"
        assert args.trim_prefix == "X"
        assert args.line_comment is True
        assert args.paths == ["src"]


class TestMain:
    """Tests for running the generator from the command line."""

    def test_writes_default_output(self, model_package, social_source):
        """Should write ngorm_generate.py beside the sources."""
        directory = model_package({"models": social_source})
        assert main([str(directory)]) == 0

        output = directory / "ngorm_generate.py"
        assert output.exists()
        first_line = output.read_text(encoding="utf-8").splitlines()[0]
        assert first_line == f'# Code generated by "ngormgen {directory}"; DO NOT EDIT.'

    def test_output_option(self, model_package, social_source, tmp_path):
        """Should write to the requested file."""
        directory = model_package({"models": social_source})
        target = tmp_path / "mappers.py"
        assert main(["--output", str(target), str(directory)]) == 0
        assert target.exists()
        assert not (directory / "ngorm_generate.py").exists()

    def test_file_arguments(self, model_package, social_source):
        """Should accept files from one directory."""
        directory = model_package({"models": social_source, "extra": "X = 1\n"})
        assert main([str(directory / "models.py")]) == 0
        assert (directory / "ngorm_generate.py").exists()

    def test_stdout(self, model_package, social_source, capsys):
        """Should print instead of writing."""
        directory = model_package({"models": social_source})
        assert main(["--stdout", str(directory)]) == 0
        assert "CREATE TAG IF NOT EXISTS person" in capsys.readouterr().out
        assert not (directory / "ngorm_generate.py").exists()

    def test_unsupported_type_exits_without_writing(self, model_package, capsys):
        """A fatal error exits 1 and leaves no output file."""
        directory = model_package(
            {"models": "from ngorm.base import Tag\n\nclass Flag(Tag):\n    on: bool\n"}
        )
        assert main([str(directory)]) == 1
        assert not (directory / "ngorm_generate.py").exists()
        assert "bool" in capsys.readouterr().out

    def test_missing_path(self, tmp_path, capsys):
        """A missing path is a configuration error."""
        assert main([str(tmp_path / "nope")]) == 1
        assert "Path not found" in capsys.readouterr().out

    def test_config_file(self, model_package, social_source, tmp_path):
        """Should read settings from a JSON config file."""
        directory = model_package({"models": social_source})
        config_file = tmp_path / "ngorm.json"
        config_file.write_text(json.dumps({"type_names": ["Person"]}), encoding="utf-8")

        assert main(["--config", str(config_file), str(directory)]) == 0
        code = (directory / "ngorm_generate.py").read_text(encoding="utf-8")
        assert "class Person(" in code
        assert "class Follow(" not in code

    def test_invalid_config_file(self, tmp_path, capsys):
        """An unreadable config file exits 1."""
        config_file = tmp_path / "bad.json"
        config_file.write_text("{not json", encoding="utf-8")
        assert main(["--config", str(config_file), str(tmp_path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().out
