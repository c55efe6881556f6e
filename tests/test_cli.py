"""Tests for the command line interface.

Tests cover:
- verify exit codes for plausible, failing and malformed definitions
- show output
- lobe PNG output
- Configuration errors
"""

from pathlib import Path

import pytest
from PIL import Image as PILImage

from brdfkit import __version__
from brdfkit.cli import build_parser, main

EXAMPLE_DEFINITIONS = Path(__file__).parent.parent / "examples" / "definitions"

MATTE = {
    "alias": "Matte",
    "type": "simple",
    "components": [{"name": "LambertianBRDF", "reflectivity": [0.5, 0.5, 0.5]}],
}

HOT = {
    "alias": "Hot",
    "type": "simple",
    "components": [{"name": "PhongSpecularBRDF", "specularReflectivity": [1, 1, 1], "specularExponent": 0}],
}


class TestParser:
    """Tests for argument parsing."""

    def test_version(self, capsys):
        """Test --version prints the package version."""
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_command_required(self):
        """Test a subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_verify_defaults(self):
        """Test verify leaves sampling options to the configuration."""
        args = build_parser().parse_args(["verify"])
        assert args.paths == []
        assert args.incoming is None
        assert args.samples is None
        assert args.mode is None


class TestVerify:
    """Tests for the verify command."""

    def test_plausible_definition(self, write_definition, capsys):
        """Test a plausible model exits 0 and is reported."""
        path = write_definition("Matte.json", MATTE)
        assert main(["verify", str(path)]) == 0
        out = capsys.readouterr().out
        assert "Matte" in out
        assert "plausible" in out

    def test_failing_definition(self, write_definition, capsys):
        """Test an energy violation exits 1."""
        matte = write_definition("Matte.json", MATTE)
        hot = write_definition("Hot.json", HOT)
        assert main(["verify", str(matte), str(hot)]) == 1
        assert "violates energy_conservation" in capsys.readouterr().out

    def test_directory_argument(self, tmp_path, write_definition):
        """Test a folder argument loads every definition in it."""
        write_definition("Matte.json", MATTE)
        assert main(["verify", str(tmp_path), "--samples", "256", "--workers", "2"]) == 0

    def test_malformed_file(self, write_definition, capsys):
        """Test a malformed file is reported and exits 1."""
        matte = write_definition("Matte.json", MATTE)
        broken = write_definition("Broken.json", "{not json")
        assert main(["verify", str(matte), str(broken)]) == 1
        assert "failed to load" in capsys.readouterr().out

    def test_convergence_mode(self, write_definition):
        """Test the convergence mode can be selected."""
        path = write_definition("Matte.json", MATTE)
        assert main(["verify", str(path), "--mode", "convergence"]) == 0

    def test_diagnostics_csv(self, tmp_path, write_definition):
        """Test --diagnostics writes a CSV file."""
        path = write_definition("Matte.json", MATTE)
        csv_path = tmp_path / "diagnostics.csv"
        assert main(["verify", str(path), "--diagnostics", str(csv_path)]) == 0
        assert csv_path.read_text().splitlines()[0].startswith("event")

    def test_invalid_sample_count(self, write_definition, capsys):
        """Test a zero sample count is reported as an error."""
        path = write_definition("Matte.json", MATTE)
        assert main(["verify", str(path), "--samples", "0"]) == 2
        assert "Error" in capsys.readouterr().err

    def test_example_folder(self, capsys):
        """Test the shipped custom examples: Overbright fails, so exit 1."""
        assert main(["verify", str(EXAMPLE_DEFINITIONS / "default"), str(EXAMPLE_DEFINITIONS / "custom")]) == 1
        out = capsys.readouterr().out
        assert "Overbright" in out
        assert "GlazedClay" in out


class TestShowAndLobe:
    """Tests for the show and lobe commands."""

    def test_show(self, write_definition, capsys):
        """Test show prints the parameters and the definition."""
        path = write_definition("Matte.json", MATTE)
        assert main(["show", "Matte", "-d", str(path)]) == 0
        out = capsys.readouterr().out
        assert "Reflectivity" in out
        assert '"alias": "Matte"' in out

    def test_show_unknown_alias(self, write_definition, capsys):
        """Test show exits 1 for an unknown alias."""
        path = write_definition("Matte.json", MATTE)
        assert main(["show", "Missing", "-d", str(path)]) == 1
        assert "Matte" in capsys.readouterr().out

    def test_lobe(self, tmp_path):
        """Test lobe writes a PNG of the requested size."""
        output = tmp_path / "phong.png"
        code = main(
            [
                "lobe",
                "Phong",
                "-d",
                str(EXAMPLE_DEFINITIONS / "default"),
                "--output",
                str(output),
                "--resolution",
                "32",
            ]
        )
        assert code == 0
        with PILImage.open(output) as img:
            assert img.size == (32, 32)


class TestConfig:
    """Tests for --config handling."""

    def test_config_applied(self, tmp_path, write_definition):
        """Test a configuration file is read."""
        config = tmp_path / "brdfkit.toml"
        config.write_text("[verifier]\nsamples_per_test = 128\n", encoding="utf-8")
        path = write_definition("Matte.json", MATTE)
        assert main(["--config", str(config), "verify", str(path)]) == 0

    def test_invalid_config(self, tmp_path, capsys):
        """Test an invalid configuration exits 2."""
        config = tmp_path / "brdfkit.toml"
        config.write_text("[render]\nwidth = 10\n", encoding="utf-8")
        assert main(["--config", str(config), "verify"]) == 2
        assert "invalid configuration" in capsys.readouterr().err

    def test_missing_config(self, tmp_path):
        """Test a missing configuration file exits 2."""
        assert main(["--config", str(tmp_path / "absent.toml"), "verify"]) == 2

    def test_configured_folders(self, tmp_path, write_definition, capsys):
        """Test verify without paths loads the configured folders."""
        write_definition("Matte.json", MATTE, folder="defs/default")
        config = tmp_path / "brdfkit.toml"
        config.write_text('[library]\ndefinitions_dir = "defs"\n', encoding="utf-8")
        assert main(["--config", str(config), "verify"]) == 0
        assert "Matte" in capsys.readouterr().out
