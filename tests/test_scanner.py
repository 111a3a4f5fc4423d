"""
Tests for the probe runner (toolchain_inventory/scanner.py).
"""

import subprocess
from unittest.mock import MagicMock, patch

from toolchain_inventory.models import PATH_UNRESOLVED, Platform, ToolType
from toolchain_inventory.parser import parse_environment_transcript
from toolchain_inventory.scanner import (
    POSIX_PROBES,
    WINDOWS_PROBES,
    Probe,
    build_transcript,
    is_error_output,
    probes_for,
    run_probe,
    scan_environment,
)


def completed(stdout, returncode=0):
    proc = MagicMock()
    proc.stdout = stdout
    proc.returncode = returncode
    return proc


class TestProbeTables:
    """Tests for the per-platform probe tables."""

    def test_probes_for(self):
        """Test table selection by platform."""
        assert probes_for(Platform.POSIX) is POSIX_PROBES
        assert probes_for("windows") is WINDOWS_PROBES

    def test_path_lookups_follow_version_probes(self):
        """Test every path lookup directly follows a version probe."""
        for table in (POSIX_PROBES, WINDOWS_PROBES):
            for idx, probe in enumerate(table):
                if probe.prefix:
                    assert idx > 0
                    assert not table[idx - 1].prefix

    def test_windows_has_py_launcher(self):
        """Test the Windows table enumerates the py launcher."""
        assert any(p.command == "py -0p" for p in WINDOWS_PROBES)


class TestRunProbe:
    """Tests for run_probe()."""

    def test_output_cleaned(self):
        """Test ANSI sequences and whitespace are removed."""
        with patch("toolchain_inventory.scanner.subprocess.run",
                   return_value=completed("\x1b[32mv18.17.0\x1b[0m\n")):
            assert run_probe(Probe("node -v")) == "v18.17.0"

    def test_posix_login_shell(self, monkeypatch):
        """Test POSIX probes run through the user's login shell."""
        monkeypatch.setenv("SHELL", "/bin/zsh")
        with patch("toolchain_inventory.scanner.subprocess.run", return_value=completed("")) as mock_run:
            run_probe(Probe("go version"), Platform.POSIX, timeout=3)

        args, kwargs = mock_run.call_args
        assert args[0] == ["/bin/zsh", "-l", "-c", "go version"]
        assert kwargs["shell"] is False
        assert kwargs["timeout"] == 3
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["env"]["TERM"] == "dumb"

    def test_windows_shell_string(self):
        """Test Windows probes run as a shell string."""
        with patch("toolchain_inventory.scanner.subprocess.run", return_value=completed("")) as mock_run:
            run_probe(Probe("where java"), "windows")

        args, kwargs = mock_run.call_args
        assert args[0] == "where java"
        assert kwargs["shell"] is True

    def test_missing_binary(self):
        """Test a missing shell yields no output."""
        with patch("toolchain_inventory.scanner.subprocess.run", side_effect=FileNotFoundError("zsh")):
            assert run_probe(Probe("node -v")) == ""

    def test_timeout(self):
        """Test a hung probe yields no output."""
        with patch("toolchain_inventory.scanner.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("node -v", 5)):
            assert run_probe(Probe("node -v")) == ""

    def test_non_zero_exit_keeps_output(self):
        """Test output of a failing command is still returned."""
        with patch("toolchain_inventory.scanner.subprocess.run",
                   return_value=completed("zsh: command not found: go\n", returncode=127)):
            assert run_probe(Probe("go version")) == "zsh: command not found: go"


class TestErrorOutput:
    """Tests for is_error_output()."""

    def test_not_found(self):
        """Test shell lookup failures."""
        assert is_error_output("zsh: command not found: go")
        assert is_error_output("'go' is not recognized as an internal or external command")
        assert is_error_output("ls: /Users/x/sdk: No such file or directory")

    def test_first_line_only(self):
        """Test package names containing 'error' later in a listing."""
        assert not is_error_output("go 1.21.4\nlibgpg-error 1.47")

    def test_empty(self):
        """Test empty output is not an error."""
        assert not is_error_output("")


class TestBuildTranscript:
    """Tests for build_transcript()."""

    def test_headers_and_prefix(self):
        """Test command headers and path prefixes."""
        transcript = build_transcript([
            (Probe("go version"), "go version go1.21.4 darwin/arm64"),
            (Probe("which go", prefix="Path: "), "/usr/local/go/bin/go\n/opt/go/bin/go"),
        ])

        assert transcript == (
            "$ go version\n"
            "go version go1.21.4 darwin/arm64\n"
            "$ which go\n"
            "Path: /usr/local/go/bin/go\n"
        )

    def test_failed_probes_skipped(self):
        """Test empty and error outputs are left out."""
        transcript = build_transcript([
            (Probe("java -version"), ""),
            (Probe("which java", prefix="Path: "), "java not found"),
            (Probe("node -v"), "v18.17.0"),
        ])
        assert transcript == "$ node -v\nv18.17.0\n"

    def test_nothing_usable(self):
        """Test empty transcript when every probe failed."""
        assert build_transcript([(Probe("go version"), "")]) == ""

    def test_path_lookup_dropped_after_failed_version_probe(self):
        """Test a path lookup is kept only after its own version probe."""
        table = {probe.command: probe for probe in WINDOWS_PROBES}
        transcript = build_transcript([
            (table["java -version"],
             'java version "1.8.0_351"\n'
             "Java(TM) SE Runtime Environment (build 1.8.0_351-b10)"),
            (table["where java"], "INFO: Could not find files for the given pattern(s)."),
            (table["python --version"],
             "Python was not found; run without arguments to install from the Microsoft Store"),
            (table["where python"], r"C:\Users\x\AppData\Local\Microsoft\WindowsApps\python.exe"),
        ])

        assert "WindowsApps" not in transcript
        assert "Path:" not in transcript

        records = parse_environment_transcript(transcript, Platform.WINDOWS)
        assert [(r.tool_type, r.version, r.install_path) for r in records] == [
            (ToolType.JAVA, "1.8.0_351", PATH_UNRESOLVED),
        ]

    def test_nvm_folder_listing_not_active(self):
        """Test nvm install folders are listing entries, not active probes."""
        table = {probe.label: probe for probe in POSIX_PROBES}
        listing = table["NVM Versions"]
        assert listing.command.endswith("| sed 's/^v//'")

        transcript = build_transcript([
            (table["Node Version"], "v20.5.0"),
            (table["Node Path"], "/Users/x/.nvm/versions/node/v20.5.0/bin/node"),
            # Output of the listing probe after the "v" is stripped
            (listing, "16.20.2\n18.17.0\n20.5.0"),
        ])
        records = parse_environment_transcript(transcript, Platform.POSIX)

        summary = [(r.version, r.is_active_default, r.provenance, r.install_path) for r in records]
        assert summary == [
            ("20.5.0", True, "nvm", "/Users/x/.nvm/versions/node/v20.5.0/bin/node"),
            ("16.20.2", False, "nvm", "~/.nvm/versions/node/v16.20.2"),
            ("18.17.0", False, "nvm", "~/.nvm/versions/node/v18.17.0"),
        ]


class TestScanEnvironment:
    """Tests for scan_environment()."""

    def test_transcript_in_table_order(self):
        """Test outputs are assembled in probe order regardless of completion order."""
        outputs = {
            "python3 --version": "Python 3.10.4",
            "which python3": "/usr/bin/python3",
            "go version": "zsh: command not found: go",
            "node -v": "v18.17.0",
        }
        probes = (
            Probe("python3 --version"),
            Probe("which python3", prefix="Path: "),
            Probe("go version"),
            Probe("node -v"),
        )

        def fake_run(probe, platform, timeout, verbose):
            return outputs[probe.command]

        with patch("toolchain_inventory.scanner.run_probe", side_effect=fake_run):
            transcript = scan_environment(Platform.POSIX, probes=probes, max_workers=4)

        assert transcript == (
            "$ python3 --version\nPython 3.10.4\n"
            "$ which python3\nPath: /usr/bin/python3\n"
            "$ node -v\nv18.17.0\n"
        )

        records = parse_environment_transcript(transcript)
        assert [(r.tool_type, r.version) for r in records] == [
            (ToolType.NODE, "18.17.0"),
            (ToolType.PYTHON, "3.10.4"),
        ]
        assert records[1].install_path == "/usr/bin/python3"

    def test_probe_exception_contained(self):
        """Test an unexpected probe exception only drops that probe."""
        def fake_run(probe, platform, timeout, verbose):
            if probe.command == "go version":
                raise RuntimeError("boom")
            return "v18.17.0"

        with patch("toolchain_inventory.scanner.run_probe", side_effect=fake_run):
            transcript = scan_environment(probes=(Probe("go version"), Probe("node -v")))

        assert transcript == "$ node -v\nv18.17.0\n"

    def test_default_table(self):
        """Test the platform table is used by default."""
        with patch("toolchain_inventory.scanner.run_probe", return_value="") as mock_run:
            assert scan_environment("windows") == ""
        assert mock_run.call_count == len(WINDOWS_PROBES)

    def test_no_probes(self):
        """Test an empty probe list."""
        assert scan_environment(probes=()) == ""
