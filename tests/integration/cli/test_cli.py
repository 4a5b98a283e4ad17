"""Integration tests for the render, stream, and repair commands"""

from typer.testing import CliRunner

from mdstream.cli.cli import app


runner = CliRunner()


def test_render_cmd_writes_json(tmp_path):
    """render writes one .blocks.json per markdown file."""
    (tmp_path / "hello.md").write_text("# Hello\n\nWorld\n")
    result = runner.invoke(app, ["render", "hello.md", "--out-dir", str(tmp_path / "dist")])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "dist" / "hello.blocks.json").exists()
    assert "Rendered 1 document(s)" in result.output


def test_render_cmd_uses_config_output_dir(tmp_path):
    (tmp_path / "config.yaml").write_text("output_dir: out\n")
    (tmp_path / "hello.md").write_text("Hello **world\n")
    result = runner.invoke(app, ["render", "hello.md", "--no-repair"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "out" / "hello.blocks.json").exists()


def test_render_cmd_missing_path_fails():
    result = runner.invoke(app, ["render", "nowhere"])
    assert result.exit_code == 1
    assert "Error: No markdown files found" in result.output


def test_render_cmd_invalid_config_fails(tmp_path):
    (tmp_path / "config.yaml").write_text("chunk_size: [\n")
    result = runner.invoke(app, ["render", "."])
    assert result.exit_code == 1
    assert "Invalid config.yaml" in result.output


def test_stream_cmd_reports_match(tmp_path):
    (tmp_path / "doc.md").write_text("# Title\n\nSome *text*.\n\n- a\n- b\n")
    result = runner.invoke(app, ["stream", "doc.md", "--chunk-size", "4"])
    assert result.exit_code == 0, result.output
    assert "ok" in result.output
    assert "0 mismatch(es)" in result.output
    assert "blocks per update:" in result.output


def test_repair_cmd_argument():
    result = runner.invoke(app, ["repair", "This is **bold"])
    assert result.exit_code == 0
    assert result.output == "This is **bold**\n"


def test_repair_cmd_stdin():
    result = runner.invoke(app, ["repair"], input="```py\nx = 1")
    assert result.exit_code == 0
    assert result.output == "```py\nx = 1\n```\n"
