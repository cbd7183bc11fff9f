from typer.testing import CliRunner

from treeplug.cli import app
from treeplug.modules import ModuleKind, new_module_source

runner = CliRunner()


def test_new_prints_template():
    result = runner.invoke(app, ["new", "plotting", "--name", "Heatmap"])
    assert result.exit_code == 0
    assert "class MyModule" in result.output
    assert "ModuleKind.PLOTTING" in result.output


def test_new_writes_file_then_check_passes(tmp_path):
    target = tmp_path / "heatmap.py"
    result = runner.invoke(app, ["new", "coordinate", "--name", "Heatmap", "--output", str(target)])
    assert result.exit_code == 0
    assert target.exists()

    result = runner.invoke(app, ["check", str(target)])
    assert result.exit_code == 0
    assert "Heatmap" in result.output


def test_new_refuses_to_overwrite(tmp_path):
    target = tmp_path / "exists.py"
    target.write_text("x = 1\n")
    result = runner.invoke(app, ["new", "action", "--output", str(target)])
    assert result.exit_code == 1
    assert target.read_text() == "x = 1\n"


def test_check_reports_errors(tmp_path):
    target = tmp_path / "broken.py"
    target.write_text("def broken(:\n")

    result = runner.invoke(app, ["check", str(target)])
    assert result.exit_code == 1
    assert "SyntaxError" in result.output


def test_check_missing_file(tmp_path):
    result = runner.invoke(app, ["check", str(tmp_path / "missing.py")])
    assert result.exit_code == 1


def test_list_filters_directory(tmp_path):
    (tmp_path / "heatmap.py").write_text(new_module_source(ModuleKind.PLOTTING, name="Heatmap"))
    (tmp_path / "scatter.py").write_text(new_module_source(ModuleKind.PLOTTING, name="Scatter"))

    result = runner.invoke(app, ["list", str(tmp_path), "--kind", "plotting", "--filter", "heat"])
    assert result.exit_code == 0
    assert "Heatmap" in result.output
    assert "Scatter" not in result.output


def test_list_empty_directory(tmp_path):
    result = runner.invoke(app, ["list", str(tmp_path)])
    assert result.exit_code == 0
    assert "No matching modules" in result.output


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "treeplug v" in result.output
