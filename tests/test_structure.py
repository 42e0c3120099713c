"""Test that the package structure is correct."""


def test_directories_exist(project_root):
    """Test that all expected directories exist."""
    assert (project_root / "core").exists()
    assert (project_root / "models").exists()
    assert (project_root / "commands").exists()
    assert (project_root / "tests").exists()


def test_init_files_exist(project_root):
    """Test that all __init__.py files exist."""
    assert (project_root / "core" / "__init__.py").exists()
    assert (project_root / "models" / "__init__.py").exists()
    assert (project_root / "commands" / "__init__.py").exists()


def test_main_script_exists(project_root):
    """Test that main entry point exists."""
    assert (project_root / "huestatus.py").exists()


def test_console_script_declared(project_root):
    """Test that the huestatus command points at the click group."""
    pyproject = (project_root / "pyproject.toml").read_text()
    assert 'huestatus = "huestatus:cli"' in pyproject
