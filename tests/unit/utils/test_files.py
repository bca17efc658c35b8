from pathlib import Path

import titular.utils.files
from titular.utils.files import get_logs_path, get_project_root, init_titular


def test_get_project_root(monkeypatch, tmp_path):
    project_root = tmp_path / 'project'
    project_root.mkdir()
    (project_root / 'pyproject.toml').touch()

    sub_dir = project_root / 'titular' / 'deep' / 'dir'
    sub_dir.mkdir(parents=True)

    monkeypatch.setattr(Path, 'cwd', lambda: sub_dir)

    root = get_project_root()
    assert root == project_root
    assert (root / 'pyproject.toml').exists()


def test_get_project_root_default(monkeypatch, tmp_path):
    monkeypatch.setattr(Path, 'cwd', lambda: tmp_path)

    root = get_project_root()
    assert root == tmp_path


def test_init_titular(monkeypatch, tmp_path):
    monkeypatch.setattr(titular.utils.files, 'get_project_root', lambda: tmp_path)

    storage = init_titular('recipes')

    workspace = tmp_path / '.titular'
    assert storage == workspace / 'recipes'
    assert storage.is_dir()
    assert get_logs_path().is_dir()
    assert (workspace / '.gitignore').read_text() == '# Automatically created by titular\n*\n'
