"""Tests for the public storage symlink utility and its entry points."""
import importlib.util
import os
from pathlib import Path

import pytest

from classifieds.utils.storage_link import (
    StorageLinkError, link_public_storage, render_failure, render_report, storage_paths
)

SCRIPT = Path(__file__).resolve().parent.parent / 'scripts' / 'fix_storage_link.py'


@pytest.fixture
def document_root(tmp_path):
    (tmp_path / 'storage' / 'app' / 'public').mkdir(parents=True)
    return tmp_path


def _load_script():
    spec = importlib.util.spec_from_file_location('fix_storage_link', SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_creates_link(document_root):
    result = link_public_storage(document_root)
    target, link = storage_paths(document_root)
    assert result.created
    assert link.is_symlink()
    assert os.path.realpath(link) == os.path.realpath(target)


def test_existing_link_is_reported(document_root):
    link_public_storage(document_root)
    result = link_public_storage(document_root)
    assert result.created is False
    assert render_report(result).startswith('Storage already linked!')


def test_link_elsewhere_needs_force(document_root, tmp_path_factory):
    elsewhere = tmp_path_factory.mktemp('elsewhere')
    _target, link = storage_paths(document_root)
    link.parent.mkdir(parents=True)
    link.symlink_to(elsewhere, target_is_directory=True)

    with pytest.raises(StorageLinkError):
        link_public_storage(document_root)
    assert link_public_storage(document_root, force=True).created
    assert os.path.realpath(link) == os.path.realpath(document_root / 'storage' / 'app' / 'public')


def test_real_directory_is_never_replaced(document_root):
    _target, link = storage_paths(document_root)
    link.mkdir(parents=True)
    (link / 'keep.txt').write_text('data')
    with pytest.raises(StorageLinkError):
        link_public_storage(document_root, force=True)
    assert (link / 'keep.txt').exists()


def test_missing_target(tmp_path):
    with pytest.raises(StorageLinkError):
        link_public_storage(tmp_path)


def test_report_formats(document_root):
    result = link_public_storage(document_root)
    text = render_report(result)
    assert text.splitlines()[0] == 'Storage linked successfully!'
    assert f'Link: {result.link}' in text
    assert '<br>' in render_report(result, html=True)
    assert render_failure(StorageLinkError('boom'), html=True) == 'Failed to create symlink!<br>boom'


def test_script_main(document_root, capsys):
    script = _load_script()
    assert script.main(['--document-root', str(document_root)]) == 0
    assert 'Storage linked successfully!' in capsys.readouterr().out
    assert script.main(['--document-root', str(document_root / 'nowhere')]) == 1
    assert 'Failed to create symlink!' in capsys.readouterr().out


def test_flask_cli_command(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['storage-link'])
    assert result.exit_code == 0
    assert 'Storage linked successfully!' in result.output
    assert Path(app.config['DOCUMENT_ROOT'], 'public', 'storage').is_symlink()
