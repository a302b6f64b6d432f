import pytest

from folio_cms.media_repair import main
from folio_cms.services import entries
from folio_cms.services.media import get_media


@pytest.fixture
def orphaned_post(blob_storage):
    blob_storage.put(b"data", "uploads/originals/harbor-1a2b.jpg", "image/jpeg")
    entries.create_entry("posts", {"title": "Harbor", "media": ["harbor", "gone-for-good"]})


def test_diagnose_lists_affected_posts(orphaned_post, capsys):
    assert main(["diagnose"]) == 0
    out = capsys.readouterr().out
    assert "Orphaned: 2" in out
    assert "Harbor (harbor)" in out
    assert "gone-for-good" in out


def test_fix_without_apply_writes_nothing(orphaned_post, capsys):
    assert main(["fix"]) == 0
    out = capsys.readouterr().out
    assert "harbor -> /uploads/originals/harbor-1a2b.jpg" in out
    assert "re-run with --apply" in out
    assert get_media("harbor") is None


def test_fix_apply_creates_records(orphaned_post, capsys):
    assert main(["fix", "--apply", "--id", "harbor"]) == 0
    out = capsys.readouterr().out
    assert "Created 1" in out
    item = get_media("harbor")
    assert item["mime"] == "image/jpeg"
    assert get_media("gone-for-good") is None


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        main(["explode"])
