from folio_cms.models.result import ErrorKind
from folio_cms.services import categories


def _ids():
    return [c["id"] for c in categories.list_categories()]


def test_create_derives_id_and_order():
    a = categories.create_category("Street Photography").value
    b = categories.create_category("Design", color="#000000").value
    assert a["id"] == "street-photography"
    assert a["label"] == a["name"] == "Street Photography"
    assert a["color"] == "#64748B"
    assert (a["order"], b["order"]) == (0, 1)
    assert b["color"] == "#000000"


def test_duplicate_category_conflicts():
    categories.create_category("Design")
    assert categories.create_category("design").kind == ErrorKind.CONFLICT


def test_blank_name_is_invalid():
    assert categories.create_category("   ").kind == ErrorKind.VALIDATION


def test_update_keeps_name_and_label_in_sync():
    categories.create_category("Design")
    updated = categories.update_category("design", {"label": "Graphic Design", "showOnHomepage": False}).value
    assert updated["name"] == updated["label"] == "Graphic Design"
    assert updated["showOnHomepage"] is False
    assert categories.update_category("ghost", {"name": "x"}).kind == ErrorKind.NOT_FOUND


def test_delete_category():
    categories.create_category("Design")
    assert categories.delete_category("design").ok
    assert categories.delete_category("design").kind == ErrorKind.NOT_FOUND


def test_reorder_full_list():
    for name in ("c1", "c2", "c3"):
        categories.create_category(name)
    categories.reorder_categories(["c3", "c1", "c2"])
    assert _ids() == ["c3", "c1", "c2"]
    assert [c["order"] for c in categories.list_categories()] == [0, 1, 2]


def test_reorder_partial_list_appends_the_rest_in_previous_order():
    for name in ("c1", "c2", "c3", "c4"):
        categories.create_category(name)
    result = categories.reorder_categories(["c4", "unknown", "c2"])
    assert [c["id"] for c in result] == ["c4", "c2", "c1", "c3"]
