from trr.diff import apply_merge_patch, create_merge_patch, create_two_way_merge_patch


def test_merge_patch_diffs_maps_and_replaces_lists():
    original = {"metadata": {"annotations": {"a": "1", "gone": "x"}}, "spec": {"rules": [1, 2]}}
    modified = {"metadata": {"annotations": {"a": "2", "new": "y"}}, "spec": {"rules": [1, 2, 3]}}
    patch = create_merge_patch(original, modified)
    assert patch == {
        "metadata": {"annotations": {"a": "2", "gone": None, "new": "y"}},
        "spec": {"rules": [1, 2, 3]},
    }
    assert apply_merge_patch(original, patch) == modified


def test_apply_merge_patch_does_not_mutate_target():
    target = {"metadata": {"name": "ing", "annotations": {"a": "1"}}}
    out = apply_merge_patch(target, {"metadata": {"annotations": {"a": None, "b": "2"}}})
    assert out == {"metadata": {"name": "ing", "annotations": {"b": "2"}}}
    assert target == {"metadata": {"name": "ing", "annotations": {"a": "1"}}}


def test_two_way_patch_reports_unchanged():
    doc = {"metadata": {"annotations": {"a": "1"}}, "spec": {"rules": []}}
    assert create_two_way_merge_patch(doc, {"spec": {"rules": []}, "metadata": {"annotations": {"a": "1"}}}) == (b"{}", False)


def test_two_way_patch_is_compact_sorted_json():
    body, changed = create_two_way_merge_patch({"b": 1, "a": 1}, {"b": 2, "a": 2})
    assert changed is True
    assert body == b'{"a":2,"b":2}'
