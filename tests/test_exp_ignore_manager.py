import json

from exp_ignore_manager import get_ignored_set, is_ignored, reload, toggle_ignore


def test_toggle_ignore(ignore_file):
    assert toggle_ignore(1, 100) is True
    assert is_ignored(1, 100)
    assert not is_ignored(2, 100)

    assert toggle_ignore(1, 100) is False
    assert not is_ignored(1, 100)
    assert get_ignored_set(1) == set()


def test_guilds_are_separate(ignore_file):
    toggle_ignore(1, 100)
    toggle_ignore(1, 200)
    toggle_ignore(2, 300)

    assert get_ignored_set(1) == {100, 200}
    assert get_ignored_set(2) == {300}


def test_corrupt_file_means_nothing_ignored(ignore_file):
    ignore_file.write_text("[[[", encoding="utf-8")

    assert get_ignored_set(1) == set()
    assert toggle_ignore(1, 100) is True
    assert is_ignored(1, 100)


def test_lookups_use_the_cached_list(ignore_file):
    toggle_ignore(1, 100)
    ignore_file.write_text(json.dumps({"1": [200]}), encoding="utf-8")

    # 메시지마다 파일을 다시 읽지 않는다
    assert is_ignored(1, 100)
    assert not is_ignored(1, 200)

    reload()
    assert is_ignored(1, 200)
    assert not is_ignored(1, 100)


def test_toggle_refreshes_the_cache(ignore_file):
    assert not is_ignored(1, 100)

    toggle_ignore(1, 100)

    assert is_ignored(1, 100)
    assert json.loads(ignore_file.read_text(encoding="utf-8")) == {"1": [100]}
