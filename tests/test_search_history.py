from search_history import MAX_ENTRIES, SearchHistory


def test_missing_file_is_empty(tmp_path):
    assert SearchHistory(tmp_path / "history.json").load() == []


def test_add_puts_latest_first_and_dedupes(tmp_path):
    history = SearchHistory(tmp_path / "history.json")
    history.add("daft punk")
    history.add("justice")
    assert history.add(" daft punk ") == ["daft punk", "justice"]
    # Persisted across instances
    assert SearchHistory(tmp_path / "history.json").load() == ["daft punk", "justice"]


def test_add_caps_entries(tmp_path):
    history = SearchHistory(tmp_path / "history.json")
    for i in range(MAX_ENTRIES + 5):
        history.add(f"term {i}")
    terms = history.load()
    assert len(terms) == MAX_ENTRIES
    assert terms[0] == f"term {MAX_ENTRIES + 4}"


def test_blank_term_ignored(tmp_path):
    history = SearchHistory(tmp_path / "history.json")
    history.add("air")
    assert history.add("   ") == ["air"]


def test_clear(tmp_path):
    history = SearchHistory(tmp_path / "history.json")
    history.add("air")
    history.clear()
    assert history.load() == []


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")
    assert SearchHistory(path).load() == []

    path.write_text('{"terms": ["air"]}', encoding="utf-8")
    assert SearchHistory(path).load() == []
