import pytest

from product_recommender.config import DATA_FILE, IMPLICIT_PREFERENCE_VALUE
from product_recommender.data_loader import build_recommender, build_store, load_preferences
from product_recommender.exceptions import InvalidArgumentError
from product_recommender.preferences import Preference


def _write(tmp_path, text):
    path = tmp_path / "prefs.txt"
    path.write_text(text)
    return str(path)


def test_reads_explicit_and_implicit_preferences(tmp_path):
    path = _write(tmp_path, "# comment\n1,10,4.5\n1\t11\t2\n2,10\n\n3,12,\n")

    assert load_preferences(path) == [
        Preference(1, 10, 4.5),
        Preference(1, 11, 2.0),
        Preference(2, 10, IMPLICIT_PREFERENCE_VALUE),
        Preference(3, 12, IMPLICIT_PREFERENCE_VALUE),
    ]


def test_trailing_timestamp_is_ignored(tmp_path):
    path = _write(tmp_path, "1,10,5,1700000000\n2,11,3,1700000001\n2\t12\t\t1700000002\n")

    assert load_preferences(path) == [
        Preference(1, 10, 5.0),
        Preference(2, 11, 3.0),
        Preference(2, 12, IMPLICIT_PREFERENCE_VALUE),
    ]


def test_timestamp_column_mixed_with_shorter_records(tmp_path):
    path = _write(tmp_path, "1,10\n1,11,2.0,1700000000\n")

    assert load_preferences(path) == [
        Preference(1, 10, IMPLICIT_PREFERENCE_VALUE),
        Preference(1, 11, 2.0),
    ]


def test_later_records_overwrite_earlier(tmp_path):
    store = build_store(_write(tmp_path, "1,10,1.0\n1,10,3.0\n"))
    assert store.get_preference(1, 10) == 3.0
    assert store.num_preferences == 1


def test_empty_file(tmp_path):
    assert load_preferences(_write(tmp_path, "")) == []
    assert load_preferences(_write(tmp_path, "# nothing here\n")) == []


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_preferences(str(tmp_path / "missing.txt"))


@pytest.mark.parametrize("text", ["a,10,1.0\n", "1,10,high\n", "1,x\n", ",10,1.0\n", "1,10,1.0,1700000000,7\n"])
def test_malformed_records(tmp_path, text):
    with pytest.raises(InvalidArgumentError):
        load_preferences(_write(tmp_path, text))


def test_bundled_sample_data():
    recommender = build_recommender(DATA_FILE)
    assert recommender.store.num_users == 5
    assert recommender.store.num_items == 7
    assert recommender.recommend(1, 3)
