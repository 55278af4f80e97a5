from product_recommender.preferences import Preference, PreferenceStore


def test_overwrite_keeps_single_record_with_latest_value():
    store = PreferenceStore()
    store.set_preference(1, 10, 2.0)
    store.set_preference(1, 10, 4.5)

    assert store.preferences_for_user(1) == [Preference(1, 10, 4.5)]
    assert store.num_preferences == 1
    assert store.users_for_item(10) == frozenset({1})


def test_preferences_keep_insertion_order():
    store = PreferenceStore()
    for item_id in (30, 10, 20):
        store.set_preference(7, item_id, 1.0)
    store.set_preference(7, 10, 3.0)

    assert [p.item_id for p in store.preferences_for_user(7)] == [30, 10, 20]
    assert store.get_preference(7, 10) == 3.0


def test_unknown_keys_return_empty_containers():
    store = PreferenceStore()
    assert store.preferences_for_user(99) == []
    assert store.preference_values_for_user(99) == {}
    assert store.users_for_item(99) == frozenset()
    assert store.get_preference(99, 1) is None
    assert not store.has_user(99)


def test_remove_absent_preference_is_noop():
    store = PreferenceStore([Preference(1, 10, 1.0)])
    calls = []
    store.add_listener(lambda items, changed: calls.append((items, changed)))

    store.remove_preference(1, 11)
    store.remove_preference(2, 10)

    assert store.num_preferences == 1
    assert calls == []


def test_remove_keeps_indexes_consistent(sample_store):
    sample_store.remove_preference(3, 107)

    assert sample_store.get_preference(3, 107) is None
    assert 3 not in sample_store.users_for_item(107)
    assert not sample_store.has_item(107)
    assert sample_store.has_user(3)

    for user_id in sample_store.user_ids():
        for pref in sample_store.preferences_for_user(user_id):
            assert user_id in sample_store.users_for_item(pref.item_id)
    for item_id in sample_store.item_ids():
        for user_id in sample_store.users_for_item(item_id):
            assert sample_store.get_preference(user_id, item_id) is not None


def test_removing_last_preference_drops_user():
    store = PreferenceStore([Preference(1, 10, 1.0), Preference(2, 10, 1.0)])
    store.remove_preference(1, 10)

    assert not store.has_user(1)
    assert store.num_users == 1
    assert store.users_for_item(10) == frozenset({2})


def test_listener_reports_items_and_population_change():
    store = PreferenceStore()
    calls = []
    store.add_listener(lambda items, changed: calls.append((items, changed)))

    store.set_preference(1, 10, 1.0)
    store.set_preference(1, 11, 1.0)
    store.set_preference(1, 11, 2.0)
    store.remove_preference(1, 10)
    store.remove_preference(1, 11)

    assert calls == [
        (frozenset({10}), True),
        (frozenset({11}), False),
        (frozenset({11}), False),
        (frozenset({10}), False),
        (frozenset({11}), True),
    ]


def test_bulk_load_notifies_once(sample_preferences):
    store = PreferenceStore()
    calls = []
    store.add_listener(lambda items, changed: calls.append((items, changed)))

    assert store.bulk_load(sample_preferences) == len(sample_preferences)
    assert len(calls) == 1
    items, changed = calls[0]
    assert changed
    assert items == frozenset(range(101, 108))


def test_counts_and_statistics(sample_store):
    assert sample_store.num_users == 5
    assert sample_store.num_items == 7
    assert sample_store.num_preferences == 21
    assert sample_store.num_raters(101) == 5
    assert sample_store.num_co_raters(101, 104) == 4
    assert sample_store.num_co_raters(104, 101) == 4

    stats = sample_store.get_statistics()
    assert stats['n_users'] == 5
    assert stats['n_items'] == 7
    assert stats['n_preferences'] == 21
    assert stats['sparsity'] == 1 - 21 / 35


def test_statistics_of_empty_store():
    stats = PreferenceStore().get_statistics()
    assert stats['n_users'] == 0
    assert stats['sparsity'] == 0.0


def test_removed_listener_is_not_notified():
    store = PreferenceStore()
    calls = []

    def listener(items, changed):
        calls.append(items)

    store.add_listener(listener)
    store.set_preference(1, 10, 1.0)
    store.remove_listener(listener)
    store.set_preference(1, 11, 1.0)
    store.remove_listener(listener)

    assert calls == [frozenset({10})]
