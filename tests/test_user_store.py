"""Unit tests for the in-memory user store."""

import threading

from user_store import User, UserStore


def test_store_is_seeded_with_two_users() -> None:
    store = UserStore()

    assert store.list_all() == [
        User(id=1, name="Alice", email="alice@example.com"),
        User(id=2, name="Bob", email="bob@example.com"),
    ]


def test_get_by_id() -> None:
    store = UserStore()

    assert store.get_by_id(2) == User(id=2, name="Bob", email="bob@example.com")
    assert store.get_by_id(99) is None


def test_create_assigns_next_sequential_id() -> None:
    store = UserStore()

    created = store.create("Charlie", "charlie@example.com")

    assert created == User(id=3, name="Charlie", email="charlie@example.com")
    assert store.get_by_id(3) == created


def test_list_all_returns_a_copy() -> None:
    store = UserStore()

    users = store.list_all()
    users.clear()

    assert len(store.list_all()) == 2


def test_concurrent_creates_never_reuse_ids() -> None:
    store = UserStore(seed=())

    def create_many() -> None:
        for index in range(50):
            store.create(f"user-{index}", f"user-{index}@example.com")

    threads = [threading.Thread(target=create_many) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    ids = [user.id for user in store.list_all()]
    assert sorted(ids) == list(range(1, 401))


def test_to_dict_field_order() -> None:
    user = User(id=1, name="Alice", email="alice@example.com")

    assert list(user.to_dict().items()) == [
        ("id", 1),
        ("name", "Alice"),
        ("email", "alice@example.com"),
    ]
