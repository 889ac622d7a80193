import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.errors import ConflictError, NotFoundError, StorageError
from app.models.history import ArtifactKind
from app.models.user import User
from app.services.user_store import UserStore, binary_search, format_user_id, next_user_id

CC = ArtifactKind.crash_courses


def _users(n):
    return [{"id": format_user_id(i), "username": f"u{i}", "email": f"u{i}@x.io"} for i in range(1, n + 1)]


@pytest.fixture
def store(tmp_path):
    return UserStore(path=str(tmp_path / "users.json"))


def _seed(store, users):
    store.path.write_text(json.dumps({"users": users}), encoding="utf-8")


@pytest.mark.parametrize("n", [0, 1, 50])
def test_binary_search_finds_every_present_id(n):
    users = _users(n)
    for i, u in enumerate(users):
        assert binary_search(users, u["id"]) == i
    assert binary_search(users, "user_999") == -1
    assert binary_search(users, "nobody") == -1


@pytest.mark.parametrize("n", [0, 1, 50])
def test_find_by_id(store, n):
    _seed(store, _users(n))
    for u in _users(n):
        assert store.find_by_id(u["id"])["username"] == u["username"]
    assert store.find_by_id("user_404") is None


def test_allocate_id_on_empty_store(store):
    assert store.allocate_id() == "user_001"


def test_allocate_id_increments_last(store):
    _seed(store, _users(57))
    assert store.allocate_id() == "user_058"


def test_ids_widen_beyond_999():
    assert next_user_id([{"id": "user_999"}]) == "user_1000"
    users = [{"id": "user_998"}, {"id": "user_999"}, {"id": "user_1000"}]
    assert binary_search(users, "user_1000") == 2
    assert binary_search(users, "user_998") == 0


def test_append_keeps_sorted_order(store):
    store.append({"id": "user_003", "username": "c"})
    store.append({"id": "user_001", "username": "a"})
    store.append({"id": "user_002", "username": "b"})
    ids = [u["id"] for u in store.read()["users"]]
    assert ids == ["user_001", "user_002", "user_003"]
    assert store.find_by_id("user_002")["username"] == "b"


def test_append_duplicate_id_conflicts(store):
    store.append({"id": "user_001", "username": "a"})
    with pytest.raises(ConflictError):
        store.append({"id": "user_001", "username": "again"})


def test_create_user_allocates_sequential_ids(store):
    a = store.create_user("alice", "a@x.io", "hash")
    b = store.create_user("bob", "b@x.io", "hash")
    assert (a["id"], b["id"]) == ("user_001", "user_002")
    assert a["crashCourses"] == [] and a["summaries"] == []
    assert store.find_by_username("bob")["id"] == "user_002"


@pytest.mark.parametrize("username, email", [("alice", "other@x.io"), ("other", "a@x.io")])
def test_create_user_rejects_duplicates(store, username, email):
    store.create_user("alice", "a@x.io", "hash")
    with pytest.raises(ConflictError):
        store.create_user(username, email, "hash")
    assert len(store.read()["users"]) == 1


def test_add_artifact_prepends_and_assigns_id(store):
    user = store.create_user("alice", "a@x.io", "hash")
    first = store.add_artifact(user["id"], CC, {"topic": "one"})
    second = store.add_artifact(user["id"], CC, {"topic": "two"})

    items = store.list_artifacts(user["id"], CC)
    assert [i["topic"] for i in items] == ["two", "one"]
    assert first["id"].startswith("cc_") and second["id"].startswith("cc_")
    assert first["id"] != second["id"]
    assert "createdAt" in first


def test_store_then_delete_leaves_others_untouched(store):
    user = store.create_user("alice", "a@x.io", "hash")
    keep_a = store.add_artifact(user["id"], CC, {"topic": "a"})
    gone = store.add_artifact(user["id"], CC, {"topic": "b"})
    keep_c = store.add_artifact(user["id"], CC, {"topic": "c"})

    assert store.remove_artifact(user["id"], CC, gone["id"]) is True
    assert store.list_artifacts(user["id"], CC) == [keep_c, keep_a]
    assert store.remove_artifact(user["id"], CC, gone["id"]) is False


def test_artifact_kinds_are_separate(store):
    user = store.create_user("alice", "a@x.io", "hash")
    s = store.add_artifact(user["id"], ArtifactKind.summaries, {"fileName": "a.pdf"})
    assert s["id"].startswith("sum_")
    assert store.list_artifacts(user["id"], CC) == []


def test_unknown_user_is_not_found(store):
    with pytest.raises(NotFoundError):
        store.add_artifact("user_042", CC, {"topic": "x"})
    with pytest.raises(NotFoundError):
        store.list_artifacts("user_042", CC)


def test_corrupt_file_is_storage_error(store):
    store.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.read()


def test_failed_mutation_writes_nothing(store):
    store.create_user("alice", "a@x.io", "hash")
    before = store.path.read_text(encoding="utf-8")
    with pytest.raises(NotFoundError):
        store.remove_artifact("user_999", CC, "cc_1")
    assert store.path.read_text(encoding="utf-8") == before


def test_concurrent_artifact_writes_are_all_kept(tmp_path):
    path = str(tmp_path / "users.json")
    uid = UserStore(path=path).create_user("alice", "a@x.io", "hash")["id"]

    def add(i):
        return UserStore(path=path).add_artifact(uid, CC, {"topic": f"t{i}"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        added = list(pool.map(add, range(30)))

    items = UserStore(path=path).list_artifacts(uid, CC)
    assert sorted(i["topic"] for i in items) == sorted(f"t{i}" for i in range(30))
    assert len({i["id"] for i in items}) == 30
    assert {a["id"] for a in added} == {i["id"] for i in items}


def test_concurrent_registrations_get_sequential_sorted_ids(tmp_path):
    path = str(tmp_path / "users.json")

    def register(i):
        return UserStore(path=path).create_user(f"user{i}", f"user{i}@x.io", "hash")["id"]

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(register, range(12)))

    expected = [format_user_id(n) for n in range(1, 13)]
    assert sorted(ids) == expected
    stored = UserStore(path=path).read()["users"]
    assert [u["id"] for u in stored] == expected
    for uid in expected:
        assert UserStore(path=path).find_by_id(uid)["id"] == uid


def test_created_user_matches_stored_model(store):
    user = store.create_user("alice", "a@x.io", "hash", profile_picture="pic.png")
    record = User.model_validate(store.find_by_id(user["id"]))
    assert record.profilePicture == "pic.png"
    assert record.crashCourses == [] and record.summaries == []
