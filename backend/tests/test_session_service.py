from vyapar.core.change_feed import ChangeEvent
from vyapar.models.user import ProfileUpdate
from vyapar.services.session_service import SessionContext


def test_listeners_follow_profile_changes(db, make_user):
    user = make_user("customer", name="Asha Verma")
    session = SessionContext(db, str(user.id))
    seen = []
    unsubscribe = session.on_profile_change(seen.append)

    session.refresh()
    session.refresh()
    assert [p.name for p in seen] == ["Asha Verma"]
    assert session.loading is False

    session.apply_profile_update(ProfileUpdate(city="Jhansi"))
    assert seen[-1].city == "Jhansi"

    unsubscribe()
    session.apply_profile_update(ProfileUpdate(city="Orchha"))
    assert len(seen) == 2
    assert session.profile.city == "Orchha"


def test_handle_event_only_reacts_to_own_user(db, make_user):
    user = make_user("customer")
    other = make_user("customer")
    session = SessionContext(db, str(user.id))
    session.refresh()

    db.users.update_one({"_id": user.id}, {"$set": {"phone": "9876543210"}})

    assert not session.handle_event(ChangeEvent(collection="users", doc_id=str(other.id), action="updated"))
    assert not session.handle_event(ChangeEvent(collection="orders", doc_id=str(user.id), action="updated"))
    assert session.handle_event(ChangeEvent(collection="users", doc_id=str(user.id), action="updated"))
    assert session.profile.phone == "9876543210"


def test_close_drops_identity_and_listeners(db, make_user):
    user = make_user("customer")
    seen = []
    with SessionContext(db, str(user.id)) as session:
        session.on_profile_change(seen.append)
        assert session.current_user() == str(user.id)

    assert session.closed
    assert session.current_user() is None
    assert session.profile is None
    assert session.refresh() is None
    assert seen == []


def test_missing_user_loads_as_none(db):
    session = SessionContext(db, "000000000000000000000000")
    seen = []
    session.on_profile_change(seen.append)

    assert session.refresh() is None
    assert seen == [None]
