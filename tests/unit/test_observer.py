"""Unit tests for the session observer."""
from types import SimpleNamespace

from app.modules.auth.observer import SessionObserver

from tests.fakes import FakeBackend, FakeClient


def _session(user_id, email):
    return SimpleNamespace(access_token="t", user=SimpleNamespace(id=user_id, email=email))


class TestSessionObserverStart:
    def test_no_session_starts_signed_out(self):
        client = FakeClient(FakeBackend())
        observer = SessionObserver(client.auth).start()

        assert observer.current_user is None
        assert observer.active

    def test_existing_session_is_mirrored(self):
        backend = FakeBackend()
        user = backend.add_user("a@b.com", "secret")
        client = FakeClient(backend)
        client.auth._session = backend.issue_session(user)

        observer = SessionObserver(client.auth).start()

        assert observer.current_user.id == user.id
        assert observer.current_user.email == "a@b.com"

    def test_failed_session_fetch_counts_as_signed_out(self):
        backend = FakeBackend()
        backend.fail_get_session = True
        client = FakeClient(backend)

        observer = SessionObserver(client.auth).start()

        assert observer.current_user is None
        # still subscribed, so a later sign-in is picked up
        client.auth.emit("SIGNED_IN", _session("u1", "x@y.com"))
        assert observer.current_user.id == "u1"

    def test_start_twice_subscribes_once(self):
        client = FakeClient(FakeBackend())
        observer = SessionObserver(client.auth)
        observer.start()
        observer.start()

        assert len(client.auth._subscribers) == 1


class TestSessionObserverNotifications:
    def test_last_notification_wins(self):
        client = FakeClient(FakeBackend())
        observer = SessionObserver(client.auth).start()

        sequence = [
            ("SIGNED_IN", _session("u1", "one@example.com")),
            ("TOKEN_REFRESHED", _session("u1", "one@example.com")),
            ("SIGNED_OUT", None),
            ("SIGNED_IN", _session("u2", "two@example.com")),
        ]
        for event, session in sequence:
            client.auth.emit(event, session)
            expected = session.user.id if session else None
            actual = observer.current_user.id if observer.current_user else None
            assert actual == expected, f"after {event} expected {expected}, got {actual}"

        assert observer.last_event == "SIGNED_IN"

    def test_sign_in_and_out_through_client(self):
        backend = FakeBackend()
        backend.add_user("a@b.com", "secret")
        client = FakeClient(backend)
        observer = SessionObserver(client.auth).start()

        client.auth.sign_in_with_password({"email": "a@b.com", "password": "secret"})
        assert observer.is_authenticated

        client.auth.sign_out()
        assert not observer.is_authenticated

    def test_token_refresh_keeps_user(self):
        backend = FakeBackend()
        backend.add_user("a@b.com", "secret")
        client = FakeClient(backend)
        observer = SessionObserver(client.auth).start()
        client.auth.sign_in_with_password({"email": "a@b.com", "password": "secret"})
        user_id = observer.current_user.id

        client.auth.refresh()

        assert observer.current_user.id == user_id
        assert observer.last_event == "TOKEN_REFRESHED"


class TestSessionObserverTeardown:
    def test_stop_unsubscribes(self):
        client = FakeClient(FakeBackend())
        observer = SessionObserver(client.auth).start()
        subscription = observer._subscription

        observer.stop()

        assert subscription.unsubscribed
        assert client.auth._subscribers == {}
        assert not observer.active

    def test_no_writes_after_stop(self):
        client = FakeClient(FakeBackend())
        observer = SessionObserver(client.auth).start()
        callback = observer._on_auth_state_change
        observer.stop()

        # a notification already in flight when teardown happened
        callback("SIGNED_IN", _session("late", "late@example.com"))

        assert observer.current_user is None

    def test_stop_is_idempotent(self):
        client = FakeClient(FakeBackend())
        observer = SessionObserver(client.auth).start()
        observer.stop()
        observer.stop()

        assert not observer.active

    def test_context_manager_releases_subscription(self):
        client = FakeClient(FakeBackend())
        with SessionObserver(client.auth) as observer:
            assert observer.active
            assert len(client.auth._subscribers) == 1

        assert client.auth._subscribers == {}
