import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from boss_alert.db.database import Base
from boss_alert.models import Subscription, SubscriptionRecord
from boss_alert.notifications.subscriptions import (
    SubscriptionFetchError,
    decode_subscription,
    fetch_subscriptions,
)


def make_subscription(n=1, **overrides):
    data = {
        "endpoint": f"https://push.example.com/send/{n}",
        "expirationTime": None,
        "keys": {"p256dh": f"p256dh-key-{n}", "auth": f"auth-{n}"},
    }
    data.update(overrides)
    return data


def double_encode(data):
    return json.dumps(json.dumps(data))


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)


class TestDecodeSubscription:
    def test_double_encoded_matches_single_encoded(self):
        data = make_subscription()
        decoded = decode_subscription(double_encode(data))

        assert decoded == Subscription.model_validate(json.loads(json.dumps(data)))
        assert decoded.endpoint == "https://push.example.com/send/1"
        assert decoded.keys.p256dh == "p256dh-key-1"
        assert decoded.keys.auth == "auth-1"
        assert decoded.expiration_time is None

    def test_expiration_time_carried(self):
        decoded = decode_subscription(
            double_encode(make_subscription(expirationTime=1700000000))
        )
        assert decoded.expiration_time == 1700000000

    def test_single_encoded_rejected(self):
        with pytest.raises(SubscriptionFetchError, match="unescape"):
            decode_subscription(json.dumps(make_subscription()))

    def test_invalid_outer_json(self):
        with pytest.raises(SubscriptionFetchError, match="Raw JSON"):
            decode_subscription("{not json")

    def test_invalid_inner_json(self):
        with pytest.raises(SubscriptionFetchError, match="Unescaped JSON"):
            decode_subscription(json.dumps("{not json"))

    def test_missing_endpoint(self):
        data = make_subscription()
        del data["endpoint"]
        with pytest.raises(SubscriptionFetchError, match="endpoint"):
            decode_subscription(double_encode(data))

    def test_empty_endpoint(self):
        with pytest.raises(SubscriptionFetchError, match="endpoint"):
            decode_subscription(double_encode(make_subscription(endpoint="")))

    @pytest.mark.parametrize("missing", ["p256dh", "auth"])
    def test_missing_key(self, missing):
        data = make_subscription()
        del data["keys"][missing]
        with pytest.raises(SubscriptionFetchError, match="keys"):
            decode_subscription(double_encode(data))

    def test_missing_keys_object(self):
        data = make_subscription()
        del data["keys"]
        with pytest.raises(SubscriptionFetchError, match="keys"):
            decode_subscription(double_encode(data))


class TestFetchSubscriptions:
    def test_fetch_all(self, db_session):
        for n in (1, 2, 3):
            db_session.add(SubscriptionRecord(subscription=json.dumps(make_subscription(n))))
        db_session.commit()

        subscriptions = fetch_subscriptions(db_session)

        assert sorted(s.endpoint for s in subscriptions) == [
            "https://push.example.com/send/1",
            "https://push.example.com/send/2",
            "https://push.example.com/send/3",
        ]

    def test_empty_table(self, db_session):
        assert fetch_subscriptions(db_session) == []

    def test_bad_row_aborts_whole_fetch(self, db_session):
        bad = make_subscription(2)
        del bad["keys"]["auth"]
        db_session.add_all(
            [
                SubscriptionRecord(subscription=json.dumps(make_subscription(1))),
                SubscriptionRecord(subscription=json.dumps(bad)),
                SubscriptionRecord(subscription=json.dumps(make_subscription(3))),
            ]
        )
        db_session.commit()

        with pytest.raises(SubscriptionFetchError, match="missing required keys"):
            fetch_subscriptions(db_session)

    def test_single_encoded_row_aborts_fetch(self, db_session):
        db_session.add(SubscriptionRecord(subscription=make_subscription()))
        db_session.commit()

        with pytest.raises(SubscriptionFetchError):
            fetch_subscriptions(db_session)

    def test_missing_table(self):
        engine = create_engine("sqlite:///:memory:")
        with Session(engine) as session:
            with pytest.raises(SubscriptionFetchError, match="error querying"):
                fetch_subscriptions(session)
