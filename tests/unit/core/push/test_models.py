"""Tests for the push data model."""

from datetime import datetime, timezone

from pydantic import TypeAdapter

from beanroute.core.push.models import (
    PLACEHOLDER_AUTH,
    PLACEHOLDER_P256DH,
    PermissionState,
    PlaceholderSubscription,
    RealSubscription,
    ServerConfig,
    SubscriptionKeys,
    SubscriptionRecord,
    SubscriptionState,
)

record_adapter: TypeAdapter[RealSubscription | PlaceholderSubscription] = TypeAdapter(SubscriptionRecord)


class TestSubscriptionRecord:
    def test_placeholder_for_user_agent(self) -> None:
        record = PlaceholderSubscription.for_user_agent("Mozilla/5.0 (iPhone)")
        assert record.endpoint == "mobile://Mozilla/5.0 (iPhone)"
        assert record.keys == SubscriptionKeys(p256dh=PLACEHOLDER_P256DH, auth=PLACEHOLDER_AUTH)
        assert record.is_limited is True
        assert record.is_mobile_fallback is True

    def test_real_is_never_a_fallback(self) -> None:
        record = RealSubscription(endpoint="https://push.example/1", keys=SubscriptionKeys(p256dh="k", auth="a"))
        assert record.is_limited is False
        assert record.is_mobile_fallback is False
        assert record.to_wire() == {"endpoint": "https://push.example/1", "keys": {"p256dh": "k", "auth": "a"}}

    def test_discriminated_by_kind(self) -> None:
        parsed = record_adapter.validate_python(
            {"kind": "placeholder", "endpoint": "mobile://ua"},
        )
        assert isinstance(parsed, PlaceholderSubscription)

        parsed = record_adapter.validate_python(
            {"kind": "real", "endpoint": "https://push.example/1", "keys": {"p256dh": "k", "auth": "a"}},
        )
        assert isinstance(parsed, RealSubscription)


    def test_package_records_validate_through_union(self) -> None:
        placeholder = PlaceholderSubscription.for_user_agent("ua")
        parsed = record_adapter.validate_python(placeholder.model_dump())
        assert parsed == placeholder


class TestServerConfig:
    def test_reads_wire_names(self) -> None:
        config = ServerConfig.model_validate({"configured": True, "publicKey": "BEL5", "supported": True})
        assert config.configured is True
        assert config.public_key == "BEL5"

    def test_unconfigured_has_no_key(self) -> None:
        config = ServerConfig.model_validate({"configured": False, "message": "not configured"})
        assert config.public_key is None


class TestSubscriptionState:
    def test_equality_ignores_check_time(self) -> None:
        a = SubscriptionState(True, PermissionState.GRANTED, datetime(2026, 1, 1, tzinfo=timezone.utc))
        b = SubscriptionState(True, PermissionState.GRANTED, datetime(2026, 6, 1, tzinfo=timezone.utc))
        assert a == b

    def test_optimistic_flag_matters(self) -> None:
        assert SubscriptionState(is_subscribed=True) != SubscriptionState(is_subscribed=True, optimistic=True)
