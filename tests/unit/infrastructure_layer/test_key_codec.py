"""
Unit Tests for the Cache Key Codec
"""

import pytest

from tests.test_fixtures import CHANNEL_ID, TEAM_ID, THREAD_TS
from thread_digest.core.config.constants import SupportedLanguage
from thread_digest.core.exceptions import InvalidKeyComponentError
from thread_digest.infrastructure.cache.key_codec import (
    CacheKey,
    derive_key,
    is_valid_slack_id,
    is_valid_timestamp,
    local_key,
    parse_key,
)


@pytest.mark.unit
class TestDeriveKey:
    def test_canonical_format(self):
        assert derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "ja") == f"{TEAM_ID}:{CHANNEL_ID}:{THREAD_TS}:ja"

    def test_accepts_enum_language(self):
        assert derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, SupportedLanguage.DE).endswith(":de")

    def test_deterministic(self):
        assert derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "en") == derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "en")

    def test_distinct_tuples_give_distinct_keys(self):
        keys = {
            derive_key(team, channel, ts, lang)
            for team in (TEAM_ID, "T9876ZYXW1")
            for channel in (CHANNEL_ID, "C9999ZZZZ1")
            for ts in (THREAD_TS, "1700000000.000200", "17000000.00000100")
            for lang in ("ja", "en", "zh")
        }
        assert len(keys) == 2 * 2 * 3 * 3

    @pytest.mark.parametrize(
        "workspace_id, scope_id, anchor_id, language, component",
        [
            ("t0123abcd9", CHANNEL_ID, THREAD_TS, "ja", "workspace_id"),
            ("T123", CHANNEL_ID, THREAD_TS, "ja", "workspace_id"),
            ("", CHANNEL_ID, THREAD_TS, "ja", "workspace_id"),
            (TEAM_ID, "C0123:ABCD9", THREAD_TS, "ja", "scope_id"),
            (TEAM_ID, "C01", THREAD_TS, "ja", "scope_id"),
            (TEAM_ID, CHANNEL_ID, "1700000000", "ja", "anchor_id"),
            (TEAM_ID, CHANNEL_ID, "abc.def", "ja", "anchor_id"),
            (TEAM_ID, CHANNEL_ID, "", "ja", "anchor_id"),
            (TEAM_ID + "\n", CHANNEL_ID, THREAD_TS, "ja", "workspace_id"),
            (TEAM_ID, CHANNEL_ID + "\n", THREAD_TS, "ja", "scope_id"),
            (TEAM_ID, CHANNEL_ID, THREAD_TS + "\n", "ja", "anchor_id"),
            (TEAM_ID, CHANNEL_ID, "\u0661\u0662.\u0663", "ja", "anchor_id"),
            (TEAM_ID, CHANNEL_ID, THREAD_TS, "xx", "language"),
            (TEAM_ID, CHANNEL_ID, THREAD_TS, "JA", "language"),
        ],
    )
    def test_invalid_components_rejected(self, workspace_id, scope_id, anchor_id, language, component):
        with pytest.raises(InvalidKeyComponentError) as exc_info:
            derive_key(workspace_id, scope_id, anchor_id, language)

        assert exc_info.value.details["component"] == component

    def test_none_workspace_rejected(self):
        with pytest.raises(InvalidKeyComponentError):
            derive_key(None, CHANNEL_ID, THREAD_TS, "ja")


@pytest.mark.unit
class TestParseKey:
    def test_inverse_of_derive(self):
        key = derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "ko")

        parsed = parse_key(key)

        assert parsed == CacheKey(TEAM_ID, CHANNEL_ID, THREAD_TS, SupportedLanguage.KO)
        assert parsed.serialize() == key

    @pytest.mark.parametrize(
        "key",
        [
            "",
            "not-a-key",
            f"{TEAM_ID}:{CHANNEL_ID}:{THREAD_TS}",
            f"{TEAM_ID}:{CHANNEL_ID}:{THREAD_TS}:ja:extra",
            f"{TEAM_ID}:{CHANNEL_ID}:{THREAD_TS}:xx",
            f"bad:{CHANNEL_ID}:{THREAD_TS}:ja",
        ],
    )
    def test_malformed_keys_rejected(self, key):
        with pytest.raises(InvalidKeyComponentError):
            parse_key(key)


@pytest.mark.unit
class TestValidators:
    def test_slack_ids(self):
        assert is_valid_slack_id(TEAM_ID)
        assert is_valid_slack_id("C0123ABCD")
        assert not is_valid_slack_id("C0123ABC")
        assert not is_valid_slack_id(None)

    def test_slack_id_rejects_trailing_newline(self):
        assert not is_valid_slack_id(TEAM_ID + "\n")
        assert not is_valid_slack_id(" " + TEAM_ID)

    def test_timestamps(self):
        assert is_valid_timestamp(THREAD_TS)
        assert not is_valid_timestamp("1700000000.")
        assert not is_valid_timestamp(None)

    def test_timestamp_rejects_trailing_newline(self):
        assert not is_valid_timestamp(THREAD_TS + "\n")

    def test_timestamp_accepts_ascii_digits_only(self):
        assert not is_valid_timestamp("\u0661\u0662.\u0663")
        assert not is_valid_timestamp("\uff11\uff12.\uff13")

    def test_local_key_has_no_language(self):
        assert local_key(CHANNEL_ID, THREAD_TS) == f"{CHANNEL_ID}-{THREAD_TS}"
